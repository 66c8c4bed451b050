"""
Game rule configuration and validation.
"""

import os

from pydantic import BaseModel, Field, field_validator

from .constants import DECK_SIZE


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""
    
    min_players: int = Field(
        default=2,
        ge=2,
        le=8,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=8,
        ge=2,
        le=8,
        description="Maximum number of players allowed in a room"
    )
    max_cards_per_play: int = Field(
        default=3,
        ge=1,
        le=4,
        description="Maximum number of cards a single play may contain"
    )
    enforce_turn_order: bool = Field(
        default=True,
        description="Reject plays from anyone but the current player"
    )
    strict_card_ownership: bool = Field(
        default=True,
        description="Reject plays naming cards the player does not hold"
    )
    room_code_length: int = Field(
        default=6,
        ge=4,
        le=12,
        description="Length of generated room codes"
    )
    
    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't go below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v
    
    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players
    
    def get_deck_size(self) -> int:
        """Get the total number of cards in the deck."""
        return DECK_SIZE


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def rules_from_env() -> RuleConfig:
    """Build a RuleConfig from LUEGNER_* environment variables."""
    overrides = {}
    if os.getenv("LUEGNER_MIN_PLAYERS"):
        overrides["min_players"] = int(os.getenv("LUEGNER_MIN_PLAYERS"))
    if os.getenv("LUEGNER_MAX_PLAYERS"):
        overrides["max_players"] = int(os.getenv("LUEGNER_MAX_PLAYERS"))
    overrides["enforce_turn_order"] = _env_flag(
        "LUEGNER_ENFORCE_TURN_ORDER", default_rules.enforce_turn_order
    )
    overrides["strict_card_ownership"] = _env_flag(
        "LUEGNER_STRICT_OWNERSHIP", default_rules.strict_card_ownership
    )
    return create_rules(**overrides)
