"""
Move validation for card plays and liar calls.
"""

from typing import Dict, List, Optional

from .constants import (
    ACTION_PLAY_CARD, ERROR_ACTION_NOT_ALLOWED, ERROR_CARD_NOT_IN_HAND,
    ERROR_GAME_NOT_IN_PROGRESS, ERROR_GAME_STATE_NOT_FOUND, ERROR_INVALID_CARD_COUNT,
    ERROR_INVALID_CLAIM, ERROR_NO_ACTIVE_CLAIM, ERROR_NO_PRIOR_ACTION,
    ERROR_NOT_YOUR_TURN, ERROR_PLAYER_NOT_FOUND, RANKS, STATUS_PLAYING
)
from .errors import raise_error
from .models import Player, RoomSnapshot
from .rules import RuleConfig, default_rules


class ValidationResult:
    """Result of move validation."""
    
    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        move: Optional[Dict] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.move = move
    
    @classmethod
    def success(cls, move: Optional[Dict] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, move=move or {})
    
    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)
    
    def raise_if_invalid(self):
        if not self.valid:
            raise_error(self.error_code, self.error_message)


def validate_ownership(player: Player, card_ids: List[str]) -> bool:
    """Check if player holds all the specified cards."""
    return all(player.has_card(card_id) for card_id in card_ids)


def _check_in_progress(snapshot: RoomSnapshot) -> Optional[ValidationResult]:
    if snapshot.state is None:
        return ValidationResult.error(
            ERROR_GAME_STATE_NOT_FOUND,
            f"No game state for room {snapshot.room_id}"
        )
    if snapshot.room.status != STATUS_PLAYING:
        return ValidationResult.error(
            ERROR_GAME_NOT_IN_PROGRESS,
            f"Game is not in progress (status: {snapshot.room.status})"
        )
    return None


def validate_play(
    snapshot: RoomSnapshot,
    player_id: str,
    card_ids: List[str],
    claim_rank: Optional[str] = None,
    claim_count: Optional[int] = None,
    rules: RuleConfig = default_rules
) -> ValidationResult:
    """
    Validate a play-cards attempt.
    
    Args:
        snapshot: Current room snapshot
        player_id: ID of player attempting the play
        card_ids: IDs of the cards put on the pile, in order
        claim_rank: Claimed rank, for the play that opens a claim
        claim_count: Claimed count; defaults to the number of cards played
        rules: Rule configuration
    
    Returns:
        ValidationResult whose ``move`` holds the resolved cards and claim
    """
    failure = _check_in_progress(snapshot)
    if failure:
        return failure
    state = snapshot.state
    
    player = snapshot.get_player(player_id)
    if not player:
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found")
    
    if rules.enforce_turn_order and state.current_player_id != player_id:
        return ValidationResult.error(
            ERROR_NOT_YOUR_TURN,
            f"It's not your turn (current turn: {state.current_player_id})"
        )
    
    if len(set(card_ids)) != len(card_ids):
        return ValidationResult.error(
            ERROR_INVALID_CARD_COUNT,
            "The same card cannot be played twice"
        )
    
    if rules.strict_card_ownership:
        if not validate_ownership(player, card_ids):
            missing = [c for c in card_ids if not player.has_card(c)]
            return ValidationResult.error(
                ERROR_CARD_NOT_IN_HAND,
                f"Player does not hold: {', '.join(missing)}"
            )
        played_ids = list(card_ids)
    else:
        played_ids = [c for c in card_ids if player.has_card(c)]
    
    if not 1 <= len(played_ids) <= rules.max_cards_per_play:
        return ValidationResult.error(
            ERROR_INVALID_CARD_COUNT,
            f"Must play between 1 and {rules.max_cards_per_play} cards (played {len(played_ids)})"
        )
    
    if claim_rank is None:
        if claim_count is not None:
            return ValidationResult.error(ERROR_INVALID_CLAIM, "Claim count given without a rank")
        if not state.has_claim():
            return ValidationResult.error(
                ERROR_INVALID_CLAIM,
                "The opening play must state a claim"
            )
    else:
        if claim_rank not in RANKS:
            return ValidationResult.error(ERROR_INVALID_CLAIM, f"Unknown rank {claim_rank!r}")
        if claim_count is None:
            claim_count = len(played_ids)
        if not 1 <= claim_count <= rules.max_cards_per_play:
            return ValidationResult.error(
                ERROR_INVALID_CLAIM,
                f"Claim count must be between 1 and {rules.max_cards_per_play}"
            )
    
    by_id = {card.id: card for card in player.cards}
    return ValidationResult.success({
        'cards': [by_id[c] for c in played_ids],
        'claim_rank': claim_rank,
        'claim_count': claim_count,
    })


def validate_call_liar(snapshot: RoomSnapshot, caller_id: str) -> ValidationResult:
    """
    Validate a liar call against the most recent claim.
    
    Returns:
        ValidationResult whose ``move`` holds the play_card action being challenged
    """
    failure = _check_in_progress(snapshot)
    if failure:
        return failure
    
    if not snapshot.get_player(caller_id):
        return ValidationResult.error(ERROR_PLAYER_NOT_FOUND, "Player not found")
    
    if not snapshot.state.has_claim():
        return ValidationResult.error(ERROR_NO_ACTIVE_CLAIM, "There is no claim to challenge")
    
    last_play = snapshot.last_action_of_type(ACTION_PLAY_CARD)
    if last_play is None:
        return ValidationResult.error(ERROR_NO_PRIOR_ACTION, "No previous play found")
    
    if last_play.player_id == caller_id:
        return ValidationResult.error(
            ERROR_ACTION_NOT_ALLOWED,
            "You cannot call liar on your own play"
        )
    
    return ValidationResult.success({'last_play': last_play})
