"""
Rules engine for the Lügner (bluff) card game.
"""

from .errors import GameError
from .models import Card, GameAction, GameRoom, GameState, Player, RoomSnapshot
from .rules import RuleConfig, create_rules, default_rules
from .session import ActionResult, GameManager, GameSession

__all__ = [
    "ActionResult",
    "Card",
    "GameAction",
    "GameError",
    "GameManager",
    "GameRoom",
    "GameSession",
    "GameState",
    "Player",
    "RoomSnapshot",
    "RuleConfig",
    "create_rules",
    "default_rules",
]
