"""Game constants and utilities"""

from typing import Literal

Suit = Literal['♣', '♠', '♥', '♦']
Rank = Literal['7', '8', '9', '10', 'J', 'Q', 'K', 'A']

SUITS = ['♣', '♠', '♥', '♦']
RANKS = ['7', '8', '9', '10', 'J', 'Q', 'K', 'A']

DECK_SIZE = len(SUITS) * len(RANKS)
QUAD_SIZE = 4

# The club 7 holder opens every game
STARTING_SUIT = '♣'
STARTING_RANK = '7'
STARTING_CARD = f"{STARTING_SUIT}-{STARTING_RANK}"

# Room status
STATUS_WAITING = "waiting"
STATUS_PLAYING = "playing"
STATUS_FINISHED = "finished"

# Action log types
ACTION_PLAY_CARD = "play_card"
ACTION_CALL_LIAR = "call_liar"

# Room defaults
DEFAULT_MAX_PLAYERS = 8
ROOM_CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# Error codes
ERROR_INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
ERROR_INVALID_PLAYER_COUNT = "INVALID_PLAYER_COUNT"
ERROR_ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ERROR_PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
ERROR_GAME_STATE_NOT_FOUND = "GAME_STATE_NOT_FOUND"
ERROR_NO_ACTIVE_CLAIM = "NO_ACTIVE_CLAIM"
ERROR_NO_PRIOR_ACTION = "NO_PRIOR_ACTION"
ERROR_CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
ERROR_NOT_YOUR_TURN = "NOT_YOUR_TURN"
ERROR_INVALID_CARD_COUNT = "INVALID_CARD_COUNT"
ERROR_INVALID_CLAIM = "INVALID_CLAIM"
ERROR_GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
ERROR_ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
ERROR_ROOM_FULL = "ROOM_FULL"
ERROR_GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
ERROR_DUPLICATE_ROOM_CODE = "DUPLICATE_ROOM_CODE"


def format_claim(rank: str, count: int) -> str:
    return f"{count}x {rank}"
