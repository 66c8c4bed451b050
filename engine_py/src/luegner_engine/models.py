"""Game models and data structures"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import STATUS_WAITING, DEFAULT_MAX_PLAYERS, QUAD_SIZE


@dataclass(frozen=True)
class Card:
    id: str
    suit: str
    rank: str

    @classmethod
    def of(cls, suit: str, rank: str) -> 'Card':
        return cls(id=f"{suit}-{rank}", suit=suit, rank=rank)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"


@dataclass
class Player:
    id: str
    room_id: str
    player_name: str
    player_order: int
    is_host: bool = False
    is_active: bool = True
    cards: List[Card] = field(default_factory=list)
    placement: Optional[int] = None  # 1..N, set once per game
    is_winner: Optional[bool] = None
    ready_for_rematch: bool = False

    @property
    def hand_count(self) -> int:
        return len(self.cards)

    def has_card(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self.cards)


@dataclass
class GameRoom:
    id: str
    room_code: str
    status: str = STATUS_WAITING  # waiting|playing|finished
    max_players: int = DEFAULT_MAX_PLAYERS
    host_id: Optional[str] = None


@dataclass
class GameState:
    room_id: str
    current_player_id: Optional[str] = None
    pile_cards: List[Card] = field(default_factory=list)  # face-up, in play order
    last_claim: Optional[str] = None
    last_claim_rank: Optional[str] = None
    last_claim_count: Optional[int] = None
    removed_quads: List[str] = field(default_factory=list)  # ranks, no duplicates

    def has_claim(self) -> bool:
        return self.last_claim_rank is not None and self.last_claim_count is not None

    def clear_claim(self):
        self.last_claim = None
        self.last_claim_rank = None
        self.last_claim_count = None


@dataclass
class GameAction:
    room_id: str
    player_id: str
    action_type: str  # play_card|call_liar
    action_data: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)


@dataclass
class RoomSnapshot:
    """Everything the engine needs to know about one room."""
    room: GameRoom
    players: List[Player] = field(default_factory=list)
    state: Optional[GameState] = None
    actions: List[GameAction] = field(default_factory=list)

    @property
    def room_id(self) -> str:
        return self.room.id

    def players_in_order(self) -> List[Player]:
        return sorted(self.players, key=lambda p: p.player_order)

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def last_action_of_type(self, action_type: str) -> Optional[GameAction]:
        for action in reversed(self.actions):
            if action.action_type == action_type:
                return action
        return None

    def total_cards(self) -> int:
        """Cards in hands, on the pile and removed as quads."""
        in_hands = sum(len(p.cards) for p in self.players)
        if not self.state:
            return in_hands
        return in_hands + len(self.state.pile_cards) + QUAD_SIZE * len(self.state.removed_quads)


@dataclass
class LiarReveal:
    was_lying: bool
    revealed_cards: List[Card]
    loser: str
    winner: str


@dataclass
class RematchStatus:
    all_ready: bool
    ready_count: int
    total_count: int


@dataclass
class EngineResult:
    """Outcome of an engine operation: the new snapshot plus what changed."""
    snapshot: RoomSnapshot
    new_actions: List[GameAction] = field(default_factory=list)
    newly_placed: List[str] = field(default_factory=list)
    reveal: Optional[LiarReveal] = None
    rematch: Optional[RematchStatus] = None
    started: bool = False
