"""
Event models and the in-process event bus.

Inbound commands are parsed into pydantic models and dispatched by
``GameManager.handle_command``. Every successful write publishes outbound
events on the ``EventBus``; transports (websocket, long-poll, ...) subscribe
per room and forward them.
"""

import logging
import queue
import threading
import time
from collections import defaultdict
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .constants import RANKS

logger = logging.getLogger(__name__)


class CommandType(str, Enum):
    """Inbound command types."""
    CREATE = "create"
    JOIN = "join"
    START = "start"
    PLAY = "play"
    CALL_LIAR = "call_liar"
    REMATCH = "rematch"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    STATE_CHANGED = "state_changed"
    LIAR_REVEALED = "liar_revealed"
    PLAYER_PLACED = "player_placed"
    GAME_FINISHED = "game_finished"
    REMATCH_STATUS = "rematch_status"


# Inbound command models
class BaseCommand(BaseModel):
    """Base command model."""
    type: CommandType


class CreateCommand(BaseCommand):
    """Create room command."""
    type: CommandType = CommandType.CREATE
    name: str = Field(..., min_length=1, max_length=30)
    room_code: Optional[str] = Field(default=None, min_length=1, max_length=12)


class JoinCommand(BaseCommand):
    """Join room command."""
    type: CommandType = CommandType.JOIN
    room_code: str = Field(..., min_length=1, max_length=12)
    name: str = Field(..., min_length=1, max_length=30)


class StartCommand(BaseCommand):
    """Start game command."""
    type: CommandType = CommandType.START
    room_id: str
    seed: Optional[int] = None


class PlayCommand(BaseCommand):
    """Play cards command."""
    type: CommandType = CommandType.PLAY
    room_id: str
    player_id: str
    cards: List[str] = Field(..., min_length=1, max_length=4)
    claim_rank: Optional[str] = None
    claim_count: Optional[int] = Field(default=None, ge=1, le=4)

    @field_validator("claim_rank")
    @classmethod
    def validate_claim_rank(cls, v):
        if v is not None and v not in RANKS:
            raise ValueError(f"Invalid claim rank: {v}")
        return v


class CallLiarCommand(BaseCommand):
    """Call liar command."""
    type: CommandType = CommandType.CALL_LIAR
    room_id: str
    player_id: str


class RematchCommand(BaseCommand):
    """Rematch request command."""
    type: CommandType = CommandType.REMATCH
    room_id: str
    player_id: str


InboundCommand = Union[
    CreateCommand,
    JoinCommand,
    StartCommand,
    PlayCommand,
    CallLiarCommand,
    RematchCommand
]


# Outbound event models
class RoomEvent(BaseModel):
    """Base outbound event."""
    type: OutboundEventType
    room_id: str
    timestamp: float = Field(default_factory=time.time)


class StateChangedEvent(RoomEvent):
    """Public room state after a successful write."""
    type: OutboundEventType = OutboundEventType.STATE_CHANGED
    reason: str
    state: Dict[str, Any]


class LiarRevealedEvent(RoomEvent):
    """Result of a liar call."""
    type: OutboundEventType = OutboundEventType.LIAR_REVEALED
    caller_id: str
    was_lying: bool
    revealed_cards: List[str]
    loser: str
    winner: str


class PlayerPlacedEvent(RoomEvent):
    """A player emptied their hand."""
    type: OutboundEventType = OutboundEventType.PLAYER_PLACED
    player_id: str
    placement: int


class GameFinishedEvent(RoomEvent):
    """Every player has a placement."""
    type: OutboundEventType = OutboundEventType.GAME_FINISHED
    placements: Dict[str, int]


class RematchStatusEvent(RoomEvent):
    """Rematch readiness."""
    type: OutboundEventType = OutboundEventType.REMATCH_STATUS
    ready_count: int
    total_count: int
    all_ready: bool


def parse_inbound_command(data: Dict[str, Any]) -> InboundCommand:
    """
    Parse raw command data into the matching command model.
    
    Raises:
        ValueError: If the command type is invalid or data is malformed
    """
    command_type = data.get("type")
    
    if not command_type:
        raise ValueError("Missing command type")
    
    try:
        command_type = CommandType(command_type)
    except ValueError:
        raise ValueError(f"Invalid command type: {command_type}")
    
    command_map = {
        CommandType.CREATE: CreateCommand,
        CommandType.JOIN: JoinCommand,
        CommandType.START: StartCommand,
        CommandType.PLAY: PlayCommand,
        CommandType.CALL_LIAR: CallLiarCommand,
        CommandType.REMATCH: RematchCommand,
    }
    
    try:
        return command_map[command_type](**data)
    except Exception as e:
        raise ValueError(f"Invalid command data: {str(e)}")


class EventBus:
    """Fans room events out to per-subscriber queues."""
    
    def __init__(self, max_queue_size: int = 0):
        self._subscribers: Dict[str, List[queue.Queue]] = defaultdict(list)
        self._lock = threading.Lock()
        self._max_queue_size = max_queue_size
    
    def subscribe(self, room_id: str) -> queue.Queue:
        subscription = queue.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers[room_id].append(subscription)
        return subscription
    
    def unsubscribe(self, room_id: str, subscription: queue.Queue):
        with self._lock:
            subscribers = self._subscribers.get(room_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(room_id, None)
    
    def subscriber_count(self, room_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(room_id, []))
    
    def publish(self, event: RoomEvent):
        with self._lock:
            subscribers = list(self._subscribers.get(event.room_id, []))
        for subscription in subscribers:
            try:
                subscription.put_nowait(event)
            except queue.Full:
                logger.warning(
                    f"Dropping {event.type.value} for a slow subscriber in room {event.room_id}"
                )
