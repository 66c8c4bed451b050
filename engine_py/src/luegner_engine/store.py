"""
Room persistence.

The engine itself never touches storage; ``GameSession`` loads a snapshot
from a ``RoomStore``, runs the engine and writes the result back.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from .constants import ERROR_DUPLICATE_ROOM_CODE, ERROR_ROOM_NOT_FOUND
from .errors import raise_error
from .models import GameAction, RoomSnapshot
from .serialization import (
    action_from_dict, action_to_dict, dumps, loads, snapshot_from_dict, snapshot_to_dict
)


class RoomStore(ABC):
    """Storage backend for rooms, players, game state and the action log."""

    @abstractmethod
    def add_room(self, snapshot: RoomSnapshot):
        """Store a new room. Room codes must be unique."""

    @abstractmethod
    def find_room_id(self, room_code: str) -> Optional[str]:
        """Look up a room by its human-readable code."""

    @abstractmethod
    def load(self, room_id: str) -> RoomSnapshot:
        """Load the room, its players, game state and action log."""

    @abstractmethod
    def save(self, snapshot: RoomSnapshot):
        """Write back room, players and game state. The action log is not touched."""

    @abstractmethod
    def append_actions(self, room_id: str, actions: Iterable[GameAction]):
        """Append entries to the room's action log."""


class InMemoryRoomStore(RoomStore):
    """Keeps every room as encoded JSON, so loads never alias saved objects."""

    def __init__(self):
        self._rooms: Dict[str, bytes] = {}
        self._actions: Dict[str, List[bytes]] = {}
        self._codes: Dict[str, str] = {}
        self._lock = threading.Lock()

    def add_room(self, snapshot: RoomSnapshot):
        code = snapshot.room.room_code.upper()
        with self._lock:
            if code in self._codes:
                raise_error(ERROR_DUPLICATE_ROOM_CODE, f"Room code {code} is already taken")
            self._codes[code] = snapshot.room_id
            self._actions[snapshot.room_id] = []
            self._write(snapshot)

    def find_room_id(self, room_code: str) -> Optional[str]:
        with self._lock:
            return self._codes.get(room_code.upper())

    def load(self, room_id: str) -> RoomSnapshot:
        with self._lock:
            raw = self._rooms.get(room_id)
            if raw is None:
                raise_error(ERROR_ROOM_NOT_FOUND, f"Room {room_id} not found")
            data = loads(raw)
            data["actions"] = [loads(a) for a in self._actions.get(room_id, [])]
        return snapshot_from_dict(data)

    def save(self, snapshot: RoomSnapshot):
        with self._lock:
            if snapshot.room_id not in self._rooms:
                raise_error(ERROR_ROOM_NOT_FOUND, f"Room {snapshot.room_id} not found")
            self._write(snapshot)

    def append_actions(self, room_id: str, actions: Iterable[GameAction]):
        with self._lock:
            log = self._actions.setdefault(room_id, [])
            log.extend(dumps(action_to_dict(a)) for a in actions)

    def actions(self, room_id: str) -> List[GameAction]:
        with self._lock:
            return [action_from_dict(loads(a)) for a in self._actions.get(room_id, [])]

    def _write(self, snapshot: RoomSnapshot):
        data = snapshot_to_dict(snapshot)
        data.pop("actions")
        self._rooms[snapshot.room_id] = dumps(data)
