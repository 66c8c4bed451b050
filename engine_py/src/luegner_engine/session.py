"""Room orchestration: locking, persistence and broadcast around the engine."""

import logging
import random
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from . import engine
from .constants import (
    ERROR_DUPLICATE_ROOM_CODE, ERROR_GAME_ALREADY_STARTED, ERROR_ROOM_FULL,
    ERROR_ROOM_NOT_FOUND, ROOM_CODE_ALPHABET, STATUS_FINISHED, STATUS_WAITING
)
from .errors import GameError, raise_error
from .events import (
    CallLiarCommand, CreateCommand, EventBus, GameFinishedEvent, InboundCommand,
    JoinCommand, LiarRevealedEvent, PlayCommand, PlayerPlacedEvent, RematchCommand,
    RematchStatusEvent, StartCommand, StateChangedEvent, parse_inbound_command
)
from .models import EngineResult, GameRoom, LiarReveal, Player, RematchStatus, RoomSnapshot
from .rules import RuleConfig, default_rules
from .serialization import sanitize_state
from .settings import EngineSettings
from .store import InMemoryRoomStore, RoomStore

logger = logging.getLogger(__name__)

MAX_ROOM_CODE_ATTEMPTS = 20


@dataclass
class ActionResult:
    """What a caller (UI, transport) gets back from any room operation."""
    success: bool
    state: Optional[RoomSnapshot] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    room_id: Optional[str] = None
    player_id: Optional[str] = None
    reveal: Optional[LiarReveal] = None
    rematch: Optional[RematchStatus] = None

    @classmethod
    def failure(cls, error: GameError) -> 'ActionResult':
        return cls(success=False, error_code=error.code, error_message=error.message)


class GameSession:
    """One room. Every operation runs under the room's lock:
    load snapshot, apply the engine, save, publish."""

    def __init__(
        self,
        room_id: str,
        store: RoomStore,
        bus: EventBus,
        lock: threading.Lock,
        rules: RuleConfig = default_rules,
        seed: Optional[int] = None
    ):
        self.room_id = room_id
        self.store = store
        self.bus = bus
        self.lock = lock
        self.rules = rules
        self.seed = seed

    def snapshot(self) -> RoomSnapshot:
        return self.store.load(self.room_id)

    def view(self, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """Sanitized state as seen by ``viewer_id``."""
        return sanitize_state(self.snapshot(), viewer_id)

    def join(self, player_name: str) -> ActionResult:
        def add_player(snapshot: RoomSnapshot) -> EngineResult:
            if snapshot.room.status != STATUS_WAITING:
                raise_error(ERROR_GAME_ALREADY_STARTED, "Game is already running")
            if len(snapshot.players) >= snapshot.room.max_players:
                raise_error(ERROR_ROOM_FULL, "Room is full")
            player = Player(
                id=str(uuid.uuid4())[:8],
                room_id=snapshot.room_id,
                player_name=player_name,
                player_order=len(snapshot.players),
            )
            snapshot.players.append(player)
            logger.info(f"{player_name} joined room {snapshot.room.room_code}")
            return EngineResult(snapshot=snapshot)

        result = self._run("join", add_player)
        if result.success:
            result.player_id = result.state.players_in_order()[-1].id
        return result

    def start_game(self, seed: Optional[int] = None) -> ActionResult:
        seed = self.seed if seed is None else seed
        return self._run("start", lambda s: engine.start_game(s, self.rules, seed))

    def play_cards(
        self,
        player_id: str,
        card_ids: List[str],
        claim_rank: Optional[str] = None,
        claim_count: Optional[int] = None
    ) -> ActionResult:
        return self._run(
            "play_card",
            lambda s: engine.play_cards(s, player_id, card_ids, claim_rank, claim_count, self.rules)
        )

    def call_liar(self, caller_id: str) -> ActionResult:
        return self._run("call_liar", lambda s: engine.call_liar(s, caller_id), actor_id=caller_id)

    def request_rematch(self, player_id: str) -> ActionResult:
        return self._run(
            "rematch",
            lambda s: engine.request_rematch(s, player_id, self.rules, self.seed)
        )

    def _run(
        self,
        reason: str,
        operation: Callable[[RoomSnapshot], EngineResult],
        actor_id: Optional[str] = None
    ) -> ActionResult:
        with self.lock:
            try:
                before = self.store.load(self.room_id)
                previous_status = before.room.status
                result = operation(before)
                self.store.save(result.snapshot)
                if result.new_actions:
                    self.store.append_actions(self.room_id, result.new_actions)
            except GameError as e:
                logger.info(f"Rejected {reason} in room {self.room_id}: {e}")
                return ActionResult.failure(e)

            self._publish(reason, result, previous_status, actor_id)

        return ActionResult(
            success=True,
            state=result.snapshot,
            room_id=self.room_id,
            reveal=result.reveal,
            rematch=result.rematch,
        )

    def _publish(
        self,
        reason: str,
        result: EngineResult,
        previous_status: str,
        actor_id: Optional[str]
    ):
        snapshot = result.snapshot
        self.bus.publish(StateChangedEvent(
            room_id=self.room_id, reason=reason, state=sanitize_state(snapshot)
        ))

        if result.reveal:
            self.bus.publish(LiarRevealedEvent(
                room_id=self.room_id,
                caller_id=actor_id,
                was_lying=result.reveal.was_lying,
                revealed_cards=[card.id for card in result.reveal.revealed_cards],
                loser=result.reveal.loser,
                winner=result.reveal.winner,
            ))

        for player_id in result.newly_placed:
            self.bus.publish(PlayerPlacedEvent(
                room_id=self.room_id,
                player_id=player_id,
                placement=snapshot.get_player(player_id).placement,
            ))

        if snapshot.room.status == STATUS_FINISHED and previous_status != STATUS_FINISHED:
            self.bus.publish(GameFinishedEvent(
                room_id=self.room_id,
                placements={p.id: p.placement for p in snapshot.players},
            ))

        if result.rematch:
            self.bus.publish(RematchStatusEvent(
                room_id=self.room_id,
                ready_count=result.rematch.ready_count,
                total_count=result.rematch.total_count,
                all_ready=result.rematch.all_ready,
            ))


class GameManager:
    """Registry of rooms; creates, finds and hands out sessions."""

    def __init__(
        self,
        store: Optional[RoomStore] = None,
        bus: Optional[EventBus] = None,
        rules: RuleConfig = default_rules,
        seed: Optional[int] = None
    ):
        self.store = store or InMemoryRoomStore()
        self.bus = bus or EventBus()
        self.rules = rules
        self.seed = seed
        self.room_locks = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None) -> 'GameManager':
        settings = settings or EngineSettings.from_env()
        return cls(rules=settings.rules, seed=settings.seed)

    def session(self, room_id: str) -> GameSession:
        with self._registry_lock:
            lock = self.room_locks[room_id]
        return GameSession(room_id, self.store, self.bus, lock, self.rules, self.seed)

    def generate_room_code(self) -> str:
        return "".join(
            random.choice(ROOM_CODE_ALPHABET) for _ in range(self.rules.room_code_length)
        )

    def create_room(self, host_name: str, room_code: Optional[str] = None) -> ActionResult:
        """Open a room with ``host_name`` as its host and first seat."""
        attempts = 1 if room_code else MAX_ROOM_CODE_ATTEMPTS
        for _ in range(attempts):
            code = (room_code or self.generate_room_code()).upper()
            room_id = str(uuid.uuid4())
            host = Player(
                id=str(uuid.uuid4())[:8],
                room_id=room_id,
                player_name=host_name,
                player_order=0,
                is_host=True,
            )
            room = GameRoom(
                id=room_id,
                room_code=code,
                max_players=self.rules.max_players,
                host_id=host.id,
            )
            snapshot = RoomSnapshot(room=room, players=[host])
            try:
                self.store.add_room(snapshot)
            except GameError as e:
                if e.code == ERROR_DUPLICATE_ROOM_CODE and room_code is None:
                    continue
                logger.info(f"Rejected room creation: {e}")
                return ActionResult.failure(e)
            logger.info(f"{host_name} created room {code}")
            return ActionResult(success=True, state=snapshot, room_id=room_id, player_id=host.id)

        return ActionResult.failure(
            GameError(ERROR_DUPLICATE_ROOM_CODE, "Could not find a free room code")
        )

    def join_room(self, room_code: str, player_name: str) -> ActionResult:
        room_id = self.store.find_room_id(room_code)
        if room_id is None:
            return ActionResult.failure(GameError(ERROR_ROOM_NOT_FOUND, "Room not found"))
        return self.session(room_id).join(player_name)

    def start_game(self, room_id: str, seed: Optional[int] = None) -> ActionResult:
        return self.session(room_id).start_game(seed)

    def play_cards(
        self,
        room_id: str,
        player_id: str,
        card_ids: List[str],
        claim_rank: Optional[str] = None,
        claim_count: Optional[int] = None
    ) -> ActionResult:
        return self.session(room_id).play_cards(player_id, card_ids, claim_rank, claim_count)

    def call_liar(self, room_id: str, caller_id: str) -> ActionResult:
        return self.session(room_id).call_liar(caller_id)

    def request_rematch(self, room_id: str, player_id: str) -> ActionResult:
        return self.session(room_id).request_rematch(player_id)

    def get_state(self, room_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        return self.session(room_id).view(viewer_id)

    def handle_command(self, command: Union[InboundCommand, Dict[str, Any]]) -> ActionResult:
        """Dispatch an inbound command (model or raw dict) to the matching operation."""
        if isinstance(command, dict):
            command = parse_inbound_command(command)

        if isinstance(command, CreateCommand):
            return self.create_room(command.name, command.room_code)
        if isinstance(command, JoinCommand):
            return self.join_room(command.room_code, command.name)
        if isinstance(command, StartCommand):
            return self.start_game(command.room_id, command.seed)
        if isinstance(command, PlayCommand):
            return self.play_cards(
                command.room_id, command.player_id, command.cards,
                command.claim_rank, command.claim_count
            )
        if isinstance(command, CallLiarCommand):
            return self.call_liar(command.room_id, command.player_id)
        if isinstance(command, RematchCommand):
            return self.request_rematch(command.room_id, command.player_id)
        raise ValueError(f"No handler for command type: {command.type}")
