"""
Tests for room orchestration: create/join, locking, persistence and events.
"""

import queue
import threading

import pytest

from luegner_engine.constants import (
    ERROR_DUPLICATE_ROOM_CODE, ERROR_GAME_ALREADY_STARTED, ERROR_INSUFFICIENT_PLAYERS,
    ERROR_NOT_YOUR_TURN, ERROR_ROOM_FULL, ERROR_ROOM_NOT_FOUND, ROOM_CODE_ALPHABET,
    STATUS_FINISHED, STATUS_PLAYING, STATUS_WAITING
)
from luegner_engine.events import EventBus, OutboundEventType, StateChangedEvent
from luegner_engine.models import GameState
from luegner_engine.rules import create_rules
from luegner_engine.session import GameManager
from luegner_engine.settings import EngineSettings

from builders import card, cards


def _drain(subscription):
    events = []
    while True:
        try:
            events.append(subscription.get_nowait())
        except queue.Empty:
            return events


def _room_with_players(manager, *names):
    created = manager.create_room(names[0])
    player_ids = [created.player_id]
    for name in names[1:]:
        player_ids.append(manager.join_room(created.state.room.room_code, name).player_id)
    return created.room_id, player_ids


def _seed_game(manager, room_id, hands, current):
    """Put a running game with known hands into the store."""
    snapshot = manager.store.load(room_id)
    snapshot.room.status = STATUS_PLAYING
    for player, hand in zip(snapshot.players_in_order(), hands):
        player.cards = cards(*hand)
    snapshot.state = GameState(room_id=room_id, current_player_id=current)
    manager.store.save(snapshot)


def test_create_and_join_room():
    manager = GameManager()
    created = manager.create_room("Alice", "abc123")
    assert created.success
    assert created.state.room.room_code == "ABC123"
    assert created.state.room.host_id == created.player_id
    assert created.state.players[0].is_host

    joined = manager.join_room("abc123", "Bob")
    assert joined.success
    assert joined.player_id != created.player_id
    bob = joined.state.get_player(joined.player_id)
    assert bob.player_order == 1
    assert not bob.is_host

    view = manager.get_state(created.room_id, created.player_id)
    assert view["status"] == STATUS_WAITING
    assert len(view["players"]) == 2


def test_generated_room_code():
    manager = GameManager()
    room = manager.create_room("Alice").state.room
    assert len(room.room_code) == 6
    assert all(ch in ROOM_CODE_ALPHABET for ch in room.room_code)


def test_duplicate_room_code():
    manager = GameManager()
    manager.create_room("Alice", "ROOM1")
    result = manager.create_room("Bob", "room1")
    assert not result.success
    assert result.error_code == ERROR_DUPLICATE_ROOM_CODE


def test_join_errors():
    manager = GameManager(rules=create_rules(max_players=2))
    assert manager.join_room("NOPE", "Bob").error_code == ERROR_ROOM_NOT_FOUND

    manager.create_room("Alice", "FULL01")
    assert manager.join_room("FULL01", "Bob").success
    assert manager.join_room("FULL01", "Carol").error_code == ERROR_ROOM_FULL

    manager = GameManager()
    room_id, _ = _room_with_players(manager, "Alice", "Bob")
    code = manager.store.load(room_id).room.room_code
    assert manager.start_game(room_id).success
    assert manager.join_room(code, "Late").error_code == ERROR_GAME_ALREADY_STARTED


def test_unknown_room():
    manager = GameManager()
    result = manager.start_game("missing")
    assert not result.success
    assert result.error_code == ERROR_ROOM_NOT_FOUND


def test_start_needs_two_players():
    manager = GameManager()
    created = manager.create_room("Alice")
    result = manager.start_game(created.room_id)
    assert not result.success
    assert result.error_code == ERROR_INSUFFICIENT_PLAYERS
    assert "2" in result.error_message
    assert manager.store.load(created.room_id).room.status == STATUS_WAITING


def test_concurrent_joins_are_serialized():
    manager = GameManager()
    created = manager.create_room("Host", "BUSY01")
    results = []

    def join(i):
        results.append(manager.join_room("BUSY01", f"Guest {i}"))

    threads = [threading.Thread(target=join, args=(i,)) for i in range(9)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(r.success for r in results) == 7
    assert {r.error_code for r in results if not r.success} == {ERROR_ROOM_FULL}
    players = manager.store.load(created.room_id).players_in_order()
    assert [p.player_order for p in players] == list(range(8))


def test_play_and_call_liar_through_manager():
    manager = GameManager(seed=3)
    room_id, (alice, bob) = _room_with_players(manager, "Alice", "Bob")
    subscription = manager.bus.subscribe(room_id)

    started = manager.start_game(room_id)
    assert started.success
    events = _drain(subscription)
    assert [e.type for e in events] == [OutboundEventType.STATE_CHANGED]
    assert events[0].reason == "start"
    assert events[0].state["status"] == STATUS_PLAYING
    assert all("cards" not in p for p in events[0].state["players"].values())

    snapshot = started.state
    current = snapshot.state.current_player_id
    other = bob if current == alice else alice

    # Out-of-turn play is rejected and nothing is written or published
    rejected = manager.play_cards(room_id, other, [snapshot.get_player(other).cards[0].id], "7")
    assert not rejected.success
    assert rejected.error_code == ERROR_NOT_YOUR_TURN
    assert manager.session(room_id).snapshot() == snapshot
    assert _drain(subscription) == []

    played_card = snapshot.get_player(current).cards[0]
    played = manager.play_cards(room_id, current, [played_card.id], played_card.rank)
    assert played.success
    assert played.state.state.pile_cards == [played_card]
    assert played.state.state.current_player_id == other
    assert len(manager.store.actions(room_id)) == 1
    assert [e.reason for e in _drain(subscription)] == ["play_card"]

    called = manager.call_liar(room_id, other)
    assert called.success
    assert called.reveal.was_lying is False
    assert called.reveal.loser == other
    assert called.state.total_cards() == 32

    events = _drain(subscription)
    assert [e.type for e in events] == [
        OutboundEventType.STATE_CHANGED, OutboundEventType.LIAR_REVEALED
    ]
    assert events[1].caller_id == other
    assert events[1].revealed_cards == [played_card.id]
    assert len(manager.store.actions(room_id)) == 2

    view = manager.get_state(room_id, other)
    assert view["game"]["pile_count"] == 0
    assert view["players"][other]["hand_count"] == len(view["players"][other]["cards"])


def test_game_end_and_rematch_events():
    manager = GameManager(seed=8)
    room_id, (alice, bob) = _room_with_players(manager, "Alice", "Bob")
    _seed_game(manager, room_id, [["A♠"], ["K♣"]], current=alice)
    subscription = manager.bus.subscribe(room_id)

    assert manager.play_cards(room_id, alice, [card("A♠").id], "A").success
    events = _drain(subscription)
    assert [e.type for e in events] == [
        OutboundEventType.STATE_CHANGED, OutboundEventType.PLAYER_PLACED
    ]
    assert events[1].player_id == alice
    assert events[1].placement == 1

    finished = manager.play_cards(room_id, bob, [card("K♣").id])
    assert finished.success
    assert finished.state.room.status == STATUS_FINISHED
    events = _drain(subscription)
    assert [e.type for e in events] == [
        OutboundEventType.STATE_CHANGED,
        OutboundEventType.PLAYER_PLACED,
        OutboundEventType.GAME_FINISHED,
    ]
    assert events[2].placements == {alice: 1, bob: 2}

    waiting = manager.request_rematch(room_id, alice)
    assert waiting.success
    assert not waiting.rematch.all_ready
    events = _drain(subscription)
    assert events[-1].type == OutboundEventType.REMATCH_STATUS
    assert (events[-1].ready_count, events[-1].total_count) == (1, 2)

    rematch = manager.request_rematch(room_id, bob)
    assert rematch.success
    assert rematch.rematch.all_ready
    assert rematch.state.room.status == STATUS_PLAYING
    for player in rematch.state.players:
        assert player.placement is None
        assert len(player.cards) >= 16 - 4
        assert not player.ready_for_rematch


def test_handle_command():
    manager = GameManager()
    created = manager.handle_command({"type": "create", "name": "Zed"})
    assert created.success
    code = created.state.room.room_code

    joined = manager.handle_command({"type": "join", "room_code": code, "name": "Yan"})
    assert joined.success

    started = manager.handle_command({"type": "start", "room_id": created.room_id, "seed": 5})
    assert started.success

    liar = manager.handle_command(
        {"type": "call_liar", "room_id": created.room_id, "player_id": joined.player_id}
    )
    assert not liar.success

    with pytest.raises(ValueError):
        manager.handle_command({"type": "bogus"})
    with pytest.raises(ValueError):
        manager.handle_command({
            "type": "play", "room_id": created.room_id, "player_id": joined.player_id,
            "cards": ["♣-7"], "claim_rank": "6",
        })


def test_manager_from_settings():
    settings = EngineSettings(seed=5, rules=create_rules(max_players=3))
    manager = GameManager.from_settings(settings)
    assert manager.seed == 5
    assert manager.rules.max_players == 3
    assert manager.create_room("Alice").state.room.max_players == 3


def test_event_bus_routing():
    bus = EventBus(max_queue_size=1)
    first = bus.subscribe("r1")
    other_room = bus.subscribe("r2")
    assert bus.subscriber_count("r1") == 1

    bus.publish(StateChangedEvent(room_id="r1", reason="start", state={}))
    bus.publish(StateChangedEvent(room_id="r1", reason="play_card", state={}))

    assert [e.reason for e in _drain(first)] == ["start"]
    assert _drain(other_room) == []

    bus.unsubscribe("r1", first)
    assert bus.subscriber_count("r1") == 0
    bus.publish(StateChangedEvent(room_id="r1", reason="play_card", state={}))
    assert _drain(first) == []
