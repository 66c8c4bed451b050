"""
Tests for state sanitization and storage encoding.
"""

from luegner_engine.serialization import (
    dumps, loads, sanitize_state, snapshot_from_dict, snapshot_to_dict
)

from builders import make_snapshot


def _snapshot():
    return make_snapshot(
        [["7♣", "8♦"], ["9♣"]],
        current="p1",
        pile=["K♠", "K♥"],
        claim=("K", 2),
        last_player="p0",
    )


def test_state_serialization():
    """Only the viewer sees their own cards; pile faces stay hidden."""
    snapshot = _snapshot()

    sanitized = sanitize_state(snapshot, "p0")
    assert [c["id"] for c in sanitized["players"]["p0"]["cards"]] == ["♣-7", "♦-8"]
    assert "cards" not in sanitized["players"]["p1"]
    assert sanitized["players"]["p1"]["hand_count"] == 1

    game = sanitized["game"]
    assert game["pile_count"] == 2
    assert "pile_cards" not in game
    assert game["last_claim"] == "2x K"
    assert game["current_player_id"] == "p1"

    public = sanitize_state(snapshot)
    assert all("cards" not in p for p in public["players"].values())


def test_sanitize_room_without_game():
    snapshot = _snapshot()
    snapshot.state = None
    assert sanitize_state(snapshot)["game"] is None


def test_snapshot_storage_format():
    snapshot = _snapshot()
    snapshot.state.removed_quads = ["9"]

    restored = snapshot_from_dict(loads(dumps(snapshot_to_dict(snapshot))))

    assert restored == snapshot
    assert restored.state.pile_cards[0].rank == "K"
    assert restored.actions[0].action_data["claim"] == "2x K"
