from luegner_engine.constants import STATUS_FINISHED, STATUS_PLAYING
from luegner_engine.placement import assign_placements

from builders import make_snapshot


def test_assign_placements_in_player_order():
    # 1. Setup
    snapshot = make_snapshot([["7♣"], [], ["8♣"], []])
    snapshot.players[0].placement = 1

    # 2. Action
    placed = assign_placements(snapshot)

    # 3. Assert
    assert placed == ["p1", "p3"]
    assert snapshot.get_player("p1").placement == 2
    assert snapshot.get_player("p3").placement == 3
    assert not snapshot.get_player("p1").is_active
    assert snapshot.get_player("p2").placement is None
    assert snapshot.room.status == STATUS_PLAYING


def test_player_out_early_does_not_finish_game():
    snapshot = make_snapshot([[], ["8♣"], ["9♣"]])
    assert assign_placements(snapshot) == ["p0"]
    assert snapshot.room.status == STATUS_PLAYING
    assert not snapshot.get_player("p0").is_active
    assert snapshot.get_player("p1").is_active


def test_everyone_placed_finishes_game():
    snapshot = make_snapshot([[], []], current="p1")
    snapshot.players[0].placement = 1
    assert assign_placements(snapshot) == ["p1"]
    assert snapshot.get_player("p1").placement == 2
    assert snapshot.room.status == STATUS_FINISHED
    assert snapshot.state.current_player_id is None


def test_placement_never_reassigned():
    snapshot = make_snapshot([[], ["8♣"], ["9♣"]])
    snapshot.players[0].placement = 2
    snapshot.players[1].placement = 1
    assert assign_placements(snapshot) == []
    assert snapshot.get_player("p0").placement == 2


def test_placed_player_emptied_again_goes_inactive():
    snapshot = make_snapshot([[], ["8♣"], ["9♣"]])
    snapshot.players[0].placement = 1
    snapshot.players[0].is_active = True
    assert assign_placements(snapshot) == []
    assert not snapshot.get_player("p0").is_active


def test_no_placements_while_everyone_holds_cards():
    snapshot = make_snapshot([["7♣"], ["8♣"]])
    assert assign_placements(snapshot) == []
    assert all(p.placement is None for p in snapshot.players)
