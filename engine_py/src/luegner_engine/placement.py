# engine_py/src/luegner_engine/placement.py

import logging
from typing import List

from .constants import STATUS_FINISHED
from .models import RoomSnapshot

logger = logging.getLogger(__name__)


def assign_placements(snapshot: RoomSnapshot) -> List[str]:
    """
    Hands out finishing placements after a move.

    Every player whose hand is empty and who has no placement yet gets the
    next free placement (already placed + 1) in player order and drops out of
    the turn rotation. The room finishes once everybody is placed, or when the
    only unplaced player left has an empty hand; that player takes the last
    slot.

    This function mutates the snapshot.

    Args:
        snapshot: Room snapshot after the move was applied.

    Returns:
        IDs of the players placed by this call, in placement order.
    """
    players = snapshot.players_in_order()
    newly_placed = []

    for player in players:
        if player.cards:
            continue
        if player.placement is None:
            placed_count = sum(1 for p in players if p.placement is not None)
            player.placement = placed_count + 1
            player.is_winner = player.placement == 1
            newly_placed.append(player.id)
            logger.info(f"{player.player_name} finished in position {player.placement}")
        # Placed players who took a pile back and emptied it again
        player.is_active = False

    unplaced = [p for p in players if p.placement is None]
    if not unplaced:
        _finish(snapshot)
    elif len(unplaced) == 1 and not unplaced[0].cards:
        last = unplaced[0]
        last.placement = len(players)
        last.is_winner = False
        last.is_active = False
        newly_placed.append(last.id)
        _finish(snapshot)

    return newly_placed


def _finish(snapshot: RoomSnapshot):
    snapshot.room.status = STATUS_FINISHED
    if snapshot.state:
        snapshot.state.current_player_id = None
    ranking = ", ".join(
        f"{p.placement}. {p.player_name}"
        for p in sorted(snapshot.players, key=lambda p: p.placement)
    )
    logger.info(f"Game finished in room {snapshot.room_id}: {ranking}")
