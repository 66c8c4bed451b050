"""Round engine: start, play, liar calls and rematches.

Every operation takes a ``RoomSnapshot``, works on a deep copy and returns an
``EngineResult`` with the updated snapshot. Failed moves raise ``GameError``
and leave the input untouched. Persistence, locking and broadcasting belong
to the caller (see ``session.py``).
"""

import copy
import logging
from typing import List, Optional

from .constants import (
    ACTION_CALL_LIAR, ACTION_PLAY_CARD, ERROR_ACTION_NOT_ALLOWED,
    ERROR_GAME_ALREADY_STARTED, ERROR_INSUFFICIENT_PLAYERS, ERROR_PLAYER_NOT_FOUND,
    STATUS_FINISHED, STATUS_PLAYING, format_claim
)
from .errors import raise_error
from .models import (
    EngineResult, GameAction, GameState, LiarReveal, RematchStatus, RoomSnapshot
)
from .placement import assign_placements
from .quads import strip_quads
from .rules import RuleConfig, default_rules
from .shuffle import deal_cards, find_starting_hand, sort_hand
from .validate import validate_call_liar, validate_play

logger = logging.getLogger(__name__)


def next_active_player(snapshot: RoomSnapshot, player_id: Optional[str]) -> Optional[str]:
    """Next active player after ``player_id`` in seat order, wrapping around.

    The player themselves is returned only if nobody else is active.
    """
    players = snapshot.players_in_order()
    if not players:
        return None
    idx = next((i for i, p in enumerate(players) if p.id == player_id), -1)
    n = len(players)
    for i in range(1, n + 1):
        nxt = players[(idx + i) % n]
        if nxt.is_active:
            return nxt.id
    return None


def _ensure_current_active(snapshot: RoomSnapshot):
    state = snapshot.state
    if snapshot.room.status != STATUS_PLAYING:
        return
    current = snapshot.get_player(state.current_player_id) if state.current_player_id else None
    if current is None or not current.is_active:
        state.current_player_id = next_active_player(snapshot, state.current_player_id)


def start_game(
    snapshot: RoomSnapshot,
    rules: RuleConfig = default_rules,
    seed: Optional[int] = None
) -> EngineResult:
    """Deal fresh hands and open a new game.

    Seats are renumbered densely in their current order, every per-game
    player field is reset and the club 7 holder gets the first turn.
    """
    if snapshot.room.status == STATUS_PLAYING:
        raise_error(ERROR_GAME_ALREADY_STARTED, "Game is already running")

    players_count = len(snapshot.players)
    if players_count < rules.min_players:
        raise_error(
            ERROR_INSUFFICIENT_PLAYERS,
            f"Need at least {rules.min_players} players (have {players_count})"
        )

    new = copy.deepcopy(snapshot)
    players = new.players_in_order()
    hands = deal_cards(len(players), seed)
    start_index = find_starting_hand(hands)

    for i, (player, hand) in enumerate(zip(players, hands)):
        player.player_order = i
        player.cards = sort_hand(hand)
        player.is_active = True
        player.placement = None
        player.is_winner = None
        player.ready_for_rematch = False

    new.players = players
    new.state = GameState(
        room_id=new.room_id,
        current_player_id=players[start_index].id,
    )
    new.room.status = STATUS_PLAYING

    logger.info(
        f"Game started in room {new.room_id} with {len(players)} players, "
        f"{players[start_index].player_name} holds the club 7"
    )
    return EngineResult(snapshot=new, started=True)


def play_cards(
    snapshot: RoomSnapshot,
    player_id: str,
    card_ids: List[str],
    claim_rank: Optional[str] = None,
    claim_count: Optional[int] = None,
    rules: RuleConfig = default_rules
) -> EngineResult:
    """Put 1-3 cards face down on the pile, optionally opening a claim."""
    validation = validate_play(snapshot, player_id, card_ids, claim_rank, claim_count, rules)
    validation.raise_if_invalid()
    move = validation.move

    new = copy.deepcopy(snapshot)
    state = new.state
    player = new.get_player(player_id)
    played = move['cards']
    played_ids = {card.id for card in played}

    remaining = [card for card in player.cards if card.id not in played_ids]
    remaining, state.removed_quads = strip_quads(remaining, state.removed_quads)
    player.cards = sort_hand(remaining)

    state.pile_cards.extend(played)
    state.current_player_id = next_active_player(new, player_id)

    claim = None
    if move['claim_rank'] is not None:
        claim = format_claim(move['claim_rank'], move['claim_count'])
        state.last_claim = claim
        state.last_claim_rank = move['claim_rank']
        state.last_claim_count = move['claim_count']

    action = GameAction(
        room_id=new.room_id,
        player_id=player_id,
        action_type=ACTION_PLAY_CARD,
        action_data={'cards_count': len(played), 'claim': claim},
    )
    new.actions.append(action)
    logger.debug(
        f"{player.player_name} played {len(played)} card(s), claim {state.last_claim}, "
        f"{len(player.cards)} left"
    )

    newly_placed = assign_placements(new)
    _ensure_current_active(new)
    return EngineResult(snapshot=new, new_actions=[action], newly_placed=newly_placed)


def call_liar(snapshot: RoomSnapshot, caller_id: str) -> EngineResult:
    """Challenge the most recent claim.

    The last ``last_claim_count`` cards of the pile are revealed. If fewer of
    them match the claimed rank than claimed, the last player lied and takes
    the pile; otherwise the caller does. The other side gets the turn.
    """
    validation = validate_call_liar(snapshot, caller_id)
    validation.raise_if_invalid()
    last_play = validation.move['last_play']

    new = copy.deepcopy(snapshot)
    state = new.state
    claimed_rank = state.last_claim_rank
    claimed_count = state.last_claim_count

    revealed = list(state.pile_cards[-claimed_count:])
    actual_count = sum(1 for card in revealed if card.rank == claimed_rank)
    was_lying = actual_count != claimed_count

    if was_lying:
        loser, winner = last_play.player_id, caller_id
    else:
        loser, winner = caller_id, last_play.player_id

    loser_player = new.get_player(loser)
    if loser_player is None:
        raise_error(ERROR_PLAYER_NOT_FOUND, f"Player {loser} is no longer in the room")

    cards, state.removed_quads = strip_quads(
        loser_player.cards + state.pile_cards, state.removed_quads
    )
    loser_player.cards = sort_hand(cards)
    loser_player.is_active = True

    state.pile_cards = []
    state.clear_claim()
    state.current_player_id = winner

    action = GameAction(
        room_id=new.room_id,
        player_id=caller_id,
        action_type=ACTION_CALL_LIAR,
        action_data={
            'was_lying': was_lying,
            'revealed_cards': [card.id for card in revealed],
            'loser': loser,
            'winner': winner,
        },
    )
    new.actions.append(action)
    logger.info(
        f"Liar call in room {new.room_id}: claim {format_claim(claimed_rank, claimed_count)} "
        f"was {'a lie' if was_lying else 'true'}, {loser_player.player_name} takes the pile"
    )

    newly_placed = assign_placements(new)
    _ensure_current_active(new)
    reveal = LiarReveal(was_lying=was_lying, revealed_cards=revealed, loser=loser, winner=winner)
    return EngineResult(
        snapshot=new, new_actions=[action], newly_placed=newly_placed, reveal=reveal
    )


def request_rematch(
    snapshot: RoomSnapshot,
    player_id: str,
    rules: RuleConfig = default_rules,
    seed: Optional[int] = None
) -> EngineResult:
    """Mark a player ready for another game; deal again once everyone is."""
    if snapshot.get_player(player_id) is None:
        raise_error(ERROR_PLAYER_NOT_FOUND, "Player not found")
    if snapshot.room.status != STATUS_FINISHED:
        raise_error(
            ERROR_ACTION_NOT_ALLOWED,
            "A rematch can only be requested once the game has finished"
        )

    new = copy.deepcopy(snapshot)
    new.get_player(player_id).ready_for_rematch = True

    ready_count = sum(1 for p in new.players if p.ready_for_rematch)
    total_count = len(new.players)
    status = RematchStatus(
        all_ready=ready_count == total_count,
        ready_count=ready_count,
        total_count=total_count,
    )

    if not status.all_ready:
        return EngineResult(snapshot=new, rematch=status)

    logger.info(f"All {total_count} players ready, starting rematch in room {new.room_id}")
    result = start_game(new, rules, seed)
    result.rematch = status
    return result
