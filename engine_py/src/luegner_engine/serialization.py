"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

import orjson

from .models import (
    Card, GameAction, GameRoom, GameState, Player, RoomSnapshot
)


def card_to_dict(card: Card) -> Dict[str, str]:
    return {"id": card.id, "suit": card.suit, "rank": card.rank}


def card_from_dict(data: Dict[str, str]) -> Card:
    return Card(id=data["id"], suit=data["suit"], rank=data["rank"])


def _cards_to_list(cards: List[Card]) -> List[Dict[str, str]]:
    return [card_to_dict(card) for card in cards]


def _cards_from_list(data: List[Dict[str, str]]) -> List[Card]:
    return [card_from_dict(item) for item in data]


def sanitize_state(snapshot: RoomSnapshot, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize a room snapshot for transmission to clients.
    
    Args:
        snapshot: Room snapshot to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)
    
    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    room = snapshot.room
    state = snapshot.state
    
    sanitized = {
        "id": room.id,
        "room_code": room.room_code,
        "status": room.status,
        "max_players": room.max_players,
        "host_id": room.host_id,
        "players": {},
        "game": None,
    }
    
    for player in snapshot.players_in_order():
        sanitized_player = {
            "id": player.id,
            "player_name": player.player_name,
            "player_order": player.player_order,
            "is_host": player.is_host,
            "is_active": player.is_active,
            "placement": player.placement,
            "is_winner": player.is_winner,
            "ready_for_rematch": player.ready_for_rematch,
            "hand_count": player.hand_count,
        }
        
        # Show full hand only to the viewer
        if player.id == viewer_id:
            sanitized_player["cards"] = _cards_to_list(player.cards)
        
        sanitized["players"][player.id] = sanitized_player
    
    # Pile faces stay hidden until a liar call reveals them
    if state:
        sanitized["game"] = {
            "current_player_id": state.current_player_id,
            "pile_count": len(state.pile_cards),
            "last_claim": state.last_claim,
            "last_claim_rank": state.last_claim_rank,
            "last_claim_count": state.last_claim_count,
            "removed_quads": list(state.removed_quads),
        }
    
    return sanitized


def snapshot_to_dict(snapshot: RoomSnapshot) -> Dict[str, Any]:
    """Full, unsanitized snapshot as plain data for storage."""
    room = snapshot.room
    state = snapshot.state
    return {
        "room": {
            "id": room.id,
            "room_code": room.room_code,
            "status": room.status,
            "max_players": room.max_players,
            "host_id": room.host_id,
        },
        "players": [
            {
                "id": p.id,
                "room_id": p.room_id,
                "player_name": p.player_name,
                "player_order": p.player_order,
                "is_host": p.is_host,
                "is_active": p.is_active,
                "cards": _cards_to_list(p.cards),
                "placement": p.placement,
                "is_winner": p.is_winner,
                "ready_for_rematch": p.ready_for_rematch,
            }
            for p in snapshot.players
        ],
        "state": None if state is None else {
            "room_id": state.room_id,
            "current_player_id": state.current_player_id,
            "pile_cards": _cards_to_list(state.pile_cards),
            "last_claim": state.last_claim,
            "last_claim_rank": state.last_claim_rank,
            "last_claim_count": state.last_claim_count,
            "removed_quads": list(state.removed_quads),
        },
        "actions": [action_to_dict(a) for a in snapshot.actions],
    }


def action_to_dict(action: GameAction) -> Dict[str, Any]:
    return {
        "room_id": action.room_id,
        "player_id": action.player_id,
        "action_type": action.action_type,
        "action_data": action.action_data,
        "created_at": action.created_at,
    }


def action_from_dict(data: Dict[str, Any]) -> GameAction:
    return GameAction(
        room_id=data["room_id"],
        player_id=data["player_id"],
        action_type=data["action_type"],
        action_data=data.get("action_data", {}),
        created_at=data.get("created_at", 0.0),
    )


def snapshot_from_dict(data: Dict[str, Any]) -> RoomSnapshot:
    room = GameRoom(**data["room"])
    players = []
    for item in data.get("players", []):
        fields = dict(item)
        fields["cards"] = _cards_from_list(fields.get("cards", []))
        players.append(Player(**fields))
    
    state = None
    if data.get("state") is not None:
        fields = dict(data["state"])
        fields["pile_cards"] = _cards_from_list(fields.get("pile_cards", []))
        state = GameState(**fields)
    
    actions = [action_from_dict(a) for a in data.get("actions", [])]
    return RoomSnapshot(room=room, players=players, state=state, actions=actions)


def dumps(data: Any) -> bytes:
    return orjson.dumps(data)


def loads(raw: bytes) -> Any:
    return orjson.loads(raw)
