"""
Four-of-a-kind detection.

A quad is all four cards of one rank. Quads never stay in a hand: whenever a
hand gains or loses cards the engine strips them out of play.
"""

from typing import List, NamedTuple, Optional, Tuple

from .constants import QUAD_SIZE
from .models import Card


class Quad(NamedTuple):
    rank: str
    cards: List[Card]


def find_quad(cards: List[Card]) -> Optional[Quad]:
    """Return the first rank (in encounter order) held exactly four times."""
    by_rank = {}
    for card in cards:
        by_rank.setdefault(card.rank, []).append(card)
    
    for rank, rank_cards in by_rank.items():
        if len(rank_cards) == QUAD_SIZE:
            return Quad(rank, rank_cards)
    
    return None


def strip_quads(cards: List[Card], removed_quads: List[str]) -> Tuple[List[Card], List[str]]:
    """
    Remove every quad from ``cards``.
    
    Args:
        cards: Hand to clean up
        removed_quads: Ranks already taken out of play this round
    
    Returns:
        Tuple of (remaining cards, updated removed ranks). Inputs are not mutated.
    """
    remaining = list(cards)
    removed = list(removed_quads)
    
    quad = find_quad(remaining)
    while quad is not None:
        remaining = [card for card in remaining if card.rank != quad.rank]
        if quad.rank not in removed:
            removed.append(quad.rank)
        quad = find_quad(remaining)
    
    return remaining, removed
