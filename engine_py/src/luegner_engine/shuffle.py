"""
Card shuffling and dealing utilities.
"""

import logging
import random
from typing import Dict, List, Optional

from .constants import (
    DECK_SIZE, ERROR_INVALID_PLAYER_COUNT, RANKS, STARTING_RANK, STARTING_SUIT, SUITS
)
from .errors import raise_error
from .models import Card, RoomSnapshot

logger = logging.getLogger(__name__)


def create_deck() -> List[Card]:
    """Create the 32-card deck (7 through Ace in four suits), suit by suit."""
    deck = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card.of(suit, rank))
    return deck


def parse_card(card_id: str) -> Card:
    """
    Turn a card id such as ``"♣-7"`` back into a Card.
    
    Raises:
        ValueError: if the id does not name a card of the deck
    """
    suit, sep, rank = card_id.partition('-')
    if not sep or suit not in SUITS or rank not in RANKS:
        raise ValueError(f"Invalid card id: {card_id!r}")
    return Card.of(suit, rank)


def shuffle_deck(deck: List[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.
    
    Args:
        deck: Cards to shuffle
        seed: Optional seed for deterministic shuffling
    
    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()
    
    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)
    
    return deck_copy


def deal_cards(player_count: int, seed: Optional[int] = None) -> List[List[Card]]:
    """
    Shuffle a fresh deck and deal all of it round-robin.
    
    Card ``i`` goes to hand ``i % player_count``, so hand sizes differ by at
    most one.
    
    Args:
        player_count: Number of hands to deal
        seed: Optional seed for deterministic shuffling
    
    Returns:
        One list of cards per player, in seat order
    """
    if player_count < 2 or player_count > DECK_SIZE:
        raise_error(
            ERROR_INVALID_PLAYER_COUNT,
            f"Cannot deal to {player_count} players"
        )
    
    deck = shuffle_deck(create_deck(), seed)
    hands: List[List[Card]] = [[] for _ in range(player_count)]
    
    for i, card in enumerate(deck):
        hands[i % player_count].append(card)
    
    return hands


def find_starting_hand(hands: List[List[Card]]) -> int:
    """
    Find the hand holding the club 7.
    
    Returns:
        Index of that hand, or -1 if no hand holds it
    """
    for index, hand in enumerate(hands):
        if any(card.suit == STARTING_SUIT and card.rank == STARTING_RANK for card in hand):
            return index
    
    return -1


def sort_hand(hand: List[Card]) -> List[Card]:
    """Sorted copy of a hand: rank ascending, then suit."""
    return sorted(hand, key=lambda card: (RANKS.index(card.rank), SUITS.index(card.suit)))


def get_hand_summary(hand: List[Card]) -> Dict[str, int]:
    """
    Get a summary of cards in a hand by rank.
    
    Args:
        hand: Cards to summarise
    
    Returns:
        Dictionary mapping rank to count
    """
    summary = {}
    for card in hand:
        summary[card.rank] = summary.get(card.rank, 0) + 1
    
    return summary


def validate_deck_integrity(snapshot: RoomSnapshot) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.
    
    Cards of a rank in ``removed_quads`` are out of play; every other card of
    the deck must sit in exactly one hand or on the pile.
    """
    expected_cards = {card.id for card in create_deck()}
    
    all_cards = []
    for player in snapshot.players:
        all_cards.extend(card.id for card in player.cards)
    
    removed_ranks = set()
    if snapshot.state:
        all_cards.extend(card.id for card in snapshot.state.pile_cards)
        removed_ranks = set(snapshot.state.removed_quads)
    
    removed_cards = {
        card.id for card in create_deck() if card.rank in removed_ranks
    }
    actual_cards = set(all_cards)
    
    valid = (
        len(all_cards) == len(actual_cards) and  # No duplicates
        not (actual_cards & removed_cards) and
        actual_cards | removed_cards == expected_cards
    )
    if not valid:
        logger.warning(f"Deck integrity check failed for room {snapshot.room_id}")
    return valid
