from __future__ import annotations

from typing import List, Optional, Tuple

from .cards import Card, CardColor
from .errors import InvalidPosition

# Canonical order: ascending value, black before white on equal values.
# Jokers have no natural place and stay wherever they were inserted.


def sort_key(card: Card) -> Tuple[int, int]:
    if card.is_joker:
        raise ValueError("Jokers have no sort key")
    return (card.value, 0 if card.color is CardColor.BLACK else 1)


def sort_hand(cards: List[Card]) -> List[Card]:
    """Sort a joker-free hand into canonical order."""
    return sorted(cards, key=sort_key)


def sorted_position(hand: List[Card], card: Card) -> int:
    key = sort_key(card)
    for idx, existing in enumerate(hand):
        if existing.is_joker:
            continue
        if sort_key(existing) > key:
            return idx
    return len(hand)


def is_sorted(hand: List[Card]) -> bool:
    keys = [sort_key(card) for card in hand if not card.is_joker]
    return all(a <= b for a, b in zip(keys, keys[1:]))


def fits_at(hand: List[Card], card: Card, position: int) -> bool:
    """True if placing a non-joker at position keeps the numbered cards ordered."""
    if card.is_joker:
        return True
    key = sort_key(card)
    before = [sort_key(c) for c in hand[:position] if not c.is_joker]
    after = [sort_key(c) for c in hand[position:] if not c.is_joker]
    if before and before[-1] > key:
        return False
    if after and after[0] < key:
        return False
    return True


def place_at(hand: List[Card], card: Card, position: int) -> int:
    if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position <= len(hand):
        raise InvalidPosition(f"Position {position} outside 0..{len(hand)}")
    hand.insert(position, card)
    return position


def sorted_insert(hand: List[Card], card: Card, position: Optional[int] = None) -> int:
    if card.is_joker:
        if position is None:
            raise InvalidPosition("Jokers need an explicit position")
        return place_at(hand, card, position)
    return place_at(hand, card, sorted_position(hand, card))
