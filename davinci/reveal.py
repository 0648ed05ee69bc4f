from __future__ import annotations

from typing import Dict, List, Optional, Set

from .cards import Card


class RevealTracker:
    """Face-up hand positions per player. Sets only grow within a match."""

    def __init__(self, players: int = 2) -> None:
        self._revealed: Dict[int, Set[int]] = {player: set() for player in range(players)}

    def revealed(self, player: int) -> Set[int]:
        return set(self._revealed[player])

    def is_revealed(self, player: int, index: int) -> bool:
        return index in self._revealed[player]

    def reveal(self, player: int, index: int) -> None:
        self._revealed[player].add(index)

    def on_insert(self, player: int, position: int) -> None:
        # Positions at or after an inserted card move one to the right.
        self._revealed[player] = {idx + 1 if idx >= position else idx for idx in self._revealed[player]}

    def first_hidden(self, player: int, hand: List[Card]) -> Optional[int]:
        for idx in range(len(hand)):
            if idx not in self._revealed[player]:
                return idx
        return None

    def all_revealed(self, player: int, hand: List[Card], ignore_jokers: bool = False) -> bool:
        if not hand:
            return False
        for idx, card in enumerate(hand):
            if idx in self._revealed[player]:
                continue
            if ignore_jokers and card.is_joker:
                continue
            return False
        return True

    def counts(self) -> Dict[int, int]:
        return {player: len(indices) for player, indices in self._revealed.items()}
