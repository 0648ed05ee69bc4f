from __future__ import annotations

import logging
import random
from typing import Dict, List, Sequence

from .cards import VALUES, Card, CardColor, PileSlot, SETUP_SLOTS, setup_slot_color
from .errors import InvalidIndex, InvalidSelectionSize, NoValuesAvailable

LOGGER = logging.getLogger("davinci.deck")

SELECTION_SIZE = 4

# Numbers are bound lazily: a pile slot only knows its colour until it is drawn,
# so no value can be inferred from where a slot sits.


class ValuePool:
    """Unassigned numbers per colour. Each of 0..11 is handed out once per colour."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng
        self._remaining: Dict[CardColor, set[int]] = {color: set(VALUES) for color in CardColor}

    def remaining(self, color: CardColor) -> List[int]:
        return sorted(self._remaining[color])

    def assigned(self, color: CardColor) -> List[int]:
        return sorted(set(VALUES) - self._remaining[color])

    def available(self, color: CardColor) -> int:
        return len(self._remaining[color])

    def take(self, color: CardColor) -> int:
        pool = self._remaining[color]
        if not pool:
            LOGGER.error("Value pool exhausted for %s", color.value)
            raise NoValuesAvailable(f"No {color.value} values left")
        value = self.rng.choice(sorted(pool))
        pool.discard(value)
        return value


class SetupBoard:
    """The face-down setup row. Even slots are white, odd slots black."""

    def __init__(self, size: int = SETUP_SLOTS) -> None:
        self.size = size
        self.selections: Dict[int, List[int]] = {}

    def reserve_initial_selection(self, player: int, slot_indices: Sequence[int]) -> List[CardColor]:
        if not isinstance(slot_indices, (list, tuple)) or len(slot_indices) != SELECTION_SIZE:
            raise InvalidSelectionSize(f"Select exactly {SELECTION_SIZE} distinct slots")
        indices = list(slot_indices)
        # Element types first: set() below needs hashable ints.
        for idx in indices:
            if isinstance(idx, bool) or not isinstance(idx, int):
                raise InvalidIndex(f"Setup slot {idx!r} is not an index")
            if not 0 <= idx < self.size:
                raise InvalidIndex(f"Setup slot {idx} out of range")
        if len(set(indices)) != SELECTION_SIZE:
            raise InvalidSelectionSize(f"Select exactly {SELECTION_SIZE} distinct slots")
        claimed = self._claimed_by_others(player)
        taken = sorted(claimed.intersection(indices))
        if taken:
            raise InvalidIndex(f"Setup slots {taken} already chosen by opponent")
        self.selections[player] = indices
        return self.colors(player)

    def colors(self, player: int) -> List[CardColor]:
        return [setup_slot_color(idx) for idx in self.selections.get(player, [])]

    def is_complete(self, players: int = 2) -> bool:
        return all(len(self.selections.get(p, [])) == SELECTION_SIZE for p in range(players))

    def has_selected(self, player: int) -> bool:
        return player in self.selections

    def _claimed_by_others(self, player: int) -> set[int]:
        claimed: set[int] = set()
        for other, indices in self.selections.items():
            if other != player:
                claimed.update(indices)
        return claimed

    def to_dict(self) -> List[Dict[str, object]]:
        owner = {idx: player for player, indices in self.selections.items() for idx in indices}
        return [
            {"index": idx, "color": setup_slot_color(idx).value, "claimed_by": owner.get(idx)}
            for idx in range(self.size)
        ]


class CommunityPile:
    def __init__(self, slots: List[PileSlot]) -> None:
        self.slots = slots

    @classmethod
    def build(cls, pool: ValuePool, rng: random.Random) -> "CommunityPile":
        # One number slot per value still unassigned, plus one joker per colour.
        slots: List[PileSlot] = []
        for color in CardColor:
            slots.extend(PileSlot(color) for _ in range(pool.available(color)))
            slots.append(PileSlot(color, joker=True))
        rng.shuffle(slots)
        return cls(slots)

    def __len__(self) -> int:
        return len(self.slots)

    def remaining(self) -> int:
        return sum(1 for slot in self.slots if not slot.drawn)

    def is_exhausted(self) -> bool:
        return self.remaining() == 0

    def slot(self, index: int) -> PileSlot:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self.slots):
            raise InvalidIndex(f"Pile index {index} out of range")
        slot = self.slots[index]
        if slot.drawn:
            raise InvalidIndex(f"Pile slot {index} already drawn")
        return slot

    def draw_from_pile(self, index: int, pool: ValuePool) -> Card:
        slot = self.slot(index)
        if slot.joker:
            card = Card(slot.color, None)
        else:
            card = Card(slot.color, pool.take(slot.color))
        slot.drawn = True
        return card

    def to_dict(self) -> List[Dict[str, object]]:
        return [
            {"index": idx, "color": slot.color.value, "drawn": slot.drawn}
            for idx, slot in enumerate(self.slots)
        ]


def deal_initial_hands(board: SetupBoard, pool: ValuePool, players: int = 2) -> List[List[Card]]:
    """Bind a fresh value to every selected colour. Hands come back unsorted."""
    hands: List[List[Card]] = []
    for player in range(players):
        hands.append([Card(color, pool.take(color)) for color in board.colors(player)])
    return hands
