from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

VALUES = tuple(range(12))
JOKER = "J"
SETUP_SLOTS = 24


class CardColor(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def short(self) -> str:
        return "W" if self is CardColor.WHITE else "B"


GuessValue = Union[int, str]


@dataclass(frozen=True)
class Card:
    # value is None for the joker.
    color: CardColor
    value: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.color, CardColor):
            raise ValueError(f"Invalid color: {self.color}")
        if self.value is not None and self.value not in VALUES:
            raise ValueError(f"Invalid value: {self.value}")

    @property
    def is_joker(self) -> bool:
        return self.value is None

    @property
    def label(self) -> str:
        face = JOKER if self.is_joker else str(self.value)
        return f"{self.color.short}{face}"

    def matches(self, guess: GuessValue) -> bool:
        if guess == JOKER:
            return self.is_joker
        return not self.is_joker and self.value == guess

    def to_dict(self) -> dict:
        return {"color": self.color.value, "value": JOKER if self.is_joker else self.value}


@dataclass
class PileSlot:
    """A face-down community pile slot. Its value is decided when drawn."""

    color: CardColor
    joker: bool = False
    drawn: bool = False


def setup_slot_color(index: int) -> CardColor:
    return CardColor.WHITE if index % 2 == 0 else CardColor.BLACK


def parse_label(label: str) -> Card:
    if len(label) < 2 or label[0] not in "WB":
        raise ValueError(f"Invalid card label: {label}")
    color = CardColor.WHITE if label[0] == "W" else CardColor.BLACK
    face = label[1:]
    if face == JOKER:
        return Card(color, None)
    if not face.isdigit():
        raise ValueError(f"Invalid card label: {label}")
    return Card(color, int(face))


def parse_cards(labels: List[str]) -> List[Card]:
    return [parse_label(label) for label in labels]


def parse_guess(raw: object) -> Optional[GuessValue]:
    """Normalise a client guess into 0..11 or the joker token; None if invalid."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw in VALUES else None
    if isinstance(raw, str):
        text = raw.strip().upper()
        if text == JOKER:
            return JOKER
        if text.isdigit() and int(text) in VALUES:
            return int(text)
    return None
