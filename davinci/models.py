from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class MatchState(str, Enum):
    LOBBY = "LOBBY"
    SETUP = "SETUP"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


class TurnPhase(str, Enum):
    DRAW = "DRAW"
    PLACE = "PLACE"
    GUESS = "GUESS"


@dataclass
class GameConfig:
    seed: Optional[int] = None
    # Reject non-joker placements that break ascending order.
    strict_placement: bool = False
    # Allow guessing "J" at a hidden joker. When off, jokers are not targets.
    allow_joker_guess: bool = True
    # Seats are ready as soon as they join.
    auto_ready: bool = True


@dataclass
class PlayerSeat:
    seat: int
    name: str
    ready: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {"seat": self.seat, "name": self.name, "ready": self.ready}


@dataclass
class TurnState:
    current_player: int
    phase: TurnPhase
    correct_guesses: int = 0
    placed_index: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "current_player": self.current_player,
            "phase": self.phase.value,
            "correct_guesses": self.correct_guesses,
        }


@dataclass
class GuessResult:
    correct: bool
    game_over: bool = False
    winner: Optional[int] = None
    revealed_player: Optional[int] = None
    revealed_index: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"correct": self.correct, "game_over": self.game_over}
        if self.winner is not None:
            payload["winner"] = self.winner
        if self.revealed_index is not None:
            payload["revealed"] = {"seat": self.revealed_player, "index": self.revealed_index}
        return payload


@dataclass
class Event:
    ev: str
    data: Dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {"ev": self.ev, **self.data}


@dataclass
class Snapshot:
    state: MatchState
    viewer: Optional[int]
    players: List[Dict[str, object]]
    hands: List[List[Dict[str, object]]]
    pile: List[Dict[str, object]]
    setup: Optional[List[Dict[str, object]]] = None
    turn: Optional[Dict[str, object]] = None
    pending: Optional[Dict[str, object]] = None
    winner: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "viewer": self.viewer,
            "players": self.players,
            "hands": self.hands,
            "pile": self.pile,
            "setup": self.setup,
            "turn": self.turn,
            "pending": self.pending,
            "winner": self.winner,
        }
