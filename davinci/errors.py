from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_INDEX = "INVALID_INDEX"
    INVALID_POSITION = "INVALID_POSITION"
    INVALID_SELECTION_SIZE = "INVALID_SELECTION_SIZE"
    INVALID_VALUE = "INVALID_VALUE"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    TABLE_FULL = "TABLE_FULL"
    NAME_REQUIRED = "NAME_REQUIRED"
    NO_VALUES_AVAILABLE = "NO_VALUES_AVAILABLE"


class GameError(Exception):
    """Rejected operation. Nothing was mutated when this is raised."""

    kind = ErrorKind.WRONG_PHASE

    def __init__(self, msg: str, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(msg)
        if kind is not None:
            self.kind = kind
        self.msg = msg

    @property
    def code(self) -> str:
        return self.kind.value


class WrongPhase(GameError):
    kind = ErrorKind.WRONG_PHASE


class NotYourTurn(GameError):
    kind = ErrorKind.NOT_YOUR_TURN


class InvalidIndex(GameError):
    kind = ErrorKind.INVALID_INDEX


class InvalidPosition(GameError):
    kind = ErrorKind.INVALID_POSITION


class InvalidSelectionSize(GameError):
    kind = ErrorKind.INVALID_SELECTION_SIZE


class InvalidValue(GameError):
    kind = ErrorKind.INVALID_VALUE


class UnknownPlayer(GameError):
    kind = ErrorKind.UNKNOWN_PLAYER


class NotEnoughPlayers(GameError):
    kind = ErrorKind.NOT_ENOUGH_PLAYERS


class InvariantError(GameError):
    """Internal bookkeeping is inconsistent; a bug rather than a bad request."""


class NoValuesAvailable(InvariantError):
    kind = ErrorKind.NO_VALUES_AVAILABLE
