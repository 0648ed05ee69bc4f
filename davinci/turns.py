from __future__ import annotations

import logging
from typing import Optional

from .errors import NotYourTurn, WrongPhase
from .models import TurnPhase, TurnState

LOGGER = logging.getLogger("davinci.turns")


class TurnStateMachine:
    """DRAW -> PLACE -> GUESS for the current player, then hand over.

    Once the community pile is exhausted nobody can draw again, so every later
    turn opens directly in GUESS and PLACE never recurs.
    """

    def __init__(self, starting_player: int, players: int = 2) -> None:
        self.players = players
        self.state = TurnState(current_player=starting_player, phase=TurnPhase.DRAW)

    @property
    def current_player(self) -> int:
        return self.state.current_player

    @property
    def phase(self) -> TurnPhase:
        return self.state.phase

    @property
    def placed_index(self) -> Optional[int]:
        return self.state.placed_index

    def require(self, player: int, phase: TurnPhase) -> None:
        if player != self.state.current_player:
            raise NotYourTurn(f"Seat {player} cannot act; seat {self.state.current_player} is on turn")
        if self.state.phase != phase:
            raise WrongPhase(f"Expected {phase.value}, turn is in {self.state.phase.value}")

    def after_draw(self) -> None:
        self.state.phase = TurnPhase.PLACE

    def after_place(self, index: int) -> None:
        self.state.placed_index = index
        self.state.phase = TurnPhase.GUESS

    def after_correct_guess(self) -> None:
        self.state.correct_guesses += 1

    def require_end_turn(self, player: int) -> None:
        self.require(player, TurnPhase.GUESS)
        if self.state.correct_guesses < 1:
            raise WrongPhase("End turn needs at least one correct guess")

    def pass_turn(self, pile_exhausted: bool) -> TurnState:
        next_player = (self.state.current_player + 1) % self.players
        phase = TurnPhase.GUESS if pile_exhausted else TurnPhase.DRAW
        self.state = TurnState(current_player=next_player, phase=phase)
        LOGGER.debug("Turn passes to seat %s (%s)", next_player, phase.value)
        return self.state
