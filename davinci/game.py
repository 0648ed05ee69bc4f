from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from .cards import JOKER, Card, GuessValue, parse_guess
from .deck import CommunityPile, SetupBoard, ValuePool, deal_initial_hands
from .errors import (
    ErrorKind,
    GameError,
    InvalidIndex,
    InvalidPosition,
    InvalidValue,
    InvariantError,
    NotEnoughPlayers,
    UnknownPlayer,
    WrongPhase,
)
from .hand import fits_at, place_at, sort_hand, sorted_position
from .models import Event, GameConfig, GuessResult, MatchState, PlayerSeat, Snapshot, TurnPhase, TurnState
from .reveal import RevealTracker
from .turns import TurnStateMachine

LOGGER = logging.getLogger("davinci.game")

SEATS = 2

# GameSession keeps one match in memory. No networking lives here: only the
# rules, the hidden state, and what each seat is allowed to see.


class GameSession:
    """A single two-seat Da Vinci Code match, from lobby to finish."""

    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or GameConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        self.seats: List[Optional[PlayerSeat]] = [None] * SEATS
        self.match_counter = 0
        self.events: List[Dict[str, object]] = []
        self._clear_match()

    def _clear_match(self) -> None:
        self.state = MatchState.LOBBY
        self.match_id: Optional[str] = None
        self.starting_player: Optional[int] = None
        self.board: Optional[SetupBoard] = None
        self.pool: Optional[ValuePool] = None
        self.pile: Optional[CommunityPile] = None
        self.hands: List[List[Card]] = [[] for _ in range(SEATS)]
        self.reveals = RevealTracker(SEATS)
        self.turns: Optional[TurnStateMachine] = None
        self.pending_card: Optional[Card] = None
        self.winner: Optional[int] = None

    # Seat management -------------------------------------------------

    def join(self, name: str) -> PlayerSeat:
        display = name.strip() if isinstance(name, str) else ""
        if not display:
            raise GameError("Name required", ErrorKind.NAME_REQUIRED)
        for idx in range(SEATS):
            if self.seats[idx] is None:
                seat = PlayerSeat(seat=idx, name=display, ready=self.config.auto_ready)
                self.seats[idx] = seat
                LOGGER.info("Seat %s taken by %s", idx, display)
                return seat
        raise GameError("Table is full", ErrorKind.TABLE_FULL)

    def leave(self, seat_idx: int) -> None:
        seat = self._seat(seat_idx)
        self.seats[seat_idx] = None
        LOGGER.info("Seat %s (%s) left", seat_idx, seat.name)
        if self.state != MatchState.LOBBY:
            self.reset_game()

    def rename(self, seat_idx: int, name: str) -> PlayerSeat:
        seat = self._seat(seat_idx)
        display = name.strip() if isinstance(name, str) else ""
        if not display:
            raise GameError("Name required", ErrorKind.NAME_REQUIRED)
        seat.name = display
        return seat

    def set_ready(self, seat_idx: int, ready: bool = True) -> PlayerSeat:
        seat = self._seat(seat_idx)
        seat.ready = ready
        return seat

    def _seat(self, seat_idx: int) -> PlayerSeat:
        if isinstance(seat_idx, bool) or not isinstance(seat_idx, int) or not 0 <= seat_idx < SEATS:
            raise UnknownPlayer(f"Unknown seat {seat_idx}")
        seat = self.seats[seat_idx]
        if seat is None:
            raise UnknownPlayer(f"Seat {seat_idx} is empty")
        return seat

    # Match lifecycle -------------------------------------------------

    def can_start(self) -> bool:
        return all(seat is not None and seat.ready for seat in self.seats)

    def initialize_game(self) -> int:
        if self.state != MatchState.LOBBY:
            raise WrongPhase(f"Cannot start from {self.state.value}")
        if not self.can_start():
            raise NotEnoughPlayers("Two ready players required")

        self.board = SetupBoard()
        self.pool = ValuePool(self.rng)
        self.starting_player = self.rng.randrange(SEATS)
        self.match_id = f"M-{self.match_counter:05d}"
        self.match_counter += 1
        self.state = MatchState.SETUP
        LOGGER.info("Match %s in setup; seat %s starts", self.match_id, self.starting_player)
        self._emit("SETUP", match_id=self.match_id, starting_player=self.starting_player)
        return self.starting_player

    def select_initial_cards(self, seat_idx: int, slot_indices: Sequence[int]) -> bool:
        """Record a seat's four setup slots. Returns True once both hands are dealt."""
        self._seat(seat_idx)
        if self.state != MatchState.SETUP or self.board is None:
            raise WrongPhase("Initial selection only during setup")
        colors = self.board.reserve_initial_selection(seat_idx, slot_indices)
        self._emit("SELECTED", seat=seat_idx, colors=[color.value for color in colors])
        if not self.board.is_complete(SEATS):
            return False
        self._deal()
        return True

    def _deal(self) -> None:
        assert self.board is not None and self.pool is not None and self.starting_player is not None
        dealt = deal_initial_hands(self.board, self.pool, SEATS)
        self.hands = [sort_hand(cards) for cards in dealt]
        self.pile = CommunityPile.build(self.pool, self.rng)
        self.turns = TurnStateMachine(self.starting_player, SEATS)
        self.state = MatchState.PLAYING
        LOGGER.info("Match %s dealt; pile has %s slots", self.match_id, len(self.pile))
        self._emit(
            "DEAL",
            pile_size=len(self.pile),
            current_player=self.turns.current_player,
            phase=self.turns.phase.value,
        )

    def reset_game(self) -> None:
        LOGGER.info("Resetting match %s", self.match_id)
        self._clear_match()
        self._emit("RESET")

    # Action handling -------------------------------------------------

    def draw_card(self, seat_idx: int, pile_index: int) -> Card:
        turns = self._require_playing(seat_idx)
        turns.require(seat_idx, TurnPhase.DRAW)
        assert self.pile is not None and self.pool is not None
        card = self.pile.draw_from_pile(pile_index, self.pool)
        self.pending_card = card
        turns.after_draw()
        LOGGER.debug("Seat %s drew pile slot %s", seat_idx, pile_index)
        self._emit("DRAW", seat=seat_idx, pile_index=pile_index, color=card.color.value)
        return card

    def place_card(self, seat_idx: int, position: Optional[int] = None) -> List[Card]:
        turns = self._require_playing(seat_idx)
        turns.require(seat_idx, TurnPhase.PLACE)
        card = self.pending_card
        if card is None:
            raise InvariantError("No drawn card to place")
        hand = self.hands[seat_idx]

        if position is None:
            if card.is_joker:
                raise InvalidPosition("Jokers need an explicit position")
            position = sorted_position(hand, card)
        elif (
            self.config.strict_placement
            and isinstance(position, int)
            and 0 <= position <= len(hand)
            and not fits_at(hand, card, position)
        ):
            raise InvalidPosition(f"{card.label} does not fit at position {position}")

        place_at(hand, card, position)
        self.reveals.on_insert(seat_idx, position)
        self.pending_card = None
        turns.after_place(position)
        LOGGER.debug("Seat %s placed %s at %s", seat_idx, card.label, position)
        self._emit("PLACE", seat=seat_idx, position=position, color=card.color.value)
        return list(hand)

    def guess_card(self, seat_idx: int, opponent_index: int, value: object) -> GuessResult:
        turns = self._require_playing(seat_idx)
        turns.require(seat_idx, TurnPhase.GUESS)
        guess = parse_guess(value)
        if guess is None:
            raise InvalidValue(f"Guess must be 0-11 or {JOKER}")
        if guess == JOKER and not self.config.allow_joker_guess:
            raise InvalidValue("Joker guesses are disabled")

        opponent = self._opponent(seat_idx)
        target = self._guess_target(opponent, opponent_index)
        correct = target.matches(guess)
        self._emit("GUESS", seat=seat_idx, target=opponent_index, value=guess, correct=correct)

        if correct:
            turns.after_correct_guess()
            self._reveal(opponent, opponent_index)
            result = GuessResult(correct=True, revealed_player=opponent, revealed_index=opponent_index)
            if self._hand_revealed(opponent):
                self._finish(seat_idx)
                result.game_over = True
                result.winner = seat_idx
            return result

        penalty = self._penalty_index(seat_idx)
        result = GuessResult(correct=False)
        if penalty is not None:
            self._reveal(seat_idx, penalty)
            result.revealed_player = seat_idx
            result.revealed_index = penalty
        if self._hand_revealed(seat_idx):
            self._finish(opponent)
            result.game_over = True
            result.winner = opponent
        else:
            self._pass_turn()
        return result

    def end_turn(self, seat_idx: int) -> TurnState:
        turns = self._require_playing(seat_idx)
        turns.require_end_turn(seat_idx)
        return self._pass_turn()

    def _require_playing(self, seat_idx: int) -> TurnStateMachine:
        self._seat(seat_idx)
        if self.state != MatchState.PLAYING or self.turns is None:
            raise WrongPhase(f"Match is {self.state.value}")
        return self.turns

    def _guess_target(self, opponent: int, index: int) -> Card:
        hand = self.hands[opponent]
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(hand):
            raise InvalidIndex(f"Opponent index {index} out of range")
        if self.reveals.is_revealed(opponent, index):
            raise InvalidIndex(f"Opponent card {index} is already revealed")
        card = hand[index]
        if card.is_joker and not self.config.allow_joker_guess:
            raise InvalidIndex("Jokers cannot be guessed")
        return card

    def _penalty_index(self, seat_idx: int) -> Optional[int]:
        # The card placed this turn pays for a wrong guess. With the pile empty
        # nothing was placed, so the leftmost hidden card is turned instead.
        assert self.turns is not None
        placed = self.turns.placed_index
        if placed is not None and not self.reveals.is_revealed(seat_idx, placed):
            return placed
        return self.reveals.first_hidden(seat_idx, self.hands[seat_idx])

    def _reveal(self, seat_idx: int, index: int) -> None:
        self.reveals.reveal(seat_idx, index)
        card = self.hands[seat_idx][index]
        self._emit("REVEAL", seat=seat_idx, index=index, card=card.to_dict())

    def _hand_revealed(self, seat_idx: int) -> bool:
        return self.reveals.all_revealed(
            seat_idx,
            self.hands[seat_idx],
            ignore_jokers=not self.config.allow_joker_guess,
        )

    def _pass_turn(self) -> TurnState:
        assert self.turns is not None and self.pile is not None
        state = self.turns.pass_turn(self.pile.is_exhausted())
        self._emit("TURN", seat=state.current_player, phase=state.phase.value)
        return state

    def _finish(self, winner: int) -> None:
        self.state = MatchState.FINISHED
        self.winner = winner
        name = self.seats[winner].name if self.seats[winner] else None
        LOGGER.info("Match %s over; seat %s (%s) wins", self.match_id, winner, name)
        self._emit("GAME_OVER", winner=winner, name=name)

    def _opponent(self, seat_idx: int) -> int:
        return (seat_idx + 1) % SEATS

    def _emit(self, ev: str, **data: object) -> None:
        self.events.append(Event(ev, dict(data)).to_dict())

    # Public/Snapshot helpers -----------------------------------------

    def consume_events(self) -> List[Dict[str, object]]:
        events = list(self.events)
        self.events.clear()
        return events

    def is_over(self) -> bool:
        return self.state == MatchState.FINISHED

    def pile_exhausted(self) -> bool:
        return bool(self.pile and self.pile.is_exhausted())

    def lobby_state(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "players": [seat.to_dict() for seat in self.seats if seat is not None],
            "can_start": self.state == MatchState.LOBBY and self.can_start(),
        }

    def masked_state(self, viewer: Optional[int]) -> Dict[str, object]:
        """Snapshot for one seat. Hidden opponent values become None; colours stay public."""
        hands = [
            [self._card_view(owner, idx, card, viewer) for idx, card in enumerate(self.hands[owner])]
            for owner in range(SEATS)
        ]
        turn = None
        if self.turns is not None:
            turn = self.turns.state.to_dict()
            turn["pile_exhausted"] = self.pile_exhausted()
        pending = None
        if self.pending_card is not None and self.turns is not None:
            drawer = self.turns.current_player
            pending = {
                "seat": drawer,
                "color": self.pending_card.color.value,
                "value": self._face(self.pending_card) if viewer == drawer else None,
            }
        snapshot = Snapshot(
            state=self.state,
            viewer=viewer,
            players=[seat.to_dict() for seat in self.seats if seat is not None],
            hands=hands,
            pile=self.pile.to_dict() if self.pile else [],
            setup=self.board.to_dict() if self.state == MatchState.SETUP and self.board else None,
            turn=turn,
            pending=pending,
            winner=self.winner,
        )
        return snapshot.to_dict()

    def _card_view(self, owner: int, index: int, card: Card, viewer: Optional[int]) -> Dict[str, object]:
        revealed = self.reveals.is_revealed(owner, index)
        visible = revealed or owner == viewer
        return {
            "index": index,
            "color": card.color.value,
            "revealed": revealed,
            "value": self._face(card) if visible else None,
        }

    def _face(self, card: Card) -> GuessValue:
        return JOKER if card.is_joker else card.value  # type: ignore[return-value]
