from __future__ import annotations

import random
from typing import Iterable, Optional, Sequence

from davinci.cards import JOKER, VALUES
from davinci.game import GameSession
from davinci.models import GameConfig, TurnPhase

P0_SLOTS = (0, 1, 2, 3)
P1_SLOTS = (4, 5, 6, 7)


class ScriptedRandom(random.Random):
    """Hands out preset values to choice() and a fixed starting seat, then behaves like a seeded RNG."""

    def __init__(self, values: Iterable[int] = (), start: Optional[int] = None, seed: int = 0) -> None:
        super().__init__(seed)
        self.values = list(values)
        self.start = start

    def choice(self, seq):
        if self.values:
            value = self.values.pop(0)
            assert value in seq, f"scripted value {value} not available in {seq}"
            return value
        return super().choice(seq)

    def randrange(self, *args, **kwargs):
        if self.start is not None:
            return self.start
        return super().randrange(*args, **kwargs)


def create_session(
    *,
    seed: int = 42,
    rng: Optional[random.Random] = None,
    **config_kwargs,
) -> GameSession:
    """Instantiate a session with both seats taken."""
    session = GameSession(GameConfig(seed=seed, **config_kwargs), rng=rng)
    session.join("Alice")
    session.join("Bob")
    return session


def start_match(
    session: GameSession,
    p0_slots: Sequence[int] = P0_SLOTS,
    p1_slots: Sequence[int] = P1_SLOTS,
) -> GameSession:
    session.initialize_game()
    session.select_initial_cards(0, list(p0_slots))
    session.select_initial_cards(1, list(p1_slots))
    return session


def playing_session(start: int = 0, **kwargs) -> GameSession:
    """A dealt match where `start` is on turn in DRAW."""
    session = create_session(rng=ScriptedRandom(start=start, seed=kwargs.pop("seed", 7)), **kwargs)
    return start_match(session)


def draw_and_place(session: GameSession, pile_index: Optional[int] = None) -> int:
    """Current player draws the first open slot (or pile_index) and places it canonically."""
    seat = session.turns.current_player
    if pile_index is None:
        pile_index = next(idx for idx, slot in enumerate(session.pile.slots) if not slot.drawn)
    card = session.draw_card(seat, pile_index)
    position = 0 if card.is_joker else None
    session.place_card(seat, position)
    return session.turns.placed_index


def hidden_numbered_index(session: GameSession, owner: int) -> int:
    hand = session.hands[owner]
    return next(
        idx for idx, card in enumerate(hand)
        if not card.is_joker and not session.reveals.is_revealed(owner, idx)
    )


def wrong_value(value: int) -> int:
    return (value + 1) % len(VALUES)


def take_random_action(session: GameSession, rng: random.Random) -> None:
    """Apply one legal action for whoever is on turn."""
    turns = session.turns
    seat = turns.current_player
    if turns.phase == TurnPhase.DRAW:
        open_slots = [idx for idx, slot in enumerate(session.pile.slots) if not slot.drawn]
        session.draw_card(seat, rng.choice(open_slots))
    elif turns.phase == TurnPhase.PLACE:
        hand = session.hands[seat]
        if session.pending_card.is_joker:
            session.place_card(seat, rng.randint(0, len(hand)))
        else:
            session.place_card(seat, None)
    else:
        if turns.state.correct_guesses and rng.random() < 0.5:
            session.end_turn(seat)
            return
        opponent = 1 - seat
        targets = [
            idx for idx, card in enumerate(session.hands[opponent])
            if not session.reveals.is_revealed(opponent, idx)
            and (session.config.allow_joker_guess or not card.is_joker)
        ]
        guesses = list(VALUES) + ([JOKER] if session.config.allow_joker_guess else [])
        session.guess_card(seat, rng.choice(targets), rng.choice(guesses))


def play_to_completion(session: GameSession, rng: random.Random, max_actions: int = 5_000) -> int:
    actions = 0
    while not session.is_over():
        take_random_action(session, rng)
        actions += 1
        assert actions < max_actions, "match did not terminate"
    return actions
