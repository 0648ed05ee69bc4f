import pytest

from davinci.errors import ErrorKind, GameError, UnknownPlayer
from davinci.game import GameSession
from davinci.models import GameConfig, MatchState

from .helpers import create_session, draw_and_place, playing_session


def test_table_capacity_limit_enforced():
    session = create_session()
    with pytest.raises(GameError) as excinfo:
        session.join("Carol")
    assert excinfo.value.kind == ErrorKind.TABLE_FULL


def test_join_requires_a_name():
    session = GameSession()
    with pytest.raises(GameError) as excinfo:
        session.join("   ")
    assert excinfo.value.code == "NAME_REQUIRED"


def test_reset_clears_match_but_keeps_seats():
    session = playing_session(start=0)
    draw_and_place(session)
    session.guess_card(0, 0, session.hands[1][0].value)

    session.reset_game()

    assert session.state == MatchState.LOBBY
    assert session.hands == [[], []]
    assert session.pile is None and session.pool is None and session.turns is None
    assert session.reveals.counts() == {0: 0, 1: 0}
    assert session.pending_card is None
    assert [seat.name for seat in session.seats] == ["Alice", "Bob"]
    assert session.lobby_state()["can_start"] is True

    session.initialize_game()
    assert session.match_id == "M-00001"


def test_leaving_mid_match_resets_to_lobby():
    session = playing_session(start=0)
    session.leave(1)
    assert session.state == MatchState.LOBBY
    assert session.seats[1] is None
    assert session.lobby_state()["can_start"] is False
    seat = session.join("Dana")
    assert seat.seat == 1


def test_rename_and_ready_update_lobby_snapshot():
    session = GameSession(GameConfig(auto_ready=False))
    session.join("Alice")
    session.join("Bob")
    assert session.lobby_state()["can_start"] is False

    session.rename(0, "  Ada ")
    session.set_ready(0)
    session.set_ready(1)
    lobby = session.lobby_state()
    assert lobby["players"][0] == {"seat": 0, "name": "Ada", "ready": True}
    assert lobby["can_start"] is True
    with pytest.raises(UnknownPlayer):
        session.rename(5, "Ghost")


def test_events_describe_a_turn_without_leaking_hidden_values():
    session = playing_session(start=0)
    events = session.consume_events()
    assert [ev["ev"] for ev in events] == ["SETUP", "SELECTED", "SELECTED", "DEAL"]

    placed = draw_and_place(session)
    session.guess_card(0, 0, (session.hands[1][0].value + 1) % 12)
    events = session.consume_events()
    assert [ev["ev"] for ev in events] == ["DRAW", "PLACE", "GUESS", "REVEAL", "TURN"]
    draw_event = events[0]
    assert set(draw_event) == {"ev", "seat", "pile_index", "color"}
    reveal_event = events[3]
    assert reveal_event["seat"] == 0 and reveal_event["index"] == placed
    assert events[-1] == {"ev": "TURN", "seat": 1, "phase": "DRAW"}
    assert session.consume_events() == []
