"""Da Vinci Code engine primitives used by the WebSocket host."""

from .cards import JOKER, VALUES, Card, CardColor, PileSlot, parse_cards, parse_guess
from .deck import CommunityPile, SetupBoard, ValuePool, deal_initial_hands
from .errors import ErrorKind, GameError, InvariantError
from .game import GameSession
from .hand import place_at, sort_hand, sorted_insert
from .models import GameConfig, GuessResult, MatchState, PlayerSeat, TurnPhase, TurnState
from .reveal import RevealTracker
from .turns import TurnStateMachine

__all__ = [
    "JOKER",
    "VALUES",
    "Card",
    "CardColor",
    "PileSlot",
    "parse_cards",
    "parse_guess",
    "CommunityPile",
    "SetupBoard",
    "ValuePool",
    "deal_initial_hands",
    "ErrorKind",
    "GameError",
    "InvariantError",
    "GameSession",
    "place_at",
    "sort_hand",
    "sorted_insert",
    "GameConfig",
    "GuessResult",
    "MatchState",
    "PlayerSeat",
    "TurnPhase",
    "TurnState",
    "RevealTracker",
    "TurnStateMachine",
]
