"""Session state enums and the plain structural snapshot of a session.

A ``SessionSnapshot`` holds every entity of a game with no behaviour
attached, so callers can store it however they like and rebuild a live
session from it with ``Session.from_snapshot``.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel

from models.config import GameConfig
from models.event import MarketEvent
from models.instrument import Instrument
from models.player import Player
from models.score import HighScore


class MarketCondition(str, Enum):
    """Per-turn market regime."""

    BULL = "bull"
    BEAR = "bear"


class SessionPhase(str, Enum):
    """Where the session is in its turn cycle.

    Player actions are only accepted in ``TRADING``, i.e. after a turn has
    started and before its market has been resolved.
    """

    NOT_STARTED = "not_started"
    TRADING = "trading"
    RESOLVED = "resolved"
    ENDED = "ended"


class SessionSnapshot(BaseModel):
    config: GameConfig
    players: list[Player]
    instruments: list[Instrument]
    current_turn: int = 0
    total_turns: int = 10
    market_condition: MarketCondition = MarketCondition.BULL
    player_order: list[int] = []
    current_player_index: int = -1
    bank_interest_rate: Decimal = Decimal("10")
    market_events: list[MarketEvent] = []
    high_scores: list[HighScore] = []
    phase: SessionPhase = SessionPhase.NOT_STARTED
