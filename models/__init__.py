"""Data models for the stock-market game engine.

The session engine, the policies and the runner all import from models.
"""

from models.agents import PolicyInvocation, PolicyResult
from models.config import GameConfig, PlayerConfig, RunConfig, ScriptedAction
from models.event import MarketEvent
from models.holding import Holding
from models.instrument import Instrument
from models.log import GameLog, RunLog, TurnLog
from models.player import Player
from models.results import PriceMove, TransactionResult, TurnReport
from models.score import HighScore, ScoreboardEntry
from models.snapshot import MarketCondition, SessionPhase, SessionSnapshot

__all__ = [
    # agents
    "PolicyInvocation",
    "PolicyResult",
    # config
    "GameConfig",
    "PlayerConfig",
    "RunConfig",
    "ScriptedAction",
    # entities
    "Holding",
    "Instrument",
    "MarketEvent",
    "Player",
    # log
    "GameLog",
    "RunLog",
    "TurnLog",
    # results
    "PriceMove",
    "TransactionResult",
    "TurnReport",
    # score
    "HighScore",
    "ScoreboardEntry",
    # snapshot
    "MarketCondition",
    "SessionPhase",
    "SessionSnapshot",
]
