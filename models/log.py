"""Logging and experiment storage models.

- ``TurnLog``: per-turn audit: order of play, actions taken, resolution.
- ``GameLog``: full game audit trail with the final scoreboard.
- ``RunLog``: run-level log with embedded config for reproducibility.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from models.config import RunConfig
from models.instrument import Instrument
from models.results import TransactionResult, TurnReport
from models.score import HighScore, ScoreboardEntry


class TurnLog(BaseModel):
    """Per-turn audit.

    Captures net worth before trading so per-turn P&L can be computed later
    without replaying the game.
    """

    turn: int
    market_condition: str
    player_order: list[str]  # Player ids in the order they acted
    net_worth_before: dict[str, Decimal]
    actions: list[TransactionResult] = []
    report: TurnReport | None = None
    elapsed_seconds: float = 0.0


class GameLog(BaseModel):
    """Full game audit trail.

    Run-level parameters (players, starting cash, etc.) are stored once on
    ``RunLog.config``.
    """

    game_id: str
    seed: int | None = None
    turn_logs: list[TurnLog] = []
    scoreboard: list[ScoreboardEntry] = []
    final_instruments: list[Instrument] = []

    @property
    def winner(self) -> ScoreboardEntry | None:
        return self.scoreboard[0] if self.scoreboard else None


class RunLog(BaseModel):
    """Run-level log with embedded configuration for reproducibility.

    ``run_name`` is derived from the configuration file path by the runner.
    """

    run_name: str
    config: RunConfig
    game_logs: list[GameLog] = []
    high_scores: list[HighScore] = []
    errors: list[str] = []
