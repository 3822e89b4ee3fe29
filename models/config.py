"""Game and run configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
session engine, the runner, the policies and the CLI.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator


class GameConfig(BaseModel):
    """Every tunable of a single game."""

    starting_cash: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Cash each player starts with.",
    )
    total_turns: int = Field(
        default=10,
        ge=1,
        description="Number of turns before the game is over.",
    )
    instrument_count: int = Field(
        default=12,
        ge=1,
        description="How many companies to list when no instruments are supplied. "
        "Clamped to the size of the company roster.",
    )
    fast_mode: bool = Field(
        default=False,
        description="Pacing hint for hosts. Has no effect on the rules.",
    )
    bank_interest_rate: Decimal = Field(
        default=Decimal("10"),
        ge=0,
        description="Per-turn interest rate (percent) offered on new loans.",
    )
    high_score_limit: int = Field(
        default=12,
        ge=1,
        description="Maximum entries kept on the high-score list.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the session's random number generator. "
        "Unset means a fresh, unseeded generator.",
    )


class PlayerConfig(BaseModel):
    """A seat at the table and the policy that plays it."""

    name: str = Field(min_length=1)
    is_ai: bool = False
    policy: str = Field(
        default="hold",
        description="Registered policy name, e.g. 'hold', 'scripted'.",
    )


class ScriptedAction(BaseModel):
    """One pre-recorded action replayed by the ``scripted`` policy."""

    turn: int = Field(ge=1)
    player: str = Field(description="Player name the action belongs to.")
    action: Literal["buy", "sell", "borrow", "repay"]
    symbol: str | None = Field(default=None, description="Ticker, for buy/sell.")
    shares: int = Field(default=-1, description="Share count; -1 sells everything.")
    amount: Decimal = Field(default=Decimal("-1"), description="Loan amount; -1 repays all.")

    @model_validator(mode="after")
    def _trade_needs_symbol(self) -> ScriptedAction:
        if self.action in ("buy", "sell") and not self.symbol:
            raise ValueError(f"'{self.action}' action requires a symbol.")
        return self


class RunConfig(BaseModel):
    """Top-level configuration for a run of one or more games, loaded from YAML.

    The run name is derived from the config file path at load time rather
    than being specified inside the YAML itself.
    """

    game: GameConfig = Field(default_factory=GameConfig)
    players: list[PlayerConfig] = Field(min_length=1)
    script: list[ScriptedAction] = []
    num_games: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _unique_player_names(self) -> RunConfig:
        names = [p.name for p in self.players]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate player name(s): {', '.join(duplicates)}.")
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> RunConfig:
        """Load and validate a ``RunConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
