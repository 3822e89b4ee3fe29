"""End-of-game scoring models: the ranked scoreboard and the high-score list."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

# (minimum score, title), highest first
ACHIEVEMENT_TIERS: list[tuple[Decimal, str]] = [
    (Decimal("10000000"), "Stock Market Legend"),
    (Decimal("5000000"), "Wall Street Wizard"),
    (Decimal("1000000"), "Market Millionaire"),
    (Decimal("500000"), "Savvy Investor"),
    (Decimal("250000"), "Market Player"),
    (Decimal("100000"), "Break Even"),
]
DEFAULT_ACHIEVEMENT = "Market Novice"


class ScoreboardEntry(BaseModel):
    """One row of the final ranking."""

    rank: int = Field(ge=1)
    player_id: str
    player_name: str
    score: Decimal
    is_ai: bool = False


class HighScore(BaseModel):
    """A human player's final score, kept across games."""

    player_name: str
    score: Decimal
    date: datetime = Field(default_factory=datetime.now)
    game_mode: str = "standard"

    @property
    def achievement(self) -> str:
        for threshold, title in ACHIEVEMENT_TIERS:
            if self.score >= threshold:
                return title
        return DEFAULT_ACHIEVEMENT

    def format_score(self) -> str:
        """Score as whole dollars, e.g. ``$1,234,567``."""
        return f"${self.score:,.0f}"

    def describe(self) -> str:
        return f"{self.player_name}: {self.format_score()} - {self.achievement}"
