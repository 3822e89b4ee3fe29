"""Policy interface models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from models.event import MarketEvent
from models.instrument import Instrument
from models.player import Player
from models.results import TransactionResult


class PolicyInvocation(BaseModel):
    """Input passed when the runner asks a policy to act for one player.

    ``player`` and ``instruments`` are copies; policies act only through the
    bound ``TurnActions`` handle.
    """

    game_id: str
    turn: int
    total_turns: int
    market_condition: str
    player: Player
    instruments: list[Instrument]
    events: list[MarketEvent] = []
    bank_interest_rate: Decimal = Decimal("0")

    @property
    def turns_remaining(self) -> int:
        return self.total_turns - self.turn


class PolicyResult(BaseModel):
    """What the policy did during its slot."""

    actions: list[TransactionResult] = []
    raw_output: dict[str, Any] | str | None = None
