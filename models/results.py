"""Outcome models for player transactions and turn resolution."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from models.event import MarketEvent

Action = Literal["buy", "sell", "borrow", "repay"]


class TransactionResult(BaseModel):
    """Engine response to a buy, sell, borrow or repay request.

    A rejected transaction never mutates anything; ``message`` says why it
    was refused. For trades ``amount`` is the cash that moved (cost or
    proceeds); for loans it is the amount borrowed or repaid.
    """

    status: Literal["accepted", "rejected"]
    action: Action
    player_id: str = ""
    instrument_id: str | None = None
    symbol: str | None = None
    shares: int = 0
    price: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    profit_loss: Decimal = Decimal("0")  # Realised, sells only
    price_impact: bool = False  # True when a block trade moved the price
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "accepted"

    @classmethod
    def rejected(cls, action: Action, message: str, **fields) -> "TransactionResult":
        return cls(status="rejected", action=action, message=message, **fields)


class PriceMove(BaseModel):
    """Per-instrument price change applied during turn resolution."""

    instrument_id: str
    symbol: str
    previous_price: Decimal
    current_price: Decimal
    base_change: Decimal
    event_change: Decimal
    bankrupted: bool = False


class TurnReport(BaseModel):
    """Everything that happened when a turn's market was resolved."""

    turn: int
    market_condition: str
    events: list[MarketEvent] = []
    price_moves: list[PriceMove] = []
    splits: dict[str, int] = {}  # instrument_id -> ratio
    dividend_instrument_ids: list[str] = []
    dividends_paid: dict[str, Decimal] = {}  # player_id -> total paid
    bankruptcies: list[str] = []  # instrument ids newly bankrupt this turn
    net_worth: dict[str, Decimal] = {}  # player_id -> snapshot
