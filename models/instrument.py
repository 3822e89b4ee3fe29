"""Tradable instrument model: price state, supply state and corporate actions.

Prices are ``Decimal`` throughout. Randomised outcomes (bankruptcy, split
ratio) draw from an explicitly passed ``random.Random`` so sessions can be
seeded independently.
"""

from __future__ import annotations

import random
import uuid
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Literal

from pydantic import BaseModel, Field

PRICE_FLOOR = Decimal("1")
BANKRUPTCY_THRESHOLD = Decimal("0.5")
BANKRUPTCY_CHANCE_PCT = 30

SPLIT_THRESHOLD = Decimal("140")
SPLIT_RATIOS = (2, 3, 4)

DIVIDEND_THRESHOLD = Decimal("10")
DIVIDEND_YIELD = Decimal("0.01")

BLOCK_TRADE_IMPACT = Decimal("0.05")
BUY_IMPACT_MIN_PRICE = Decimal("4")
SELL_IMPACT_MIN_PRICE = Decimal("10")
SELL_IMPACT_FLOOR = Decimal("10")

CENT = Decimal("0.01")
DEFAULT_SHARES = 1_000_000


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class Instrument(BaseModel):
    """A listed company whose shares players trade.

    ``remaining_shares`` is the unsold inventory; buys draw it down and sells
    return shares to it. Once ``is_bankrupt`` is set the instrument is frozen:
    no price updates, trades or corporate actions, but it stays in the list
    so its history remains visible.
    """

    id: str = Field(default_factory=_new_id)
    symbol: str
    name: str
    sector: str = ""
    description: str = ""

    current_price: Decimal = Field(ge=0)
    previous_price: Decimal = Field(default=Decimal("0"), ge=0)
    price_history: list[Decimal] = []

    total_shares: int = Field(default=DEFAULT_SHARES, ge=0)
    remaining_shares: int = Field(default=DEFAULT_SHARES, ge=0)

    is_bankrupt: bool = False

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def price_change(self) -> Decimal:
        return self.current_price - self.previous_price

    @property
    def percentage_change(self) -> Decimal:
        if self.previous_price == 0:
            return Decimal("0")
        return self.price_change / self.previous_price * 100

    @property
    def qualifies_for_split(self) -> bool:
        return not self.is_bankrupt and self.current_price >= SPLIT_THRESHOLD

    @property
    def qualifies_for_dividend(self) -> bool:
        return not self.is_bankrupt and self.current_price > DIVIDEND_THRESHOLD

    # ------------------------------------------------------------------
    # Price dynamics
    # ------------------------------------------------------------------

    def update_price(
        self,
        base_change: Decimal,
        event_change: Decimal,
        rng: random.Random,
    ) -> None:
        """Apply one turn's combined price move.

        A result below 1 is floored at 1, except that a result below 0.5 has a
        30% chance of bankrupting the company, which forces the price to 0.
        """
        if self.is_bankrupt:
            return

        new_price = self.current_price + base_change + event_change
        if new_price < PRICE_FLOOR:
            if new_price < BANKRUPTCY_THRESHOLD and rng.randrange(100) < BANKRUPTCY_CHANCE_PCT:
                self.is_bankrupt = True
                new_price = Decimal("0")
            else:
                new_price = PRICE_FLOOR

        self.previous_price = self.current_price
        self.current_price = new_price
        self.price_history.append(new_price)

    def split(self, rng: random.Random) -> int:
        """Split the stock if it qualifies and return the ratio (0 if not).

        The ratio (2, 3 or 4) scales the share counts, but the price is always
        halved whatever the ratio.
        """
        if not self.qualifies_for_split:
            return 0

        ratio = rng.randint(SPLIT_RATIOS[0], SPLIT_RATIOS[-1])
        self.previous_price = self.current_price
        self.current_price = self.current_price / 2
        self.total_shares *= ratio
        self.remaining_shares *= ratio
        return ratio

    def calculate_dividend(self, shares_held: int) -> Decimal:
        """Dividend owed on *shares_held*: 1% of price per share, to the cent."""
        if not self.qualifies_for_dividend:
            return Decimal("0")
        amount = self.current_price * DIVIDEND_YIELD * shares_held
        return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)

    def apply_block_trade_impact(self, side: Literal["buy", "sell"]) -> bool:
        """Move the price 5% in the direction of a block trade.

        Buys only move prices of at least 4. Sells only move prices above 10
        and never push the price below 10. Returns whether the price moved.
        """
        if side == "buy":
            if self.current_price < BUY_IMPACT_MIN_PRICE:
                return False
            self.current_price += self.current_price * BLOCK_TRADE_IMPACT
            return True

        if self.current_price <= SELL_IMPACT_MIN_PRICE:
            return False
        lowered = self.current_price - self.current_price * BLOCK_TRADE_IMPACT
        self.current_price = max(lowered, SELL_IMPACT_FLOOR)
        return True
