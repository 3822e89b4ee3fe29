"""Player model: cash, bank loan and holdings, plus the transaction rules.

Every transaction validates first and only then mutates, so a rejected
request leaves the player and the instrument exactly as they were.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal

from pydantic import BaseModel, Field

from models.holding import Holding
from models.instrument import Instrument
from models.results import TransactionResult

BLOCK_TRADE_SHARES = 250_000
BORROW_LIMIT_MULTIPLE = Decimal("2")
SELL_ALL = -1
REPAY_ALL = Decimal("-1")


def to_money(value) -> Decimal:
    """Coerce *value* to ``Decimal``, going through ``str`` for floats.

    ``Decimal(0.1)`` keeps the float's binary expansion; ``Decimal("0.1")``
    is the amount the caller meant.
    """
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class Player(BaseModel):
    """One participant in a game.

    ``is_ai`` only matters for the high-score list; the engine applies the
    same rules to every player. ``final_score`` and ``ranking`` are filled in
    when the game ends.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    name: str
    is_ai: bool = False
    ai_personality: str | None = None

    cash: Decimal = Decimal("100000")
    loan_amount: Decimal = Field(default=Decimal("0"), ge=0)
    loan_interest_rate: Decimal = Decimal("0")

    holdings: dict[str, Holding] = {}
    assets_history: list[Decimal] = []

    final_score: Decimal | None = None
    ranking: int | None = None

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def buy(self, instrument: Instrument, shares: int) -> TransactionResult:
        """Buy *shares* of *instrument* at its current price."""
        context = {"player_id": self.id, "instrument_id": instrument.id, "symbol": instrument.symbol}

        if instrument.is_bankrupt:
            return TransactionResult.rejected("buy", f"{instrument.symbol} is bankrupt.", **context)
        if shares <= 0:
            return TransactionResult.rejected(
                "buy", f"Share count must be positive, got {shares}.", **context
            )
        if instrument.remaining_shares < shares:
            return TransactionResult.rejected(
                "buy",
                f"Only {instrument.remaining_shares} shares of {instrument.symbol} available.",
                **context,
            )

        price = instrument.current_price
        cost = price * shares
        if cost > self.cash:
            return TransactionResult.rejected(
                "buy",
                f"Insufficient cash to buy {shares} shares of {instrument.symbol} at "
                f"${price:.2f} (cost ${cost:.2f}, available ${self.cash:.2f}).",
                **context,
            )

        self.cash -= cost
        instrument.remaining_shares -= shares

        existing = self.holdings.get(instrument.id)
        if existing is not None:
            total_shares = existing.shares + shares
            existing.average_cost = (existing.shares * existing.average_cost + cost) / total_shares
            existing.shares = total_shares
        else:
            self.holdings[instrument.id] = Holding(
                instrument_id=instrument.id,
                symbol=instrument.symbol,
                name=instrument.name,
                shares=shares,
                average_cost=price,
            )

        moved = shares >= BLOCK_TRADE_SHARES and instrument.apply_block_trade_impact("buy")

        return TransactionResult(
            status="accepted",
            action="buy",
            shares=shares,
            price=price,
            amount=cost,
            price_impact=moved,
            message=f"Bought {shares} {instrument.symbol} for ${cost:.2f}.",
            **context,
        )

    def sell(self, instrument: Instrument, shares: int = SELL_ALL) -> TransactionResult:
        """Sell *shares* of *instrument*; ``-1`` (or more than held) sells everything.

        ``profit_loss`` on the result is the realised gain against the
        average cost of the shares sold.
        """
        context = {"player_id": self.id, "instrument_id": instrument.id, "symbol": instrument.symbol}

        holding = self.holdings.get(instrument.id)
        if holding is None:
            return TransactionResult.rejected(
                "sell", f"No {instrument.symbol} shares held.", **context
            )
        if instrument.is_bankrupt:
            return TransactionResult.rejected("sell", f"{instrument.symbol} is bankrupt.", **context)

        if shares == SELL_ALL or shares >= holding.shares:
            shares = holding.shares
        if shares <= 0:
            return TransactionResult.rejected(
                "sell", f"Share count must be positive, got {shares}.", **context
            )

        price = instrument.current_price
        proceeds = price * shares
        profit_loss = proceeds - holding.average_cost * shares

        self.cash += proceeds
        instrument.remaining_shares += shares
        if shares == holding.shares:
            del self.holdings[instrument.id]
        else:
            holding.shares -= shares

        moved = shares >= BLOCK_TRADE_SHARES and instrument.apply_block_trade_impact("sell")

        return TransactionResult(
            status="accepted",
            action="sell",
            shares=shares,
            price=price,
            amount=proceeds,
            profit_loss=profit_loss,
            price_impact=moved,
            message=f"Sold {shares} {instrument.symbol} for ${proceeds:.2f}.",
            **context,
        )

    # ------------------------------------------------------------------
    # Credit
    # ------------------------------------------------------------------

    def borrow(self, amount: Decimal, rate: Decimal) -> TransactionResult:
        """Take a bank loan of *amount* at *rate* percent per turn.

        The whole balance is capped at twice the player's net worth before
        the new loan (holdings valued at cost). The new rate replaces the old
        one for the entire balance.
        """
        amount = to_money(amount)
        if amount <= 0:
            return TransactionResult.rejected(
                "borrow", f"Loan amount must be positive, got {amount}.", player_id=self.id
            )

        limit = self.calculate_total_assets() * BORROW_LIMIT_MULTIPLE
        if self.loan_amount + amount > limit:
            return TransactionResult.rejected(
                "borrow",
                f"Loan of ${amount:.2f} would exceed the borrowing limit of ${limit:.2f}.",
                player_id=self.id,
            )

        self.loan_amount += amount
        self.loan_interest_rate = to_money(rate)
        self.cash += amount
        return TransactionResult(
            status="accepted",
            action="borrow",
            player_id=self.id,
            amount=amount,
            message=f"Borrowed ${amount:.2f} at {rate}%.",
        )

    def repay(self, amount: Decimal = REPAY_ALL) -> TransactionResult:
        """Repay up to *amount* of the loan; ``-1`` repays as much as cash allows."""
        amount = to_money(amount)
        if self.loan_amount <= 0:
            return TransactionResult.rejected("repay", "No outstanding loan.", player_id=self.id)

        if amount == REPAY_ALL or amount > self.cash:
            amount = min(self.cash, self.loan_amount)
        amount = min(amount, self.loan_amount)
        if amount <= 0:
            return TransactionResult.rejected(
                "repay", "Nothing available to repay.", player_id=self.id
            )

        self.loan_amount -= amount
        self.cash -= amount
        if self.loan_amount <= 0:
            self.loan_amount = Decimal("0")
            self.loan_interest_rate = Decimal("0")
        return TransactionResult(
            status="accepted",
            action="repay",
            player_id=self.id,
            amount=amount,
            message=f"Repaid ${amount:.2f}.",
        )

    def apply_loan_interest(self) -> Decimal:
        """Add one turn of interest to the loan principal and return it."""
        if self.loan_amount <= 0:
            return Decimal("0")
        interest = self.loan_amount * (self.loan_interest_rate / 100)
        self.loan_amount += interest
        return interest

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def calculate_total_assets(self, prices: Mapping[str, Decimal] | None = None) -> Decimal:
        """Net worth: cash plus holdings minus the loan.

        Holdings missing from *prices* (or all of them when no prices are
        given) are valued at their average cost.
        """
        prices = prices or {}
        holdings_value = sum(
            (
                holding.current_value(prices.get(instrument_id, holding.average_cost))
                for instrument_id, holding in self.holdings.items()
            ),
            Decimal("0"),
        )
        return self.cash + holdings_value - self.loan_amount

    def record_assets_history(self, prices: Mapping[str, Decimal]) -> Decimal:
        assets = self.calculate_total_assets(prices)
        self.assets_history.append(assets)
        return assets

    # ------------------------------------------------------------------
    # Corporate actions
    # ------------------------------------------------------------------

    def receive_dividends(self, instruments: Mapping[str, Instrument]) -> Decimal:
        """Collect dividends on every holding in *instruments*; returns the total."""
        total = Decimal("0")
        for instrument_id, holding in self.holdings.items():
            instrument = instruments.get(instrument_id)
            if instrument is not None:
                total += instrument.calculate_dividend(holding.shares)
        self.cash += total
        return total

    def handle_stock_splits(self, split_ratios: Mapping[str, int]) -> dict[str, int]:
        """Scale holdings in instruments that just split.

        Shares are multiplied by the ratio and the average cost is halved,
        matching the instrument's own price rule. Returns ``{symbol: ratio}``.
        """
        applied: dict[str, int] = {}
        for instrument_id, holding in self.holdings.items():
            ratio = split_ratios.get(instrument_id, 0)
            if ratio > 0:
                holding.shares *= ratio
                holding.average_cost /= 2
                applied[holding.symbol or instrument_id] = ratio
        return applied

    def handle_bankruptcies(self, instruments: Iterable[Instrument]) -> list[str]:
        """Write off holdings in bankrupt instruments; returns their symbols."""
        written_off: list[str] = []
        for instrument in instruments:
            if instrument.is_bankrupt and instrument.id in self.holdings:
                del self.holdings[instrument.id]
                written_off.append(instrument.symbol)
        return written_off
