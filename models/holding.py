"""A player's position in one instrument."""

from decimal import Decimal

from pydantic import BaseModel, Field


class Holding(BaseModel):
    """Shares held and their per-share cost basis.

    A holding always has at least one share; the owning player deletes it
    rather than keeping a zero-share entry.
    """

    instrument_id: str
    symbol: str = ""
    name: str = ""
    shares: int = Field(gt=0)
    average_cost: Decimal = Field(ge=0)

    @property
    def total_cost(self) -> Decimal:
        return self.average_cost * self.shares

    def current_value(self, price: Decimal) -> Decimal:
        return price * self.shares

    def profit_loss(self, price: Decimal) -> Decimal:
        return self.current_value(price) - self.total_cost

    def percentage_gain_loss(self, price: Decimal) -> Decimal:
        if self.total_cost == 0:
            return Decimal("0")
        return self.profit_loss(price) / self.total_cost * 100
