"""Synthetic market news events."""

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field


class MarketEvent(BaseModel):
    """One news item and the price impact it carries for a single turn.

    The engine only reads ``turn``, ``price_impact`` and
    ``affected_instrument_ids``. The text fields belong to whatever narrates
    the event and are carried through untouched.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    turn: int = Field(ge=1)
    price_impact: Decimal
    affected_instrument_ids: list[str] = Field(min_length=1)

    headline: str = ""
    category: str = ""
    icon: str = ""
    severity: int = 0
    is_global: bool = False
    secondary_effect: str = ""  # e.g. "Central bank raises rates"

    def affects(self, instrument_id: str) -> bool:
        return instrument_id in self.affected_instrument_ids
