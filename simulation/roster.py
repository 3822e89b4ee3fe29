"""Default company roster and instrument seeding.

When a session is set up without an explicit instrument list, it lists the
first ``instrument_count`` companies from ``DEFAULT_COMPANIES`` with each
base price jittered by up to ±20%.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from decimal import Decimal

from pydantic import BaseModel

from models.instrument import CENT, DEFAULT_SHARES, Instrument

logger = logging.getLogger(__name__)

# Jitter is drawn in basis points so the arithmetic stays in Decimal.
JITTER_BPS = 2000
BPS = Decimal("10000")


class CompanyRecord(BaseModel):
    """Static description of a company that can be listed."""

    name: str
    symbol: str
    sector: str
    base_price: Decimal


DEFAULT_COMPANIES: list[CompanyRecord] = [
    CompanyRecord(name="TechGiant", symbol="TCHN", sector="Technology", base_price=Decimal("55")),
    CompanyRecord(name="GlobalBank", symbol="GBNK", sector="Finance", base_price=Decimal("78")),
    CompanyRecord(name="AutoFuture", symbol="AUTF", sector="Automotive", base_price=Decimal("42")),
    CompanyRecord(name="EnergyCore", symbol="NRGY", sector="Energy", base_price=Decimal("36")),
    CompanyRecord(name="RetailKing", symbol="RTKN", sector="Retail", base_price=Decimal("28")),
    CompanyRecord(name="FoodGlobal", symbol="FDGL", sector="Consumer Goods", base_price=Decimal("60")),
    CompanyRecord(name="PharmaPlus", symbol="PHRM", sector="Healthcare", base_price=Decimal("85")),
    CompanyRecord(name="AeroSpace", symbol="ARSP", sector="Aerospace", base_price=Decimal("95")),
    CompanyRecord(name="MediaMax", symbol="MEDX", sector="Entertainment", base_price=Decimal("32")),
    CompanyRecord(name="ConstructAll", symbol="CSTR", sector="Construction", base_price=Decimal("45")),
    CompanyRecord(name="MiningPro", symbol="MING", sector="Mining", base_price=Decimal("38")),
    CompanyRecord(name="TeleComm", symbol="TELC", sector="Telecommunications", base_price=Decimal("52")),
]


def jitter_price(base_price: Decimal, rng: random.Random) -> Decimal:
    """*base_price* moved by a uniform ±20%, rounded to the cent."""
    factor = 1 + Decimal(rng.randint(-JITTER_BPS, JITTER_BPS)) / BPS
    return (base_price * factor).quantize(CENT)


def seed_instruments(
    count: int,
    rng: random.Random,
    companies: Sequence[CompanyRecord] | None = None,
) -> list[Instrument]:
    """List the first *count* companies as fresh instruments."""
    companies = DEFAULT_COMPANIES if companies is None else companies
    if count > len(companies):
        logger.warning(
            "Requested %d instruments but only %d companies are available; listing %d.",
            count,
            len(companies),
            len(companies),
        )
    instruments = []
    for company in companies[:count]:
        price = jitter_price(company.base_price, rng)
        instruments.append(
            Instrument(
                symbol=company.symbol,
                name=company.name,
                sector=company.sector,
                description=f"A leading company in the {company.sector} sector.",
                current_price=price,
                previous_price=price,
                price_history=[price],
                total_shares=DEFAULT_SHARES,
                remaining_shares=DEFAULT_SHARES,
            )
        )
    return instruments
