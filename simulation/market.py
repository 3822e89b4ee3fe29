"""Randomised market dynamics: regime, price drift, news events, dividends.

Every draw takes the session's ``random.Random`` explicitly; nothing here
touches the module-level generator.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from decimal import Decimal

from models.event import MarketEvent
from models.instrument import Instrument
from models.snapshot import MarketCondition

BULL_PROBABILITY = 0.6

# Inclusive (low, high) magnitude ranges for the per-turn price drift.
BASE_CHANGE_RANGE = {
    MarketCondition.BULL: (8, 38),
    MarketCondition.BEAR: (5, 19),
}

# Inclusive magnitude range and probability of a positive impact for news.
EVENT_IMPACT_RANGE = {
    MarketCondition.BULL: (5, 15),
    MarketCondition.BEAR: (3, 10),
}
EVENT_POSITIVE_PROBABILITY = {
    MarketCondition.BULL: 0.6,
    MarketCondition.BEAR: 0.5,
}

MAX_EVENTS_PER_TURN = 3
MAX_INSTRUMENTS_PER_EVENT = 3
MAX_DIVIDEND_PAYERS = 3
SHARP_MOVE_THRESHOLD = Decimal("10")

Narrator = Callable[[Decimal, Sequence[Instrument]], str]


def draw_market_condition(rng: random.Random) -> MarketCondition:
    """Single weighted coin flip: 60% bull, 40% bear."""
    return MarketCondition.BULL if rng.random() < BULL_PROBABILITY else MarketCondition.BEAR


def draw_base_change(rng: random.Random, condition: MarketCondition) -> Decimal:
    """Random whole-point price drift; the sign is a fair coin in both regimes."""
    low, high = BASE_CHANGE_RANGE[condition]
    magnitude = rng.randint(low, high)
    sign = -1 if rng.randrange(2) == 0 else 1
    return Decimal(magnitude * sign)


def draw_event_impact(rng: random.Random, condition: MarketCondition) -> Decimal:
    low, high = EVENT_IMPACT_RANGE[condition]
    magnitude = rng.randint(low, high)
    sign = 1 if rng.random() < EVENT_POSITIVE_PROBABILITY[condition] else -1
    return Decimal(magnitude * sign)


def default_headline(impact: Decimal, instruments: Sequence[Instrument]) -> str:
    """Plain one-line headline, used when no narrator is supplied."""
    direction = "rises" if impact > 0 else "falls"
    magnitude = "sharply" if abs(impact) > SHARP_MOVE_THRESHOLD else "slightly"
    companies = ", ".join(i.name for i in instruments)
    return f"{companies} stock {direction} {magnitude} on market news."


def generate_market_events(
    rng: random.Random,
    turn: int,
    condition: MarketCondition,
    instruments: Sequence[Instrument],
    narrator: Narrator = default_headline,
) -> list[MarketEvent]:
    """Draw this turn's news: 1-3 events, each hitting 1-3 distinct instruments.

    The event count is also capped at half the number of tradable
    instruments (but at least one), so small markets are not swamped.
    """
    tradable = [i for i in instruments if not i.is_bankrupt]
    if not tradable:
        return []

    count = min(rng.randint(1, MAX_EVENTS_PER_TURN), max(1, len(tradable) // 2))
    events: list[MarketEvent] = []
    for _ in range(count):
        targets = rng.sample(tradable, min(rng.randint(1, MAX_INSTRUMENTS_PER_EVENT), len(tradable)))
        impact = draw_event_impact(rng, condition)
        events.append(
            MarketEvent(
                turn=turn,
                price_impact=impact,
                affected_instrument_ids=[t.id for t in targets],
                headline=narrator(impact, targets),
            )
        )
    return events


def sum_event_impacts(events: Sequence[MarketEvent], turn: int, instrument_id: str) -> Decimal:
    """Combined impact of every *turn* event that targets *instrument_id*."""
    return sum(
        (e.price_impact for e in events if e.turn == turn and e.affects(instrument_id)),
        Decimal("0"),
    )


def shuffle_player_order(rng: random.Random, player_count: int) -> list[int]:
    """Uniform random permutation of ``range(player_count)`` (Fisher-Yates)."""
    order = list(range(player_count))
    for i in range(player_count - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]
    return order


def select_dividend_instruments(
    rng: random.Random,
    instruments: Sequence[Instrument],
) -> list[Instrument]:
    """Pick 1-3 of the dividend-qualifying instruments at random."""
    eligible = [i for i in instruments if i.qualifies_for_dividend]
    if not eligible:
        return []
    count = min(rng.randint(1, MAX_DIVIDEND_PAYERS), len(eligible))
    return rng.sample(eligible, count)
