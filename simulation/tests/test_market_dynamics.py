"""Tests for regime, price-drift, news-event and dividend draws, and roster seeding."""

from __future__ import annotations

import random
from collections import Counter
from decimal import Decimal

import pytest

from models.instrument import Instrument
from models.snapshot import MarketCondition
from simulation.market import (
    default_headline,
    draw_base_change,
    draw_event_impact,
    draw_market_condition,
    generate_market_events,
    select_dividend_instruments,
    shuffle_player_order,
    sum_event_impacts,
)
from simulation.roster import DEFAULT_COMPANIES, jitter_price, seed_instruments


def _instruments(n: int, price: str = "50") -> list[Instrument]:
    return [
        Instrument(symbol=f"S{i:02d}", name=f"Company {i}", current_price=Decimal(price))
        for i in range(n)
    ]


# ---------------------------------------------------------------
# Regime and drift
# ---------------------------------------------------------------


def test_market_condition_is_roughly_sixty_percent_bull():
    rng = random.Random(1234)
    counts = Counter(draw_market_condition(rng) for _ in range(10_000))
    assert 0.57 < counts[MarketCondition.BULL] / 10_000 < 0.63


@pytest.mark.parametrize(
    "condition, low, high",
    [(MarketCondition.BULL, 8, 38), (MarketCondition.BEAR, 5, 19)],
)
def test_base_change_magnitude_ranges(condition, low, high):
    rng = random.Random(5)
    draws = [draw_base_change(rng, condition) for _ in range(2000)]
    magnitudes = {abs(d) for d in draws}

    assert min(magnitudes) == low
    assert max(magnitudes) == high
    assert any(d > 0 for d in draws) and any(d < 0 for d in draws)
    assert all(isinstance(d, Decimal) for d in draws)


@pytest.mark.parametrize(
    "condition, low, high",
    [(MarketCondition.BULL, 5, 15), (MarketCondition.BEAR, 3, 10)],
)
def test_event_impact_ranges(condition, low, high):
    rng = random.Random(9)
    draws = [draw_event_impact(rng, condition) for _ in range(2000)]
    assert {abs(d) for d in draws} == set(range(low, high + 1))


def test_bull_events_lean_positive():
    rng = random.Random(11)
    draws = [draw_event_impact(rng, MarketCondition.BULL) for _ in range(10_000)]
    share_positive = sum(1 for d in draws if d > 0) / len(draws)
    assert 0.57 < share_positive < 0.63


# ---------------------------------------------------------------
# Events
# ---------------------------------------------------------------


@pytest.mark.parametrize("seed", range(30))
def test_generate_events_counts_and_targets(seed):
    instruments = _instruments(12)
    events = generate_market_events(random.Random(seed), 4, MarketCondition.BEAR, instruments)

    assert 1 <= len(events) <= 3
    ids = {i.id for i in instruments}
    for event in events:
        assert event.turn == 4
        assert 1 <= len(event.affected_instrument_ids) <= 3
        assert len(set(event.affected_instrument_ids)) == len(event.affected_instrument_ids)
        assert set(event.affected_instrument_ids) <= ids
        assert 3 <= abs(event.price_impact) <= 10
        assert event.headline.endswith("on market news.")


def test_generate_events_skips_bankrupt_instruments():
    instruments = _instruments(4)
    for instrument in instruments[:3]:
        instrument.is_bankrupt = True

    for seed in range(20):
        events = generate_market_events(random.Random(seed), 1, MarketCondition.BULL, instruments)
        assert len(events) == 1
        assert events[0].affected_instrument_ids == [instruments[3].id]


def test_generate_events_with_nothing_tradable():
    instruments = _instruments(2)
    for instrument in instruments:
        instrument.is_bankrupt = True
    assert generate_market_events(random.Random(0), 1, MarketCondition.BULL, instruments) == []


def test_custom_narrator_supplies_headline():
    events = generate_market_events(
        random.Random(0),
        1,
        MarketCondition.BULL,
        _instruments(6),
        narrator=lambda impact, targets: f"{len(targets)}:{impact}",
    )
    for event in events:
        count, impact = event.headline.split(":")
        assert int(count) == len(event.affected_instrument_ids)
        assert Decimal(impact) == event.price_impact


def test_default_headline():
    targets = _instruments(2)
    assert default_headline(Decimal("12"), targets) == (
        "Company 0, Company 1 stock rises sharply on market news."
    )
    assert default_headline(Decimal("-4"), targets[:1]) == "Company 0 stock falls slightly on market news."


def test_sum_event_impacts_only_counts_matching_turn_and_target():
    a, b = _instruments(2)
    events = generate_market_events(random.Random(2), 1, MarketCondition.BULL, [a])
    later = generate_market_events(random.Random(3), 2, MarketCondition.BULL, [a])

    expected = sum((e.price_impact for e in events), Decimal("0"))
    assert sum_event_impacts(events + later, 1, a.id) == expected
    assert sum_event_impacts(events + later, 1, b.id) == 0


# ---------------------------------------------------------------
# Order of play and dividends
# ---------------------------------------------------------------


def test_shuffle_is_a_permutation_and_reaches_every_order():
    rng = random.Random(0)
    seen = set()
    for _ in range(500):
        order = shuffle_player_order(rng, 3)
        assert sorted(order) == [0, 1, 2]
        seen.add(tuple(order))
    assert len(seen) == 6


def test_shuffle_trivial_sizes():
    rng = random.Random(0)
    assert shuffle_player_order(rng, 0) == []
    assert shuffle_player_order(rng, 1) == [0]


@pytest.mark.parametrize("seed", range(20))
def test_dividend_selection_only_picks_qualifying(seed):
    instruments = _instruments(3, "50") + _instruments(3, "10")
    chosen = select_dividend_instruments(random.Random(seed), instruments)

    assert 1 <= len(chosen) <= 3
    assert len({c.id for c in chosen}) == len(chosen)
    assert all(c.current_price > 10 for c in chosen)


def test_dividend_selection_empty_when_none_qualify():
    assert select_dividend_instruments(random.Random(0), _instruments(4, "9")) == []


# ---------------------------------------------------------------
# Roster
# ---------------------------------------------------------------


def test_seed_instruments_jitters_within_twenty_percent():
    instruments = seed_instruments(12, random.Random(42))

    assert [i.symbol for i in instruments] == [c.symbol for c in DEFAULT_COMPANIES]
    for instrument, company in zip(instruments, DEFAULT_COMPANIES):
        assert company.base_price * Decimal("0.8") <= instrument.current_price <= company.base_price * Decimal("1.2")
        assert instrument.current_price == instrument.current_price.quantize(Decimal("0.01"))
        assert instrument.previous_price == instrument.current_price
        assert instrument.price_history == [instrument.current_price]
        assert instrument.total_shares == instrument.remaining_shares == 1_000_000


def test_seed_instruments_clamps_to_roster_size():
    assert len(seed_instruments(50, random.Random(0))) == len(DEFAULT_COMPANIES)
    assert len(seed_instruments(3, random.Random(0))) == 3


def test_jitter_is_deterministic_for_a_seed():
    assert jitter_price(Decimal("55"), random.Random(8)) == jitter_price(Decimal("55"), random.Random(8))
