"""Tests for the policy registry, the action handle and the built-in policies."""

from __future__ import annotations

import asyncio
import random
from decimal import Decimal

import pytest

from agents.base import PlayerPolicy
from agents.hold import HoldPolicy
from agents.registry import available_policies, create_policy, register
from agents.scripted import ScriptedPolicy
from agents.tools import make_turn_actions
from models.agents import PolicyInvocation
from models.config import PlayerConfig, RunConfig
from models.instrument import Instrument
from simulation.session import Session


@pytest.fixture
def session() -> Session:
    price = Decimal("20")
    instruments = [
        Instrument(symbol="AAA", name="Alpha", current_price=price, previous_price=price),
        Instrument(symbol="BBB", name="Beta", current_price=price, previous_price=price),
    ]
    s = Session.setup(["Alice", "Bob"], rng=random.Random(0), instruments=instruments)
    s.start_turn()
    return s


def _invocation(session: Session, player_index: int = 0) -> PolicyInvocation:
    player = session.players[player_index]
    return PolicyInvocation(
        game_id="game_000",
        turn=session.current_turn,
        total_turns=session.total_turns,
        market_condition=session.market_condition.value,
        player=player.model_copy(deep=True),
        instruments=[i.model_copy(deep=True) for i in session.instruments],
        events=session.events_for_turn(),
        bank_interest_rate=session.bank_interest_rate,
    )


# ---------------------------------------------------------------
# Registry
# ---------------------------------------------------------------


def test_builtin_policies_are_registered():
    assert {"hold", "scripted"} <= set(available_policies())


def test_create_policy_unknown_name():
    run_config = RunConfig(players=[{"name": "Alice", "policy": "psychic"}])
    with pytest.raises(KeyError, match="psychic"):
        create_policy(run_config.players[0], run_config)


def test_register_rejects_duplicate_names():
    with pytest.raises(ValueError):

        @register("hold")
        class AnotherHold(PlayerPolicy):
            async def act(self, invocation):
                return None


def test_create_policy_returns_configured_class():
    run_config = RunConfig(players=[{"name": "Alice"}, {"name": "Bob", "policy": "scripted"}])
    assert isinstance(create_policy(run_config.players[0], run_config), HoldPolicy)
    assert isinstance(create_policy(run_config.players[1], run_config), ScriptedPolicy)


# ---------------------------------------------------------------
# TurnActions
# ---------------------------------------------------------------


def test_turn_actions_route_to_session_and_record(session):
    alice = session.players[0]
    actions = make_turn_actions(session, alice.id)

    bought = actions.buy("AAA", 10)
    missing = actions.sell("ZZZ", 1)
    borrowed = actions.borrow(Decimal("500"))
    repaid = actions.repay()

    assert bought.ok and alice.holdings[session.instruments[0].id].shares == 10
    assert not missing.ok and "Allowed: AAA, BBB" in missing.message
    assert borrowed.ok and repaid.ok
    assert alice.loan_amount == 0
    assert [r.action for r in actions.results] == ["buy", "sell", "borrow", "repay"]


def test_turn_actions_book_float_amounts_exactly(session):
    alice = session.players[0]
    actions = make_turn_actions(session, alice.id)

    assert actions.borrow(250.35).amount == Decimal("250.35")
    assert alice.loan_amount == Decimal("250.35")
    assert actions.repay(0.35).amount == Decimal("0.35")
    assert alice.loan_amount == Decimal("250.00")


def test_turn_actions_are_per_player(session):
    alice, bob = session.players
    make_turn_actions(session, bob.id).buy("BBB", 5)
    assert alice.holdings == {}
    assert list(bob.holdings.values())[0].shares == 5


# ---------------------------------------------------------------
# Policies
# ---------------------------------------------------------------


def test_hold_policy_does_nothing(session):
    run_config = RunConfig(players=[{"name": "Alice"}])
    policy = HoldPolicy(run_config.players[0], run_config)
    policy.bind_actions(make_turn_actions(session, session.players[0].id))

    result = asyncio.run(policy.act(_invocation(session)))

    assert result.actions == []
    assert session.players[0].cash == Decimal("100000")


def test_scripted_policy_replays_only_its_own_turn_and_player(session):
    run_config = RunConfig(
        players=[{"name": "Alice", "policy": "scripted"}, {"name": "Bob"}],
        script=[
            {"turn": 1, "player": "Alice", "action": "buy", "symbol": "AAA", "shares": 100},
            {"turn": 1, "player": "Alice", "action": "buy", "symbol": "BBB", "shares": 999_999_999},
            {"turn": 1, "player": "Bob", "action": "buy", "symbol": "AAA", "shares": 1},
            {"turn": 2, "player": "Alice", "action": "sell", "symbol": "AAA"},
        ],
    )
    alice = session.players[0]
    policy = ScriptedPolicy(run_config.players[0], run_config)
    policy.bind_actions(make_turn_actions(session, alice.id))

    result = asyncio.run(policy.act(_invocation(session)))

    assert [r.status for r in result.actions] == ["accepted", "rejected"]
    assert alice.cash == Decimal("98000")
    assert session.players[1].holdings == {}
    assert result.raw_output == {"turn": 1, "steps": 2}


def test_scripted_policy_requires_bound_actions(session):
    run_config = RunConfig(players=[{"name": "Alice", "policy": "scripted"}])
    policy = ScriptedPolicy(PlayerConfig(name="Alice", policy="scripted"), run_config)
    with pytest.raises(RuntimeError):
        asyncio.run(policy.act(_invocation(session)))
