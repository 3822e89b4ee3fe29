"""Policy that replays pre-recorded actions from the run config.

Each ``ScriptedAction`` names a turn and a player; during that player's slot
in that turn the actions are replayed in file order. Rejections are recorded
like any other result and do not stop the rest of the script.
"""

from __future__ import annotations

import logging

from agents.base import PlayerPolicy
from agents.registry import register
from models.agents import PolicyInvocation, PolicyResult
from models.config import PlayerConfig, RunConfig, ScriptedAction

logger = logging.getLogger(__name__)


@register("scripted")
class ScriptedPolicy(PlayerPolicy):
    def __init__(self, player_config: PlayerConfig, run_config: RunConfig) -> None:
        super().__init__(player_config, run_config)
        self._script: dict[int, list[ScriptedAction]] = {}
        for step in run_config.script:
            if step.player == player_config.name:
                self._script.setdefault(step.turn, []).append(step)

    async def act(self, invocation: PolicyInvocation) -> PolicyResult:
        if self.actions is None:
            raise RuntimeError("bind_actions() must be called before act().")

        steps = self._script.get(invocation.turn, [])
        results = [self._replay(step) for step in steps]
        rejected = sum(1 for r in results if not r.ok)
        if rejected:
            logger.info(
                "%s: %d of %d scripted action(s) rejected on turn %d.",
                self.player_config.name,
                rejected,
                len(results),
                invocation.turn,
            )
        return PolicyResult(
            actions=results,
            raw_output={"turn": invocation.turn, "steps": len(steps)},
        )

    def _replay(self, step: ScriptedAction):
        if step.action == "buy":
            return self.actions.buy(step.symbol, step.shares)
        if step.action == "sell":
            return self.actions.sell(step.symbol, step.shares)
        if step.action == "borrow":
            return self.actions.borrow(step.amount)
        return self.actions.repay(step.amount)
