"""Policy that never trades."""

from agents.base import PlayerPolicy
from agents.registry import register
from models.agents import PolicyInvocation, PolicyResult


@register("hold")
class HoldPolicy(PlayerPolicy):
    async def act(self, invocation: PolicyInvocation) -> PolicyResult:
        return PolicyResult(actions=[], raw_output="hold")
