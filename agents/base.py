"""Abstract base class for player decision policies.

Every policy (scripted replay, a human at a terminal, a bot) implements this
interface so the game runner can drive them interchangeably.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from agents.tools import TurnActions
from models.agents import PolicyInvocation, PolicyResult
from models.config import PlayerConfig, RunConfig


class PlayerPolicy(ABC):
    """Common interface for pluggable decision policies.

    Lifecycle:
        1. ``__init__``: receive the player's config and the run config.
        2. ``bind_actions``: called once per turn slot with a fresh
           ``TurnActions`` handle for that player.
        3. ``act``: called once per turn slot, in the turn's order of play.
    """

    def __init__(self, player_config: PlayerConfig, run_config: RunConfig) -> None:
        self.player_config = player_config
        self.run_config = run_config
        self.actions: TurnActions | None = None

    def bind_actions(self, actions: TurnActions) -> None:
        """Bind the action handle for the upcoming ``act`` call."""
        self.actions = actions

    @abstractmethod
    async def act(self, invocation: PolicyInvocation) -> PolicyResult:
        """Make zero or more trades for one turn slot and report them.

        Implementations trade only through ``self.actions``.
        """
