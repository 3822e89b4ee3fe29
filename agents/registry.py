"""Policy registry: maps config strings to PlayerPolicy subclasses.

Usage::

    from agents.registry import create_policy

    policy = create_policy(player_config, run_config)
"""

from __future__ import annotations

from typing import Type

from agents.base import PlayerPolicy
from models.config import PlayerConfig, RunConfig

# ---------------------------------------------------------------------------
# Registry mapping
# ---------------------------------------------------------------------------
_REGISTRY: dict[str, Type[PlayerPolicy]] = {}


def register(name: str):
    """Decorator to register a ``PlayerPolicy`` subclass under *name*."""

    def _decorator(cls: Type[PlayerPolicy]) -> Type[PlayerPolicy]:
        if name in _REGISTRY:
            raise ValueError(f"Policy '{name}' is already registered.")
        _REGISTRY[name] = cls
        return cls

    return _decorator


def available_policies() -> list[str]:
    _ensure_builtins_loaded()
    return sorted(_REGISTRY)


def create_policy(player_config: PlayerConfig, run_config: RunConfig) -> PlayerPolicy:
    """Instantiate the policy named by ``player_config.policy``.

    Raises ``KeyError`` if the name is not registered.
    """
    # Lazy-import concrete implementations so they self-register.
    _ensure_builtins_loaded()

    key = player_config.policy
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(f"Unknown policy '{key}'. Available: {available}.")
    return _REGISTRY[key](player_config, run_config)


def _ensure_builtins_loaded() -> None:
    """Import built-in policy modules so their ``@register`` calls execute."""
    # Each import triggers the @register decorator at module level.
    import agents.hold  # noqa: F401
    import agents.scripted  # noqa: F401
