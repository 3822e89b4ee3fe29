#!/usr/bin/env python3
"""Play the stock-market game from a YAML run config.

Usage::

    python run_game.py --config config/example.yaml
    python run_game.py --config config/example.yaml --seed 7 --games 5 --fast

``--seed``, ``--games`` and ``--fast`` override the matching values in the
config file for this run only. Results land in ``<output-dir>/<config name>/``
and the high-score list is printed once every game has finished.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from models.config import RunConfig
from simulation.runner import AsyncGameRunner

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play one or more rounds of the stock-market game.")
    parser.add_argument("--config", required=True, help="YAML run config.")
    parser.add_argument("--output-dir", default="results", help="Where results are written (default: results/).")
    parser.add_argument("--seed", type=int, help="Seed for the first game; game n uses seed + n.")
    parser.add_argument("--games", type=int, help="Number of games to play.")
    parser.add_argument("--fast", action="store_true", help="Record high scores as fast-mode games.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def _apply_overrides(config: RunConfig, args: argparse.Namespace) -> RunConfig:
    game_updates = {}
    if args.seed is not None:
        game_updates["seed"] = args.seed
    if args.fast:
        game_updates["fast_mode"] = True

    updates = {}
    if game_updates:
        updates["game"] = config.game.model_copy(update=game_updates)
    if args.games is not None:
        updates["num_games"] = args.games
    if not updates:
        return config
    return RunConfig.model_validate({**config.model_dump(), **updates})


async def _main(argv: Sequence[str] | None = None) -> AsyncGameRunner:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )

    config = _apply_overrides(RunConfig.from_yaml(args.config), args)
    logger.info(
        "Playing %d game(s) of %d turn(s) with %s.",
        config.num_games,
        config.game.total_turns,
        ", ".join(p.name for p in config.players),
    )

    runner = AsyncGameRunner(config, config_yaml_path=args.config, output_dir=args.output_dir)
    await runner.run()

    print("High scores:")
    for rank, entry in enumerate(runner.output.run_log.high_scores, start=1):
        print(f"{rank:>3}. {entry.describe()}")
    return runner


def main(argv: Sequence[str] | None = None) -> None:
    asyncio.run(_main(argv))


if __name__ == "__main__":
    main()
