"""Async game runner: the main orchestration loop.

Lifecycle:
    1. Load the run config.
    2. For each game:
        a. Set up a session and one policy per player.
        b. For each turn:
            - Start the turn (regime, news, order of play, interest).
            - For each player in the order of play, bind a fresh action
              handle and invoke the player's policy.
            - Resolve the turn and log it.
        c. End the game, record the scoreboard and carry the high scores
           forward to the next game.
    3. Finalise and write the summary.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any

from agents.base import PlayerPolicy
from agents.registry import create_policy
from agents.tools import make_turn_actions
from models.agents import PolicyInvocation, PolicyResult
from models.config import RunConfig
from models.log import GameLog, TurnLog
from models.score import HighScore
from simulation.session import Session
from simulation.sim_logging import GameOutputLogger, run_name_from_config_path

logger = logging.getLogger(__name__)


class AsyncGameRunner:
    """Drives the game loop across games, turns and player slots."""

    def __init__(
        self,
        config: RunConfig,
        config_yaml_path: str | None = None,
        output_dir: str = "results",
        run_name: str | None = None,
    ) -> None:
        self._config = config
        self._config_yaml_path = config_yaml_path
        if run_name is None:
            run_name = run_name_from_config_path(config_yaml_path) if config_yaml_path else "run"
        self._run_name = run_name
        self._output = GameOutputLogger(output_dir, config, self._run_name)
        self._high_scores: list[HighScore] = []

    @property
    def output(self) -> GameOutputLogger:
        return self._output

    async def run(self) -> None:
        """Execute every configured game."""
        self._output.init_run(self._config_yaml_path)
        logger.info(
            "Starting run '%s': %d game(s), %d player(s), %d turn(s) each.",
            self._run_name,
            self._config.num_games,
            len(self._config.players),
            self._config.game.total_turns,
        )

        for game_idx in range(self._config.num_games):
            game_id = f"game_{game_idx:03d}"
            try:
                game_log, session = await self._run_game(game_id, game_idx)
                self._high_scores = session.high_scores
                self._output.write_game(game_log, session.snapshot())
            except Exception as exc:
                msg = f"Game '{game_id}' failed: {exc}"
                logger.exception(msg)
                self._output.record_error(msg)

        self._output.record_high_scores(self._high_scores)
        self._output.finalize(self._build_summary())
        logger.info("Run '%s' complete. Output: %s", self._run_name, self._output.run_dir)

    # ------------------------------------------------------------------
    # Game execution
    # ------------------------------------------------------------------

    async def _run_game(self, game_id: str, game_idx: int) -> tuple[GameLog, Session]:
        """Play a single game to the end; returns its log and final session."""
        game_config = self._config.game
        seed = None if game_config.seed is None else game_config.seed + game_idx
        session = Session.setup(
            [p.name for p in self._config.players],
            config=game_config,
            rng=random.Random(seed),
            ai_players=[p.name for p in self._config.players if p.is_ai],
            high_scores=self._high_scores,
        )
        policies: dict[str, PlayerPolicy] = {
            player.id: create_policy(player_config, self._config)
            for player, player_config in zip(session.players, self._config.players)
        }

        game_log = GameLog(game_id=game_id, seed=seed)
        logger.info("Game '%s' starting.", game_id)

        while session.start_turn():
            t0 = time.monotonic()
            turn_log = TurnLog(
                turn=session.current_turn,
                market_condition=session.market_condition.value,
                player_order=[session.players[i].id for i in session.player_order],
                net_worth_before={
                    p.id: p.calculate_total_assets(session.instrument_prices())
                    for p in session.players
                },
            )

            while session.next_player():
                player = session.get_current_player()
                policy = policies[player.id]
                result = await self._invoke_policy(game_id, session, policy, player.id)
                turn_log.actions.extend(result.actions)

            turn_log.report = session.resolve_turn()
            turn_log.elapsed_seconds = time.monotonic() - t0
            game_log.turn_logs.append(turn_log)
            logger.info(
                "Game '%s' turn %d: %d action(s), %.2fs elapsed.",
                game_id,
                turn_log.turn,
                len(turn_log.actions),
                turn_log.elapsed_seconds,
            )

        game_log.scoreboard = session.end_game()
        game_log.final_instruments = [i.model_copy(deep=True) for i in session.instruments]

        winner = game_log.winner
        logger.info(
            "Game '%s' complete. Winner: %s ($%.2f).",
            game_id,
            winner.player_name if winner else "(nobody)",
            winner.score if winner else 0,
        )
        return game_log, session

    async def _invoke_policy(
        self,
        game_id: str,
        session: Session,
        policy: PlayerPolicy,
        player_id: str,
    ) -> PolicyResult:
        """Run one policy slot; a failing policy is treated as holding."""
        actions = make_turn_actions(session, player_id)
        policy.bind_actions(actions)
        invocation = PolicyInvocation(
            game_id=game_id,
            turn=session.current_turn,
            total_turns=session.total_turns,
            market_condition=session.market_condition.value,
            player=session.get_player(player_id).model_copy(deep=True),
            instruments=[i.model_copy(deep=True) for i in session.instruments],
            events=session.events_for_turn(),
            bank_interest_rate=session.bank_interest_rate,
        )
        try:
            result = await policy.act(invocation)
        except Exception as exc:
            logger.warning(
                "Policy error for player %s on turn %d: %s; treating as hold.",
                player_id,
                session.current_turn,
                exc,
            )
            return PolicyResult(actions=actions.results, raw_output=f"ERROR: {exc}")
        return result.model_copy(update={"actions": actions.results})

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _build_summary(self) -> dict[str, Any]:
        """Build a lightweight summary dict for the run."""
        games = self._output.run_log.game_logs
        starting_cash = self._config.game.starting_cash
        summaries = []
        for game in games:
            summaries.append(
                {
                    "game_id": game.game_id,
                    "seed": game.seed,
                    "turns_played": len(game.turn_logs),
                    "starting_cash": str(starting_cash),
                    "scoreboard": [
                        {
                            "rank": entry.rank,
                            "player": entry.player_name,
                            "score": str(entry.score),
                            "return_pct": float((entry.score - starting_cash) / starting_cash * 100),
                        }
                        for entry in game.scoreboard
                    ],
                    "total_actions": sum(len(t.actions) for t in game.turn_logs),
                    "bankruptcies": sum(
                        len(t.report.bankruptcies) for t in game.turn_logs if t.report
                    ),
                }
            )
        return {
            "run_name": self._run_name,
            "num_games": len(games),
            "game_summaries": summaries,
            "high_scores": [h.describe() for h in self._high_scores],
        }
