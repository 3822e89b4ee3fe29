"""Run output logging: persists the RunLog, GameLogs and final session snapshots.

The output directory structure is::

    {output_dir}/{run_name}/
    ├── config.yaml
    ├── run_log.json
    ├── games/
    │   ├── game_000/
    │   │   ├── game_log.json
    │   │   ├── scoreboard.json
    │   │   └── snapshot.json
    │   └── ...
    └── summary.json
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from models.config import RunConfig
from models.log import GameLog, RunLog
from models.score import HighScore
from models.snapshot import SessionSnapshot

logger = logging.getLogger(__name__)


def run_name_from_config_path(config_path: str | Path) -> str:
    """Derive a run name from the configuration file path (stem without extension)."""
    return Path(config_path).stem


class GameOutputLogger:
    """Manages on-disk output for a run.

    Call ``init_run`` once at the start, ``write_game`` after each game
    completes, and ``finalize`` at the very end.
    """

    def __init__(
        self,
        output_dir: str,
        config: RunConfig,
        run_name: str,
    ) -> None:
        self._run_dir = _unique_run_dir(Path(output_dir), run_name)
        self._games_dir = self._run_dir / "games"
        self._run_log = RunLog(
            run_name=self._run_dir.name,
            config=config,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_run(self, config_yaml_path: str | None = None) -> None:
        """Create the output directory tree and optionally copy the config."""
        self._run_dir.mkdir(parents=True, exist_ok=True)
        self._games_dir.mkdir(exist_ok=True)
        if config_yaml_path is not None:
            dest = self._run_dir / "config.yaml"
            shutil.copy2(config_yaml_path, dest)
            logger.info("Copied config to %s", dest)

    def write_game(self, game_log: GameLog, snapshot: SessionSnapshot | None = None) -> None:
        """Persist a completed game's log, scoreboard and final state to disk."""
        game_dir = self._games_dir / game_log.game_id
        game_dir.mkdir(parents=True, exist_ok=True)

        _write_json(game_dir / "game_log.json", game_log.model_dump(mode="json"))

        if game_log.scoreboard:
            _write_json(
                game_dir / "scoreboard.json",
                [entry.model_dump(mode="json") for entry in game_log.scoreboard],
            )

        if snapshot is not None:
            _write_json(game_dir / "snapshot.json", snapshot.model_dump(mode="json"))

        self._run_log.game_logs.append(game_log)
        logger.info("Wrote game log for '%s' to %s", game_log.game_id, game_dir)

    def record_high_scores(self, high_scores: list[HighScore]) -> None:
        self._run_log.high_scores = list(high_scores)

    def record_error(self, message: str) -> None:
        """Append an error message to the run-level log."""
        self._run_log.errors.append(message)
        logger.error("Run error: %s", message)

    def finalize(self, summary: dict[str, Any] | None = None) -> None:
        """Write the run-level log and optional summary."""
        _write_json(
            self._run_dir / "run_log.json",
            self._run_log.model_dump(mode="json"),
        )
        if summary is not None:
            _write_json(self._run_dir / "summary.json", summary)
        logger.info("Run log finalized at %s", self._run_dir)

    @property
    def run_log(self) -> RunLog:
        """Expose the in-memory run log (used by the runner for summaries)."""
        return self._run_log

    @property
    def run_dir(self) -> Path:
        return self._run_dir


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _unique_run_dir(output_dir: Path, run_name: str) -> Path:
    """Return a run directory that does not already exist.

    If ``output_dir/run_name`` is free, use it directly (first run keeps
    a clean name).  Otherwise append an incrementing suffix:
    ``run_name_001``, ``run_name_002``, etc.
    """
    candidate = output_dir / run_name
    if not candidate.exists():
        return candidate

    idx = 1
    while True:
        candidate = output_dir / f"{run_name}_{idx:03d}"
        if not candidate.exists():
            return candidate
        idx += 1


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty-printed JSON to *path*."""
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
