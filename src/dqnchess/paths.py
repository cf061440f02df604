"""
Centralized path conventions for /runs outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

# Default base directories for configs and run artifacts.
RUNS_DIR: Final[Path] = Path("runs")
CONFIG_DIR: Final[Path] = Path("config")
DEFAULT_CONFIG: Final[Path] = CONFIG_DIR / "default.toml"


@dataclass(frozen=True, slots=True)
class RunPaths:
    """All filesystem paths for a single run."""

    root: Path
    checkpoints: Path
    metrics_dir: Path
    games_dir: Path
    events_toml: Path
    config_toml: Path
    model_dir: Path

    @staticmethod
    def create(run_id: str) -> RunPaths:
        """Create run directories under /runs/<run_id>."""
        # Resolve to an absolute path for Orbax compatibility.
        root = (RUNS_DIR / run_id).resolve()
        paths = RunPaths(
            root=root,
            checkpoints=root / "checkpoints",
            metrics_dir=root / "metrics",
            games_dir=root / "games",
            events_toml=root / "events.toml",
            config_toml=root / "config.toml",
            model_dir=root / "model",
        )
        # Ensure all directories exist; the model directory is written on save.
        for directory in (
            paths.checkpoints,
            paths.metrics_dir,
            paths.games_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)
        return paths

    def checkpoint_for(self, episode: int) -> Path:
        """Return the checkpoint directory for an episode count."""
        return self.checkpoints / f"episode_{episode:010d}"
