"""
TOML metrics snapshots.

All metrics artifacts are TOML and stored in /runs/<run_id>/metrics/.
"""

from __future__ import annotations

from dataclasses import dataclass

from dqnchess.paths import RunPaths
from dqnchess.toml_io import TomlValue, save_toml


@dataclass(frozen=True, slots=True)
class Metrics:
    """A minimal metrics bundle suitable for TOML serialization."""

    episode: int
    plies: int
    final_reward: float
    result: str
    mean_loss: float | None
    learner_step: int
    replay_size: int


def write_metrics_snapshot(paths: RunPaths, metrics: Metrics) -> None:
    """Write a metrics snapshot TOML file named by episode count."""
    # Use zero-padded filenames for lexicographic ordering.
    path = paths.metrics_dir / f"episode_{metrics.episode:010d}.toml"
    data: dict[str, TomlValue] = {
        "episode": metrics.episode,
        "plies": metrics.plies,
        "final_reward": metrics.final_reward,
        "result": metrics.result,
        "learner_step": metrics.learner_step,
        "replay_size": metrics.replay_size,
    }
    # TOML has no null; omit the loss until the learner has trained.
    if metrics.mean_loss is not None:
        data["mean_loss"] = metrics.mean_loss
    save_toml(path, data)
