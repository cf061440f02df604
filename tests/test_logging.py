"""Tests for TOML metrics logging."""

from __future__ import annotations

from pathlib import Path

from dqnchess.paths import RunPaths
from dqnchess.toml_io import load_toml
from dqnchess.train.logging import Metrics, write_metrics_snapshot


def _paths(tmp_path: Path) -> RunPaths:
    """Build a RunPaths pointing at a temp metrics directory."""
    metrics_dir = tmp_path / "metrics"
    metrics_dir.mkdir(parents=True, exist_ok=True)
    return RunPaths(
        root=tmp_path,
        checkpoints=tmp_path / "checkpoints",
        metrics_dir=metrics_dir,
        games_dir=tmp_path / "games",
        events_toml=tmp_path / "events.toml",
        config_toml=tmp_path / "config.toml",
        model_dir=tmp_path / "model",
    )


def test_write_metrics_snapshot(tmp_path: Path) -> None:
    """Metrics snapshots are written with expected filename."""
    paths = _paths(tmp_path)
    # Write a simple metrics payload.
    metrics = Metrics(
        episode=5,
        plies=42,
        final_reward=-1.0,
        result="0-1",
        mean_loss=0.25,
        learner_step=41,
        replay_size=42,
    )
    write_metrics_snapshot(paths, metrics)

    # Validate the file and content.
    path = paths.metrics_dir / "episode_0000000005.toml"
    assert path.exists()
    data = load_toml(path)
    assert data["mean_loss"] == 0.25
    assert data["result"] == "0-1"


def test_metrics_snapshot_omits_missing_loss(tmp_path: Path) -> None:
    """A warm-up episode without updates has no mean_loss key."""
    paths = _paths(tmp_path)
    write_metrics_snapshot(
        paths,
        Metrics(
            episode=1,
            plies=3,
            final_reward=0.0,
            result="*",
            mean_loss=None,
            learner_step=0,
            replay_size=3,
        ),
    )
    data = load_toml(paths.metrics_dir / "episode_0000000001.toml")
    assert "mean_loss" not in data
    assert data["learner_step"] == 0
