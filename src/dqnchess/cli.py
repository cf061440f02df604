"""
Command-line entrypoints.

Commands:
- train: run self-play episodes and save the learner
- play: play against a saved learner from the terminal
- eval: play a saved learner against a random opponent
"""

from __future__ import annotations

import argparse
import platform
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path

from dqnchess.env.position import Color
from dqnchess.env.rules import ChessRules
from dqnchess.errors import PersistenceError
from dqnchess.eval.arena import play_match
from dqnchess.paths import DEFAULT_CONFIG, RunPaths
from dqnchess.pgn.writer import episode_pgn, write_pgn_file
from dqnchess.play.interactive import play_interactive
from dqnchess.rng import RngStream
from dqnchess.selfplay.explore import (
    EpsilonGreedyExploration,
    ExplorationStrategy,
    RandomExploration,
)
from dqnchess.selfplay.rollout import SelfPlayConfig, run_training
from dqnchess.selfplay.termination import HALFMOVE_LIMIT
from dqnchess.selfplay.trajectory import EpisodeSummary
from dqnchess.toml_io import TomlValue, load_toml, save_toml
from dqnchess.train.checkpointing import read_schema
from dqnchess.train.learner import DqnLearner, LearnerConfig
from dqnchess.train.logging import Metrics, write_metrics_snapshot

DEFAULT_TRIALS = 10_000


def _positive_int(text: str) -> int:
    """argparse type for strictly positive integers."""
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(
            f"expected a positive integer, got {text}"
        )
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="dqnchess")
    subparsers = parser.add_subparsers(dest="command", required=True)

    train_parser = subparsers.add_parser("train", help="Run self-play training")
    train_parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to TOML config",
    )
    train_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Model output directory (default: <run>/model)",
    )
    train_parser.add_argument(
        "--trials",
        type=_positive_int,
        default=None,
        help=(
            "Number of self-play episodes "
            f"(default: config or {DEFAULT_TRIALS})"
        ),
    )

    play_parser = subparsers.add_parser("play", help="Play against a model")
    play_parser.add_argument(
        "--model", type=Path, required=True, help="Model directory"
    )
    play_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to TOML config (only [run].seed is read)",
    )
    play_parser.add_argument(
        "--human-color",
        choices=("white", "black"),
        default="white",
        help="Side played by the human",
    )

    eval_parser = subparsers.add_parser("eval", help="Evaluate a model")
    eval_parser.add_argument(
        "--model", type=Path, required=True, help="Model directory"
    )
    eval_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to TOML config",
    )
    eval_parser.add_argument(
        "--games",
        type=_positive_int,
        default=None,
        help="Number of arena games (default: config or 10)",
    )

    return parser


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Run-level configuration.

    Attributes:
        name: Run name used in artifact paths.
        seed: Base RNG seed.
        log_every_episodes: Metrics snapshot cadence.
        checkpoint_every_episodes: Model checkpoint cadence.
        pgn_every_episodes: PGN record cadence.
    """

    name: str
    seed: int
    log_every_episodes: int
    checkpoint_every_episodes: int
    pgn_every_episodes: int


@dataclass(frozen=True, slots=True)
class ExploreConfig:
    """Exploration strategy selection."""

    kind: str
    epsilon: float


def _get_int(table: dict[str, TomlValue], key: str) -> int:
    """Fetch a required integer from a TOML table.

    Raises:
        ValueError: If the key is missing or not an int.
    """
    value = table.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Missing int key: {key}")
    return value


def _get_float(table: dict[str, TomlValue], key: str) -> float:
    """Fetch a required float from a TOML table (ints coerced).

    Raises:
        ValueError: If the key is missing or not a float-like value.
    """
    value = table.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, float):
        raise ValueError(f"Missing float key: {key}")
    return value


def _get_str(table: dict[str, TomlValue], key: str) -> str:
    """Fetch a required string from a TOML table.

    Raises:
        ValueError: If the key is missing or not a string.
    """
    value = table.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Missing string key: {key}")
    return value


def _get_table(data: dict[str, TomlValue], key: str) -> dict[str, TomlValue]:
    """Fetch a required TOML table.

    Raises:
        ValueError: If the key is missing or not a table.
    """
    value = data.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"Missing TOML table: {key}")
    return value


def _get_table_optional(
    data: dict[str, TomlValue], key: str
) -> dict[str, TomlValue] | None:
    """Fetch an optional TOML table.

    Raises:
        ValueError: If the key exists but is not a table.
    """
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"Missing TOML table: {key}")
    return value


def _parse_run_config(config: dict[str, TomlValue]) -> RunConfig:
    """Parse the [run] table."""
    run_table = _get_table(config, "run")
    return RunConfig(
        name=_get_str(run_table, "name"),
        seed=_get_int(run_table, "seed"),
        log_every_episodes=_get_int(run_table, "log_every_episodes"),
        checkpoint_every_episodes=_get_int(
            run_table, "checkpoint_every_episodes"
        ),
        pgn_every_episodes=_get_int(run_table, "pgn_every_episodes"),
    )


def _parse_selfplay_config(
    config: dict[str, TomlValue], trials_override: int | None
) -> SelfPlayConfig:
    """Parse the [train] table; a CLI trial count wins over the config."""
    table = _get_table_optional(config, "train") or {}
    trials = trials_override
    if trials is None:
        trials = DEFAULT_TRIALS
        if "trials" in table:
            trials = _get_int(table, "trials")
    if trials < 1:
        raise ValueError("trials must be a positive integer")
    halfmove_limit = HALFMOVE_LIMIT
    if "halfmove_limit" in table:
        halfmove_limit = _get_int(table, "halfmove_limit")
    return SelfPlayConfig(trials=trials, halfmove_limit=halfmove_limit)


def _parse_learner_config(
    config: dict[str, TomlValue], seed: int
) -> LearnerConfig:
    """Parse the [learner] table."""
    table = _get_table(config, "learner")
    return LearnerConfig(
        gamma=_get_float(table, "gamma"),
        learning_rate=_get_float(table, "learning_rate"),
        hidden_size=_get_int(table, "hidden_size"),
        batch_size=_get_int(table, "batch_size"),
        replay_capacity=_get_int(table, "replay_capacity"),
        min_replay_to_train=_get_int(table, "min_replay_to_train"),
        grad_clip_norm=_get_float(table, "grad_clip_norm"),
        weight_decay=_get_float(table, "weight_decay"),
        seed=seed,
    )


def _parse_explore_config(config: dict[str, TomlValue]) -> ExploreConfig:
    """Parse the optional [explore] table (defaults to random)."""
    table = _get_table_optional(config, "explore")
    if table is None:
        return ExploreConfig(kind="random", epsilon=1.0)
    kind = _get_str(table, "kind")
    if kind not in ("random", "epsilon_greedy"):
        raise ValueError(f"Unknown exploration kind: {kind}")
    epsilon = _get_float(table, "epsilon") if kind == "epsilon_greedy" else 1.0
    return ExploreConfig(kind=kind, epsilon=epsilon)


def _make_exploration(
    cfg: ExploreConfig, learner: DqnLearner
) -> ExplorationStrategy:
    """Build the configured exploration strategy."""
    if cfg.kind == "epsilon_greedy":
        return EpsilonGreedyExploration(learner, cfg.epsilon)
    return RandomExploration()


def _append_event(paths: RunPaths, event: dict[str, TomlValue]) -> None:
    """Append a run event to events.toml with stable numbering."""
    # Load existing events to keep numbering monotonic.
    data = load_toml(paths.events_toml) if paths.events_toml.exists() else {}
    idx = 0
    for key in data:
        if key.startswith("event_"):
            try:
                idx = max(idx, int(key.split("_", 1)[1]))
            except ValueError:
                continue
    data[f"event_{idx + 1:04d}"] = event
    save_toml(paths.events_toml, data)


def _git_sha() -> str:
    """Resolve the current git SHA for run metadata, or "unknown"."""
    head_path = Path(".git") / "HEAD"
    if not head_path.exists():
        return "unknown"
    head = head_path.read_text(encoding="utf-8").strip()
    if head.startswith("ref: "):
        ref_path = Path(".git") / head.split(" ", 1)[1]
        if ref_path.exists():
            return ref_path.read_text(encoding="utf-8").strip()
        return "unknown"
    return head


def _run_id(run_name: str) -> str:
    """Construct a UTC run_id with timestamp and name."""
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{run_name}"


def _write_start_event(paths: RunPaths, run_id: str, command: str) -> None:
    """Write a run start event with host metadata."""
    _append_event(
        paths,
        {
            "event": "start",
            "command": command,
            "run_id": run_id,
            "started_utc": datetime.now(UTC).isoformat(),
            "git_sha": _git_sha(),
            "host": platform.node(),
            "platform": platform.platform(),
            "python": platform.python_version(),
        },
    )


def _write_stop_event(
    paths: RunPaths, run_id: str, reason: str, episodes: int
) -> None:
    """Write a run stop event."""
    _append_event(
        paths,
        {
            "event": "stop",
            "run_id": run_id,
            "stopped_utc": datetime.now(UTC).isoformat(),
            "reason": reason,
            "episodes": episodes,
        },
    )


class _EpisodeReporter:
    """Per-episode progress output, metrics, PGN records and checkpoints."""

    def __init__(
        self, run_cfg: RunConfig, paths: RunPaths, learner: DqnLearner
    ) -> None:
        self._run_cfg = run_cfg
        self._paths = paths
        self._learner = learner
        self.episodes = 0

    def __call__(self, summary: EpisodeSummary) -> None:
        self.episodes += 1
        count = self.episodes
        print(
            f"Episode {count}: plies={summary.plies} "
            f"Reward: {summary.final_reward}"
        )
        if count % self._run_cfg.log_every_episodes == 0:
            write_metrics_snapshot(
                self._paths,
                Metrics(
                    episode=count,
                    plies=summary.plies,
                    final_reward=summary.final_reward,
                    result=summary.result,
                    mean_loss=summary.mean_loss,
                    learner_step=int(self._learner.step),
                    replay_size=self._learner.replay_size,
                ),
            )
        if count % self._run_cfg.pgn_every_episodes == 0:
            pgn = episode_pgn(summary, self._run_cfg.name, date.today())
            path = self._paths.games_dir / f"game_{count:010d}.pgn"
            write_pgn_file(path, pgn)
        if count % self._run_cfg.checkpoint_every_episodes == 0:
            self._learner.save(self._paths.checkpoint_for(count))


def _train(
    config: dict[str, TomlValue],
    paths: RunPaths,
    run_id: str,
    trials: int | None,
    out: Path | None,
) -> None:
    """Run self-play training and save the learner.

    Args:
        config: Loaded TOML configuration.
        paths: RunPaths for artifact output.
        run_id: Generated run identifier.
        trials: Episode count override from the command line.
        out: Model output directory override.
    """
    run_cfg = _parse_run_config(config)
    selfplay_cfg = _parse_selfplay_config(config, trials)
    learner = DqnLearner(_parse_learner_config(config, run_cfg.seed))
    exploration = _make_exploration(_parse_explore_config(config), learner)
    reporter = _EpisodeReporter(run_cfg, paths, learner)

    try:
        run_training(
            rules=ChessRules(),
            learner=learner,
            exploration=exploration,
            cfg=selfplay_cfg,
            rng=RngStream.from_seed(run_cfg.seed),
            on_episode=reporter,
        )
        model_dir = out if out is not None else paths.model_dir
        learner.save(model_dir)
    except BaseException:
        _write_stop_event(paths, run_id, "error", reporter.episodes)
        raise

    print(f"Saved model to {model_dir}")
    _write_stop_event(paths, run_id, "complete", reporter.episodes)


def _load_learner(model_dir: Path, seed: int) -> DqnLearner:
    """Build a learner matching a saved model's width and load it.

    Raises:
        PersistenceError: If the model cannot be loaded.
    """
    schema = read_schema(model_dir)
    learner = DqnLearner(
        LearnerConfig(hidden_size=schema.hidden_size, seed=seed)
    )
    learner.load(model_dir)
    return learner


def _play(
    config: dict[str, TomlValue] | None, model_dir: Path, human_color: str
) -> int:
    """Run an interactive game; returns a process exit code."""
    seed = 0
    if config is not None:
        seed = _get_int(_get_table(config, "run"), "seed")
    try:
        learner = _load_learner(model_dir, seed=seed)
    except PersistenceError as exc:
        print(f"error: {exc}")
        return 1
    rules = ChessRules()
    try:
        play_interactive(
            rules=rules,
            learner=learner,
            human_color=Color.WHITE if human_color == "white" else Color.BLACK,
            board_text=rules.board_text,
        )
    except EOFError:
        print("Input closed.")
        return 1
    return 0


def _eval(
    config: dict[str, TomlValue] | None, model_dir: Path, games: int | None
) -> int:
    """Evaluate a model against a random opponent and write a summary."""
    run_name = "eval"
    seed = 0
    if config is not None:
        run_table = _get_table(config, "run")
        run_name = f"{_get_str(run_table, 'name')}_eval"
        seed = _get_int(run_table, "seed")
        eval_table = _get_table_optional(config, "eval")
        if games is None and eval_table is not None and "games" in eval_table:
            games = _get_int(eval_table, "games")
    if games is None:
        games = 10

    try:
        learner = _load_learner(model_dir, seed=seed)
    except PersistenceError as exc:
        print(f"error: {exc}")
        return 1

    run_id = _run_id(run_name)
    paths = RunPaths.create(run_id)
    _write_start_event(paths, run_id, "eval")
    result = play_match(
        rules=ChessRules(),
        learner=learner,
        games=games,
        rng=RngStream.from_seed(seed),
    )
    # Write evaluation summary for downstream tools.
    save_toml(
        paths.root / "eval_results.toml",
        {
            "model": str(model_dir),
            "wins": result.wins,
            "draws": result.draws,
            "losses": result.losses,
            "score": result.score(),
            "win_rate": result.win_rate(),
        },
    )
    print(
        f"wins={result.wins} draws={result.draws} losses={result.losses} "
        f"score={result.score()}/{result.total_games()}"
    )
    _write_stop_event(paths, run_id, "eval_complete", result.total_games())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint.

    Returns:
        Process exit code (0 for success).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in ("play", "eval"):
        config = load_toml(args.config) if args.config is not None else None
        if args.command == "play":
            return _play(config, args.model, args.human_color)
        return _eval(config, args.model, args.games)

    # Load config and create run directories before training.
    config = load_toml(args.config)
    run_cfg = _parse_run_config(config)
    run_id = _run_id(run_cfg.name)
    paths = RunPaths.create(run_id)
    save_toml(paths.config_toml, config)
    _write_start_event(paths, run_id, "train")
    try:
        _train(config, paths, run_id, args.trials, args.out)
    except PersistenceError as exc:
        print(f"error: {exc}")
        return 1
    return 0
