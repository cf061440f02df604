"""
Self-play training episodes.

Hard requirements:
- One learner instance is mutated across all episodes (never reset)
- Moves are always drawn from the rules engine's legal set
- Flat vectors exist only at the learner/exploration boundary
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from dqnchess.codec.action import encode_action
from dqnchess.codec.state import encode_state
from dqnchess.errors import IllegalMoveError
from dqnchess.rng import RngStream
from dqnchess.selfplay.explore import ExplorationStrategy
from dqnchess.selfplay.reward import sparse_reward
from dqnchess.selfplay.termination import HALFMOVE_LIMIT, ChessTermination
from dqnchess.selfplay.trajectory import EpisodeSummary, Transition
from dqnchess.types import EpisodeId, Learner, RulesEngine


@dataclass(frozen=True, slots=True)
class SelfPlayConfig:
    """Self-play settings."""

    trials: int
    halfmove_limit: int = HALFMOVE_LIMIT


def run_episode(
    *,
    rules: RulesEngine,
    learner: Learner,
    termination: ChessTermination,
    exploration: ExplorationStrategy,
    rng: RngStream,
    episode: EpisodeId,
) -> EpisodeSummary:
    """Play one self-play game from the initial position, updating learner.

    Raises:
        IllegalMoveError: If the rules engine rejects a move it listed as
            legal; this indicates an internal bug and is not recovered.
    """
    position = rules.initial_position()
    legal = rules.legal_moves(position)
    episode_key = rng.key_for_episode(episode)
    moves: list[str] = []
    losses: list[float] = []
    reward = 0.0

    while legal and not termination.should_stop(position):
        state = encode_state(position)
        actions = [encode_action(move) for move in legal]
        ply_key = rng.key_for_ply(episode_key, len(moves))
        index = exploration.choose(ply_key, state, actions)
        move = legal[index]

        try:
            next_position = rules.apply(position, move)
        except IllegalMoveError as exc:
            raise IllegalMoveError(
                f"episode {episode}, ply {len(moves)}: "
                f"legal move rejected: {exc}"
            ) from exc

        # Score the new position and collect the bootstrap candidates.
        reward = sparse_reward(rules, next_position)
        next_legal = rules.legal_moves(next_position)
        terminal = termination.should_stop(next_position)
        transition = Transition(
            state=state,
            action=actions[index],
            reward=reward,
            next_state=encode_state(next_position),
            next_actions=(
                [] if terminal else [encode_action(m) for m in next_legal]
            ),
        )
        loss = learner.update(
            transition.state,
            transition.action,
            transition.reward,
            transition.next_state,
            transition.next_actions,
        )
        if loss is not None:
            losses.append(loss)

        moves.append(rules.render(move))
        position, legal = next_position, next_legal

    outcome = rules.outcome(position)
    return EpisodeSummary(
        episode=episode,
        plies=len(moves),
        final_reward=reward,
        result="*" if outcome is None else outcome.result_token(),
        mean_loss=sum(losses) / len(losses) if losses else None,
        moves=moves,
    )


def run_training(
    *,
    rules: RulesEngine,
    learner: Learner,
    exploration: ExplorationStrategy,
    cfg: SelfPlayConfig,
    rng: RngStream,
    on_episode: Callable[[EpisodeSummary], None] | None = None,
    first_episode: int = 0,
) -> int:
    """Run cfg.trials self-play episodes against one shared learner.

    Args:
        rules: Rules engine.
        learner: Learner mutated in place across all episodes.
        exploration: Move selection strategy.
        cfg: SelfPlayConfig.
        rng: Deterministic RNG stream.
        on_episode: Callback invoked after each episode.
        first_episode: Index of the first episode (for resumed runs).

    Returns:
        Number of episodes played.
    """
    if cfg.trials < 1:
        raise ValueError("trials must be a positive integer")
    termination = ChessTermination(rules, halfmove_limit=cfg.halfmove_limit)
    for offset in range(cfg.trials):
        summary = run_episode(
            rules=rules,
            learner=learner,
            termination=termination,
            exploration=exploration,
            rng=rng,
            episode=EpisodeId(first_episode + offset),
        )
        if on_episode is not None:
            on_episode(summary)
    return cfg.trials
