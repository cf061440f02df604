"""
Arena games: greedy agent vs. uniformly random opponent.
"""

from __future__ import annotations

from dataclasses import dataclass

from dqnchess.env.position import Color
from dqnchess.play.interactive import choose_agent_move
from dqnchess.rng import RngStream, choice_index
from dqnchess.selfplay.termination import ChessTermination
from dqnchess.types import EpisodeId, Learner, RulesEngine


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Match outcome summary from the agent's point of view."""

    wins: int
    draws: int
    losses: int

    def total_games(self) -> int:
        """Return total number of games."""
        return self.wins + self.draws + self.losses

    def score(self) -> float:
        """Return score with draws worth 0.5."""
        return float(self.wins) + 0.5 * float(self.draws)

    def win_rate(self) -> float:
        """Return win rate across all games."""
        # Avoid division by zero on empty results.
        total = self.total_games()
        if total == 0:
            return 0.0
        return float(self.wins) / float(total)


def play_game(
    *,
    rules: RulesEngine,
    learner: Learner,
    agent_color: Color,
    rng: RngStream,
    game: EpisodeId,
) -> Color | None:
    """Play one game and return the winner (None for a draw or cap).

    The agent moves greedily; the opponent moves uniformly at random. Games
    stop under the same termination policy as self-play.
    """
    termination = ChessTermination(rules)
    game_key = rng.key_for_episode(game)
    position = rules.initial_position()
    legal = rules.legal_moves(position)
    ply = 0
    while legal and not termination.should_stop(position):
        if position.turn == agent_color:
            move = choose_agent_move(learner, position, legal)
        else:
            ply_key = rng.key_for_ply(game_key, ply)
            move = legal[choice_index(ply_key, len(legal))]
        position = rules.apply(position, move)
        legal = rules.legal_moves(position)
        ply += 1
    outcome = rules.outcome(position)
    return None if outcome is None else outcome.winner


def play_match(
    *,
    rules: RulesEngine,
    learner: Learner,
    games: int,
    rng: RngStream,
    agent_color: Color | None = None,
) -> MatchResult:
    """Play several arena games.

    Args:
        rules: Rules engine.
        learner: Agent under evaluation.
        games: Number of games.
        rng: RNG stream for the random opponent.
        agent_color: Fixed agent color; alternates each game when None.

    Returns:
        Aggregated MatchResult.
    """
    wins = draws = losses = 0
    for game in range(games):
        color = agent_color
        if color is None:
            color = Color.WHITE if game % 2 == 0 else Color.BLACK
        winner = play_game(
            rules=rules,
            learner=learner,
            agent_color=color,
            rng=rng,
            game=EpisodeId(game),
        )
        if winner is None:
            draws += 1
        elif winner == color:
            wins += 1
        else:
            losses += 1
    return MatchResult(wins=wins, draws=draws, losses=losses)
