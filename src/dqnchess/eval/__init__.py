"""
Evaluation utilities.
"""

from dqnchess.eval.arena import MatchResult, play_game, play_match

__all__ = ["MatchResult", "play_game", "play_match"]
