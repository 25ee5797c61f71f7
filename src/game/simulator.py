"""
Episode runner: alternates a slider and a placer on one board.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from .actions import Action
from .agents import Decider, Trainable
from .board import ILLEGAL, Board, tile_value

logger = logging.getLogger(__name__)

# Tiles the placer puts down before the slider's first move
INITIAL_TILES = 9


@dataclass
class EpisodeResult:
    """Results from running one game."""

    score: int  # Sum of slide rewards
    moves: int
    max_rank: int
    final_board: Board

    milestone_reached: bool = False

    # Every action in order, for replay/analysis
    history: list[Action] = field(default_factory=list)


@dataclass
class BlockSummary:
    """Statistics over a block of consecutive episodes."""

    episodes: int
    mean_score: float
    max_score: int
    mean_moves: float
    milestone_rate: float
    # Fraction of episodes whose largest tile was at least this rank
    reach_rates: dict[int, float] = field(default_factory=dict)

    def format(self) -> str:
        lines = [
            f"episodes={self.episodes} avg={self.mean_score:.0f} "
            f"max={self.max_score} moves={self.mean_moves:.1f} "
            f"milestone={self.milestone_rate:.1%}"
        ]
        for rank, rate in sorted(self.reach_rates.items()):
            lines.append(f"\t{tile_value(rank)}\t{rate:.1%}")
        return "\n".join(lines)


def summarize(results: list[EpisodeResult]) -> BlockSummary:
    """Aggregate a block of episode results."""
    if not results:
        return BlockSummary(0, 0.0, 0, 0.0, 0.0)

    count = len(results)
    max_ranks = Counter(r.max_rank for r in results)
    reach_rates = {}
    reached = 0
    for rank in sorted(max_ranks, reverse=True):
        reached += max_ranks[rank]
        reach_rates[rank] = reached / count

    return BlockSummary(
        episodes=count,
        mean_score=sum(r.score for r in results) / count,
        max_score=max(r.score for r in results),
        mean_moves=sum(r.moves for r in results) / count,
        milestone_rate=sum(r.milestone_reached for r in results) / count,
        reach_rates=reach_rates,
    )


class Simulator:
    """
    Runs episodes between a slider (the player) and a placer (the environment).

    Trainable agents get ``open_episode`` before the first placement and
    ``close_episode`` after the slider reports that no move is left.
    """

    def __init__(self, milestone: Optional[int] = None, max_moves: Optional[int] = None):
        self.milestone = milestone
        self.max_moves = max_moves

    def run_episode(self, slider: Decider, placer: Decider) -> EpisodeResult:
        board = Board()
        agents = [slider, placer]
        for agent in agents:
            if isinstance(agent, Trainable):
                agent.open_episode()

        history: list[Action] = []
        for _ in range(INITIAL_TILES):
            action = placer.take_action(board)
            if action is None or action.apply(board) == ILLEGAL:
                raise RuntimeError(f"Placer {placer.name} failed to set up the board")
            history.append(action)

        score = 0
        moves = 0
        milestone_reached = False
        while self.max_moves is None or moves < self.max_moves:
            action = slider.take_action(board)
            if action is None:
                break
            reward = action.apply(board)
            if reward == ILLEGAL:
                logger.warning(f"Slider {slider.name} chose illegal {action}; ending episode")
                break
            history.append(action)
            score += reward
            moves += 1
            if self.milestone is not None and board.max_rank() >= self.milestone:
                milestone_reached = True

            placement = placer.take_action(board)
            if placement is None or placement.apply(board) == ILLEGAL:
                break
            history.append(placement)

        for agent in agents:
            if isinstance(agent, Trainable):
                agent.close_episode()

        return EpisodeResult(
            score=score,
            moves=moves,
            max_rank=board.max_rank(),
            final_board=board,
            milestone_reached=milestone_reached,
            history=history,
        )
