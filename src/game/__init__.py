"""
Threes! game package: board mechanics, actions and the non-learning agents.
"""

from .actions import Action, ActionType
from .agents import (
    AgentConfig,
    Decider,
    HeuristicSlider,
    RandomPlacer,
    RandomSlider,
    Seeded,
    Trainable,
    legal_directions,
)
from .board import (
    ILLEGAL,
    MAX_RANK,
    NO_SLIDE,
    Board,
    Direction,
    merge_rank,
    tile_score,
    tile_value,
)
from .simulator import BlockSummary, EpisodeResult, Simulator, summarize

__all__ = [
    # Board
    "Board",
    "Direction",
    "ILLEGAL",
    "MAX_RANK",
    "NO_SLIDE",
    "merge_rank",
    "tile_score",
    "tile_value",
    # Actions
    "Action",
    "ActionType",
    # Agents
    "AgentConfig",
    "Decider",
    "Trainable",
    "Seeded",
    "RandomPlacer",
    "RandomSlider",
    "HeuristicSlider",
    "legal_directions",
    # Simulator
    "Simulator",
    "EpisodeResult",
    "BlockSummary",
    "summarize",
]
