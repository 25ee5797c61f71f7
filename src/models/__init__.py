"""
Learning core for the Threes! agent.

This package provides an n-tuple network value function trained by
temporal-difference learning from self-play:

Components:
- NTupleExtractor: Maps a board to lookup-table indices, per NetworkProfile
- ValueFunction: Flat float32 lookup tables and the binary weight file format
- LookaheadSelector: One-ply greedy move choice with the milestone override
- TrajectoryRecorder / EpisodeContext: What one episode recorded
- Trainer: TD(0) and finite-horizon TD(lambda) updates at episode close
- TdSlider: The agent composing all of the above

Quick start:
    from src.game import RandomPlacer, Simulator
    from src.models import TdSlider

    with TdSlider("profile=isomorphic alpha=0.003 save=weights.bin") as slider:
        placer = RandomPlacer("seed=1")
        for _ in range(100):
            Simulator().run_episode(slider, placer)
"""

from .agent import MILESTONE_BONUS, NO_MOVE_PENALTY, TdSlider, build_value_function, make_agent
from .features import (
    BASE,
    HINT_BUCKETS,
    MILESTONE_RANK,
    PROFILES,
    NetworkProfile,
    NTupleExtractor,
    encode,
    get_profile,
    hint_bucket,
)
from .selector import OVERRIDE_PRIORITY, Candidate, LookaheadSelector
from .training import (
    GAMMA,
    LAMBDA,
    TD0,
    TD_LAMBDA,
    Trainer,
    TrainingConfig,
    TrainingMetrics,
)
from .trajectory import EpisodeContext, Step, TrajectoryRecorder
from .value_function import ValueFunction, WeightFileError, parse_sizes, read_tables

__all__ = [
    # Features
    "BASE",
    "HINT_BUCKETS",
    "MILESTONE_RANK",
    "PROFILES",
    "NetworkProfile",
    "NTupleExtractor",
    "encode",
    "get_profile",
    "hint_bucket",
    # Value function
    "ValueFunction",
    "WeightFileError",
    "parse_sizes",
    "read_tables",
    # Selection
    "LookaheadSelector",
    "Candidate",
    "OVERRIDE_PRIORITY",
    # Trajectory
    "TrajectoryRecorder",
    "EpisodeContext",
    "Step",
    # Training
    "Trainer",
    "TrainingConfig",
    "TrainingMetrics",
    "TD0",
    "TD_LAMBDA",
    "GAMMA",
    "LAMBDA",
    # Agent
    "TdSlider",
    "build_value_function",
    "make_agent",
    "MILESTONE_BONUS",
    "NO_MOVE_PENALTY",
]
