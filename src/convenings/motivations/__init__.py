"""Motivations: drives that make participants want to speak."""

from .base import DialogueTurn, Motivation, MotivationContext, MotivationState
from .consensus_seeking import ConsensusSeekingConfig, ConsensusSeekingMotivation
from .participant import AggregationStrategy, MotivationDesire, MotivationDrivenParticipant
from .truth_seeking import TruthSeekingConfig, TruthSeekingMotivation

__all__ = [
    "DialogueTurn",
    "Motivation",
    "MotivationContext",
    "MotivationState",
    "ConsensusSeekingConfig",
    "ConsensusSeekingMotivation",
    "TruthSeekingConfig",
    "TruthSeekingMotivation",
    "AggregationStrategy",
    "MotivationDesire",
    "MotivationDrivenParticipant",
]
