"""Convenings: multi-party dialogue orchestration.

Participants bid for turns, carry motivations that drift with the
conversation, and take part in generic, consensus-seeking or structured
debate sessions.
"""

from .bidding import Bid, BidContext, BiddingStrategy, CombinedBiddingStrategy, create_default_bidding_strategy
from .consensus_engine import ConsensusDetector, ConsensusEvaluation, ConsensusPoint
from .participants import (
    DebateFormat,
    DebateModerator,
    DebateParticipant,
    DialogueParticipant,
    DialogueStyle,
    MotivatedDialogueParticipant,
    ParticipantRole,
)
from .scoring import ParticipantScore, aggregate_scores, parse_score_response
from .session import DialogueMessage, DialogueState
from .turn_coordinator import Turn, TurnCoordinator, TurnStrategy
from .workflows import (
    ConsensusConfig,
    ConsensusResult,
    ConsensusWorkflow,
    DebateConfig,
    DebateConfigurationError,
    DebatePhase,
    DebateResult,
    DebateWorkflow,
    DialogueResult,
    DialogueWorkflow,
    WorkflowConfig,
)

__all__ = [
    "Bid",
    "BidContext",
    "BiddingStrategy",
    "CombinedBiddingStrategy",
    "create_default_bidding_strategy",
    "ConsensusDetector",
    "ConsensusEvaluation",
    "ConsensusPoint",
    "DebateFormat",
    "DebateModerator",
    "DebateParticipant",
    "DialogueParticipant",
    "DialogueStyle",
    "MotivatedDialogueParticipant",
    "ParticipantRole",
    "ParticipantScore",
    "aggregate_scores",
    "parse_score_response",
    "DialogueMessage",
    "DialogueState",
    "Turn",
    "TurnCoordinator",
    "TurnStrategy",
    "ConsensusConfig",
    "ConsensusResult",
    "ConsensusWorkflow",
    "DebateConfig",
    "DebateConfigurationError",
    "DebatePhase",
    "DebateResult",
    "DebateWorkflow",
    "DialogueResult",
    "DialogueWorkflow",
    "WorkflowConfig",
]
