"""Dialogue workflows: the generic session loop and its specialisations."""

from .consensus import CONSENSUS_SYSTEM_PROMPT, ConsensusConfig, ConsensusResult, ConsensusWorkflow
from .debate import (
    DEBATE_SYSTEM_PROMPT,
    DebateConfig,
    DebateConfigurationError,
    DebatePhase,
    DebateResult,
    DebateWorkflow,
    build_turn_order,
    is_argument_turn,
    planned_turn_count,
)
from .dialogue import DEFAULT_SYSTEM_PROMPT, DialogueResult, DialogueWorkflow, WorkflowConfig, format_template

__all__ = [
    "CONSENSUS_SYSTEM_PROMPT",
    "ConsensusConfig",
    "ConsensusResult",
    "ConsensusWorkflow",
    "DEBATE_SYSTEM_PROMPT",
    "DebateConfig",
    "DebateConfigurationError",
    "DebatePhase",
    "DebateResult",
    "DebateWorkflow",
    "build_turn_order",
    "is_argument_turn",
    "planned_turn_count",
    "DEFAULT_SYSTEM_PROMPT",
    "DialogueResult",
    "DialogueWorkflow",
    "WorkflowConfig",
    "format_template",
]
