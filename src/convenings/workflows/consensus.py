"""Consensus-seeking dialogue: the generic loop plus convergence detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import Field

from ..consensus_engine import ConsensusDetector, ConsensusPoint
from ..participants.base import DialogueParticipant
from ..session import DialogueState
from .dialogue import DialogueResult, DialogueWorkflow, WorkflowConfig

logger = logging.getLogger(__name__)

CONSENSUS_SYSTEM_PROMPT = (
    "This is a consensus-seeking dialogue about {topic} between {participantNames}. "
    "The goal is to reach agreement on key points related to the topic. "
    "Each participant should express their views clearly, listen to others, "
    "and work toward finding common ground whenever possible."
)


class ConsensusConfig(WorkflowConfig):
    consensus_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    required_stable_turns: int = Field(default=3, ge=1)
    system_prompt_template: str = CONSENSUS_SYSTEM_PROMPT


@dataclass
class ConsensusResult(DialogueResult):
    consensus_points: List[ConsensusPoint] = field(default_factory=list)
    consensus_level: float = 0.0
    consensus_reached: bool = False
    turns_to_consensus: int = -1

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            consensus_points=[point.to_dict() for point in self.consensus_points],
            consensus_level=self.consensus_level,
            consensus_reached=self.consensus_reached,
            turns_to_consensus=self.turns_to_consensus,
        )
        return data


class ConsensusWorkflow(DialogueWorkflow):
    """Stops as soon as the consensus level has been stable long enough.

    The detector runs before every turn (and once after the last one); a
    user-supplied ``exit_condition`` still ends the session on its own.
    """

    config: ConsensusConfig

    def __init__(
        self,
        participants: Sequence[DialogueParticipant],
        topic: str,
        config: Optional[ConsensusConfig] = None,
    ):
        super().__init__(participants, topic, config or ConsensusConfig())
        self.detector = ConsensusDetector(
            consensus_threshold=self.config.consensus_threshold,
            required_stable_turns=self.config.required_stable_turns,
            events=self.events,
        )

    def should_exit(self) -> bool:
        if self.check_consensus_reached(self.state):
            return True
        return super().should_exit()

    def check_consensus_reached(self, state: DialogueState) -> bool:
        return self.detector.evaluate(state).converged

    def build_result(self, success: bool, end_reason: str, duration_ms: float) -> ConsensusResult:
        base = super().build_result(success, end_reason, duration_ms)
        reached = self.detector.converged
        return ConsensusResult(
            **vars(base),
            consensus_points=list(self.detector.consensus_points),
            consensus_level=self.detector.level,
            consensus_reached=reached,
            turns_to_consensus=self.detector.converged_at_turn if reached else -1,
        )
