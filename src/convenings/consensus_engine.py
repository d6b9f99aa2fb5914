"""Consensus Engine - detects convergence in consensus-seeking dialogues.

After every turn (once at least two full rounds of messages exist) the engine
looks at the most recent round, finds terms used by enough distinct
participants and tracks them as consensus points. A stability counter records
how many consecutive evaluations stayed at or above the threshold.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Set

from convenings_core.events import EventHook, EventType

from .session import DialogueMessage, DialogueState

logger = logging.getLogger(__name__)

MIN_TERM_LENGTH = 5
_SPLIT = re.compile(r"\W+")


@dataclass
class ConsensusPoint:
    """A term a sufficient share of participants converged on."""

    term: str
    description: str
    confidence: float
    supporting_participants: List[str]
    identified_at_turn: int
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, object]:
        return {
            "description": self.description,
            "confidence": self.confidence,
            "supporting_participants": list(self.supporting_participants),
            "identified_at_turn": self.identified_at_turn,
        }


@dataclass
class ConsensusEvaluation:
    """Outcome of a single evaluation."""

    evaluated: bool
    level: float
    stable_count: int
    converged: bool
    new_points: List[ConsensusPoint] = field(default_factory=list)


def extract_terms(content: str) -> List[str]:
    """Lowercased ``\\W+`` splits at least five characters long."""
    return [word for word in _SPLIT.split(content.lower()) if len(word) >= MIN_TERM_LENGTH]


class ConsensusDetector:
    """Tracks consensus points and the stability counter for one dialogue.

    Args:
        consensus_threshold: Contributor ratio a term needs, and the level
            the dialogue needs, to count as consensus (0.0-1.0)
        required_stable_turns: Consecutive qualifying evaluations needed
            before the dialogue is considered converged
        events: Optional hook receiving ``consensus_point`` events
    """

    def __init__(
        self,
        consensus_threshold: float = 0.8,
        required_stable_turns: int = 3,
        events: Optional[EventHook] = None,
    ):
        if required_stable_turns < 1:
            raise ValueError("required_stable_turns must be at least 1")

        self.consensus_threshold = consensus_threshold
        self.required_stable_turns = required_stable_turns
        self.events = events

        self.consensus_points: List[ConsensusPoint] = []
        self.stable_count = 0
        self.converged_at_turn: Optional[int] = None

        logger.info(
            f"Initialized ConsensusDetector with threshold={consensus_threshold}, "
            f"required_stable_turns={required_stable_turns}"
        )

    @property
    def level(self) -> float:
        """Mean confidence of all tracked points (0 when there are none)."""
        if not self.consensus_points:
            return 0.0
        return sum(point.confidence for point in self.consensus_points) / len(self.consensus_points)

    @property
    def converged(self) -> bool:
        return self.stable_count >= self.required_stable_turns

    def evaluate(self, state: DialogueState) -> ConsensusEvaluation:
        """Update points from the latest round and advance the stability counter."""

        participant_count = state.participant_count
        if participant_count == 0 or len(state.messages) < participant_count * 2:
            return ConsensusEvaluation(
                evaluated=False,
                level=self.level,
                stable_count=self.stable_count,
                converged=self.converged,
            )

        new_points = self._update_points(state.recent_messages(participant_count), participant_count, state.current_turn)

        level = self.level
        if level >= self.consensus_threshold:
            self.stable_count += 1
        else:
            if self.stable_count:
                logger.debug(f"Consensus level {level:.2f} below threshold; stability counter reset")
            self.stable_count = 0

        if self.converged and self.converged_at_turn is None:
            self.converged_at_turn = state.current_turn
            logger.info(f"Consensus reached at turn {state.current_turn} (level {level:.2f})")

        return ConsensusEvaluation(
            evaluated=True,
            level=level,
            stable_count=self.stable_count,
            converged=self.converged,
            new_points=new_points,
        )

    def reset(self) -> None:
        self.consensus_points = []
        self.stable_count = 0
        self.converged_at_turn = None

    def _update_points(
        self,
        messages: Sequence[DialogueMessage],
        participant_count: int,
        turn: int,
    ) -> List[ConsensusPoint]:
        contributors: Dict[str, Set[str]] = {}
        order: List[str] = []
        for message in messages:
            for term in extract_terms(message.content):
                if term not in contributors:
                    contributors[term] = set()
                    order.append(term)
                contributors[term].add(message.participant_id)

        new_points: List[ConsensusPoint] = []
        for term in order:
            supporters = contributors[term]
            agreement = len(supporters) / participant_count
            if agreement < self.consensus_threshold:
                continue

            existing = self._find_point(term)
            if existing is not None:
                existing.confidence = max(existing.confidence, agreement)
                for participant_id in sorted(supporters - set(existing.supporting_participants)):
                    existing.supporting_participants.append(participant_id)
                continue

            point = ConsensusPoint(
                term=term,
                description=f"Agreement on {term}",
                confidence=agreement,
                supporting_participants=sorted(supporters),
                identified_at_turn=turn,
            )
            self.consensus_points.append(point)
            new_points.append(point)
            if self.events is not None:
                self.events.emit(
                    EventType.CONSENSUS_POINT,
                    description=point.description,
                    confidence=point.confidence,
                    turn=turn,
                )
        return new_points

    def _find_point(self, term: str) -> Optional[ConsensusPoint]:
        for point in self.consensus_points:
            if point.term == term:
                return point
        return None
