"""Motivation to steer the group toward agreement."""

from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel, Field

from ..bidding.context import clamp
from ..text import contains_any, extract_topics
from .base import DialogueTurn, Motivation, MotivationContext, MotivationState

DISAGREEMENT_MARKERS = ["disagree", "not true", "incorrect", "i don't think", "but actually", "contrary"]
STRONG_DISAGREEMENT_MARKERS = ["disagree", "not true", "incorrect"]
COMPROMISE_MARKERS = [
    "compromise", "middle ground", "agree partially", "common ground",
    "both right", "see your point", "fair enough",
]
MEDIATION_MARKERS = [
    "let's find common ground", "can we agree", "find a compromise",
    "middle ground", "both have valid points",
]
AGREEMENT_MARKERS = ["agree", "good point", "exactly", "right"]
PROGRESS_MARKERS = ["agree", "good point", "see your point"]
REJECTION_MARKERS = ["disagree", "not true", "incorrect", "wrong"]


class ConsensusSeekingConfig(BaseModel):
    target_agreement: float = Field(0.8, ge=0.0, le=1.0)
    compromise_willingness: float = Field(0.7, ge=0.0, le=1.0)
    patience_decay_rate: float = Field(0.05, ge=0.0, le=1.0)
    active_mediation: bool = False


def _ratio(hits: int, total: int) -> float:
    return min(1.0, hits / max(1, total) * 1.5)


class ConsensusSeekingMotivation(Motivation):
    """Speaks up when disagreement is unaddressed or compromise is emerging."""

    id = "consensus-seeking"
    name = "Consensus Seeking"

    def __init__(self, config: Optional[ConsensusSeekingConfig] = None):
        self.config = config or ConsensusSeekingConfig()

    def calculate_desire(self, participant, state: MotivationState, context: MotivationContext) -> float:
        disagreement = self.analyze_disagreement(context.history)
        compromises = self.detect_compromises(context.history)

        if disagreement > 0.3 and compromises > 0:
            return min(0.9, disagreement + compromises * 0.3)

        if disagreement > 0.6 and not self.disagreement_addressed(context.history):
            return 0.8

        average = state.average_agreement
        if average is not None and average > self.config.target_agreement:
            return 0.1

        if self.config.active_mediation and disagreement > 0.4:
            return min(0.85, 0.5 + disagreement * 0.5)

        return 0.3 + disagreement * 0.3

    def update_state(self, state: MotivationState, turn: DialogueTurn, context: MotivationContext) -> MotivationState:
        new_state = state.copy()

        message = turn.message.lower()
        if contains_any(message, AGREEMENT_MARKERS):
            current = new_state.agreement.get(turn.participant_id, 0.5)
            new_state.agreement[turn.participant_id] = min(1.0, current + 0.1)
        if contains_any(message, REJECTION_MARKERS):
            current = new_state.agreement.get(turn.participant_id, 0.5)
            new_state.agreement[turn.participant_id] = max(0.0, current - 0.15)

        new_state.topics_addressed.update(extract_topics(turn.message))

        progress = self.consensus_progress(context.history)
        emotion = new_state.emotional_state
        emotion.valence = clamp(emotion.valence + (0.1 if progress > 0 else -0.1), -1.0, 1.0)

        disagreement = self.quick_disagreement(context.history)
        if disagreement > 0.5 and not self.disagreement_addressed(context.history):
            new_state.urgency = min(1.0, new_state.urgency + self.config.patience_decay_rate)
        elif progress > 0:
            new_state.urgency = max(0.0, new_state.urgency - 0.1)

        average = new_state.average_agreement
        if average is not None:
            if average > self.config.target_agreement:
                new_state.satisfaction = min(1.0, new_state.satisfaction + 0.2)
            else:
                new_state.satisfaction = max(0.0, new_state.satisfaction - 0.1)

        return new_state

    def is_satisfied(self, state: MotivationState) -> bool:
        average = state.average_agreement
        return average is not None and average >= self.config.target_agreement

    # ----- detectors ----- #

    @staticmethod
    def analyze_disagreement(history: Sequence[DialogueTurn]) -> float:
        recent = history[-5:]
        hits = 0
        for turn in recent:
            message = turn.message.lower()
            # a short message containing "no" reads as a flat rejection
            if contains_any(message, DISAGREEMENT_MARKERS) or ("no" in message and len(message) < 100):
                hits += 1
        return _ratio(hits, len(recent))

    @staticmethod
    def quick_disagreement(history: Sequence[DialogueTurn]) -> float:
        recent = history[-3:]
        hits = sum(1 for turn in recent if contains_any(turn.message, STRONG_DISAGREEMENT_MARKERS))
        return _ratio(hits, len(recent))

    @staticmethod
    def detect_compromises(history: Sequence[DialogueTurn]) -> float:
        recent = history[-5:]
        hits = sum(1 for turn in recent if contains_any(turn.message, COMPROMISE_MARKERS))
        return _ratio(hits, len(recent))

    @staticmethod
    def disagreement_addressed(history: Sequence[DialogueTurn]) -> bool:
        return any(contains_any(turn.message, MEDIATION_MARKERS) for turn in history[-2:])

    @staticmethod
    def consensus_progress(history: Sequence[DialogueTurn]) -> float:
        if len(history) < 3:
            return 0.0
        recent = history[-3:]
        agreements = sum(1 for turn in recent if contains_any(turn.message, PROGRESS_MARKERS))
        disagreements = sum(1 for turn in recent if contains_any(turn.message, STRONG_DISAGREEMENT_MARKERS))
        return (agreements - disagreements) / len(recent)
