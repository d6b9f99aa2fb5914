"""Motivation to challenge unsupported claims and resolve contradictions."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from ..bidding.context import clamp
from ..text import contains_any, extract_topics
from .base import DialogueTurn, Motivation, MotivationContext, MotivationState

CLAIM_MARKERS = ["is that", "i believe", "i think", "must be", "definitely", "certainly", "always", "never"]
SUPPORT_MARKERS = ["because", "evidence", "study", "research", "according to", "shows that", "demonstrates", "proof"]
AMBIGUITY_MARKERS = [
    "unclear", "ambiguous", "vague", "what do you mean",
    "could you clarify", "not sure what", "confusing",
]
EVIDENCE_REQUEST_MARKERS = [
    "do you have evidence for", "what's your source", "can you back that up",
    "how do you know", "what makes you say",
]
STRONG_EVIDENCE_MARKERS = [
    "research shows", "studies demonstrate", "evidence indicates",
    "according to data", "statistics show",
]
CAUSAL_MARKERS = ["because", "since", "as a result of", "due to"]
CITATION_MARKERS = ["according to", "cited in", "referenced by"]
STRONG_CLAIM_MARKERS = ["definitely", "certainly", "absolutely", "undoubtedly", "always", "never"]
HEDGED_CLAIM_MARKERS = ["i believe", "i think", "likely", "probably"]
CLAIM_SUPPORT_MARKERS = ["because", "evidence", "research", "according to", "suggests that"]
CONTRADICTION_MARKERS = ["actually", "incorrect", "not true", "i disagree", "wrong"]

# (affirmative in the previous message, negation in the reply)
NEGATION_PAIRS = [
    ("is", "isn't"),
    ("are", "aren't"),
    ("can", "can't"),
    ("will", "won't"),
    ("do", "don't"),
    ("does", "doesn't"),
]

_NUMERIC = re.compile(r"\d+%|\d+\.\d+")


class TruthSeekingConfig(BaseModel):
    evidence_threshold: float = Field(0.7, ge=0.0, le=1.0)
    questioning_rate: float = Field(0.6, ge=0.0, le=1.0)
    clarification_urgency: float = Field(0.8, ge=0.0, le=1.0)
    prioritize_uncertainty: bool = False


class TruthSeekingMotivation(Motivation):
    """Wants to speak when claims lack evidence, messages contradict, or meaning is unclear."""

    id = "truth-seeking"
    name = "Truth Seeking"

    def __init__(self, config: Optional[TruthSeekingConfig] = None):
        self.config = config or TruthSeekingConfig()

    def calculate_desire(self, participant, state: MotivationState, context: MotivationContext) -> float:
        history = context.history
        unsupported = self.unsubstantiated_claims(history)
        contradictions = self.detect_contradictions(history)
        ambiguities = self.identify_ambiguities(history)
        clarity_need = unsupported * 0.4 + contradictions * 0.4 + ambiguities * 0.2

        if clarity_need > 0.5 and not self.evidence_requested(history):
            return min(1.0, clarity_need * self.config.clarification_urgency)

        if self.recent_evidence(history) > self.config.evidence_threshold:
            return max(0.1, clarity_need * 0.3)

        if contradictions > 0.7 and self.config.prioritize_uncertainty:
            return min(0.9, 0.5 + contradictions * 0.4)

        return min(0.8, clarity_need * 0.7)

    def update_state(self, state: MotivationState, turn: DialogueTurn, context: MotivationContext) -> MotivationState:
        new_state = state.copy()
        new_state.topics_addressed.update(extract_topics(turn.message))

        quality = self.evidence_quality(turn.message)
        emotion = new_state.emotional_state
        emotion.valence = clamp(emotion.valence + (0.1 if quality > 0.5 else -0.1), -1.0, 1.0)

        if self.quick_contradiction(context.history) > 0.5:
            emotion.arousal = min(1.0, emotion.arousal + 0.1)
        else:
            emotion.arousal = max(0.0, emotion.arousal - 0.05)

        if self.quick_claim_check(turn.message) > 0.5:
            new_state.urgency = min(1.0, new_state.urgency + 0.2)
        elif quality > self.config.evidence_threshold:
            new_state.urgency = max(0.0, new_state.urgency - 0.15)

        if self.recent_evidence(context.history) > self.config.evidence_threshold:
            new_state.satisfaction = min(1.0, new_state.satisfaction + 0.1)
        else:
            new_state.satisfaction = max(0.0, new_state.satisfaction - 0.1)

        return new_state

    def is_satisfied(self, state: MotivationState) -> bool:
        return state.satisfaction > self.config.evidence_threshold

    # ----- detectors ----- #

    @staticmethod
    def unsubstantiated_claims(history: Sequence[DialogueTurn]) -> float:
        """Share of recent claims made without any supporting language."""

        claims = unsupported = 0
        for turn in history[-5:]:
            message = turn.message.lower()
            if not contains_any(message, CLAIM_MARKERS):
                continue
            claims += 1
            if not contains_any(message, SUPPORT_MARKERS):
                unsupported += 1
        if claims == 0:
            return 0.0
        return min(1.0, unsupported / claims)

    @staticmethod
    def detect_contradictions(history: Sequence[DialogueTurn]) -> float:
        recent = history[-8:]
        if len(recent) < 2:
            return 0.0

        hits = 0
        for previous, current in zip(recent, recent[1:]):
            before = previous.message.lower()
            after = current.message.lower()
            negated = any(plain in before and negation in after for plain, negation in NEGATION_PAIRS)
            refuted = ("contrary" in after and "to what" in after) or contains_any(
                after, ["that's incorrect", "that's wrong"]
            )
            if negated or refuted:
                hits += 1
        return min(1.0, hits / (len(recent) - 1) * 1.5)

    @staticmethod
    def identify_ambiguities(history: Sequence[DialogueTurn]) -> float:
        recent = history[-5:]
        if not recent:
            return 0.0
        hits = sum(1 for turn in recent if contains_any(turn.message, AMBIGUITY_MARKERS))
        return min(1.0, hits / len(recent) * 1.5)

    @staticmethod
    def recent_evidence(history: Sequence[DialogueTurn]) -> float:
        score = 0.0
        for turn in history[-5:]:
            message = turn.message.lower()
            turn_score = 0.0
            if contains_any(message, STRONG_EVIDENCE_MARKERS + ["proven by"]):
                turn_score += 0.3
            if contains_any(message, CAUSAL_MARKERS + ["example:"]):
                turn_score += 0.15
            if _NUMERIC.search(message) or contains_any(message, ["increase", "decrease"]):
                turn_score += 0.1
            score += min(0.4, turn_score)
        return min(1.0, score)

    @staticmethod
    def evidence_quality(message: str) -> float:
        lowered = message.lower()
        score = 0.0
        if contains_any(lowered, STRONG_EVIDENCE_MARKERS):
            score += 0.5
        if contains_any(lowered, CAUSAL_MARKERS):
            score += 0.3
        if _NUMERIC.search(lowered):
            score += 0.2
        if contains_any(lowered, CITATION_MARKERS):
            score += 0.4
        return min(1.0, score)

    @staticmethod
    def quick_contradiction(history: Sequence[DialogueTurn]) -> float:
        recent = history[-3:]
        if len(recent) < 2:
            return 0.0
        return 0.7 if contains_any(recent[-1].message, CONTRADICTION_MARKERS) else 0.0

    @staticmethod
    def quick_claim_check(message: str) -> float:
        strong = contains_any(message, STRONG_CLAIM_MARKERS)
        hedged = contains_any(message, HEDGED_CLAIM_MARKERS)
        supported = contains_any(message, CLAIM_SUPPORT_MARKERS)

        if strong and not supported:
            return 0.8
        if hedged and not supported:
            return 0.5
        if (strong or hedged) and supported:
            return 0.2
        return 0.0

    @staticmethod
    def evidence_requested(history: Sequence[DialogueTurn]) -> bool:
        return any(contains_any(turn.message, EVIDENCE_REQUEST_MARKERS) for turn in history[-2:])
