"""Urgency-driven interruption bidding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..session import DialogueMessage, DialogueState
from .base import BiddingStrategy
from .context import Bid, BidContext, clamp, role_name

logger = logging.getLogger(__name__)

AUTHORITY_ROLES = ("moderator", "facilitator", "authority")
URGENCY_KEYWORDS = [
    "urgent", "important", "critical", "emergency", "immediately",
    "correct", "wrong", "mistake", "error", "false",
    "danger", "risk", "warning", "alert", "attention",
]
CONTRADICTION_KEYWORDS = [
    "actually", "in fact", "contrary", "rather", "instead",
    "not", "incorrect", "wrong", "mistaken", "error",
    "no,", "disagree", "false", "untrue", "misunderstood",
]

KEYWORD_URGENCY = 0.7
ADDRESSED_URGENCY = 0.6
CONTRADICTION_URGENCY = 0.85
# share of the maximum boost granted when urgency was only inferred from text
DETECTED_BOOST_SHARE = 0.7


@dataclass
class DetectedUrgency:
    level: float = 0.0
    reason: str = "No urgent need"


class InterruptionBiddingStrategy(BiddingStrategy):
    """Boosts a bid when urgency crosses a threshold and interrupting is acceptable.

    Args:
        base_strength: Bid without interruption
        urgency_threshold: Minimum urgency to interrupt, clamped to [0.5, 0.95]
        max_interruption_boost: Largest boost applied, clamped to [0.1, 0.5]
    """

    def __init__(
        self,
        base_strength: float = 0.5,
        urgency_threshold: float = 0.8,
        max_interruption_boost: float = 0.4,
    ):
        self.base_strength = clamp(base_strength)
        self.urgency_threshold = clamp(urgency_threshold, 0.5, 0.95)
        self.max_interruption_boost = clamp(max_interruption_boost, 0.1, 0.5)

    def calculate_bid(self, context: BidContext) -> Bid:
        state = context.dialogue_state
        strength = self.base_strength
        interrupting = False
        reason = ""

        if context.urgency_level is not None:
            urgency = context.urgency_level
            if urgency >= self.urgency_threshold and self.interruption_allowed(context, urgency):
                interrupting = True
                boost = (
                    (urgency - self.urgency_threshold)
                    / (1 - self.urgency_threshold)
                    * self.max_interruption_boost
                )
                strength = min(1.0, self.base_strength + boost)
                reason = context.urgency_reason or "High urgency"
        else:
            detected = self.detect_urgency(state, context.participant_id)
            if detected.level >= self.urgency_threshold and self.interruption_allowed(context, detected.level):
                interrupting = True
                strength = min(1.0, self.base_strength + self.max_interruption_boost * DETECTED_BOOST_SHARE)
                reason = detected.reason

        if interrupting:
            logger.debug(f"{context.participant_id} bids to interrupt: {reason}")

        return Bid(
            participant_id=context.participant_id,
            strength=strength,
            reason=(
                f"Interruption bidding ({reason})" if interrupting else "Interruption bidding (no urgent need)"
            ),
            metadata={
                "is_interruption": interrupting,
                "urgency_level": context.urgency_level,
                "urgency_reason": reason,
            },
        )

    def interruption_allowed(self, context: BidContext, urgency: float) -> bool:
        if context.interruption_allowed is False:
            return False

        state = context.dialogue_state
        if not state.messages:
            return False

        speaker_id = state.messages[-1].participant_id
        if speaker_id == context.participant_id:
            return False

        speaker = state.get_participant(speaker_id)
        if speaker is not None and role_name(speaker) in AUTHORITY_ROLES:
            return urgency > self.urgency_threshold + 0.1

        if any(message.metadata.get("is_interruption") for message in state.recent_messages(3)):
            return urgency > self.urgency_threshold + 0.05

        return True

    @staticmethod
    def detect_urgency(state: DialogueState, participant_id: str) -> DetectedUrgency:
        """Infer urgency from the last five messages."""

        detected = DetectedUrgency()
        recent = state.recent_messages(5)
        participant = state.get_participant(participant_id)
        name = participant.name if participant else None

        for message in recent:
            content = message.content.lower()
            keyword = next((k for k in URGENCY_KEYWORDS if k in content), None)
            if keyword is not None:
                detected.level = max(detected.level, KEYWORD_URGENCY)
                detected.reason = f'Detected urgency keyword: "{keyword}"'

            if message.participant_id != participant_id:
                if participant_id in message.content or (name and name in message.content):
                    detected.level = max(detected.level, ADDRESSED_URGENCY)
                    detected.reason = "Directly addressed in conversation"

        if _factual_contradiction(recent, participant_id, name or participant_id):
            detected.level = max(detected.level, CONTRADICTION_URGENCY)
            detected.reason = "Potential factual contradiction"

        return detected


def _factual_contradiction(
    messages: Sequence[DialogueMessage],
    participant_id: str,
    participant_name: Optional[str],
) -> bool:
    """Someone mentions the participant and the next speaker contradicts it."""

    for first, second in zip(messages, messages[1:]):
        if participant_id in (first.participant_id, second.participant_id):
            continue
        mentioned = participant_id in first.content or (participant_name and participant_name in first.content)
        if not mentioned:
            continue
        reply = second.content.lower()
        if any(keyword in reply for keyword in CONTRADICTION_KEYWORDS):
            return True
    return False
