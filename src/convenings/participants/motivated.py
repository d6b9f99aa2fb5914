"""Participants whose motivation map and mood drift with the conversation."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..bidding import (
    Bid,
    BiddingStrategy,
    CombinedBiddingStrategy,
    MotivationBiddingStrategy,
    TurnTakingBiddingStrategy,
    clamp,
)
from ..session import DialogueMessage, DialogueState
from ..text import contains_any
from .base import DialogueParticipant, Responder

logger = logging.getLogger(__name__)

DISAGREEMENT_TERMS = [
    "disagree", "not true", "incorrect", "i don't think",
    "no, ", "actually,", "on the contrary", "i disagree",
]
FACTUAL_TERMS = [
    "fact", "evidence", "study", "research", "according to",
    "statistics", "data", "proven", "scientific", "percentage",
]
CHALLENGE_TERMS = [
    "prove", "why do you", "how can you", "i challenge",
    "defend", "justify", "explain why", "evidence for",
]
AGREEMENT_TERMS = [
    "agree", "good point", "exactly", "that's right",
    "you're right", "i concur", "precisely", "indeed",
]

CONSENSUS_SEEKING = "consensus-seeking"
TRUTH_SEEKING = "truth-seeking"
COMPETITIVE = "competitive"


def _initial_emotions() -> Dict[str, float]:
    return {"interest": 0.5, "agreement": 0.5, "engagement": 0.5, "frustration": 0.0}


class MotivatedDialogueParticipant(DialogueParticipant):
    """A participant with a primary motivation and adaptive mood.

    The motivation map is built from ``secondary_motivations``, then the
    primary motivation at 1.0, then explicit ``motivations`` overrides. When
    ``adaptive_motivations`` is on, every observed message nudges the map and
    the emotional state (interest, agreement, engagement, frustration).
    """

    def __init__(
        self,
        name: str,
        responder: Optional[Responder] = None,
        *,
        primary_motivation: Optional[str] = None,
        secondary_motivations: Optional[Dict[str, float]] = None,
        adaptive_motivations: bool = True,
        motivation_bidding_weight: float = 0.6,
        motivations: Optional[Dict[str, float]] = None,
        bidding_strategy: Optional[BiddingStrategy] = None,
        **kwargs: Any,
    ) -> None:
        combined: Dict[str, float] = dict(secondary_motivations or {})
        if primary_motivation:
            combined[primary_motivation] = 1.0
        combined.update(motivations or {})

        if bidding_strategy is None:
            weight = clamp(motivation_bidding_weight)
            bidding_strategy = CombinedBiddingStrategy(
                [
                    (MotivationBiddingStrategy(0.7), weight),
                    (TurnTakingBiddingStrategy(0.5), 1 - weight),
                ]
            )

        super().__init__(name, responder, motivations=combined, bidding_strategy=bidding_strategy, **kwargs)
        self.primary_motivation = primary_motivation
        self.adaptive_motivations = adaptive_motivations
        self._initial_motivations = dict(self.motivations)
        self.emotional_state: Dict[str, float] = _initial_emotions()

    async def calculate_bid(self, state: DialogueState, **extras: Any) -> Bid:
        context = self.build_bid_context(state, **extras)
        context.context["emotional_state"] = dict(self.emotional_state)
        context.context["primary_motivation"] = self.primary_motivation
        return self.bidding_strategy(context)

    async def respond(self, prompt: str) -> str:
        return await super().respond(self.enhance_prompt_with_motivations(prompt))

    def observe_message(self, message: DialogueMessage, state: DialogueState) -> None:
        if not self.adaptive_motivations:
            return
        recent = state.recent_messages(3)
        self._drift_motivations(recent)
        self._drift_emotions(state, recent)

    def reset_motivations(self) -> None:
        self.motivations = dict(self._initial_motivations)
        self.emotional_state = _initial_emotions()

    def enhance_prompt_with_motivations(self, prompt: str) -> str:
        top = sorted(self.motivations.items(), key=lambda item: item[1], reverse=True)[:3]
        motivation_guidance = " ".join(
            f"You are {_strength_label(strength)} motivated by {name}." for name, strength in top
        )

        emotions = self.emotional_state
        emotional_guidance: List[str] = []
        if emotions["interest"] > 0.7:
            emotional_guidance.append("You are very interested in this topic.")
        if emotions["agreement"] < 0.3:
            emotional_guidance.append("You find yourself disagreeing with much of what has been said.")
        elif emotions["agreement"] > 0.7:
            emotional_guidance.append("You find yourself agreeing with much of what has been said.")
        if emotions["frustration"] > 0.7:
            emotional_guidance.append("You are feeling frustrated with the lack of progress.")
        if emotions["engagement"] < 0.3:
            emotional_guidance.append("Your engagement with this conversation is waning.")
        elif emotions["engagement"] > 0.7:
            emotional_guidance.append("You are deeply engaged in this conversation.")

        guidance = " ".join(part for part in [motivation_guidance, *emotional_guidance] if part)
        return "\n".join(["Here is information about your motivations and state:", guidance, "", prompt])

    # ----- drift ----- #

    def _drift_motivations(self, recent: Sequence[DialogueMessage]) -> None:
        if self.motivations.get(CONSENSUS_SEEKING) and _any_message(recent, DISAGREEMENT_TERMS):
            self._adjust(CONSENSUS_SEEKING, 0.1)
        if self.motivations.get(TRUTH_SEEKING) and _any_message(recent, FACTUAL_TERMS):
            self._adjust(TRUTH_SEEKING, 0.1)
        if self.motivations.get(COMPETITIVE) and _any_message(recent, CHALLENGE_TERMS):
            self._adjust(COMPETITIVE, 0.15)

    def _drift_emotions(self, state: DialogueState, recent: Sequence[DialogueMessage]) -> None:
        emotions = self.emotional_state
        relevant = self._topic_is_relevant(state.topic)
        emotions["interest"] = clamp(emotions["interest"] + (0.1 if relevant else -0.05))
        emotions["agreement"] = clamp(emotions["agreement"] + (0.1 if _any_message(recent, AGREEMENT_TERMS) else -0.05))
        emotions["engagement"] = clamp(emotions["engagement"] + (0.05 if state.current_turn < 10 else -0.05), 0.1, 1.0)

        disagreements = sum(1 for m in state.recent_messages(5) if contains_any(m.content, DISAGREEMENT_TERMS))
        if disagreements >= 2:
            emotions["frustration"] = clamp(emotions["frustration"] + 0.15)
        else:
            emotions["frustration"] = clamp(emotions["frustration"] - 0.05)

    def _adjust(self, motivation: str, amount: float) -> None:
        self.motivations[motivation] = clamp(self.motivations.get(motivation, 0.0) + amount)
        logger.debug(f"{self.name}: {motivation} motivation now {self.motivations[motivation]:.2f}")

    def _topic_is_relevant(self, topic: str) -> bool:
        topic_lower = topic.lower()
        return any(name.lower() in topic_lower for name in self.motivations)


def _strength_label(strength: float) -> str:
    if strength > 0.8:
        return "strongly"
    if strength > 0.5:
        return "moderately"
    return "somewhat"


def _any_message(messages: Sequence[DialogueMessage], terms: Sequence[str]) -> bool:
    return any(contains_any(message.content, terms) for message in messages)


def create_truth_seeking_participant(name: str, responder: Optional[Responder] = None, **kwargs: Any):
    return MotivatedDialogueParticipant(name, responder, primary_motivation=TRUTH_SEEKING, **kwargs)


def create_consensus_seeking_participant(name: str, responder: Optional[Responder] = None, **kwargs: Any):
    return MotivatedDialogueParticipant(name, responder, primary_motivation=CONSENSUS_SEEKING, **kwargs)
