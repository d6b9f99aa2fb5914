"""Bidding strategy interface and the basic strategy primitives.

A strategy turns a ``BidContext`` into a ``Bid`` whose strength is in [0, 1].
Strategies are pure: they read the context and never mutate the session.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, Sequence, Tuple

from ..text import count_phrase_hits
from .context import Bid, BidContext, clamp

logger = logging.getLogger(__name__)

EMOTIONAL_ENGAGEMENT_KEYWORDS = [
    "agree", "disagree", "feel", "believe", "important",
    "concerned", "excited", "worried", "happy", "sad",
    "angry", "frustrated", "interested", "curious",
]


class BiddingStrategy(ABC):
    """Computes a participant's bid to speak next."""

    @abstractmethod
    def calculate_bid(self, context: BidContext) -> Bid:
        """Return a bid for ``context.participant_id``."""

    def __call__(self, context: BidContext) -> Bid:
        bid = self.calculate_bid(context)
        bid.strength = clamp(bid.strength)
        return bid


class StaticBiddingStrategy(BiddingStrategy):
    """Always bids the same strength."""

    def __init__(self, bid_strength: float):
        self.bid_strength = clamp(bid_strength)

    def calculate_bid(self, context: BidContext) -> Bid:
        return Bid(
            participant_id=context.participant_id,
            strength=self.bid_strength,
            reason="Static bidding strategy",
        )


class TurnTakingBiddingStrategy(BiddingStrategy):
    """Favours participants who have waited longest since they last spoke."""

    def __init__(self, base_strength: float = 0.5):
        self.base_strength = clamp(base_strength)

    def calculate_bid(self, context: BidContext) -> Bid:
        state = context.dialogue_state
        turns_since = state.turns_since_last_spoke(context.participant_id)

        if turns_since is None:
            strength = min(1.0, self.base_strength + 0.4)
        elif turns_since >= state.participant_count:
            strength = min(1.0, self.base_strength + 0.2)
        elif turns_since > 0:
            strength = self.base_strength
        else:
            strength = max(0.0, self.base_strength - 0.3)

        label = math.inf if turns_since is None else turns_since
        return Bid(
            participant_id=context.participant_id,
            strength=strength,
            reason=f"Turn-taking bidding ({label} turns since last spoke)",
        )


class MotivationBiddingStrategy(BiddingStrategy):
    """Bids from topic relevance of motivations and emotional engagement.

    Reads ``context.context["motivations"]`` (name -> strength). Without
    motivations the base strength is returned unchanged.
    """

    def __init__(self, base_strength: float = 0.5):
        self.base_strength = clamp(base_strength)

    def calculate_bid(self, context: BidContext) -> Bid:
        state = context.dialogue_state
        motivations: Optional[Mapping[str, float]] = context.context.get("motivations")

        strength = self.base_strength
        reason = "Motivation-based bidding"
        if motivations:
            relevance = self.topic_relevance(state.topic, motivations)
            engagement = self.emotional_engagement(context)
            strength = min(1.0, self.base_strength + relevance * 0.3 + engagement * 0.2)
            reason = (
                f"Motivation-based bidding (topic relevance: {relevance:.2f}, "
                f"emotional engagement: {engagement:.2f})"
            )

        return Bid(
            participant_id=context.participant_id,
            strength=strength,
            reason=reason,
            metadata={"motivations": dict(motivations) if motivations else None},
        )

    @staticmethod
    def topic_relevance(topic: str, motivations: Mapping[str, float]) -> float:
        """Strongest motivation whose name appears in the topic."""

        topic_lower = topic.lower()
        relevance = 0.0
        for name, strength in motivations.items():
            if name.lower() in topic_lower:
                relevance = max(relevance, strength)
        return relevance

    @staticmethod
    def emotional_engagement(context: BidContext) -> float:
        hits = 0
        for message in context.dialogue_state.recent_messages(5):
            if message.participant_id != context.participant_id:
                hits += count_phrase_hits(message.content, EMOTIONAL_ENGAGEMENT_KEYWORDS)
        return min(1.0, hits / 5)


class CombinedBiddingStrategy(BiddingStrategy):
    """Weighted sum of several strategies.

    Weights are normalised to sum to 1 at construction (unless they sum to 0).
    """

    def __init__(self, strategies: Sequence[Tuple[BiddingStrategy, float]]):
        if not strategies:
            raise ValueError("CombinedBiddingStrategy requires at least one strategy")

        total = sum(weight for _, weight in strategies)
        if total > 0:
            self.strategies: List[Tuple[BiddingStrategy, float]] = [
                (strategy, weight / total) for strategy, weight in strategies
            ]
        else:
            self.strategies = list(strategies)

    @property
    def weights(self) -> List[float]:
        return [weight for _, weight in self.strategies]

    def calculate_bid(self, context: BidContext) -> Bid:
        bids = [strategy(context) for strategy, _ in self.strategies]

        combined = sum(bid.strength * weight for bid, (_, weight) in zip(bids, self.strategies))
        reasons = " | ".join(bid.reason for bid in bids)
        return Bid(
            participant_id=context.participant_id,
            strength=clamp(combined),
            reason=f"Combined bidding: {reasons}",
            metadata={"individual_bids": bids},
        )


def create_default_bidding_strategy() -> CombinedBiddingStrategy:
    """Turn-taking (0.6 weight) blended with motivation (0.4 weight)."""

    return CombinedBiddingStrategy(
        [
            (TurnTakingBiddingStrategy(0.6), 0.6),
            (MotivationBiddingStrategy(0.4), 0.4),
        ]
    )
