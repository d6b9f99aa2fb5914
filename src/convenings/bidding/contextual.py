"""Contextual bidding: term relevance, expertise match and thread continuity."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..session import DialogueMessage, DialogueState
from .base import BiddingStrategy
from .context import Bid, BidContext, SemanticContext, clamp


class ContextualBiddingStrategy(BiddingStrategy):
    """Bids higher when the active discussion matches the participant's expertise.

    With a ``semantic_context`` the bid blends term relevance (0.4), expertise
    match (0.4) and thread continuity (0.2) and adds half of that to the base.
    Without one, being addressed by id or name in the last three messages
    from others adds 0.3.
    """

    def __init__(self, base_strength: float = 0.5, keyword_weights: Optional[Dict[str, float]] = None):
        self.base_strength = clamp(base_strength)
        self.keyword_weights = dict(keyword_weights or {})

    def calculate_bid(self, context: BidContext) -> Bid:
        semantic = context.semantic_context
        participant_id = context.participant_id

        if semantic is None:
            return Bid(
                participant_id=participant_id,
                strength=self._addressed_strength(context.dialogue_state, participant_id),
                reason="Contextual bidding",
                metadata={"relevance_score": 0.0, "expertise_score": 0.0, "thread_relevance": 0.0},
            )

        relevance = self.term_relevance(semantic, participant_id)
        expertise = self.expertise_relevance(semantic, participant_id)
        thread = self.thread_relevance(semantic.thread_chain, context.dialogue_state.messages, participant_id)

        combined = relevance * 0.4 + expertise * 0.4 + thread * 0.2
        return Bid(
            participant_id=participant_id,
            strength=min(1.0, self.base_strength + combined * 0.5),
            reason=(
                f"Contextual bidding (term relevance: {relevance:.2f}, "
                f"expertise: {expertise:.2f}, thread: {thread:.2f})"
            ),
            metadata={
                "relevance_score": relevance,
                "expertise_score": expertise,
                "thread_relevance": thread,
            },
        )

    def term_relevance(self, semantic: SemanticContext, participant_id: str) -> float:
        terms = semantic.active_terms
        if not terms:
            return 0.2

        expertise = semantic.participant_expertise.get(participant_id, {})
        scores: List[float] = []
        for term in terms:
            score = 0.2
            score += expertise.get(term, 0.0) * 0.6
            score += self.keyword_weights.get(term, 0.0) * 0.4
            scores.append(score)

        return max(scores) * 0.7 + (sum(scores) / len(scores)) * 0.3

    @staticmethod
    def expertise_relevance(semantic: SemanticContext, participant_id: str) -> float:
        expertise = semantic.participant_expertise.get(participant_id)
        if not expertise:
            return 0.5

        matched = [expertise[term] for term in semantic.active_terms if expertise.get(term)]
        if not matched:
            return 0.3
        return sum(matched) / len(matched)

    @staticmethod
    def thread_relevance(
        thread_chain: Sequence[str],
        messages: Sequence[DialogueMessage],
        participant_id: str,
    ) -> float:
        if not thread_chain:
            return 0.5

        chain = [thread.lower() for thread in thread_chain]
        contributions = 0
        for message in messages[-5:]:
            if message.participant_id != participant_id:
                continue
            content = message.content.lower()
            if any(thread in content for thread in chain):
                contributions += 1

        if contributions > 0:
            return min(1.0, 0.6 + contributions * 0.1)
        return 0.4

    def _addressed_strength(self, state: DialogueState, participant_id: str) -> float:
        participant = state.get_participant(participant_id)
        name = participant.name if participant else None

        for message in state.recent_messages(3):
            if message.participant_id == participant_id:
                continue
            if participant_id in message.content or (name and name in message.content):
                return min(1.0, self.base_strength + 0.3)
        return self.base_strength
