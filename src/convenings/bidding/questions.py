"""Bidding that favours answering open questions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..session import DialogueMessage, DialogueState
from ..text import extract_key_terms, split_sentences
from .base import BiddingStrategy
from .context import Bid, BidContext, clamp, role_name

QUESTION_STARTERS = [
    "who ", "what ", "where ", "when ", "why ", "how ",
    "could you", "would you", "can you", "will you",
    "do you", "are you", "have you", "did you",
    "is there", "are there", "could there", "would there",
]

DIRECT_RELEVANCE = 1.0
ROLE_RELEVANCE = 0.8
EXPERTISE_RELEVANCE = 0.7
TOPICAL_RELEVANCE = 0.5


@dataclass
class QuestionScan:
    question_count: int = 0
    relevance: float = 0.0
    is_direct: bool = False

    @property
    def has_relevant_question(self) -> bool:
        return self.question_count > 0


def extract_questions(content: str) -> List[str]:
    """Sentences ending in "?" or containing interrogative/request phrasing."""

    questions = []
    for sentence in split_sentences(content):
        if sentence.endswith("?"):
            questions.append(sentence)
            continue
        lowered = sentence.lower()
        if any(starter in lowered for starter in QUESTION_STARTERS):
            questions.append(sentence)
    return questions


class QuestionRespondingBiddingStrategy(BiddingStrategy):
    """Raises the bid by relevance x ``question_boost`` for the most relevant open question."""

    def __init__(self, base_strength: float = 0.5, question_boost: float = 0.3):
        self.base_strength = clamp(base_strength)
        self.question_boost = clamp(question_boost, 0.0, 0.5)

    def calculate_bid(self, context: BidContext) -> Bid:
        state = context.dialogue_state
        scan = self.find_relevant_questions(state.recent_messages(10), context.participant_id, state)

        if not scan.has_relevant_question:
            return Bid(
                participant_id=context.participant_id,
                strength=self.base_strength,
                reason="Question responding (no relevant questions)",
            )

        return Bid(
            participant_id=context.participant_id,
            strength=min(1.0, self.base_strength + scan.relevance * self.question_boost),
            reason=f"Question responding ({scan.question_count} relevant questions)",
            metadata={
                "question_count": scan.question_count,
                "question_relevance": scan.relevance,
                "is_direct_question": scan.is_direct,
            },
        )

    def find_relevant_questions(
        self,
        messages: Sequence[DialogueMessage],
        participant_id: str,
        state: DialogueState,
    ) -> QuestionScan:
        participant = state.get_participant(participant_id)
        name = participant.name if participant else participant_id
        role = role_name(participant) if participant else ""
        metadata = getattr(participant, "metadata", None) or {}
        expertise_areas = [area.lower() for area in metadata.get("expertise_areas", [])]
        own_terms = self._own_key_terms(state, participant_id)

        scan = QuestionScan()
        for index, message in enumerate(messages):
            if message.participant_id == participant_id:
                continue
            if any(later.participant_id == participant_id for later in messages[index + 1:]):
                # already answered
                continue

            for question in extract_questions(message.content):
                lowered = question.lower()
                relevance = 0.0
                if name in question or participant_id in question:
                    relevance = DIRECT_RELEVANCE
                    scan.is_direct = True
                elif role and role in lowered:
                    relevance = ROLE_RELEVANCE
                elif any(area in lowered for area in expertise_areas):
                    relevance = EXPERTISE_RELEVANCE
                elif any(term in lowered for term in own_terms):
                    relevance = TOPICAL_RELEVANCE

                if relevance > 0:
                    scan.question_count += 1
                    scan.relevance = max(scan.relevance, relevance)

        return scan

    @staticmethod
    def _own_key_terms(state: DialogueState, participant_id: str) -> List[str]:
        own = [m.content for m in state.messages if m.participant_id == participant_id][-3:]
        if not own:
            return []
        return extract_key_terms(" ".join(own), limit=10)
