"""Coalition-aware bidding and coalition formation heuristics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..session import DialogueMessage, DialogueState
from ..text import EXTENDED_STOPWORDS, extract_key_terms
from .base import BiddingStrategy
from .context import Bid, BidContext, Coalition, clamp

AGREEMENT_KEYWORDS = [
    "agree", "yes", "absolutely", "exactly", "correct",
    "right", "support", "concur", "same", "also",
    "too", "likewise", "indeed", "precisely", "definitely",
]
DEFAULT_COALITION_TOPIC = "Shared perspective"


@dataclass
class CoalitionProposal:
    should_form: bool
    topic: str = ""
    allies: List[str] = field(default_factory=list)
    strength: float = 0.0


@dataclass
class _PairAgreement:
    count: int = 0
    topics: List[str] = field(default_factory=list)


class CoalitionBiddingStrategy(BiddingStrategy):
    """Rotates speaking time inside a coalition and pushes back on a dominant opposing one."""

    def __init__(self, base_strength: float = 0.5, coalition_boost: float = 0.3):
        self.base_strength = clamp(base_strength)
        self.coalition_boost = clamp(coalition_boost)

    def calculate_bid(self, context: BidContext) -> Bid:
        participant_id = context.participant_id
        coalitions = context.coalitions

        own: Optional[Coalition] = next((c for c in coalitions if participant_id in c.members), None)
        if own is not None:
            factor = self.coalition_factor(own, participant_id, context.dialogue_state)
            return Bid(
                participant_id=participant_id,
                strength=min(1.0, self.base_strength + factor * self.coalition_boost),
                reason=f'Coalition bidding (member of "{own.topic}" coalition)',
                metadata={
                    "coalition_index": coalitions.index(own),
                    "coalition_strength": own.strength,
                    "coalition_factor": factor,
                },
            )

        opposing = [c for c in coalitions if participant_id not in c.members]
        if opposing:
            strongest = opposing[0]
            for coalition in opposing[1:]:
                if coalition.strength > strongest.strength:
                    strongest = coalition
            factor = self.opposition_factor(strongest, context.dialogue_state)
            return Bid(
                participant_id=participant_id,
                strength=min(1.0, self.base_strength + factor),
                reason=f'Coalition bidding (opposing "{strongest.topic}" coalition)',
                metadata={
                    "opposing_coalition_index": coalitions.index(strongest),
                    "opposing_coalition_strength": strongest.strength,
                    "opposition_factor": factor,
                },
            )

        return Bid(
            participant_id=participant_id,
            strength=self.base_strength,
            reason="Coalition bidding (no active coalition)",
        )

    @staticmethod
    def coalition_factor(coalition: Coalition, participant_id: str, state: DialogueState) -> float:
        factor = coalition.strength
        window = state.recent_messages(len(coalition.members))
        speakers = [m.participant_id for m in window if m.participant_id in coalition.members]

        if not speakers:
            # nobody from the coalition has spoken: the first member leads
            return factor if coalition.members.index(participant_id) == 0 else factor * 0.5
        if speakers[-1] == participant_id:
            return factor * 0.3
        if participant_id not in speakers:
            return min(1.0, factor * 1.2)
        return factor

    @staticmethod
    def opposition_factor(coalition: Coalition, state: DialogueState) -> float:
        opposing_messages = sum(1 for m in state.recent_messages(5) if m.participant_id in coalition.members)
        if opposing_messages >= 3:
            return 0.3
        if opposing_messages >= 1:
            return 0.1
        # a quiet opposing coalition lowers the urge to push back
        return -0.1


def should_form_coalition(
    state: DialogueState,
    participant_id: str,
    potential_allies: Optional[Sequence[str]] = None,
) -> CoalitionProposal:
    """Propose a coalition from repeated agreement in the last ten messages.

    A pair of consecutive messages by different speakers counts as agreement
    when the reply contains an agreement keyword. The best ally needs at
    least two such agreements with ``participant_id``.
    """
    allowed = list(potential_allies or [])
    if len(state.messages) < 3:
        return CoalitionProposal(should_form=False)

    agreements = _agreement_pairs(state.recent_messages(10))
    if not agreements:
        return CoalitionProposal(should_form=False)

    best_ally = ""
    best: Optional[_PairAgreement] = None
    for (first, second), data in agreements.items():
        if participant_id not in (first, second):
            continue
        ally = second if first == participant_id else first
        if allowed and ally not in allowed:
            continue
        if best is None or data.count > best.count:
            best_ally, best = ally, data

    if best is None or best.count < 2:
        return CoalitionProposal(should_form=False)

    topic = best.topics[0] if best.topics else DEFAULT_COALITION_TOPIC
    extra = _additional_allies(agreements, participant_id, best_ally, topic, allowed)
    return CoalitionProposal(
        should_form=True,
        topic=topic,
        allies=[best_ally, *extra],
        strength=min(0.8, 0.4 + best.count * 0.1),
    )


def _agreement_pairs(messages: Sequence[DialogueMessage]) -> Dict[Tuple[str, str], _PairAgreement]:
    pairs: Dict[Tuple[str, str], _PairAgreement] = {}
    for first, second in zip(messages, messages[1:]):
        if first.participant_id == second.participant_id:
            continue
        reply = second.content.lower()
        if not any(keyword in reply for keyword in AGREEMENT_KEYWORDS):
            continue

        key = tuple(sorted((first.participant_id, second.participant_id)))
        data = pairs.setdefault(key, _PairAgreement())  # type: ignore[arg-type]
        data.count += 1
        topic = _shared_topic(first.content, second.content)
        if topic not in data.topics:
            data.topics.append(topic)
    return pairs  # type: ignore[return-value]


def _shared_topic(first: str, second: str) -> str:
    first_terms = extract_key_terms(first, limit=5, stopwords=EXTENDED_STOPWORDS)
    second_terms = extract_key_terms(second, limit=5, stopwords=EXTENDED_STOPWORDS)
    common = [term for term in first_terms if term in second_terms]
    if common:
        return common[0]
    if first_terms:
        return first_terms[0]
    if second_terms:
        return second_terms[0]
    return DEFAULT_COALITION_TOPIC


def _additional_allies(
    agreements: Dict[Tuple[str, str], _PairAgreement],
    participant_id: str,
    primary_ally: str,
    topic: str,
    allowed: List[str],
) -> List[str]:
    core: Set[str] = {participant_id, primary_ally}
    extra: List[str] = []
    for (first, second), data in agreements.items():
        if data.count < 1 or topic not in data.topics:
            continue
        if first not in core and second not in core:
            continue
        candidate = second if first in core else first
        if candidate in core or candidate in extra:
            continue
        if allowed and candidate not in allowed:
            continue
        extra.append(candidate)
    return extra[:2]
