"""A participant driven by a weighted set of ``Motivation`` objects."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..bidding import Bid, clamp
from ..participants.base import DialogueParticipant, Responder
from ..session import DialogueMessage, DialogueState
from .base import DialogueTurn, Motivation, MotivationContext, MotivationState

logger = logging.getLogger(__name__)

BALANCED = "balanced"


class AggregationStrategy(str, Enum):
    WEIGHTED = "weighted"
    MAX = "max"
    PROBABILISTIC = "probabilistic"


@dataclass
class MotivationDesire:
    motivation: str
    desire: float
    weight: float

    @property
    def contribution(self) -> float:
        return self.desire * self.weight


class MotivationDrivenParticipant(DialogueParticipant):
    """Bids from the aggregated desires of its motivations.

    Each motivation keeps its own ``MotivationState``; states are replaced
    (never mutated) after every observed turn.
    """

    def __init__(
        self,
        name: str,
        responder: Optional[Responder] = None,
        *,
        motivations: Sequence[Tuple[Motivation, float]] = (),
        aggregation: AggregationStrategy = AggregationStrategy.WEIGHTED,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, responder, **kwargs)
        self.motivation_weights: List[Tuple[Motivation, float]] = list(motivations)
        self.aggregation = AggregationStrategy(aggregation)
        self.motivation_states: Dict[str, MotivationState] = {}
        self.reset_motivation_states()

    def reset_motivation_states(self) -> None:
        self.motivation_states = {motivation.id: MotivationState() for motivation, _ in self.motivation_weights}

    # ----- bidding ----- #

    async def calculate_bid(self, state: DialogueState, **extras: Any) -> Bid:
        return self.evaluate(MotivationContext.from_dialogue_state(state, self.id))

    def evaluate(self, context: MotivationContext) -> Bid:
        modifier = self.context_modifier(context)
        desires = self.desires(context)
        value = clamp(self.aggregate(desires) * modifier)
        return Bid(
            participant_id=self.id,
            strength=value,
            reason=self.explain_bid(desires),
            metadata={
                "motivation_breakdown": {d.motivation: d.desire for d in desires},
                "context_influence": self.explain_context_influence(modifier),
            },
        )

    def desires(self, context: MotivationContext) -> List[MotivationDesire]:
        return [
            MotivationDesire(
                motivation=motivation.id,
                desire=motivation.calculate_desire(self, self.motivation_states[motivation.id], context),
                weight=weight,
            )
            for motivation, weight in self.motivation_weights
        ]

    @staticmethod
    def context_modifier(context: MotivationContext) -> float:
        modifier = 1.0
        if context.turns_since_last_spoke > 3:
            modifier += min(0.3, context.turns_since_last_spoke * 0.05)
        if context.is_new_topic:
            modifier += 0.2
        if context.turns_since_last_spoke == 0:
            modifier -= 0.3
        return modifier

    def aggregate(self, desires: Sequence[MotivationDesire]) -> float:
        if not desires:
            return 0.0

        if self.aggregation is AggregationStrategy.MAX:
            return max(max(d.desire for d in desires), 0.0)

        total_weight = sum(d.weight for d in desires)
        if total_weight == 0:
            return 0.0
        weighted = sum(d.contribution for d in desires)
        if self.aggregation is AggregationStrategy.PROBABILISTIC:
            average_weight = total_weight / len(desires)
            return weighted / (len(desires) * average_weight)
        return weighted / total_weight

    @staticmethod
    def explain_bid(desires: Sequence[MotivationDesire]) -> str:
        top = sorted(desires, key=lambda d: d.contribution, reverse=True)[:2]
        if not top:
            return "No strong motivations to speak."
        if len(top) == 1:
            only = top[0]
            if only.desire > 0.7:
                return f"Strong desire to speak from {only.motivation}."
            if only.desire > 0.4:
                return f"Moderate desire to speak from {only.motivation}."
            return f"Weak desire to speak from {only.motivation}."
        first, second = top
        return (
            f"Driven by {first.motivation} ({round(first.desire * 100)}%) "
            f"and {second.motivation} ({round(second.desire * 100)}%)."
        )

    @staticmethod
    def explain_context_influence(modifier: float) -> str:
        if modifier > 1.2:
            return "Context strongly increased desire to speak."
        if modifier > 1.05:
            return "Context somewhat increased desire to speak."
        if modifier < 0.8:
            return "Context strongly decreased desire to speak."
        if modifier < 0.95:
            return "Context somewhat decreased desire to speak."
        return "Context had little effect on desire to speak."

    # ----- state ----- #

    def observe_message(self, message: DialogueMessage, state: DialogueState) -> None:
        context = MotivationContext.from_dialogue_state(state, self.id)
        self.update_motivation_states(DialogueTurn.from_message(message), context)

    def update_motivation_states(self, turn: DialogueTurn, context: MotivationContext) -> None:
        for motivation, _ in self.motivation_weights:
            current = self.motivation_states[motivation.id]
            self.motivation_states[motivation.id] = motivation.update_state(current, turn, context)

    def has_urgent_motivation(self, threshold: float = 0.7) -> bool:
        return any(state.urgency > threshold for state in self.motivation_states.values())

    def dominant_motivation(self, context: MotivationContext) -> Optional[str]:
        """Id of the motivation currently in charge, ``"balanced"`` or None.

        Several desires above 0.6 make the participant balanced; otherwise
        the strongest desire wins if it exceeds 0.4.
        """

        desires = self.desires(context)
        if not desires:
            return None

        strong = [d for d in desires if d.desire > 0.6]
        if len(strong) > 1:
            return BALANCED
        if len(strong) == 1:
            return strong[0].motivation

        strongest = max(desires, key=lambda d: d.desire)
        return strongest.motivation if strongest.desire > 0.4 else None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["motivation_states"] = {
            motivation_id: {"satisfaction": state.satisfaction, "urgency": state.urgency}
            for motivation_id, state in self.motivation_states.items()
        }
        return data
