"""Preset strategy mixes for common dialogue formats."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .base import BiddingStrategy, CombinedBiddingStrategy, StaticBiddingStrategy, TurnTakingBiddingStrategy
from .coalition import CoalitionBiddingStrategy
from .contextual import ContextualBiddingStrategy
from .emotional import EmotionalBiddingStrategy
from .interruption import InterruptionBiddingStrategy
from .questions import QuestionRespondingBiddingStrategy


class WeightedComponent(BaseModel):
    weight: float = Field(ge=0.0)
    base_strength: float = 0.5


class ContextualComponent(WeightedComponent):
    keyword_weights: Dict[str, float] = Field(default_factory=dict)


class EmotionalComponent(WeightedComponent):
    emotional_responsiveness: float = 0.7


class CoalitionComponent(WeightedComponent):
    coalition_boost: float = 0.3


class InterruptionComponent(WeightedComponent):
    urgency_threshold: float = 0.8
    max_interruption_boost: float = 0.4


class QuestionComponent(WeightedComponent):
    question_boost: float = 0.3


class StaticComponent(BaseModel):
    weight: float = Field(ge=0.0)
    bid_strength: float


class AdvancedStrategyConfig(BaseModel):
    """Which strategies to mix and with what weights. Absent entries are left out."""

    contextual: Optional[ContextualComponent] = None
    emotional: Optional[EmotionalComponent] = None
    coalition: Optional[CoalitionComponent] = None
    interruption: Optional[InterruptionComponent] = None
    question_responding: Optional[QuestionComponent] = None
    turn_taking: Optional[WeightedComponent] = None
    static: Optional[StaticComponent] = None


def create_advanced_strategy(config: AdvancedStrategyConfig | dict) -> BiddingStrategy:
    """Build a combined strategy from ``config``; an empty config gives the default advanced mix."""

    if isinstance(config, dict):
        config = AdvancedStrategyConfig.model_validate(config)

    strategies: List[Tuple[BiddingStrategy, float]] = []
    if config.contextual:
        c = config.contextual
        strategies.append((ContextualBiddingStrategy(c.base_strength, c.keyword_weights), c.weight))
    if config.emotional:
        e = config.emotional
        strategies.append((EmotionalBiddingStrategy(e.base_strength, e.emotional_responsiveness), e.weight))
    if config.coalition:
        co = config.coalition
        strategies.append((CoalitionBiddingStrategy(co.base_strength, co.coalition_boost), co.weight))
    if config.interruption:
        i = config.interruption
        strategies.append(
            (
                InterruptionBiddingStrategy(i.base_strength, i.urgency_threshold, i.max_interruption_boost),
                i.weight,
            )
        )
    if config.question_responding:
        q = config.question_responding
        strategies.append((QuestionRespondingBiddingStrategy(q.base_strength, q.question_boost), q.weight))
    if config.turn_taking:
        t = config.turn_taking
        strategies.append((TurnTakingBiddingStrategy(t.base_strength), t.weight))
    if config.static:
        strategies.append((StaticBiddingStrategy(config.static.bid_strength), config.static.weight))

    if not strategies:
        return create_default_advanced_strategy()
    return CombinedBiddingStrategy(strategies)


def create_default_advanced_strategy() -> CombinedBiddingStrategy:
    return CombinedBiddingStrategy(
        [
            (TurnTakingBiddingStrategy(0.5), 0.3),
            (ContextualBiddingStrategy(0.5), 0.3),
            (EmotionalBiddingStrategy(0.5), 0.2),
            (QuestionRespondingBiddingStrategy(0.5), 0.1),
            (InterruptionBiddingStrategy(0.5), 0.1),
        ]
    )


def create_debate_strategy() -> CombinedBiddingStrategy:
    """Responsiveness and rebuttal-friendly interruptions."""

    return CombinedBiddingStrategy(
        [
            (TurnTakingBiddingStrategy(0.5), 0.2),
            (ContextualBiddingStrategy(0.6), 0.3),
            (QuestionRespondingBiddingStrategy(0.5, 0.4), 0.2),
            (InterruptionBiddingStrategy(0.5, 0.85, 0.4), 0.2),
            (EmotionalBiddingStrategy(0.5, 0.6), 0.1),
        ]
    )


def create_consensus_strategy() -> CombinedBiddingStrategy:
    """Coalition-heavy mix for agreement building."""

    return CombinedBiddingStrategy(
        [
            (TurnTakingBiddingStrategy(0.5), 0.2),
            (ContextualBiddingStrategy(0.5), 0.2),
            (CoalitionBiddingStrategy(0.5, 0.4), 0.3),
            (EmotionalBiddingStrategy(0.5, 0.8), 0.2),
            (QuestionRespondingBiddingStrategy(0.5), 0.1),
        ]
    )


def create_brainstorming_strategy() -> CombinedBiddingStrategy:
    return CombinedBiddingStrategy(
        [
            (TurnTakingBiddingStrategy(0.6), 0.3),
            (ContextualBiddingStrategy(0.4), 0.3),
            (EmotionalBiddingStrategy(0.4, 0.9), 0.3),
            (InterruptionBiddingStrategy(0.5, 0.7, 0.5), 0.1),
        ]
    )


def create_moderator_strategy() -> CombinedBiddingStrategy:
    """Interrupt-prone and question-focused, suited to a facilitator."""

    return CombinedBiddingStrategy(
        [
            (InterruptionBiddingStrategy(0.5, 0.7, 0.5), 0.4),
            (QuestionRespondingBiddingStrategy(0.5, 0.4), 0.3),
            (ContextualBiddingStrategy(0.5), 0.2),
            (TurnTakingBiddingStrategy(0.4), 0.1),
        ]
    )
