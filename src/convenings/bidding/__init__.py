"""Bidding strategies: how much each participant wants to speak next."""

from .base import (
    BiddingStrategy,
    CombinedBiddingStrategy,
    MotivationBiddingStrategy,
    StaticBiddingStrategy,
    TurnTakingBiddingStrategy,
    create_default_bidding_strategy,
)
from .coalition import CoalitionBiddingStrategy, CoalitionProposal, should_form_coalition
from .context import Bid, BidContext, Coalition, EmotionalState, SemanticContext, clamp
from .contextual import ContextualBiddingStrategy
from .emotional import EmotionalBiddingStrategy
from .factory import (
    AdvancedStrategyConfig,
    create_advanced_strategy,
    create_brainstorming_strategy,
    create_consensus_strategy,
    create_debate_strategy,
    create_default_advanced_strategy,
    create_moderator_strategy,
)
from .interruption import InterruptionBiddingStrategy
from .questions import QuestionRespondingBiddingStrategy, extract_questions

__all__ = [
    "Bid",
    "BidContext",
    "Coalition",
    "EmotionalState",
    "SemanticContext",
    "clamp",
    "BiddingStrategy",
    "StaticBiddingStrategy",
    "TurnTakingBiddingStrategy",
    "MotivationBiddingStrategy",
    "CombinedBiddingStrategy",
    "create_default_bidding_strategy",
    "ContextualBiddingStrategy",
    "EmotionalBiddingStrategy",
    "CoalitionBiddingStrategy",
    "CoalitionProposal",
    "should_form_coalition",
    "InterruptionBiddingStrategy",
    "QuestionRespondingBiddingStrategy",
    "extract_questions",
    "AdvancedStrategyConfig",
    "create_advanced_strategy",
    "create_default_advanced_strategy",
    "create_debate_strategy",
    "create_consensus_strategy",
    "create_brainstorming_strategy",
    "create_moderator_strategy",
]
