"""
Core backend primitives for the Convenings runtime.

Modules under ``convenings_core`` provide shared infrastructure for dialogue
sessions: token/cost accounting, model pricing and tiers, the event hook, and
a budget-aware router in front of a host-supplied completion backend.
"""

from .budget import (
    BudgetConfig,
    BudgetExceededError,
    BudgetLedger,
    BudgetStatus,
    ModelUsage,
    UsageProjection,
    UsageReport,
    estimate_tokens,
)
from .events import Event, EventHook, EventType
from .model_router import ModelRouter
from .pricing import (
    MODEL_PRICING,
    MODEL_TIERS,
    ModelPrice,
    ModelTier,
    TierConfig,
    UnknownModelTierError,
    calculate_cost,
    get_model_tier_config,
    resolve_price,
)

__all__ = [
    "llm",
    "BudgetConfig",
    "BudgetExceededError",
    "BudgetLedger",
    "BudgetStatus",
    "ModelUsage",
    "UsageProjection",
    "UsageReport",
    "estimate_tokens",
    "Event",
    "EventHook",
    "EventType",
    "ModelRouter",
    "MODEL_PRICING",
    "MODEL_TIERS",
    "ModelPrice",
    "ModelTier",
    "TierConfig",
    "UnknownModelTierError",
    "calculate_cost",
    "get_model_tier_config",
    "resolve_price",
]
