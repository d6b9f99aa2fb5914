"""Model price table and tier presets used for cost accounting."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class ModelPrice:
    """Cost in USD per 1,000 input and output tokens."""

    input_cost_per_1k: float
    output_cost_per_1k: float


DEFAULT_PRICE_KEY = "default"

MODEL_PRICING: Dict[str, ModelPrice] = {
    # OpenAI
    "openai/gpt-4": ModelPrice(0.03, 0.06),
    "openai/gpt-4o": ModelPrice(0.01, 0.03),
    "openai/gpt-4o-mini": ModelPrice(0.0015, 0.006),
    "openai/gpt-4-turbo": ModelPrice(0.01, 0.03),
    "openai/gpt-4-1106-preview": ModelPrice(0.01, 0.03),
    "openai/gpt-4-vision-preview": ModelPrice(0.01, 0.03),
    "openai/gpt-3.5-turbo": ModelPrice(0.0005, 0.0015),
    "openai/gpt-3.5-turbo-16k": ModelPrice(0.001, 0.002),
    # Anthropic
    "anthropic/claude-3.7-sonnet": ModelPrice(0.008, 0.024),
    "anthropic/claude-3.5-sonnet": ModelPrice(0.003, 0.015),
    "anthropic/claude-3.5-haiku": ModelPrice(0.00025, 0.00125),
    "anthropic/claude-3-opus": ModelPrice(0.015, 0.075),
    "anthropic/claude-3-sonnet": ModelPrice(0.003, 0.015),
    "anthropic/claude-3-haiku": ModelPrice(0.00025, 0.00125),
    "anthropic/claude-2": ModelPrice(0.008, 0.024),
    "anthropic/claude-2.1": ModelPrice(0.008, 0.024),
    "anthropic/claude-instant-1": ModelPrice(0.0008, 0.0024),
    # Google
    "google/gemini-pro": ModelPrice(0.00025, 0.0005),
    "google/gemini-ultra": ModelPrice(0.01, 0.03),
    "google/gemma-3-4b-instruct": ModelPrice(0.0001, 0.0001),
    "google/gemma-3-27b-instruct": ModelPrice(0.0005, 0.0005),
    # Mistral
    "mistral/mistral-7b-instruct": ModelPrice(0.0002, 0.0002),
    "mistral/mistral-small": ModelPrice(0.0007, 0.0007),
    "mistral/mistral-medium": ModelPrice(0.0027, 0.0027),
    "mistral/mistral-large": ModelPrice(0.008, 0.024),
    "mistral/mixtral-8x7b-instruct": ModelPrice(0.0006, 0.0006),
    "mistralai/mistral-large-2411": ModelPrice(0.008, 0.024),
    "mistralai/mistral-small-2402": ModelPrice(0.0007, 0.0007),
    "mistralai/mistral-7b-instruct-v0.2": ModelPrice(0.0002, 0.0002),
    # Meta
    "meta/llama-2-13b-chat": ModelPrice(0.0004, 0.0004),
    "meta/llama-2-70b-chat": ModelPrice(0.0008, 0.0008),
    "meta/llama-3-8b-instruct": ModelPrice(0.0002, 0.0002),
    "meta/llama-3-70b-instruct": ModelPrice(0.0015, 0.0015),
    "meta/llama-3.1-8b-instruct": ModelPrice(0.0002, 0.0002),
    "meta/llama-3.1-70b-instruct": ModelPrice(0.0008, 0.0008),
    # DeepSeek
    "deepseek/deepseek-r1": ModelPrice(0.008, 0.024),
    "deepseek/deepseek-coder": ModelPrice(0.005, 0.015),
    # Cohere
    "cohere/command": ModelPrice(0.0005, 0.0015),
    "cohere/command-light": ModelPrice(0.0003, 0.0006),
    "cohere/command-r": ModelPrice(0.001, 0.003),
    "cohere/command-r-plus": ModelPrice(0.003, 0.015),
    DEFAULT_PRICE_KEY: ModelPrice(0.005, 0.015),
}


def resolve_price(model: str, pricing: Optional[Mapping[str, ModelPrice]] = None) -> ModelPrice:
    """Look up the price for ``model``.

    Exact matches win; otherwise the longest table key that prefixes the model
    name is used (so dated variants inherit their family's price), and unknown
    models fall back to the default rate.
    """

    table = pricing if pricing is not None else MODEL_PRICING
    if model in table:
        return table[model]

    best_key: Optional[str] = None
    for key in table:
        if key == DEFAULT_PRICE_KEY or not model.startswith(key):
            continue
        if best_key is None or len(key) > len(best_key):
            best_key = key
    if best_key is not None:
        return table[best_key]

    return table.get(DEFAULT_PRICE_KEY, MODEL_PRICING[DEFAULT_PRICE_KEY])


def calculate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    pricing: Optional[Mapping[str, ModelPrice]] = None,
) -> float:
    price = resolve_price(model, pricing)
    input_cost = (max(0, input_tokens) / 1000) * price.input_cost_per_1k
    output_cost = (max(0, output_tokens) / 1000) * price.output_cost_per_1k
    return input_cost + output_cost


# ------------------------------------------------------------------ #
# Model tiers
# ------------------------------------------------------------------ #


class ModelTier(str, Enum):
    """Quality/cost bands for picking a default model and its fallbacks."""

    ELITE = "elite"
    PREMIUM = "premium"
    STANDARD = "standard"
    BUDGET = "budget"


class UnknownModelTierError(ValueError):
    """Raised when a caller references a tier that has no configuration."""


class TierConfig(BaseModel):
    """Default model, fallbacks and generation limits for a tier."""

    default_model: str
    fallback_models: List[str] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 1000


MODEL_TIERS: Dict[ModelTier, TierConfig] = {
    ModelTier.ELITE: TierConfig(
        default_model="anthropic/claude-3.7-sonnet",
        fallback_models=["deepseek/deepseek-r1", "openai/gpt-4o"],
        max_tokens=4000,
    ),
    ModelTier.PREMIUM: TierConfig(
        default_model="openai/gpt-4o",
        fallback_models=["anthropic/claude-3.5-sonnet", "mistralai/mistral-large-2411"],
        max_tokens=3000,
    ),
    ModelTier.STANDARD: TierConfig(
        default_model="openai/gpt-4o-mini",
        fallback_models=["anthropic/claude-3.5-haiku", "mistralai/mistral-small-2402"],
        max_tokens=2500,
    ),
    ModelTier.BUDGET: TierConfig(
        default_model="meta/llama-3.1-8b-instruct",
        fallback_models=["google/gemma-3-4b-instruct", "mistralai/mistral-7b-instruct-v0.2"],
        max_tokens=2000,
    ),
}


def get_model_tier_config(tier: ModelTier | str) -> TierConfig:
    try:
        key = ModelTier(tier.lower() if isinstance(tier, str) else tier)
    except ValueError as exc:
        raise UnknownModelTierError(f"Unknown model tier: {tier}") from exc

    config = MODEL_TIERS.get(key)
    if config is None:
        raise UnknownModelTierError(f"Unknown model tier: {tier}")
    return config.model_copy(deep=True)
