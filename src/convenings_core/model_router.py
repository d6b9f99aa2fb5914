"""Budget-aware routing of prompts to a host-supplied completion backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from .budget import BudgetExceededError, BudgetLedger, estimate_tokens
from .llm import CompletionFn, CompletionRequest, CompletionResult, is_async_callable, normalise_completion
from .pricing import ModelTier, get_model_tier_config

logger = logging.getLogger(__name__)

Responder = Callable[[str], Awaitable[str]]


class ModelRouter:
    """Dispatch prompts through a completion callable with budget checks.

    Before each dispatch the ledger is asked whether the worst case (prompt
    tokens plus ``max_tokens`` of output) still fits the configured ceilings.
    When the default model fails, or is rejected by the ledger, the fallback
    models are tried in order.
    """

    def __init__(
        self,
        completion_fn: CompletionFn,
        *,
        default_model: str,
        fallback_models: Optional[Sequence[str]] = None,
        ledger: Optional[BudgetLedger] = None,
        max_tokens: int = 1000,
        temperature: Optional[float] = 0.7,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")

        self._completion_fn = completion_fn
        self._is_async = is_async_callable(completion_fn)
        self.default_model = default_model
        self.fallback_models: List[str] = list(fallback_models or [])
        self.ledger = ledger
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_tier(
        cls,
        completion_fn: CompletionFn,
        tier: ModelTier | str,
        *,
        ledger: Optional[BudgetLedger] = None,
    ) -> "ModelRouter":
        config = get_model_tier_config(tier)
        return cls(
            completion_fn,
            default_model=config.default_model,
            fallback_models=config.fallback_models,
            ledger=ledger,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def complete(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        """Complete ``prompt``, falling back to alternate models on failure."""

        primary = model or self.default_model
        candidates = [primary]
        # Fallbacks only apply to the configured default, not explicit picks.
        if primary == self.default_model:
            candidates.extend(m for m in self.fallback_models if m != primary)

        errors: List[BaseException] = []
        for candidate in candidates:
            request = CompletionRequest(
                model=candidate,
                prompt=prompt,
                system=system,
                max_tokens=max_tokens or self.max_tokens,
                temperature=temperature if temperature is not None else self.temperature,
            )
            try:
                return await self._dispatch(request)
            except BudgetExceededError as exc:
                logger.warning(f"Budget rejected model {candidate}: {exc.message}")
                errors.append(exc)
            except Exception as exc:
                logger.warning(f"Completion failed for model {candidate}: {exc}")
                errors.append(exc)

        raise errors[-1]

    def as_responder(self, **options: object) -> Responder:
        """Return the ``respond(prompt) -> text`` capability participants consume."""

        async def respond(prompt: str) -> str:
            result = await self.complete(prompt, **options)  # type: ignore[arg-type]
            return result.text

        return respond

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _dispatch(self, request: CompletionRequest) -> CompletionResult:
        input_tokens = estimate_tokens((request.system or "") + request.prompt)
        if self.ledger is not None:
            self.ledger.check_budget(request.model, input_tokens, request.max_tokens)

        if self._is_async:
            output = await self._completion_fn(request)  # type: ignore[misc]
        else:
            output = await asyncio.to_thread(self._completion_fn, request)

        result = normalise_completion(output, request.model)

        if self.ledger is not None:
            usage = result.usage
            used_input = usage.input_tokens if usage and usage.input_tokens is not None else input_tokens
            used_output = (
                usage.output_tokens if usage and usage.output_tokens is not None else estimate_tokens(result.text)
            )
            self.ledger.track_usage(result.model or request.model, used_input, used_output)

        return result
