"""Budget ledger: token and cost accounting with spending ceilings.

The ledger is append-only for the lifetime of a session. Collaborators call
``check_budget`` with the worst-case output size before dispatching a request
and ``track_usage`` once the response is known.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from .events import EventHook, EventType
from .pricing import MODEL_PRICING, ModelPrice, calculate_cost

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


class BudgetConfig(BaseModel):
    """Spending ceilings; ``None`` means unlimited."""

    max_tokens: Optional[int] = Field(default=None, ge=0)
    max_cost: Optional[float] = Field(default=None, ge=0.0)
    warning_threshold: float = Field(default=0.8, ge=0.0, le=1.0)


@dataclass
class ModelUsage:
    """Cumulative usage for one model (or the aggregate)."""

    calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0

    def record(self, input_tokens: int, output_tokens: int, cost: float) -> None:
        self.calls += 1
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.total_tokens += input_tokens + output_tokens
        self.cost += cost

    def copy(self) -> "ModelUsage":
        return ModelUsage(
            calls=self.calls,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            total_tokens=self.total_tokens,
            cost=self.cost,
        )


@dataclass
class UsageReport:
    """Snapshot of aggregate and per-model usage."""

    totals: ModelUsage
    by_model: Dict[str, ModelUsage] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        def _usage(usage: ModelUsage) -> Dict[str, Any]:
            return {
                "calls": usage.calls,
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "total_tokens": usage.total_tokens,
                "estimated_cost": usage.cost,
            }

        payload = _usage(self.totals)
        payload["by_model"] = {model: _usage(usage) for model, usage in self.by_model.items()}
        return payload


@dataclass
class BudgetStatus:
    current_tokens: int
    current_cost: float
    max_tokens: Optional[int]
    max_cost: Optional[float]
    warning_threshold: float
    exceeded: bool
    tokens_fraction: float
    cost_fraction: float

    @property
    def approaching_limit(self) -> bool:
        """True once either configured ceiling is at or beyond the warning threshold."""

        if self.max_tokens is not None and self.tokens_fraction >= self.warning_threshold:
            return True
        if self.max_cost is not None and self.cost_fraction >= self.warning_threshold:
            return True
        return False


@dataclass
class UsageProjection:
    """Worst-case totals if a call were dispatched now."""

    model: str
    input_tokens: int
    max_output_tokens: int
    additional_tokens: int
    additional_cost: float
    projected_tokens: int
    projected_cost: float
    exceeds_tokens: bool
    exceeds_cost: bool

    @property
    def allowed(self) -> bool:
        return not (self.exceeds_tokens or self.exceeds_cost)


@dataclass
class BudgetExceededError(Exception):
    """Raised when a projected call would push usage past a ceiling."""

    message: str
    model: Optional[str] = None
    projected_tokens: Optional[int] = None
    projected_cost: Optional[float] = None
    max_tokens: Optional[int] = None
    max_cost: Optional[float] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""

    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _fraction(current: float, limit: Optional[float]) -> float:
    if limit is None:
        return 0.0
    if limit <= 0:
        return 1.0 if current > 0 else 0.0
    return current / limit


class BudgetLedger:
    """Tracks usage per model and in aggregate against configured ceilings.

    A ledger may be shared between sessions; every read and mutation goes
    through a single lock so updates are strictly sequenced.
    """

    def __init__(
        self,
        config: Optional[BudgetConfig] = None,
        *,
        pricing: Optional[Mapping[str, ModelPrice]] = None,
        events: Optional[EventHook] = None,
    ) -> None:
        self.config = config or BudgetConfig()
        self._pricing = dict(pricing) if pricing is not None else dict(MODEL_PRICING)
        self._events = events or EventHook()
        self._totals = ModelUsage()
        self._by_model: Dict[str, ModelUsage] = {}
        self._warned: set[str] = set()
        self._exceeded_reported = False
        self._lock = threading.Lock()

        logger.info(
            f"Initialized BudgetLedger max_tokens={self.config.max_tokens}, "
            f"max_cost={self.config.max_cost}, warning_threshold={self.config.warning_threshold}"
        )

    # ------------------------------------------------------------------ #
    # Pricing helpers
    # ------------------------------------------------------------------ #

    def calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        return calculate_cost(model, input_tokens, output_tokens, self._pricing)

    @staticmethod
    def estimate_tokens(text: str) -> int:
        return estimate_tokens(text)

    # ------------------------------------------------------------------ #
    # Pre-dispatch checks
    # ------------------------------------------------------------------ #

    def project(self, model: str, input_tokens: int, max_output_tokens: int) -> UsageProjection:
        """Project totals assuming the call produces ``max_output_tokens``."""

        additional_tokens = max(0, input_tokens) + max(0, max_output_tokens)
        additional_cost = self.calculate_cost(model, input_tokens, max_output_tokens)

        with self._lock:
            projected_tokens = self._totals.total_tokens + additional_tokens
            projected_cost = self._totals.cost + additional_cost

        max_tokens = self.config.max_tokens
        max_cost = self.config.max_cost
        return UsageProjection(
            model=model,
            input_tokens=input_tokens,
            max_output_tokens=max_output_tokens,
            additional_tokens=additional_tokens,
            additional_cost=additional_cost,
            projected_tokens=projected_tokens,
            projected_cost=projected_cost,
            exceeds_tokens=max_tokens is not None and projected_tokens > max_tokens,
            exceeds_cost=max_cost is not None and projected_cost > max_cost,
        )

    def check_budget(self, model: str, input_tokens: int, max_output_tokens: int) -> UsageProjection:
        """Reject a call whose worst case would exceed a ceiling.

        Raises:
            BudgetExceededError: when the projection crosses ``max_tokens`` or ``max_cost``.
        """
        projection = self.project(model, input_tokens, max_output_tokens)
        if projection.allowed:
            return projection

        reasons = []
        if projection.exceeds_tokens:
            reasons.append(f"tokens {projection.projected_tokens} > {self.config.max_tokens}")
        if projection.exceeds_cost:
            reasons.append(f"cost ${projection.projected_cost:.4f} > ${self.config.max_cost:.4f}")
        message = f"Budget exceeded for model {model}: " + ", ".join(reasons)

        self._events.emit(
            EventType.BUDGET_EXCEEDED,
            model=model,
            projected_tokens=projection.projected_tokens,
            projected_cost=projection.projected_cost,
            rejected=True,
        )
        raise BudgetExceededError(
            message=message,
            model=model,
            projected_tokens=projection.projected_tokens,
            projected_cost=projection.projected_cost,
            max_tokens=self.config.max_tokens,
            max_cost=self.config.max_cost,
        )

    # ------------------------------------------------------------------ #
    # Recording
    # ------------------------------------------------------------------ #

    def track_usage(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost: Optional[float] = None,
    ) -> BudgetStatus:
        """Record a completed call and return the resulting budget status."""

        input_tokens = max(0, int(input_tokens))
        output_tokens = max(0, int(output_tokens))
        if cost is None:
            cost = self.calculate_cost(model, input_tokens, output_tokens)

        with self._lock:
            self._totals.record(input_tokens, output_tokens, cost)
            self._by_model.setdefault(model, ModelUsage()).record(input_tokens, output_tokens, cost)
            status = self._status_locked()
            alerts = self._pending_alerts_locked(status)

        logger.debug(
            f"Tracked usage model={model} input={input_tokens} output={output_tokens} "
            f"cost=${cost:.6f} total_cost=${status.current_cost:.6f}"
        )

        for alert in alerts:
            if alert == "exceeded":
                self._events.emit(
                    EventType.BUDGET_EXCEEDED,
                    model=model,
                    current_tokens=status.current_tokens,
                    current_cost=status.current_cost,
                    rejected=False,
                )
            else:
                self._events.emit(
                    EventType.BUDGET_WARNING,
                    ceiling=alert,
                    tokens_fraction=status.tokens_fraction,
                    cost_fraction=status.cost_fraction,
                )
        return status

    def get_budget_status(self) -> BudgetStatus:
        with self._lock:
            return self._status_locked()

    def get_usage_metrics(self) -> UsageReport:
        with self._lock:
            return UsageReport(
                totals=self._totals.copy(),
                by_model={model: usage.copy() for model, usage in self._by_model.items()},
            )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _status_locked(self) -> BudgetStatus:
        max_tokens = self.config.max_tokens
        max_cost = self.config.max_cost
        current_tokens = self._totals.total_tokens
        current_cost = self._totals.cost
        exceeded = (max_tokens is not None and current_tokens > max_tokens) or (
            max_cost is not None and current_cost > max_cost
        )
        return BudgetStatus(
            current_tokens=current_tokens,
            current_cost=current_cost,
            max_tokens=max_tokens,
            max_cost=max_cost,
            warning_threshold=self.config.warning_threshold,
            exceeded=exceeded,
            tokens_fraction=_fraction(current_tokens, max_tokens),
            cost_fraction=_fraction(current_cost, max_cost),
        )

    def _pending_alerts_locked(self, status: BudgetStatus) -> list[str]:
        alerts: list[str] = []
        if status.exceeded:
            if not self._exceeded_reported:
                self._exceeded_reported = True
                alerts.append("exceeded")
            return alerts

        threshold = status.warning_threshold
        if status.max_tokens is not None and status.tokens_fraction >= threshold and "tokens" not in self._warned:
            self._warned.add("tokens")
            alerts.append("tokens")
        if status.max_cost is not None and status.cost_fraction >= threshold and "cost" not in self._warned:
            self._warned.add("cost")
            alerts.append("cost")
        return alerts
