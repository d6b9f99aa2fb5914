from __future__ import annotations

from typing import List

import pytest

from convenings_core import (
    BudgetConfig,
    BudgetExceededError,
    BudgetLedger,
    Event,
    EventHook,
    EventType,
    estimate_tokens,
)


def collect(hook: EventHook) -> List[Event]:
    received: List[Event] = []
    hook.subscribe(received.append)
    return received


def test_check_budget_rejects_call_over_cost_ceiling() -> None:
    hook = EventHook(log_events=False)
    received = collect(hook)
    ledger = BudgetLedger(BudgetConfig(max_cost=0.01), events=hook)

    with pytest.raises(BudgetExceededError) as excinfo:
        ledger.check_budget("openai/gpt-4o", 0, 1000)

    error = excinfo.value
    assert error.model == "openai/gpt-4o"
    assert error.projected_cost == pytest.approx(0.03)
    assert error.max_cost == pytest.approx(0.01)
    assert "Budget exceeded" in str(error)
    assert [event.type for event in received] == [EventType.BUDGET_EXCEEDED]
    assert received[0].payload["rejected"] is True
    # rejected calls are never recorded
    assert ledger.get_usage_metrics().totals.calls == 0


def test_check_budget_allows_call_within_ceiling() -> None:
    ledger = BudgetLedger(BudgetConfig(max_tokens=2000))

    projection = ledger.check_budget("openai/gpt-4o", 500, 1000)

    assert projection.allowed is True
    assert projection.projected_tokens == 1500


def test_unlimited_ledger_never_rejects() -> None:
    ledger = BudgetLedger()

    ledger.track_usage("openai/gpt-4", 10_000_000, 10_000_000)

    assert ledger.check_budget("openai/gpt-4", 1_000_000, 1_000_000).allowed is True
    assert ledger.get_budget_status().exceeded is False


def test_warning_and_exceeded_events_fire_once() -> None:
    hook = EventHook(log_events=False)
    received = collect(hook)
    ledger = BudgetLedger(BudgetConfig(max_tokens=1000), events=hook)

    status = ledger.track_usage("local/model", 500, 300)
    assert status.approaching_limit is True
    assert status.exceeded is False

    ledger.track_usage("local/model", 50, 0)
    assert [event.type for event in received] == [EventType.BUDGET_WARNING]
    assert received[0].payload["ceiling"] == "tokens"

    ledger.track_usage("local/model", 200, 0)
    ledger.track_usage("local/model", 200, 0)

    assert [event.type for event in received] == [EventType.BUDGET_WARNING, EventType.BUDGET_EXCEEDED]
    assert ledger.get_budget_status().exceeded is True


def test_reaching_ceiling_exactly_is_not_exceeded() -> None:
    ledger = BudgetLedger(BudgetConfig(max_tokens=100))

    status = ledger.track_usage("local/model", 60, 40)

    assert status.current_tokens == 100
    assert status.exceeded is False


def test_usage_metrics_split_by_model() -> None:
    ledger = BudgetLedger()

    ledger.track_usage("openai/gpt-4o", 1000, 1000)
    ledger.track_usage("openai/gpt-4o", 1000, 0)
    ledger.track_usage("unknown/model", 0, 1000, cost=0.5)

    report = ledger.get_usage_metrics()

    assert report.totals.calls == 3
    assert report.totals.total_tokens == 4000
    assert report.by_model["openai/gpt-4o"].cost == pytest.approx(0.05)
    assert report.by_model["unknown/model"].cost == pytest.approx(0.5)
    assert report.to_dict()["estimated_cost"] == pytest.approx(0.55)


def test_estimate_tokens() -> None:
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
    assert BudgetLedger.estimate_tokens("x" * 400) == 100
