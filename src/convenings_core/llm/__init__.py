"""
Completion backend types for the Convenings runtime.

The transport itself lives outside this package; hosts provide a completion
callable that accepts a ``CompletionRequest`` and returns a
``CompletionResult`` (or plain text). Sync and async callables are both
accepted by the router.
"""

from .types import (
    CompletionFn,
    CompletionRequest,
    CompletionResult,
    UsageMetrics,
    is_async_callable,
    normalise_completion,
)

__all__ = [
    "CompletionFn",
    "CompletionRequest",
    "CompletionResult",
    "UsageMetrics",
    "is_async_callable",
    "normalise_completion",
]
