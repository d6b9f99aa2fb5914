from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union


@dataclass
class UsageMetrics:
    """Token accounting reported by a completion backend."""

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def resolved_total(self) -> int:
        if self.total_tokens is not None:
            return int(self.total_tokens)
        return int(self.input_tokens or 0) + int(self.output_tokens or 0)


@dataclass
class CompletionRequest:
    """A single prompt dispatched to a completion backend."""

    model: str
    prompt: str
    max_tokens: int
    temperature: Optional[float] = None
    system: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CompletionResult:
    """Normalized completion response."""

    text: str
    model: Optional[str] = None
    usage: Optional[UsageMetrics] = None
    raw: Optional[Dict[str, Any]] = None


CompletionOutput = Union[CompletionResult, str]
CompletionFn = Callable[[CompletionRequest], Union[CompletionOutput, Awaitable[CompletionOutput]]]


def is_async_callable(fn: Callable[..., Any]) -> bool:
    """Return True when calling ``fn`` produces an awaitable."""

    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def normalise_completion(output: CompletionOutput, model: str) -> CompletionResult:
    if isinstance(output, CompletionResult):
        if output.model is None:
            output.model = model
        return output
    if isinstance(output, str):
        return CompletionResult(text=output, model=model)
    raise TypeError(f"Unsupported completion output type: {type(output)!r}")
