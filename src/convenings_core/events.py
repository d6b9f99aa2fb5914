"""Narrow event hook for session telemetry.

Workflows and the budget ledger emit named events here instead of writing to
a console. The default hook forwards every event to the module logger; hosts
can subscribe callbacks to route events elsewhere.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Events emitted by the orchestration core."""

    TURN_RECORDED = "turn_recorded"
    PHASE_TRANSITION = "phase_transition"
    BUDGET_WARNING = "budget_warning"
    BUDGET_EXCEEDED = "budget_exceeded"
    CONSENSUS_POINT = "consensus_point"
    SESSION_COMPLETED = "session_completed"
    SESSION_ERROR = "session_error"


_WARNING_EVENTS = {EventType.BUDGET_WARNING, EventType.BUDGET_EXCEEDED, EventType.SESSION_ERROR}


@dataclass
class Event:
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[Event], None]


class EventHook:
    """Fan-out of core events to subscribed handlers."""

    def __init__(self, *, log_events: bool = True) -> None:
        self.log_events = log_events
        self._handlers: List[Tuple[Optional[EventType], EventHandler]] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: Optional[EventType] = None,
    ) -> Callable[[], None]:
        """Register ``handler`` for one event type (or all when omitted).

        Returns:
            A callable that removes the subscription.
        """
        entry = (event_type, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def emit(self, event_type: EventType, **payload: Any) -> Event:
        event = Event(type=event_type, payload=payload)

        if self.log_events:
            level = logging.WARNING if event_type in _WARNING_EVENTS else logging.DEBUG
            logger.log(level, "%s %s", event_type.value, payload)

        for subscribed_type, handler in list(self._handlers):
            if subscribed_type is not None and subscribed_type != event_type:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event_type.value)

        return event

