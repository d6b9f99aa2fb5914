from __future__ import annotations

from typing import List

from convenings_core import Event, EventHook, EventType


def test_subscribers_filter_by_type_and_unsubscribe() -> None:
    hook = EventHook(log_events=False)
    everything: List[Event] = []
    turns: List[Event] = []
    hook.subscribe(everything.append)
    unsubscribe = hook.subscribe(turns.append, EventType.TURN_RECORDED)

    hook.emit(EventType.TURN_RECORDED, participant_id="alice")
    hook.emit(EventType.PHASE_TRANSITION, to_phase="closing")
    unsubscribe()
    hook.emit(EventType.TURN_RECORDED, participant_id="bob")

    assert [event.type for event in everything] == [
        EventType.TURN_RECORDED,
        EventType.PHASE_TRANSITION,
        EventType.TURN_RECORDED,
    ]
    assert len(turns) == 1
    assert turns[0].payload == {"participant_id": "alice"}


def test_failing_handler_does_not_break_emit() -> None:
    hook = EventHook(log_events=False)
    received: List[Event] = []

    def broken(event: Event) -> None:
        raise RuntimeError("handler failed")

    hook.subscribe(broken)
    hook.subscribe(received.append)

    event = hook.emit(EventType.SESSION_ERROR, error="boom")

    assert received == [event]
