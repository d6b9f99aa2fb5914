from __future__ import annotations

from typing import List

import pytest

from convenings.bidding import StaticBiddingStrategy
from convenings.participants import DialogueParticipant
from convenings.turn_coordinator import TurnStrategy
from convenings.workflows import DialogueWorkflow, WorkflowConfig, format_template
from convenings_core import Event, EventHook, EventType


class PromptRecorder:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: List[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def pair() -> tuple[DialogueParticipant, DialogueParticipant]:
    return (
        DialogueParticipant("Ada", PromptRecorder("hello"), id="ada"),
        DialogueParticipant("Bo", PromptRecorder("hi there"), id="bo"),
    )


def test_dialogue_requires_two_participants() -> None:
    with pytest.raises(ValueError, match="at least 2 participants"):
        DialogueWorkflow([DialogueParticipant("Solo")], "anything")


@pytest.mark.asyncio
async def test_runs_exactly_max_turns() -> None:
    workflow = DialogueWorkflow(list(pair()), "budgets", WorkflowConfig(max_turns=3))

    result = await workflow.run()

    assert result.success is True
    assert result.end_reason == "max_turns_reached"
    assert [message.participant_id for message in result.messages] == ["ada", "bo", "ada"]
    assert [message.metadata["turn_number"] for message in result.messages] == [0, 1, 2]
    assert result.state.is_complete is True
    assert result.outputs["turn_statistics"]["total_turns"] == 3


@pytest.mark.asyncio
async def test_zero_limits_end_before_any_turn() -> None:
    no_turns = await DialogueWorkflow(list(pair()), "t", WorkflowConfig(max_turns=0)).run()
    no_time = await DialogueWorkflow(list(pair()), "t", WorkflowConfig(max_duration_ms=0)).run()

    assert no_turns.end_reason == "max_turns_reached"
    assert no_turns.messages == []
    assert no_time.end_reason == "max_duration_reached"
    assert no_time.messages == []


@pytest.mark.asyncio
async def test_exit_condition_completes_dialogue() -> None:
    config = WorkflowConfig(exit_condition=lambda state: len(state.messages) >= 2)

    result = await DialogueWorkflow(list(pair()), "budgets", config).run()

    assert result.end_reason == "completed"
    assert len(result.messages) == 2


@pytest.mark.asyncio
async def test_participant_failure_ends_session_with_error() -> None:
    async def broken(prompt: str) -> str:
        raise RuntimeError("boom")

    hook = EventHook(log_events=False)
    errors: List[Event] = []
    hook.subscribe(errors.append, EventType.SESSION_ERROR)
    participants = [DialogueParticipant("Ada", PromptRecorder("hello"), id="ada"), DialogueParticipant("Bo", broken, id="bo")]

    result = await DialogueWorkflow(participants, "budgets", WorkflowConfig(events=hook)).run()

    assert result.success is False
    assert result.end_reason == "error:boom"
    assert len(result.messages) == 1
    assert errors[0].payload["error"] == "boom"


@pytest.mark.asyncio
async def test_prompt_layout() -> None:
    ada, bo = pair()
    workflow = DialogueWorkflow([ada, bo], "Budget", WorkflowConfig(max_turns=2))

    await workflow.run()

    first = ada._responder.prompts[0]  # type: ignore[union-attr]
    second = bo._responder.prompts[0]  # type: ignore[union-attr]
    assert first.split("\n") == [
        "This is a dialogue about Budget between Ada, Bo. "
        "Each participant should stay in character and engage meaningfully with the topic.",
        "The current topic is: Budget",
        "Dialogue history:",
        "No messages yet.",
        "It is now Ada's turn to speak.",
    ]
    assert "Dialogue history:\nAda: hello\nIt is now Bo's turn to speak." in second


@pytest.mark.asyncio
async def test_prompt_without_system_prompt() -> None:
    ada, bo = pair()
    config = WorkflowConfig(max_turns=1, include_system_prompt=False)

    await DialogueWorkflow([ada, bo], "Budget", config).run()

    assert ada._responder.prompts[0].startswith("The current topic is: Budget")  # type: ignore[union-attr]


def test_format_template_leaves_unknown_placeholders() -> None:
    assert format_template("{topic} with {participantNames} at {venue}", topic="Tax", participantNames="A, B") == (
        "Tax with A, B at {venue}"
    )


@pytest.mark.asyncio
async def test_bidding_strategy_lets_highest_bidder_speak() -> None:
    quiet = DialogueParticipant("Quiet", PromptRecorder("..."), id="quiet", bidding_strategy=StaticBiddingStrategy(0.2))
    eager = DialogueParticipant("Eager", PromptRecorder("me!"), id="eager", bidding_strategy=StaticBiddingStrategy(0.9))
    config = WorkflowConfig(max_turns=2, turn_strategy=TurnStrategy.BIDDING)

    result = await DialogueWorkflow([quiet, eager], "t", config).run()

    assert [message.participant_id for message in result.messages] == ["eager", "eager"]
    assert result.messages[0].metadata["bid_strength"] == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_events_are_emitted_per_turn_and_on_completion() -> None:
    hook = EventHook(log_events=False)
    received: List[Event] = []
    hook.subscribe(received.append)

    await DialogueWorkflow(list(pair()), "t", WorkflowConfig(max_turns=2, events=hook)).run()

    assert [event.type for event in received] == [
        EventType.TURN_RECORDED,
        EventType.TURN_RECORDED,
        EventType.SESSION_COMPLETED,
    ]
    assert received[-1].payload["end_reason"] == "max_turns_reached"
    assert received[-1].payload["turns"] == 2
