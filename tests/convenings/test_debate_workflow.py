from __future__ import annotations

import json
from typing import List

import pytest

from convenings.participants import (
    DebateModerator,
    DialogueParticipant,
    ParticipantRole,
    create_debate_moderator,
    create_position_advocate,
)
from convenings.workflows import (
    DebateConfig,
    DebateConfigurationError,
    DebatePhase,
    DebateWorkflow,
    build_turn_order,
    is_argument_turn,
    planned_turn_count,
)
from convenings_core import Event, EventHook, EventType

CRITERIA = ["logical_coherence", "evidence_quality", "responsiveness", "persuasiveness", "rule_adherence"]


class Recorder:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: List[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class ModeratorScript(Recorder):
    """Narrates with a fixed reply and scores every argument 8/10."""

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if "Argument to evaluate:" in prompt:
            return json.dumps({name: {"score": 8, "justification": "clear"} for name in CRITERIA})
        return self.reply


def make_debate(config: DebateConfig | None = None):
    moderator_script = ModeratorScript("narration")
    ada_script = Recorder("Ada makes a point")
    bo_script = Recorder("Bo makes a point")
    moderator = create_debate_moderator("Mo", moderator_script, id="mo")
    ada = create_position_advocate("Ada", "Carbon taxes work", ada_script, id="ada")
    bo = create_position_advocate("Bo", "Carbon taxes fail", bo_script, id="bo")
    workflow = DebateWorkflow([moderator, ada, bo], "carbon taxes", config)
    return workflow, moderator_script, ada_script, bo_script


def test_turn_orders_are_deterministic() -> None:
    assert build_turn_order(DebatePhase.OPENING_STATEMENTS, "m", ["a", "b"]) == ["m", "m", "a", "m", "b"]
    assert build_turn_order(DebatePhase.ARGUMENT_ROUNDS, "m", ["a", "b"]) == [
        "m", "m", "a", "m", "b", "m", "b", "m", "a", "m",
    ]
    assert build_turn_order(DebatePhase.ARGUMENT_ROUNDS, "m", ["a", "b"], False) == [
        "m", "m", "a", "m", "b", "m", "b", "m", "a",
    ]
    assert build_turn_order(DebatePhase.SUMMARY, "m", ["a", "b"]) == ["m"]
    assert build_turn_order(DebatePhase.COMPLETE, "m", ["a", "b"]) == []


def test_argument_and_rebuttal_alternate() -> None:
    assert [is_argument_turn(0, step) for step in range(4)] == [True, True, False, False]
    assert [is_argument_turn(1, step) for step in range(4)] == [False, False, True, True]


def test_planned_turn_count() -> None:
    assert planned_turn_count(2, 2) == 31
    assert planned_turn_count(2, 2, round_summaries_enabled=False) == 29
    assert planned_turn_count(3, 1) == 7 + 10 + 7 + 1


def test_debate_requires_a_moderator() -> None:
    ada = create_position_advocate("Ada", "Yes")
    bo = create_position_advocate("Bo", "No")

    with pytest.raises(DebateConfigurationError, match="requires a moderator"):
        DebateWorkflow([ada, bo], "t")


def test_debate_rejects_several_moderators() -> None:
    participants = [
        create_debate_moderator("Mo"),
        create_debate_moderator("Max"),
        create_position_advocate("Ada", "Yes"),
        create_position_advocate("Bo", "No"),
    ]

    with pytest.raises(DebateConfigurationError, match="exactly one moderator"):
        DebateWorkflow(participants, "t")


def test_debate_moderator_must_be_debate_moderator() -> None:
    participants = [
        DialogueParticipant("Mo", role=ParticipantRole.MODERATOR),
        create_position_advocate("Ada", "Yes"),
        create_position_advocate("Bo", "No"),
    ]

    with pytest.raises(DebateConfigurationError, match="must be a DebateModerator"):
        DebateWorkflow(participants, "t")


def test_debate_requires_two_advocates() -> None:
    with pytest.raises(ValueError, match="at least 2 position advocates"):
        DebateWorkflow([create_debate_moderator("Mo"), create_position_advocate("Ada", "Yes")], "t")


def test_debate_applies_config() -> None:
    workflow, *_ = make_debate(DebateConfig(scoring_criteria={"civility": 0.3}, round_count=3))

    assert isinstance(workflow.moderator, DebateModerator)
    assert workflow.moderator.scoring_criteria["civility"] == 0.3
    assert workflow.state.context["debate_format"] == "formal"
    assert workflow.max_turns == planned_turn_count(2, 3)
    assert workflow.phase == DebatePhase.OPENING_STATEMENTS


@pytest.mark.asyncio
async def test_full_debate_runs_every_phase() -> None:
    hook = EventHook(log_events=False)
    transitions: List[Event] = []
    hook.subscribe(transitions.append, EventType.PHASE_TRANSITION)
    workflow, moderator_script, ada_script, bo_script = make_debate(DebateConfig(events=hook))

    result = await workflow.run()

    assert result.success is True
    assert result.end_reason == "completed"
    assert result.debate_completed is True
    assert result.total_turns == 31
    assert len(result.messages) == 31
    assert result.completed_rounds == 2
    assert result.summary == "narration"
    assert len(result.round_summaries) == 2
    assert set(result.scores) == {"ada", "bo"}
    assert result.scores["ada"].total == pytest.approx(8.0)

    assert [(event.payload["from_phase"], event.payload["to_phase"]) for event in transitions] == [
        ("opening_statements", "argument_rounds"),
        ("argument_rounds", "argument_rounds"),
        ("argument_rounds", "closing_statements"),
        ("closing_statements", "summary"),
        ("summary", "complete"),
    ]

    argument_statements = [
        (message.participant_id, message.metadata["statement_type"])
        for message in result.messages
        if message.metadata["debate_phase"] == "argument_rounds" and message.participant_id != "mo"
    ]
    assert argument_statements == [
        ("ada", "argument"),
        ("bo", "rebuttal"),
        ("bo", "argument"),
        ("ada", "rebuttal"),
    ] * 2

    assert any("Opponent's argument: Ada makes a point" in prompt for prompt in bo_script.prompts)
    assert any("Opponent's argument: Bo makes a point" in prompt for prompt in ada_script.prompts)


@pytest.mark.asyncio
async def test_debate_message_metadata_and_narration() -> None:
    workflow, moderator_script, ada_script, _ = make_debate()

    result = await workflow.run()
    first, transition, opening = result.messages[:3]

    assert first.metadata["narration"] == "phase_introduction"
    assert first.metadata["debate_phase"] == "opening_statements"
    assert first.metadata["round_number"] == 1
    assert transition.metadata["narration"] == "speaker_transition"
    assert opening.metadata["statement_type"] == "opening_statement"
    assert opening.metadata["max_tokens"] == 300
    assert result.messages[-1].metadata["narration"] == "conclusion"

    assert "introduce the opening statements phase" in moderator_script.prompts[0]
    assert "transition from Mo to Ada" in moderator_script.prompts[1]
    assert "transition from Ada to Bo" in moderator_script.prompts[2]
    assert "Current debate phase: Opening Statements" in ada_script.prompts[0]
    assert "Debate history:" in ada_script.prompts[0]
    assert 'You are advocating for the position: "Carbon taxes work".' in ada_script.prompts[0]


@pytest.mark.asyncio
async def test_debate_without_scoring_or_summaries() -> None:
    config = DebateConfig(scoring_enabled=False, round_summaries_enabled=False, round_count=1)
    workflow, *_ = make_debate(config)

    result = await workflow.run()

    assert result.debate_completed is True
    assert len(result.messages) == planned_turn_count(2, 1, round_summaries_enabled=False)
    assert result.scores == {}
    assert result.round_summaries == []


@pytest.mark.asyncio
async def test_debate_stops_at_explicit_turn_limit() -> None:
    workflow, *_ = make_debate(DebateConfig(max_turns=7))

    result = await workflow.run()

    assert result.end_reason == "max_turns_reached"
    assert result.debate_completed is False
    assert len(result.messages) == 7
    assert workflow.phase == DebatePhase.ARGUMENT_ROUNDS
    assert result.to_dict()["completed_rounds"] == 0
