from __future__ import annotations

import json
from typing import List

import pytest

from convenings.participants import (
    DebateFormat,
    DebateModerator,
    DebateParticipant,
    DialogueParticipant,
    ParticipantRole,
    StatementType,
    create_debate_moderator,
    create_position_advocate,
)


class ScriptedResponder:
    def __init__(self, reply: str = "ok") -> None:
        self.reply = reply
        self.prompts: List[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def test_advocate_requires_position() -> None:
    with pytest.raises(ValueError, match="Position advocates must have a position defined"):
        DebateParticipant("Ada")


def test_fact_checker_needs_no_position() -> None:
    checker = DebateParticipant("Fay", debate_role=ParticipantRole.FACT_CHECKER)

    assert checker.is_advocate is False
    assert checker.role_value == "fact_checker"


def test_enhance_prompt_for_debate() -> None:
    advocate = create_position_advocate("Ada", "Carbon taxes work", preferred_format=DebateFormat.CASUAL)

    prompt = advocate.enhance_prompt_for_debate("Go ahead.", StatementType.OPENING)
    lines = prompt.split("\n")

    assert lines[0] == "You are participating in a structured debate."
    assert lines[1].startswith("This is a casual debate.")
    assert lines[2].startswith("Your role is to present and defend a specific position")
    assert lines[3] == 'You are advocating for the position: "Carbon taxes work".'
    assert lines[4].startswith("This is an opening statement.")
    assert lines[5] == ""
    assert lines[6] == "Go ahead."


@pytest.mark.asyncio
async def test_rebuttal_includes_opponent_argument() -> None:
    responder = ScriptedResponder("rebuttal text")
    advocate = create_position_advocate("Ada", "Carbon taxes work", responder)

    assert await advocate.generate_rebuttal("Respond now.", "Taxes hurt growth.") == "rebuttal text"
    assert "Respond now.\n\nOpponent's argument: Taxes hurt growth." in responder.prompts[0]
    assert "This is a rebuttal." in responder.prompts[0]


def test_moderator_defaults() -> None:
    moderator = create_debate_moderator("Mo", scoring_criteria={"civility": 0.2})

    assert moderator.is_advocate is False
    assert moderator.role_value == ParticipantRole.MODERATOR.value
    assert moderator.primary_motivation == "facilitation"
    assert moderator.scoring_criteria["civility"] == 0.2
    assert moderator.scoring_criteria["logical_coherence"] == 0.25


@pytest.mark.asyncio
async def test_moderator_scores_valid_response() -> None:
    payload = json.dumps(
        {
            name: {"score": 8, "justification": "solid"}
            for name in ["logical_coherence", "evidence_quality", "responsiveness", "persuasiveness", "rule_adherence"]
        }
    )
    responder = ScriptedResponder(payload)
    moderator = DebateModerator("Mo", responder)

    score = await moderator.score_argument("ada", "Taxes reduce emissions.", "Topic: carbon")

    assert score.total == pytest.approx(8.0)
    assert "Argument to evaluate: Taxes reduce emissions." in responder.prompts[0]
    assert "Context: Topic: carbon" in responder.prompts[0]


@pytest.mark.asyncio
async def test_moderator_score_defaults_on_malformed_output() -> None:
    moderator = DebateModerator("Mo", ScriptedResponder("Pretty good, maybe a seven."))

    score = await moderator.score_argument("ada", "Taxes reduce emissions.", "Topic: carbon")

    assert score.total == 5.0


@pytest.mark.asyncio
async def test_moderator_score_defaults_when_scorer_raises() -> None:
    async def broken(prompt: str) -> str:
        raise RuntimeError("scorer offline")

    moderator = DebateModerator("Mo", broken)

    score = await moderator.score_argument("ada", "Taxes reduce emissions.", "Topic: carbon")

    assert score.total == 5.0
    assert len(score.breakdown) == 5


@pytest.mark.asyncio
async def test_moderator_narration_prompts() -> None:
    responder = ScriptedResponder("narration")
    moderator = DebateModerator("Mo", responder)
    ada = DialogueParticipant("Ada")
    bo = DialogueParticipant("Bo")

    await moderator.generate_phase_introduction("closing statements", "Wrap it up.")
    await moderator.generate_speaker_transition(ada, bo)

    assert "introduce the closing statements phase" in responder.prompts[0]
    assert "Context: Wrap it up." in responder.prompts[0]
    assert "transition from Ada to Bo" in responder.prompts[1]
    assert "Context:" not in responder.prompts[1]


@pytest.mark.asyncio
async def test_moderator_score_defaults_on_unparseable_output() -> None:
    def raw_bytes(prompt: str) -> bytes:
        return b'{"logical_coherence": {"score": 9}}'

    huge = ScriptedResponder('{"logical_coherence": {"score": ' + "9" * 400 + "}}")

    assert (await DebateModerator("Mo", raw_bytes).score_argument("ada", "x", "y")).total == 5.0  # type: ignore[arg-type]
    assert (await DebateModerator("Mo", huge).score_argument("ada", "x", "y")).total == 5.0
