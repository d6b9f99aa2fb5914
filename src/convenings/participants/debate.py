"""Debate participants: advocates, fact checkers and the moderator."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Union

from ..scoring import ParticipantScore, build_scoring_prompt, default_score, merge_criteria, parse_score_response
from ..session import DialogueMessage
from .base import DialogueParticipant, DialogueStyle, ParticipantRole, Responder
from .motivated import MotivatedDialogueParticipant

if TYPE_CHECKING:
    from ..session import DialogueState

logger = logging.getLogger(__name__)


class DebateFormat(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    EDUCATIONAL = "educational"
    COMPETITIVE = "competitive"


class StatementType(str, Enum):
    OPENING = "opening_statement"
    ARGUMENT = "argument"
    REBUTTAL = "rebuttal"
    CLOSING = "closing_statement"


FORMAT_GUIDANCE: Dict[str, str] = {
    DebateFormat.FORMAL.value: (
        "This is a formal debate. Use precise language, structured arguments, and formal tone. "
        "Avoid rhetorical flourishes and focus on logical reasoning and evidence."
    ),
    DebateFormat.CASUAL.value: (
        "This is a casual debate. Use conversational language while still maintaining logical structure. "
        "Personal examples and analogies are welcome."
    ),
    DebateFormat.EDUCATIONAL.value: (
        "This is an educational debate. Focus on explaining concepts clearly, providing context, "
        "and helping the audience understand different perspectives."
    ),
    DebateFormat.COMPETITIVE.value: (
        "This is a competitive debate. Focus on persuasive arguments, addressing counterarguments "
        "preemptively, and using compelling evidence to support your position."
    ),
}
DEFAULT_FORMAT_GUIDANCE = "This is a structured debate. Present clear arguments supported by evidence and reasoning."

ROLE_GUIDANCE: Dict[str, str] = {
    ParticipantRole.MODERATOR.value: (
        "Your role is to facilitate the debate, ensure participants follow the structure, "
        "and maintain a fair and productive discussion."
    ),
    ParticipantRole.POSITION_ADVOCATE.value: (
        "Your role is to present and defend a specific position, using strong arguments, evidence, "
        "and addressing counterarguments effectively."
    ),
    ParticipantRole.FACT_CHECKER.value: (
        "Your role is to verify factual claims, provide corrections when necessary, "
        "and ensure the debate is grounded in accurate information."
    ),
}

STATEMENT_GUIDANCE: Dict[str, str] = {
    StatementType.OPENING.value: (
        "This is an opening statement. Clearly present your position, provide an overview of your key "
        "arguments, and establish the framework for your case."
    ),
    StatementType.ARGUMENT.value: (
        "This is a main argument. Present a specific point that supports your position, backed by "
        "evidence, examples, and logical reasoning."
    ),
    StatementType.REBUTTAL.value: (
        "This is a rebuttal. Directly address your opponent's arguments, identify weaknesses, and "
        "explain why your position still holds or is stronger."
    ),
    StatementType.CLOSING.value: (
        "This is a closing statement. Summarize your strongest arguments, address key counterarguments, "
        "and leave a compelling final impression."
    ),
}


def _value(item: Union[Enum, str, None]) -> Optional[str]:
    return getattr(item, "value", item)


class DebateParticipant(MotivatedDialogueParticipant):
    """A motivated participant with a debate role, a position and a preferred format.

    Raises:
        ValueError: a position advocate was created without a position.
    """

    def __init__(
        self,
        name: str,
        responder: Optional[Responder] = None,
        *,
        debate_role: Union[ParticipantRole, str] = ParticipantRole.POSITION_ADVOCATE,
        position: Optional[str] = None,
        preferred_format: Union[DebateFormat, str] = DebateFormat.FORMAL,
        role: Optional[Union[ParticipantRole, str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, responder, role=role or debate_role, **kwargs)
        self.debate_role = _value(debate_role)
        self.position = position
        self.preferred_format = _value(preferred_format)

        if self.debate_role == ParticipantRole.POSITION_ADVOCATE.value and not position:
            raise ValueError("Position advocates must have a position defined")

    @property
    def is_advocate(self) -> bool:
        return self.debate_role == ParticipantRole.POSITION_ADVOCATE.value

    async def generate_opening_statement(self, prompt: str) -> str:
        return await self.execute(self.enhance_prompt_for_debate(prompt, StatementType.OPENING))

    async def generate_argument(self, prompt: str) -> str:
        return await self.execute(self.enhance_prompt_for_debate(prompt, StatementType.ARGUMENT))

    async def generate_rebuttal(self, prompt: str, target_argument: str) -> str:
        prompt = f"{prompt}\n\nOpponent's argument: {target_argument}"
        return await self.execute(self.enhance_prompt_for_debate(prompt, StatementType.REBUTTAL))

    async def generate_closing_statement(self, prompt: str) -> str:
        return await self.execute(self.enhance_prompt_for_debate(prompt, StatementType.CLOSING))

    def enhance_prompt_for_debate(self, prompt: str, statement_type: Union[StatementType, str]) -> str:
        statement = _value(statement_type) or ""
        position_guidance = (
            f'You are advocating for the position: "{self.position}".' if self.is_advocate and self.position else ""
        )
        guidance = "\n".join(
            part
            for part in [
                "You are participating in a structured debate.",
                FORMAT_GUIDANCE.get(self.preferred_format or "", DEFAULT_FORMAT_GUIDANCE),
                ROLE_GUIDANCE.get(self.debate_role or "", ""),
                position_guidance,
                STATEMENT_GUIDANCE.get(statement, ""),
            ]
            if part
        )
        return "\n".join([guidance, "", prompt])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(debate_role=self.debate_role, position=self.position, preferred_format=self.preferred_format)
        return data


class DebateModerator(DebateParticipant):
    """Narrates the debate and scores arguments against weighted criteria."""

    def __init__(
        self,
        name: str,
        responder: Optional[Responder] = None,
        *,
        scoring_criteria: Optional[Mapping[str, float]] = None,
        primary_motivation: str = "facilitation",
        dialogue_style: Union[DialogueStyle, str] = DialogueStyle.ANALYTICAL,
        **kwargs: Any,
    ) -> None:
        kwargs.pop("debate_role", None)
        super().__init__(
            name,
            responder,
            debate_role=ParticipantRole.MODERATOR,
            primary_motivation=primary_motivation,
            dialogue_style=dialogue_style,
            **kwargs,
        )
        self.scoring_criteria: Dict[str, float] = merge_criteria(scoring_criteria)

    async def generate_phase_introduction(self, phase: str, context: Optional[str] = None) -> str:
        prompt = (
            f"\nYou are moderating a debate. It's time to introduce the {phase} phase.\n\n"
            f"{f'Context: {context}' if context else ''}\n\n"
            "Please provide a clear and concise introduction to this phase, explaining what will happen "
            "and what is expected of the participants.\n"
        )
        return await self.execute(prompt)

    async def generate_speaker_transition(
        self,
        from_participant: DialogueParticipant,
        to_participant: DialogueParticipant,
        context: Optional[str] = None,
    ) -> str:
        prompt = (
            f"\nYou are moderating a debate. It's time to transition from {from_participant.name} "
            f"to {to_participant.name}.\n\n"
            f"{f'Context: {context}' if context else ''}\n\n"
            "Please provide a brief transition that acknowledges the previous speaker and introduces "
            "the next speaker.\n"
        )
        return await self.execute(prompt)

    async def generate_round_summary(
        self,
        round_number: int,
        messages: Sequence[DialogueMessage],
        state: Optional["DialogueState"] = None,
    ) -> str:
        if state is not None:
            messages_text = state.format_history(list(messages))
        else:
            messages_text = "\n\n".join(f"{m.participant_id}: {m.content}" for m in messages)
        prompt = (
            f"\nYou are moderating a debate. Round {round_number} has just completed.\n\n"
            "Here are the messages from this round:\n\n"
            f"{messages_text}\n\n"
            "Please provide a brief, neutral summary of the key points made in this round, highlighting "
            "areas of agreement and disagreement.\n"
        )
        return await self.execute(prompt)

    async def generate_debate_conclusion(self, state: "DialogueState") -> str:
        names = ", ".join(participant.name for participant in state.participants)
        closing = state.format_history(state.recent_messages(state.participant_count))
        prompt = (
            f'\nYou are moderating a debate on "{state.topic}" between {names}.\n'
            "The debate has now concluded.\n\n"
            "Here are the closing statements:\n\n"
            f"{closing}\n\n"
            "Please provide a conclusion for the debate that:\n"
            "1. Thanks the participants\n"
            "2. Summarizes the key points of agreement and disagreement\n"
            "3. Highlights the strongest arguments on each side\n"
            "4. Concludes the event without declaring a winner\n"
        )
        return await self.execute(prompt)

    async def score_argument(self, participant_id: str, argument: str, context: str) -> ParticipantScore:
        """Score ``argument``; scorer failures and malformed output give a neutral score."""

        try:
            response = await self.execute(build_scoring_prompt(argument, context))
            return parse_score_response(response, self.scoring_criteria)
        except Exception:
            logger.exception(f"Scoring failed for participant {participant_id}")
            return default_score(self.scoring_criteria)


def create_debate_moderator(name: str, responder: Optional[Responder] = None, **kwargs: Any) -> DebateModerator:
    return DebateModerator(name, responder, **kwargs)


def create_position_advocate(
    name: str,
    position: str,
    responder: Optional[Responder] = None,
    **kwargs: Any,
) -> DebateParticipant:
    return DebateParticipant(name, responder, debate_role=ParticipantRole.POSITION_ADVOCATE, position=position, **kwargs)


__all__: List[str] = [
    "DebateFormat",
    "StatementType",
    "DebateParticipant",
    "DebateModerator",
    "create_debate_moderator",
    "create_position_advocate",
]
