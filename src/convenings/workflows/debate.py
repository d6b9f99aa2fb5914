"""Structured debate: an explicit phase machine over scripted turn orders.

Phases run OpeningStatements -> ArgumentRounds (once per configured round) ->
ClosingStatements -> Summary -> Complete. Every phase has a deterministic turn
order; a progress cursor walks it and reaching the end advances the phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import Field

from convenings_core.events import EventType

from ..participants.base import DialogueParticipant, ParticipantRole
from ..participants.debate import DebateFormat, DebateModerator, DebateParticipant, StatementType
from ..scoring import ParticipantScore
from ..session import DialogueMessage
from ..turn_coordinator import TurnCoordinator, TurnStrategy
from .dialogue import DialogueResult, DialogueWorkflow, WorkflowConfig

logger = logging.getLogger(__name__)

DEBATE_SYSTEM_PROMPT = (
    "This is a structured debate on {topic} between {participantNames}. "
    "The debate follows a formal structure with opening statements, multiple rounds of arguments "
    "and rebuttals, and closing statements. Each participant should present their position clearly, "
    "support it with evidence and reasoning, and respond directly to opposing arguments."
)

OPENING_TRANSITION = "We will now hear the opening statement from the next participant."
CLOSING_TRANSITION = "We will now hear the closing statement from the next participant."


class DebatePhase(str, Enum):
    OPENING_STATEMENTS = "opening_statements"
    ARGUMENT_ROUNDS = "argument_rounds"
    CLOSING_STATEMENTS = "closing_statements"
    SUMMARY = "summary"
    COMPLETE = "complete"


_NEXT_PHASE = {
    DebatePhase.OPENING_STATEMENTS: DebatePhase.ARGUMENT_ROUNDS,
    DebatePhase.CLOSING_STATEMENTS: DebatePhase.SUMMARY,
    DebatePhase.SUMMARY: DebatePhase.COMPLETE,
}


class DebateConfigurationError(ValueError):
    """Invalid debate composition; raised before any turn runs."""


class DebateConfig(WorkflowConfig):
    """Debate settings. ``max_turns`` defaults to the planned number of turns."""

    max_turns: Optional[int] = Field(default=None, ge=0)
    system_prompt_template: str = DEBATE_SYSTEM_PROMPT
    debate_format: DebateFormat = DebateFormat.FORMAL
    round_count: int = Field(default=2, ge=1)
    opening_statement_max_tokens: int = Field(default=300, gt=0)
    argument_max_tokens: int = Field(default=250, gt=0)
    closing_statement_max_tokens: int = Field(default=350, gt=0)
    scoring_enabled: bool = True
    round_summaries_enabled: bool = True
    scoring_criteria: Dict[str, float] = Field(default_factory=dict)


@dataclass
class DebateResult(DialogueResult):
    scores: Dict[str, ParticipantScore] = field(default_factory=dict)
    summary: Optional[str] = None
    round_summaries: List[str] = field(default_factory=list)
    debate_completed: bool = False
    total_turns: int = 0
    completed_rounds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            scores={participant_id: score.to_dict() for participant_id, score in self.scores.items()},
            summary=self.summary,
            round_summaries=list(self.round_summaries),
            debate_completed=self.debate_completed,
            total_turns=self.total_turns,
            completed_rounds=self.completed_rounds,
        )
        return data


def build_turn_order(
    phase: DebatePhase,
    moderator_id: str,
    advocate_ids: Sequence[str],
    round_summaries_enabled: bool = True,
) -> List[str]:
    """Deterministic speaker sequence for one pass through ``phase``.

    Opening and closing: moderator introduction, then a moderator
    transition before each advocate. Argument rounds: moderator introduction
    and transitions around advocate[0] argument, advocate[1] rebuttal,
    advocate[1] argument, advocate[0] rebuttal, plus a closing moderator
    summary slot when round summaries are enabled.
    """

    if phase in (DebatePhase.OPENING_STATEMENTS, DebatePhase.CLOSING_STATEMENTS):
        order = [moderator_id]
        for advocate_id in advocate_ids:
            order.extend([moderator_id, advocate_id])
        return order

    if phase == DebatePhase.ARGUMENT_ROUNDS:
        first, second = advocate_ids[0], advocate_ids[1]
        order = [moderator_id]
        for advocate_id in (first, second, second, first):
            order.extend([moderator_id, advocate_id])
        if round_summaries_enabled:
            order.append(moderator_id)
        return order

    if phase == DebatePhase.SUMMARY:
        return [moderator_id]

    return []


def planned_turn_count(advocate_count: int, round_count: int, round_summaries_enabled: bool = True) -> int:
    statements = 1 + 2 * advocate_count
    argument_round = 9 + (1 if round_summaries_enabled else 0)
    return statements + round_count * argument_round + statements + 1


def is_argument_turn(advocate_index: int, advocate_step: int) -> bool:
    """Argument (True) or rebuttal (False) for an advocate slot in a round.

    ``advocate_step`` counts advocate slots already taken in the round.
    The first advocate argues on even steps and the second on odd steps,
    where steps 0 and 1 are even and steps 2 and 3 are odd.
    """
    is_even = advocate_step % 4 < 2
    return is_even if advocate_index == 0 else not is_even


def _is_moderator(participant: DialogueParticipant) -> bool:
    return isinstance(participant, DebateModerator) or participant.role_value == ParticipantRole.MODERATOR.value


class DebateWorkflow(DialogueWorkflow):
    """Runs a structured debate between one moderator and two or more advocates.

    Raises:
        DebateConfigurationError: no moderator, several moderators, a
            moderator that is not a ``DebateModerator``, or fewer than two
            position advocates.
    """

    config: DebateConfig

    def __init__(
        self,
        participants: Sequence[DialogueParticipant],
        topic: str,
        config: Optional[DebateConfig] = None,
    ):
        self.moderator, self.advocates = self._assign_roles(participants)
        config = config or DebateConfig()
        super().__init__(participants, topic, config)

        self.phase = DebatePhase.OPENING_STATEMENTS
        self.round_index = 0
        self.progress = 0
        self.completed_rounds = 0
        self.turn_order = self._order_for(self.phase)
        self.scores: Dict[str, ParticipantScore] = {}
        self.summary: Optional[str] = None
        self.round_summaries: List[str] = []
        self.state.context["debate_format"] = self.config.debate_format.value
        if self.config.scoring_criteria:
            self.moderator.scoring_criteria.update(self.config.scoring_criteria)

    @staticmethod
    def _assign_roles(
        participants: Sequence[DialogueParticipant],
    ) -> Tuple[DebateModerator, List[DebateParticipant]]:
        moderators = [p for p in participants if _is_moderator(p)]
        if not moderators:
            raise DebateConfigurationError("Debate requires a moderator participant")
        if len(moderators) > 1:
            raise DebateConfigurationError("Debate requires exactly one moderator")
        moderator = moderators[0]
        if not isinstance(moderator, DebateModerator):
            raise DebateConfigurationError("Debate moderator must be a DebateModerator")

        advocates = [p for p in participants if isinstance(p, DebateParticipant) and p.is_advocate]
        if len(advocates) < 2:
            raise DebateConfigurationError("Debate requires at least 2 position advocates")
        return moderator, advocates

    def create_coordinator(self) -> TurnCoordinator:
        return TurnCoordinator(self.state.participants, TurnStrategy.SCRIPTED)

    @property
    def max_turns(self) -> int:
        if self.config.max_turns is not None:
            return self.config.max_turns
        return planned_turn_count(len(self.advocates), self.config.round_count, self.config.round_summaries_enabled)

    def should_exit(self) -> bool:
        return self.phase == DebatePhase.COMPLETE or super().should_exit()

    # ----- phase machine ----- #

    def _order_for(self, phase: DebatePhase) -> List[str]:
        return build_turn_order(
            phase,
            self.moderator.id,
            [advocate.id for advocate in self.advocates],
            self.config.round_summaries_enabled,
        )

    def advance_phase(self) -> None:
        previous = self.phase
        if self.phase == DebatePhase.ARGUMENT_ROUNDS:
            self.completed_rounds += 1
            if self.round_index + 1 < self.config.round_count:
                self.round_index += 1
            else:
                self.phase = DebatePhase.CLOSING_STATEMENTS
        else:
            self.phase = _NEXT_PHASE.get(self.phase, DebatePhase.COMPLETE)

        self.progress = 0
        self.turn_order = self._order_for(self.phase)
        logger.info(f"Debate {self.state.id}: {previous.value} -> {self.phase.value} (round {self.round_index + 1})")
        self.events.emit(
            EventType.PHASE_TRANSITION,
            dialogue_id=self.state.id,
            from_phase=previous.value,
            to_phase=self.phase.value,
            round_number=self.round_index + 1,
        )

    def phase_description(self) -> str:
        if self.phase == DebatePhase.OPENING_STATEMENTS:
            return "Opening Statements"
        if self.phase == DebatePhase.ARGUMENT_ROUNDS:
            return f"Argument Round {self.round_index + 1} of {self.config.round_count}"
        if self.phase == DebatePhase.CLOSING_STATEMENTS:
            return "Closing Statements"
        if self.phase == DebatePhase.SUMMARY:
            return "Debate Summary"
        return "Debate Complete"

    # ----- turns ----- #

    async def execute_turn(self) -> DialogueMessage:
        phase, round_index, progress = self.phase, self.round_index, self.progress
        participant_id = self.turn_order[progress]
        turn = self.coordinator.assign_turn(participant_id, self.state.current_turn, phase=phase.value)
        participant = self.coordinator.participant(participant_id)

        metadata: Dict[str, Any] = {"debate_phase": phase.value, "round_number": round_index + 1}
        if participant is self.moderator:
            content, narration = await self._moderator_turn(phase, round_index, progress)
            metadata["narration"] = narration
        else:
            content, statement = await self._advocate_turn(participant, phase, round_index, progress)
            metadata["statement_type"] = statement.value if statement else None
            max_tokens = self._max_tokens(statement)
            if max_tokens is not None:
                metadata["max_tokens"] = max_tokens

        message = self.record_message(participant, content, metadata, turn=turn)

        if (
            phase == DebatePhase.ARGUMENT_ROUNDS
            and self.config.scoring_enabled
            and participant is not self.moderator
        ):
            await self._score(participant, content, phase, round_index)

        self.progress += 1
        if self.progress >= len(self.turn_order):
            self.advance_phase()
        return message

    async def _advocate_turn(
        self,
        participant: DialogueParticipant,
        phase: DebatePhase,
        round_index: int,
        progress: int,
    ) -> Tuple[str, Optional[StatementType]]:
        round_number = round_index + 1
        if not isinstance(participant, DebateParticipant):
            prompt = self._prompt(participant, f"It is now your turn to contribute to round {round_number} of the debate.")
            return await participant.respond(prompt), None

        if phase == DebatePhase.OPENING_STATEMENTS:
            prompt = self._prompt(
                participant,
                "It is now your turn to present your opening statement. "
                f'Introduce your position on the topic "{self.state.topic}".',
            )
            return await participant.generate_opening_statement(prompt), StatementType.OPENING

        if phase == DebatePhase.CLOSING_STATEMENTS:
            prompt = self._prompt(
                participant,
                "It is now your turn to present your closing statement. Summarize your position and key arguments.",
            )
            return await participant.generate_closing_statement(prompt), StatementType.CLOSING

        if phase == DebatePhase.ARGUMENT_ROUNDS and participant in self.advocates[:2]:
            advocate_index = self.advocates.index(participant)
            step = sum(1 for pid in self.turn_order[:progress] if pid != self.moderator.id)
            target = self._latest_opposing_message(participant)
            if not is_argument_turn(advocate_index, step) and target is not None:
                prompt = self._prompt(
                    participant, f"It is now your turn to rebut the previous argument in round {round_number}."
                )
                return await participant.generate_rebuttal(prompt, target.content), StatementType.REBUTTAL

            prompt = self._prompt(
                participant, f"It is now your turn to present an argument supporting your position in round {round_number}."
            )
            return await participant.generate_argument(prompt), StatementType.ARGUMENT

        prompt = self._prompt(participant, f"It is now your turn to contribute to round {round_number} of the debate.")
        return await participant.respond(prompt), None

    async def _moderator_turn(self, phase: DebatePhase, round_index: int, progress: int) -> Tuple[str, str]:
        moderator = self.moderator
        rounds = self.config.round_count

        if phase == DebatePhase.SUMMARY:
            self.summary = await moderator.generate_debate_conclusion(self.state)
            return self.summary, "conclusion"

        if progress == 0:
            if phase == DebatePhase.OPENING_STATEMENTS:
                context = (
                    f'This debate on "{self.state.topic}" will begin with opening statements from each participant, '
                    f"followed by {rounds} rounds of arguments and rebuttals, and conclude with closing statements."
                )
                return await moderator.generate_phase_introduction("opening statements", context), "phase_introduction"
            if phase == DebatePhase.ARGUMENT_ROUNDS:
                context = (
                    f"We are now beginning round {round_index + 1} of arguments. "
                    "Each advocate will present their arguments and respond to the other's points."
                )
                return (
                    await moderator.generate_phase_introduction(f"argument round {round_index + 1}", context),
                    "phase_introduction",
                )
            context = (
                "We will now hear closing statements from each participant, "
                "summarizing their position and key arguments."
            )
            return await moderator.generate_phase_introduction("closing statements", context), "phase_introduction"

        if (
            phase == DebatePhase.ARGUMENT_ROUNDS
            and self.config.round_summaries_enabled
            and progress == len(self.turn_order) - 1
        ):
            round_messages = self.state.recent_messages(len(self.turn_order) - 1)
            summary = await moderator.generate_round_summary(round_index + 1, round_messages, self.state)
            self.round_summaries.append(summary)
            return summary, "round_summary"

        if progress + 1 < len(self.turn_order):
            previous = self._previous_speaker(progress)
            upcoming = self.coordinator.participant(self.turn_order[progress + 1])
            context = {
                DebatePhase.OPENING_STATEMENTS: OPENING_TRANSITION,
                DebatePhase.CLOSING_STATEMENTS: CLOSING_TRANSITION,
            }.get(phase)
            return await moderator.generate_speaker_transition(previous, upcoming, context), "speaker_transition"

        if phase == DebatePhase.OPENING_STATEMENTS:
            context = (
                "We have heard opening statements from all participants. We will now proceed to the argument "
                "rounds, where each advocate will present arguments and respond to the other's points."
            )
            return await moderator.generate_phase_introduction("argument rounds", context), "phase_introduction"
        if phase == DebatePhase.ARGUMENT_ROUNDS:
            context = (
                "We have completed the argument rounds. We will now hear closing statements from each participant."
            )
            return await moderator.generate_phase_introduction("closing statements", context), "phase_introduction"
        context = (
            "All participants have presented their closing statements. I will now provide a summary of the debate."
        )
        return await moderator.generate_phase_introduction("summary", context), "phase_introduction"

    def _previous_speaker(self, progress: int) -> DialogueParticipant:
        """Most recent non-moderator speaker, falling back to the moderator."""
        for participant_id in reversed(self.turn_order[:progress]):
            if participant_id != self.moderator.id:
                return self.coordinator.participant(participant_id)
        for message in reversed(self.state.messages):
            if message.participant_id != self.moderator.id:
                return self.coordinator.participant(message.participant_id)
        return self.moderator

    def _latest_opposing_message(self, participant: DialogueParticipant) -> Optional[DialogueMessage]:
        advocate_ids = {advocate.id for advocate in self.advocates}
        for message in reversed(self.state.messages):
            if message.participant_id in advocate_ids and message.participant_id != participant.id:
                return message
        return None

    def _prompt(self, participant: DialogueParticipant, instruction: str) -> str:
        return self.build_prompt(
            participant,
            instruction=instruction,
            phase_line=f"Current debate phase: {self.phase_description()}",
            history_label="Debate history:",
        )

    def _max_tokens(self, statement: Optional[StatementType]) -> Optional[int]:
        if statement == StatementType.OPENING:
            return self.config.opening_statement_max_tokens
        if statement in (StatementType.ARGUMENT, StatementType.REBUTTAL):
            return self.config.argument_max_tokens
        if statement == StatementType.CLOSING:
            return self.config.closing_statement_max_tokens
        return None

    async def _score(
        self,
        participant: DialogueParticipant,
        argument: str,
        phase: DebatePhase,
        round_index: int,
    ) -> ParticipantScore:
        position = getattr(participant, "position", None) or "Unknown position"
        context = (
            f"\nTopic: {self.state.topic}\n"
            f"Current Phase: {phase.value}\n"
            f"Round: {round_index + 1} of {self.config.round_count}\n"
            f"Participant Position: {position}\n"
        )
        score = await self.moderator.score_argument(participant.id, argument, context)
        self.scores[participant.id] = score
        logger.debug(f"Scored {participant.name} in round {round_index + 1}: {score.total:.2f}")
        return score

    # ----- results ----- #

    def build_result(self, success: bool, end_reason: str, duration_ms: float) -> DebateResult:
        base = super().build_result(success, end_reason, duration_ms)
        return DebateResult(
            **vars(base),
            scores=dict(self.scores),
            summary=self.summary,
            round_summaries=list(self.round_summaries),
            debate_completed=self.phase == DebatePhase.COMPLETE,
            total_turns=self.state.current_turn,
            completed_rounds=self.completed_rounds,
        )
