"""Generic dialogue workflow: the session loop shared by every specialisation.

The loop is single-threaded and cooperative. It awaits one participant at a
time and never starts a turn before the previous message is appended.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from convenings_core.events import EventHook, EventType

from ..participants.base import DialogueParticipant
from ..session import DialogueMessage, DialogueState
from ..turn_coordinator import Turn, TurnCoordinator, TurnStrategy

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "This is a dialogue about {topic} between {participantNames}. "
    "Each participant should stay in character and engage meaningfully with the topic."
)
NO_MESSAGES = "No messages yet."

END_COMPLETED = "completed"
END_MAX_TURNS = "max_turns_reached"
END_MAX_DURATION = "max_duration_reached"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

ExitCondition = Callable[[DialogueState], bool]


def format_template(template: str, **values: str) -> str:
    """Replace ``{name}`` placeholders; unknown placeholders are left as-is."""
    return _PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), template)


class WorkflowConfig(BaseModel):
    """Limits and prompt settings for a dialogue session."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_turns: int = Field(default=10, ge=0)
    max_duration_ms: float = Field(default=300_000, ge=0)
    system_prompt_template: str = DEFAULT_SYSTEM_PROMPT
    include_system_prompt: bool = True
    turn_strategy: TurnStrategy = TurnStrategy.ROUND_ROBIN
    exit_condition: Optional[ExitCondition] = None
    events: Optional[EventHook] = None


@dataclass
class DialogueResult:
    id: str
    topic: str
    messages: List[DialogueMessage]
    success: bool
    end_reason: str
    duration_ms: float
    state: DialogueState
    outputs: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "success": self.success,
            "end_reason": self.end_reason,
            "duration_ms": self.duration_ms,
            "message_count": len(self.messages),
            "outputs": dict(self.outputs),
        }


class DialogueWorkflow:
    """Runs a turn-based dialogue between two or more participants.

    Args:
        participants: Participants in turn order
        topic: Topic under discussion
        config: Session limits and prompt settings

    Raises:
        ValueError: fewer than two participants.
    """

    def __init__(
        self,
        participants: Sequence[DialogueParticipant],
        topic: str,
        config: Optional[WorkflowConfig] = None,
    ):
        if len(participants) < 2:
            raise ValueError("Dialogue requires at least 2 participants")

        self.config = config or WorkflowConfig()
        self.events = self.config.events or EventHook()
        self.state = DialogueState(topic=topic, participants=list(participants))
        self.coordinator = self.create_coordinator()
        self._started_at = time.monotonic()

        logger.info(
            f"Initialized {type(self).__name__} {self.state.id} on {topic!r} "
            f"with {len(participants)} participants"
        )

    def create_coordinator(self) -> TurnCoordinator:
        return TurnCoordinator(self.state.participants, self.config.turn_strategy)

    # ----- loop ----- #

    async def run(self) -> DialogueResult:
        """Run the dialogue until an exit condition, turn limit or time limit.

        Participant failures end the session with an ``error:<msg>`` end
        reason instead of propagating.
        """
        self._started_at = time.monotonic()
        self.state.start_time = datetime.now(timezone.utc)
        end_reason = END_COMPLETED
        success = True

        try:
            while True:
                if self.should_exit():
                    break
                if self.state.current_turn >= self.max_turns:
                    end_reason = END_MAX_TURNS
                    break
                if self.elapsed_ms() >= self.config.max_duration_ms:
                    end_reason = END_MAX_DURATION
                    break

                await self.execute_turn()
                self.state.current_turn += 1
        except Exception as exc:
            logger.exception(f"Error in dialogue workflow {self.state.id}")
            success = False
            end_reason = f"error:{exc}"
            self.events.emit(EventType.SESSION_ERROR, dialogue_id=self.state.id, error=str(exc))

        self.state.is_complete = True
        self.state.end_time = datetime.now(timezone.utc)
        duration_ms = self.elapsed_ms()

        logger.info(
            f"Dialogue {self.state.id} ended after {self.state.current_turn} turns ({end_reason})"
        )
        self.events.emit(
            EventType.SESSION_COMPLETED,
            dialogue_id=self.state.id,
            end_reason=end_reason,
            turns=self.state.current_turn,
        )
        return self.build_result(success, end_reason, duration_ms)

    @property
    def max_turns(self) -> int:
        return self.config.max_turns

    def should_exit(self) -> bool:
        if self.state.is_complete:
            return True
        condition = self.config.exit_condition
        return bool(condition and condition(self.state))

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self._started_at) * 1000

    async def execute_turn(self) -> DialogueMessage:
        turn = await self.coordinator.next_turn(self.state)
        participant = self.coordinator.participant(turn.participant_id)
        content = await participant.respond(self.build_prompt(participant))
        return self.record_message(participant, content, turn=turn)

    def record_message(
        self,
        participant: DialogueParticipant,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        turn: Optional[Turn] = None,
    ) -> DialogueMessage:
        """Append a message and let every participant observe it."""

        message_metadata: Dict[str, Any] = {"turn_number": self.state.current_turn}
        if turn is not None and turn.bid is not None:
            message_metadata["bid_strength"] = turn.bid.strength
        message_metadata.update(metadata or {})

        message = self.state.add_message(participant.id, content, message_metadata)
        for observer in self.state.participants:
            observer.observe_message(message, self.state)

        self.events.emit(
            EventType.TURN_RECORDED,
            dialogue_id=self.state.id,
            participant_id=participant.id,
            turn_number=self.state.current_turn,
        )
        return message

    # ----- prompts ----- #

    def system_prompt(self) -> str:
        names = ", ".join(participant.name for participant in self.state.participants)
        return format_template(self.config.system_prompt_template, topic=self.state.topic, participantNames=names)

    def format_history(self) -> str:
        if not self.state.messages:
            return NO_MESSAGES
        return self.state.format_history()

    def build_prompt(
        self,
        participant: DialogueParticipant,
        *,
        instruction: Optional[str] = None,
        phase_line: Optional[str] = None,
        history_label: str = "Dialogue history:",
    ) -> str:
        lines = [
            self.system_prompt() if self.config.include_system_prompt else "",
            f"The current topic is: {self.state.topic}",
            phase_line or "",
            "",
            history_label,
            self.format_history(),
            "",
            instruction or f"It is now {participant.name}'s turn to speak.",
        ]
        return "\n".join(line for line in lines if line)

    # ----- results ----- #

    def build_result(self, success: bool, end_reason: str, duration_ms: float) -> DialogueResult:
        return DialogueResult(
            id=self.state.id,
            topic=self.state.topic,
            messages=list(self.state.messages),
            success=success,
            end_reason=end_reason,
            duration_ms=duration_ms,
            state=self.state,
            outputs={"turn_statistics": self.coordinator.get_turn_statistics()},
        )
