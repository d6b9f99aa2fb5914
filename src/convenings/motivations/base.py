"""Motivation interface and the state it evolves."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from ..bidding.context import EmotionalState
from ..session import DialogueMessage, DialogueState
from ..text import extract_topics

if TYPE_CHECKING:
    from ..participants.base import DialogueParticipant


@dataclass
class MotivationState:
    """Per (participant, motivation) state.

    Attributes:
        satisfaction: How satisfied the motivation currently is (0-1)
        urgency: How pressing it is to act on the motivation (0-1)
        agreement: participant id -> agreement level (0-1)
        topics_addressed: Topics already touched on
        emotional_state: Valence/arousal attached to this motivation
    """

    satisfaction: float = 0.5
    urgency: float = 0.5
    agreement: Dict[str, float] = field(default_factory=dict)
    topics_addressed: Set[str] = field(default_factory=set)
    emotional_state: EmotionalState = field(default_factory=EmotionalState)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "MotivationState":
        return MotivationState(
            satisfaction=self.satisfaction,
            urgency=self.urgency,
            agreement=dict(self.agreement),
            topics_addressed=set(self.topics_addressed),
            emotional_state=EmotionalState(self.emotional_state.valence, self.emotional_state.arousal),
            metadata=dict(self.metadata),
        )

    @property
    def average_agreement(self) -> Optional[float]:
        if not self.agreement:
            return None
        return sum(self.agreement.values()) / len(self.agreement)


@dataclass
class DialogueTurn:
    participant_id: str
    message: str
    timestamp: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_message(cls, message: DialogueMessage) -> "DialogueTurn":
        return cls(
            participant_id=message.participant_id,
            message=message.content,
            timestamp=message.timestamp.timestamp(),
            metadata=dict(message.metadata),
        )


@dataclass
class MotivationContext:
    """What a motivation sees of the dialogue when scoring or updating."""

    history: List[DialogueTurn] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    participants: List[Any] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    time_since_last_turn: float = 0.0
    turns_since_last_spoke: int = 0
    is_new_topic: bool = False

    @classmethod
    def from_dialogue_state(cls, state: DialogueState, participant_id: str) -> "MotivationContext":
        history = [DialogueTurn.from_message(message) for message in state.messages]

        turns_since = state.turns_since_last_spoke(participant_id)
        if turns_since is None:
            # never spoke: count as if the last turn before the dialogue was ours
            turns_since = len(history) + 1

        time_since = 0.0
        if state.messages:
            time_since = (datetime.now(timezone.utc) - state.messages[-1].timestamp).total_seconds()

        return cls(
            history=history,
            topics=[state.topic],
            participants=list(state.participants),
            metadata=dict(state.context),
            time_since_last_turn=time_since,
            turns_since_last_spoke=turns_since,
            is_new_topic=_introduces_new_topic(state.messages),
        )


def _introduces_new_topic(messages: List[DialogueMessage]) -> bool:
    if len(messages) < 2:
        return False
    seen = {topic.lower() for message in messages[:-1] for topic in extract_topics(message.content)}
    return any(topic.lower() not in seen for topic in extract_topics(messages[-1].content))


class Motivation(ABC):
    """A drive that makes a participant want to speak.

    ``update_state`` is a pure transform: it returns a new state and leaves
    its input untouched.
    """

    id: str = "motivation"
    name: str = "Motivation"

    @abstractmethod
    def calculate_desire(
        self,
        participant: Optional["DialogueParticipant"],
        state: MotivationState,
        context: MotivationContext,
    ) -> float:
        """Desire to speak in [0, 1]."""

    @abstractmethod
    def update_state(self, state: MotivationState, turn: DialogueTurn, context: MotivationContext) -> MotivationState:
        ...

    @abstractmethod
    def is_satisfied(self, state: MotivationState) -> bool:
        ...
