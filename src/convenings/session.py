"""Dialogue session state shared by workflows, participants and bidding.

A ``DialogueState`` is owned by exactly one workflow instance. Messages are
append-only; participants are fixed at creation.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .participants.base import DialogueParticipant

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DialogueMessage:
    """A single message in the dialogue. Immutable once appended."""

    participant_id: str
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class DialogueState:
    """Snapshot of a running dialogue.

    Attributes:
        topic: Topic under discussion
        participants: Ordered participants (turn order for round-robin)
        messages: Append-only message log
        current_turn: Number of turns taken so far
        is_complete: Set once the workflow loop stops
        context: Free-form data for custom workflows and exit predicates
    """

    topic: str
    participants: List["DialogueParticipant"]
    messages: List[DialogueMessage] = field(default_factory=list)
    current_turn: int = 0
    is_complete: bool = False
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None
    context: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def participant_ids(self) -> List[str]:
        return [participant.id for participant in self.participants]

    def get_participant(self, participant_id: str) -> Optional["DialogueParticipant"]:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def participant_name(self, participant_id: str) -> str:
        participant = self.get_participant(participant_id)
        return participant.name if participant else participant_id

    def add_message(
        self,
        participant_id: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DialogueMessage:
        message = DialogueMessage(
            participant_id=participant_id,
            content=content,
            metadata=dict(metadata or {}),
        )
        self.messages.append(message)
        logger.debug(f"Dialogue {self.id}: message {len(self.messages)} from {participant_id}")
        return message

    def recent_messages(self, count: int) -> List[DialogueMessage]:
        if count <= 0:
            return []
        return self.messages[-count:]

    def turns_since_last_spoke(self, participant_id: str) -> Optional[int]:
        """Messages appended since ``participant_id`` last spoke (0 = spoke last).

        Returns:
            None when the participant has never spoken.
        """
        for offset, message in enumerate(reversed(self.messages)):
            if message.participant_id == participant_id:
                return offset
        return None

    def format_history(self, messages: Optional[List[DialogueMessage]] = None) -> str:
        """Render messages as ``name: content`` blocks separated by blank lines."""

        selected = self.messages if messages is None else messages
        return "\n\n".join(
            f"{self.participant_name(message.participant_id)}: {message.content}" for message in selected
        )

    def get_statistics(self) -> Dict[str, Any]:
        per_participant: Dict[str, Dict[str, Any]] = {
            participant.id: {"message_count": 0, "total_characters": 0} for participant in self.participants
        }
        for message in self.messages:
            stats = per_participant.setdefault(
                message.participant_id, {"message_count": 0, "total_characters": 0}
            )
            stats["message_count"] += 1
            stats["total_characters"] += len(message.content)

        end = self.end_time or _utcnow()
        return {
            "dialogue_id": self.id,
            "topic": self.topic,
            "current_turn": self.current_turn,
            "total_messages": len(self.messages),
            "is_complete": self.is_complete,
            "duration_seconds": (end - self.start_time).total_seconds(),
            "participant_stats": per_participant,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "participants": [participant.to_dict() for participant in self.participants],
            "current_turn": self.current_turn,
            "is_complete": self.is_complete,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "context": dict(self.context),
            "messages": [
                {
                    "id": message.id,
                    "participant_id": message.participant_id,
                    "content": message.content,
                    "timestamp": message.timestamp.isoformat(),
                    "metadata": dict(message.metadata),
                }
                for message in self.messages
            ],
        }
