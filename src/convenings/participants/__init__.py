"""Dialogue participants."""

from .base import DialogueParticipant, DialogueStyle, ParticipantRole, Responder
from .debate import (
    DebateFormat,
    DebateModerator,
    DebateParticipant,
    StatementType,
    create_debate_moderator,
    create_position_advocate,
)
from .motivated import (
    COMPETITIVE,
    CONSENSUS_SEEKING,
    TRUTH_SEEKING,
    MotivatedDialogueParticipant,
    create_consensus_seeking_participant,
    create_truth_seeking_participant,
)

__all__ = [
    "DialogueParticipant",
    "DialogueStyle",
    "ParticipantRole",
    "Responder",
    "DebateFormat",
    "DebateModerator",
    "DebateParticipant",
    "StatementType",
    "create_debate_moderator",
    "create_position_advocate",
    "COMPETITIVE",
    "CONSENSUS_SEEKING",
    "TRUTH_SEEKING",
    "MotivatedDialogueParticipant",
    "create_consensus_seeking_participant",
    "create_truth_seeking_participant",
]
