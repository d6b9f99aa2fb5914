"""Inputs and outputs of a single bidding decision."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..session import DialogueState


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


@dataclass
class EmotionalState:
    """Valence in [-1, 1], arousal in [0, 1]."""

    valence: float = 0.0
    arousal: float = 0.5

    def __post_init__(self) -> None:
        self.valence = clamp(self.valence, -1.0, 1.0)
        self.arousal = clamp(self.arousal)


@dataclass
class Coalition:
    """A tracked subset of participants sharing a topic or stance."""

    members: List[str]
    topic: str
    strength: float
    formed_at_turn: int = 0
    expires_at_turn: Optional[int] = None


@dataclass
class SemanticContext:
    """Semantic hints for contextual bidding."""

    active_terms: List[str] = field(default_factory=list)
    participant_expertise: Dict[str, Dict[str, float]] = field(default_factory=dict)
    thread_chain: List[str] = field(default_factory=list)


@dataclass
class Bid:
    """A participant's scored desire to speak next."""

    participant_id: str
    strength: float
    reason: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BidContext:
    """Everything a strategy may look at when computing a bid.

    ``context`` carries participant-supplied data (motivations, role,
    dialogue style); the typed fields carry optional auxiliary signals.
    """

    dialogue_state: DialogueState
    participant_id: str
    context: Dict[str, Any] = field(default_factory=dict)
    emotional_state: Optional[EmotionalState] = None
    other_participant_emotions: Dict[str, EmotionalState] = field(default_factory=dict)
    coalitions: List[Coalition] = field(default_factory=list)
    urgency_level: Optional[float] = None
    urgency_reason: Optional[str] = None
    interruption_allowed: Optional[bool] = None
    semantic_context: Optional[SemanticContext] = None

    def __post_init__(self) -> None:
        if self.dialogue_state is None:
            raise ValueError("BidContext requires a dialogue_state snapshot")
        if not self.participant_id:
            raise ValueError("BidContext requires a participant_id")


def role_name(participant: Any) -> str:
    """Lowercase role of a participant, whether the role is an enum or a string."""

    role = getattr(participant, "role", "") or ""
    return str(getattr(role, "value", role)).lower()
