"""Dialogue participants: identity, response capability and bidding."""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from convenings_core.llm import is_async_callable

from ..bidding import Bid, BidContext, BiddingStrategy, clamp, create_default_bidding_strategy
from ..session import DialogueMessage, DialogueState

logger = logging.getLogger(__name__)

Responder = Callable[[str], Union[str, Awaitable[str]]]


class ParticipantRole(str, Enum):
    """Roles the orchestration core recognises. Any other string is accepted too."""

    MODERATOR = "moderator"
    FACILITATOR = "facilitator"
    AUTHORITY = "authority"
    POSITION_ADVOCATE = "position_advocate"
    FACT_CHECKER = "fact_checker"
    PARTICIPANT = "participant"


class DialogueStyle(str, Enum):
    COOPERATIVE = "cooperative"
    COMPETITIVE = "competitive"
    INQUISITIVE = "inquisitive"
    ASSERTIVE = "assertive"
    ANALYTICAL = "analytical"


class DialogueParticipant:
    """A participant in a dialogue.

    Args:
        name: Display name used in prompts and history
        responder: ``respond(prompt) -> text`` capability, sync or async.
            Defaults to an echo of the prompt.
        role: Role tag (see ``ParticipantRole``)
        dialogue_style: Style tag passed to bidding strategies
        bidding_strategy: Strategy used by ``calculate_bid``
        motivations: motivation name -> strength in [0, 1]
        metadata: Free-form data (e.g. ``expertise_areas``)
        id: Stable identifier, generated when omitted
    """

    def __init__(
        self,
        name: str,
        responder: Optional[Responder] = None,
        *,
        role: Optional[Union[ParticipantRole, str]] = None,
        dialogue_style: Optional[Union[DialogueStyle, str]] = None,
        bidding_strategy: Optional[BiddingStrategy] = None,
        motivations: Optional[Dict[str, float]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        id: Optional[str] = None,
    ) -> None:
        self.id = id or str(uuid.uuid4())
        self.name = name
        self.role = role
        self.dialogue_style = dialogue_style
        self.bidding_strategy = bidding_strategy or create_default_bidding_strategy()
        self.motivations: Dict[str, float] = {key: clamp(value) for key, value in (motivations or {}).items()}
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self._responder = responder

    # ----- capabilities ----- #

    async def respond(self, prompt: str) -> str:
        """Produce the participant's message for ``prompt``."""

        return await self.execute(prompt)

    async def execute(self, prompt: str) -> str:
        """Call the response capability with ``prompt`` unchanged."""

        if self._responder is None:
            return f"{self.name} responds to: {prompt}"
        if is_async_callable(self._responder):
            return await self._responder(prompt)  # type: ignore[misc]
        return await asyncio.to_thread(self._responder, prompt)  # type: ignore[arg-type]

    def build_bid_context(self, state: DialogueState, **extras: Any) -> BidContext:
        return BidContext(
            dialogue_state=state,
            participant_id=self.id,
            context={
                "motivations": dict(self.motivations),
                "dialogue_style": self.dialogue_style,
                "role": self.role,
            },
            **extras,
        )

    async def calculate_bid(self, state: DialogueState, **extras: Any) -> Bid:
        """Score this participant's desire to speak next.

        ``extras`` are forwarded to ``BidContext`` (emotional state,
        coalitions, urgency, semantic context).
        """

        return self.bidding_strategy(self.build_bid_context(state, **extras))

    def observe_message(self, message: DialogueMessage, state: DialogueState) -> None:
        """Called by workflows after every appended message."""

    # ----- motivations ----- #

    def update_motivations(self, motivations: Dict[str, float]) -> None:
        for name, strength in motivations.items():
            self.motivations[name] = clamp(strength)

    def get_motivations(self) -> Dict[str, float]:
        return dict(self.motivations)

    # ----- serialisation ----- #

    @property
    def role_value(self) -> Optional[str]:
        return getattr(self.role, "value", self.role)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role_value,
            "dialogue_style": getattr(self.dialogue_style, "value", self.dialogue_style),
            "motivations": dict(self.motivations),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r}, role={self.role_value!r})"
