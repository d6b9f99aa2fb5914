"""Turn Coordinator - decides which participant speaks next.

Supports round-robin selection, bid-driven selection through the bidding
engine, and scripted assignment for workflows (such as debates) that follow a
fixed turn order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .bidding import Bid

if TYPE_CHECKING:
    from .participants.base import DialogueParticipant
    from .session import DialogueState

logger = logging.getLogger(__name__)


class TurnStrategy(str, Enum):
    """Turn-taking strategies for the session loop."""

    ROUND_ROBIN = "round_robin"  # index = turn counter mod participant count
    BIDDING = "bidding"  # highest bid wins, ties go to the earlier participant
    SCRIPTED = "scripted"  # workflow assigns every turn explicitly


@dataclass
class Turn:
    """A turn assignment for a participant."""

    participant_id: str
    turn_number: int
    strategy: TurnStrategy
    bid: Optional[Bid] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class TurnCoordinator:
    """Coordinates turn-taking between dialogue participants.

    Tracks turn history so callers can inspect how evenly speaking
    opportunities were distributed.
    """

    def __init__(
        self,
        participants: List["DialogueParticipant"],
        strategy: TurnStrategy = TurnStrategy.ROUND_ROBIN,
    ):
        """Initialize turn coordinator.

        Args:
            participants: Participants in turn order
            strategy: Turn-taking strategy to use
        """
        if not participants:
            raise ValueError("TurnCoordinator requires at least one participant")

        self.participants = list(participants)
        self.strategy = TurnStrategy(strategy)

        self.turn_count = 0
        self.turn_history: List[Turn] = []
        self.participant_turn_counts: Dict[str, int] = {p.id: 0 for p in self.participants}

        logger.info(
            f"Initialized TurnCoordinator with {len(self.participants)} participants, "
            f"strategy={self.strategy.value}"
        )

    async def next_turn(self, state: "DialogueState") -> Turn:
        """Pick the participant for the turn at ``state.current_turn``."""

        if self.strategy == TurnStrategy.BIDDING:
            turn = await self._next_bidding(state)
        elif self.strategy == TurnStrategy.SCRIPTED:
            raise RuntimeError("Scripted turns must be assigned with assign_turn()")
        else:
            participant = self.participants[state.current_turn % len(self.participants)]
            turn = Turn(participant_id=participant.id, turn_number=state.current_turn, strategy=self.strategy)

        self._record_turn(turn)
        return turn

    def assign_turn(self, participant_id: str, turn_number: int, **metadata: Any) -> Turn:
        """Explicitly assign a turn to a specific participant.

        Raises:
            ValueError: the participant is not part of the dialogue.
        """
        if participant_id not in self.participant_turn_counts:
            raise ValueError(f"Participant {participant_id} not in dialogue")

        turn = Turn(
            participant_id=participant_id,
            turn_number=turn_number,
            strategy=TurnStrategy.SCRIPTED,
            metadata=dict(metadata),
        )
        self._record_turn(turn)
        return turn

    def participant(self, participant_id: str) -> "DialogueParticipant":
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        raise ValueError(f"Participant {participant_id} not in dialogue")

    def get_turn_statistics(self) -> Dict[str, Any]:
        total_turns = sum(self.participant_turn_counts.values())
        avg_turns = total_turns / len(self.participants)

        return {
            "total_turns": total_turns,
            "participant_turn_counts": self.participant_turn_counts.copy(),
            "average_turns_per_participant": avg_turns,
            "strategy": self.strategy.value,
            "fairness_variance": self._calculate_fairness_variance(),
        }

    async def _next_bidding(self, state: "DialogueState") -> Turn:
        """Collect one bid per participant, in order, and take the highest."""

        winner = self.participants[0]
        best: Optional[Bid] = None
        for participant in self.participants:
            bid = await participant.calculate_bid(state)
            logger.debug(f"Bid from {participant.name}: {bid.strength:.3f} ({bid.reason})")
            if best is None or bid.strength > best.strength:
                winner, best = participant, bid

        return Turn(
            participant_id=winner.id,
            turn_number=state.current_turn,
            strategy=self.strategy,
            bid=best,
        )

    def _record_turn(self, turn: Turn) -> None:
        self.turn_history.append(turn)
        self.participant_turn_counts[turn.participant_id] = self.participant_turn_counts.get(turn.participant_id, 0) + 1
        self.turn_count += 1
        logger.debug(
            f"Turn {self.turn_count} assigned to {turn.participant_id} "
            f"(total: {self.participant_turn_counts[turn.participant_id]})"
        )

    def _calculate_fairness_variance(self) -> float:
        """Variance in turn distribution (lower = more fair)."""
        counts = list(self.participant_turn_counts.values())
        mean = sum(counts) / len(counts)
        return sum((c - mean) ** 2 for c in counts) / len(counts)
