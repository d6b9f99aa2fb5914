from __future__ import annotations

import pytest

from convenings.bidding import StaticBiddingStrategy
from convenings.participants import DialogueParticipant
from convenings.session import DialogueState
from convenings.turn_coordinator import TurnCoordinator, TurnStrategy


def bidder(participant_id: str, strength: float) -> DialogueParticipant:
    return DialogueParticipant(participant_id.title(), id=participant_id, bidding_strategy=StaticBiddingStrategy(strength))


def test_coordinator_requires_participants() -> None:
    with pytest.raises(ValueError):
        TurnCoordinator([])


@pytest.mark.asyncio
async def test_round_robin_follows_turn_counter() -> None:
    participants = [DialogueParticipant("A", id="a"), DialogueParticipant("B", id="b"), DialogueParticipant("C", id="c")]
    coordinator = TurnCoordinator(participants)
    state = DialogueState(topic="t", participants=participants)

    picked = []
    for turn_number in range(5):
        state.current_turn = turn_number
        picked.append((await coordinator.next_turn(state)).participant_id)

    assert picked == ["a", "b", "c", "a", "b"]
    stats = coordinator.get_turn_statistics()
    assert stats["total_turns"] == 5
    assert stats["participant_turn_counts"] == {"a": 2, "b": 2, "c": 1}
    assert stats["strategy"] == "round_robin"
    assert stats["fairness_variance"] == pytest.approx(2 / 9)


@pytest.mark.asyncio
async def test_bidding_picks_highest_bid() -> None:
    participants = [bidder("a", 0.3), bidder("b", 0.9), bidder("c", 0.5)]
    coordinator = TurnCoordinator(participants, TurnStrategy.BIDDING)

    turn = await coordinator.next_turn(DialogueState(topic="t", participants=participants))

    assert turn.participant_id == "b"
    assert turn.bid is not None
    assert turn.bid.strength == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_bidding_ties_go_to_earlier_participant() -> None:
    participants = [bidder("a", 0.4), bidder("b", 0.7), bidder("c", 0.7)]
    coordinator = TurnCoordinator(participants, TurnStrategy.BIDDING)

    turn = await coordinator.next_turn(DialogueState(topic="t", participants=participants))

    assert turn.participant_id == "b"


@pytest.mark.asyncio
async def test_scripted_turns_must_be_assigned() -> None:
    participants = [DialogueParticipant("A", id="a"), DialogueParticipant("B", id="b")]
    coordinator = TurnCoordinator(participants, TurnStrategy.SCRIPTED)

    with pytest.raises(RuntimeError):
        await coordinator.next_turn(DialogueState(topic="t", participants=participants))

    turn = coordinator.assign_turn("b", 0, phase="opening")
    assert turn.metadata == {"phase": "opening"}
    assert coordinator.participant_turn_counts["b"] == 1

    with pytest.raises(ValueError):
        coordinator.assign_turn("zed", 1)
