from __future__ import annotations

from typing import List, Sequence, Tuple

import pytest

from convenings.bidding import (
    BidContext,
    CombinedBiddingStrategy,
    Coalition,
    ContextualBiddingStrategy,
    CoalitionBiddingStrategy,
    EmotionalBiddingStrategy,
    EmotionalState,
    InterruptionBiddingStrategy,
    MotivationBiddingStrategy,
    QuestionRespondingBiddingStrategy,
    SemanticContext,
    StaticBiddingStrategy,
    TurnTakingBiddingStrategy,
    create_advanced_strategy,
    create_brainstorming_strategy,
    create_consensus_strategy,
    create_debate_strategy,
    create_default_advanced_strategy,
    create_default_bidding_strategy,
    create_moderator_strategy,
    extract_questions,
    should_form_coalition,
)
from convenings.participants import DialogueParticipant, ParticipantRole
from convenings.session import DialogueState


def make_state(messages: Sequence[Tuple[str, str]] = (), topic: str = "climate policy") -> DialogueState:
    participants = [
        DialogueParticipant("Alice", id="alice"),
        DialogueParticipant("Bob", id="bob"),
        DialogueParticipant("Carol", id="carol"),
    ]
    state = DialogueState(topic=topic, participants=participants)
    for participant_id, content in messages:
        state.add_message(participant_id, content)
    return state


def context_for(state: DialogueState, participant_id: str = "alice", **extras) -> BidContext:
    return BidContext(dialogue_state=state, participant_id=participant_id, **extras)


def test_static_strategy_clamps_strength() -> None:
    bid = StaticBiddingStrategy(1.7)(context_for(make_state()))

    assert bid.strength == 1.0
    assert bid.participant_id == "alice"


def test_bid_context_requires_participant_id() -> None:
    with pytest.raises(ValueError):
        BidContext(dialogue_state=make_state(), participant_id="")


def test_every_strategy_stays_within_bounds() -> None:
    noisy = make_state(
        [
            ("bob", "I strongly disagree! This is wrong, a critical error and a dangerous mistake."),
            ("carol", "Alice, why do you believe that? I feel angry, worried and frustrated."),
            ("bob", "Actually, alice is incorrect. Urgent attention needed, I am excited and concerned."),
            ("carol", "I agree, I am happy and interested, that's a great and wonderful point!"),
        ]
    )
    strategies: List = [
        StaticBiddingStrategy(0.9),
        TurnTakingBiddingStrategy(1.0),
        MotivationBiddingStrategy(1.0),
        EmotionalBiddingStrategy(1.0, 1.0),
        CoalitionBiddingStrategy(1.0, 1.0),
        InterruptionBiddingStrategy(1.0, 0.5, 0.5),
        QuestionRespondingBiddingStrategy(1.0, 0.5),
        create_default_bidding_strategy(),
        create_default_advanced_strategy(),
        create_debate_strategy(),
        create_consensus_strategy(),
        create_brainstorming_strategy(),
        create_moderator_strategy(),
    ]
    contexts = [
        context_for(noisy, "alice", context={"motivations": {"climate": 1.0}}),
        context_for(
            noisy,
            "alice",
            emotional_state=EmotionalState(valence=-1.0, arousal=1.0),
            other_participant_emotions={"bob": EmotionalState(valence=-1.0, arousal=1.0)},
            coalitions=[Coalition(members=["bob", "carol"], topic="taxes", strength=1.0)],
            urgency_level=1.0,
        ),
        context_for(make_state(), "bob"),
    ]

    for strategy in strategies:
        for context in contexts:
            bid = strategy(context)
            assert 0.0 <= bid.strength <= 1.0, type(strategy).__name__


def test_combined_strategy_normalises_weights() -> None:
    combined = CombinedBiddingStrategy([(StaticBiddingStrategy(0.2), 2.0), (StaticBiddingStrategy(0.8), 6.0)])

    assert sum(combined.weights) == pytest.approx(1.0)
    assert combined.weights == pytest.approx([0.25, 0.75])

    bid = combined(context_for(make_state()))
    assert bid.strength == pytest.approx(0.65)
    assert len(bid.metadata["individual_bids"]) == 2


def test_combined_strategy_requires_strategies() -> None:
    with pytest.raises(ValueError):
        CombinedBiddingStrategy([])


def test_turn_taking_favours_participants_who_waited() -> None:
    state = make_state([("alice", "hi"), ("bob", "hello"), ("carol", "hey"), ("bob", "again")])
    strategy = TurnTakingBiddingStrategy(0.5)

    waited = strategy(context_for(state, "alice"))
    just_spoke = strategy(context_for(state, "bob"))
    in_between = strategy(context_for(state, "carol"))

    assert waited.strength == pytest.approx(0.7)
    assert just_spoke.strength == pytest.approx(0.2)
    assert in_between.strength == pytest.approx(0.5)
    assert waited.strength >= just_spoke.strength


def test_turn_taking_boosts_participant_who_never_spoke() -> None:
    bid = TurnTakingBiddingStrategy(0.5)(context_for(make_state([("bob", "hello")]), "alice"))

    assert bid.strength == pytest.approx(0.9)


def test_motivation_strategy_uses_topic_relevance() -> None:
    strategy = MotivationBiddingStrategy(0.5)

    relevant = strategy(context_for(make_state(), context={"motivations": {"climate": 0.8, "economy": 0.4}}))
    without = strategy(context_for(make_state()))

    assert relevant.strength == pytest.approx(0.74)
    assert without.strength == pytest.approx(0.5)


def test_coalition_members_take_turns_leading() -> None:
    coalition = Coalition(members=["alice", "bob"], topic="carbon tax", strength=0.6)
    state = make_state()
    strategy = CoalitionBiddingStrategy(0.5, 0.3)

    leader = strategy(context_for(state, "alice", coalitions=[coalition]))
    follower = strategy(context_for(state, "bob", coalitions=[coalition]))
    outsider = strategy(context_for(state, "carol", coalitions=[coalition]))

    assert leader.strength == pytest.approx(0.68)
    assert follower.strength == pytest.approx(0.59)
    assert outsider.strength == pytest.approx(0.4)
    assert outsider.metadata["opposition_factor"] == pytest.approx(-0.1)


def test_outsider_pushes_back_on_dominant_coalition() -> None:
    coalition = Coalition(members=["alice", "bob"], topic="carbon tax", strength=0.6)
    state = make_state([("alice", "one"), ("bob", "two"), ("alice", "three")])

    bid = CoalitionBiddingStrategy(0.5, 0.3)(context_for(state, "carol", coalitions=[coalition]))

    assert bid.strength == pytest.approx(0.8)
    assert bid.metadata["opposition_factor"] == pytest.approx(0.3)


def test_should_form_coalition_after_repeated_agreement() -> None:
    state = make_state(
        [
            ("alice", "Renewable subsidies work well"),
            ("bob", "I agree, renewable subsidies work"),
            ("alice", "Exactly, subsidies matter"),
            ("bob", "Yes, I agree"),
        ]
    )

    proposal = should_form_coalition(state, "alice")

    assert proposal.should_form is True
    assert proposal.allies[0] == "bob"
    assert proposal.strength == pytest.approx(0.7)
    assert proposal.topic


def test_should_form_coalition_needs_history() -> None:
    state = make_state([("alice", "Subsidies"), ("bob", "I agree")])

    assert should_form_coalition(state, "alice").should_form is False


def test_interruption_with_explicit_urgency() -> None:
    state = make_state([("bob", "Taxes are the only answer.")])
    strategy = InterruptionBiddingStrategy(0.5, 0.8, 0.4)

    bid = strategy(context_for(state, "alice", urgency_level=0.9, urgency_reason="Factual error"))

    assert bid.strength == pytest.approx(0.7)
    assert bid.metadata["is_interruption"] is True
    assert "Factual error" in bid.reason


def test_interruption_blocked_when_disallowed_or_after_own_message() -> None:
    strategy = InterruptionBiddingStrategy(0.5, 0.8, 0.4)
    state = make_state([("alice", "I said this last.")])

    own = strategy(context_for(state, "alice", urgency_level=1.0))
    forbidden = strategy(context_for(make_state([("bob", "x")]), "alice", urgency_level=1.0, interruption_allowed=False))

    assert own.strength == pytest.approx(0.5)
    assert forbidden.strength == pytest.approx(0.5)
    assert own.metadata["is_interruption"] is False


def test_interrupting_a_moderator_needs_extra_urgency() -> None:
    participants = [
        DialogueParticipant("Mod", id="mod", role=ParticipantRole.MODERATOR),
        DialogueParticipant("Alice", id="alice"),
    ]
    state = DialogueState(topic="t", participants=participants)
    state.add_message("mod", "Let us move on.")
    strategy = InterruptionBiddingStrategy(0.5, 0.8, 0.4)

    assert strategy(context_for(state, "alice", urgency_level=0.85)).metadata["is_interruption"] is False
    assert strategy(context_for(state, "alice", urgency_level=0.95)).metadata["is_interruption"] is True


def test_interruption_detects_factual_contradiction() -> None:
    state = make_state(
        [
            ("carol", "alice said the study was flawed."),
            ("bob", "Actually, that is wrong."),
        ]
    )

    detected = InterruptionBiddingStrategy.detect_urgency(state, "alice")
    bid = InterruptionBiddingStrategy(0.5, 0.8, 0.4)(context_for(state, "alice"))

    assert detected.level == pytest.approx(0.85)
    assert detected.reason == "Potential factual contradiction"
    assert bid.strength == pytest.approx(0.78)


def test_extract_questions() -> None:
    questions = extract_questions("We should act. What do you think? Could you explain the costs.")

    assert questions == ["What do you think?", "Could you explain the costs."]


def test_direct_question_raises_bid_until_answered() -> None:
    strategy = QuestionRespondingBiddingStrategy(0.5, 0.3)
    asked = make_state([("bob", "Alice, what do you think about taxes?")])

    bid = strategy(context_for(asked, "alice"))
    assert bid.strength == pytest.approx(0.8)
    assert bid.metadata["is_direct_question"] is True

    asked.add_message("alice", "I think they work.")
    answered = strategy(context_for(asked, "alice"))
    assert answered.strength == pytest.approx(0.5)


def test_advanced_strategy_from_dict() -> None:
    strategy = create_advanced_strategy(
        {
            "turn_taking": {"weight": 1.0, "base_strength": 0.5},
            "static": {"weight": 3.0, "bid_strength": 0.9},
        }
    )

    assert isinstance(strategy, CombinedBiddingStrategy)
    assert strategy.weights == pytest.approx([0.25, 0.75])
    assert strategy(context_for(make_state(), "alice")).strength == pytest.approx(0.25 * 0.9 + 0.75 * 0.9)


def test_empty_advanced_config_gives_default_mix() -> None:
    strategy = create_advanced_strategy({})

    assert isinstance(strategy, CombinedBiddingStrategy)
    assert len(strategy.strategies) == 5
    assert sum(strategy.weights) == pytest.approx(1.0)


def test_contextual_strategy_blends_relevance_expertise_and_thread() -> None:
    state = make_state([("alice", "Carbon pricing matters"), ("bob", "Taxes are regressive")])
    semantic = SemanticContext(
        active_terms=["carbon", "tax"],
        participant_expertise={"alice": {"carbon": 1.0}},
        thread_chain=["carbon"],
    )
    strategy = ContextualBiddingStrategy(0.5, keyword_weights={"tax": 0.5})

    bid = strategy(context_for(state, "alice", semantic_context=semantic))

    assert bid.metadata["relevance_score"] == pytest.approx(0.74)
    assert bid.metadata["expertise_score"] == pytest.approx(1.0)
    assert bid.metadata["thread_relevance"] == pytest.approx(0.7)
    assert bid.strength == pytest.approx(0.918)


def test_contextual_strategy_without_semantics_rewards_being_addressed() -> None:
    strategy = ContextualBiddingStrategy(0.5)

    addressed = strategy(context_for(make_state([("bob", "Alice, any thoughts?")]), "alice"))
    ignored = strategy(context_for(make_state([("bob", "Any thoughts?")]), "alice"))

    assert addressed.strength == pytest.approx(0.8)
    assert ignored.strength == pytest.approx(0.5)


def test_emotional_strategy_combines_own_and_others_mood() -> None:
    strategy = EmotionalBiddingStrategy(0.5, 0.7)
    context = context_for(
        make_state(),
        "alice",
        emotional_state=EmotionalState(valence=0.5, arousal=0.9),
        other_participant_emotions={"bob": EmotionalState(valence=-0.5, arousal=0.8)},
    )

    bid = strategy(context)

    assert bid.metadata["own_emotion_impact"] == pytest.approx(0.39)
    assert bid.metadata["others_emotion_impact"] == pytest.approx(0.3)
    assert bid.strength == pytest.approx(0.6995)


def test_emotional_strategy_falls_back_to_expressed_emotion() -> None:
    bid = EmotionalBiddingStrategy(0.5)(context_for(make_state([("bob", "I am happy and excited")]), "alice"))

    assert bid.strength == pytest.approx(0.6)


def test_outsider_response_scales_with_coalition_activity() -> None:
    coalition = Coalition(members=["alice", "bob"], topic="carbon tax", strength=0.6)
    strategy = CoalitionBiddingStrategy(0.5, 0.3)

    balanced = strategy(context_for(make_state([("alice", "one"), ("carol", "two"), ("bob", "three")]), "carol", coalitions=[coalition]))
    quiet = strategy(context_for(make_state([("carol", "one")]), "carol", coalitions=[coalition]))

    assert balanced.metadata["opposition_factor"] == pytest.approx(0.1)
    assert balanced.strength == pytest.approx(0.6)
    assert quiet.metadata["opposition_factor"] == pytest.approx(-0.1)
    assert quiet.strength == pytest.approx(0.4)
