"""Emotion-driven bidding."""

from __future__ import annotations

from typing import Mapping

from ..session import DialogueState
from .base import BiddingStrategy
from .context import Bid, BidContext, EmotionalState, clamp

POSITIVE_KEYWORDS = [
    "agree", "good", "great", "excellent", "happy",
    "interesting", "positive", "helpful", "like", "appreciate",
]
NEGATIVE_KEYWORDS = [
    "disagree", "bad", "wrong", "mistake", "sad",
    "difficult", "negative", "unhelpful", "dislike", "concerned",
]
CONTENTION_KEYWORDS = [
    "but", "however", "actually", "disagree", "incorrect",
    "wrong", "no", "not", "oppose", "contrary",
]
EXPRESSED_EMOTION_KEYWORDS = [
    "happy", "sad", "angry", "excited", "worried",
    "concerned", "frustrated", "love", "hate", "afraid",
    "anxious", "tired", "confused", "sorry", "proud",
]


class EmotionalBiddingStrategy(BiddingStrategy):
    """Combines own emotion, others' emotions and conversation tone.

    Args:
        base_strength: Bid before emotional adjustment
        emotional_responsiveness: Scale applied to the emotional modifier (0-1)
    """

    def __init__(self, base_strength: float = 0.5, emotional_responsiveness: float = 0.7):
        self.base_strength = clamp(base_strength)
        self.emotional_responsiveness = clamp(emotional_responsiveness)

    def calculate_bid(self, context: BidContext) -> Bid:
        state = context.dialogue_state
        if context.emotional_state is None:
            return Bid(
                participant_id=context.participant_id,
                strength=self._expressed_emotion_strength(state, context.participant_id),
                reason="Emotion-based bidding",
                metadata={"own_emotion_impact": 0.0, "others_emotion_impact": 0.0, "conversation_tone_impact": 0.0},
            )

        own = self.own_emotion_impact(context.emotional_state)
        others = self.others_emotion_impact(context.other_participant_emotions, context.participant_id)
        tone = self.conversation_tone_impact(state)

        modifier = (own * 0.5 + others * 0.3 + tone * 0.2) * self.emotional_responsiveness
        return Bid(
            participant_id=context.participant_id,
            strength=clamp(self.base_strength + modifier),
            reason=f"Emotion-based bidding (own: {own:.2f}, others: {others:.2f}, tone: {tone:.2f})",
            metadata={
                "own_emotion_impact": own,
                "others_emotion_impact": others,
                "conversation_tone_impact": tone,
            },
        )

    @staticmethod
    def own_emotion_impact(emotion: EmotionalState) -> float:
        arousal_impact = (emotion.arousal - 0.5) * 0.6

        valence = emotion.valence
        if valence > 0:
            valence_impact = valence * 0.3
        elif valence < 0 and emotion.arousal > 0.7:
            # agitated negativity pushes to speak up
            valence_impact = abs(valence) * 0.2
        elif valence < 0:
            valence_impact = valence * 0.2
        else:
            valence_impact = 0.0

        return arousal_impact + valence_impact

    @staticmethod
    def others_emotion_impact(emotions: Mapping[str, EmotionalState], participant_id: str) -> float:
        others = [emotion for pid, emotion in emotions.items() if pid != participant_id]
        if not others:
            return 0.0

        valence = sum(emotion.valence for emotion in others) / len(others)
        arousal = sum(emotion.arousal for emotion in others) / len(others)

        if valence < -0.3 and arousal > 0.6:
            return 0.3
        if valence < -0.3 and arousal < 0.4:
            return 0.2
        if valence > 0.3 and arousal > 0.6:
            return 0.1
        if valence > 0.3 and arousal < 0.4:
            return -0.1
        return 0.0

    @staticmethod
    def conversation_tone_impact(state: DialogueState) -> float:
        recent = state.recent_messages(5)
        if not recent:
            return 0.0

        positive = negative = contention = 0
        for message in recent:
            content = message.content.lower()
            positive += sum(1 for keyword in POSITIVE_KEYWORDS if keyword in content)
            negative += sum(1 for keyword in NEGATIVE_KEYWORDS if keyword in content)
            contention += sum(1 for keyword in CONTENTION_KEYWORDS if keyword in content)

        impact = 0.0
        if contention > 3:
            impact += 0.2
        if negative > positive and negative > 3:
            impact += 0.1
        if positive > negative and positive > 3:
            impact -= 0.1
        return impact

    def _expressed_emotion_strength(self, state: DialogueState, participant_id: str) -> float:
        recent = state.recent_messages(3)
        hits = 0
        for message in recent:
            if message.participant_id != participant_id:
                content = message.content.lower()
                hits += sum(1 for keyword in EXPRESSED_EMOTION_KEYWORDS if keyword in content)

        if hits > 3:
            return min(1.0, self.base_strength + 0.2)
        if hits > 0:
            return min(1.0, self.base_strength + 0.1)
        return self.base_strength
