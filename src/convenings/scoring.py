"""Argument scoring: criteria weights, response parsing and aggregation.

Parsing is a boundary with a fallback: malformed scorer output never raises,
it yields a neutral score of 5 on every criterion.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SCORING_CRITERIA: Dict[str, float] = {
    "logical_coherence": 0.25,
    "evidence_quality": 0.25,
    "responsiveness": 0.20,
    "persuasiveness": 0.15,
    "rule_adherence": 0.15,
}
UNKNOWN_CRITERION_WEIGHT = 0.1
DEFAULT_RAW_SCORE = 5.0
PARSE_ERROR_JUSTIFICATION = "Score defaulted due to parsing error"

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

SCORING_PROMPT = """
You are evaluating an argument in a debate.

Context: {context}

Argument to evaluate: {argument}

Please score this argument on the following criteria (scale of 0-10):

1. Logical Coherence: Clarity and soundness of reasoning
2. Evidence Quality: Use of relevant, credible evidence
3. Responsiveness: Directly addressing opponent's arguments
4. Persuasiveness: Overall convincingness of presentation
5. Rule Adherence: Following debate format and constraints

For each criterion, provide:
- A score from 0-10
- A brief justification for the score

Important: Your response must be formatted EXACTLY as follows (JSON object only, no other text):
{{
  "logical_coherence": {{"score": X, "justification": "..."}},
  "evidence_quality": {{"score": X, "justification": "..."}},
  "responsiveness": {{"score": X, "justification": "..."}},
  "persuasiveness": {{"score": X, "justification": "..."}},
  "rule_adherence": {{"score": X, "justification": "..."}}
}}
"""


class ScoreParseError(ValueError):
    """Scorer output could not be turned into criterion scores."""


@dataclass
class CriterionScore:
    raw: float
    weighted: float
    justification: Optional[str] = None


@dataclass
class ParticipantScore:
    total: float
    breakdown: Dict[str, CriterionScore] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "breakdown": {
                name: {"raw": score.raw, "weighted": score.weighted, "justification": score.justification}
                for name, score in self.breakdown.items()
            },
        }


def merge_criteria(overrides: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
    criteria = dict(DEFAULT_SCORING_CRITERIA)
    criteria.update(overrides or {})
    return criteria


def normalise_weights(criteria: Mapping[str, float]) -> Dict[str, float]:
    """Scale weights to sum to 1 (returned unchanged when they sum to 0)."""

    total = sum(criteria.values())
    if total <= 0:
        return dict(criteria)
    return {name: weight / total for name, weight in criteria.items()}


def build_scoring_prompt(argument: str, context: str) -> str:
    return SCORING_PROMPT.format(argument=argument, context=context)


def aggregate_scores(
    raw_scores: Mapping[str, Tuple[float, Optional[str]]],
    criteria: Optional[Mapping[str, float]] = None,
) -> ParticipantScore:
    """Weight raw criterion scores and combine them into a total in [0, 10].

    The total is the weighted average of the raw scores, so it stays on the
    same 0-10 scale whatever the weights sum to.
    """

    weights = dict(criteria if criteria is not None else DEFAULT_SCORING_CRITERIA)
    breakdown: Dict[str, CriterionScore] = {}
    weighted_sum = 0.0
    weight_sum = 0.0
    for name, (raw, justification) in raw_scores.items():
        weight = weights.get(name, UNKNOWN_CRITERION_WEIGHT)
        raw = max(0.0, min(10.0, float(raw)))
        breakdown[name] = CriterionScore(raw=raw, weighted=raw * weight, justification=justification)
        weighted_sum += raw * weight
        weight_sum += weight

    total = weighted_sum / weight_sum if weight_sum > 0 else DEFAULT_RAW_SCORE
    return ParticipantScore(total=max(0.0, min(10.0, total)), breakdown=breakdown)


def default_score(criteria: Optional[Mapping[str, float]] = None) -> ParticipantScore:
    weights = criteria if criteria is not None else DEFAULT_SCORING_CRITERIA
    return ParticipantScore(
        total=DEFAULT_RAW_SCORE,
        breakdown={
            name: CriterionScore(
                raw=DEFAULT_RAW_SCORE,
                weighted=DEFAULT_RAW_SCORE * weight,
                justification=PARSE_ERROR_JUSTIFICATION,
            )
            for name, weight in weights.items()
        },
    )


def extract_raw_scores(text: str) -> Dict[str, Tuple[float, Optional[str]]]:
    """Pull ``{criterion: (score, justification)}`` out of scorer output.

    Raises:
        ScoreParseError: non-text output, no JSON object, invalid JSON, or a
            criterion without a finite numeric score.
    """

    if text is None:
        text = ""
    if not isinstance(text, str):
        raise ScoreParseError(f"Score response is not text: {type(text).__name__}")

    match = _JSON_BLOCK.search(text)
    if match is None:
        raise ScoreParseError("No JSON object found in score response")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ScoreParseError(f"Invalid JSON in score response: {exc}") from exc
    if not isinstance(payload, dict) or not payload:
        raise ScoreParseError("Score response is not a non-empty JSON object")

    raw_scores: Dict[str, Tuple[float, Optional[str]]] = {}
    for name, details in payload.items():
        if not isinstance(details, dict):
            raise ScoreParseError(f"Criterion {name!r} is not an object")
        score = details.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ScoreParseError(f"Criterion {name!r} has no numeric score")
        try:
            value = float(score)
        except OverflowError as exc:
            raise ScoreParseError(f"Criterion {name!r} score is out of range") from exc
        if not math.isfinite(value):
            raise ScoreParseError(f"Criterion {name!r} score is not finite")
        justification = details.get("justification")
        raw_scores[name] = (value, str(justification) if justification is not None else None)
    return raw_scores


def parse_score_response(text: str, criteria: Optional[Mapping[str, float]] = None) -> ParticipantScore:
    """Parse scorer output, falling back to a neutral score. Never raises."""

    try:
        raw_scores = extract_raw_scores(text)
    except ScoreParseError as exc:
        logger.warning(f"Error parsing score response: {exc}")
        return default_score(criteria)
    return aggregate_scores(raw_scores, criteria)
