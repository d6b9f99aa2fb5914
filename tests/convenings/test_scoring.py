from __future__ import annotations

import json

import pytest

from convenings.scoring import (
    DEFAULT_SCORING_CRITERIA,
    PARSE_ERROR_JUSTIFICATION,
    ScoreParseError,
    aggregate_scores,
    extract_raw_scores,
    merge_criteria,
    normalise_weights,
    parse_score_response,
)


def score_payload(**scores: float) -> str:
    return json.dumps({name: {"score": value, "justification": f"{name} note"} for name, value in scores.items()})


def test_malformed_response_falls_back_to_neutral_score() -> None:
    score = parse_score_response("I'd give this a solid eight.")

    assert score.total == 5.0
    assert set(score.breakdown) == set(DEFAULT_SCORING_CRITERIA)
    for criterion in score.breakdown.values():
        assert criterion.raw == 5.0
        assert criterion.justification == PARSE_ERROR_JUSTIFICATION


def test_weighted_average_total() -> None:
    response = "Here is my evaluation:\n" + score_payload(
        logical_coherence=10,
        evidence_quality=10,
        responsiveness=10,
        persuasiveness=0,
        rule_adherence=10,
    )

    score = parse_score_response(response)

    assert score.total == pytest.approx(8.5)
    assert score.breakdown["logical_coherence"].weighted == pytest.approx(2.5)
    assert score.breakdown["persuasiveness"].justification == "persuasiveness note"


def test_scores_are_clamped() -> None:
    score = aggregate_scores({"logical_coherence": (15.0, None), "evidence_quality": (-3.0, None)})

    assert score.breakdown["logical_coherence"].raw == 10.0
    assert score.breakdown["evidence_quality"].raw == 0.0
    assert 0.0 <= score.total <= 10.0
    assert score.total == pytest.approx(5.0)


def test_unknown_criterion_gets_small_weight() -> None:
    score = aggregate_scores({"humour": (10.0, "funny")})

    assert score.breakdown["humour"].weighted == pytest.approx(1.0)
    assert score.total == pytest.approx(10.0)


def test_extract_raw_scores_rejects_missing_score() -> None:
    with pytest.raises(ScoreParseError):
        extract_raw_scores('{"logical_coherence": {"justification": "no number"}}')
    with pytest.raises(ScoreParseError):
        extract_raw_scores("{not valid json}")


def test_criteria_helpers() -> None:
    merged = merge_criteria({"evidence_quality": 0.5, "civility": 0.1})

    assert merged["evidence_quality"] == 0.5
    assert merged["civility"] == 0.1
    assert merged["logical_coherence"] == DEFAULT_SCORING_CRITERIA["logical_coherence"]
    assert sum(normalise_weights(merged).values()) == pytest.approx(1.0)
    assert normalise_weights({"a": 0.0}) == {"a": 0.0}


def test_out_of_range_score_falls_back_to_neutral() -> None:
    huge = '{"logical_coherence": {"score": ' + "9" * 400 + "}}"

    with pytest.raises(ScoreParseError):
        extract_raw_scores(huge)
    assert parse_score_response(huge).total == 5.0


def test_non_finite_score_falls_back_to_neutral() -> None:
    assert parse_score_response('{"logical_coherence": {"score": NaN}}').total == 5.0
    assert parse_score_response('{"logical_coherence": {"score": Infinity}}').total == 5.0


def test_non_text_response_falls_back_to_neutral() -> None:
    score = parse_score_response(b'{"logical_coherence": {"score": 5}}')  # type: ignore[arg-type]

    assert score.total == 5.0
    assert score.breakdown["logical_coherence"].justification == PARSE_ERROR_JUSTIFICATION
    assert parse_score_response(None).total == 5.0  # type: ignore[arg-type]
