"""
Tests for the score calculator.

Covered:
  - reference scenarios (mixed activity, all zeros)
  - half-up rounding of the rounds score and the 25 cap
  - every band boundary of the three step tables
  - sub-score ranges over a spread of inputs
  - input validation (negative, float, bool, str)
"""
import pytest

from sadhana.core.errors import InvalidInputError
from sadhana.services.scoring import (
    LISTENING_BANDS,
    READING_BANDS,
    SERVICE_BANDS,
    ScoreBand,
    band_points,
    compute_score,
    rounds_score,
)


class TestReferenceScenarios:
    def test_mixed_day(self):
        result = compute_score(2, 3, 5, 6, 20, 50, 10)
        assert result.total_rounds == 16
        assert result.score_a == 25   # 24.5 rounds half-up
        assert result.score_b == 15
        assert result.score_c == 30
        assert result.score_d == 5
        assert result.total_score == 75

    def test_all_zero(self):
        result = compute_score(0, 0, 0, 0, 0, 0, 0)
        assert result.as_dict() == {
            "total_rounds": 0,
            "score_a": 0,
            "score_b": 0,
            "score_c": 0,
            "score_d": 0,
            "total_score": 0,
        }


class TestRoundsScore:
    @pytest.mark.parametrize("rounds, expected", [
        ((1, 0, 0, 0), 3),    # 2.5 → 3, not banker's 2
        ((0, 0, 1, 0), 2),    # 1.5 → 2
        ((0, 0, 3, 0), 5),    # 4.5 → 5
        ((0, 1, 0, 0), 2),
        ((0, 0, 0, 7), 7),
        ((4, 4, 0, 0), 18),
    ])
    def test_half_up(self, rounds, expected):
        assert rounds_score(*rounds) == expected

    def test_capped_at_25(self):
        assert rounds_score(20, 0, 0, 0) == 25
        assert compute_score(16, 16, 16, 16, 0, 0, 0).score_a == 25

    def test_total_rounds_is_plain_sum(self):
        assert compute_score(16, 16, 16, 16, 0, 0, 0).total_rounds == 64


class TestBands:
    @pytest.mark.parametrize("minutes, points", [
        (0, 0), (1, 7), (15, 7), (16, 15), (30, 15),
        (31, 20), (45, 20), (46, 30), (60, 30), (61, 30), (500, 30),
    ])
    def test_reading(self, minutes, points):
        assert band_points(minutes, READING_BANDS) == points
        assert compute_score(0, 0, 0, 0, minutes, 0, 0).score_b == points

    @pytest.mark.parametrize("minutes, points", [
        (0, 0), (1, 7), (15, 7), (16, 15), (30, 15), (31, 20), (45, 20), (46, 30),
    ])
    def test_listening(self, minutes, points):
        assert band_points(minutes, LISTENING_BANDS) == points
        assert compute_score(0, 0, 0, 0, 0, minutes, 0).score_c == points

    @pytest.mark.parametrize("minutes, points", [
        (0, 0), (1, 5), (15, 5), (16, 8), (30, 8), (31, 12), (45, 12), (46, 15), (120, 15),
    ])
    def test_service(self, minutes, points):
        assert band_points(minutes, SERVICE_BANDS) == points
        assert compute_score(0, 0, 0, 0, 0, 0, minutes).score_d == points

    def test_table_without_open_band_rejected(self):
        with pytest.raises(ValueError):
            band_points(20, (ScoreBand(0, 0), ScoreBand(15, 7)))


class TestRanges:
    def test_sub_scores_stay_in_their_sets(self):
        samples = [0, 1, 7, 15, 16, 29, 30, 44, 45, 46, 90]
        for rounds in samples:
            for minutes in samples:
                r = compute_score(rounds, rounds // 2, rounds // 3, 1, minutes, minutes, minutes)
                assert 0 <= r.score_a <= 25
                assert r.score_b in {0, 7, 15, 20, 30}
                assert r.score_c in {0, 7, 15, 20, 30}
                assert r.score_d in {0, 5, 8, 12, 15}
                assert r.total_score == r.score_a + r.score_b + r.score_c + r.score_d


class TestValidation:
    def test_negative_rejected_with_field_name(self):
        with pytest.raises(InvalidInputError) as exc_info:
            compute_score(0, 0, 0, 0, -5, 0, 0)
        assert exc_info.value.code == "INVALID_INPUT"
        assert exc_info.value.details["field"] == "reading_minutes"

    @pytest.mark.parametrize("bad", [1.5, "3", None, True])
    def test_non_integer_rejected(self, bad):
        with pytest.raises(InvalidInputError):
            compute_score(bad, 0, 0, 0, 0, 0, 0)

    def test_negative_rounds_not_clamped(self):
        with pytest.raises(InvalidInputError):
            compute_score(0, 0, 0, -1, 0, 0, 0)
