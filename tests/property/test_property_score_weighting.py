"""Property-based tests for sub-score combination and the rhythm curve"""

import pytest
from hypothesis import given, strategies as st

from prosody_engine.scoring.prosody_scorer import SCORE_WEIGHTS, rhythm_score, weighted_overall


unit_scores = st.floats(min_value=0.0, max_value=1.0)


def test_weights_sum_to_one():
    """Test that the sub-score weights sum to one"""
    assert sum(SCORE_WEIGHTS.values()) == pytest.approx(1.0)


@given(p=unit_scores, r=unit_scores, i=unit_scores, f=unit_scores)
def test_overall_is_fixed_weighted_sum(p, r, i, f):
    """Test that the overall score is the fixed weighted sum of sub-scores"""
    assert weighted_overall(p, r, i, f) == pytest.approx(0.30 * p + 0.25 * r + 0.25 * i + 0.20 * f)


@given(p=unit_scores, i=unit_scores, f=unit_scores)
def test_overall_without_rhythm_stays_in_range(p, i, f):
    """Test that dropping rhythm keeps the overall within the remaining sub-scores"""
    overall = weighted_overall(p, None, i, f)
    assert min(p, i, f) - 1e-9 <= overall <= max(p, i, f) + 1e-9


@given(rate=st.floats(min_value=100.0, max_value=180.0))
def test_rhythm_inside_ideal_band(rate):
    """Test that rhythm scores 0.7 to 1.0 inside the 100-180 band"""
    score = rhythm_score(rate)
    assert 0.7 - 1e-9 <= score <= 1.0
    assert score == pytest.approx(1.0 - 0.3 * abs(rate - 140.0) / 40.0)


@given(rate=st.floats(min_value=0.0, max_value=2000.0, exclude_min=True))
def test_rhythm_never_below_half(rate):
    """Test that the rhythm score stays between 0.5 and 1.0"""
    assert 0.5 <= rhythm_score(rate) <= 1.0
