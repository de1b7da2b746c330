"""
Tests for the shared rounding policy and the mean helpers
"""
from decimal import Decimal

import pytest

from gradebook.core.grading_policy import mean, round_to_one_decimal, to_decimal, weighted_mean


class TestRoundToOneDecimal:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (4.45, 4.5),
            (2.25, 2.3),
            (3.85, 3.9),
            (3.84, 3.8),
            (4.0, 4.0),
            (1, 1.0),
            (Decimal("2.95"), 3.0),
        ],
    )
    def test_half_up(self, value, expected):
        assert round_to_one_decimal(value) == expected

    def test_idempotent_with_one_decimal_over_scale(self):
        for hundredths in range(100, 501):
            value = hundredths / 100
            once = round_to_one_decimal(value)
            assert round_to_one_decimal(once) == once
            assert Decimal(repr(once)).as_tuple().exponent >= -1

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), None, True])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            round_to_one_decimal(value)


def test_to_decimal_uses_decimal_representation():
    assert to_decimal(3.8) == Decimal("3.8")


class TestMean:
    def test_mean_of_two_scores(self):
        assert mean([4.0, 5.0]) == 4.5

    def test_mean_of_nothing_is_none(self):
        assert mean([]) is None

    def test_mean_is_rounded(self):
        assert mean([3.0, 3.0, 4.0]) == 3.3


class TestWeightedMean:
    def test_all_present(self):
        assert weighted_mean([(4.0, 60), (3.0, 40)]) == 3.6

    def test_missing_values_are_renormalized(self):
        assert weighted_mean([(4.0, 60), (None, 40)]) == 4.0

    def test_no_values_is_none(self):
        assert weighted_mean([(None, 60), (None, 40)]) is None

    def test_zero_total_weight_is_none(self):
        assert weighted_mean([(4.0, 0)]) is None

    def test_intermediate_sum_has_no_binary_noise(self):
        # 3.8 * 50 + 3.9 * 50 = 3.85 exactly, rounds up
        assert weighted_mean([(3.8, 50), (3.9, 50)]) == 3.9

    def test_custom_policy_is_used(self):
        assert weighted_mean([(4.0, 50), (3.0, 50)], policy=lambda v: float(v) * 10) == 35.0
