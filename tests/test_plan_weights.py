"""
Tests for evaluation plan and term weight validation
"""
import pytest

from gradebook.core.exceptions import DuplicateComponentError, PlanWeightsError, TermWeightsError
from gradebook.core.plan_weights import validate_plan_weights, validate_term_weights


def test_plan_summing_to_100_is_accepted():
    assert validate_plan_weights([("a", 60), ("b", 40)]) == 100


def test_single_component_at_70_is_rejected():
    with pytest.raises(PlanWeightsError) as exc_info:
        validate_plan_weights([("a", 70)])
    assert exc_info.value.total == 70


def test_plan_over_100_is_rejected():
    with pytest.raises(PlanWeightsError) as exc_info:
        validate_plan_weights([("a", 60), ("b", 50)])
    assert exc_info.value.total == 110


def test_duplicate_component_is_rejected():
    with pytest.raises(DuplicateComponentError) as exc_info:
        validate_plan_weights([("a", 50), ("a", 50)])
    assert exc_info.value.component_id == "a"


def test_term_weights():
    assert validate_term_weights([25, 25, 25, 25]) == 100
    with pytest.raises(TermWeightsError) as exc_info:
        validate_term_weights([30, 30, 30])
    assert exc_info.value.total == 90
