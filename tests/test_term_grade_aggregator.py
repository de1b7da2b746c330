"""
Tests for term grades: renormalization over graded components and breakdown
"""
from datetime import date

from gradebook.core.cache import TermGradeCache
from gradebook.core.component_averager import ComponentAverager
from gradebook.core.term_grade_aggregator import TermGradeAggregator
from gradebook.database.repositories import EvaluationPlanRepository, StudentGradeRepository


def _aggregator(db_session, cache=None):
    return TermGradeAggregator(
        EvaluationPlanRepository(db_session),
        ComponentAverager(StudentGradeRepository(db_session)),
        cache=cache,
    )


def _compute(db_session, s, **kwargs):
    return _aggregator(db_session, kwargs.pop("cache", None)).compute(
        s["enrollment"].id, s["assignment"].id, s["term"].id, **kwargs
    )


def test_only_graded_component_counts(db_session, seed, graded_setup):
    s = graded_setup
    seed.grade(s["enrollment"], s["activity_a"], 4.0)

    result = _compute(db_session, s)

    assert result.grade == 4.0
    assert [c.component_id for c in result.components] == [s["comp_a"].id, s["comp_b"].id]
    assert result.components[0].average == 4.0
    assert result.components[1].average is None
    assert result.components[1].percentage == 40


def test_weighted_combination(db_session, seed, graded_setup):
    s = graded_setup
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    seed.grade(s["enrollment"], s["activity_b"], 3.0)

    result = _compute(db_session, s)

    assert result.grade == 3.6
    assert result.components[0].name == "Quices"


def test_no_grades_reports_all_components(db_session, graded_setup):
    result = _compute(db_session, graded_setup)

    assert result.grade is None
    assert len(result.components) == 2
    assert all(c.average is None for c in result.components)


def test_no_plan_is_null_without_breakdown(db_session, seed, graded_setup):
    s = graded_setup
    other_term = seed.term(s["year"], "Periodo 2", order=2)

    result = _aggregator(db_session).compute(s["enrollment"].id, s["assignment"].id, other_term.id)

    assert result.grade is None
    assert result.components == []


def test_point_in_time_grade(db_session, seed, graded_setup):
    s = graded_setup
    late_exam = seed.activity(s["plan"], s["comp_b"], "Final", due_date=date(2025, 5, 30))
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    seed.grade(s["enrollment"], late_exam, 2.0)

    assert _compute(db_session, s, cutoff_date=date(2025, 4, 1)).grade == 4.0
    assert _compute(db_session, s).grade == 3.2


def test_other_subject_activities_do_not_leak(db_session, seed, graded_setup):
    s = graded_setup
    other_assignment = seed.assignment(s["year"], subject_id="science")
    other_plan = seed.plan(other_assignment, s["term"], [(s["comp_a"], 100)])
    science_quiz = seed.activity(other_plan, s["comp_a"], "Science quiz")
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    seed.grade(s["enrollment"], science_quiz, 1.0)

    assert _compute(db_session, s).grade == 4.0


def test_cache_returns_stored_result_until_invalidated(db_session, seed, graded_setup):
    s = graded_setup
    cache = TermGradeCache(enabled=True)
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    assert _compute(db_session, s, cache=cache).grade == 4.0

    seed.grade(s["enrollment"], s["activity_b"], 3.0)
    assert _compute(db_session, s, cache=cache).grade == 4.0

    cache.invalidate_enrollment_term(s["enrollment"].id, s["term"].id)
    assert _compute(db_session, s, cache=cache).grade == 3.6
