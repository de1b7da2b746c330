"""
Tests for annual grades computed from term grades
"""
from gradebook.core.annual_grade_aggregator import AnnualGradeAggregator
from gradebook.core.component_averager import ComponentAverager
from gradebook.core.term_grade_aggregator import TermGradeAggregator
from gradebook.database.repositories import (
    AcademicTermRepository,
    EvaluationPlanRepository,
    StudentGradeRepository,
)


def _aggregator(db_session):
    term_aggregator = TermGradeAggregator(
        EvaluationPlanRepository(db_session),
        ComponentAverager(StudentGradeRepository(db_session)),
    )
    return AnnualGradeAggregator(AcademicTermRepository(db_session), term_aggregator)


def _year_with_terms(seed, weights, grades):
    year = seed.academic_year()
    assignment = seed.assignment(year)
    component = seed.component("EX", "Evaluaciones")
    enrollment = seed.enrollment(year)
    # Created in reverse so the result order comes from ``order``, not insertion
    for order in reversed(range(1, len(weights) + 1)):
        term = seed.term(year, f"Periodo {order}", order=order, weight=weights[order - 1])
        plan = seed.plan(assignment, term, [(component, 100)])
        grade = grades[order - 1]
        if grade is not None:
            activity = seed.activity(plan, component, f"Evaluacion {order}")
            seed.grade(enrollment, activity, grade)
    return year, assignment, enrollment


def test_missing_term_is_renormalized(db_session, seed):
    year, assignment, enrollment = _year_with_terms(seed, [25, 25, 25, 25], [4.0, 3.0, None, 5.0])

    result = _aggregator(db_session).compute(enrollment.id, assignment.id, year.id)

    assert result.annual_grade == 4.0
    assert [t.order for t in result.terms] == [1, 2, 3, 4]
    assert [t.grade for t in result.terms] == [4.0, 3.0, None, 5.0]
    assert result.weights_valid is True


def test_no_term_grades_is_null(db_session, seed):
    year, assignment, enrollment = _year_with_terms(seed, [50, 50], [None, None])

    result = _aggregator(db_session).compute(enrollment.id, assignment.id, year.id)

    assert result.annual_grade is None
    assert len(result.terms) == 2


def test_invalid_term_weights_are_flagged_but_computed(db_session, seed):
    year, assignment, enrollment = _year_with_terms(seed, [30, 30, 30], [4.0, 4.0, 3.0])

    result = _aggregator(db_session).compute(enrollment.id, assignment.id, year.id)

    assert result.annual_grade == 3.7
    assert result.weights_valid is False
