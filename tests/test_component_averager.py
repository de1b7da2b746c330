"""
Tests for component averages, including point-in-time selection
"""
from datetime import date

from gradebook.core.component_averager import ComponentAverager
from gradebook.database.repositories import StudentGradeRepository


def _averager(db_session):
    return ComponentAverager(StudentGradeRepository(db_session))


def test_average_of_two_grades(db_session, seed, graded_setup):
    s = graded_setup
    second = seed.activity(s["plan"], s["comp_a"], "Quiz 2")
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    seed.grade(s["enrollment"], second, 5.0)

    average = _averager(db_session).average(s["enrollment"].id, s["term"].id, s["comp_a"].id)

    assert average == 4.5


def test_no_grades_is_none_not_zero(db_session, graded_setup):
    s = graded_setup
    assert _averager(db_session).average(s["enrollment"].id, s["term"].id, s["comp_a"].id) is None


def test_cutoff_excludes_later_activities(db_session, seed, graded_setup):
    s = graded_setup
    early = seed.activity(s["plan"], s["comp_a"], "Quiz early", due_date=date(2025, 3, 1))
    on_cutoff = seed.activity(s["plan"], s["comp_a"], "Quiz on cutoff", due_date=date(2025, 3, 15))
    late = seed.activity(s["plan"], s["comp_a"], "Quiz late", due_date=date(2025, 4, 1))
    seed.grade(s["enrollment"], early, 3.0)
    seed.grade(s["enrollment"], on_cutoff, 4.0)
    seed.grade(s["enrollment"], late, 1.0)
    # activity_a has no due date and is always included
    seed.grade(s["enrollment"], s["activity_a"], 5.0)

    averager = _averager(db_session)
    as_of_cutoff = averager.average(
        s["enrollment"].id, s["term"].id, s["comp_a"].id, cutoff_date=date(2025, 3, 15)
    )
    as_of_now = averager.average(s["enrollment"].id, s["term"].id, s["comp_a"].id)

    assert as_of_cutoff == 4.0
    assert as_of_now == 3.3


def test_other_students_grades_are_ignored(db_session, seed, graded_setup):
    s = graded_setup
    other = seed.enrollment(s["year"], "Luis", "Perez")
    seed.grade(s["enrollment"], s["activity_a"], 4.0)
    seed.grade(other, s["activity_a"], 1.0)

    assert _averager(db_session).average(s["enrollment"].id, s["term"].id, s["comp_a"].id) == 4.0
