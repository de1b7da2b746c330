"""
Shared fixtures: in-memory SQLite database per test, API client and seeders.

All sessions of a test share one SQLite connection (StaticPool). A session
must not hold an open transaction while another one starts; the seeder
commits every write, so tests seed first and then call the API or the engines.
"""
import os

os.environ.setdefault("GRADEBOOK_DATABASE_URL", "sqlite:///:memory:")

from datetime import date
from typing import Iterable, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from gradebook.api.main import create_app
from gradebook.database.config import DatabaseConfig, get_db
from gradebook.database.models import (
    AcademicTermDB,
    AcademicYearDB,
    EvaluationComponentDB,
    EvaluationPlanComponentWeightDB,
    EvaluationPlanDB,
    EvaluativeActivityDB,
    PerformanceScaleDB,
    PreventiveCutConfigDB,
    StudentDB,
    StudentEnrollmentDB,
    StudentGradeDB,
    TeacherAssignmentDB,
)

INSTITUTION_ID = "inst-1"

STANDARD_SCALE = (
    ("SUPERIOR", 4.5, 5.0),
    ("ALTO", 4.0, 4.4),
    ("BASICO", 3.0, 3.9),
    ("BAJO", 1.0, 2.9),
)


class Seeder:
    """Creates collaborator and configuration records, committing each one"""

    def __init__(self, session):
        self.session = session

    def _add(self, *objects):
        self.session.add_all(objects)
        self.session.commit()
        return objects[0] if len(objects) == 1 else objects

    def academic_year(self, institution_id: str = INSTITUTION_ID, year: int = 2025) -> AcademicYearDB:
        return self._add(AcademicYearDB(institution_id=institution_id, year=year))

    def term(
        self,
        academic_year: AcademicYearDB,
        name: str = "Periodo 1",
        order: int = 1,
        weight: int = 100,
        term_type: str = "PERIOD",
    ) -> AcademicTermDB:
        return self._add(
            AcademicTermDB(
                academic_year_id=academic_year.id,
                name=name,
                type=term_type,
                order=order,
                weight_percentage=weight,
            )
        )

    def student(self, first_name: str = "Ana", last_name: str = "Gomez") -> StudentDB:
        return self._add(StudentDB(first_name=first_name, last_name=last_name))

    def enrollment(
        self,
        academic_year: AcademicYearDB,
        first_name: str = "Ana",
        last_name: str = "Gomez",
        group_id: str = "group-1",
        status: str = "ACTIVE",
    ) -> StudentEnrollmentDB:
        student = self.student(first_name, last_name)
        return self._add(
            StudentEnrollmentDB(
                student_id=student.id,
                group_id=group_id,
                academic_year_id=academic_year.id,
                status=status,
            )
        )

    def assignment(
        self,
        academic_year: AcademicYearDB,
        group_id: str = "group-1",
        subject_id: str = "math",
        teacher_id: str = "teacher-1",
    ) -> TeacherAssignmentDB:
        return self._add(
            TeacherAssignmentDB(
                teacher_id=teacher_id,
                subject_id=subject_id,
                group_id=group_id,
                academic_year_id=academic_year.id,
            )
        )

    def component(
        self,
        code: str,
        name: Optional[str] = None,
        institution_id: str = INSTITUTION_ID,
        parent: Optional[EvaluationComponentDB] = None,
    ) -> EvaluationComponentDB:
        return self._add(
            EvaluationComponentDB(
                institution_id=institution_id,
                code=code,
                name=name or code,
                parent_id=parent.id if parent else None,
            )
        )

    def plan(
        self,
        assignment: TeacherAssignmentDB,
        term: AcademicTermDB,
        weights: Sequence[Tuple[EvaluationComponentDB, int]],
    ) -> EvaluationPlanDB:
        plan = EvaluationPlanDB(teacher_assignment_id=assignment.id, academic_term_id=term.id)
        for position, (component, percentage) in enumerate(weights):
            plan.components.append(
                EvaluationPlanComponentWeightDB(
                    component_id=component.id, percentage=percentage, position=position
                )
            )
        return self._add(plan)

    def activity(
        self,
        plan: EvaluationPlanDB,
        component: EvaluationComponentDB,
        name: str = "Actividad",
        due_date: Optional[date] = None,
    ) -> EvaluativeActivityDB:
        return self._add(
            EvaluativeActivityDB(
                teacher_assignment_id=plan.teacher_assignment_id,
                academic_term_id=plan.academic_term_id,
                evaluation_plan_id=plan.id,
                component_id=component.id,
                name=name,
                due_date=due_date,
            )
        )

    def grade(self, enrollment: StudentEnrollmentDB, activity: EvaluativeActivityDB, score: float) -> StudentGradeDB:
        return self._add(
            StudentGradeDB(
                student_enrollment_id=enrollment.id,
                evaluative_activity_id=activity.id,
                score=score,
            )
        )

    def scale(self, institution_id: str = INSTITUTION_ID, bands: Iterable = STANDARD_SCALE):
        return self._add(
            *[
                PerformanceScaleDB(institution_id=institution_id, level=level, min_score=low, max_score=high)
                for level, low, high in bands
            ]
        )

    def cut_config(self, term: AcademicTermDB, cutoff_date: date, threshold: float = 3.0) -> PreventiveCutConfigDB:
        return self._add(
            PreventiveCutConfigDB(academic_term_id=term.id, cutoff_date=cutoff_date, risk_threshold_score=threshold)
        )


@pytest.fixture
def db_config():
    config = DatabaseConfig(database_url="sqlite:///:memory:")
    config.create_all()
    yield config
    config.engine.dispose()


@pytest.fixture
def db_session(db_config):
    session = db_config.get_session()
    yield session
    session.close()


@pytest.fixture
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture
def app(db_config):
    application = create_app()

    def override_get_db():
        db = db_config.get_session()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    # No context manager: the lifespan would initialize the default database
    return TestClient(app)


@pytest.fixture
def graded_setup(seed):
    """
    One assignment and term with plan {A: 60, B: 40} and one activity per component.
    """
    year = seed.academic_year()
    term = seed.term(year)
    assignment = seed.assignment(year)
    comp_a = seed.component("A", "Quices")
    comp_b = seed.component("B", "Examenes")
    plan = seed.plan(assignment, term, [(comp_a, 60), (comp_b, 40)])
    activity_a = seed.activity(plan, comp_a, "Quiz 1")
    activity_b = seed.activity(plan, comp_b, "Parcial")
    enrollment = seed.enrollment(year)
    return {
        "year": year,
        "term": term,
        "assignment": assignment,
        "comp_a": comp_a,
        "comp_b": comp_b,
        "plan": plan,
        "activity_a": activity_a,
        "activity_b": activity_b,
        "enrollment": enrollment,
    }
