"""
FastAPI dependencies: repositories and grading engines bound to the request session.

FastAPI caches ``get_db`` per request, so every repository and engine built
here shares the same session.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.annual_grade_aggregator import AnnualGradeAggregator
from ..core.cache import TermGradeCache, get_term_grade_cache
from ..core.component_averager import ComponentAverager
from ..core.risk_engine import RiskEngine
from ..core.scale_resolver import ScaleResolver
from ..core.settings import get_settings
from ..core.term_grade_aggregator import TermGradeAggregator
from ..database.config import get_db
from ..database.repositories import (
    AcademicTermRepository,
    AcademicYearRepository,
    EnrollmentRepository,
    EvaluationComponentRepository,
    EvaluationPlanRepository,
    EvaluativeActivityRepository,
    PerformanceScaleRepository,
    PeriodFinalGradeRepository,
    PreventiveAlertRepository,
    PreventiveCutConfigRepository,
    StudentGradeRepository,
    TeacherAssignmentRepository,
)


# =============================================================================
# REPOSITORIES
# =============================================================================

def get_year_repository(db: Session = Depends(get_db)) -> AcademicYearRepository:
    return AcademicYearRepository(db)


def get_term_repository(db: Session = Depends(get_db)) -> AcademicTermRepository:
    return AcademicTermRepository(db)


def get_enrollment_repository(db: Session = Depends(get_db)) -> EnrollmentRepository:
    return EnrollmentRepository(db)


def get_assignment_repository(db: Session = Depends(get_db)) -> TeacherAssignmentRepository:
    return TeacherAssignmentRepository(db)


def get_component_repository(db: Session = Depends(get_db)) -> EvaluationComponentRepository:
    return EvaluationComponentRepository(db)


def get_plan_repository(db: Session = Depends(get_db)) -> EvaluationPlanRepository:
    return EvaluationPlanRepository(db)


def get_activity_repository(db: Session = Depends(get_db)) -> EvaluativeActivityRepository:
    return EvaluativeActivityRepository(db)


def get_grade_repository(db: Session = Depends(get_db)) -> StudentGradeRepository:
    return StudentGradeRepository(db)


def get_period_final_grade_repository(db: Session = Depends(get_db)) -> PeriodFinalGradeRepository:
    return PeriodFinalGradeRepository(db)


def get_scale_repository(db: Session = Depends(get_db)) -> PerformanceScaleRepository:
    return PerformanceScaleRepository(db)


def get_cut_config_repository(db: Session = Depends(get_db)) -> PreventiveCutConfigRepository:
    return PreventiveCutConfigRepository(db)


def get_alert_repository(db: Session = Depends(get_db)) -> PreventiveAlertRepository:
    return PreventiveAlertRepository(db)


# =============================================================================
# ENGINES
# =============================================================================

def get_term_cache() -> TermGradeCache:
    return get_term_grade_cache()


def get_component_averager(
    grade_repo: StudentGradeRepository = Depends(get_grade_repository),
) -> ComponentAverager:
    return ComponentAverager(grade_repo)


def get_scale_resolver(
    scale_repo: PerformanceScaleRepository = Depends(get_scale_repository),
) -> ScaleResolver:
    return ScaleResolver(scale_repo)


def get_term_grade_aggregator(
    plan_repo: EvaluationPlanRepository = Depends(get_plan_repository),
    averager: ComponentAverager = Depends(get_component_averager),
    cache: TermGradeCache = Depends(get_term_cache),
) -> TermGradeAggregator:
    return TermGradeAggregator(plan_repo, averager, cache=cache)


def get_annual_grade_aggregator(
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    term_aggregator: TermGradeAggregator = Depends(get_term_grade_aggregator),
) -> AnnualGradeAggregator:
    return AnnualGradeAggregator(term_repo, term_aggregator)


def get_risk_engine(
    assignment_repo: TeacherAssignmentRepository = Depends(get_assignment_repository),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    enrollment_repo: EnrollmentRepository = Depends(get_enrollment_repository),
    config_repo: PreventiveCutConfigRepository = Depends(get_cut_config_repository),
    alert_repo: PreventiveAlertRepository = Depends(get_alert_repository),
    term_aggregator: TermGradeAggregator = Depends(get_term_grade_aggregator),
    scale_resolver: ScaleResolver = Depends(get_scale_resolver),
) -> RiskEngine:
    return RiskEngine(
        assignment_repo,
        term_repo,
        enrollment_repo,
        config_repo,
        alert_repo,
        term_aggregator,
        scale_resolver,
        default_threshold=get_settings().default_risk_threshold,
    )
