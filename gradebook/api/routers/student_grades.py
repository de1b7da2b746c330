"""
Router de notas de estudiantes y cálculos derivados

Endpoints:
- POST /student-grades - Guardar (o sobrescribir) una nota
- POST /student-grades/bulk - Carga masiva de notas de una actividad
- GET /student-grades/by-activity - Notas de una actividad
- GET /student-grades/by-student - Notas de una matrícula
- GET /student-grades/component-average - Promedio de un componente
- GET /student-grades/term-grade - Nota de periodo con desglose
- GET /student-grades/annual-grade - Nota anual con desglose
- GET /student-grades/performance-level - Nivel de desempeño de una nota
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.annual_grade_aggregator import AnnualGradeAggregator
from ...core.cache import TermGradeCache
from ...core.component_averager import ComponentAverager
from ...core.metrics import grade_rows_failed_total, grades_written_total
from ...core.scale_resolver import ScaleResolver
from ...core.term_grade_aggregator import TermGradeAggregator
from ...database.config import get_db
from ...database.repositories import (
    EnrollmentRepository,
    EvaluativeActivityRepository,
    StudentGradeRepository,
)
from ...database.transaction import savepoint
from ..deps import (
    get_activity_repository,
    get_annual_grade_aggregator,
    get_component_averager,
    get_enrollment_repository,
    get_grade_repository,
    get_scale_resolver,
    get_term_cache,
    get_term_grade_aggregator,
)
from ..exceptions import DatabaseOperationError, ResourceNotFoundError
from ..schemas.grades import (
    ActivityGradeResponse,
    AnnualGradeResponse,
    BulkGradeResponse,
    BulkGradeUpsert,
    BulkRowError,
    ComponentAverageResponse,
    PerformanceLevelResponse,
    StudentGradeResponse,
    StudentGradeUpsert,
    StudentSummary,
    TermGradeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/student-grades", tags=["Student Grades"])


@router.post(
    "",
    response_model=StudentGradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Guardar nota",
    description="Crea o sobrescribe la nota de una matrícula en una actividad (score en [1.0, 5.0])",
)
def upsert_grade(
    payload: StudentGradeUpsert,
    grade_repo: StudentGradeRepository = Depends(get_grade_repository),
    enrollment_repo: EnrollmentRepository = Depends(get_enrollment_repository),
    activity_repo: EvaluativeActivityRepository = Depends(get_activity_repository),
    cache: TermGradeCache = Depends(get_term_cache),
) -> StudentGradeResponse:
    activity = activity_repo.get_by_id(payload.evaluative_activity_id)
    if not activity:
        raise ResourceNotFoundError("EvaluativeActivity", payload.evaluative_activity_id)
    if not enrollment_repo.exists(payload.student_enrollment_id):
        raise ResourceNotFoundError("StudentEnrollment", payload.student_enrollment_id)

    try:
        grade = grade_repo.upsert(
            payload.student_enrollment_id,
            payload.evaluative_activity_id,
            payload.score,
            payload.observations,
        )
    except SQLAlchemyError as e:
        raise DatabaseOperationError("upsert_grade", str(e))

    grades_written_total.labels(source="single").inc()
    cache.invalidate_enrollment_term(payload.student_enrollment_id, activity.academic_term_id)

    logger.info(
        "Student grade saved",
        extra={
            "grade_id": grade.id,
            "student_enrollment_id": grade.student_enrollment_id,
            "evaluative_activity_id": grade.evaluative_activity_id,
        },
    )
    return StudentGradeResponse.model_validate(grade)


@router.post(
    "/bulk",
    response_model=BulkGradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Carga masiva de notas",
    description="""
    Guarda las notas de varias matrículas en una misma actividad.

    Cada fila se guarda en su propio SAVEPOINT: si una fila falla (por ejemplo
    matrícula inexistente) se reporta en `errors` y las demás se guardan igual.
    Una nota fuera de rango rechaza la petición completa (422) antes de escribir.
    """,
)
def bulk_upsert_grades(
    payload: BulkGradeUpsert,
    db: Session = Depends(get_db),
    grade_repo: StudentGradeRepository = Depends(get_grade_repository),
    enrollment_repo: EnrollmentRepository = Depends(get_enrollment_repository),
    activity_repo: EvaluativeActivityRepository = Depends(get_activity_repository),
    cache: TermGradeCache = Depends(get_term_cache),
) -> BulkGradeResponse:
    activity = activity_repo.get_by_id(payload.evaluative_activity_id)
    if not activity:
        raise ResourceNotFoundError("EvaluativeActivity", payload.evaluative_activity_id)

    saved = []
    errors = []
    for row_index, row in enumerate(payload.grades):
        if not enrollment_repo.exists(row.student_enrollment_id):
            errors.append(
                BulkRowError(
                    row=row_index,
                    student_enrollment_id=row.student_enrollment_id,
                    error=f"StudentEnrollment '{row.student_enrollment_id}' not found",
                )
            )
            continue
        try:
            with savepoint(db, "bulk grade row"):
                grade = grade_repo.upsert(
                    row.student_enrollment_id,
                    payload.evaluative_activity_id,
                    row.score,
                    row.observations,
                    commit=False,
                )
            # Snapshot now: a later row for the same enrollment updates this object
            saved.append(StudentGradeResponse.model_validate(grade))
        except SQLAlchemyError as e:
            logger.warning(
                "Bulk grade row failed",
                extra={"row": row_index, "student_enrollment_id": row.student_enrollment_id, "error": str(e)},
            )
            errors.append(
                BulkRowError(
                    row=row_index,
                    student_enrollment_id=row.student_enrollment_id,
                    error=str(getattr(e, "orig", None) or e),
                )
            )

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to commit bulk grades: {e}", extra={"evaluative_activity_id": activity.id})
        raise DatabaseOperationError("bulk_upsert_grades", str(e))

    grades_written_total.labels(source="bulk").inc(len(saved))
    if errors:
        grade_rows_failed_total.inc(len(errors))
    for grade in saved:
        cache.invalidate_enrollment_term(grade.student_enrollment_id, activity.academic_term_id)

    logger.info(
        "Bulk grades saved",
        extra={"evaluative_activity_id": activity.id, "saved": len(saved), "failed": len(errors)},
    )
    return BulkGradeResponse(
        grades=saved,
        errors=errors,
    )


@router.get(
    "/by-activity",
    response_model=List[ActivityGradeResponse],
    summary="Notas de una actividad",
    description="Notas de una actividad ordenadas por apellido del estudiante",
)
def get_grades_by_activity(
    evaluative_activity_id: str = Query(..., alias="evaluativeActivityId"),
    grade_repo: StudentGradeRepository = Depends(get_grade_repository),
) -> List[ActivityGradeResponse]:
    grades = grade_repo.get_by_activity(evaluative_activity_id)
    result = []
    for grade in grades:
        item = ActivityGradeResponse.model_validate(grade)
        item.student = StudentSummary.model_validate(grade.student_enrollment.student)
        result.append(item)
    return result


@router.get(
    "/by-student",
    response_model=List[StudentGradeResponse],
    summary="Notas de una matrícula",
)
def get_grades_by_student(
    student_enrollment_id: str = Query(..., alias="studentEnrollmentId"),
    grade_repo: StudentGradeRepository = Depends(get_grade_repository),
) -> List[StudentGradeResponse]:
    return [StudentGradeResponse.model_validate(g) for g in grade_repo.get_by_student(student_enrollment_id)]


@router.get(
    "/component-average",
    response_model=ComponentAverageResponse,
    summary="Promedio de un componente",
    description="Media de las notas de la matrícula en las actividades del componente en el periodo, o null",
)
def get_component_average(
    student_enrollment_id: str = Query(..., alias="studentEnrollmentId"),
    academic_term_id: str = Query(..., alias="academicTermId"),
    component_id: str = Query(..., alias="componentId"),
    averager: ComponentAverager = Depends(get_component_averager),
) -> ComponentAverageResponse:
    average = averager.average(student_enrollment_id, academic_term_id, component_id)
    return ComponentAverageResponse(average=average)


@router.get(
    "/term-grade",
    response_model=TermGradeResponse,
    summary="Nota de periodo",
    description="Nota de periodo con desglose por componente; con cutoffDate se calcula a esa fecha",
)
def get_term_grade(
    student_enrollment_id: str = Query(..., alias="studentEnrollmentId"),
    teacher_assignment_id: str = Query(..., alias="teacherAssignmentId"),
    academic_term_id: str = Query(..., alias="academicTermId"),
    cutoff_date: Optional[date] = Query(None, alias="cutoffDate"),
    aggregator: TermGradeAggregator = Depends(get_term_grade_aggregator),
) -> TermGradeResponse:
    result = aggregator.compute(
        student_enrollment_id, teacher_assignment_id, academic_term_id, cutoff_date=cutoff_date
    )
    return TermGradeResponse.model_validate(result.model_dump())


@router.get(
    "/annual-grade",
    response_model=AnnualGradeResponse,
    summary="Nota anual",
    description="Promedio ponderado de las notas de periodo del año (renormalizado sobre los periodos con nota)",
)
def get_annual_grade(
    student_enrollment_id: str = Query(..., alias="studentEnrollmentId"),
    teacher_assignment_id: str = Query(..., alias="teacherAssignmentId"),
    academic_year_id: str = Query(..., alias="academicYearId"),
    aggregator: AnnualGradeAggregator = Depends(get_annual_grade_aggregator),
) -> AnnualGradeResponse:
    result = aggregator.compute(student_enrollment_id, teacher_assignment_id, academic_year_id)
    return AnnualGradeResponse.model_validate(result.model_dump())


@router.get(
    "/performance-level",
    response_model=Optional[PerformanceLevelResponse],
    summary="Nivel de desempeño",
    description="Redondea la nota a un decimal y la clasifica en la escala de la institución; null si no hay banda",
)
def get_performance_level(
    institution_id: str = Query(..., alias="institutionId"),
    score: float = Query(..., ge=0, le=100),
    resolver: ScaleResolver = Depends(get_scale_resolver),
) -> Optional[PerformanceLevelResponse]:
    result = resolver.resolve(institution_id, score)
    if result is None:
        return None
    return PerformanceLevelResponse(level=result.level, score=result.score)
