"""
Router de notas finales de periodo

La nota final de periodo la digita el docente por (matrícula, periodo,
asignatura). Se guarda tal cual: no se recalcula ni reemplaza a la nota de
periodo calculada por ``/student-grades/term-grade``.

Endpoints:
- POST /period-final-grades - Guardar (o sobrescribir) una nota final
- POST /period-final-grades/bulk - Carga masiva
- GET /period-final-grades/by-group - Notas finales de un grupo en un periodo
- GET /period-final-grades/by-student - Notas finales de una matrícula
- DELETE /period-final-grades/{id} - Eliminar
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.metrics import grade_rows_failed_total, grades_written_total
from ...database.config import get_db
from ...database.repositories import (
    AcademicTermRepository,
    EnrollmentRepository,
    PeriodFinalGradeRepository,
)
from ...database.transaction import savepoint
from ..deps import get_enrollment_repository, get_period_final_grade_repository, get_term_repository
from ..exceptions import DatabaseOperationError, ResourceNotFoundError
from ..schemas.grades import BulkRowError
from ..schemas.period_final_grades import (
    BulkPeriodFinalGradeResponse,
    BulkPeriodFinalGradeUpsert,
    GroupPeriodFinalGradeResponse,
    PeriodFinalGradeResponse,
    PeriodFinalGradeUpsert,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/period-final-grades", tags=["Period Final Grades"])


@router.post(
    "",
    response_model=PeriodFinalGradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Guardar nota final de periodo",
    description="Crea o sobrescribe la nota final de una matrícula en un periodo y asignatura",
)
def upsert_period_final_grade(
    payload: PeriodFinalGradeUpsert,
    final_repo: PeriodFinalGradeRepository = Depends(get_period_final_grade_repository),
    enrollment_repo: EnrollmentRepository = Depends(get_enrollment_repository),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
) -> PeriodFinalGradeResponse:
    if not enrollment_repo.exists(payload.student_enrollment_id):
        raise ResourceNotFoundError("StudentEnrollment", payload.student_enrollment_id)
    if term_repo.get_by_id(payload.academic_term_id) is None:
        raise ResourceNotFoundError("AcademicTerm", payload.academic_term_id)

    try:
        grade = final_repo.upsert(
            payload.student_enrollment_id,
            payload.academic_term_id,
            payload.subject_id,
            payload.final_score,
            observations=payload.observations,
            entered_by_id=payload.entered_by_id,
        )
    except SQLAlchemyError as e:
        raise DatabaseOperationError("upsert_period_final_grade", str(e))

    grades_written_total.labels(source="period_final").inc()
    logger.info(
        "Period final grade saved",
        extra={
            "grade_id": grade.id,
            "student_enrollment_id": grade.student_enrollment_id,
            "academic_term_id": grade.academic_term_id,
            "subject_id": grade.subject_id,
        },
    )
    return PeriodFinalGradeResponse.model_validate(grade)


@router.post(
    "/bulk",
    response_model=BulkPeriodFinalGradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Carga masiva de notas finales",
    description="""
    Guarda varias notas finales de periodo. Igual que la carga masiva de notas
    por actividad, cada fila va en su propio SAVEPOINT: las filas con matrícula
    o periodo inexistente se reportan en `errors` y las demás se guardan.
    """,
)
def bulk_upsert_period_final_grades(
    payload: BulkPeriodFinalGradeUpsert,
    db: Session = Depends(get_db),
    final_repo: PeriodFinalGradeRepository = Depends(get_period_final_grade_repository),
    enrollment_repo: EnrollmentRepository = Depends(get_enrollment_repository),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
) -> BulkPeriodFinalGradeResponse:
    saved = []
    errors = []
    for row_index, row in enumerate(payload.grades):
        missing = None
        if not enrollment_repo.exists(row.student_enrollment_id):
            missing = f"StudentEnrollment '{row.student_enrollment_id}' not found"
        elif term_repo.get_by_id(row.academic_term_id) is None:
            missing = f"AcademicTerm '{row.academic_term_id}' not found"
        if missing:
            errors.append(BulkRowError(row=row_index, student_enrollment_id=row.student_enrollment_id, error=missing))
            continue

        try:
            with savepoint(db, "bulk period final row"):
                grade = final_repo.upsert(
                    row.student_enrollment_id,
                    row.academic_term_id,
                    row.subject_id,
                    row.final_score,
                    observations=row.observations,
                    entered_by_id=payload.entered_by_id,
                    commit=False,
                )
            saved.append(PeriodFinalGradeResponse.model_validate(grade))
        except SQLAlchemyError as e:
            logger.warning(
                "Bulk period final row failed",
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
        logger.error(f"Failed to commit bulk period final grades: {e}")
        raise DatabaseOperationError("bulk_upsert_period_final_grades", str(e))

    grades_written_total.labels(source="period_final_bulk").inc(len(saved))
    if errors:
        grade_rows_failed_total.inc(len(errors))

    logger.info("Bulk period final grades saved", extra={"saved": len(saved), "failed": len(errors)})
    return BulkPeriodFinalGradeResponse(grades=saved, errors=errors)


@router.get(
    "/by-group",
    response_model=List[GroupPeriodFinalGradeResponse],
    summary="Notas finales de un grupo",
    description="Ordenadas por apellido del estudiante y luego por asignatura",
)
def get_period_final_grades_by_group(
    group_id: str = Query(..., alias="groupId"),
    academic_term_id: str = Query(..., alias="academicTermId"),
    final_repo: PeriodFinalGradeRepository = Depends(get_period_final_grade_repository),
) -> List[GroupPeriodFinalGradeResponse]:
    return [
        GroupPeriodFinalGradeResponse.model_validate(g)
        for g in final_repo.get_by_group(group_id, academic_term_id)
    ]


@router.get(
    "/by-student",
    response_model=List[PeriodFinalGradeResponse],
    summary="Notas finales de una matrícula",
    description="Sin academicTermId devuelve las de todos los periodos",
)
def get_period_final_grades_by_student(
    student_enrollment_id: str = Query(..., alias="studentEnrollmentId"),
    academic_term_id: Optional[str] = Query(None, alias="academicTermId"),
    final_repo: PeriodFinalGradeRepository = Depends(get_period_final_grade_repository),
) -> List[PeriodFinalGradeResponse]:
    return [
        PeriodFinalGradeResponse.model_validate(g)
        for g in final_repo.get_by_student(student_enrollment_id, academic_term_id)
    ]


@router.delete(
    "/{grade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Eliminar nota final",
)
def delete_period_final_grade(
    grade_id: str,
    final_repo: PeriodFinalGradeRepository = Depends(get_period_final_grade_repository),
) -> Response:
    try:
        deleted = final_repo.delete(grade_id)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("delete_period_final_grade", str(e))
    if not deleted:
        raise ResourceNotFoundError("PeriodFinalGrade", grade_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
