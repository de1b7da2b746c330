"""
Router de planes de evaluación

Un plan define, para una asignación docente en un periodo, el porcentaje de
cada componente de evaluación. Los porcentajes deben sumar exactamente 100.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from ...core.cache import TermGradeCache
from ...core.exceptions import DuplicateComponentError, PlanWeightsError
from ...core.metrics import evaluation_plans_rejected_total
from ...core.plan_weights import validate_plan_weights
from ...database.repositories import (
    AcademicTermRepository,
    EvaluationComponentRepository,
    EvaluationPlanRepository,
    TeacherAssignmentRepository,
)
from ..deps import (
    get_assignment_repository,
    get_component_repository,
    get_plan_repository,
    get_term_cache,
    get_term_repository,
)
from ..exceptions import (
    DatabaseOperationError,
    DuplicatePlanComponentError,
    PlanWeightsInvalidError,
    ResourceNotFoundError,
)
from ..schemas.evaluation import EvaluationPlanResponse, EvaluationPlanUpsert

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluation-plans", tags=["Evaluation Plans"])


@router.post(
    "/upsert",
    response_model=EvaluationPlanResponse,
    summary="Crear o reemplazar plan de evaluación",
    description="Reemplaza el conjunto de pesos del plan. Rechaza con 400 si los porcentajes no suman 100.",
)
def upsert_evaluation_plan(
    payload: EvaluationPlanUpsert,
    plan_repo: EvaluationPlanRepository = Depends(get_plan_repository),
    assignment_repo: TeacherAssignmentRepository = Depends(get_assignment_repository),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
    cache: TermGradeCache = Depends(get_term_cache),
) -> EvaluationPlanResponse:
    weights = [(c.component_id, c.percentage) for c in payload.components]
    try:
        validate_plan_weights(weights)
    except DuplicateComponentError as e:
        raise DuplicatePlanComponentError(e.component_id)
    except PlanWeightsError as e:
        evaluation_plans_rejected_total.inc()
        raise PlanWeightsInvalidError(e.total)

    if assignment_repo.get_by_id(payload.teacher_assignment_id) is None:
        raise ResourceNotFoundError("TeacherAssignment", payload.teacher_assignment_id)
    if term_repo.get_by_id(payload.academic_term_id) is None:
        raise ResourceNotFoundError("AcademicTerm", payload.academic_term_id)

    known = component_repo.get_by_ids([component_id for component_id, _ in weights])
    for component_id, _ in weights:
        if component_id not in known:
            raise ResourceNotFoundError("EvaluationComponent", component_id)

    try:
        plan = plan_repo.upsert(payload.teacher_assignment_id, payload.academic_term_id, weights)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("upsert_evaluation_plan", str(e))

    cache.invalidate_term(payload.academic_term_id)
    return EvaluationPlanResponse.model_validate(plan)


@router.get(
    "",
    response_model=EvaluationPlanResponse,
    summary="Obtener plan de evaluación",
)
def get_evaluation_plan(
    teacher_assignment_id: str = Query(..., alias="teacherAssignmentId"),
    academic_term_id: str = Query(..., alias="academicTermId"),
    plan_repo: EvaluationPlanRepository = Depends(get_plan_repository),
) -> EvaluationPlanResponse:
    plan = plan_repo.get(teacher_assignment_id, academic_term_id)
    if plan is None:
        raise ResourceNotFoundError("EvaluationPlan", f"{teacher_assignment_id}/{academic_term_id}")
    return EvaluationPlanResponse.model_validate(plan)
