"""
Router de actividades evaluativas

Cada actividad pertenece a un plan de evaluación (y por tanto a una
asignación docente y un periodo) y se clasifica en un componente.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError

from ...database.repositories import (
    EvaluationComponentRepository,
    EvaluationPlanRepository,
    EvaluativeActivityRepository,
)
from ..deps import get_activity_repository, get_component_repository, get_plan_repository
from ..exceptions import DatabaseOperationError, InvalidRequestError, ResourceNotFoundError
from ..schemas.evaluation import EvaluativeActivityCreate, EvaluativeActivityResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluative-activities", tags=["Evaluative Activities"])


@router.post(
    "",
    response_model=EvaluativeActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear actividad evaluativa",
)
def create_evaluative_activity(
    payload: EvaluativeActivityCreate,
    activity_repo: EvaluativeActivityRepository = Depends(get_activity_repository),
    plan_repo: EvaluationPlanRepository = Depends(get_plan_repository),
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
) -> EvaluativeActivityResponse:
    plan = plan_repo.get_by_id(payload.evaluation_plan_id)
    if plan is None:
        raise ResourceNotFoundError("EvaluationPlan", payload.evaluation_plan_id)
    if component_repo.get_by_id(payload.component_id) is None:
        raise ResourceNotFoundError("EvaluationComponent", payload.component_id)
    if (
        plan.teacher_assignment_id != payload.teacher_assignment_id
        or plan.academic_term_id != payload.academic_term_id
    ):
        raise InvalidRequestError(
            "Evaluation plan does not belong to the given teacher assignment and term",
            {
                "evaluation_plan_id": plan.id,
                "teacher_assignment_id": payload.teacher_assignment_id,
                "academic_term_id": payload.academic_term_id,
            },
        )

    try:
        activity = activity_repo.create(**payload.model_dump())
    except SQLAlchemyError as e:
        raise DatabaseOperationError("create_evaluative_activity", str(e))

    logger.info(
        "Evaluative activity created",
        extra={"activity_id": activity.id, "evaluation_plan_id": plan.id, "component_id": activity.component_id},
    )
    return EvaluativeActivityResponse.model_validate(activity)


@router.get(
    "",
    response_model=List[EvaluativeActivityResponse],
    summary="Listar actividades evaluativas",
)
def list_evaluative_activities(
    teacher_assignment_id: Optional[str] = Query(None, alias="teacherAssignmentId"),
    academic_term_id: Optional[str] = Query(None, alias="academicTermId"),
    evaluation_plan_id: Optional[str] = Query(None, alias="evaluationPlanId"),
    component_id: Optional[str] = Query(None, alias="componentId"),
    activity_repo: EvaluativeActivityRepository = Depends(get_activity_repository),
) -> List[EvaluativeActivityResponse]:
    activities = activity_repo.list(
        teacher_assignment_id=teacher_assignment_id,
        academic_term_id=academic_term_id,
        evaluation_plan_id=evaluation_plan_id,
        component_id=component_id,
    )
    return [EvaluativeActivityResponse.model_validate(a) for a in activities]
