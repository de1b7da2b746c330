"""
Router de cortes preventivos

Endpoints:
- POST /preventive-cuts/config - Configurar fecha de corte y umbral de un periodo
- GET /preventive-cuts/config - Configuración de un periodo
- POST /preventive-cuts/execute - Ejecutar el corte
- GET /preventive-cuts/alerts - Listar alertas
- PATCH /preventive-cuts/alerts/{alert_id} - Seguimiento humano de una alerta
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from ...core.exceptions import MissingCutoffError, NotFoundError
from ...core.risk_engine import RiskEngine
from ...database.repositories import (
    AcademicTermRepository,
    PreventiveAlertRepository,
    PreventiveCutConfigRepository,
)
from ...models.enums import AlertStatus
from ...models.grading import ManualAlertFields
from ..deps import (
    get_alert_repository,
    get_cut_config_repository,
    get_risk_engine,
    get_term_repository,
)
from ..exceptions import (
    DatabaseOperationError,
    PreventiveCutConfigMissingError,
    ResourceNotFoundError,
)
from ..schemas.preventive_cuts import (
    PreventiveAlertResponse,
    PreventiveAlertUpdate,
    PreventiveCutConfigResponse,
    PreventiveCutConfigUpsert,
    PreventiveCutExecute,
    PreventiveCutSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preventive-cuts", tags=["Preventive Cuts"])


@router.post(
    "/config",
    response_model=PreventiveCutConfigResponse,
    summary="Configurar corte preventivo",
)
def upsert_preventive_cut_config(
    payload: PreventiveCutConfigUpsert,
    config_repo: PreventiveCutConfigRepository = Depends(get_cut_config_repository),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
) -> PreventiveCutConfigResponse:
    if term_repo.get_by_id(payload.academic_term_id) is None:
        raise ResourceNotFoundError("AcademicTerm", payload.academic_term_id)
    try:
        config = config_repo.upsert(payload.academic_term_id, payload.cutoff_date, payload.risk_threshold_score)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("upsert_preventive_cut_config", str(e))
    return PreventiveCutConfigResponse.model_validate(config)


@router.get(
    "/config",
    response_model=PreventiveCutConfigResponse,
    summary="Configuración de corte de un periodo",
)
def get_preventive_cut_config(
    academic_term_id: str = Query(..., alias="academicTermId"),
    config_repo: PreventiveCutConfigRepository = Depends(get_cut_config_repository),
) -> PreventiveCutConfigResponse:
    config = config_repo.get_by_term(academic_term_id)
    if config is None:
        raise ResourceNotFoundError("PreventiveCutConfig", academic_term_id)
    return PreventiveCutConfigResponse.model_validate(config)


@router.post(
    "/execute",
    response_model=PreventiveCutSummaryResponse,
    summary="Ejecutar corte preventivo",
    description="""
    Calcula la nota de periodo de cada estudiante activo del grupo a la fecha
    de corte y crea o actualiza su alerta.

    - Sin `cutoffDate` se usa la fecha configurada; sin configuración responde 400.
    - Las alertas en `IN_RECOVERY` conservan ese estado.
    - Ejecutar dos veces con los mismos datos deja las mismas alertas.
    """,
)
def execute_preventive_cut(
    payload: PreventiveCutExecute,
    engine: RiskEngine = Depends(get_risk_engine),
) -> PreventiveCutSummaryResponse:
    try:
        summary = engine.execute(
            payload.teacher_assignment_id, payload.academic_term_id, cutoff_date=payload.cutoff_date
        )
    except NotFoundError as e:
        raise ResourceNotFoundError(e.resource, e.resource_id)
    except MissingCutoffError as e:
        raise PreventiveCutConfigMissingError(e.academic_term_id)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("execute_preventive_cut", str(e))

    return PreventiveCutSummaryResponse(
        cutoff_date=summary.cutoff_date,
        threshold=summary.threshold,
        total_students=summary.total_students,
        at_risk=summary.at_risk,
        alerts=[PreventiveAlertResponse.model_validate(alert) for alert in summary.alerts],
    )


@router.get(
    "/alerts",
    response_model=List[PreventiveAlertResponse],
    summary="Listar alertas preventivas",
    description="Alertas filtradas, más recientes primero",
)
def list_preventive_alerts(
    teacher_assignment_id: Optional[str] = Query(None, alias="teacherAssignmentId"),
    academic_term_id: Optional[str] = Query(None, alias="academicTermId"),
    student_enrollment_id: Optional[str] = Query(None, alias="studentEnrollmentId"),
    alert_status: Optional[AlertStatus] = Query(None, alias="status"),
    alert_repo: PreventiveAlertRepository = Depends(get_alert_repository),
) -> List[PreventiveAlertResponse]:
    alerts = alert_repo.list(
        teacher_assignment_id=teacher_assignment_id,
        academic_term_id=academic_term_id,
        student_enrollment_id=student_enrollment_id,
        status=alert_status.value if alert_status else None,
    )
    return [PreventiveAlertResponse.model_validate(a) for a in alerts]


@router.patch(
    "/alerts/{alert_id}",
    response_model=PreventiveAlertResponse,
    summary="Actualizar seguimiento de una alerta",
    description="Solo se modifican los campos enviados (status, recoveryPlan, meetingAt, notes)",
)
def update_preventive_alert(
    alert_id: str,
    payload: PreventiveAlertUpdate,
    alert_repo: PreventiveAlertRepository = Depends(get_alert_repository),
) -> PreventiveAlertResponse:
    provided = payload.model_dump(exclude_unset=True)
    fields = ManualAlertFields(**provided)
    try:
        alert = alert_repo.apply_manual(alert_id, fields)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("update_preventive_alert", str(e))
    if alert is None:
        raise ResourceNotFoundError("PreventiveAlert", alert_id)
    return PreventiveAlertResponse.model_validate(alert)
