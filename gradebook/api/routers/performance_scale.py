"""
Router de la escala de desempeño institucional (SUPERIOR, ALTO, BASICO, BAJO)
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from ...database.repositories import PerformanceScaleRepository
from ..deps import get_scale_repository
from ..exceptions import DatabaseOperationError
from ..schemas.evaluation import PerformanceScaleResponse, PerformanceScaleUpsert

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/performance-scale", tags=["Performance Scale"])


@router.post(
    "/upsert",
    response_model=PerformanceScaleResponse,
    summary="Crear o actualizar banda de desempeño",
    description="Una banda por (institución, nivel); minScore <= maxScore",
)
def upsert_performance_scale(
    payload: PerformanceScaleUpsert,
    scale_repo: PerformanceScaleRepository = Depends(get_scale_repository),
) -> PerformanceScaleResponse:
    try:
        band = scale_repo.upsert(payload.institution_id, payload.level.value, payload.min_score, payload.max_score)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("upsert_performance_scale", str(e))

    logger.info(
        "Performance scale band saved",
        extra={"institution_id": band.institution_id, "level": band.level},
    )
    return PerformanceScaleResponse.model_validate(band)


@router.get(
    "",
    response_model=List[PerformanceScaleResponse],
    summary="Escala de una institución",
)
def list_performance_scale(
    institution_id: str = Query(..., alias="institutionId"),
    scale_repo: PerformanceScaleRepository = Depends(get_scale_repository),
) -> List[PerformanceScaleResponse]:
    return [PerformanceScaleResponse.model_validate(b) for b in scale_repo.list(institution_id)]
