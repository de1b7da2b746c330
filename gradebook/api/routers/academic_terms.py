"""
Router de años lectivos y periodos académicos

Los pesos de los periodos de un año deberían sumar 100. La validación es
consultiva: ``GET /academic-terms/validate-weights`` la ejecuta bajo demanda
y la nota anual informa ``weightsValid``.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...core.cache import TermGradeCache
from ...core.exceptions import TermWeightsError
from ...core.plan_weights import validate_term_weights
from ...database.repositories import AcademicTermRepository, AcademicYearRepository
from ..deps import get_term_cache, get_term_repository, get_year_repository
from ..exceptions import (
    DatabaseOperationError,
    ResourceConflictError,
    ResourceNotFoundError,
    TermWeightsInvalidError,
)
from ..schemas.evaluation import (
    AcademicTermCreate,
    AcademicTermResponse,
    AcademicTermUpdate,
    AcademicYearCreate,
    AcademicYearResponse,
    TermWeightsValidation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/academic-terms", tags=["Academic Terms"])


@router.post(
    "/years",
    response_model=AcademicYearResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear año lectivo",
)
def create_academic_year(
    payload: AcademicYearCreate,
    year_repo: AcademicYearRepository = Depends(get_year_repository),
) -> AcademicYearResponse:
    try:
        academic_year = year_repo.create(
            payload.institution_id, payload.year, payload.start_date, payload.end_date
        )
    except IntegrityError:
        raise ResourceConflictError(
            f"Academic year {payload.year} already exists for this institution",
            {"institution_id": payload.institution_id, "year": payload.year},
        )
    except SQLAlchemyError as e:
        raise DatabaseOperationError("create_academic_year", str(e))
    return AcademicYearResponse.model_validate(academic_year)


@router.get(
    "/years",
    response_model=List[AcademicYearResponse],
    summary="Listar años lectivos de una institución",
)
def list_academic_years(
    institution_id: str = Query(..., alias="institutionId"),
    year_repo: AcademicYearRepository = Depends(get_year_repository),
) -> List[AcademicYearResponse]:
    return [AcademicYearResponse.model_validate(y) for y in year_repo.get_by_institution(institution_id)]


@router.post(
    "",
    response_model=AcademicTermResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear periodo",
)
def create_academic_term(
    payload: AcademicTermCreate,
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    year_repo: AcademicYearRepository = Depends(get_year_repository),
) -> AcademicTermResponse:
    if year_repo.get_by_id(payload.academic_year_id) is None:
        raise ResourceNotFoundError("AcademicYear", payload.academic_year_id)

    fields = payload.model_dump()
    fields["type"] = payload.type.value
    try:
        term = term_repo.create(**fields)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("create_academic_term", str(e))
    return AcademicTermResponse.model_validate(term)


@router.get(
    "",
    response_model=List[AcademicTermResponse],
    summary="Listar periodos de un año",
    description="Periodos del año ordenados por `order`",
)
def list_academic_terms(
    academic_year_id: str = Query(..., alias="academicYearId"),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
) -> List[AcademicTermResponse]:
    return [AcademicTermResponse.model_validate(t) for t in term_repo.get_by_year(academic_year_id)]


@router.get(
    "/validate-weights",
    response_model=TermWeightsValidation,
    summary="Validar pesos de los periodos",
    description="400 con la suma encontrada si los pesos del año no suman 100",
)
def validate_academic_term_weights(
    academic_year_id: str = Query(..., alias="academicYearId"),
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    year_repo: AcademicYearRepository = Depends(get_year_repository),
) -> TermWeightsValidation:
    if year_repo.get_by_id(academic_year_id) is None:
        raise ResourceNotFoundError("AcademicYear", academic_year_id)

    terms = term_repo.get_by_year(academic_year_id)
    try:
        total = validate_term_weights(t.weight_percentage for t in terms)
    except TermWeightsError as e:
        logger.warning(
            "Academic term weights invalid",
            extra={"academic_year_id": academic_year_id, "total": e.total},
        )
        raise TermWeightsInvalidError(e.total)
    return TermWeightsValidation(valid=True, total=total)


@router.patch(
    "/{term_id}",
    response_model=AcademicTermResponse,
    summary="Actualizar periodo",
)
def update_academic_term(
    term_id: str,
    payload: AcademicTermUpdate,
    term_repo: AcademicTermRepository = Depends(get_term_repository),
) -> AcademicTermResponse:
    # Only the dates may be cleared explicitly
    fields = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in ("start_date", "end_date")
    }
    if "type" in fields:
        fields["type"] = fields["type"].value
    try:
        term = term_repo.update(term_id, **fields)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("update_academic_term", str(e))
    if term is None:
        raise ResourceNotFoundError("AcademicTerm", term_id)
    return AcademicTermResponse.model_validate(term)


@router.delete(
    "/{term_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Eliminar periodo",
    description="Elimina el periodo junto con sus planes, actividades, notas, configuración de corte y alertas",
)
def delete_academic_term(
    term_id: str,
    term_repo: AcademicTermRepository = Depends(get_term_repository),
    cache: TermGradeCache = Depends(get_term_cache),
) -> Response:
    try:
        deleted = term_repo.delete(term_id)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("delete_academic_term", str(e))
    if not deleted:
        raise ResourceNotFoundError("AcademicTerm", term_id)

    cache.invalidate_term(term_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
