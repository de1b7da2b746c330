"""
Router del catálogo de componentes de evaluación

Los componentes pueden anidarse (``parentId``). El código es único por
institución.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...core.cache import TermGradeCache
from ...database.repositories import EvaluationComponentRepository
from ..deps import get_component_repository, get_term_cache
from ..exceptions import (
    DatabaseOperationError,
    InvalidRequestError,
    ResourceConflictError,
    ResourceNotFoundError,
)
from ..schemas.evaluation import (
    EvaluationComponentCreate,
    EvaluationComponentResponse,
    EvaluationComponentTree,
    EvaluationComponentUpdate,
    EvaluationComponentWithChildren,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluation-components", tags=["Evaluation Components"])


def _check_parent(component_repo: EvaluationComponentRepository, parent_id: str, institution_id: str, component_id=None):
    if component_id is not None and parent_id == component_id:
        raise InvalidRequestError("A component cannot be its own parent", {"component_id": component_id})

    parent = component_repo.get_by_id(parent_id)
    if parent is None:
        raise ResourceNotFoundError("EvaluationComponent", parent_id)
    if parent.institution_id != institution_id:
        raise InvalidRequestError(
            "Parent component belongs to another institution",
            {"parent_id": parent_id, "institution_id": institution_id},
        )

    # Walk up from the new parent; reaching the component itself means a cycle
    ancestor = parent
    while component_id is not None and ancestor is not None:
        if ancestor.id == component_id:
            raise InvalidRequestError("Component hierarchy cannot contain cycles", {"component_id": component_id})
        ancestor = ancestor.parent


@router.post(
    "",
    response_model=EvaluationComponentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear componente de evaluación",
)
def create_evaluation_component(
    payload: EvaluationComponentCreate,
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
) -> EvaluationComponentResponse:
    if payload.parent_id:
        _check_parent(component_repo, payload.parent_id, payload.institution_id)

    try:
        component = component_repo.create(
            payload.institution_id, payload.code, payload.name, parent_id=payload.parent_id
        )
    except IntegrityError:
        raise ResourceConflictError(
            f"Component code '{payload.code}' already exists for this institution",
            {"institution_id": payload.institution_id, "code": payload.code},
        )
    except SQLAlchemyError as e:
        raise DatabaseOperationError("create_evaluation_component", str(e))
    return EvaluationComponentResponse.model_validate(component)


@router.get(
    "",
    response_model=List[EvaluationComponentWithChildren],
    summary="Listar componentes de una institución",
    description="Componentes ordenados por nombre, cada uno con sus hijos directos",
)
def list_evaluation_components(
    institution_id: str = Query(..., alias="institutionId"),
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
) -> List[EvaluationComponentWithChildren]:
    return [
        EvaluationComponentWithChildren.model_validate(c)
        for c in component_repo.get_by_institution(institution_id)
    ]


@router.get(
    "/hierarchy",
    response_model=List[EvaluationComponentTree],
    summary="Jerarquía de componentes",
    description="Componentes raíz con dos niveles de hijos",
)
def get_component_hierarchy(
    institution_id: str = Query(..., alias="institutionId"),
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
) -> List[EvaluationComponentTree]:
    return [EvaluationComponentTree.model_validate(c) for c in component_repo.get_hierarchy(institution_id)]


@router.patch(
    "/{component_id}",
    response_model=EvaluationComponentResponse,
    summary="Actualizar componente",
)
def update_evaluation_component(
    component_id: str,
    payload: EvaluationComponentUpdate,
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
    cache: TermGradeCache = Depends(get_term_cache),
) -> EvaluationComponentResponse:
    component = component_repo.get_by_id(component_id)
    if component is None:
        raise ResourceNotFoundError("EvaluationComponent", component_id)

    fields = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key == "parent_id"
    }
    if fields.get("parent_id"):
        _check_parent(component_repo, fields["parent_id"], component.institution_id, component_id=component_id)

    try:
        component = component_repo.update(component_id, **fields)
    except IntegrityError:
        raise ResourceConflictError(
            f"Component code '{fields.get('code')}' already exists for this institution",
            {"component_id": component_id, "code": fields.get("code")},
        )
    except SQLAlchemyError as e:
        raise DatabaseOperationError("update_evaluation_component", str(e))

    # Term grade breakdowns carry the component name in every term that weights it
    cache.clear()
    return EvaluationComponentResponse.model_validate(component)


@router.delete(
    "/{component_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Eliminar componente",
)
def delete_evaluation_component(
    component_id: str,
    component_repo: EvaluationComponentRepository = Depends(get_component_repository),
) -> Response:
    # Deleting a weighted component would leave its plans below 100%
    if component_repo.is_in_use(component_id):
        raise ResourceConflictError(
            "Component is used by an evaluation plan or activity",
            {"component_id": component_id},
        )
    try:
        deleted = component_repo.delete(component_id)
    except SQLAlchemyError as e:
        raise DatabaseOperationError("delete_evaluation_component", str(e))
    if not deleted:
        raise ResourceNotFoundError("EvaluationComponent", component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
