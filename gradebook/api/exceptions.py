"""
Excepciones personalizadas para la API REST
"""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class GradebookAPIException(HTTPException):
    """Excepción base para la API del motor de calificaciones"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, str]] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}


class ResourceNotFoundError(GradebookAPIException):
    """Recurso no encontrado"""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} '{resource_id}' not found",
            error_code="NOT_FOUND",
            extra={"resource": resource, "id": resource_id}
        )


class ResourceConflictError(GradebookAPIException):
    """Violación de unicidad"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=message,
            error_code="CONFLICT",
            extra=details or {}
        )


class PlanWeightsInvalidError(GradebookAPIException):
    """Porcentajes del plan de evaluación distintos de 100"""

    def __init__(self, total: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Evaluation plan percentages must sum to 100 (got {total})",
            error_code="INVALID_PLAN_WEIGHTS",
            extra={"total": total}
        )


class TermWeightsInvalidError(GradebookAPIException):
    """Pesos de periodos del año distintos de 100"""

    def __init__(self, total: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Academic term weights must sum to 100 (got {total})",
            error_code="INVALID_TERM_WEIGHTS",
            extra={"total": total}
        )


class PreventiveCutConfigMissingError(GradebookAPIException):
    """Corte preventivo sin configuración ni fecha de corte"""

    def __init__(self, academic_term_id: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No preventive cut configuration for this term; provide cutoffDate",
            error_code="PREVENTIVE_CUT_NOT_CONFIGURED",
            extra={"academic_term_id": academic_term_id}
        )


class InvalidRequestError(GradebookAPIException):
    """Petición con datos inconsistentes"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
            error_code="INVALID_REQUEST",
            extra=details or {}
        )


class DatabaseOperationError(GradebookAPIException):
    """Error en operación de base de datos"""

    def __init__(self, operation: str, details: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database operation failed: {operation}",
            error_code="DATABASE_ERROR",
            extra={"operation": operation, "details": details}
        )


class DuplicatePlanComponentError(GradebookAPIException):
    """Componente repetido en un plan de evaluación"""

    def __init__(self, component_id: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Component '{component_id}' appears more than once in the plan",
            error_code="DUPLICATE_PLAN_COMPONENT",
            extra={"component_id": component_id}
        )
