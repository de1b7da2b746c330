"""
Excepciones de dominio del motor de calificaciones.

El núcleo no conoce HTTP: lanza estas excepciones y los routers las traducen
a las excepciones de ``gradebook.api.exceptions``.
"""
from typing import Optional


class GradingError(Exception):
    """Base de los errores de dominio"""


class PlanWeightsError(GradingError):
    """Los porcentajes de un plan de evaluación no suman 100."""

    def __init__(self, total: int, message: Optional[str] = None):
        self.total = total
        super().__init__(message or f"Evaluation plan percentages must sum to 100 (got {total})")


class DuplicateComponentError(GradingError):
    """Un plan repite el mismo componente."""

    def __init__(self, component_id: str):
        self.component_id = component_id
        super().__init__(f"Component '{component_id}' appears more than once in the plan")


class TermWeightsError(GradingError):
    """Los pesos de los periodos de un año no suman 100."""

    def __init__(self, total: int):
        self.total = total
        super().__init__(f"Academic term weights must sum to 100 (got {total})")


class MissingCutoffError(GradingError):
    """Corte preventivo sin configuración ni fecha de corte explícita."""

    def __init__(self, academic_term_id: str):
        self.academic_term_id = academic_term_id
        super().__init__(
            f"No preventive cut configuration for term '{academic_term_id}' and no cutoff date given"
        )


class NotFoundError(GradingError):
    """Registro referenciado inexistente."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found")
