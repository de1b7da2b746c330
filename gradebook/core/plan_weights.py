"""
Validación de pesos de planes de evaluación y de periodos.

Un plan solo se guarda si sus porcentajes suman exactamente 100. Los pesos de
los periodos de un año se validan bajo demanda (validación consultiva).
"""
import logging
from typing import Iterable, Sequence, Tuple

from .constants import TOTAL_WEIGHT_PERCENTAGE
from .exceptions import DuplicateComponentError, PlanWeightsError, TermWeightsError

logger = logging.getLogger(__name__)


def validate_plan_weights(components: Sequence[Tuple[str, int]]) -> int:
    """
    Valida los pares ``(component_id, percentage)`` de un plan.

    Returns:
        La suma de porcentajes (siempre 100)

    Raises:
        DuplicateComponentError: Si un componente aparece dos veces
        PlanWeightsError: Si la suma no es exactamente 100
    """
    seen = set()
    for component_id, _ in components:
        if component_id in seen:
            raise DuplicateComponentError(component_id)
        seen.add(component_id)

    total = sum(percentage for _, percentage in components)
    if total != TOTAL_WEIGHT_PERCENTAGE:
        logger.warning(
            "Evaluation plan rejected: percentages do not sum to 100",
            extra={"total": total, "components": len(components)},
        )
        raise PlanWeightsError(total)
    return total


def validate_term_weights(weights: Iterable[int]) -> int:
    """
    Valida que los pesos de los periodos de un año sumen 100.

    Returns:
        La suma (100)

    Raises:
        TermWeightsError: Con la suma encontrada si no es 100
    """
    total = sum(weights)
    if total != TOTAL_WEIGHT_PERCENTAGE:
        raise TermWeightsError(total)
    return total
