"""
Scale Resolver - Clasifica una nota en la escala de desempeño institucional

La nota se redondea ANTES de buscar la banda: con ALTO [4.0, 4.4] y
SUPERIOR [4.5, 5.0], un 4.45 se redondea a 4.5 y cae en SUPERIOR en vez de
quedar en el hueco entre bandas.
"""
import logging
from typing import Optional

from ..database.repositories import PerformanceScaleRepository
from ..models.grading import PerformanceResult
from .grading_policy import RoundingPolicy, round_to_one_decimal

logger = logging.getLogger(__name__)


class ScaleResolver:
    """Resuelve el nivel de desempeño (SUPERIOR, ALTO, BASICO, BAJO) de una nota."""

    def __init__(
        self,
        scale_repo: PerformanceScaleRepository,
        rounding: RoundingPolicy = round_to_one_decimal,
    ):
        self.scale_repo = scale_repo
        self.rounding = rounding

    def resolve(self, institution_id: str, score: float) -> Optional[PerformanceResult]:
        """
        Busca la banda cuyo rango inclusivo contiene la nota redondeada.

        Args:
            institution_id: Institución dueña de la escala
            score: Nota sin redondear

        Returns:
            PerformanceResult con el nivel y la nota redondeada, o None si
            ninguna banda la contiene (escala incompleta o sin configurar)
        """
        rounded = self.rounding(score)
        band = self.scale_repo.find_band(institution_id, rounded)

        if band is None:
            logger.warning(
                "No performance scale band matches score",
                extra={"institution_id": institution_id, "score": rounded},
            )
            return None

        return PerformanceResult(level=band.level, score=rounded)
