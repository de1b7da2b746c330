"""
Component Averager - Promedio de un estudiante en un componente de evaluación
"""
import logging
from datetime import date
from typing import Optional

from ..database.repositories import StudentGradeRepository
from .grading_policy import RoundingPolicy, mean, round_to_one_decimal

logger = logging.getLogger(__name__)


class ComponentAverager:
    """
    Media aritmética de las notas de un estudiante en las actividades de un
    (periodo, componente).

    Sin notas el promedio es ``None``; nunca se sustituye por cero.
    """

    def __init__(
        self,
        grade_repo: StudentGradeRepository,
        rounding: RoundingPolicy = round_to_one_decimal,
    ):
        self.grade_repo = grade_repo
        self.rounding = rounding

    def average(
        self,
        student_enrollment_id: str,
        academic_term_id: str,
        component_id: str,
        cutoff_date: Optional[date] = None,
        teacher_assignment_id: Optional[str] = None,
    ) -> Optional[float]:
        """
        Args:
            student_enrollment_id: Matrícula del estudiante
            academic_term_id: Periodo
            component_id: Componente de evaluación
            cutoff_date: Si se indica, solo cuentan actividades sin fecha de
                entrega o con fecha de entrega <= cutoff_date
            teacher_assignment_id: Limita a las actividades de una asignatura

        Returns:
            Promedio redondeado a un decimal, o None si no hay notas
        """
        scores = self.grade_repo.get_component_scores(
            student_enrollment_id,
            academic_term_id,
            component_id,
            cutoff_date=cutoff_date,
            teacher_assignment_id=teacher_assignment_id,
        )
        result = mean(scores, self.rounding)

        logger.debug(
            "Component average computed",
            extra={
                "student_enrollment_id": student_enrollment_id,
                "academic_term_id": academic_term_id,
                "component_id": component_id,
                "cutoff_date": cutoff_date.isoformat() if cutoff_date else None,
                "grade_count": len(scores),
                "average": result,
            },
        )
        return result
