"""
Term Grade Aggregator - Nota de un estudiante en un periodo

Combina los promedios por componente según los porcentajes del plan de
evaluación de la asignación docente en ese periodo.

Reglas:
1. Sin plan la nota es None y no hay desglose.
2. Cada componente del plan se promedia (a la fecha de corte si se indica).
3. Solo cuentan los componentes con promedio; sus porcentajes se
   renormalizan (no se divide por 100 fijo).
4. El desglose incluye todos los componentes del plan, con o sin nota.
"""
import logging
from datetime import date
from typing import Optional

from ..database.repositories import EvaluationPlanRepository
from ..models.grading import ComponentBreakdown, TermGradeResult
from .cache import TermGradeCache
from .component_averager import ComponentAverager
from .grading_policy import RoundingPolicy, round_to_one_decimal, weighted_mean

logger = logging.getLogger(__name__)


class TermGradeAggregator:
    """Calcula la nota de periodo con desglose por componente."""

    def __init__(
        self,
        plan_repo: EvaluationPlanRepository,
        averager: ComponentAverager,
        rounding: RoundingPolicy = round_to_one_decimal,
        cache: Optional[TermGradeCache] = None,
    ):
        self.plan_repo = plan_repo
        self.averager = averager
        self.rounding = rounding
        self.cache = cache

    def compute(
        self,
        student_enrollment_id: str,
        teacher_assignment_id: str,
        academic_term_id: str,
        cutoff_date: Optional[date] = None,
    ) -> TermGradeResult:
        """
        Args:
            student_enrollment_id: Matrícula del estudiante
            teacher_assignment_id: Asignación docente (asignatura + grupo)
            academic_term_id: Periodo
            cutoff_date: Fecha de corte para el cálculo a una fecha dada

        Returns:
            TermGradeResult con ``grade`` (o None) y ``components``
        """
        cache_key = None
        if self.cache is not None:
            cache_key = self.cache.make_key(
                student_enrollment_id, teacher_assignment_id, academic_term_id, cutoff_date
            )
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached.model_copy(deep=True)

        result = self._compute(student_enrollment_id, teacher_assignment_id, academic_term_id, cutoff_date)

        if cache_key is not None:
            self.cache.set(cache_key, result.model_copy(deep=True))
        return result

    def _compute(
        self,
        student_enrollment_id: str,
        teacher_assignment_id: str,
        academic_term_id: str,
        cutoff_date: Optional[date],
    ) -> TermGradeResult:
        plan = self.plan_repo.get(teacher_assignment_id, academic_term_id)
        if plan is None:
            logger.debug(
                "No evaluation plan for term grade",
                extra={"teacher_assignment_id": teacher_assignment_id, "academic_term_id": academic_term_id},
            )
            return TermGradeResult(grade=None, components=[])

        components = []
        for weight in plan.components:
            average = self.averager.average(
                student_enrollment_id,
                academic_term_id,
                weight.component_id,
                cutoff_date=cutoff_date,
                teacher_assignment_id=teacher_assignment_id,
            )
            components.append(
                ComponentBreakdown(
                    component_id=weight.component_id,
                    name=weight.component.name,
                    average=average,
                    percentage=weight.percentage,
                )
            )

        grade = weighted_mean(
            ((c.average, c.percentage) for c in components),
            self.rounding,
        )

        logger.debug(
            "Term grade computed",
            extra={
                "student_enrollment_id": student_enrollment_id,
                "teacher_assignment_id": teacher_assignment_id,
                "academic_term_id": academic_term_id,
                "grade": grade,
                "graded_components": sum(1 for c in components if c.average is not None),
            },
        )
        return TermGradeResult(grade=grade, components=components)
