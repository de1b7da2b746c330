"""
Annual Grade Aggregator - Nota anual a partir de las notas de periodo
"""
import logging

from ..database.repositories import AcademicTermRepository
from ..models.grading import AnnualGradeResult, TermBreakdown
from .constants import TOTAL_WEIGHT_PERCENTAGE
from .grading_policy import RoundingPolicy, round_to_one_decimal, weighted_mean
from .term_grade_aggregator import TermGradeAggregator

logger = logging.getLogger(__name__)


class AnnualGradeAggregator:
    """
    Promedio ponderado de las notas de periodo de un año.

    Cada periodo se calcula a la fecha actual (sin corte) y se pondera con su
    ``weight_percentage``, renormalizando sobre los periodos que tienen nota.
    Si los pesos del año no suman 100 el resultado se calcula igual y se
    marca ``weights_valid=False``.
    """

    def __init__(
        self,
        term_repo: AcademicTermRepository,
        term_aggregator: TermGradeAggregator,
        rounding: RoundingPolicy = round_to_one_decimal,
    ):
        self.term_repo = term_repo
        self.term_aggregator = term_aggregator
        self.rounding = rounding

    def compute(
        self,
        student_enrollment_id: str,
        teacher_assignment_id: str,
        academic_year_id: str,
    ) -> AnnualGradeResult:
        terms = self.term_repo.get_by_year(academic_year_id)

        breakdown = []
        for term in terms:
            term_result = self.term_aggregator.compute(
                student_enrollment_id, teacher_assignment_id, term.id
            )
            breakdown.append(
                TermBreakdown(
                    term_id=term.id,
                    name=term.name,
                    order=term.order,
                    grade=term_result.grade,
                    weight=term.weight_percentage,
                )
            )

        annual_grade = weighted_mean(((t.grade, t.weight) for t in breakdown), self.rounding)

        total_weight = sum(t.weight for t in breakdown)
        weights_valid = total_weight == TOTAL_WEIGHT_PERCENTAGE
        if not weights_valid:
            logger.warning(
                "Academic term weights do not sum to 100",
                extra={"academic_year_id": academic_year_id, "total": total_weight},
            )

        return AnnualGradeResult(annual_grade=annual_grade, terms=breakdown, weights_valid=weights_valid)
