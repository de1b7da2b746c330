"""
Risk Engine - Corte preventivo

Calcula la nota de periodo de cada estudiante activo del grupo a una fecha de
corte, la compara con el umbral de riesgo y mantiene una alerta preventiva por
(asignación, matrícula, periodo).

Máquina de estados de la alerta:
- Al crearla: OPEN si hay riesgo, RESOLVED si no.
- IN_RECOVERY solo lo asigna una persona y se conserva en los recálculos.
- Una persona puede mover la alerta a cualquier estado; no hay estado final.

El motor escribe solo los campos automáticos (nota, nivel, fecha de corte,
estado). Plan de recuperación, reunión y notas son de las personas y nunca se
tocan al recalcular.
"""
import logging
import time
from datetime import date
from typing import Optional

from ..database.repositories import (
    AcademicTermRepository,
    EnrollmentRepository,
    PreventiveAlertRepository,
    PreventiveCutConfigRepository,
    TeacherAssignmentRepository,
)
from ..models.enums import AlertStatus
from ..models.grading import AutomaticAlertFields, PreventiveCutSummary
from .constants import DEFAULT_RISK_THRESHOLD
from .exceptions import MissingCutoffError, NotFoundError
from .metrics import alerts_written_total, preventive_cut_duration_seconds, preventive_cuts_executed_total
from .scale_resolver import ScaleResolver
from .term_grade_aggregator import TermGradeAggregator

logger = logging.getLogger(__name__)


def is_at_risk(grade: Optional[float], threshold: float) -> bool:
    """Sin nota también es riesgo: no hay evidencia de desempeño."""
    return grade is None or grade < threshold


def next_alert_status(existing: Optional[str], at_risk: bool) -> AlertStatus:
    """
    Estado resultante de un recálculo.

    Args:
        existing: Estado persistido de la alerta, o None si no existe
        at_risk: Resultado del cálculo actual

    Returns:
        IN_RECOVERY si ya lo estaba; si no, OPEN o RESOLVED según el riesgo
    """
    if existing is not None and AlertStatus(existing) is AlertStatus.IN_RECOVERY:
        return AlertStatus.IN_RECOVERY
    return AlertStatus.from_risk(at_risk)


class RiskEngine:
    """
    Ejecuta cortes preventivos.

    Responsabilidad: detección de estudiantes en riesgo académico a una fecha
    de corte y mantenimiento idempotente de sus alertas.
    """

    def __init__(
        self,
        assignment_repo: TeacherAssignmentRepository,
        term_repo: AcademicTermRepository,
        enrollment_repo: EnrollmentRepository,
        config_repo: PreventiveCutConfigRepository,
        alert_repo: PreventiveAlertRepository,
        term_aggregator: TermGradeAggregator,
        scale_resolver: ScaleResolver,
        default_threshold: float = DEFAULT_RISK_THRESHOLD,
    ):
        self.assignment_repo = assignment_repo
        self.term_repo = term_repo
        self.enrollment_repo = enrollment_repo
        self.config_repo = config_repo
        self.alert_repo = alert_repo
        self.term_aggregator = term_aggregator
        self.scale_resolver = scale_resolver
        self.default_threshold = default_threshold

    def execute(
        self,
        teacher_assignment_id: str,
        academic_term_id: str,
        cutoff_date: Optional[date] = None,
    ) -> PreventiveCutSummary:
        """
        Ejecuta el corte preventivo de una asignación en un periodo.

        Args:
            teacher_assignment_id: Asignación docente (define grupo y año)
            academic_term_id: Periodo evaluado
            cutoff_date: Fecha de corte explícita; si falta se usa la configurada

        Returns:
            PreventiveCutSummary con las alertas en orden de evaluación

        Raises:
            NotFoundError: Asignación o periodo inexistente
            MissingCutoffError: Sin configuración y sin fecha de corte
        """
        started = time.perf_counter()

        assignment = self.assignment_repo.get_by_id(teacher_assignment_id)
        if assignment is None:
            raise NotFoundError("TeacherAssignment", teacher_assignment_id)
        if self.term_repo.get_by_id(academic_term_id) is None:
            raise NotFoundError("AcademicTerm", academic_term_id)

        config = self.config_repo.get_by_term(academic_term_id)
        if config is None and cutoff_date is None:
            raise MissingCutoffError(academic_term_id)

        effective_cutoff = cutoff_date or config.cutoff_date
        threshold = config.risk_threshold_score if config is not None else self.default_threshold
        institution_id = assignment.academic_year.institution_id

        enrollments = self.enrollment_repo.get_active_by_group(
            assignment.group_id, assignment.academic_year_id
        )

        logger.info(
            "Executing preventive cut",
            extra={
                "teacher_assignment_id": teacher_assignment_id,
                "academic_term_id": academic_term_id,
                "cutoff_date": effective_cutoff.isoformat(),
                "threshold": threshold,
                "students": len(enrollments),
            },
        )

        alerts = []
        for enrollment in enrollments:
            term_result = self.term_aggregator.compute(
                enrollment.id, teacher_assignment_id, academic_term_id, cutoff_date=effective_cutoff
            )
            grade = term_result.grade
            at_risk = is_at_risk(grade, threshold)

            performance_level = None
            if grade is not None:
                performance = self.scale_resolver.resolve(institution_id, grade)
                performance_level = performance.level if performance else None

            existing = self.alert_repo.get_by_key(teacher_assignment_id, enrollment.id, academic_term_id)
            status = next_alert_status(existing.status if existing else None, at_risk)

            alert = self.alert_repo.apply_automatic(
                teacher_assignment_id,
                enrollment.id,
                academic_term_id,
                AutomaticAlertFields(
                    cutoff_date=effective_cutoff,
                    computed_grade=grade,
                    performance_level=performance_level,
                    status=status,
                ),
            )
            alerts_written_total.labels(status=status.value).inc()
            alerts.append(alert)

        at_risk_count = sum(1 for alert in alerts if alert.status != AlertStatus.RESOLVED.value)

        preventive_cuts_executed_total.inc()
        preventive_cut_duration_seconds.observe(time.perf_counter() - started)

        logger.info(
            "Preventive cut executed",
            extra={
                "teacher_assignment_id": teacher_assignment_id,
                "academic_term_id": academic_term_id,
                "total_students": len(alerts),
                "at_risk": at_risk_count,
            },
        )

        return PreventiveCutSummary(
            cutoff_date=effective_cutoff,
            threshold=threshold,
            total_students=len(alerts),
            at_risk=at_risk_count,
            alerts=alerts,
        )
