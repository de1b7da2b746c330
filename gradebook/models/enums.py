"""Enumerations shared by the ORM layer, the engines and the API schemas."""
from enum import Enum


class AcademicTermType(str, Enum):
    """Kind of grading period inside an academic year"""
    PERIOD = "PERIOD"
    SEMESTER_EXAM = "SEMESTER_EXAM"


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"
    TRANSFERRED = "TRANSFERRED"
    GRADUATED = "GRADUATED"


class PerformanceLevel(str, Enum):
    """Qualitative performance labels of the institutional scale"""
    SUPERIOR = "SUPERIOR"
    ALTO = "ALTO"
    BASICO = "BASICO"
    BAJO = "BAJO"


class AlertStatus(str, Enum):
    """
    Preventive alert states.

    OPEN and RESOLVED are derived by the risk engine; IN_RECOVERY is only
    set by a person and survives automatic recomputation.
    """
    OPEN = "OPEN"
    IN_RECOVERY = "IN_RECOVERY"
    RESOLVED = "RESOLVED"

    @classmethod
    def from_risk(cls, is_at_risk: bool) -> "AlertStatus":
        return cls.OPEN if is_at_risk else cls.RESOLVED
