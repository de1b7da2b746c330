"""
Domain models for the gradebook engine (enums and computation results).
"""
from .enums import AcademicTermType, AlertStatus, EnrollmentStatus, PerformanceLevel
from .grading import (
    ComponentBreakdown,
    TermGradeResult,
    TermBreakdown,
    AnnualGradeResult,
    PerformanceResult,
    AutomaticAlertFields,
    ManualAlertFields,
    PreventiveCutSummary,
)

__all__ = [
    "AcademicTermType",
    "AlertStatus",
    "EnrollmentStatus",
    "PerformanceLevel",
    "ComponentBreakdown",
    "TermGradeResult",
    "TermBreakdown",
    "AnnualGradeResult",
    "PerformanceResult",
    "AutomaticAlertFields",
    "ManualAlertFields",
    "PreventiveCutSummary",
]
