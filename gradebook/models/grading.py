"""
Result models produced by the grading engines.

These are plain pydantic models (snake_case). The API layer converts them to
its camelCase response schemas.
"""
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import AlertStatus


class ComponentBreakdown(BaseModel):
    """One evaluation component of a term grade, kept for auditability"""
    component_id: str
    name: str
    average: Optional[float] = None
    percentage: int


class TermGradeResult(BaseModel):
    grade: Optional[float] = None
    components: List[ComponentBreakdown] = Field(default_factory=list)


class TermBreakdown(BaseModel):
    term_id: str
    name: str
    order: int
    grade: Optional[float] = None
    weight: int


class AnnualGradeResult(BaseModel):
    annual_grade: Optional[float] = None
    terms: List[TermBreakdown] = Field(default_factory=list)
    # Advisory: False when the year's term weights do not add up to 100
    weights_valid: bool = True


class PerformanceResult(BaseModel):
    level: str
    score: float


class AutomaticAlertFields(BaseModel):
    """
    Fields of a preventive alert owned by the risk engine.

    Written on every execution of a cut. ``status`` here is already the
    merged value (an existing IN_RECOVERY is carried over).
    """
    model_config = ConfigDict(frozen=True)

    cutoff_date: date
    computed_grade: Optional[float] = None
    performance_level: Optional[str] = None
    status: AlertStatus


class ManualAlertFields(BaseModel):
    """
    Fields of a preventive alert owned by people (teachers, coordinators).

    Only the fields explicitly provided are applied (PATCH semantics),
    see ``model_fields_set``.
    """
    status: Optional[AlertStatus] = None
    recovery_plan: Optional[str] = None
    meeting_at: Optional[datetime] = None
    notes: Optional[str] = None


class PreventiveCutSummary(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    cutoff_date: date
    threshold: float
    total_students: int
    at_risk: int
    alerts: List[Any] = Field(default_factory=list)
