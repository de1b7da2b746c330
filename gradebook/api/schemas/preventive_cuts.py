"""
Schemas de cortes preventivos y alertas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ...core.constants import MAX_SCORE, MIN_SCORE
from ...models.enums import AlertStatus
from .common import CamelModel
from .grades import StudentSummary


class PreventiveCutConfigUpsert(CamelModel):
    academic_term_id: str = Field(..., min_length=1)
    cutoff_date: date
    risk_threshold_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, allow_inf_nan=False)


class PreventiveCutConfigResponse(CamelModel):
    id: str
    academic_term_id: str
    cutoff_date: date
    risk_threshold_score: float


class PreventiveCutExecute(CamelModel):
    teacher_assignment_id: str = Field(..., min_length=1)
    academic_term_id: str = Field(..., min_length=1)
    cutoff_date: Optional[date] = None


class EnrollmentSummary(CamelModel):
    id: str
    student: Optional[StudentSummary] = None


class PreventiveAlertResponse(CamelModel):
    id: str
    teacher_assignment_id: str
    student_enrollment_id: str
    academic_term_id: str
    cutoff_date: date
    computed_grade: Optional[float] = None
    performance_level: Optional[str] = None
    status: AlertStatus
    recovery_plan: Optional[str] = None
    meeting_at: Optional[datetime] = None
    notes: Optional[str] = None
    student_enrollment: Optional[EnrollmentSummary] = None
    created_at: datetime
    updated_at: datetime


class PreventiveAlertUpdate(CamelModel):
    status: Optional[AlertStatus] = None
    recovery_plan: Optional[str] = None
    meeting_at: Optional[datetime] = None
    notes: Optional[str] = None


class PreventiveCutSummaryResponse(CamelModel):
    cutoff_date: date
    threshold: float
    total_students: int
    at_risk: int
    alerts: List[PreventiveAlertResponse] = []
