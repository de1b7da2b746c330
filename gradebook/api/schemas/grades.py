"""
Schemas de notas y de los cálculos derivados (promedios, periodo, año)
"""
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field

from ...core.constants import MAX_SCORE, MIN_SCORE
from .common import CamelModel

Score = Annotated[float, Field(ge=MIN_SCORE, le=MAX_SCORE, allow_inf_nan=False)]


class StudentGradeUpsert(CamelModel):
    student_enrollment_id: str = Field(..., min_length=1)
    evaluative_activity_id: str = Field(..., min_length=1)
    score: Score
    observations: Optional[str] = None


class BulkGradeRow(CamelModel):
    student_enrollment_id: str = Field(..., min_length=1)
    score: Score
    observations: Optional[str] = None


class BulkGradeUpsert(CamelModel):
    evaluative_activity_id: str = Field(..., min_length=1)
    grades: List[BulkGradeRow] = Field(..., min_length=1)


class StudentSummary(CamelModel):
    id: str
    first_name: str
    last_name: str


class StudentGradeResponse(CamelModel):
    id: str
    student_enrollment_id: str
    evaluative_activity_id: str
    score: float
    observations: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ActivityGradeResponse(StudentGradeResponse):
    """Nota de una actividad con los datos del estudiante (listado por actividad)"""
    student: Optional[StudentSummary] = None


class BulkRowError(CamelModel):
    row: int
    student_enrollment_id: str
    error: str


class BulkGradeResponse(CamelModel):
    grades: List[StudentGradeResponse]
    errors: List[BulkRowError] = []


class ComponentAverageResponse(CamelModel):
    average: Optional[float] = None


class ComponentBreakdownResponse(CamelModel):
    component_id: str
    name: str
    average: Optional[float] = None
    percentage: int


class TermGradeResponse(CamelModel):
    grade: Optional[float] = None
    components: List[ComponentBreakdownResponse] = []


class TermBreakdownResponse(CamelModel):
    term_id: str
    name: str
    order: int
    grade: Optional[float] = None
    weight: int


class AnnualGradeResponse(CamelModel):
    annual_grade: Optional[float] = None
    terms: List[TermBreakdownResponse] = []
    weights_valid: bool = True


class PerformanceLevelResponse(CamelModel):
    level: str
    score: float
