"""
Schemas de notas finales de periodo (digitadas por el docente)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .common import CamelModel
from .grades import BulkRowError, Score
from .preventive_cuts import EnrollmentSummary


class PeriodFinalGradeRow(CamelModel):
    student_enrollment_id: str = Field(..., min_length=1)
    academic_term_id: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)
    final_score: Score
    observations: Optional[str] = None


class PeriodFinalGradeUpsert(PeriodFinalGradeRow):
    entered_by_id: Optional[str] = None


class BulkPeriodFinalGradeUpsert(CamelModel):
    """Todas las filas quedan registradas a nombre de ``enteredById``"""
    entered_by_id: Optional[str] = None
    grades: List[PeriodFinalGradeRow] = Field(..., min_length=1)


class PeriodFinalGradeResponse(CamelModel):
    id: str
    student_enrollment_id: str
    academic_term_id: str
    subject_id: str
    final_score: float
    observations: Optional[str] = None
    entered_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class GroupPeriodFinalGradeResponse(PeriodFinalGradeResponse):
    """Nota final con los datos del estudiante (listado por grupo)"""
    student_enrollment: Optional[EnrollmentSummary] = None


class BulkPeriodFinalGradeResponse(CamelModel):
    grades: List[PeriodFinalGradeResponse]
    errors: List[BulkRowError] = []
