"""
Schemas de configuración de la evaluación: años, periodos, componentes,
planes, actividades y escala de desempeño
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, model_validator

from ...core.constants import MAX_SCORE, MIN_SCORE
from ...models.enums import AcademicTermType, PerformanceLevel
from .common import CamelModel


# =============================================================================
# ACADEMIC YEARS / TERMS
# =============================================================================

class AcademicYearCreate(CamelModel):
    institution_id: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=3000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AcademicYearResponse(CamelModel):
    id: str
    institution_id: str
    year: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime


class AcademicTermCreate(CamelModel):
    academic_year_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    type: AcademicTermType = AcademicTermType.PERIOD
    order: int = Field(..., ge=1)
    weight_percentage: int = Field(..., ge=0, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AcademicTermUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[AcademicTermType] = None
    order: Optional[int] = Field(None, ge=1)
    weight_percentage: Optional[int] = Field(None, ge=0, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AcademicTermResponse(CamelModel):
    id: str
    academic_year_id: str
    name: str
    type: AcademicTermType
    order: int
    weight_percentage: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TermWeightsValidation(CamelModel):
    valid: bool
    total: int


# =============================================================================
# EVALUATION COMPONENTS
# =============================================================================

class EvaluationComponentCreate(CamelModel):
    institution_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    parent_id: Optional[str] = None


class EvaluationComponentUpdate(CamelModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    parent_id: Optional[str] = None


class EvaluationComponentResponse(CamelModel):
    id: str
    institution_id: str
    code: str
    name: str
    parent_id: Optional[str] = None


class EvaluationComponentWithChildren(EvaluationComponentResponse):
    children: List[EvaluationComponentResponse] = []


class EvaluationComponentTree(EvaluationComponentResponse):
    """Componente raíz con dos niveles de hijos"""
    children: List[EvaluationComponentWithChildren] = []


# =============================================================================
# EVALUATION PLANS
# =============================================================================

class PlanComponentInput(CamelModel):
    component_id: str = Field(..., min_length=1)
    percentage: int = Field(..., ge=0, le=100)


class EvaluationPlanUpsert(CamelModel):
    teacher_assignment_id: str = Field(..., min_length=1)
    academic_term_id: str = Field(..., min_length=1)
    components: List[PlanComponentInput] = Field(..., min_length=1)


class PlanComponentResponse(CamelModel):
    id: str
    component_id: str
    percentage: int
    component: EvaluationComponentResponse


class EvaluationPlanResponse(CamelModel):
    id: str
    teacher_assignment_id: str
    academic_term_id: str
    components: List[PlanComponentResponse] = []
    updated_at: datetime


# =============================================================================
# EVALUATIVE ACTIVITIES
# =============================================================================

class EvaluativeActivityCreate(CamelModel):
    teacher_assignment_id: str = Field(..., min_length=1)
    academic_term_id: str = Field(..., min_length=1)
    evaluation_plan_id: str = Field(..., min_length=1)
    component_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    due_date: Optional[date] = None


class EvaluativeActivityResponse(CamelModel):
    id: str
    teacher_assignment_id: str
    academic_term_id: str
    evaluation_plan_id: str
    component_id: str
    name: str
    due_date: Optional[date] = None
    created_at: datetime


# =============================================================================
# PERFORMANCE SCALE
# =============================================================================

class PerformanceScaleUpsert(CamelModel):
    institution_id: str = Field(..., min_length=1)
    level: PerformanceLevel
    min_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, allow_inf_nan=False)
    max_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, allow_inf_nan=False)

    @model_validator(mode="after")
    def check_bounds(self) -> "PerformanceScaleUpsert":
        if self.min_score > self.max_score:
            raise ValueError("minScore must be less than or equal to maxScore")
        return self


class PerformanceScaleResponse(CamelModel):
    id: str
    institution_id: str
    level: PerformanceLevel
    min_score: float
    max_score: float
