"""
SQLAlchemy ORM models for persistence

Collaborator records (read by the engine, owned by the surrounding system):
- StudentDB, AcademicYearDB, StudentEnrollmentDB, TeacherAssignmentDB

Grading configuration:
- AcademicTermDB, EvaluationComponentDB, EvaluationPlanDB,
  EvaluationPlanComponentWeightDB, PerformanceScaleDB, PreventiveCutConfigDB

Grading data:
- EvaluativeActivityDB, StudentGradeDB, PeriodFinalGradeDB, PreventiveAlertDB
"""
from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, BaseModel


# =============================================================================
# COLLABORATOR RECORDS
# =============================================================================


class StudentDB(Base, BaseModel):
    """Student identity; only the name is needed here (alert ordering)"""

    __tablename__ = "students"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, index=True)

    enrollments = relationship("StudentEnrollmentDB", back_populates="student")


class AcademicYearDB(Base, BaseModel):
    """Academic year of an institution; groups the grading terms"""

    __tablename__ = "academic_years"

    institution_id = Column(String(36), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    terms = relationship(
        "AcademicTermDB",
        back_populates="academic_year",
        cascade="all, delete-orphan",
        order_by="AcademicTermDB.order",
    )

    __table_args__ = (
        UniqueConstraint("institution_id", "year", name="uq_academic_year_institution_year"),
    )


class StudentEnrollmentDB(Base, BaseModel):
    """A student's enrollment in a group for one academic year"""

    __tablename__ = "student_enrollments"

    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(String(36), nullable=False)
    academic_year_id = Column(
        String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default="ACTIVE")

    student = relationship("StudentDB", back_populates="enrollments")
    grades = relationship("StudentGradeDB", back_populates="student_enrollment", cascade="all, delete-orphan")

    __table_args__ = (
        # Query: active enrollments of a group in a year (preventive cut)
        Index("idx_enrollment_group_year_status", "group_id", "academic_year_id", "status"),
        CheckConstraint(
            "status IN ('ACTIVE', 'WITHDRAWN', 'TRANSFERRED', 'GRADUATED')",
            name="ck_enrollment_status_valid",
        ),
    )


class TeacherAssignmentDB(Base, BaseModel):
    """A teacher teaching one subject to one group during one academic year"""

    __tablename__ = "teacher_assignments"

    teacher_id = Column(String(36), nullable=False, index=True)
    subject_id = Column(String(36), nullable=False)
    group_id = Column(String(36), nullable=False)
    academic_year_id = Column(
        String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )

    academic_year = relationship("AcademicYearDB")


# =============================================================================
# GRADING CONFIGURATION
# =============================================================================


class AcademicTermDB(Base, BaseModel):
    """
    Grading period inside an academic year.

    weight_percentage is the share of the annual grade. The weights of a
    year are expected to add up to 100 but this is only checked on demand
    (validate-weights), never on write.
    """

    __tablename__ = "academic_terms"

    academic_year_id = Column(
        String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="PERIOD")
    order = Column(Integer, nullable=False)
    weight_percentage = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    academic_year = relationship("AcademicYearDB", back_populates="terms")
    preventive_cut_config = relationship(
        "PreventiveCutConfigDB", back_populates="academic_term", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_term_year_order", "academic_year_id", "order"),
        CheckConstraint("type IN ('PERIOD', 'SEMESTER_EXAM')", name="ck_term_type_valid"),
        CheckConstraint('"order" >= 1', name="ck_term_order_positive"),
        CheckConstraint(
            "weight_percentage >= 0 AND weight_percentage <= 100",
            name="ck_term_weight_range",
        ),
    )


class EvaluationComponentDB(Base, BaseModel):
    """
    Assessment category (quizzes, exams, ...) used to file activities and
    to weight them in evaluation plans. Components may nest under a parent.
    """

    __tablename__ = "evaluation_components"

    institution_id = Column(String(36), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    parent_id = Column(
        String(36), ForeignKey("evaluation_components.id", ondelete="SET NULL"), nullable=True, index=True
    )

    parent = relationship(
        "EvaluationComponentDB",
        remote_side="EvaluationComponentDB.id",
        back_populates="children",
        foreign_keys=[parent_id],
    )
    children = relationship(
        "EvaluationComponentDB",
        back_populates="parent",
        order_by="EvaluationComponentDB.name",
    )

    __table_args__ = (
        UniqueConstraint("institution_id", "code", name="uq_component_institution_code"),
    )


class EvaluationPlanDB(Base, BaseModel):
    """Component weights governing one (teacher assignment, term) grade"""

    __tablename__ = "evaluation_plans"

    teacher_assignment_id = Column(
        String(36), ForeignKey("teacher_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    academic_term_id = Column(
        String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, index=True
    )

    components = relationship(
        "EvaluationPlanComponentWeightDB",
        back_populates="evaluation_plan",
        cascade="all, delete-orphan",
        order_by="EvaluationPlanComponentWeightDB.position",
    )

    __table_args__ = (
        UniqueConstraint("teacher_assignment_id", "academic_term_id", name="uq_plan_assignment_term"),
    )


class EvaluationPlanComponentWeightDB(Base, BaseModel):
    """Percentage a component contributes inside one evaluation plan"""

    __tablename__ = "evaluation_plan_component_weights"

    evaluation_plan_id = Column(
        String(36), ForeignKey("evaluation_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_id = Column(
        String(36), ForeignKey("evaluation_components.id", ondelete="CASCADE"), nullable=False
    )
    percentage = Column(Integer, nullable=False)
    # Preserves the order the weights were submitted in
    position = Column(Integer, nullable=False, default=0)

    evaluation_plan = relationship("EvaluationPlanDB", back_populates="components")
    component = relationship("EvaluationComponentDB")

    __table_args__ = (
        UniqueConstraint("evaluation_plan_id", "component_id", name="uq_plan_weight_component"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_plan_weight_range"),
    )


class PerformanceScaleDB(Base, BaseModel):
    """
    One qualitative level of an institution's scale with its inclusive
    [min_score, max_score] band. Bands are non-overlapping by convention only.
    """

    __tablename__ = "performance_scales"

    institution_id = Column(String(36), nullable=False, index=True)
    level = Column(String(20), nullable=False)
    min_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("institution_id", "level", name="uq_scale_institution_level"),
        Index("idx_scale_institution_band", "institution_id", "min_score", "max_score"),
        CheckConstraint(
            "level IN ('SUPERIOR', 'ALTO', 'BASICO', 'BAJO')",
            name="ck_scale_level_valid",
        ),
        CheckConstraint("min_score <= max_score", name="ck_scale_band_ordered"),
    )


class PreventiveCutConfigDB(Base, BaseModel):
    """Cutoff date and risk threshold of the preventive cut of one term"""

    __tablename__ = "preventive_cut_configs"

    academic_term_id = Column(
        String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    cutoff_date = Column(Date, nullable=False)
    risk_threshold_score = Column(Float, nullable=False)

    academic_term = relationship("AcademicTermDB", back_populates="preventive_cut_config")

    __table_args__ = (
        CheckConstraint(
            "risk_threshold_score >= 1.0 AND risk_threshold_score <= 5.0",
            name="ck_cut_threshold_range",
        ),
    )


# =============================================================================
# GRADING DATA
# =============================================================================


class EvaluativeActivityDB(Base, BaseModel):
    """
    A graded activity. due_date is only used for point-in-time filtering:
    activities without a due date are always included.
    """

    __tablename__ = "evaluative_activities"

    teacher_assignment_id = Column(
        String(36), ForeignKey("teacher_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    academic_term_id = Column(
        String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    evaluation_plan_id = Column(
        String(36), ForeignKey("evaluation_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_id = Column(
        String(36), ForeignKey("evaluation_components.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    due_date = Column(Date, nullable=True)

    component = relationship("EvaluationComponentDB")
    grades = relationship("StudentGradeDB", back_populates="evaluative_activity", cascade="all, delete-orphan")

    __table_args__ = (
        # Query: activities of a component in a term (component average)
        Index("idx_activity_term_component", "academic_term_id", "component_id"),
    )


class StudentGradeDB(Base, BaseModel):
    """Score of one enrollment on one activity; unique per pair"""

    __tablename__ = "student_grades"

    student_enrollment_id = Column(
        String(36), ForeignKey("student_enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    evaluative_activity_id = Column(
        String(36), ForeignKey("evaluative_activities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score = Column(Float, nullable=False)
    observations = Column(Text, nullable=True)

    student_enrollment = relationship("StudentEnrollmentDB", back_populates="grades")
    evaluative_activity = relationship("EvaluativeActivityDB", back_populates="grades")

    __table_args__ = (
        UniqueConstraint(
            "student_enrollment_id", "evaluative_activity_id", name="uq_grade_enrollment_activity"
        ),
        CheckConstraint("score >= 1.0 AND score <= 5.0", name="ck_grade_score_range"),
    )


class PeriodFinalGradeDB(Base, BaseModel):
    """
    Final score of a period entered directly by a teacher for one subject.

    Stored as typed, independent of the computed term grade; unique per
    (enrollment, term, subject).
    """

    __tablename__ = "period_final_grades"

    student_enrollment_id = Column(
        String(36), ForeignKey("student_enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    academic_term_id = Column(
        String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id = Column(String(36), nullable=False)
    final_score = Column(Float, nullable=False)
    observations = Column(Text, nullable=True)
    entered_by_id = Column(String(36), nullable=True)

    student_enrollment = relationship("StudentEnrollmentDB")
    academic_term = relationship("AcademicTermDB")

    __table_args__ = (
        UniqueConstraint(
            "student_enrollment_id",
            "academic_term_id",
            "subject_id",
            name="uq_period_final_enrollment_term_subject",
        ),
        CheckConstraint("final_score >= 1.0 AND final_score <= 5.0", name="ck_period_final_score_range"),
    )


class PreventiveAlertDB(Base, BaseModel):
    """
    Early-warning alert for one (teacher assignment, enrollment, term).

    Automatic fields (cutoff_date, computed_grade, performance_level and the
    derived status) are written by the risk engine. Human fields
    (recovery_plan, meeting_at, notes and manual status changes) are written
    through the alert update endpoint only. IN_RECOVERY is never overwritten
    by the engine.
    """

    __tablename__ = "preventive_alerts"

    teacher_assignment_id = Column(
        String(36), ForeignKey("teacher_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_enrollment_id = Column(
        String(36), ForeignKey("student_enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    academic_term_id = Column(
        String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Automatic fields
    cutoff_date = Column(Date, nullable=False)
    computed_grade = Column(Float, nullable=True)
    performance_level = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default="OPEN")

    # Human fields
    recovery_plan = Column(Text, nullable=True)
    meeting_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    student_enrollment = relationship("StudentEnrollmentDB")
    teacher_assignment = relationship("TeacherAssignmentDB")
    academic_term = relationship("AcademicTermDB")

    __table_args__ = (
        UniqueConstraint(
            "teacher_assignment_id",
            "student_enrollment_id",
            "academic_term_id",
            name="uq_alert_assignment_enrollment_term",
        ),
        # Query: alerts of an assignment/term filtered by status
        Index("idx_alert_assignment_term_status", "teacher_assignment_id", "academic_term_id", "status"),
        CheckConstraint(
            "status IN ('OPEN', 'IN_RECOVERY', 'RESOLVED')",
            name="ck_alert_status_valid",
        ),
    )
