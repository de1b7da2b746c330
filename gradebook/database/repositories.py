"""
Repository pattern for database operations

Provides:
- AcademicYearRepository / AcademicTermRepository: years, terms and term weights
- EnrollmentRepository / TeacherAssignmentRepository: read-only collaborator records
- EvaluationComponentRepository: component catalog and hierarchy
- EvaluationPlanRepository: plans and their component weights
- EvaluativeActivityRepository: graded activities
- StudentGradeRepository: grade upserts and the raw score queries used by the engines
- PeriodFinalGradeRepository: teacher-entered final scores per period and subject
- PerformanceScaleRepository: institutional scale bands
- PreventiveCutConfigRepository / PreventiveAlertRepository: preventive cuts

TRANSACTION MANAGEMENT:
-----------------------
Individual repository methods commit immediately after each write. Methods
taking ``commit=False`` only flush, so callers can group them inside
``transaction()`` or isolate them with ``savepoint()`` (see transaction.py):

    from gradebook.database.transaction import savepoint

    for row in rows:
        try:
            with savepoint(db, "grade row"):
                grade_repo.upsert(..., commit=False)
        except Exception as e:
            errors.append(...)
    db.commit()
"""
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.constants import utc_now
from ..models.enums import AlertStatus, EnrollmentStatus
from ..models.grading import AutomaticAlertFields, ManualAlertFields
from .models import (
    AcademicTermDB,
    AcademicYearDB,
    EvaluationComponentDB,
    EvaluationPlanComponentWeightDB,
    EvaluationPlanDB,
    EvaluativeActivityDB,
    PerformanceScaleDB,
    PeriodFinalGradeDB,
    PreventiveAlertDB,
    PreventiveCutConfigDB,
    StudentDB,
    StudentEnrollmentDB,
    StudentGradeDB,
    TeacherAssignmentDB,
)
from .transaction import savepoint

logger = logging.getLogger(__name__)


class _BaseRepository:
    def __init__(self, db_session: Session):
        self.db = db_session

    def _save(self, instance, commit: bool = True):
        if commit:
            self.db.commit()
            self.db.refresh(instance)
        else:
            self.db.flush()
        return instance


# =============================================================================
# ACADEMIC STRUCTURE
# =============================================================================


class AcademicYearRepository(_BaseRepository):
    """Repository for academic years"""

    def create(
        self,
        institution_id: str,
        year: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AcademicYearDB:
        try:
            academic_year = AcademicYearDB(
                institution_id=institution_id,
                year=year,
                start_date=start_date,
                end_date=end_date,
            )
            self.db.add(academic_year)
            return self._save(academic_year)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create academic year: {e}", extra={"institution_id": institution_id, "year": year})
            raise

    def get_by_id(self, academic_year_id: str) -> Optional[AcademicYearDB]:
        return self.db.get(AcademicYearDB, academic_year_id)

    def get_by_institution(self, institution_id: str) -> List[AcademicYearDB]:
        return (
            self.db.query(AcademicYearDB)
            .filter(AcademicYearDB.institution_id == institution_id)
            .order_by(AcademicYearDB.year.desc())
            .all()
        )


class AcademicTermRepository(_BaseRepository):
    """Repository for academic terms (grading periods)"""

    def create(self, **fields) -> AcademicTermDB:
        try:
            term = AcademicTermDB(**fields)
            self.db.add(term)
            return self._save(term)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create academic term: {e}", extra={"academic_year_id": fields.get("academic_year_id")})
            raise

    def get_by_id(self, term_id: str) -> Optional[AcademicTermDB]:
        return self.db.get(AcademicTermDB, term_id)

    def get_by_year(self, academic_year_id: str) -> List[AcademicTermDB]:
        """Terms of a year ordered by ``order``"""
        return (
            self.db.query(AcademicTermDB)
            .filter(AcademicTermDB.academic_year_id == academic_year_id)
            .order_by(AcademicTermDB.order.asc(), AcademicTermDB.id.asc())
            .all()
        )

    def update(self, term_id: str, **fields) -> Optional[AcademicTermDB]:
        term = self.get_by_id(term_id)
        if not term:
            return None
        try:
            for key, value in fields.items():
                setattr(term, key, value)
            term.updated_at = utc_now()
            return self._save(term)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update academic term: {e}", extra={"term_id": term_id})
            raise

    def delete(self, term_id: str) -> bool:
        term = self.get_by_id(term_id)
        if not term:
            return False
        try:
            self.db.delete(term)
            self.db.commit()
            logger.info("Academic term deleted", extra={"term_id": term_id})
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete academic term: {e}", extra={"term_id": term_id})
            raise


class EnrollmentRepository(_BaseRepository):
    """Read-only access to student enrollments"""

    def get_by_id(self, enrollment_id: str) -> Optional[StudentEnrollmentDB]:
        return self.db.get(StudentEnrollmentDB, enrollment_id)

    def exists(self, enrollment_id: str) -> bool:
        return self.db.query(
            self.db.query(StudentEnrollmentDB.id).filter(StudentEnrollmentDB.id == enrollment_id).exists()
        ).scalar()

    def get_active_by_group(self, group_id: str, academic_year_id: str) -> List[StudentEnrollmentDB]:
        """
        ACTIVE enrollments of a group in a year, ordered by student last name.

        First name and enrollment id break ties so the order is total.
        """
        return (
            self.db.query(StudentEnrollmentDB)
            .join(StudentDB, StudentEnrollmentDB.student_id == StudentDB.id)
            .options(joinedload(StudentEnrollmentDB.student))
            .filter(
                StudentEnrollmentDB.group_id == group_id,
                StudentEnrollmentDB.academic_year_id == academic_year_id,
                StudentEnrollmentDB.status == EnrollmentStatus.ACTIVE.value,
            )
            .order_by(StudentDB.last_name.asc(), StudentDB.first_name.asc(), StudentEnrollmentDB.id.asc())
            .all()
        )


class TeacherAssignmentRepository(_BaseRepository):
    """Read-only access to teacher assignments"""

    def get_by_id(self, assignment_id: str) -> Optional[TeacherAssignmentDB]:
        return (
            self.db.query(TeacherAssignmentDB)
            .options(joinedload(TeacherAssignmentDB.academic_year))
            .filter(TeacherAssignmentDB.id == assignment_id)
            .first()
        )


# =============================================================================
# EVALUATION CONFIGURATION
# =============================================================================


class EvaluationComponentRepository(_BaseRepository):
    """Repository for the evaluation component catalog"""

    def create(
        self,
        institution_id: str,
        code: str,
        name: str,
        parent_id: Optional[str] = None,
    ) -> EvaluationComponentDB:
        try:
            component = EvaluationComponentDB(
                institution_id=institution_id,
                code=code,
                name=name,
                parent_id=parent_id,
            )
            self.db.add(component)
            return self._save(component)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create evaluation component: {e}", extra={"institution_id": institution_id, "code": code})
            raise

    def get_by_id(self, component_id: str) -> Optional[EvaluationComponentDB]:
        return self.db.get(EvaluationComponentDB, component_id)

    def get_by_ids(self, component_ids: Sequence[str]) -> Dict[str, EvaluationComponentDB]:
        if not component_ids:
            return {}
        rows = self.db.query(EvaluationComponentDB).filter(EvaluationComponentDB.id.in_(list(component_ids))).all()
        return {row.id: row for row in rows}

    def get_by_institution(self, institution_id: str) -> List[EvaluationComponentDB]:
        return (
            self.db.query(EvaluationComponentDB)
            .options(selectinload(EvaluationComponentDB.children))
            .filter(EvaluationComponentDB.institution_id == institution_id)
            .order_by(EvaluationComponentDB.name.asc())
            .all()
        )

    def get_hierarchy(self, institution_id: str) -> List[EvaluationComponentDB]:
        """Root components with two levels of children loaded"""
        return (
            self.db.query(EvaluationComponentDB)
            .options(
                selectinload(EvaluationComponentDB.children).selectinload(EvaluationComponentDB.children)
            )
            .filter(
                EvaluationComponentDB.institution_id == institution_id,
                EvaluationComponentDB.parent_id.is_(None),
            )
            .order_by(EvaluationComponentDB.name.asc())
            .all()
        )

    def update(self, component_id: str, **fields) -> Optional[EvaluationComponentDB]:
        component = self.get_by_id(component_id)
        if not component:
            return None
        try:
            for key, value in fields.items():
                setattr(component, key, value)
            component.updated_at = utc_now()
            return self._save(component)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update evaluation component: {e}", extra={"component_id": component_id})
            raise

    def is_in_use(self, component_id: str) -> bool:
        """True if an evaluation plan or an activity references the component"""
        weighted = self.db.query(
            self.db.query(EvaluationPlanComponentWeightDB.id)
            .filter(EvaluationPlanComponentWeightDB.component_id == component_id)
            .exists()
        ).scalar()
        if weighted:
            return True
        return self.db.query(
            self.db.query(EvaluativeActivityDB.id).filter(EvaluativeActivityDB.component_id == component_id).exists()
        ).scalar()

    def delete(self, component_id: str) -> bool:
        component = self.get_by_id(component_id)
        if not component:
            return False
        try:
            self.db.delete(component)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete evaluation component: {e}", extra={"component_id": component_id})
            raise


class EvaluationPlanRepository(_BaseRepository):
    """Repository for evaluation plans and their component weights"""

    def get(self, teacher_assignment_id: str, academic_term_id: str) -> Optional[EvaluationPlanDB]:
        """Plan of a (teacher assignment, term) with weights and components loaded"""
        return (
            self.db.query(EvaluationPlanDB)
            .options(
                selectinload(EvaluationPlanDB.components).joinedload(EvaluationPlanComponentWeightDB.component)
            )
            .filter(
                EvaluationPlanDB.teacher_assignment_id == teacher_assignment_id,
                EvaluationPlanDB.academic_term_id == academic_term_id,
            )
            .first()
        )

    def get_by_id(self, plan_id: str) -> Optional[EvaluationPlanDB]:
        return self.db.get(EvaluationPlanDB, plan_id)

    def upsert(
        self,
        teacher_assignment_id: str,
        academic_term_id: str,
        components: Sequence[Tuple[str, int]],
    ) -> EvaluationPlanDB:
        """
        Create the plan if needed and replace its whole weight set.

        Weight validation happens before calling this (plan_weights module);
        the replacement itself is atomic.

        Args:
            teacher_assignment_id: Owning teacher assignment
            academic_term_id: Owning term
            components: ``(component_id, percentage)`` pairs in display order
        """
        try:
            plan = (
                self.db.query(EvaluationPlanDB)
                .filter(
                    EvaluationPlanDB.teacher_assignment_id == teacher_assignment_id,
                    EvaluationPlanDB.academic_term_id == academic_term_id,
                )
                .first()
            )
            if plan is None:
                plan = EvaluationPlanDB(
                    teacher_assignment_id=teacher_assignment_id,
                    academic_term_id=academic_term_id,
                )
                self.db.add(plan)
            else:
                plan.components.clear()
                plan.updated_at = utc_now()
            # Delete the old weights before inserting replacements with the same component ids
            self.db.flush()

            for position, (component_id, percentage) in enumerate(components):
                plan.components.append(
                    EvaluationPlanComponentWeightDB(
                        component_id=component_id,
                        percentage=percentage,
                        position=position,
                    )
                )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to upsert evaluation plan: {e}",
                extra={"teacher_assignment_id": teacher_assignment_id, "academic_term_id": academic_term_id},
            )
            raise

        logger.info(
            "Evaluation plan saved",
            extra={
                "plan_id": plan.id,
                "teacher_assignment_id": teacher_assignment_id,
                "academic_term_id": academic_term_id,
                "components": len(components),
            },
        )
        self.db.expire_all()
        return self.get(teacher_assignment_id, academic_term_id)


class EvaluativeActivityRepository(_BaseRepository):
    """Repository for evaluative activities"""

    def create(self, **fields) -> EvaluativeActivityDB:
        try:
            activity = EvaluativeActivityDB(**fields)
            self.db.add(activity)
            return self._save(activity)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create evaluative activity: {e}", extra={"activity_name": fields.get("name")})
            raise

    def get_by_id(self, activity_id: str) -> Optional[EvaluativeActivityDB]:
        return self.db.get(EvaluativeActivityDB, activity_id)

    def list(
        self,
        teacher_assignment_id: Optional[str] = None,
        academic_term_id: Optional[str] = None,
        evaluation_plan_id: Optional[str] = None,
        component_id: Optional[str] = None,
    ) -> List[EvaluativeActivityDB]:
        query = self.db.query(EvaluativeActivityDB)
        if teacher_assignment_id:
            query = query.filter(EvaluativeActivityDB.teacher_assignment_id == teacher_assignment_id)
        if academic_term_id:
            query = query.filter(EvaluativeActivityDB.academic_term_id == academic_term_id)
        if evaluation_plan_id:
            query = query.filter(EvaluativeActivityDB.evaluation_plan_id == evaluation_plan_id)
        if component_id:
            query = query.filter(EvaluativeActivityDB.component_id == component_id)
        return query.order_by(EvaluativeActivityDB.created_at.desc(), EvaluativeActivityDB.id.asc()).all()


class PerformanceScaleRepository(_BaseRepository):
    """Repository for institutional performance scale bands"""

    def upsert(self, institution_id: str, level: str, min_score: float, max_score: float) -> PerformanceScaleDB:
        try:
            band = (
                self.db.query(PerformanceScaleDB)
                .filter(
                    PerformanceScaleDB.institution_id == institution_id,
                    PerformanceScaleDB.level == level,
                )
                .first()
            )
            if band is None:
                band = PerformanceScaleDB(institution_id=institution_id, level=level)
                self.db.add(band)
            band.min_score = min_score
            band.max_score = max_score
            band.updated_at = utc_now()
            return self._save(band)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to upsert performance scale: {e}", extra={"institution_id": institution_id, "level": level})
            raise

    def list(self, institution_id: str) -> List[PerformanceScaleDB]:
        return (
            self.db.query(PerformanceScaleDB)
            .filter(PerformanceScaleDB.institution_id == institution_id)
            .order_by(PerformanceScaleDB.level.asc())
            .all()
        )

    def find_band(self, institution_id: str, score: float) -> Optional[PerformanceScaleDB]:
        """Band whose inclusive [min_score, max_score] contains ``score``"""
        return (
            self.db.query(PerformanceScaleDB)
            .filter(
                PerformanceScaleDB.institution_id == institution_id,
                PerformanceScaleDB.min_score <= score,
                PerformanceScaleDB.max_score >= score,
            )
            .order_by(PerformanceScaleDB.min_score.desc())
            .first()
        )


# =============================================================================
# GRADES
# =============================================================================


class StudentGradeRepository(_BaseRepository):
    """Repository for student grades"""

    def get(self, student_enrollment_id: str, evaluative_activity_id: str) -> Optional[StudentGradeDB]:
        return (
            self.db.query(StudentGradeDB)
            .filter(
                StudentGradeDB.student_enrollment_id == student_enrollment_id,
                StudentGradeDB.evaluative_activity_id == evaluative_activity_id,
            )
            .first()
        )

    def upsert(
        self,
        student_enrollment_id: str,
        evaluative_activity_id: str,
        score: float,
        observations: Optional[str] = None,
        commit: bool = True,
    ) -> StudentGradeDB:
        """
        Insert or overwrite the grade of one (enrollment, activity) pair.

        Re-saving the same pair updates score and observations in place; a
        second row is never created.
        """
        try:
            grade = self.get(student_enrollment_id, evaluative_activity_id)
            if grade is None:
                grade = StudentGradeDB(
                    student_enrollment_id=student_enrollment_id,
                    evaluative_activity_id=evaluative_activity_id,
                )
                self.db.add(grade)
            else:
                grade.updated_at = utc_now()
            grade.score = score
            grade.observations = observations
            return self._save(grade, commit=commit)
        except Exception as e:
            if commit:
                self.db.rollback()
            logger.error(
                f"Failed to upsert student grade: {e}",
                extra={
                    "student_enrollment_id": student_enrollment_id,
                    "evaluative_activity_id": evaluative_activity_id,
                },
            )
            raise

    def get_by_activity(self, evaluative_activity_id: str) -> List[StudentGradeDB]:
        """Grades of an activity ordered by student last name"""
        return (
            self.db.query(StudentGradeDB)
            .join(StudentEnrollmentDB, StudentGradeDB.student_enrollment_id == StudentEnrollmentDB.id)
            .join(StudentDB, StudentEnrollmentDB.student_id == StudentDB.id)
            .options(joinedload(StudentGradeDB.student_enrollment).joinedload(StudentEnrollmentDB.student))
            .filter(StudentGradeDB.evaluative_activity_id == evaluative_activity_id)
            .order_by(StudentDB.last_name.asc(), StudentDB.first_name.asc())
            .all()
        )

    def get_by_student(self, student_enrollment_id: str) -> List[StudentGradeDB]:
        return (
            self.db.query(StudentGradeDB)
            .options(joinedload(StudentGradeDB.evaluative_activity))
            .filter(StudentGradeDB.student_enrollment_id == student_enrollment_id)
            .order_by(StudentGradeDB.created_at.asc())
            .all()
        )

    def get_component_scores(
        self,
        student_enrollment_id: str,
        academic_term_id: str,
        component_id: str,
        cutoff_date: Optional[date] = None,
        teacher_assignment_id: Optional[str] = None,
    ) -> List[float]:
        """
        Raw scores of an enrollment on the activities of one (term, component).

        With ``cutoff_date`` only activities without due date or due on or
        before the cutoff are included. ``teacher_assignment_id`` narrows the
        selection to one subject's activities.
        """
        stmt = (
            select(StudentGradeDB.score)
            .join(EvaluativeActivityDB, StudentGradeDB.evaluative_activity_id == EvaluativeActivityDB.id)
            .where(
                StudentGradeDB.student_enrollment_id == student_enrollment_id,
                EvaluativeActivityDB.academic_term_id == academic_term_id,
                EvaluativeActivityDB.component_id == component_id,
            )
        )
        if teacher_assignment_id is not None:
            stmt = stmt.where(EvaluativeActivityDB.teacher_assignment_id == teacher_assignment_id)
        if cutoff_date is not None:
            stmt = stmt.where(
                or_(
                    EvaluativeActivityDB.due_date.is_(None),
                    EvaluativeActivityDB.due_date <= cutoff_date,
                )
            )
        return list(self.db.execute(stmt).scalars().all())


class PeriodFinalGradeRepository(_BaseRepository):
    """Repository for period final scores entered by teachers"""

    def get_by_id(self, grade_id: str) -> Optional[PeriodFinalGradeDB]:
        return self.db.get(PeriodFinalGradeDB, grade_id)

    def get_by_key(
        self, student_enrollment_id: str, academic_term_id: str, subject_id: str
    ) -> Optional[PeriodFinalGradeDB]:
        return (
            self.db.query(PeriodFinalGradeDB)
            .filter(
                PeriodFinalGradeDB.student_enrollment_id == student_enrollment_id,
                PeriodFinalGradeDB.academic_term_id == academic_term_id,
                PeriodFinalGradeDB.subject_id == subject_id,
            )
            .first()
        )

    def upsert(
        self,
        student_enrollment_id: str,
        academic_term_id: str,
        subject_id: str,
        final_score: float,
        observations: Optional[str] = None,
        entered_by_id: Optional[str] = None,
        commit: bool = True,
    ) -> PeriodFinalGradeDB:
        """Insert or overwrite the final score of one (enrollment, term, subject)"""
        try:
            grade = self.get_by_key(student_enrollment_id, academic_term_id, subject_id)
            if grade is None:
                grade = PeriodFinalGradeDB(
                    student_enrollment_id=student_enrollment_id,
                    academic_term_id=academic_term_id,
                    subject_id=subject_id,
                )
                self.db.add(grade)
            else:
                grade.updated_at = utc_now()
            grade.final_score = final_score
            grade.observations = observations
            grade.entered_by_id = entered_by_id
            return self._save(grade, commit=commit)
        except Exception as e:
            if commit:
                self.db.rollback()
            logger.error(
                f"Failed to upsert period final grade: {e}",
                extra={
                    "student_enrollment_id": student_enrollment_id,
                    "academic_term_id": academic_term_id,
                    "subject_id": subject_id,
                },
            )
            raise

    def get_by_group(self, group_id: str, academic_term_id: str) -> List[PeriodFinalGradeDB]:
        """Final scores of a group in a term ordered by student last name, then subject"""
        return (
            self.db.query(PeriodFinalGradeDB)
            .join(StudentEnrollmentDB, PeriodFinalGradeDB.student_enrollment_id == StudentEnrollmentDB.id)
            .join(StudentDB, StudentEnrollmentDB.student_id == StudentDB.id)
            .options(joinedload(PeriodFinalGradeDB.student_enrollment).joinedload(StudentEnrollmentDB.student))
            .filter(
                StudentEnrollmentDB.group_id == group_id,
                PeriodFinalGradeDB.academic_term_id == academic_term_id,
            )
            .order_by(StudentDB.last_name.asc(), StudentDB.first_name.asc(), PeriodFinalGradeDB.subject_id.asc())
            .all()
        )

    def get_by_student(
        self, student_enrollment_id: str, academic_term_id: Optional[str] = None
    ) -> List[PeriodFinalGradeDB]:
        query = self.db.query(PeriodFinalGradeDB).filter(
            PeriodFinalGradeDB.student_enrollment_id == student_enrollment_id
        )
        if academic_term_id:
            query = query.filter(PeriodFinalGradeDB.academic_term_id == academic_term_id)
        return query.order_by(PeriodFinalGradeDB.subject_id.asc()).all()

    def delete(self, grade_id: str) -> bool:
        grade = self.get_by_id(grade_id)
        if not grade:
            return False
        try:
            self.db.delete(grade)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete period final grade: {e}", extra={"grade_id": grade_id})
            raise


# =============================================================================
# PREVENTIVE CUTS
# =============================================================================


class PreventiveCutConfigRepository(_BaseRepository):
    """Repository for per-term preventive cut configuration"""

    def get_by_term(self, academic_term_id: str) -> Optional[PreventiveCutConfigDB]:
        return (
            self.db.query(PreventiveCutConfigDB)
            .filter(PreventiveCutConfigDB.academic_term_id == academic_term_id)
            .first()
        )

    def upsert(self, academic_term_id: str, cutoff_date: date, risk_threshold_score: float) -> PreventiveCutConfigDB:
        try:
            config = self.get_by_term(academic_term_id)
            if config is None:
                config = PreventiveCutConfigDB(academic_term_id=academic_term_id)
                self.db.add(config)
            config.cutoff_date = cutoff_date
            config.risk_threshold_score = risk_threshold_score
            config.updated_at = utc_now()
            return self._save(config)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to upsert preventive cut config: {e}", extra={"academic_term_id": academic_term_id})
            raise


class PreventiveAlertRepository(_BaseRepository):
    """
    Repository for preventive alerts

    Automatic and human fields are written by different methods:
    ``apply_automatic`` (risk engine) and ``apply_manual`` (alert updates).
    """

    def get_by_id(self, alert_id: str) -> Optional[PreventiveAlertDB]:
        return self.db.get(PreventiveAlertDB, alert_id)

    def get_by_key(
        self, teacher_assignment_id: str, student_enrollment_id: str, academic_term_id: str
    ) -> Optional[PreventiveAlertDB]:
        return (
            self.db.query(PreventiveAlertDB)
            .filter(
                PreventiveAlertDB.teacher_assignment_id == teacher_assignment_id,
                PreventiveAlertDB.student_enrollment_id == student_enrollment_id,
                PreventiveAlertDB.academic_term_id == academic_term_id,
            )
            .first()
        )

    def list(
        self,
        teacher_assignment_id: Optional[str] = None,
        academic_term_id: Optional[str] = None,
        student_enrollment_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[PreventiveAlertDB]:
        query = self.db.query(PreventiveAlertDB).options(
            joinedload(PreventiveAlertDB.student_enrollment).joinedload(StudentEnrollmentDB.student)
        )
        if teacher_assignment_id:
            query = query.filter(PreventiveAlertDB.teacher_assignment_id == teacher_assignment_id)
        if academic_term_id:
            query = query.filter(PreventiveAlertDB.academic_term_id == academic_term_id)
        if student_enrollment_id:
            query = query.filter(PreventiveAlertDB.student_enrollment_id == student_enrollment_id)
        if status:
            query = query.filter(PreventiveAlertDB.status == status)
        return query.order_by(PreventiveAlertDB.created_at.desc(), PreventiveAlertDB.id.asc()).all()

    def apply_automatic(
        self,
        teacher_assignment_id: str,
        student_enrollment_id: str,
        academic_term_id: str,
        fields: AutomaticAlertFields,
    ) -> PreventiveAlertDB:
        """
        Upsert the engine-owned fields of the alert keyed by the unique triple.

        Human fields are never touched. If a concurrent execution inserts the
        same triple first, the unique constraint fires and the write is
        retried once as an update (last write wins).
        """
        alert = self.get_by_key(teacher_assignment_id, student_enrollment_id, academic_term_id)
        try:
            if alert is None:
                try:
                    with savepoint(self.db, "insert preventive alert"):
                        alert = PreventiveAlertDB(
                            teacher_assignment_id=teacher_assignment_id,
                            student_enrollment_id=student_enrollment_id,
                            academic_term_id=academic_term_id,
                        )
                        self._write_automatic(alert, fields)
                        self.db.add(alert)
                except IntegrityError:
                    logger.info(
                        "Preventive alert inserted concurrently, updating instead",
                        extra={
                            "teacher_assignment_id": teacher_assignment_id,
                            "student_enrollment_id": student_enrollment_id,
                            "academic_term_id": academic_term_id,
                        },
                    )
                    alert = self.get_by_key(teacher_assignment_id, student_enrollment_id, academic_term_id)
                    if alert is None:
                        raise
                    self._write_automatic(alert, fields)
            else:
                self._write_automatic(alert, fields)
            self.db.commit()
            self.db.refresh(alert)
            return alert
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to upsert preventive alert: {e}",
                extra={
                    "teacher_assignment_id": teacher_assignment_id,
                    "student_enrollment_id": student_enrollment_id,
                    "academic_term_id": academic_term_id,
                },
            )
            raise

    def apply_manual(self, alert_id: str, fields: ManualAlertFields) -> Optional[PreventiveAlertDB]:
        """Apply only the human-owned fields that were explicitly provided"""
        alert = self.get_by_id(alert_id)
        if not alert:
            return None

        provided = fields.model_dump(include=fields.model_fields_set)
        try:
            for key, value in provided.items():
                if key == "status":
                    if value is None:
                        continue
                    value = AlertStatus(value).value
                setattr(alert, key, value)
            alert.updated_at = utc_now()
            self.db.commit()
            self.db.refresh(alert)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update preventive alert: {e}", extra={"alert_id": alert_id})
            raise

        logger.info(
            "Preventive alert updated",
            extra={"alert_id": alert.id, "fields": sorted(provided), "status": alert.status},
        )
        return alert

    @staticmethod
    def _write_automatic(alert: PreventiveAlertDB, fields: AutomaticAlertFields) -> None:
        alert.cutoff_date = fields.cutoff_date
        alert.computed_grade = fields.computed_grade
        alert.performance_level = fields.performance_level
        alert.status = fields.status.value
        alert.updated_at = utc_now()
