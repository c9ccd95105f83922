# eduledger/models/grade.py
from sqlalchemy import Column, String, Float, DateTime, Boolean, Text, Enum, JSON, Uuid, UniqueConstraint, Index
from .base import Base
from .roster import utcnow
from ..utils.grading import compute_percentage, letter_grade_for
import enum


class AssessmentType(str, enum.Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    MIDTERM = "midterm"
    FINAL = "final"
    TOTAL = "total"


class GradeRecord(Base):
    __tablename__ = "grade_records"

    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # Assessment identity, immutable after creation
    assessment_type = Column(
        Enum(AssessmentType, name="assessment_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    assessment_id = Column(String(64), nullable=True)
    assessment_title = Column(String(200), nullable=False)
    max_marks = Column(Float, nullable=False)

    obtained_marks = Column(Float, nullable=False)
    # Read-optimised copies, only ever written through apply_marks()
    percentage = Column(Float, nullable=False)
    letter_grade = Column(String(4), nullable=False)

    remarks = Column(Text, default="", nullable=False)
    graded_by = Column(String(64), nullable=False)
    graded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    extra_metadata = Column("metadata", JSON, default=dict)

    __table_args__ = (
        UniqueConstraint(
            "student_id", "class_id", "assessment_type", "assessment_id",
            name="uq_grade_student_assessment",
            # assessment_id may be NULL; two NULLs still collide
            postgresql_nulls_not_distinct=True,
        ),
        Index("ix_grade_class_type", "class_id", "assessment_type"),
        Index("ix_grade_student_published", "student_id", "is_published"),
    )

    def apply_marks(self, obtained_marks: float, max_marks: float = None):
        """Set marks and recompute the derived percentage and band together"""
        if max_marks is not None:
            self.max_marks = max_marks
        self.obtained_marks = obtained_marks
        self.percentage = compute_percentage(obtained_marks, self.max_marks)
        self.letter_grade = letter_grade_for(self.percentage)
