# eduledger/models/roster.py
"""Classes, students and enrollments. Owned by the class/student collaborators; read here."""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base

# Shown when a referenced class or student no longer exists
UNKNOWN_CLASS = "Unknown Class"
UNKNOWN_SUBJECT = "Unknown Subject"
UNKNOWN_STUDENT = "Unknown Student"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TeacherClass(Base):
    __tablename__ = "teacher_classes"

    teacher_id = Column(String(64), nullable=False, index=True)
    teacher_name = Column(String(100), nullable=False)
    class_name = Column(String(100), nullable=False, index=True)
    subject_name = Column(String(100), nullable=False)
    school_year = Column(String(20))

    # Recomputed from enrollments after every roster change
    student_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    enrollments = relationship("Enrollment", back_populates="teacher_class", cascade="all, delete-orphan")


class Student(Base):
    __tablename__ = "students"

    name = Column(String(100), nullable=False)
    reg_no = Column(String(30), index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    enrollments = relationship("Enrollment", back_populates="student")


class Enrollment(Base):
    __tablename__ = "enrollments"

    class_id = Column(Uuid(as_uuid=True), ForeignKey("teacher_classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_enrollment_class_student"),
    )

    teacher_class = relationship("TeacherClass", back_populates="enrollments")
    student = relationship("Student", back_populates="enrollments")
