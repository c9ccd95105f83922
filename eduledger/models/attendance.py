# eduledger/models/attendance.py
from sqlalchemy import Column, String, Date, DateTime, Text, Enum, Uuid, UniqueConstraint, Index
from .base import Base
from .roster import utcnow
import enum


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    # Plain references: a removed class or student must not break reads
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    session_date = Column(Date, nullable=False, index=True)
    status = Column(
        Enum(AttendanceStatus, name="attendance_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    marked_by = Column(String(64), nullable=False)
    remarks = Column(Text, default="", nullable=False)
    marked_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "session_date", name="uq_attendance_student_class_date"),
        Index("ix_attendance_class_date", "class_id", "session_date"),
    )
