# eduledger/models/__init__.py
"""Import all models here so Base.metadata is complete for Alembic and create_all."""
from .base import Base
from .roster import TeacherClass, Student, Enrollment
from .attendance import AttendanceRecord, AttendanceStatus
from .grade import GradeRecord, AssessmentType
from .notification import Notification, NotificationType, RecipientType, SenderType

__all__ = [
    "Base",
    "TeacherClass",
    "Student",
    "Enrollment",
    "AttendanceRecord",
    "AttendanceStatus",
    "GradeRecord",
    "AssessmentType",
    "Notification",
    "NotificationType",
    "RecipientType",
    "SenderType",
]
