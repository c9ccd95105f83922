# eduledger/schemas/attendance.py
"""Pydantic schemas for attendance records."""
from typing import Any, List, Optional
from datetime import date, datetime
from uuid import UUID
from pydantic import Field

from .common import BulkRowError, RequestSchema, ResponseSchema
from ..models.attendance import AttendanceStatus


class AttendanceCreate(RequestSchema):
    student_id: UUID
    class_id: UUID
    session_date: date = Field(..., alias="date")
    status: AttendanceStatus
    marked_by: str = Field(..., min_length=1, max_length=64)
    remarks: Optional[str] = None


class AttendanceRow(RequestSchema):
    """One row of a bulk request; validated individually so a bad row never sinks the batch"""
    student_id: UUID
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceBulkCreate(RequestSchema):
    class_id: UUID
    session_date: date = Field(..., alias="date")
    marked_by: str = Field(..., min_length=1, max_length=64)
    records: List[Any]


class AttendanceUpdate(RequestSchema):
    status: AttendanceStatus
    remarks: Optional[str] = None
    marked_by: Optional[str] = Field(default=None, min_length=1, max_length=64)


class AttendanceOut(ResponseSchema):
    id: UUID
    student_id: UUID
    class_id: UUID
    session_date: date = Field(..., alias="date")
    status: AttendanceStatus
    marked_by: str
    remarks: str
    marked_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttendanceWithClassOut(AttendanceOut):
    class_name: str
    subject_name: str
    student_name: str
    reg_no: Optional[str] = None


class AttendanceStatistics(ResponseSchema):
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    attendance_percentage: float = 0


class ClassAttendanceStatistics(AttendanceStatistics):
    class_id: UUID
    class_name: str
    subject_name: str


class StudentClassStatistics(ResponseSchema):
    statistics: List[ClassAttendanceStatistics]
    total_classes: int


class AttendanceQueryResult(ResponseSchema):
    attendance: List[AttendanceWithClassOut]
    total: int
    statistics: Optional[AttendanceStatistics] = None


class BulkAttendanceResult(ResponseSchema):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[BulkRowError] = []
