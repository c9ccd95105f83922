# eduledger/routers/attendance.py
from typing import Optional
from uuid import UUID
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.actor import ActorContext, get_actor
from ..core.database import get_db
from ..services.attendance_service import AttendanceService
from ..services.notification_service import NotificationService
from ..schemas.attendance import (
    AttendanceCreate, AttendanceBulkCreate, AttendanceUpdate, AttendanceOut,
    AttendanceQueryResult, BulkAttendanceResult, StudentClassStatistics,
)
from ..schemas.common import MessageResponse

router = APIRouter(prefix="/api/v1/attendance", tags=["Attendance"])


def get_attendance_service(db: AsyncSession = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db, notifier=NotificationService(db))


@router.post("", response_model=AttendanceOut, status_code=201)
async def mark_attendance(
    payload: AttendanceCreate,
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Mark a single attendance record"""
    return await service.mark_one(payload, actor)


@router.post("/bulk", response_model=BulkAttendanceResult, status_code=201)
async def mark_attendance_bulk(
    payload: AttendanceBulkCreate,
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Mark attendance for a whole class session. Retrying the same batch is safe."""
    return await service.mark_bulk(
        class_id=payload.class_id,
        session_date=payload.session_date,
        marked_by=payload.marked_by,
        rows=payload.records,
        actor=actor,
    )


@router.get("", response_model=AttendanceQueryResult)
async def get_attendance(
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    class_id: Optional[UUID] = Query(None, alias="classId"),
    session_date: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    marked_by: Optional[str] = Query(None, alias="markedBy"),
    student: Optional[str] = Query(None, description="Student name or registration number"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Query attendance records; statistics are included when scoped to one student"""
    filters = {
        "class_id": class_id,
        "session_date": session_date,
        "start_date": start_date,
        "end_date": end_date,
        "marked_by": marked_by,
        "student": student,
        "teacher_id": teacher_id,
    }
    records = await service.query(student_id=student_id, **filters)
    statistics = None
    if student_id:
        statistics = await service.statistics(student_id, **filters)
    return {"attendance": records, "total": len(records), "statistics": statistics}


@router.get("/student/{student_id}/statistics", response_model=StudentClassStatistics)
async def get_student_statistics(
    student_id: UUID,
    class_id: Optional[UUID] = Query(None, alias="classId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Attendance statistics for a student, per class"""
    return await service.statistics_by_class(student_id, class_id, start_date, end_date)


@router.put("/{record_id}", response_model=AttendanceOut)
async def update_attendance(
    record_id: UUID,
    payload: AttendanceUpdate,
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    return await service.update(record_id, payload, actor)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_attendance(
    record_id: UUID,
    actor: ActorContext = Depends(get_actor),
    service: AttendanceService = Depends(get_attendance_service),
):
    await service.delete(record_id)
    return {"message": "Attendance record deleted successfully"}
