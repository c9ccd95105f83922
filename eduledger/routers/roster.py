# eduledger/routers/roster.py
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.actor import ActorContext, get_actor
from ..core.database import get_db
from ..services.roster_service import RosterService
from ..schemas.roster import ClassStudentsOut, EnrollRequest, EnrollResult, RosterOut

router = APIRouter(prefix="/api/v1/classes", tags=["Class Roster"])


@router.get("/{class_id}/roster", response_model=RosterOut)
async def get_roster(
    class_id: UUID,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Students currently enrolled in a class"""
    service = RosterService(db)
    teacher_class = await service.get_class(class_id)
    student_ids = await service.resolve(class_id)
    return {
        "class_id": teacher_class.id,
        "class_name": teacher_class.class_name,
        "subject_name": teacher_class.subject_name,
        "student_ids": student_ids,
        "student_count": len(student_ids),
    }


@router.get("/{class_id}/students", response_model=ClassStudentsOut)
async def get_class_students(
    class_id: UUID,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Enrolled students with names and registration numbers, e.g. for a grade upload sheet"""
    service = RosterService(db)
    teacher_class = await service.get_class(class_id)
    students = await service.students(class_id)
    return {
        "class_id": teacher_class.id,
        "class_name": teacher_class.class_name,
        "subject_name": teacher_class.subject_name,
        "students": students,
        "student_count": len(students),
    }


@router.post("/{class_id}/roster", response_model=EnrollResult)
async def enroll_students(
    class_id: UUID,
    payload: EnrollRequest,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await RosterService(db).enroll(class_id, payload.student_ids)


@router.delete("/{class_id}/roster/{student_id}", response_model=dict)
async def unenroll_student(
    class_id: UUID,
    student_id: UUID,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    student_count = await RosterService(db).unenroll(class_id, student_id)
    return {"message": "Student removed from class", "studentCount": student_count}
