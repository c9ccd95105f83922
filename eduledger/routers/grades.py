# eduledger/routers/grades.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.actor import ActorContext, get_actor
from ..core.database import get_db
from ..models.grade import AssessmentType
from ..services.grade_service import GradeService
from ..services.notification_service import NotificationService
from ..schemas.grade import (
    GradeCreate, GradeBulkCreate, GradeUpdate, PublishRequest, BulkPublishRequest,
    GradeOut, GradeList, BulkGradeResult, BulkPublishResult, GradeStatistics,
    StudentGrades, StudentGradeSummary,
)
from ..schemas.common import MessageResponse

router = APIRouter(prefix="/api/v1/grades", tags=["Grades"])


def get_grade_service(db: AsyncSession = Depends(get_db)) -> GradeService:
    return GradeService(db, notifier=NotificationService(db))


@router.post("", response_model=GradeOut, status_code=201)
async def record_grade(
    payload: GradeCreate,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    """Record a single grade"""
    return await service.record_one(payload, actor)


@router.post("/bulk", response_model=BulkGradeResult, status_code=201)
async def record_grades_bulk(
    payload: GradeBulkCreate,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    """Record grades for a whole class for one assessment"""
    result = await service.record_bulk(payload, actor)
    return {
        "created": [GradeOut.model_validate(record) for record in result["created"]],
        "skipped": result["skipped"],
        "errors": result["errors"],
    }


@router.patch("/bulk-publish", response_model=BulkPublishResult)
async def publish_grades_bulk(
    payload: BulkPublishRequest,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    modified_count = await service.publish_bulk(payload.grade_ids, payload.is_published, actor)
    return {"modified_count": modified_count}


@router.get("/teacher-class/{class_id}", response_model=GradeList)
async def get_class_grades(
    class_id: UUID,
    assessment_type: Optional[AssessmentType] = Query(None, alias="assessmentType"),
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    """All grades for a class, published or not"""
    grades = await service.list_for_class(class_id, assessment_type, student_id)
    return {"grades": grades, "total": len(grades)}


@router.get("/teacher-class/{class_id}/statistics", response_model=GradeStatistics)
async def get_class_statistics(
    class_id: UUID,
    assessment_type: Optional[AssessmentType] = Query(None, alias="assessmentType"),
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    return await service.statistics(class_id, assessment_type)


@router.get("/student/{student_id}", response_model=StudentGrades)
async def get_student_grades(
    student_id: UUID,
    class_id: Optional[UUID] = Query(None, alias="classId"),
    assessment_type: Optional[AssessmentType] = Query(None, alias="assessmentType"),
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    """Grades for a student grouped by class; students only see published grades"""
    return await service.list_for_student(student_id, actor, class_id, assessment_type)


@router.get("/student/{student_id}/summary", response_model=StudentGradeSummary)
async def get_student_summary(
    student_id: UUID,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    return await service.student_summary(student_id, actor)


@router.put("/{grade_id}", response_model=GradeOut)
async def update_grade(
    grade_id: UUID,
    payload: GradeUpdate,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    return await service.update(grade_id, payload, actor)


@router.patch("/{grade_id}/publish", response_model=GradeOut)
async def publish_grade(
    grade_id: UUID,
    payload: PublishRequest,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    return await service.publish(grade_id, payload.is_published, actor)


@router.delete("/{grade_id}", response_model=MessageResponse)
async def delete_grade(
    grade_id: UUID,
    actor: ActorContext = Depends(get_actor),
    service: GradeService = Depends(get_grade_service),
):
    await service.delete(grade_id)
    return {"message": "Grade deleted successfully"}
