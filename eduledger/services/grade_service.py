# eduledger/services/grade_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging
import uuid
from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from .base_service import BaseService
from .roster_service import RosterService
from .notification_service import NotificationService
from ..core.actor import ActorContext
from ..core.cache import cache_manager
from ..core.config import settings
from ..core.errors import ConflictError, ValidationError
from ..core.performance_monitor import monitor_performance
from ..models.grade import GradeRecord, AssessmentType
from ..models.notification import NotificationType, RecipientType, SenderType
from ..models.roster import TeacherClass, UNKNOWN_CLASS, UNKNOWN_SUBJECT, utcnow
from ..schemas.grade import GradeCreate, GradeBulkCreate, GradeRow, GradeUpdate, GradeOut
from ..schemas.notification import NotificationEvent
from ..utils.bulk import describe_row_error, raw_student_id
from ..utils.grading import NO_GRADE, compute_percentage, letter_grade_for, mean_percentage

logger = logging.getLogger(__name__)

ALREADY_GRADED = "Grade already recorded for this student and assessment. Use update instead."
MARKS_EXCEED_MAX = "obtainedMarks cannot exceed maxMarks"


class GradeService(BaseService[GradeRecord]):
    """Grade book: one record per student per assessment, banded on write."""
    resource_name = "Grade"

    def __init__(self, db: AsyncSession, notifier: Optional[NotificationService] = None):
        super().__init__(GradeRecord, db)
        self.roster = RosterService(db)
        self.notifier = notifier

    @staticmethod
    def stats_version_key(class_id: UUID) -> str:
        return cache_manager.make_key("grades", "stats-version", class_id)

    @staticmethod
    def stats_cache_key(
        class_id: UUID, assessment_type: Optional[AssessmentType] = None, version: int = 0
    ) -> str:
        return cache_manager.make_key(
            "grades", "stats", class_id, f"v{version}", assessment_type.value if assessment_type else "all"
        )

    async def stats_version(self, class_id: UUID) -> int:
        version = await cache_manager.get(self.stats_version_key(class_id))
        return int(version) if version else 0

    async def _invalidate_statistics(self, *class_ids: UUID):
        """Bump the class version, then drop entries cached under older versions"""
        for class_id in set(class_ids):
            await cache_manager.incr(self.stats_version_key(class_id))
            await cache_manager.delete_pattern(cache_manager.make_key("grades", "stats", class_id, "*"))

    def _assessment_filter(self, class_id: UUID, assessment_type: AssessmentType, assessment_id: Optional[str]):
        conditions = [self.model.class_id == class_id, self.model.assessment_type == assessment_type]
        if assessment_id is None:
            conditions.append(self.model.assessment_id.is_(None))
        else:
            conditions.append(self.model.assessment_id == assessment_id)
        return conditions

    async def record_one(self, data: GradeCreate, actor: ActorContext) -> GradeRecord:
        await self.roster.get_class(data.class_id)
        key = {
            "student_id": str(data.student_id),
            "class_id": str(data.class_id),
            "assessment_type": data.assessment_type.value,
            "assessment_id": data.assessment_id,
        }

        existing = await self.db.execute(
            select(self.model.id).where(
                self.model.student_id == data.student_id,
                *self._assessment_filter(data.class_id, data.assessment_type, data.assessment_id),
            )
        )
        if existing.first() is not None:
            raise ConflictError(ALREADY_GRADED, key)

        record = GradeRecord(
            student_id=data.student_id,
            class_id=data.class_id,
            assessment_type=data.assessment_type,
            assessment_id=data.assessment_id,
            assessment_title=data.title,
            remarks=data.remarks or "",
            graded_by=data.graded_by,
            graded_at=utcnow(),
            is_published=False,
            extra_metadata=data.metadata or {},
        )
        record.apply_marks(data.obtained_marks, data.max_marks)
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(ALREADY_GRADED, key)
        await self.db.refresh(record)

        await self._invalidate_statistics(record.class_id)
        return record

    async def record_bulk(self, data: GradeBulkCreate, actor: ActorContext) -> Dict[str, Any]:
        """Insert one grade per enrolled student. The first row for a student wins."""
        await self.roster.get_class(data.class_id)
        enrolled = set(await self.roster.resolve(data.class_id))
        assessment_id = data.assessment_id or uuid.uuid4().hex

        graded = await self.db.execute(
            select(self.model.student_id).where(
                *self._assessment_filter(data.class_id, data.assessment_type, assessment_id)
            )
        )
        already_graded = set(graded.scalars().all())

        errors = []
        accepted: Dict[UUID, GradeRow] = {}
        for index, raw in enumerate(data.grades):
            try:
                row = GradeRow.model_validate(raw)
            except SchemaError as e:
                errors.append({"index": index, "student_id": raw_student_id(raw), "reason": describe_row_error(e)})
                continue

            reason = None
            if row.obtained_marks > data.max_marks:
                reason = MARKS_EXCEED_MAX
            elif row.student_id not in enrolled:
                reason = "Student is not enrolled in this class"
            elif row.student_id in already_graded:
                reason = "Student already graded for this assessment"
            if reason:
                errors.append({"index": index, "student_id": str(row.student_id), "reason": reason})
                continue

            if row.student_id in accepted:
                logger.debug(f"Ignoring repeated grade row {index} for student {row.student_id}")
                continue
            accepted[row.student_id] = row

        for error in errors:
            logger.warning(f"Skipping grade row {error['index']} for class {data.class_id}: {error['reason']}")

        graded_at = utcnow()
        records = []
        for student_id, row in accepted.items():
            record = GradeRecord(
                student_id=student_id,
                class_id=data.class_id,
                assessment_type=data.assessment_type,
                assessment_id=assessment_id,
                assessment_title=data.title,
                remarks=row.remarks or "",
                graded_by=data.graded_by,
                graded_at=graded_at,
                is_published=False,
                extra_metadata={},
            )
            record.apply_marks(row.obtained_marks, data.max_marks)
            records.append(record)

        if records:
            self.db.add_all(records)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another writer graded one of these students concurrently
                await self.db.rollback()
                raise ConflictError(ALREADY_GRADED, {
                    "class_id": str(data.class_id),
                    "assessment_type": data.assessment_type.value,
                    "assessment_id": assessment_id,
                })
            await self._invalidate_statistics(data.class_id)

        logger.info(
            f"Bulk grades for class {data.class_id} ({data.assessment_type.value}/{assessment_id}): "
            f"{len(records)} created, {len(errors)} skipped"
        )
        return {"created": records, "skipped": len(errors), "errors": errors}

    async def update(self, record_id: UUID, data: GradeUpdate, actor: ActorContext) -> GradeRecord:
        """Re-band against the stored maxMarks. Assessment identity never changes."""
        record = await self.get_or_404(record_id)

        if data.obtained_marks is not None:
            if data.obtained_marks > record.max_marks:
                raise ValidationError(MARKS_EXCEED_MAX, field="obtainedMarks")
            record.apply_marks(data.obtained_marks)
        if data.remarks is not None:
            record.remarks = data.remarks
        record.graded_at = utcnow()
        record.graded_by = actor.actor_id

        await self.db.commit()
        await self.db.refresh(record)
        await self._invalidate_statistics(record.class_id)
        return record

    async def publish(self, record_id: UUID, is_published: bool, actor: ActorContext) -> GradeRecord:
        record = await self.get_or_404(record_id)
        newly_published = is_published and not record.is_published
        record.is_published = is_published
        await self.db.commit()
        await self.db.refresh(record)

        if newly_published:
            await self._notify_published([record], actor)
        return record

    async def publish_bulk(self, record_ids: List[UUID], is_published: bool, actor: ActorContext) -> int:
        """Returns the number of records whose visibility actually changed"""
        changing = await self.db.execute(
            select(self.model).where(
                self.model.id.in_(record_ids),
                self.model.is_published != is_published,
            )
        )
        records = list(changing.scalars().all())
        if not records:
            return 0

        result = await self.db.execute(
            update(self.model)
            .where(self.model.id.in_([record.id for record in records]))
            .values(is_published=is_published)
        )
        await self.db.commit()

        if is_published:
            await self._notify_published(records, actor)
        return result.rowcount

    async def delete(self, record_id: UUID) -> None:
        record = await self.get_or_404(record_id)
        class_id = record.class_id
        await self.db.delete(record)
        await self.db.commit()
        await self._invalidate_statistics(class_id)

    @monitor_performance("grades.statistics")
    async def statistics(self, class_id: UUID, assessment_type: Optional[AssessmentType] = None) -> Dict[str, Any]:
        """Point-in-time class statistics; totalStudents counts grade records"""
        # Read the version before the rows so a concurrent write makes this entry unreachable
        cache_key = self.stats_cache_key(class_id, assessment_type, await self.stats_version(class_id))
        cached = await cache_manager.get(cache_key)
        if cached is not None:
            return cached

        stmt = (
            select(self.model.percentage, self.model.letter_grade, self.model.assessment_type)
            .where(self.model.class_id == class_id)
            .order_by(self.model.created_at, self.model.id)
        )
        if assessment_type:
            stmt = stmt.where(self.model.assessment_type == assessment_type)
        rows = (await self.db.execute(stmt)).all()

        average = mean_percentage(row.percentage for row in rows)
        if average is None:
            stats = {
                "total_students": 0,
                "average_percentage": 0,
                "average_grade": NO_GRADE,
                "grade_distribution": {},
                "assessment_types": [],
            }
        else:
            distribution: Dict[str, int] = {}
            for row in rows:
                distribution[row.letter_grade] = distribution.get(row.letter_grade, 0) + 1
            stats = {
                "total_students": len(rows),
                "average_percentage": round(average, 2),
                "average_grade": letter_grade_for(average),
                "grade_distribution": distribution,
                "assessment_types": list(dict.fromkeys(row.assessment_type.value for row in rows)),
            }

        await cache_manager.set(cache_key, stats, expire=settings.stats_cache_ttl)
        return stats

    async def list_for_class(
        self,
        class_id: UUID,
        assessment_type: Optional[AssessmentType] = None,
        student_id: Optional[UUID] = None,
    ) -> List[GradeRecord]:
        """Teacher view: every record regardless of publish state"""
        stmt = (
            select(self.model)
            .where(self.model.class_id == class_id)
            .order_by(self.model.student_id, self.model.assessment_type, self.model.created_at.desc())
        )
        if assessment_type:
            stmt = stmt.where(self.model.assessment_type == assessment_type)
        if student_id:
            stmt = stmt.where(self.model.student_id == student_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _student_rows(self, student_id: UUID, actor: ActorContext, class_id=None, assessment_type=None):
        stmt = (
            select(self.model, TeacherClass.class_name, TeacherClass.subject_name)
            .outerjoin(TeacherClass, TeacherClass.id == self.model.class_id)
            .where(self.model.student_id == student_id)
            .order_by(self.model.created_at.desc(), self.model.id)
        )
        # Students never see unpublished grades
        if actor.is_student:
            stmt = stmt.where(self.model.is_published == True)
        if class_id:
            stmt = stmt.where(self.model.class_id == class_id)
        if assessment_type:
            stmt = stmt.where(self.model.assessment_type == assessment_type)
        return (await self.db.execute(stmt)).all()

    async def list_for_student(
        self,
        student_id: UUID,
        actor: ActorContext,
        class_id: Optional[UUID] = None,
        assessment_type: Optional[AssessmentType] = None,
    ) -> Dict[str, Any]:
        """Grades grouped per class, then per assessment type"""
        rows = await self._student_rows(student_id, actor, class_id, assessment_type)

        grouped: Dict[UUID, Dict[str, Any]] = {}
        for record, class_name, subject_name in rows:
            entry = grouped.setdefault(record.class_id, {
                "class_id": record.class_id,
                "class_name": class_name or UNKNOWN_CLASS,
                "subject_name": subject_name or UNKNOWN_SUBJECT,
                "assessments": {},
            })
            entry["assessments"].setdefault(record.assessment_type.value, []).append(
                GradeOut.model_validate(record)
            )

        return {"grades": list(grouped.values()), "total": len(rows)}

    async def student_summary(self, student_id: UUID, actor: ActorContext) -> Dict[str, Any]:
        rows = await self._student_rows(student_id, actor)

        per_class: Dict[UUID, Dict[str, Any]] = {}
        for record, class_name, subject_name in rows:
            entry = per_class.setdefault(record.class_id, {
                "class_id": record.class_id,
                "class_name": class_name or UNKNOWN_CLASS,
                "subject_name": subject_name or UNKNOWN_SUBJECT,
                "total_assessments": 0,
                "total_marks": 0.0,
                "total_obtained": 0.0,
            })
            entry["total_assessments"] += 1
            entry["total_marks"] += record.max_marks
            entry["total_obtained"] += record.obtained_marks

        summary = []
        for entry in per_class.values():
            average = compute_percentage(entry["total_obtained"], entry["total_marks"])
            summary.append({
                **entry,
                "average_percentage": round(average, 2),
                "average_grade": letter_grade_for(average),
            })
        summary.sort(key=lambda e: (e["class_name"], str(e["class_id"])))
        return {"summary": summary, "total_classes": len(summary)}

    async def _notify_published(self, records: List[GradeRecord], actor: ActorContext):
        """Tell students a grade became visible. Disabled unless configured."""
        if self.notifier is None or not settings.notify_on_grade_publish:
            return
        for record in records:
            await self.notifier.notify(NotificationEvent(
                sender_id=actor.actor_id,
                sender_type=SenderType(actor.actor_type.value),
                sender_name=actor.display_name,
                type=NotificationType.GRADE,
                title="Grade Published",
                message_template='Your grade for "{assessment_title}" has been published: {letter_grade}',
                recipients=[str(record.student_id)],
                recipient_type=RecipientType.STUDENT,
                related_id=str(record.id),
                related_type="grade",
                metadata={
                    "assessment_title": record.assessment_title,
                    "letter_grade": record.letter_grade,
                    "class_id": str(record.class_id),
                },
            ))
