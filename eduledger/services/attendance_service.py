# eduledger/services/attendance_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import date
import logging
import uuid
from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from .base_service import BaseService
from .roster_service import RosterService
from .notification_service import NotificationService
from ..core.actor import ActorContext
from ..core.config import settings
from ..core.errors import ConflictError
from ..models.attendance import AttendanceRecord, AttendanceStatus
from ..models.notification import NotificationType, RecipientType, SenderType
from ..models.roster import Student, TeacherClass, UNKNOWN_CLASS, UNKNOWN_STUDENT, UNKNOWN_SUBJECT, utcnow
from ..schemas.attendance import (
    AttendanceCreate, AttendanceRow, AttendanceUpdate, AttendanceOut, AttendanceWithClassOut,
)
from ..schemas.notification import NotificationEvent
from ..utils.bulk import describe_row_error, raw_student_id

logger = logging.getLogger(__name__)

ALREADY_MARKED = "Attendance already recorded for this student, class and date. Use update instead."


def build_statistics(counts: Dict[AttendanceStatus, int]) -> Dict[str, Any]:
    """Late days are not present days; an empty range yields 0 rather than a division error"""
    present = counts.get(AttendanceStatus.PRESENT, 0)
    absent = counts.get(AttendanceStatus.ABSENT, 0)
    late = counts.get(AttendanceStatus.LATE, 0)
    total = present + absent + late
    return {
        "total_days": total,
        "present_days": present,
        "absent_days": absent,
        "late_days": late,
        "attendance_percentage": round(present / total * 100, 2) if total > 0 else 0,
    }


class AttendanceService(BaseService[AttendanceRecord]):
    resource_name = "Attendance record"

    def __init__(self, db: AsyncSession, notifier: Optional[NotificationService] = None):
        super().__init__(AttendanceRecord, db)
        self.roster = RosterService(db)
        self.notifier = notifier

    async def _find_by_key(self, student_id: UUID, class_id: UUID, session_date: date) -> Optional[AttendanceRecord]:
        stmt = select(self.model).where(
            self.model.student_id == student_id,
            self.model.class_id == class_id,
            self.model.session_date == session_date,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_one(self, data: AttendanceCreate, actor: ActorContext) -> AttendanceRecord:
        """Single marking rejects duplicates to defend against accidental double entry"""
        teacher_class = await self.roster.get_class(data.class_id)
        key = {
            "student_id": str(data.student_id),
            "class_id": str(data.class_id),
            "session_date": data.session_date.isoformat(),
        }

        if await self._find_by_key(data.student_id, data.class_id, data.session_date):
            raise ConflictError(ALREADY_MARKED, key)

        record = AttendanceRecord(
            student_id=data.student_id,
            class_id=data.class_id,
            session_date=data.session_date,
            status=data.status,
            marked_by=data.marked_by,
            remarks=data.remarks or "",
            marked_at=utcnow(),
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent single mark for the same key
            await self.db.rollback()
            raise ConflictError(ALREADY_MARKED, key)
        await self.db.refresh(record)

        await self._notify_marked(teacher_class, data.session_date, {record.student_id: record.status}, actor)
        return record

    async def mark_bulk(
        self,
        class_id: UUID,
        session_date: date,
        marked_by: str,
        rows: List[Any],
        actor: ActorContext,
    ) -> Dict[str, Any]:
        """Upsert one record per student. Safe to retry; the last row for a student wins."""
        teacher_class = await self.roster.get_class(class_id)
        enrolled = set(await self.roster.resolve(class_id))

        errors = []
        latest: Dict[UUID, AttendanceRow] = {}
        for index, raw in enumerate(rows):
            try:
                row = AttendanceRow.model_validate(raw)
            except SchemaError as e:
                errors.append({"index": index, "student_id": raw_student_id(raw), "reason": describe_row_error(e)})
                continue
            if row.student_id not in enrolled:
                errors.append({
                    "index": index,
                    "student_id": str(row.student_id),
                    "reason": "Student is not enrolled in this class",
                })
                continue
            latest[row.student_id] = row

        for error in errors:
            logger.warning(f"Skipping attendance row {error['index']} for class {class_id}: {error['reason']}")

        existing_ids = set()
        if latest:
            existing = await self.db.execute(
                select(self.model.student_id).where(
                    self.model.class_id == class_id,
                    self.model.session_date == session_date,
                    self.model.student_id.in_(list(latest)),
                )
            )
            existing_ids = set(existing.scalars().all())

        marked_at = utcnow()
        for student_id, row in latest.items():
            stmt = self.upsert_statement().values(
                id=uuid.uuid4(),
                student_id=student_id,
                class_id=class_id,
                session_date=session_date,
                status=row.status,
                marked_by=marked_by,
                remarks=row.remarks or "",
                marked_at=marked_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["student_id", "class_id", "session_date"],
                set_={
                    "status": stmt.excluded.status,
                    "marked_by": stmt.excluded.marked_by,
                    "remarks": stmt.excluded.remarks,
                    "marked_at": stmt.excluded.marked_at,
                    "updated_at": func.now(),
                },
            )
            await self.db.execute(stmt)
        await self.db.commit()

        updated = len(existing_ids)
        created = len(latest) - updated
        logger.info(
            f"Bulk attendance for class {class_id} on {session_date}: "
            f"{created} created, {updated} updated, {len(errors)} skipped"
        )

        await self._notify_marked(
            teacher_class, session_date, {student_id: row.status for student_id, row in latest.items()}, actor
        )
        return {"created": created, "updated": updated, "skipped": len(errors), "errors": errors}

    def _filtered(self, stmt, student_id=None, class_id=None, session_date=None,
                  start_date=None, end_date=None, marked_by=None, student=None, teacher_id=None):
        if student_id:
            stmt = stmt.where(self.model.student_id == student_id)
        if class_id:
            stmt = stmt.where(self.model.class_id == class_id)
        if session_date:
            stmt = stmt.where(self.model.session_date == session_date)
        if start_date:
            stmt = stmt.where(self.model.session_date >= start_date)
        if end_date:
            stmt = stmt.where(self.model.session_date <= end_date)
        if marked_by:
            stmt = stmt.where(self.model.marked_by.ilike(f"%{marked_by}%"))
        if student:
            # Name or registration number, case-insensitive
            pattern = f"%{student}%"
            matching = select(Student.id).where(or_(Student.name.ilike(pattern), Student.reg_no.ilike(pattern)))
            stmt = stmt.where(self.model.student_id.in_(matching))
        if teacher_id:
            taught = select(TeacherClass.id).where(TeacherClass.teacher_id == teacher_id)
            stmt = stmt.where(self.model.class_id.in_(taught))
        return stmt

    async def query(
        self,
        student_id: Optional[UUID] = None,
        class_id: Optional[UUID] = None,
        session_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        marked_by: Optional[str] = None,
        student: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[AttendanceWithClassOut]:
        """Records enriched with class, subject and student details; missing rows degrade to placeholders"""
        stmt = (
            select(
                self.model,
                TeacherClass.class_name,
                TeacherClass.subject_name,
                Student.name,
                Student.reg_no,
            )
            .outerjoin(TeacherClass, TeacherClass.id == self.model.class_id)
            .outerjoin(Student, Student.id == self.model.student_id)
            .order_by(self.model.session_date.desc(), self.model.student_id)
        )
        stmt = self._filtered(
            stmt, student_id, class_id, session_date, start_date, end_date, marked_by, student, teacher_id
        )
        result = await self.db.execute(stmt)

        return [
            AttendanceWithClassOut.model_validate({
                **AttendanceOut.model_validate(record).model_dump(),
                "class_name": class_name or UNKNOWN_CLASS,
                "subject_name": subject_name or UNKNOWN_SUBJECT,
                "student_name": student_name or UNKNOWN_STUDENT,
                "reg_no": reg_no,
            })
            for record, class_name, subject_name, student_name, reg_no in result.all()
        ]

    async def statistics(
        self,
        student_id: UUID,
        class_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        session_date: Optional[date] = None,
        marked_by: Optional[str] = None,
        student: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Counts over the same filters query() applies, so both describe one set of records"""
        stmt = select(self.model.status, func.count()).group_by(self.model.status)
        stmt = self._filtered(
            stmt, student_id, class_id, session_date, start_date, end_date, marked_by, student, teacher_id
        )
        result = await self.db.execute(stmt)
        return build_statistics({status: count for status, count in result.all()})

    async def statistics_by_class(
        self,
        student_id: UUID,
        class_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Per-class statistics for one student"""
        stmt = (
            select(
                self.model.class_id,
                TeacherClass.class_name,
                TeacherClass.subject_name,
                self.model.status,
                func.count(),
            )
            .outerjoin(TeacherClass, TeacherClass.id == self.model.class_id)
            .group_by(self.model.class_id, TeacherClass.class_name, TeacherClass.subject_name, self.model.status)
        )
        stmt = self._filtered(stmt, student_id, class_id, start_date=start_date, end_date=end_date)
        result = await self.db.execute(stmt)

        per_class: Dict[UUID, Dict[str, Any]] = {}
        for row_class_id, class_name, subject_name, status, count in result.all():
            entry = per_class.setdefault(row_class_id, {
                "class_id": row_class_id,
                "class_name": class_name or UNKNOWN_CLASS,
                "subject_name": subject_name or UNKNOWN_SUBJECT,
                "counts": {},
            })
            entry["counts"][status] = count

        statistics = [
            {
                "class_id": entry["class_id"],
                "class_name": entry["class_name"],
                "subject_name": entry["subject_name"],
                **build_statistics(entry["counts"]),
            }
            for entry in sorted(per_class.values(), key=lambda e: (e["class_name"], str(e["class_id"])))
        ]
        return {"statistics": statistics, "total_classes": len(statistics)}

    async def update(self, record_id: UUID, data: AttendanceUpdate, actor: ActorContext) -> AttendanceRecord:
        record = await self.get_or_404(record_id)
        record.status = data.status
        if data.remarks is not None:
            record.remarks = data.remarks
        record.marked_by = data.marked_by or actor.actor_id
        record.marked_at = utcnow()
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete(self, record_id: UUID) -> None:
        await self.hard_delete(record_id)

    async def _notify_marked(
        self,
        teacher_class: TeacherClass,
        session_date: date,
        statuses: Dict[UUID, AttendanceStatus],
        actor: ActorContext,
    ):
        """Tell students they were marked absent or late. Disabled unless configured."""
        if self.notifier is None or not settings.notify_on_attendance:
            return
        for status in (AttendanceStatus.ABSENT, AttendanceStatus.LATE):
            recipients = [str(student_id) for student_id, value in statuses.items() if value == status]
            if not recipients:
                continue
            await self.notifier.notify(NotificationEvent(
                sender_id=actor.actor_id,
                sender_type=SenderType(actor.actor_type.value),
                sender_name=actor.display_name,
                type=NotificationType.ATTENDANCE,
                title="Attendance Marked",
                message_template="You were marked {status} in {class_name} - {subject_name} on {session_date}",
                recipients=recipients,
                recipient_type=RecipientType.STUDENT,
                related_id=str(teacher_class.id),
                related_type="attendance",
                metadata={
                    "status": status.value,
                    "class_name": teacher_class.class_name,
                    "subject_name": teacher_class.subject_name,
                    "session_date": session_date.isoformat(),
                },
            ))
