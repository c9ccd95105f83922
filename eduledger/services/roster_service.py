# eduledger/services/roster_service.py
from typing import List
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from .base_service import BaseService
from ..core.errors import ClassNotFound, NotFoundError
from ..models.roster import TeacherClass, Student, Enrollment

logger = logging.getLogger(__name__)


class RosterService(BaseService[TeacherClass]):
    """Resolves the current set of students enrolled in a class."""
    resource_name = "Class"

    def __init__(self, db: AsyncSession):
        super().__init__(TeacherClass, db)

    async def get_class(self, class_id: UUID) -> TeacherClass:
        teacher_class = await self.get(class_id)
        if teacher_class is None:
            raise ClassNotFound(class_id)
        return teacher_class

    async def resolve(self, class_id: UUID) -> List[UUID]:
        """Enrolled student ids in enrollment order. Always read fresh."""
        await self.get_class(class_id)
        stmt = (
            select(Enrollment.student_id)
            .where(Enrollment.class_id == class_id)
            .order_by(Enrollment.assigned_at, Enrollment.student_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def students(self, class_id: UUID) -> List[dict]:
        """Enrolled students with name and registration number, in enrollment order"""
        await self.get_class(class_id)
        stmt = (
            select(Student.id, Student.name, Student.reg_no)
            .join(Enrollment, Enrollment.student_id == Student.id)
            .where(Enrollment.class_id == class_id)
            .order_by(Enrollment.assigned_at, Enrollment.student_id)
        )
        result = await self.db.execute(stmt)
        return [
            {"student_id": student_id, "name": name, "reg_no": reg_no}
            for student_id, name, reg_no in result.all()
        ]

    async def enroll(self, class_id: UUID, student_ids: List[UUID]) -> dict:
        """Enroll students; already-enrolled students are skipped"""
        await self.get_class(class_id)

        wanted = list(dict.fromkeys(student_ids))
        known = await self.db.execute(select(Student.id).where(Student.id.in_(wanted)))
        known_ids = set(known.scalars().all())
        missing = [student_id for student_id in wanted if student_id not in known_ids]
        if missing:
            raise NotFoundError("Student", missing[0])

        existing = await self.db.execute(
            select(Enrollment.student_id).where(
                Enrollment.class_id == class_id,
                Enrollment.student_id.in_(wanted),
            )
        )
        already_enrolled = set(existing.scalars().all())

        new_ids = [student_id for student_id in wanted if student_id not in already_enrolled]
        self.db.add_all(Enrollment(class_id=class_id, student_id=student_id) for student_id in new_ids)
        await self.db.flush()

        student_count = await self._refresh_student_count(class_id)
        await self.db.commit()

        logger.info(f"Enrolled {len(new_ids)} students in class {class_id} ({len(already_enrolled)} already enrolled)")
        return {
            "enrolled": len(new_ids),
            "skipped": len(wanted) - len(new_ids),
            "student_count": student_count,
        }

    async def unenroll(self, class_id: UUID, student_id: UUID) -> int:
        await self.get_class(class_id)
        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.class_id == class_id,
                Enrollment.student_id == student_id,
            )
        )
        enrollment = result.scalar_one_or_none()
        if enrollment is None:
            raise NotFoundError("Enrollment", f"{class_id}/{student_id}")

        await self.db.delete(enrollment)
        await self.db.flush()
        student_count = await self._refresh_student_count(class_id)
        await self.db.commit()
        return student_count

    async def _refresh_student_count(self, class_id: UUID) -> int:
        """Recount from enrollments instead of adjusting a counter"""
        count_stmt = select(func.count()).select_from(Enrollment).where(Enrollment.class_id == class_id)
        student_count = (await self.db.execute(count_stmt)).scalar_one()
        await self.db.execute(
            update(TeacherClass)
            .where(TeacherClass.id == class_id)
            .values(student_count=student_count)
        )
        return student_count
