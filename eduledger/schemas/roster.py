# eduledger/schemas/roster.py
from typing import List, Optional
from uuid import UUID
from pydantic import Field

from .common import RequestSchema, ResponseSchema


class EnrollRequest(RequestSchema):
    student_ids: List[UUID] = Field(..., min_length=1)


class RosterOut(ResponseSchema):
    class_id: UUID
    class_name: str
    subject_name: str
    student_ids: List[UUID]
    student_count: int


class RosterStudentOut(ResponseSchema):
    student_id: UUID
    name: str
    reg_no: Optional[str] = None


class ClassStudentsOut(ResponseSchema):
    class_id: UUID
    class_name: str
    subject_name: str
    students: List[RosterStudentOut]
    student_count: int


class EnrollResult(ResponseSchema):
    enrolled: int
    skipped: int
    student_count: int
