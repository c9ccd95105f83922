# eduledger/schemas/grade.py
"""Pydantic schemas for grade records."""
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field, model_validator

from .common import BulkRowError, RequestSchema, ResponseSchema
from ..models.grade import AssessmentType


class GradeCreate(RequestSchema):
    student_id: UUID
    class_id: UUID
    assessment_type: AssessmentType
    assessment_id: Optional[str] = Field(default=None, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    max_marks: float = Field(default=100, gt=0)
    obtained_marks: float = Field(..., ge=0)
    remarks: Optional[str] = None
    graded_by: str = Field(..., min_length=1, max_length=64)
    metadata: Optional[Dict[str, Any]] = None

    @model_validator(mode='after')
    def validate_marks(self):
        if self.obtained_marks > self.max_marks:
            raise ValueError('obtainedMarks cannot exceed maxMarks')
        return self


class GradeRow(RequestSchema):
    student_id: UUID
    obtained_marks: float = Field(..., ge=0)
    remarks: Optional[str] = None


class GradeBulkCreate(RequestSchema):
    class_id: UUID
    assessment_type: AssessmentType
    assessment_id: Optional[str] = Field(default=None, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    max_marks: float = Field(default=100, gt=0)
    graded_by: str = Field(..., min_length=1, max_length=64)
    grades: List[Any] = Field(..., min_length=1)


class GradeUpdate(RequestSchema):
    """Only marks and remarks may change; assessment identity is fixed at creation"""
    obtained_marks: Optional[float] = Field(default=None, ge=0)
    remarks: Optional[str] = None


class PublishRequest(RequestSchema):
    is_published: bool


class BulkPublishRequest(RequestSchema):
    grade_ids: List[UUID] = Field(..., min_length=1)
    is_published: bool


class GradeOut(ResponseSchema):
    id: UUID
    student_id: UUID
    class_id: UUID
    assessment_type: AssessmentType
    assessment_id: Optional[str] = None
    assessment_title: str
    max_marks: float
    obtained_marks: float
    percentage: float
    letter_grade: str
    remarks: str
    graded_by: str
    graded_at: datetime
    is_published: bool
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_metadata")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GradeList(ResponseSchema):
    grades: List[GradeOut]
    total: int


class BulkGradeResult(ResponseSchema):
    created: List[GradeOut] = []
    skipped: int = 0
    errors: List[BulkRowError] = []


class BulkPublishResult(ResponseSchema):
    modified_count: int


class GradeStatistics(ResponseSchema):
    total_students: int = 0
    average_percentage: float = 0
    average_grade: str = "N/A"
    grade_distribution: Dict[str, int] = {}
    assessment_types: List[str] = []


class StudentClassGrades(ResponseSchema):
    class_id: UUID
    class_name: str
    subject_name: str
    assessments: Dict[str, List[GradeOut]]


class StudentGrades(ResponseSchema):
    grades: List[StudentClassGrades]
    total: int


class ClassGradeSummary(ResponseSchema):
    class_id: UUID
    class_name: str
    subject_name: str
    total_assessments: int
    total_marks: float
    total_obtained: float
    average_percentage: float
    average_grade: str


class StudentGradeSummary(ResponseSchema):
    summary: List[ClassGradeSummary]
    total_classes: int
