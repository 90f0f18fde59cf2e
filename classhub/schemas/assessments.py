from pydantic import Field, model_validator
from typing import Optional, List
from datetime import date, datetime

from classhub.schemas.base import CamelModel, strip_time


class ExamCreate(CamelModel):
    subject_id: int
    teacher_id: int
    classroom_id: Optional[int] = None
    name: str = Field(min_length=2, max_length=150)
    total_marks: int = Field(gt=0)
    exam_date: date

    @model_validator(mode="before")
    @classmethod
    def date_only(cls, data):
        return strip_time(data, "exam_date")


class ExamOut(CamelModel):
    id: int
    school_id: int
    subject_id: int
    teacher_id: int
    classroom_id: Optional[int] = None
    name: str
    total_marks: int
    exam_date: date


class ExamResultEntry(CamelModel):
    student_id: int
    score: float = Field(ge=0)
    grade: Optional[str] = Field(default=None, max_length=5)


class ExamResultBatch(CamelModel):
    exam_id: int
    results: List[ExamResultEntry] = Field(min_length=1)


class ExamResultOut(CamelModel):
    id: int
    exam_id: int
    student_id: int
    score: float
    grade: Optional[str] = None
    recorded_at: Optional[datetime] = None


class ExamBrief(CamelModel):
    id: int
    name: str
    total_marks: int
    exam_date: date
    subject_id: int


class LatestResult(ExamResultOut):
    exam: ExamBrief
