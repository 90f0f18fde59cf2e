from pydantic import Field, model_validator
from typing import Optional, List
from datetime import date, datetime

from classhub.schemas.base import CamelModel, strip_time
from classhub.models.students import EnrollmentStatus, GroupVisibility


class TeacherSubjectCreate(CamelModel):
    teacher_id: int
    subject_id: int
    classroom_id: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="before")
    @classmethod
    def date_only(cls, data):
        return strip_time(data, "start_date", "end_date")

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not precede startDate")
        return self


class TeacherSubjectOut(CamelModel):
    id: int
    teacher_id: int
    subject_id: int
    classroom_id: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None


class StudentSubjectCreate(CamelModel):
    student_id: int
    teacher_subject_id: int
    enrolled_on: Optional[date] = None
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE

    @model_validator(mode="before")
    @classmethod
    def date_only(cls, data):
        return strip_time(data, "enrolled_on")


class StudentSubjectOut(CamelModel):
    id: int
    student_id: int
    teacher_subject_id: int
    enrolled_on: date
    status: str


class StudentGroupCreate(CamelModel):
    school_id: int
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = None
    visibility: GroupVisibility = GroupVisibility.MANUAL


class GroupMembersAdd(CamelModel):
    student_ids: List[int] = Field(min_length=1)
    added_by: Optional[int] = None


class GroupMemberOut(CamelModel):
    id: int
    group_id: int
    student_id: int
    added_by: Optional[int] = None
    added_at: Optional[datetime] = None


class StudentGroupOut(CamelModel):
    id: int
    school_id: int
    name: str
    description: Optional[str] = None
    visibility: str


class StudentGroupWithMembers(StudentGroupOut):
    members: List[GroupMemberOut] = []
