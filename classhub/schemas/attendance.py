from pydantic import Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime

from classhub.schemas.base import CamelModel, strip_time
from classhub.utils.dates import to_naive_utc
from classhub.schemas.school import ClassroomDetail
from classhub.models.attendance import AttendanceStatus


class AttendanceSessionCreate(CamelModel):
    school_id: int
    classroom_id: int
    session_date: date
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def date_only(cls, data):
        return strip_time(data, "session_date")

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_times(self):
        if self.starts_at and self.ends_at and self.ends_at < self.starts_at:
            raise ValueError("endsAt must not precede startsAt")
        return self


class AttendanceEntry(CamelModel):
    student_id: int
    status: AttendanceStatus


class AttendanceRecordBatch(CamelModel):
    entries: List[AttendanceEntry] = Field(min_length=1)


class AttendanceSessionOut(CamelModel):
    id: int
    school_id: int
    classroom_id: int
    session_date: date
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class StudentBrief(CamelModel):
    id: int
    first_name: str
    last_name: str
    code: str


class AttendanceRecordOut(CamelModel):
    id: int
    attendance_session_id: int
    student_id: int
    status: str
    recorded_at: Optional[datetime] = None
    student: Optional[StudentBrief] = None


class SessionListItem(AttendanceSessionOut):
    total_records: int = 0
    editable_until: Optional[datetime] = None
    can_edit: bool = False


class ClassroomSessions(CamelModel):
    classroom_id: int
    sessions: List[SessionListItem]


class SessionWithRecords(AttendanceSessionOut):
    records: List[AttendanceRecordOut] = []
    editable_until: Optional[datetime] = None
    can_edit: bool = False


class SessionDetail(SessionWithRecords):
    classroom: ClassroomDetail


class ClassroomSummary(CamelModel):
    sessions: List[SessionWithRecords]
    summary: dict


class StudentAttendanceOut(AttendanceRecordOut):
    session: AttendanceSessionOut
