from pydantic import Field, model_validator
from typing import Optional, List

from classhub.schemas.base import CamelModel, HHMM_PATTERN


class TimetableEntry(CamelModel):
    week_day: int = Field(ge=1, le=7)
    period: int = Field(ge=1, le=16)
    start_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    teacher_subject_id: Optional[int] = None
    label: Optional[str] = Field(default=None, min_length=1, max_length=80)
    location: Optional[str] = Field(default=None, min_length=1, max_length=80)
    notes: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def check_times(self):
        # zero-padded HH:MM compares correctly as text
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("endTime must not precede startTime")
        return self


class TimetableReplace(CamelModel):
    entries: List[TimetableEntry] = Field(min_length=1, max_length=80)


class TimetableEntryOut(CamelModel):
    id: int
    week_day: int
    period: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    label: str
    location: Optional[str] = None
    notes: Optional[str] = None
    teacher_subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None


class ClassroomTimetableOut(CamelModel):
    classroom_id: int
    entries: List[TimetableEntryOut]
