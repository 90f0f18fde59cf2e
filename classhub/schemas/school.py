from pydantic import EmailStr, Field, model_validator
from typing import ClassVar, Optional, List
from datetime import date, datetime

from classhub.schemas.base import CamelModel, PartialUpdate, ACADEMIC_YEAR_PATTERN, PHONE_PATTERN
from classhub.models.students import Gender


# Schools
class SchoolCreate(CamelModel):
    name: str = Field(min_length=2)
    district: Optional[str] = Field(default=None, min_length=2)


class SchoolOut(CamelModel):
    id: int
    name: str
    district: Optional[str] = None
    is_active: bool


# Grades
class GradeCreate(CamelModel):
    school_id: int
    name: str = Field(min_length=1)
    level: int = Field(ge=1)


class GradeBulkCreate(CamelModel):
    school_id: int
    start_level: int = Field(default=1, ge=1)
    end_level: int = Field(ge=1, le=12)
    name_format: str = "Grade {level}"

    @model_validator(mode="after")
    def check_range(self):
        if self.end_level < self.start_level:
            raise ValueError("endLevel must be greater than or equal to startLevel")
        return self


class GradeUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


class SectionOut(CamelModel):
    id: int
    grade_id: int
    label: str


class GradeOut(CamelModel):
    id: int
    school_id: int
    name: str
    level: int
    is_active: bool


class GradeWithSections(GradeOut):
    sections: List[SectionOut] = []


# Sections
class SectionCreate(CamelModel):
    grade_id: int
    label: str = Field(min_length=1, max_length=10)


class SectionBulkCreate(CamelModel):
    grade_id: int
    labels: List[str] = Field(min_length=1, max_length=26)

    @model_validator(mode="after")
    def check_labels(self):
        for label in self.labels:
            if not 1 <= len(label) <= 10:
                raise ValueError("Section labels must be 1 to 10 characters")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError("Section labels must be unique")
        return self


class SectionUpdate(PartialUpdate):
    label: Optional[str] = Field(default=None, min_length=1, max_length=10)


# Classrooms
class ClassroomCreate(CamelModel):
    school_id: int
    grade_id: int
    section_id: int
    academic_year: str = Field(pattern=ACADEMIC_YEAR_PATTERN)


class ClassroomUpdate(PartialUpdate):
    academic_year: Optional[str] = Field(default=None, pattern=ACADEMIC_YEAR_PATTERN)


class ClassroomOut(CamelModel):
    id: int
    school_id: int
    grade_id: int
    section_id: int
    academic_year: str


class ClassroomDetail(ClassroomOut):
    grade: GradeOut
    section: SectionOut


# Teachers
class TeacherCreate(CamelModel):
    school_id: int
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr


class TeacherUpdate(PartialUpdate):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None


class TeacherOut(CamelModel):
    id: int
    school_id: int
    first_name: str
    last_name: str
    email: str


# Subjects
class SubjectCreate(CamelModel):
    school_id: int
    code: str = Field(min_length=2)
    name: str = Field(min_length=2)


class SubjectUpdate(PartialUpdate):
    code: Optional[str] = Field(default=None, min_length=2)
    name: Optional[str] = Field(default=None, min_length=2)


class SubjectOut(CamelModel):
    id: int
    school_id: int
    code: str
    name: str


# Students
class StudentCreate(CamelModel):
    school_id: int
    classroom_id: int
    code: str = Field(min_length=3)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    class_teacher_id: Optional[int] = None
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None


class StudentUpdate(PartialUpdate):
    CLEARABLE: ClassVar[frozenset] = frozenset({"phone_number", "class_teacher_id", "gender", "date_of_birth"})

    classroom_id: Optional[int] = None
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    class_teacher_id: Optional[int] = None
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    active: Optional[bool] = None


class StudentOut(CamelModel):
    id: int
    school_id: int
    classroom_id: int
    class_teacher_id: Optional[int] = None
    code: str
    phone_number: Optional[str] = None
    first_name: str
    last_name: str
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    grade_level: int
    section_label: str
    enrolled_at: Optional[datetime] = None
    active: bool


class StudentSubjectBrief(CamelModel):
    id: int
    teacher_subject_id: int
    enrolled_on: date
    status: str


class StudentAttendanceBrief(CamelModel):
    id: int
    attendance_session_id: int
    status: str


class StudentDetail(StudentOut):
    subjects: List[StudentSubjectBrief] = []
    attendances: List[StudentAttendanceBrief] = []
