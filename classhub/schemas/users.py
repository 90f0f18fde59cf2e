from datetime import datetime
from pydantic import EmailStr, Field, model_validator
from typing import Optional
from enum import Enum

from classhub.schemas.base import CamelModel, PHONE_PATTERN


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    GOVERNMENT = "GOVERNMENT"
    PRINCIPAL = "PRINCIPAL"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class UserStatus(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)


class LoginResponse(CamelModel):
    token: str
    expires_in: str
    user_id: int
    role: UserRole
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    school_id: Optional[int] = None


class UserCreate(CamelModel):
    school_id: Optional[int] = None
    email: EmailStr
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    password: str = Field(min_length=8)
    role: UserRole
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None

    @model_validator(mode="after")
    def check_role_links(self):
        if self.role == UserRole.STUDENT and not self.student_id:
            raise ValueError("studentId is required for STUDENT role")
        if self.role == UserRole.TEACHER and not self.teacher_id:
            raise ValueError("teacherId is required for TEACHER role")
        if self.role == UserRole.PRINCIPAL and not self.school_id:
            raise ValueError("schoolId is required for PRINCIPAL role")
        return self


class UserStatusUpdate(CamelModel):
    status: UserStatus


# Output schema for the User model; never carries the password hash
class UserResponse(CamelModel):
    id: int
    email: str
    phone_number: Optional[str] = None
    role: UserRole
    status: UserStatus
    school_id: Optional[int] = None
    teacher_id: Optional[int] = None
    student_id: Optional[int] = None
    created_at: Optional[datetime] = None
