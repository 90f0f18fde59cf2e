"""Data-visibility scope derived from the authenticated user's role.

Every route resolves one :class:`Scope` up front and asks it questions instead
of comparing role strings inline:

* ADMIN / GOVERNMENT are unscoped.
* PRINCIPAL is pinned to the school on the user row.
* TEACHER is pinned to the school of the linked teacher record; detail views of
  student data additionally require the homeroom link (``class_teacher_id``).
* STUDENT may only see itself.

Lookups happen before scope checks, so a missing target is a 404 even for a
caller that would not be allowed to see it.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status

from classhub.models.users import User
from classhub.schemas.users import UserRole


def forbid(detail: str = "Forbidden"):
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@dataclass(frozen=True)
class Scope:
    role: UserRole
    user_id: int
    school_id: Optional[int] = None
    teacher_id: Optional[int] = None
    student_id: Optional[int] = None

    @property
    def unscoped(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.GOVERNMENT)

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_principal(self) -> bool:
        return self.role == UserRole.PRINCIPAL

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def school_filter(self, requested: Optional[int] = None) -> Optional[int]:
        """School id a list query must be filtered to (None means no filter)."""
        if self.unscoped:
            return requested
        return self.school_id

    def ensure_school(self, school_id: Optional[int], detail: str = "Forbidden"):
        if self.unscoped:
            return
        if self.school_id is None or self.school_id != school_id:
            forbid(detail)

    def ensure_student(self, student, homeroom_only: bool = False):
        """Gate access to one student's data.

        ``homeroom_only`` narrows TEACHER callers to their homeroom students.
        """
        if self.unscoped:
            return
        if self.is_student:
            if self.student_id != student.id:
                forbid()
            return
        self.ensure_school(student.school_id)
        if self.is_teacher and homeroom_only and student.class_teacher_id != self.teacher_id:
            forbid("Teachers can only view their homeroom students")


def resolve_scope(user: User) -> Scope:
    role = UserRole(user.role)
    if role in (UserRole.ADMIN, UserRole.GOVERNMENT):
        return Scope(role=role, user_id=user.id)
    if role == UserRole.PRINCIPAL:
        if not user.school_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Principal account must be linked to a school",
            )
        return Scope(role=role, user_id=user.id, school_id=user.school_id)
    if role == UserRole.TEACHER:
        if not user.teacher_id or user.teacher is None:
            forbid("Teacher profile missing")
        return Scope(
            role=role,
            user_id=user.id,
            school_id=user.teacher.school_id,
            teacher_id=user.teacher_id,
        )
    if role == UserRole.STUDENT:
        if not user.student_id or user.student is None:
            forbid("Student profile missing")
        return Scope(
            role=role,
            user_id=user.id,
            school_id=user.student.school_id,
            student_id=user.student_id,
        )
    raise ValueError(f"Unhandled role {role!r}")
