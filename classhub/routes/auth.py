from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from classhub.core.app_logger import get_logger
from classhub.core.config import settings
from classhub.core.security import create_access_token, get_password_hash, verify_password
from classhub.db.session import get_db
from classhub.models.school import School
from classhub.models.students import Student
from classhub.models.teachers import Teacher
from classhub.models.users import User
from classhub.schemas.users import (
    LoginRequest, LoginResponse, UserCreate, UserResponse, UserRole, UserStatus, UserStatusUpdate)
from classhub.services.scope import Scope, forbid
from classhub.utils.permission import scoped
from classhub.utils.services import get_or_404, conflict, commit_or_rollback

router = APIRouter()
logger = get_logger("auth")


def resolve_claims(user: User) -> dict:
    """studentId / teacherId / schoolId as carried in the token."""
    school_id = user.school_id
    if school_id is None and user.teacher is not None:
        school_id = user.teacher.school_id
    if school_id is None and user.student is not None:
        school_id = user.student.school_id
    return {
        "student_id": user.student_id,
        "teacher_id": user.teacher_id,
        "school_id": school_id,
    }


def _expires_in_label() -> str:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return f"{minutes // 60}h" if minutes % 60 == 0 else f"{minutes}m"


@router.post("/login", response_model=LoginResponse)
def login(
    form_data: LoginRequest,
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.email == form_data.email).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info("Failed login for %s", form_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")

    claims = resolve_claims(user)
    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "role": user.role.value,
            "studentId": claims["student_id"],
            "teacherId": claims["teacher_id"],
            "schoolId": claims["school_id"],
        },
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    logger.info("User %s logged in as %s", user.id, user.role.value)

    return LoginResponse(
        token=access_token,
        expires_in=_expires_in_label(),
        user_id=user.id,
        role=user.role,
        **claims,
    )


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.ADMIN, UserRole.PRINCIPAL)),
):
    school_id = data.school_id

    if scope.is_principal:
        if data.role not in (UserRole.STUDENT, UserRole.TEACHER):
            forbid("Principals can only create STUDENT and TEACHER user accounts")
        if data.school_id and data.school_id != scope.school_id:
            forbid("Principals can only create users for their own school")
        school_id = scope.school_id

    if data.student_id:
        student = get_or_404(db, Student, data.student_id, "Student")
        if scope.is_principal and student.school_id != scope.school_id:
            forbid("Cannot create user for student from another school")
        school_id = school_id or student.school_id

    if data.teacher_id:
        teacher = get_or_404(db, Teacher, data.teacher_id, "Teacher")
        if scope.is_principal and teacher.school_id != scope.school_id:
            forbid("Cannot create user for teacher from another school")
        school_id = school_id or teacher.school_id

    if school_id:
        get_or_404(db, School, school_id, "School")

    if db.query(User).filter(User.email == data.email).first():
        conflict("Email already registered")

    user = User(
        email=data.email,
        phone_number=data.phone_number,
        password_hash=get_password_hash(data.password),
        role=data.role,
        status=UserStatus.ACTIVE,
        school_id=school_id,
        student_id=data.student_id,
        teacher_id=data.teacher_id,
    )
    db.add(user)
    commit_or_rollback(db, user)

    logger.info("User %s (%s) created by user %s", user.id, data.role, scope.user_id)
    return user


@router.get("/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.ADMIN, UserRole.GOVERNMENT, UserRole.PRINCIPAL)),
):
    query = db.query(User)
    school_id = scope.school_filter()
    if school_id is not None:
        query = query.filter(User.school_id == school_id)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


@router.patch("/users/{user_id}/status", response_model=UserResponse)
def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.ADMIN)),
):
    user = get_or_404(db, User, user_id, "User")

    user.status = data.status
    commit_or_rollback(db, user)
    logger.info("User %s set to %s by user %s", user.id, user.status, scope.user_id)
    return user
