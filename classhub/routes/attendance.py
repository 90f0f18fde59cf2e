from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from classhub.core.app_logger import get_logger
from classhub.core.config import settings
from classhub.core.dependencies import AttendanceActor, get_attendance_actor
from classhub.db.session import get_db
from classhub.models.attendance import AttendanceSession, StudentAttendance
from classhub.models.school import Classroom
from classhub.models.students import Student
from classhub.schemas.attendance import (
    AttendanceSessionCreate, AttendanceSessionOut, AttendanceRecordBatch, SessionListItem,
    ClassroomSessions, SessionWithRecords, SessionDetail, ClassroomSummary, StudentAttendanceOut)
from classhub.services.attendance import (
    is_within_edit_window, session_edit_state, summarize_for_student, summarize_sessions)
from classhub.services.classroom_access import ensure_can_view_classroom, is_homeroom_teacher
from classhub.services.scope import Scope, forbid, resolve_scope
from classhub.utils.dates import utcnow
from classhub.utils.permission import scoped, ALL_STAFF, ALL_ROLES
from classhub.utils.services import get_or_404, not_found, bad_request, conflict, commit_or_rollback

router = APIRouter()
logger = get_logger("attendance")


def _writer_scope(actor: AttendanceActor) -> Optional[Scope]:
    """Scope of a teacher writing attendance; None for a trusted device."""
    if actor.is_device:
        return None
    scope = resolve_scope(actor.user)
    if not scope.is_teacher:
        forbid("Only teachers or authorized devices can mark attendance")
    return scope


def _ensure_homeroom_writer(db: Session, scope: Scope, school_id: int, classroom_id: int):
    scope.ensure_school(school_id)
    if not is_homeroom_teacher(db, scope.teacher_id, classroom_id):
        forbid("Teachers can only manage attendance for their homerooms")


@router.post("/sessions", response_model=AttendanceSessionOut, status_code=status.HTTP_201_CREATED)
def create_session(
    data: AttendanceSessionCreate,
    db: Session = Depends(get_db),
    actor: AttendanceActor = Depends(get_attendance_actor),
):
    scope = _writer_scope(actor)
    classroom = get_or_404(db, Classroom, data.classroom_id, "Classroom")
    if scope is not None:
        _ensure_homeroom_writer(db, scope, data.school_id, classroom.id)
    if classroom.school_id != data.school_id:
        bad_request("Classroom does not belong to the specified school")

    existing = db.query(AttendanceSession).filter(
        AttendanceSession.classroom_id == classroom.id,
        AttendanceSession.session_date == data.session_date,
    ).first()
    if existing:
        conflict("Attendance already exists for this classroom on the selected date")

    session = AttendanceSession(
        school_id=data.school_id,
        classroom_id=classroom.id,
        session_date=data.session_date,
        starts_at=data.starts_at,
        ends_at=data.ends_at,
    )
    db.add(session)
    commit_or_rollback(db, session)
    logger.info(
        "Attendance session %s opened for classroom %s on %s by %s",
        session.id, classroom.id, data.session_date,
        "device" if actor.is_device else f"user {actor.user.id}",
    )
    return session


@router.post("/sessions/{session_id}/records")
def record_attendance(
    session_id: int,
    data: AttendanceRecordBatch,
    db: Session = Depends(get_db),
    actor: AttendanceActor = Depends(get_attendance_actor),
):
    """Upsert one status per student; the last entry for a student wins."""
    scope = _writer_scope(actor)
    session = get_or_404(db, AttendanceSession, session_id, "Session")
    if scope is not None:
        _ensure_homeroom_writer(db, scope, session.school_id, session.classroom_id)
        if not is_within_edit_window(session.session_date):
            forbid(f"Attendance can only be edited within {settings.ATTENDANCE_EDIT_WINDOW_HOURS} hours of the session date")

    statuses = {entry.student_id: entry.status for entry in data.entries}
    enrolled = {
        student_id for (student_id,) in db.query(Student.id).filter(
            Student.id.in_(list(statuses)),
            Student.classroom_id == session.classroom_id,
        ).all()
    }
    outsiders = [student_id for student_id in statuses if student_id not in enrolled]
    if outsiders:
        bad_request(f"Students not in this classroom: {', '.join(str(i) for i in outsiders)}")

    existing = {
        record.student_id: record
        for record in db.query(StudentAttendance).filter(
            StudentAttendance.attendance_session_id == session.id,
            StudentAttendance.student_id.in_(list(statuses)),
        ).all()
    }
    now = utcnow()
    created = updated = 0
    for student_id, attendance_status in statuses.items():
        record = existing.get(student_id)
        if record is None:
            db.add(StudentAttendance(
                attendance_session_id=session.id,
                student_id=student_id,
                status=attendance_status,
                recorded_at=now,
            ))
            created += 1
        else:
            record.status = attendance_status
            record.recorded_at = now
            updated += 1
    commit_or_rollback(db)

    logger.info("Attendance session %s synced: %s created, %s updated", session.id, created, updated)
    return {"message": "Attendance synced", "created": created, "updated": updated}


@router.get("/students/summary")
def student_summary(
    student_id: Optional[int] = Query(None, alias="studentId"),
    phone: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    if student_id is None and not phone:
        bad_request("Provide studentId or phone query param")

    query = db.query(Student)
    if student_id is not None:
        query = query.filter(Student.id == student_id)
    else:
        query = query.filter(Student.phone_number == phone)
    student = query.order_by(Student.id).first()
    if not student:
        not_found("Student")
    scope.ensure_student(student)

    return summarize_for_student(db, student.id)


@router.get("/students/{student_id}", response_model=List[StudentAttendanceOut])
def student_records(
    student_id: int,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    student = get_or_404(db, Student, student_id, "Student")
    scope.ensure_student(student)

    query = (
        db.query(StudentAttendance)
        .join(AttendanceSession, StudentAttendance.attendance_session_id == AttendanceSession.id)
        .options(joinedload(StudentAttendance.session))
        .filter(StudentAttendance.student_id == student.id)
    )
    if date_from is not None:
        query = query.filter(AttendanceSession.session_date >= date_from)
    if date_to is not None:
        query = query.filter(AttendanceSession.session_date <= date_to)
    return query.order_by(AttendanceSession.session_date.desc()).all()


def _homeroom(association) -> bool:
    return bool(association and association.homeroom)


@router.get("/classrooms/{classroom_id}/sessions", response_model=ClassroomSessions)
def list_classroom_sessions(
    classroom_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    association = ensure_can_view_classroom(db, scope, classroom)

    rows = (
        db.query(AttendanceSession, func.count(StudentAttendance.id))
        .outerjoin(StudentAttendance, StudentAttendance.attendance_session_id == AttendanceSession.id)
        .filter(AttendanceSession.classroom_id == classroom.id)
        .group_by(AttendanceSession.id)
        .order_by(AttendanceSession.session_date.desc())
        .all()
    )
    sessions = [
        SessionListItem.model_validate(session).model_copy(update={
            "total_records": total,
            **session_edit_state(session, _homeroom(association)),
        })
        for session, total in rows
    ]
    return ClassroomSessions(classroom_id=classroom.id, sessions=sessions)


@router.get("/classrooms/{classroom_id}/summary", response_model=ClassroomSummary)
def classroom_summary(
    classroom_id: int,
    on: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    association = ensure_can_view_classroom(db, scope, classroom)

    query = (
        db.query(AttendanceSession)
        .options(selectinload(AttendanceSession.records).joinedload(StudentAttendance.student))
        .filter(AttendanceSession.classroom_id == classroom.id)
    )
    if on is not None:
        query = query.filter(AttendanceSession.session_date == on)
    sessions = query.order_by(AttendanceSession.session_date.desc()).all()

    return ClassroomSummary(
        sessions=[
            SessionWithRecords.model_validate(session).model_copy(
                update=session_edit_state(session, _homeroom(association)))
            for session in sessions
        ],
        summary=summarize_sessions(sessions),
    )


@router.get("/sessions/{session_id}", response_model=SessionDetail)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    session = get_or_404(db, AttendanceSession, session_id, "Session")
    association = ensure_can_view_classroom(db, scope, session.classroom)
    return SessionDetail.model_validate(session).model_copy(
        update=session_edit_state(session, _homeroom(association)))
