"""Attendance session rules and aggregates.

A (classroom, date) pair has no session, an open session, or a locked one.
Locking is not stored: a session is editable by its homeroom teacher until
midnight of the session date plus the configured window, in server-local time.
Devices are never subject to the window.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from classhub.core.config import settings
from classhub.models.attendance import AttendanceSession, AttendanceStatus, StudentAttendance
from classhub.utils.dates import start_of_week

STATUSES = [s.value for s in AttendanceStatus]


def compute_edit_deadline(session_date: date) -> datetime:
    return datetime.combine(session_date, time.min) + timedelta(hours=settings.ATTENDANCE_EDIT_WINDOW_HOURS)


def is_within_edit_window(session_date: date, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return now <= compute_edit_deadline(session_date)


def attendance_rate(present: int, total: int) -> float:
    return round(present / total, 2) if total else 0


def build_counts(pairs: Iterable[tuple]) -> dict:
    """Fold (status, count) pairs into totals per status plus the rate."""
    counts = {status: 0 for status in STATUSES}
    for status, count in pairs:
        if status in counts:
            counts[status] += count
    total = sum(counts.values())
    return {
        "total": total,
        **counts,
        "attendanceRate": attendance_rate(counts[AttendanceStatus.PRESENT.value], total),
    }


def _grouped_counts(db: Session, student_id: int, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    query = (
        db.query(StudentAttendance.status, func.count(StudentAttendance.id))
        .join(AttendanceSession, StudentAttendance.attendance_session_id == AttendanceSession.id)
        .filter(StudentAttendance.student_id == student_id)
    )
    if date_from is not None:
        query = query.filter(AttendanceSession.session_date >= date_from)
    if date_to is not None:
        query = query.filter(AttendanceSession.session_date <= date_to)
    return build_counts(query.group_by(StudentAttendance.status).all())


def summarize_for_student(db: Session, student_id: int, today: Optional[date] = None) -> dict:
    today = today or date.today()
    return {
        "studentId": student_id,
        "today": _grouped_counts(db, student_id, today, today),
        "thisWeek": _grouped_counts(db, student_id, start_of_week(today), today),
        "overall": _grouped_counts(db, student_id),
    }


def summarize_sessions(sessions: Iterable[AttendanceSession]) -> dict:
    totals = {status: 0 for status in STATUSES}
    total = 0
    for session in sessions:
        for record in session.records:
            totals[record.status] = totals.get(record.status, 0) + 1
            total += 1
    return {"total": total, "totals": totals}


def per_student_counts(db: Session, student_ids: list, classroom_id: int) -> dict:
    """Attendance counts per student, limited to sessions of one classroom."""
    if not student_ids:
        return {}
    rows = (
        db.query(StudentAttendance.student_id, StudentAttendance.status, func.count(StudentAttendance.id))
        .join(AttendanceSession, StudentAttendance.attendance_session_id == AttendanceSession.id)
        .filter(
            StudentAttendance.student_id.in_(student_ids),
            AttendanceSession.classroom_id == classroom_id,
        )
        .group_by(StudentAttendance.student_id, StudentAttendance.status)
        .all()
    )
    pairs_by_student: dict = {}
    for student_id, status, count in rows:
        pairs_by_student.setdefault(student_id, []).append((status, count))
    return {student_id: build_counts(pairs_by_student.get(student_id, [])) for student_id in student_ids}


def session_edit_state(session: AttendanceSession, homeroom: bool, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    editable_until = compute_edit_deadline(session.session_date)
    return {
        "editable_until": editable_until,
        "can_edit": bool(homeroom) and now <= editable_until,
    }
