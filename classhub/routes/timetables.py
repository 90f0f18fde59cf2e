from collections import Counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from classhub.core.app_logger import get_logger
from classhub.db.session import get_db
from classhub.models.school import Classroom
from classhub.models.students import Student
from classhub.models.teachers import TeacherSubject
from classhub.models.timetables import ClassroomTimetable
from classhub.schemas.base import format_hhmm, parse_hhmm
from classhub.schemas.timetables import TimetableReplace, TimetableEntryOut, ClassroomTimetableOut
from classhub.schemas.users import UserRole
from classhub.services.classroom_access import ensure_can_view_classroom
from classhub.services.scope import Scope, forbid
from classhub.utils.permission import scoped, ALL_ROLES
from classhub.utils.services import get_or_404, bad_request, commit_or_rollback

router = APIRouter()
logger = get_logger("timetables")


def _entry_out(row: ClassroomTimetable) -> TimetableEntryOut:
    assignment = row.teacher_subject
    return TimetableEntryOut(
        id=row.id,
        week_day=row.week_day,
        period=row.period,
        start_time=format_hhmm(row.start_time),
        end_time=format_hhmm(row.end_time),
        label=row.label,
        location=row.location,
        notes=row.notes,
        teacher_subject_id=row.teacher_subject_id,
        subject_name=assignment.subject.name if assignment else None,
        teacher_name=f"{assignment.teacher.first_name} {assignment.teacher.last_name}" if assignment else None,
    )


def _timetable(db: Session, classroom_id: int) -> ClassroomTimetableOut:
    rows = (
        db.query(ClassroomTimetable)
        .options(
            joinedload(ClassroomTimetable.teacher_subject).joinedload(TeacherSubject.subject),
            joinedload(ClassroomTimetable.teacher_subject).joinedload(TeacherSubject.teacher),
        )
        .filter(ClassroomTimetable.classroom_id == classroom_id)
        .order_by(ClassroomTimetable.week_day, ClassroomTimetable.period)
        .all()
    )
    return ClassroomTimetableOut(classroom_id=classroom_id, entries=[_entry_out(row) for row in rows])


def _load_assignments(db: Session, classroom: Classroom, ids: set) -> dict:
    """Teacher-subject rows usable in this classroom's timetable, keyed by id."""
    if not ids:
        return {}
    assignments = {
        assignment.id: assignment
        for assignment in db.query(TeacherSubject).options(
            joinedload(TeacherSubject.subject), joinedload(TeacherSubject.teacher)
        ).filter(TeacherSubject.id.in_(list(ids))).all()
    }
    invalid = []
    for assignment_id in sorted(ids):
        assignment = assignments.get(assignment_id)
        if assignment is None:
            invalid.append(assignment_id)
        elif assignment.classroom_id is not None and assignment.classroom_id != classroom.id:
            invalid.append(assignment_id)
        elif assignment.classroom_id is None and assignment.teacher.school_id != classroom.school_id:
            invalid.append(assignment_id)
    if invalid:
        bad_request(f"Teacher subjects not valid for this classroom: {', '.join(str(i) for i in invalid)}")
    return assignments


@router.put("/classrooms/{classroom_id}", response_model=ClassroomTimetableOut)
def replace_timetable(
    classroom_id: int,
    data: TimetableReplace,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.ADMIN, UserRole.GOVERNMENT, UserRole.PRINCIPAL)),
):
    """Replace the whole weekly timetable of a classroom."""
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    scope.ensure_school(classroom.school_id)

    slots = Counter((entry.week_day, entry.period) for entry in data.entries)
    duplicates = sorted(slot for slot, count in slots.items() if count > 1)
    if duplicates:
        bad_request("Duplicate timetable slots: " + ", ".join(
            f"weekDay {week_day} period {period}" for week_day, period in duplicates))

    assignments = _load_assignments(
        db, classroom, {e.teacher_subject_id for e in data.entries if e.teacher_subject_id is not None})

    db.query(ClassroomTimetable).filter(
        ClassroomTimetable.classroom_id == classroom.id
    ).delete(synchronize_session=False)
    for entry in data.entries:
        assignment = assignments.get(entry.teacher_subject_id)
        label = entry.label or (assignment.subject.name if assignment else f"Period {entry.period}")
        db.add(ClassroomTimetable(
            school_id=classroom.school_id,
            classroom_id=classroom.id,
            week_day=entry.week_day,
            period=entry.period,
            start_time=parse_hhmm(entry.start_time),
            end_time=parse_hhmm(entry.end_time),
            label=label,
            location=entry.location,
            notes=entry.notes,
            teacher_subject_id=entry.teacher_subject_id,
        ))
    commit_or_rollback(db)

    logger.info("Timetable for classroom %s replaced with %s entries", classroom.id, len(data.entries))
    return _timetable(db, classroom.id)


@router.get("/classrooms/{classroom_id}", response_model=ClassroomTimetableOut)
def get_classroom_timetable(
    classroom_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    if scope.is_student:
        student = get_or_404(db, Student, scope.student_id, "Student")
        if student.classroom_id != classroom.id:
            forbid()
    else:
        ensure_can_view_classroom(db, scope, classroom)
    return _timetable(db, classroom.id)


@router.get("/students/{student_id}", response_model=ClassroomTimetableOut)
def get_student_timetable(
    student_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    student = get_or_404(db, Student, student_id, "Student")
    scope.ensure_student(student)
    if not scope.is_student:
        ensure_can_view_classroom(db, scope, student.classroom)
    return _timetable(db, student.classroom_id)
