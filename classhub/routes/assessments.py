from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload

from classhub.core.app_logger import get_logger
from classhub.db.session import get_db
from classhub.models.assessments import Exam, StudentExamResult
from classhub.models.school import Classroom, Subject
from classhub.models.students import Student
from classhub.models.teachers import Teacher
from classhub.schemas.assessments import ExamCreate, ExamOut, ExamResultBatch, ExamResultOut, LatestResult
from classhub.services.scope import Scope, forbid
from classhub.utils.dates import utcnow
from classhub.utils.permission import scoped, ALL_STAFF, ALL_ROLES
from classhub.utils.services import get_or_404, bad_request, commit_or_rollback

router = APIRouter()
logger = get_logger("assessments")


@router.post("/exams", response_model=ExamOut, status_code=status.HTTP_201_CREATED)
def create_exam(
    data: ExamCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    subject = get_or_404(db, Subject, data.subject_id, "Subject")
    teacher = get_or_404(db, Teacher, data.teacher_id, "Teacher")
    if data.classroom_id is not None:
        classroom = get_or_404(db, Classroom, data.classroom_id, "Classroom")
        if classroom.school_id != subject.school_id:
            bad_request("Classroom and subject must belong to the same school")

    if scope.is_teacher and scope.teacher_id != teacher.id:
        forbid("Teachers can only create exams for themselves")
    scope.ensure_school(subject.school_id)
    if teacher.school_id != subject.school_id:
        bad_request("Subject and teacher must belong to the same school")

    exam = Exam(school_id=subject.school_id, **data.model_dump())
    db.add(exam)
    commit_or_rollback(db, exam)
    return exam


@router.post("/exam-results", response_model=List[ExamResultOut])
def record_exam_results(
    data: ExamResultBatch,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    """Record scores for one exam; a repeat for the same student overwrites it."""
    exam = get_or_404(db, Exam, data.exam_id, "Exam")
    if scope.is_teacher and exam.teacher_id != scope.teacher_id:
        forbid("Teachers can only record results for their own exams")
    scope.ensure_school(exam.school_id)

    entries = {entry.student_id: entry for entry in data.results}
    over = [sid for sid, entry in entries.items() if entry.score > exam.total_marks]
    if over:
        bad_request(f"Scores must not exceed total marks ({exam.total_marks}) for students: "
                    f"{', '.join(str(i) for i in over)}")

    known = {
        student_id for (student_id,) in db.query(Student.id).filter(
            Student.id.in_(list(entries)),
            Student.school_id == exam.school_id,
        ).all()
    }
    unknown = [sid for sid in entries if sid not in known]
    if unknown:
        bad_request(f"Students not found in this school: {', '.join(str(i) for i in unknown)}")

    existing = {
        result.student_id: result
        for result in db.query(StudentExamResult).filter(
            StudentExamResult.exam_id == exam.id,
            StudentExamResult.student_id.in_(list(entries)),
        ).all()
    }
    now = utcnow()
    saved = []
    for student_id, entry in entries.items():
        result = existing.get(student_id)
        if result is None:
            result = StudentExamResult(exam_id=exam.id, student_id=student_id)
            db.add(result)
        result.score = entry.score
        result.grade = entry.grade
        result.recorded_at = now
        saved.append(result)
    commit_or_rollback(db, *saved)

    logger.info("Exam %s: %s results recorded", exam.id, len(saved))
    return saved


@router.get("/students/{student_id}/latest", response_model=List[LatestResult])
def latest_results(
    student_id: int,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    student = get_or_404(db, Student, student_id, "Student")
    scope.ensure_student(student, homeroom_only=True)

    return (
        db.query(StudentExamResult)
        .join(Exam, StudentExamResult.exam_id == Exam.id)
        .options(joinedload(StudentExamResult.exam))
        .filter(StudentExamResult.student_id == student.id)
        .order_by(Exam.exam_date.desc(), StudentExamResult.id.desc())
        .limit(limit)
        .all()
    )
