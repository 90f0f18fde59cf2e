from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from classhub.db.session import get_db
from classhub.models.school import Classroom
from classhub.models.students import Student
from classhub.models.teachers import TeacherSubject
from classhub.schemas.school import GradeOut, SectionOut
from classhub.schemas.users import UserRole
from classhub.services.attendance import per_student_counts
from classhub.services.classroom_access import ensure_can_view_classroom
from classhub.services.scope import Scope
from classhub.utils.permission import scoped
from classhub.utils.services import get_or_404

router = APIRouter()


def _classroom_entry(classroom: Classroom) -> dict:
    return {
        "id": classroom.id,
        "academicYear": classroom.academic_year,
        "grade": GradeOut.model_validate(classroom.grade).model_dump(by_alias=True),
        "section": SectionOut.model_validate(classroom.section).model_dump(by_alias=True),
        "studentCount": 0,
        "roles": {"homeroom": False, "subjects": []},
    }


@router.get("/me/classrooms")
def my_classrooms(
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.TEACHER)),
):
    """Classrooms the teacher is homeroom for or teaches a subject in."""
    homerooms = (
        db.query(Classroom)
        .options(joinedload(Classroom.grade), joinedload(Classroom.section))
        .filter(
            Classroom.school_id == scope.school_id,
            Classroom.students.any(Student.class_teacher_id == scope.teacher_id),
        )
        .all()
    )
    assignments = (
        db.query(TeacherSubject)
        .join(Classroom, TeacherSubject.classroom_id == Classroom.id)
        .options(joinedload(TeacherSubject.subject), joinedload(TeacherSubject.classroom))
        .filter(
            TeacherSubject.teacher_id == scope.teacher_id,
            Classroom.school_id == scope.school_id,
        )
        .order_by(TeacherSubject.id)
        .all()
    )

    entries = {}
    for classroom in homerooms:
        entry = entries.setdefault(classroom.id, (classroom, _classroom_entry(classroom)))[1]
        entry["roles"]["homeroom"] = True
    for assignment in assignments:
        classroom = assignment.classroom
        entry = entries.setdefault(classroom.id, (classroom, _classroom_entry(classroom)))[1]
        entry["roles"]["subjects"].append({
            "teacherSubjectId": assignment.id,
            "subjectId": assignment.subject.id,
            "subjectCode": assignment.subject.code,
            "subjectName": assignment.subject.name,
        })

    if entries:
        counts = dict(
            db.query(Student.classroom_id, func.count(Student.id))
            .filter(Student.classroom_id.in_(list(entries)))
            .group_by(Student.classroom_id)
            .all()
        )
        for classroom_id, (_, entry) in entries.items():
            entry["studentCount"] = counts.get(classroom_id, 0)

    ordered = sorted(
        entries.values(),
        key=lambda pair: (pair[0].grade.level, pair[0].section.label, pair[0].id),
    )
    return {"classrooms": [entry for _, entry in ordered]}


@router.get("/me/classrooms/{classroom_id}/students")
def my_classroom_students(
    classroom_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(UserRole.TEACHER)),
):
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    association = ensure_can_view_classroom(db, scope, classroom)

    students = (
        db.query(Student)
        .filter(Student.classroom_id == classroom.id)
        .order_by(Student.first_name, Student.last_name, Student.id)
        .all()
    )
    counts = per_student_counts(db, [s.id for s in students], classroom.id)

    return {
        "classroomId": classroom.id,
        "canEditAttendance": association.homeroom,
        "students": [
            {
                "id": student.id,
                "firstName": student.first_name,
                "lastName": student.last_name,
                "code": student.code,
                "attendance": counts[student.id],
            }
            for student in students
        ],
    }
