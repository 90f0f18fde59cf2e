from dataclasses import dataclass

from sqlalchemy.orm import Session

from classhub.models.students import Student
from classhub.models.teachers import TeacherSubject
from classhub.services.scope import Scope, forbid


@dataclass(frozen=True)
class ClassroomAssociation:
    homeroom: bool
    subject: bool

    @property
    def any(self) -> bool:
        return self.homeroom or self.subject


def is_homeroom_teacher(db: Session, teacher_id: int, classroom_id: int) -> bool:
    """True when at least one student of the classroom names this teacher as class teacher."""
    return db.query(Student.id).filter(
        Student.classroom_id == classroom_id,
        Student.class_teacher_id == teacher_id,
    ).first() is not None


def resolve_teacher_classroom_association(db: Session, teacher_id: int, classroom_id: int) -> ClassroomAssociation:
    teaches_subject = db.query(TeacherSubject.id).filter(
        TeacherSubject.teacher_id == teacher_id,
        TeacherSubject.classroom_id == classroom_id,
    ).first() is not None
    return ClassroomAssociation(
        homeroom=is_homeroom_teacher(db, teacher_id, classroom_id),
        subject=teaches_subject,
    )


def ensure_can_view_classroom(db: Session, scope: Scope, classroom) -> ClassroomAssociation | None:
    """Scope check for classroom-level reads.

    Returns the teacher's association for TEACHER callers, None for everyone else.
    """
    scope.ensure_school(classroom.school_id)
    if not scope.is_teacher:
        return None
    association = resolve_teacher_classroom_association(db, scope.teacher_id, classroom.id)
    if not association.any:
        forbid("Teachers can only view classrooms they are assigned to")
    return association
