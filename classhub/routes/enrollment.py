from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from classhub.core.app_logger import get_logger
from classhub.db.session import get_db
from classhub.models.school import Classroom, Subject, School
from classhub.models.students import Student, StudentSubject, StudentGroup, StudentGroupMember
from classhub.models.teachers import Teacher, TeacherSubject
from classhub.schemas.enrollment import (
    TeacherSubjectCreate, TeacherSubjectOut, StudentSubjectCreate, StudentSubjectOut,
    StudentGroupCreate, StudentGroupOut, StudentGroupWithMembers, GroupMembersAdd)
from classhub.services.scope import Scope, forbid
from classhub.utils.permission import scoped, ALL_STAFF
from classhub.utils.services import get_or_404, bad_request, conflict, commit_or_rollback

router = APIRouter()
logger = get_logger("enrollment")


@router.post("/teacher-subjects", response_model=TeacherSubjectOut, status_code=status.HTTP_201_CREATED)
def assign_teacher_subject(
    data: TeacherSubjectCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    teacher = get_or_404(db, Teacher, data.teacher_id, "Teacher")
    subject = get_or_404(db, Subject, data.subject_id, "Subject")
    classroom = None
    if data.classroom_id is not None:
        classroom = get_or_404(db, Classroom, data.classroom_id, "Classroom")

    if scope.is_teacher and scope.teacher_id != teacher.id:
        forbid("Teachers can only manage their own subjects")
    scope.ensure_school(teacher.school_id)

    if subject.school_id != teacher.school_id:
        bad_request("Subject and teacher must belong to the same school")
    if classroom is not None and classroom.school_id != teacher.school_id:
        bad_request("Classroom and teacher must belong to the same school")

    query = db.query(TeacherSubject).filter(
        TeacherSubject.teacher_id == data.teacher_id,
        TeacherSubject.subject_id == data.subject_id,
        TeacherSubject.start_date == data.start_date,
    )
    if data.classroom_id is None:
        query = query.filter(TeacherSubject.classroom_id.is_(None))
    else:
        query = query.filter(TeacherSubject.classroom_id == data.classroom_id)
    existing = query.first()
    if existing:
        conflict(
            "Teacher subject assignment already exists",
            existing=TeacherSubjectOut.model_validate(existing).model_dump(mode="json", by_alias=True),
        )

    assignment = TeacherSubject(**data.model_dump())
    db.add(assignment)
    commit_or_rollback(db, assignment)
    logger.info("Teacher %s assigned subject %s (classroom %s)", teacher.id, subject.id, data.classroom_id)
    return assignment


@router.get("/teacher-subjects", response_model=List[TeacherSubjectOut])
def list_teacher_subjects(
    teacher_id: Optional[int] = Query(None, alias="teacherId"),
    classroom_id: Optional[int] = Query(None, alias="classroomId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(TeacherSubject)
    if teacher_id is not None:
        query = query.filter(TeacherSubject.teacher_id == teacher_id)
    if classroom_id is not None:
        query = query.filter(TeacherSubject.classroom_id == classroom_id)
    school_id = scope.school_filter()
    if school_id is not None:
        query = query.join(Teacher, TeacherSubject.teacher_id == Teacher.id).filter(Teacher.school_id == school_id)
    return query.order_by(TeacherSubject.id).all()


@router.post("/student-subjects", response_model=StudentSubjectOut, status_code=status.HTTP_201_CREATED)
def enroll_student_subject(
    data: StudentSubjectCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    student = get_or_404(db, Student, data.student_id, "Student")
    assignment = get_or_404(db, TeacherSubject, data.teacher_subject_id, "Teacher subject")

    if scope.is_teacher and assignment.teacher_id != scope.teacher_id:
        forbid("Teachers can only enroll students into their own subjects")
    scope.ensure_school(student.school_id)
    if assignment.teacher.school_id != student.school_id:
        bad_request("Student and teacher subject must belong to the same school")

    duplicate = db.query(StudentSubject).filter(
        StudentSubject.student_id == student.id,
        StudentSubject.teacher_subject_id == assignment.id,
    ).first()
    if duplicate:
        conflict("Student is already enrolled in this subject")

    enrollment = StudentSubject(
        student_id=student.id,
        teacher_subject_id=assignment.id,
        enrolled_on=data.enrolled_on or date.today(),
        status=data.status,
    )
    db.add(enrollment)
    commit_or_rollback(db, enrollment)
    return enrollment


@router.post("/student-groups", response_model=StudentGroupOut, status_code=status.HTTP_201_CREATED)
def create_student_group(
    data: StudentGroupCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    get_or_404(db, School, data.school_id, "School")
    scope.ensure_school(data.school_id)
    group = StudentGroup(**data.model_dump())
    db.add(group)
    commit_or_rollback(db, group)
    return group


@router.get("/student-groups", response_model=List[StudentGroupWithMembers])
def list_student_groups(
    school_id: Optional[int] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(StudentGroup).options(selectinload(StudentGroup.members))
    school_filter = scope.school_filter(school_id)
    if school_filter is not None:
        query = query.filter(StudentGroup.school_id == school_filter)
    return query.order_by(StudentGroup.id).all()


@router.post("/student-groups/{group_id}/members")
def add_group_members(
    group_id: int,
    data: GroupMembersAdd,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    """Add students to a group. Re-adding an existing member is a no-op."""
    group = get_or_404(db, StudentGroup, group_id, "Group")
    scope.ensure_school(group.school_id)

    requested = list(dict.fromkeys(data.student_ids))
    known = {
        student_id for (student_id,) in db.query(Student.id).filter(
            Student.id.in_(requested),
            Student.school_id == group.school_id,
        ).all()
    }
    unknown = [student_id for student_id in requested if student_id not in known]
    if unknown:
        bad_request(f"Students not found in this school: {', '.join(str(i) for i in unknown)}")

    existing = {
        student_id for (student_id,) in db.query(StudentGroupMember.student_id).filter(
            StudentGroupMember.group_id == group.id,
            StudentGroupMember.student_id.in_(requested),
        ).all()
    }
    added = 0
    for student_id in requested:
        if student_id in existing:
            continue
        db.add(StudentGroupMember(group_id=group.id, student_id=student_id, added_by=data.added_by))
        added += 1
    commit_or_rollback(db)

    logger.info("Group %s: %s members added, %s already present", group.id, added, len(requested) - added)
    return {"message": "Members synced", "added": added}
