from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload, selectinload

from classhub.core.app_logger import get_logger
from classhub.db.session import get_db
from classhub.models.school import School, Grade, Section, Classroom, Subject
from classhub.models.students import Student
from classhub.models.teachers import Teacher
from classhub.schemas.users import UserRole
from classhub.schemas.school import (
    SchoolCreate, SchoolOut, GradeCreate, GradeBulkCreate, GradeUpdate, GradeOut, GradeWithSections,
    SectionCreate, SectionBulkCreate, SectionUpdate, SectionOut, ClassroomCreate, ClassroomUpdate,
    ClassroomOut, ClassroomDetail, TeacherCreate, TeacherUpdate, TeacherOut, SubjectCreate,
    SubjectUpdate, SubjectOut, StudentCreate, StudentUpdate, StudentOut, StudentDetail)
from classhub.services.scope import Scope
from classhub.utils.permission import scoped, ALL_STAFF, ALL_ROLES
from classhub.utils.services import get_or_404, bad_request, conflict, commit_or_rollback

router = APIRouter()
logger = get_logger("core")

GOVERNING = (UserRole.ADMIN, UserRole.GOVERNMENT)
MANAGING = (UserRole.ADMIN, UserRole.GOVERNMENT, UserRole.PRINCIPAL)


def _ensure_school_exists(db: Session, school_id: int) -> School:
    return get_or_404(db, School, school_id, "School")


def _ensure_class_teacher(db: Session, teacher_id: Optional[int], school_id: int):
    """A homeroom teacher must belong to the student's school."""
    if teacher_id is None:
        return
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher")
    if teacher.school_id != school_id:
        bad_request("Class teacher must belong to the student's school")


# ---------------------------------------------------------------- schools

@router.post("/schools", response_model=SchoolOut, status_code=status.HTTP_201_CREATED)
def create_school(
    data: SchoolCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*GOVERNING)),
):
    school = School(name=data.name, district=data.district)
    db.add(school)
    commit_or_rollback(db, school)
    logger.info("School %s created by user %s", school.id, scope.user_id)
    return school


@router.get("/schools", response_model=List[SchoolOut])
def list_schools(
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(School)
    school_id = scope.school_filter()
    if school_id is not None:
        query = query.filter(School.id == school_id)
    return query.order_by(School.id).all()


# ---------------------------------------------------------------- grades

@router.post("/grades", response_model=GradeOut, status_code=status.HTTP_201_CREATED)
def create_grade(
    data: GradeCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*GOVERNING)),
):
    _ensure_school_exists(db, data.school_id)
    grade = Grade(school_id=data.school_id, name=data.name, level=data.level)
    db.add(grade)
    commit_or_rollback(db, grade)
    return grade


@router.post("/grades/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_grades(
    data: GradeBulkCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    _ensure_school_exists(db, data.school_id)
    scope.ensure_school(data.school_id, "Principals can only manage their own school")

    existing_levels = {
        level for (level,) in db.query(Grade.level).filter(Grade.school_id == data.school_id).all()
    }
    created = []
    skipped = []
    for level in range(data.start_level, data.end_level + 1):
        if level in existing_levels:
            skipped.append(level)
            continue
        grade = Grade(
            school_id=data.school_id,
            level=level,
            name=data.name_format.replace("{level}", str(level)),
        )
        db.add(grade)
        created.append(grade)
    commit_or_rollback(db, *created)

    return {
        "created": [GradeOut.model_validate(g).model_dump(by_alias=True) for g in created],
        "skippedLevels": skipped,
    }


@router.get("/grades", response_model=List[GradeWithSections])
def list_grades(
    school_id: Optional[int] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Grade).options(selectinload(Grade.sections))
    school_filter = scope.school_filter(school_id)
    if school_filter is not None:
        query = query.filter(Grade.school_id == school_filter)
    return query.order_by(Grade.school_id, Grade.level).all()


@router.patch("/grades/{grade_id}", response_model=GradeOut)
def update_grade(
    grade_id: int,
    data: GradeUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    grade = get_or_404(db, Grade, grade_id, "Grade")
    scope.ensure_school(grade.school_id)
    for field, value in data.changes().items():
        setattr(grade, field, value)
    commit_or_rollback(db, grade)
    return grade


# ---------------------------------------------------------------- sections

def _ensure_label_free(db: Session, grade_id: int, label: str, exclude_id: Optional[int] = None):
    query = db.query(Section).filter(Section.grade_id == grade_id, Section.label == label)
    if exclude_id is not None:
        query = query.filter(Section.id != exclude_id)
    if query.first():
        conflict(f"Section {label} already exists for this grade")


@router.post("/sections", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def create_section(
    data: SectionCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*GOVERNING)),
):
    get_or_404(db, Grade, data.grade_id, "Grade")
    _ensure_label_free(db, data.grade_id, data.label)
    section = Section(grade_id=data.grade_id, label=data.label)
    db.add(section)
    commit_or_rollback(db, section)
    return section


@router.post("/sections/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_sections(
    data: SectionBulkCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    grade = get_or_404(db, Grade, data.grade_id, "Grade")
    scope.ensure_school(grade.school_id, "Principals can only manage their own school")

    existing = {label for (label,) in db.query(Section.label).filter(Section.grade_id == grade.id).all()}
    created = []
    for label in data.labels:
        if label in existing:
            continue
        section = Section(grade_id=grade.id, label=label)
        db.add(section)
        created.append(section)
    commit_or_rollback(db, *created)

    return {
        "created": [SectionOut.model_validate(s).model_dump(by_alias=True) for s in created],
        "skippedLabels": [label for label in data.labels if label in existing],
    }


@router.get("/sections", response_model=List[SectionOut])
def list_sections(
    grade_id: Optional[int] = Query(None, alias="gradeId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Section)
    if grade_id is not None:
        query = query.filter(Section.grade_id == grade_id)
    school_id = scope.school_filter()
    if school_id is not None:
        query = query.join(Grade, Section.grade_id == Grade.id).filter(Grade.school_id == school_id)
    return query.order_by(Section.grade_id, Section.label).all()


@router.patch("/sections/{section_id}", response_model=SectionOut)
def update_section(
    section_id: int,
    data: SectionUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    section = get_or_404(db, Section, section_id, "Section")
    scope.ensure_school(section.grade.school_id)
    changes = data.changes()
    if "label" in changes:
        _ensure_label_free(db, section.grade_id, changes["label"], exclude_id=section.id)
        section.label = changes["label"]
    commit_or_rollback(db, section)
    return section


# ---------------------------------------------------------------- classrooms

@router.post("/classrooms", response_model=ClassroomOut, status_code=status.HTTP_201_CREATED)
def create_classroom(
    data: ClassroomCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    scope.ensure_school(data.school_id, "Principals can only create classrooms in their own school")
    _ensure_school_exists(db, data.school_id)
    grade = get_or_404(db, Grade, data.grade_id, "Grade")
    section = get_or_404(db, Section, data.section_id, "Section")
    if grade.school_id != data.school_id:
        bad_request("Grade does not belong to the specified school")
    if section.grade_id != grade.id:
        bad_request("Section does not belong to the specified grade")

    duplicate = db.query(Classroom).filter(
        Classroom.grade_id == grade.id,
        Classroom.section_id == section.id,
        Classroom.academic_year == data.academic_year,
    ).first()
    if duplicate:
        conflict("Classroom already exists for this grade, section and academic year")

    classroom = Classroom(
        school_id=data.school_id,
        grade_id=grade.id,
        section_id=section.id,
        academic_year=data.academic_year,
    )
    db.add(classroom)
    commit_or_rollback(db, classroom)
    return classroom


@router.get("/classrooms", response_model=List[ClassroomDetail])
def list_classrooms(
    school_id: Optional[int] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Classroom).options(joinedload(Classroom.grade), joinedload(Classroom.section))
    school_filter = scope.school_filter(school_id)
    if school_filter is not None:
        query = query.filter(Classroom.school_id == school_filter)
    return query.order_by(Classroom.id).all()


@router.patch("/classrooms/{classroom_id}", response_model=ClassroomOut)
def update_classroom(
    classroom_id: int,
    data: ClassroomUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    classroom = get_or_404(db, Classroom, classroom_id, "Classroom")
    scope.ensure_school(classroom.school_id)
    for field, value in data.changes().items():
        setattr(classroom, field, value)
    commit_or_rollback(db, classroom)
    return classroom


# ---------------------------------------------------------------- teachers

@router.post("/teachers", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    data: TeacherCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    scope.ensure_school(data.school_id, "Principals can only create teachers in their own school")
    _ensure_school_exists(db, data.school_id)
    teacher = Teacher(**data.model_dump())
    db.add(teacher)
    commit_or_rollback(db, teacher)
    return teacher


@router.get("/teachers", response_model=List[TeacherOut])
def list_teachers(
    school_id: Optional[int] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Teacher)
    school_filter = scope.school_filter(school_id)
    if school_filter is not None:
        query = query.filter(Teacher.school_id == school_filter)
    return query.order_by(Teacher.id).all()


@router.patch("/teachers/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: int,
    data: TeacherUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    teacher = get_or_404(db, Teacher, teacher_id, "Teacher")
    scope.ensure_school(teacher.school_id)
    for field, value in data.changes().items():
        setattr(teacher, field, value)
    commit_or_rollback(db, teacher)
    return teacher


# ---------------------------------------------------------------- subjects

def _ensure_code_free(db: Session, school_id: int, code: str, exclude_id: Optional[int] = None):
    query = db.query(Subject).filter(Subject.school_id == school_id, Subject.code == code)
    if exclude_id is not None:
        query = query.filter(Subject.id != exclude_id)
    if query.first():
        conflict(f"Subject code {code} already exists in this school")


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    data: SubjectCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*GOVERNING)),
):
    _ensure_school_exists(db, data.school_id)
    _ensure_code_free(db, data.school_id, data.code)
    subject = Subject(**data.model_dump())
    db.add(subject)
    commit_or_rollback(db, subject)
    return subject


@router.get("/subjects", response_model=List[SubjectOut])
def list_subjects(
    school_id: Optional[int] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Subject)
    school_filter = scope.school_filter(school_id)
    if school_filter is not None:
        query = query.filter(Subject.school_id == school_filter)
    return query.order_by(Subject.id).all()


@router.patch("/subjects/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: int,
    data: SubjectUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    subject = get_or_404(db, Subject, subject_id, "Subject")
    scope.ensure_school(subject.school_id)
    changes = data.changes()
    if "code" in changes:
        _ensure_code_free(db, subject.school_id, changes["code"], exclude_id=subject.id)
    for field, value in changes.items():
        setattr(subject, field, value)
    commit_or_rollback(db, subject)
    return subject


# ---------------------------------------------------------------- students

@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    data: StudentCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    scope.ensure_school(data.school_id, "Principals can only create students in their own school")

    classroom = get_or_404(db, Classroom, data.classroom_id, "Classroom")
    if classroom.school_id != data.school_id:
        bad_request("Classroom does not belong to the specified school")
    _ensure_class_teacher(db, data.class_teacher_id, data.school_id)

    student = Student(
        **data.model_dump(),
        grade_level=classroom.grade.level,
        section_label=classroom.section.label,
    )
    db.add(student)
    commit_or_rollback(db, student)
    logger.info("Student %s enrolled in classroom %s", student.id, classroom.id)
    return student


@router.get("/students", response_model=List[StudentOut])
def list_students(
    classroom_id: Optional[int] = Query(None, alias="classroomId"),
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    query = db.query(Student)
    if classroom_id is not None:
        query = query.filter(Student.classroom_id == classroom_id)
    if scope.is_teacher:
        query = query.filter(Student.class_teacher_id == scope.teacher_id)
    elif scope.school_filter() is not None:
        query = query.filter(Student.school_id == scope.school_filter())
    return query.order_by(Student.id).all()


@router.get("/students/{student_id}", response_model=StudentDetail)
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    student = get_or_404(db, Student, student_id, "Student")
    scope.ensure_student(student, homeroom_only=True)
    return student


@router.patch("/students/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    data: StudentUpdate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*MANAGING)),
):
    student = get_or_404(db, Student, student_id, "Student")
    scope.ensure_school(student.school_id)
    changes = data.changes()

    if "classroom_id" in changes and changes["classroom_id"] != student.classroom_id:
        classroom = get_or_404(db, Classroom, changes["classroom_id"], "Classroom")
        if classroom.school_id != student.school_id:
            bad_request("Classroom does not belong to the student's school")
        student.grade_level = classroom.grade.level
        student.section_label = classroom.section.label
    if "class_teacher_id" in changes:
        _ensure_class_teacher(db, changes["class_teacher_id"], student.school_id)

    for field, value in changes.items():
        setattr(student, field, value)
    commit_or_rollback(db, student)
    return student
