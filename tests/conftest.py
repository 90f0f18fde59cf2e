import os
from datetime import date
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ATTENDANCE_DEVICE_KEY"] = "device-secret"

import pytest
from fastapi.testclient import TestClient

from classhub.core.security import get_password_hash
from classhub.db.session import SessionLocal, create_tables, drop_tables
from classhub.main import app
from classhub.models.school import School, Grade, Section, Classroom, Subject
from classhub.models.students import Student
from classhub.models.teachers import Teacher, TeacherSubject
from classhub.models.users import User
from classhub.schemas.users import UserRole

PASSWORD = "Password@123"
DEVICE_HEADERS = {"X-Device-Key": "device-secret"}


@pytest.fixture(autouse=True)
def fresh_db():
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(PASSWORD)


@pytest.fixture
def world(password_hash):
    """School S with classroom C, homeroom teacher T and student A, plus a second school."""
    db = SessionLocal()
    try:
        school = School(name="Sunrise High", district="North")
        other_school = School(name="Riverside High", district="South")
        db.add_all([school, other_school])
        db.flush()

        grade = Grade(school_id=school.id, name="Grade 8", level=8)
        other_grade = Grade(school_id=other_school.id, name="Grade 8", level=8)
        db.add_all([grade, other_grade])
        db.flush()
        section = Section(grade_id=grade.id, label="A")
        other_section = Section(grade_id=other_grade.id, label="A")
        db.add_all([section, other_section])
        db.flush()

        classroom = Classroom(school_id=school.id, grade_id=grade.id, section_id=section.id, academic_year="2025-2026")
        other_classroom = Classroom(
            school_id=other_school.id, grade_id=other_grade.id, section_id=other_section.id,
            academic_year="2025-2026")
        db.add_all([classroom, other_classroom])
        db.flush()

        homeroom_teacher = Teacher(school_id=school.id, first_name="Tara", last_name="Homeroom", email="tara@sunrise.edu")
        subject_teacher = Teacher(school_id=school.id, first_name="Sam", last_name="Science", email="sam@sunrise.edu")
        other_teacher = Teacher(school_id=other_school.id, first_name="Omar", last_name="Other", email="omar@riverside.edu")
        db.add_all([homeroom_teacher, subject_teacher, other_teacher])
        db.flush()

        subject = Subject(school_id=school.id, code="MATH8", name="Mathematics")
        db.add(subject)
        db.flush()

        student = Student(
            school_id=school.id, classroom_id=classroom.id, class_teacher_id=homeroom_teacher.id,
            code="STU-001", phone_number="+15550001001", first_name="Asha", last_name="Student",
            grade_level=8, section_label="A",
        )
        classmate = Student(
            school_id=school.id, classroom_id=classroom.id, class_teacher_id=homeroom_teacher.id,
            code="STU-002", first_name="Ben", last_name="Student", grade_level=8, section_label="A",
        )
        other_student = Student(
            school_id=other_school.id, classroom_id=other_classroom.id, code="STU-900",
            first_name="Omid", last_name="Elsewhere", grade_level=8, section_label="A",
        )
        db.add_all([student, classmate, other_student])
        db.flush()

        def user(email, role, **links):
            db.add(User(email=email, password_hash=password_hash, role=role, status="active", **links))

        user("admin@classhub.io", UserRole.ADMIN)
        user("gov@classhub.io", UserRole.GOVERNMENT)
        user("principal@sunrise.edu", UserRole.PRINCIPAL, school_id=school.id)
        user("principal@riverside.edu", UserRole.PRINCIPAL, school_id=other_school.id)
        user("tara@sunrise.edu", UserRole.TEACHER, teacher_id=homeroom_teacher.id)
        user("sam@sunrise.edu", UserRole.TEACHER, teacher_id=subject_teacher.id)
        user("asha@sunrise.edu", UserRole.STUDENT, student_id=student.id)
        user("ben@sunrise.edu", UserRole.STUDENT, student_id=classmate.id)
        db.commit()

        return SimpleNamespace(
            school_id=school.id,
            other_school_id=other_school.id,
            grade_id=grade.id,
            section_id=section.id,
            classroom_id=classroom.id,
            other_classroom_id=other_classroom.id,
            teacher_id=homeroom_teacher.id,
            subject_teacher_id=subject_teacher.id,
            other_teacher_id=other_teacher.id,
            subject_id=subject.id,
            student_id=student.id,
            classmate_id=classmate.id,
            other_student_id=other_student.id,
        )
    finally:
        db.close()


@pytest.fixture
def login(client):
    """Return auth headers for a seeded user, logging in through the API."""
    tokens = {}

    def _login(email: str) -> dict:
        if email not in tokens:
            response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
            assert response.status_code == 200, response.text
            tokens[email] = {"Authorization": f"Bearer {response.json()['token']}"}
        return tokens[email]

    return _login


@pytest.fixture
def subject_assignment(world):
    """Sam teaches Mathematics in classroom C without being its homeroom teacher."""
    db = SessionLocal()
    try:
        assignment = TeacherSubject(
            teacher_id=world.subject_teacher_id,
            subject_id=world.subject_id,
            classroom_id=world.classroom_id,
            start_date=date(2025, 6, 1),
        )
        db.add(assignment)
        db.commit()
        return assignment.id
    finally:
        db.close()
