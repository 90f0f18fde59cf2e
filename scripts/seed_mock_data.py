"""Seed a demo school with one user per role. Safe to run repeatedly."""
from datetime import date

from classhub.db.session import SessionLocal, create_tables
from classhub.models.school import School, Grade, Section, Classroom, Subject
from classhub.models.students import Student
from classhub.models.teachers import Teacher, TeacherSubject
from classhub.models.users import User
from classhub.core.security import get_password_hash
from classhub.schemas.users import UserRole, UserStatus

DEMO_PASSWORD = "Password@123"


def get_or_create(db, model, defaults=None, **filters):
    instance = db.query(model).filter_by(**filters).first()
    if instance:
        return instance
    instance = model(**filters, **(defaults or {}))
    db.add(instance)
    db.flush()
    return instance


def seed_user(db, email, role, **links):
    return get_or_create(
        db, User,
        email=email,
        defaults={
            "password_hash": get_password_hash(DEMO_PASSWORD),
            "role": role,
            "status": UserStatus.ACTIVE,
            **links,
        },
    )


def seed_mock_data():
    db = SessionLocal()
    try:
        school = get_or_create(db, School, name="Mock Public School", defaults={"district": "Mock District"})
        grade = get_or_create(db, Grade, school_id=school.id, level=8, defaults={"name": "Grade 8"})
        section = get_or_create(db, Section, grade_id=grade.id, label="A")
        classroom = get_or_create(
            db, Classroom,
            grade_id=grade.id, section_id=section.id, academic_year="2025-2026",
            defaults={"school_id": school.id},
        )
        teacher = get_or_create(
            db, Teacher,
            email="teacher.mock@mockschool.org",
            defaults={"school_id": school.id, "first_name": "Tina", "last_name": "Teacher"},
        )
        subject = get_or_create(
            db, Subject, school_id=school.id, code="MATH8", defaults={"name": "Mathematics Grade 8"})
        get_or_create(
            db, TeacherSubject,
            teacher_id=teacher.id, subject_id=subject.id, classroom_id=classroom.id,
            start_date=date(2025, 6, 1),
        )
        student = get_or_create(
            db, Student,
            school_id=school.id, code="STU-0001",
            defaults={
                "classroom_id": classroom.id,
                "class_teacher_id": teacher.id,
                "phone_number": "+15550001001",
                "first_name": "Sanjay",
                "last_name": "Student",
                "grade_level": grade.level,
                "section_label": section.label,
            },
        )

        seed_user(db, "admin.mock@mockschool.org", UserRole.ADMIN)
        seed_user(db, "gov.mock@mockschool.org", UserRole.GOVERNMENT)
        seed_user(db, "principal.mock@mockschool.org", UserRole.PRINCIPAL, school_id=school.id)
        seed_user(db, "teacher.mock@mockschool.org", UserRole.TEACHER, school_id=school.id, teacher_id=teacher.id)
        seed_user(db, "student.mock@mockschool.org", UserRole.STUDENT, school_id=school.id, student_id=student.id)

        db.commit()
        print(f"✅ Mock data ready (school {school.id}, classroom {classroom.id}); password: {DEMO_PASSWORD}")
    except Exception as e:
        db.rollback()
        print(f"❌ Failed to seed mock data: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    create_tables()
    seed_mock_data()
