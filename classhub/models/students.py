from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, Date, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
from classhub.db.session import Base, BigId


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    DROPPED = "dropped"
    COMPLETED = "completed"


class GroupVisibility(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


class Student(Base):
    __tablename__ = "students"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False, index=True)
    classroom_id = Column(BigId, ForeignKey("classrooms.id"), nullable=False, index=True)
    class_teacher_id = Column(BigId, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True, index=True)
    code = Column(String(30), nullable=False)
    phone_number = Column(String(16), nullable=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    gender = Column(String(1), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    # captured from the classroom when enrolled, not joined live
    grade_level = Column(Integer, nullable=False)
    section_label = Column(String(10), nullable=False)
    enrolled_at = Column(DateTime, default=func.now())
    active = Column(Boolean, default=True, nullable=False)

    school = relationship("School", back_populates="students")
    classroom = relationship("Classroom", back_populates="students")
    class_teacher = relationship("Teacher")
    subjects = relationship("StudentSubject", back_populates="student")
    attendances = relationship("StudentAttendance", back_populates="student")


class StudentSubject(Base):
    __tablename__ = "student_subjects"

    id = Column(BigId, primary_key=True, index=True)
    student_id = Column(BigId, ForeignKey("students.id"), nullable=False)
    teacher_subject_id = Column(BigId, ForeignKey("teacher_subjects.id"), nullable=False)
    enrolled_on = Column(Date, nullable=False)
    status = Column(String(10), nullable=False, default=EnrollmentStatus.ACTIVE.value)

    student = relationship("Student", back_populates="subjects")
    teacher_subject = relationship("TeacherSubject")

    __table_args__ = (
        UniqueConstraint("student_id", "teacher_subject_id", name="uq_student_teacher_subject"),
    )


class StudentGroup(Base):
    __tablename__ = "student_groups"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    visibility = Column(String(10), nullable=False, default=GroupVisibility.MANUAL.value)
    created_at = Column(DateTime, default=func.now())

    members = relationship("StudentGroupMember", back_populates="group", cascade="all, delete-orphan")


class StudentGroupMember(Base):
    __tablename__ = "student_group_members"

    id = Column(BigId, primary_key=True, index=True)
    group_id = Column(BigId, ForeignKey("student_groups.id"), nullable=False)
    student_id = Column(BigId, ForeignKey("students.id"), nullable=False)
    added_by = Column(BigId, nullable=True)
    added_at = Column(DateTime, default=func.now())

    group = relationship("StudentGroup", back_populates="members")

    __table_args__ = (
        UniqueConstraint("group_id", "student_id", name="uq_group_member"),
    )
