from sqlalchemy import Column, Date, DateTime, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from classhub.db.session import Base, BigId


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    created_at = Column(DateTime, default=func.now())

    school = relationship("School", back_populates="teachers")
    subject_assignments = relationship("TeacherSubject", back_populates="teacher")


class TeacherSubject(Base):
    """A teacher teaching a subject, optionally pinned to one classroom."""
    __tablename__ = "teacher_subjects"

    id = Column(BigId, primary_key=True, index=True)
    teacher_id = Column(BigId, ForeignKey("teachers.id"), nullable=False)
    subject_id = Column(BigId, ForeignKey("subjects.id"), nullable=False)
    classroom_id = Column(BigId, ForeignKey("classrooms.id"), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    teacher = relationship("Teacher", back_populates="subject_assignments")
    subject = relationship("Subject")
    classroom = relationship("Classroom")

    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", "classroom_id", "start_date", name="unique_teacher_assignment"),
    )
