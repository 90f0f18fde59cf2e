from sqlalchemy import Column, Float, Integer, String, ForeignKey, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from classhub.db.session import Base, BigId


class Exam(Base):
    __tablename__ = "exams"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False)
    subject_id = Column(BigId, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(BigId, ForeignKey("teachers.id"), nullable=False)
    classroom_id = Column(BigId, ForeignKey("classrooms.id"), nullable=True)
    name = Column(String(150), nullable=False)
    total_marks = Column(Integer, nullable=False)
    exam_date = Column(Date, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    subject = relationship("Subject")
    results = relationship("StudentExamResult", back_populates="exam", cascade="all, delete-orphan")


class StudentExamResult(Base):
    __tablename__ = "student_exam_results"

    id = Column(BigId, primary_key=True, index=True)
    exam_id = Column(BigId, ForeignKey("exams.id"), nullable=False)
    student_id = Column(BigId, ForeignKey("students.id"), nullable=False, index=True)
    score = Column(Float, nullable=False)
    grade = Column(String(5), nullable=True)
    recorded_at = Column(DateTime, default=func.now(), onupdate=func.now())

    exam = relationship("Exam", back_populates="results")

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_student_result"),
    )
