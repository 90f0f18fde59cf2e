from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from classhub.db.session import Base, BigId


class School(Base):
    __tablename__ = "schools"

    id = Column(BigId, primary_key=True, index=True)
    name = Column(String, nullable=False)
    district = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now())

    grades = relationship("Grade", back_populates="school")
    classrooms = relationship("Classroom", back_populates="school")
    teachers = relationship("Teacher", back_populates="school")
    subjects = relationship("Subject", back_populates="school")
    students = relationship("Student", back_populates="school")


class Grade(Base):
    __tablename__ = "grades"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    level = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    school = relationship("School", back_populates="grades")
    sections = relationship("Section", back_populates="grade", order_by="Section.label")


class Section(Base):
    __tablename__ = "sections"

    id = Column(BigId, primary_key=True, index=True)
    grade_id = Column(BigId, ForeignKey("grades.id"), nullable=False)
    label = Column(String(10), nullable=False)

    grade = relationship("Grade", back_populates="sections")

    __table_args__ = (
        UniqueConstraint("grade_id", "label", name="uq_section_grade_label"),
    )


class Classroom(Base):
    __tablename__ = "classrooms"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False, index=True)
    grade_id = Column(BigId, ForeignKey("grades.id"), nullable=False)
    section_id = Column(BigId, ForeignKey("sections.id"), nullable=False)
    academic_year = Column(String(9), nullable=False)

    school = relationship("School", back_populates="classrooms")
    grade = relationship("Grade")
    section = relationship("Section")
    students = relationship("Student", back_populates="classroom")

    __table_args__ = (
        UniqueConstraint("grade_id", "section_id", "academic_year", name="uq_classroom_grade_section_year"),
    )


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False)
    code = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)

    school = relationship("School", back_populates="subjects")

    __table_args__ = (
        UniqueConstraint("school_id", "code", name="uq_subject_school_code"),
    )
