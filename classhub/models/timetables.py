from sqlalchemy import Column, Integer, String, ForeignKey, Time, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from classhub.db.session import Base, BigId


class ClassroomTimetable(Base):
    __tablename__ = "classroom_timetables"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False)
    classroom_id = Column(BigId, ForeignKey("classrooms.id"), nullable=False)
    week_day = Column(Integer, nullable=False)
    period = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    label = Column(String(80), nullable=False)
    location = Column(String(80), nullable=True)
    notes = Column(String(255), nullable=True)
    teacher_subject_id = Column(BigId, ForeignKey("teacher_subjects.id", ondelete="SET NULL"), nullable=True)

    teacher_subject = relationship("TeacherSubject")

    __table_args__ = (
        UniqueConstraint("classroom_id", "week_day", "period", name="uq_timetable_classroom_slot"),
        Index("ix_timetable_school_classroom_day", "school_id", "classroom_id", "week_day"),
    )
