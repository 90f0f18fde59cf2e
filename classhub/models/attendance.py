from sqlalchemy import Column, String, ForeignKey, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
from classhub.db.session import Base, BigId


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False)
    classroom_id = Column(BigId, ForeignKey("classrooms.id"), nullable=False)
    session_date = Column(Date, nullable=False)
    starts_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())

    classroom = relationship("Classroom")
    records = relationship(
        "StudentAttendance",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="StudentAttendance.student_id",
    )

    __table_args__ = (
        UniqueConstraint("classroom_id", "session_date", name="uq_attendance_classroom_date"),
    )


class StudentAttendance(Base):
    __tablename__ = "student_attendance"

    id = Column(BigId, primary_key=True, index=True)
    attendance_session_id = Column(BigId, ForeignKey("attendance_sessions.id"), nullable=False)
    student_id = Column(BigId, ForeignKey("students.id"), nullable=False, index=True)
    status = Column(String(10), nullable=False)
    recorded_at = Column(DateTime, default=func.now(), onupdate=func.now())

    session = relationship("AttendanceSession", back_populates="records")
    student = relationship("Student", back_populates="attendances")

    __table_args__ = (
        UniqueConstraint("attendance_session_id", "student_id", name="uq_attendance_session_student"),
    )
