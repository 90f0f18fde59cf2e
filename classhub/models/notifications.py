from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, DateTime, Text, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
from classhub.db.session import Base, BigId


class NotificationCategory(str, Enum):
    GENERAL = "general"
    EXAM = "exam"
    ATTENDANCE = "attendance"
    EMERGENCY = "emergency"


class TargetType(str, Enum):
    STUDENT = "student"
    STUDENT_GROUP = "student_group"
    TEACHER = "teacher"
    CLASSROOM = "classroom"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(BigId, primary_key=True, index=True)
    school_id = Column(BigId, ForeignKey("schools.id"), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default=NotificationCategory.GENERAL.value)
    active_from = Column(DateTime, nullable=False)
    active_till = Column(DateTime, nullable=False)
    priority = Column(Integer, nullable=False, default=3)
    created_by = Column(BigId, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())

    targets = relationship("NotificationTarget", back_populates="notification", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_notification_public_active_till", "is_public", "active_till"),
    )


class NotificationTarget(Base):
    __tablename__ = "notification_targets"

    id = Column(BigId, primary_key=True, index=True)
    notification_id = Column(BigId, ForeignKey("notifications.id"), nullable=False)
    target_type = Column(String(20), nullable=False)
    target_id = Column(BigId, nullable=False)

    notification = relationship("Notification", back_populates="targets")
