from pydantic import Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime

from classhub.schemas.base import CamelModel
from classhub.utils.dates import to_naive_utc
from classhub.models.notifications import NotificationCategory


class NotificationTargets(CamelModel):
    student_ids: Optional[List[int]] = None
    student_group_ids: Optional[List[int]] = None
    teacher_ids: Optional[List[int]] = None
    classroom_ids: Optional[List[int]] = None

    def any(self) -> bool:
        return any([self.student_ids, self.student_group_ids, self.teacher_ids, self.classroom_ids])


class NotificationCreate(CamelModel):
    school_id: int
    title: str = Field(min_length=3, max_length=200)
    body: str = Field(min_length=3)
    category: NotificationCategory = NotificationCategory.GENERAL
    active_from: Optional[datetime] = None
    active_till: datetime
    priority: int = Field(default=3, ge=1, le=5)
    created_by: Optional[int] = None
    is_public: bool = False
    targets: NotificationTargets = Field(default_factory=NotificationTargets)

    @field_validator("active_from", "active_till")
    @classmethod
    def as_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_targets(self):
        if not self.is_public and not self.targets.any():
            raise ValueError("Provide at least one target unless the notice is public")
        return self

    @model_validator(mode="after")
    def check_window(self):
        if self.active_from and self.active_till < self.active_from:
            raise ValueError("activeTill must not precede activeFrom")
        return self


class NotificationTargetOut(CamelModel):
    id: int
    target_type: str
    target_id: int


class NotificationOut(CamelModel):
    id: int
    school_id: int
    title: str
    body: str
    category: str
    active_from: datetime
    active_till: datetime
    priority: int
    created_by: Optional[int] = None
    is_public: bool


class NotificationWithTargets(NotificationOut):
    targets: List[NotificationTargetOut] = []


class PublicNotificationList(CamelModel):
    total: int
    items: List[NotificationOut]
