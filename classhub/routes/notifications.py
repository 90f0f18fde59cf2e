from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from classhub.core.app_logger import get_logger
from classhub.db.session import get_db
from classhub.models.notifications import Notification, NotificationTarget, TargetType
from classhub.models.school import School
from classhub.schemas.notifications import (
    NotificationCreate, NotificationOut, NotificationWithTargets, PublicNotificationList)
from classhub.services.scope import Scope
from classhub.utils.dates import to_naive_utc, utcnow
from classhub.utils.permission import scoped, ALL_STAFF, ALL_ROLES
from classhub.utils.services import get_or_404, bad_request, commit_or_rollback

router = APIRouter()
public_router = APIRouter()
logger = get_logger("notifications")


def _active(query, now):
    return query.filter(Notification.active_from <= now, Notification.active_till >= now)


@router.post("/notifications", status_code=status.HTTP_201_CREATED)
def create_notification(
    data: NotificationCreate,
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_STAFF)),
):
    get_or_404(db, School, data.school_id, "School")
    scope.ensure_school(data.school_id)

    notification = Notification(
        school_id=data.school_id,
        title=data.title,
        body=data.body,
        category=data.category,
        active_from=to_naive_utc(data.active_from) or utcnow(),
        active_till=to_naive_utc(data.active_till),
        priority=data.priority,
        created_by=data.created_by or scope.user_id,
        is_public=data.is_public,
    )
    buckets = (
        (TargetType.STUDENT, data.targets.student_ids),
        (TargetType.STUDENT_GROUP, data.targets.student_group_ids),
        (TargetType.TEACHER, data.targets.teacher_ids),
        (TargetType.CLASSROOM, data.targets.classroom_ids),
    )
    for target_type, ids in buckets:
        for target_id in ids or []:
            notification.targets.append(NotificationTarget(target_type=target_type.value, target_id=target_id))

    # notice and fan-out rows commit together
    db.add(notification)
    commit_or_rollback(db, notification)

    logger.info("Notification %s created with %s targets", notification.id, len(notification.targets))
    return {
        "notification": NotificationWithTargets.model_validate(notification).model_dump(mode="json", by_alias=True),
        "targets": len(notification.targets),
    }


@router.get("/notifications/active", response_model=List[NotificationWithTargets])
def list_active_notifications(
    db: Session = Depends(get_db),
    scope: Scope = Depends(scoped(*ALL_ROLES)),
):
    query = _active(db.query(Notification).options(selectinload(Notification.targets)), utcnow())
    school_id = scope.school_filter()
    if school_id is not None:
        query = query.filter(Notification.school_id == school_id)
    return query.order_by(Notification.active_till, Notification.id).all()


@public_router.get("/notifications/public", response_model=PublicNotificationList)
def list_public_notifications(
    school_id: Optional[str] = Query(None, alias="schoolId"),
    db: Session = Depends(get_db),
):
    query = _active(db.query(Notification).filter(Notification.is_public.is_(True)), utcnow())
    if school_id:
        try:
            query = query.filter(Notification.school_id == int(school_id))
        except ValueError:
            bad_request("Invalid schoolId")

    items = query.order_by(Notification.active_till, Notification.id).all()
    return PublicNotificationList(
        total=len(items),
        items=[NotificationOut.model_validate(item) for item in items],
    )
