# app/api/v1/endpoints/notifications.py
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.dependencies import require_login
from app.db.session import get_db
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import (
    MessageResponse,
    NotificationListResponse,
    NotificationResponse,
)

router = APIRouter()


def _to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        type=n.notification_type,
        title=n.title,
        message=n.message or "",
        link=n.link,
        is_read=n.is_read,
        created_at=n.created_at,
    )


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List own notifications",
)
def list_notifications(
    unread_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.user_email == current_user.email)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712

    total = query.count()
    unread_count = db.query(Notification).filter(
        and_(Notification.user_email == current_user.email, Notification.is_read == False)  # noqa: E712
    ).count()

    notifications = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

    return NotificationListResponse(
        notifications=[_to_response(n) for n in notifications],
        unread_count=unread_count,
        total=total,
    )


@router.patch(
    "/read-all",
    response_model=MessageResponse,
    summary="Mark all notifications as read",
)
def mark_all_read(
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    db.query(Notification).filter(
        and_(Notification.user_email == current_user.email, Notification.is_read == False)  # noqa: E712
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return MessageResponse(message="All notifications marked as read.")


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification as read",
)
def mark_read(
    notification_id: UUID,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    n = db.query(Notification).filter(
        and_(Notification.id == notification_id, Notification.user_email == current_user.email)
    ).first()
    if not n:
        raise HTTPException(status_code=404, detail="Notification not found.")
    n.is_read = True
    db.commit()
    return _to_response(n)
