# app/models/notification.py
# In-app notification queue for marketplace events

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, String, Text, Uuid

from app.db.base_class import Base

NOTIFICATION_TYPES = (
    "NEW_APPLICATION",       # A tutor applied to your tuition
    "APPLICATION_ACCEPTED",  # Student accepted your application
    "TUITION_STARTED",       # Payment settled, tuition is ongoing
    "NEW_REVIEW",            # Student reviewed your tuition
    "TUTOR_APPLICATION",     # (admins) a user submitted a tutor profile
    "PROFILE_APPROVED",      # Admin approved your tutor profile
    "PROFILE_REJECTED",      # Admin rejected your tutor profile
)


class Notification(Base):
    """
    In-app notification addressed by email.
    Written best-effort by notification_service.emit() after the triggering
    transition has committed. Delivered via GET /api/v1/notifications.
    """
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_email = Column(String(255), nullable=False, index=True)

    # ── Type ──────────────────────────────────────────────────────────────────
    notification_type = Column(
        Enum(*NOTIFICATION_TYPES, name="notification_type_enum"),
        nullable=False,
        index=True,
    )

    # ── Content ───────────────────────────────────────────────────────────────
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)

    # ── Deep Link ─────────────────────────────────────────────────────────────
    # Frontend uses this to navigate on click
    link = Column(String(512), nullable=True)               # e.g. "/dashboard/applications"

    # ── Read Status ───────────────────────────────────────────────────────────
    is_read = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Notification to={self.user_email} "
            f"type={self.notification_type} read={self.is_read}>"
        )
