# app/services/tutor_service.py
# Tutor onboarding: profile submission → admin review → APPLY capability
#
#   submit_tutor_profile  user → Tutor(pending), admins notified
#   review_tutor          admin → approved | rejected
#                         approved promotes the account role to 'tutor'

import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.capabilities import ADMIN, capabilities_for
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    NotFoundException,
)
from app.models.tutor import Tutor
from app.models.user import User
from app.services import notification_service

logger = logging.getLogger("tutorlink.tutors")

REVIEW_DECISIONS = ("approved", "rejected")

PROFILE_FIELDS = (
    "name",
    "phone",
    "photo_url",
    "qualification",
    "institution",
    "experience_years",
    "experience_months",
    "subjects",
    "bio",
    "district",
    "location",
    "expected_salary",
    "mode",
    "time",
    "id_card_url",
)


def get_tutor(db: Session, tutor_id: UUID) -> Tutor:
    tutor = db.get(Tutor, tutor_id, populate_existing=True)
    if tutor is None:
        raise NotFoundException("Tutor not found.")
    return tutor


def submit_tutor_profile(db: Session, user: User, fields: Dict[str, Any]) -> Tutor:
    """
    Create a pending tutor profile for `user`. One profile per account/email.
    Every admin gets a TUTOR_APPLICATION notification.
    """
    missing = [
        name for name in ("name", "id_card_url", "district")
        if not (fields.get(name) or "").strip()
    ]
    if not fields.get("subjects"):
        missing.append("subjects")
    if missing:
        raise InvalidArgumentException(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing": missing},
        )

    if db.get(User, user.id) is None:
        raise NotFoundException("User not found.")

    existing = db.query(Tutor).filter(
        (Tutor.email == user.email) | (Tutor.user_id == user.id)
    ).first()
    if existing:
        raise ConflictException("A tutor profile already exists for this account.")

    values = {name: fields[name] for name in PROFILE_FIELDS if name in fields}
    tutor = Tutor(
        user_id=user.id,
        email=user.email,
        status="pending",
        submitted_at=datetime.now(timezone.utc),
        **values,
    )
    db.add(tutor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException("A tutor profile already exists for this account.")

    logger.info(f"Tutor profile submitted: tutor={tutor.id} user={user.id}")

    admin_emails = [
        email for (email,) in db.query(User.email).filter(
            User.role == "admin",
            User.is_active == True,  # noqa: E712
        ).all()
    ]
    notification_service.emit_many(
        db,
        admin_emails,
        notification_type="TUTOR_APPLICATION",
        title="New Tutor Application",
        message=f"{tutor.name} has submitted a tutor profile for review",
        link="/dashboard/admin/tutors",
    )
    return tutor


def review_tutor(db: Session, tutor_id: UUID, admin: User, decision: str) -> Tutor:
    """
    Admin approves or rejects a tutor profile.

    Approval grants APPLY (via capabilities_for) and promotes the account
    to role 'tutor'. Rejection revokes APPLY; a tutor account goes back to
    'student' so it can still post tuitions.
    """
    if ADMIN not in capabilities_for(admin):
        raise ForbiddenException("Admin access required.")
    if decision not in REVIEW_DECISIONS:
        raise InvalidArgumentException(
            "Invalid status value.",
            details={"allowed": list(REVIEW_DECISIONS)},
        )

    tutor = get_tutor(db, tutor_id)
    previous = tutor.status
    tutor.status = decision
    tutor.reviewed_at = datetime.now(timezone.utc)

    user = db.get(User, tutor.user_id)
    if user is not None and user.role != "admin":
        if decision == "approved":
            user.role = "tutor"
        elif user.role == "tutor":
            user.role = "student"

    db.commit()
    logger.info(f"Tutor {tutor.id}: {previous} → {decision} by admin={admin.id}")

    if decision == "approved":
        notification_service.emit(
            db,
            target_email=tutor.email,
            notification_type="PROFILE_APPROVED",
            title="Profile Approved",
            message="Your tutor profile has been approved. You can now apply to tuitions.",
            link="/dashboard/tuitions",
        )
    else:
        notification_service.emit(
            db,
            target_email=tutor.email,
            notification_type="PROFILE_REJECTED",
            title="Profile Rejected",
            message="Your tutor profile was not approved. Please review your details and contact support.",
            link="/dashboard/profile",
        )
    return get_tutor(db, tutor.id)
