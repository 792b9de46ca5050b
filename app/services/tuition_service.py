# app/services/tuition_service.py
# Tuition lifecycle controller
#
#   open → assigned → ongoing → completed
#   open → closed
#
# Students create, edit, withdraw and delete their own tuitions here.
# Two edges belong to other services because they carry data only those
# services have:
#   open → assigned   matching_service.decide_application (the accepted tutor)
#   assigned → ongoing payment_service.confirm_payment   (the settled payment)
# The assigned tutor closes the loop with tutor_complete (ongoing → completed).
#
# Every status write is a compare-and-set: UPDATE ... WHERE status = <expected>.
# A zero rowcount means someone else moved the tuition first.

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.capabilities import POST_TUITION, capabilities_for
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    InvalidStateException,
    InvalidTransitionException,
    NoOpException,
    NotFoundException,
)
from app.models.application import Application
from app.models.tuition import TUITION_TRANSITIONS, Tuition
from app.models.user import User

logger = logging.getLogger("tutorlink.tuitions")

# Fields a student may edit after posting. Anything else is ignored.
EDITABLE_FIELDS = (
    "class_level",
    "subjects",
    "days",
    "time",
    "duration",
    "min_budget",
    "max_budget",
    "mode",
    "description",
)

# Editable but NOT NULL: an explicit null or empty value is rejected
REQUIRED_EDITABLE_FIELDS = ("class_level", "subjects", "mode")

# Edges only reachable through matching / settlement
SERVICE_DRIVEN_STATUSES = {"assigned", "ongoing"}

# Stamped when the tuition enters the status
STATUS_TIMESTAMPS = {
    "closed": ("closed_at",),
    "completed": ("completed_at",),
}


# ── Helpers ───────────────────────────────────────────────────────────────────

def get_tuition(db: Session, tuition_id: UUID) -> Tuition:
    """Load a tuition fresh from the database. Raises NotFound."""
    tuition = db.get(Tuition, tuition_id, populate_existing=True)
    if tuition is None:
        raise NotFoundException("Tuition not found.")
    return tuition


def _check_budget(min_budget: Optional[int], max_budget: Optional[int]) -> None:
    if min_budget is not None and min_budget < 0:
        raise InvalidArgumentException("Budget cannot be negative.")
    if min_budget is not None and max_budget is not None and min_budget > max_budget:
        raise InvalidArgumentException(
            "Minimum budget cannot exceed maximum budget.",
            details={"min_budget": min_budget, "max_budget": max_budget},
        )


def _replay(existing: Tuition, student_id: UUID) -> Tuple[Tuition, bool]:
    """A repeated create returns the original -- but only to its owner."""
    if existing.student_id != student_id:
        raise ConflictException("Idempotency key already used for another tuition.")
    logger.info(f"Duplicate tuition post suppressed: tuition={existing.id}")
    return existing, False


# ── Create ────────────────────────────────────────────────────────────────────

def create_tuition(
    db: Session,
    student_id: UUID,
    fields: Dict[str, Any],
    idempotency_key: Optional[str],
) -> Tuple[Tuition, bool]:
    """
    Post a new tuition in status 'open'.

    Idempotent on `idempotency_key`: if a tuition already exists for the key
    the existing row is returned instead of creating a second one, including
    when two identical requests race and the unique index rejects the loser.

    Returns (tuition, created).
    """
    missing = [
        name for name in ("class_level", "mode", "district")
        if not (fields.get(name) or "").strip()
    ]
    if not fields.get("subjects"):
        missing.insert(0, "subjects")
    if not (idempotency_key or "").strip():
        missing.append("idempotency_key")
    if missing:
        raise InvalidArgumentException(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing": missing},
        )
    _check_budget(fields.get("min_budget"), fields.get("max_budget"))

    existing = db.query(Tuition).filter(Tuition.idempotency_key == idempotency_key).first()
    if existing:
        return _replay(existing, student_id)

    student = db.get(User, student_id)
    if student is None:
        raise NotFoundException("User not found. Tuitions cannot be posted.")
    if POST_TUITION not in capabilities_for(student):
        raise ForbiddenException("Only students can post tuitions.")

    tuition = Tuition(
        idempotency_key=idempotency_key,
        student_id=student.id,
        student_email=student.email,
        student_name=student.full_name,
        student_phone=student.phone or "",
        student_photo=student.photo_url or "",
        subjects=list(fields["subjects"]),
        class_level=fields["class_level"],
        mode=fields["mode"],
        district=fields["district"],
        location=fields.get("location"),
        days=fields.get("days"),
        time=fields.get("time"),
        duration=fields.get("duration"),
        min_budget=fields.get("min_budget"),
        max_budget=fields.get("max_budget"),
        description=fields.get("description"),
        status="open",
        posted_at=datetime.now(timezone.utc),
    )
    db.add(tuition)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race on idempotency_key to an identical request
        db.rollback()
        existing = db.query(Tuition).filter(Tuition.idempotency_key == idempotency_key).first()
        if existing is None:
            raise
        return _replay(existing, student_id)

    logger.info(f"Tuition posted: tuition={tuition.id} student={student.id}")
    return tuition, True


# ── Update ────────────────────────────────────────────────────────────────────

def update_tuition(
    db: Session,
    tuition_id: UUID,
    requester_id: UUID,
    fields: Dict[str, Any],
    status_request: Optional[str] = None,
) -> Tuition:
    """
    Owner edits allow-listed fields and/or requests a status change.

    Raises:
        NotFound          -- no such tuition
        Forbidden         -- requester is not the owner
        InvalidTransition -- status_request is not a legal edge from here
        NoOp              -- nothing to change
        Conflict          -- status moved underneath us
    """
    tuition = get_tuition(db, tuition_id)
    if tuition.student_id != requester_id:
        raise ForbiddenException("You are not allowed to update this tuition.")

    update_doc = {name: fields[name] for name in EDITABLE_FIELDS if name in fields}
    for name in REQUIRED_EDITABLE_FIELDS:
        if name in update_doc and not update_doc[name]:
            raise InvalidArgumentException(
                f"{name} cannot be empty.",
                details={"field": name},
            )
    _check_budget(
        update_doc.get("min_budget", tuition.min_budget),
        update_doc.get("max_budget", tuition.max_budget),
    )

    current = tuition.status
    if status_request:
        allowed_next = TUITION_TRANSITIONS.get(current, ())
        if status_request not in allowed_next or status_request in SERVICE_DRIVEN_STATUSES:
            raise InvalidTransitionException(current, status_request)
        update_doc["status"] = status_request
        now = datetime.now(timezone.utc)
        for column in STATUS_TIMESTAMPS.get(status_request, ()):
            update_doc[column] = now

    if not update_doc:
        raise NoOpException("Nothing to update.")

    query = db.query(Tuition).filter(
        Tuition.id == tuition_id,
        Tuition.student_id == requester_id,
    )
    if status_request:
        query = query.filter(Tuition.status == current)

    rows = query.update(update_doc, synchronize_session=False)
    if rows == 0:
        db.rollback()
        raise ConflictException(
            "Tuition was changed by another request. Reload and try again.",
            details={"expected_status": current},
        )
    db.commit()

    if status_request:
        logger.info(f"Tuition {tuition_id}: {current} → {status_request}")
    return get_tuition(db, tuition_id)


# ── Delete ────────────────────────────────────────────────────────────────────

def delete_tuition(db: Session, tuition_id: UUID, requester_id: UUID) -> None:
    """
    Owner deletes a tuition and every application on it.

    Ownership is part of the DELETE's WHERE clause, so there is no window
    between checking the owner and removing the row.
    """
    rows = db.query(Tuition).filter(
        Tuition.id == tuition_id,
        Tuition.student_id == requester_id,
    ).delete(synchronize_session=False)

    if rows != 1:
        db.rollback()
        raise ForbiddenException("Not authorized or tuition not found.")

    removed = db.query(Application).filter(
        Application.tuition_id == tuition_id
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Tuition deleted: tuition={tuition_id} applications_removed={removed}")


# ── Tutor completes ───────────────────────────────────────────────────────────

def tutor_complete(db: Session, tuition_id: UUID, tutor_email: str) -> Tuition:
    """Assigned tutor marks an ongoing tuition as completed."""
    now = datetime.now(timezone.utc)
    rows = db.query(Tuition).filter(
        Tuition.id == tuition_id,
        Tuition.status == "ongoing",
        Tuition.tutor_email == tutor_email,
    ).update(
        {"status": "completed", "closed_at": now, "completed_at": now},
        synchronize_session=False,
    )

    if rows == 0:
        db.rollback()
        tuition = get_tuition(db, tuition_id)
        if tuition.tutor_email != tutor_email:
            raise ForbiddenException("You are not allowed to update this tuition.")
        raise InvalidStateException(
            "Only ongoing tuitions can be closed.",
            details={"status": tuition.status},
        )

    db.commit()
    logger.info(f"Tuition {tuition_id}: ongoing → completed by {tutor_email}")
    return get_tuition(db, tuition_id)
