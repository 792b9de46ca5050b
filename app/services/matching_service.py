# app/services/matching_service.py
# Application matching engine
#
# Tutor flow:
#   apply_to_tuition   → pending application on an open tuition
#   cancel_application → withdraw a pending / rejected application
#
# Student flow:
#   decide_application(rejected) → one application rejected
#   decide_application(accepted) → in ONE transaction:
#       1. tuition open → assigned (compare-and-set, copies tutor + salary)
#       2. application pending → accepted (compare-and-set)
#       3. every other pending application on the tuition → rejected
#
# Step 1 is the race guard: of two concurrent accepts on the same tuition only
# one UPDATE matches status='open'; the other sees zero rows and gets Conflict.
# Nothing is committed until all three writes are in, so a crash part-way
# leaves the tuition open with every application untouched.

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.dependencies import get_tutor_profile
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    InvalidStateException,
    NotFoundException,
)
from app.models.application import Application
from app.models.tuition import Tuition
from app.models.tutor import Tutor
from app.models.user import User
from app.services import notification_service

logger = logging.getLogger("tutorlink.matching")

DECISIONS = ("accepted", "rejected")

# Tuition states that mean "some application already won"
MATCHED_STATUSES = ("assigned", "ongoing", "completed")

CANCELLABLE_STATUSES = ("pending", "rejected")


def _get_application(db: Session, application_id: UUID) -> Application:
    application = db.get(Application, application_id, populate_existing=True)
    if application is None:
        raise NotFoundException("Application not found.")
    return application


# ── Apply ─────────────────────────────────────────────────────────────────────

def apply_to_tuition(
    db: Session,
    tutor: Tutor,
    tuition_id: UUID,
    salary: int,
    cover_letter: Optional[str] = None,
) -> Application:
    """
    Approved tutor bids on an open tuition.

    Checks, each a distinct failure:
        NotFound        -- tuition absent
        InvalidState    -- tuition not open
        Forbidden       -- tutor is the poster
        Forbidden       -- tutor's district differs from the tuition's
        InvalidArgument -- salary outside [min_budget, max_budget]
        Conflict        -- tutor already applied (unique index)
    """
    # FOR SHARE: a concurrent accept cannot flip the tuition to assigned
    # until this insert commits, so its bulk-reject sees our row.
    tuition = (
        db.query(Tuition)
        .filter(Tuition.id == tuition_id)
        .with_for_update(read=True)
        .populate_existing()
        .first()
    )
    if tuition is None:
        raise NotFoundException("Tuition not found.")

    if tuition.status != "open":
        raise InvalidStateException(
            "Tuition is not open for application.",
            details={"status": tuition.status},
        )
    if tuition.student_id == tutor.user_id:
        raise ForbiddenException("You cannot apply to your own tuition.")
    if tuition.district != tutor.district:
        raise ForbiddenException(
            f"You can only apply to tuitions within your district ({tutor.district})."
        )

    too_low = tuition.min_budget is not None and salary < tuition.min_budget
    too_high = tuition.max_budget is not None and salary > tuition.max_budget
    if too_low or too_high:
        raise InvalidArgumentException(
            f"Salary must be between {tuition.min_budget} and {tuition.max_budget}.",
            details={"min_budget": tuition.min_budget, "max_budget": tuition.max_budget},
        )

    application = Application(
        tuition_id=tuition.id,
        tutor_id=tutor.id,
        student_id=tuition.student_id,
        salary=salary,
        cover_letter=(cover_letter or "").strip(),
        tutor_name=tutor.name,
        tutor_photo=tutor.photo_url,
        qualification=tutor.qualification,
        institution=tutor.institution,
        experience_years=tutor.experience_years,
        experience_months=tutor.experience_months,
        tuition_time=tuition.time,
        days=tuition.days,
        class_level=tuition.class_level,
        subjects=tuition.subjects,
        location=tuition.location,
        status="pending",
        applied_at=datetime.now(timezone.utc),
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException("You have already applied for this tuition.")

    logger.info(f"Application {application.id}: tutor={tutor.id} → tuition={tuition.id}")

    notification_service.emit(
        db,
        target_email=tuition.student_email,
        notification_type="NEW_APPLICATION",
        title="New Tutor Application",
        message=f"{tutor.name} has applied for your tuition",
        link="/dashboard/applications",
    )
    return application


# ── Decide ────────────────────────────────────────────────────────────────────

def decide_application(
    db: Session,
    application_id: UUID,
    decision: str,
    requester: User,
) -> Application:
    """
    Tuition owner accepts or rejects a pending application.

    Raises:
        InvalidArgument -- decision not accepted | rejected
        NotFound        -- application or its tuition absent
        Forbidden       -- requester does not own the tuition
        InvalidState    -- application already decided / tuition closed
        Conflict        -- tuition already assigned (lost the accept race)
    """
    if decision not in DECISIONS:
        raise InvalidArgumentException(
            "Invalid status value.",
            details={"allowed": list(DECISIONS)},
        )

    application = _get_application(db, application_id)
    tuition = db.get(Tuition, application.tuition_id, populate_existing=True)
    if tuition is None:
        raise NotFoundException("Tuition not found.")
    if tuition.student_id != requester.id:
        raise ForbiddenException("Only the tuition owner can decide applications.")

    if decision == "rejected":
        return _reject(db, application)
    return _accept(db, application, tuition)


def _reject(db: Session, application: Application) -> Application:
    rows = db.query(Application).filter(
        Application.id == application.id,
        Application.status == "pending",
    ).update(
        {"status": "rejected", "decided_at": datetime.now(timezone.utc)},
        synchronize_session=False,
    )
    if rows == 0:
        db.rollback()
        current = _get_application(db, application.id).status
        raise InvalidStateException(
            f"Cannot reject an application with status '{current}'.",
            details={"status": current},
        )
    db.commit()
    logger.info(f"Application {application.id} rejected")
    return _get_application(db, application.id)


def _accept(db: Session, application: Application, tuition: Tuition) -> Application:
    if application.status != "pending":
        # Bulk-rejected by a competing accept that committed first
        if tuition.status in MATCHED_STATUSES and tuition.assigned_application_id != application.id:
            raise ConflictException("Tuition already assigned.", details={"status": tuition.status})
        raise InvalidStateException(
            f"Cannot accept an application with status '{application.status}'.",
            details={"status": application.status},
        )

    tutor = db.get(Tutor, application.tutor_id)
    if tutor is None:
        raise NotFoundException("Tutor not found.")

    now = datetime.now(timezone.utc)

    # 1. Tuition open → assigned. The WHERE on status is the race guard.
    rows = db.query(Tuition).filter(
        Tuition.id == tuition.id,
        Tuition.status == "open",
    ).update(
        {
            "status": "assigned",
            "tutor_id": tutor.id,
            "tutor_email": tutor.email,
            "tutor_name": application.tutor_name,
            "tutor_photo": application.tutor_photo,
            "tutor_phone": tutor.phone,
            "salary": application.salary,
            "assigned_application_id": application.id,
            "assigned_at": now,
        },
        synchronize_session=False,
    )
    if rows == 0:
        db.rollback()
        current = db.get(Tuition, tuition.id, populate_existing=True)
        status = current.status if current else None
        if status in MATCHED_STATUSES:
            raise ConflictException("Tuition already assigned.", details={"status": status})
        raise InvalidStateException(
            f"Cannot accept applications on a {status} tuition.",
            details={"status": status},
        )

    # 2. This application pending → accepted
    rows = db.query(Application).filter(
        Application.id == application.id,
        Application.status == "pending",
    ).update(
        {"status": "accepted", "decided_at": now},
        synchronize_session=False,
    )
    if rows == 0:
        # Cancelled or rejected after we read it -- undo step 1 with it
        db.rollback()
        raise ConflictException("Application is no longer pending.")

    # 3. Everyone else still pending → rejected
    rejected = db.query(Application).filter(
        Application.tuition_id == tuition.id,
        Application.status == "pending",
        Application.id != application.id,
    ).update(
        {"status": "rejected", "decided_at": now},
        synchronize_session=False,
    )

    db.commit()
    logger.info(
        f"Tuition {tuition.id}: open → assigned to tutor={tutor.id} "
        f"via application={application.id} ({rejected} competing rejected)"
    )

    notification_service.emit(
        db,
        target_email=tutor.email,
        notification_type="APPLICATION_ACCEPTED",
        title="Application Accepted",
        message=f"Your application for {tuition.student_name}'s tuition has been accepted",
        link="/dashboard/my-tuitions/tutor",
    )
    return _get_application(db, application.id)


# ── Cancel ────────────────────────────────────────────────────────────────────

def cancel_application(db: Session, application_id: UUID, requester: User) -> None:
    """
    Withdraw an application that is still pending or was rejected.
    Either party may cancel: the tutor who applied or the tuition's student.
    Accepted applications are immutable.
    """
    tutor = get_tutor_profile(requester, db)
    ownership = [Application.student_id == requester.id]
    if tutor is not None:
        ownership.append(Application.tutor_id == tutor.id)

    rows = db.query(Application).filter(
        Application.id == application_id,
        Application.status.in_(CANCELLABLE_STATUSES),
        or_(*ownership),
    ).delete(synchronize_session=False)

    if rows == 1:
        db.commit()
        logger.info(f"Application {application_id} cancelled by {requester.email}")
        return

    db.rollback()
    application = _get_application(db, application_id)
    is_owner = application.student_id == requester.id or (
        tutor is not None and application.tutor_id == tutor.id
    )
    if not is_owner:
        raise ForbiddenException("Cannot cancel this application.")
    raise InvalidStateException(
        "Accepted applications cannot be cancelled.",
        details={"status": application.status},
    )
