# app/services/review_service.py
# Review finalizer: one rating per completed tuition, folded into the tutor

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidArgumentException,
    InvalidStateException,
    NotFoundException,
)
from app.models.review import Review
from app.models.tuition import Tuition
from app.models.tutor import Tutor
from app.models.user import User
from app.services import notification_service

logger = logging.getLogger("tutorlink.reviews")


def submit_review(
    db: Session,
    tuition_id: UUID,
    student: User,
    rating: int,
    text: Optional[str] = None,
) -> Review:
    """
    Student rates the tutor of a completed tuition. Accepted exactly once.

    The `reviewed` flag is flipped with a compare-and-set before anything
    else is written, so of two concurrent submissions only one gets past it.
    The tutor aggregate is incremented in the database, never read-modify-write.
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidArgumentException("Rating must be between 1 to 5.")

    tuition = db.get(Tuition, tuition_id, populate_existing=True)
    if tuition is None:
        raise NotFoundException("Tuition not found.")
    if tuition.student_id != student.id:
        raise ForbiddenException("You can only review your own tuitions.")
    if tuition.status != "completed":
        raise InvalidStateException(
            "Only completed tuitions can be reviewed.",
            details={"status": tuition.status},
        )
    if tuition.tutor_id is None:
        raise InvalidStateException("This tuition has no assigned tutor.")
    if tuition.reviewed:
        raise ConflictException("You have already reviewed this tuition.")

    now = datetime.now(timezone.utc)
    rows = db.query(Tuition).filter(
        Tuition.id == tuition.id,
        Tuition.reviewed == False,  # noqa: E712
    ).update(
        {"reviewed": True, "reviewed_at": now},
        synchronize_session=False,
    )
    if rows == 0:
        db.rollback()
        raise ConflictException("You have already reviewed this tuition.")

    review = Review(
        tuition_id=tuition.id,
        tutor_id=tuition.tutor_id,
        student_id=student.id,
        rating=rating,
        review=(text or "").strip(),
        student_name=tuition.student_name,
        student_photo=tuition.student_photo,
        tutor_name=tuition.tutor_name,
        tutor_photo=tuition.tutor_photo,
        subjects=tuition.subjects,
        posted_at=now,
    )
    try:
        db.add(review)
        db.flush()

        db.query(Tutor).filter(Tutor.id == tuition.tutor_id).update(
            {
                Tutor.rating_count: Tutor.rating_count + 1,
                Tutor.rating_sum: Tutor.rating_sum + rating,
            },
            synchronize_session=False,
        )
        db.query(Tuition).filter(Tuition.id == tuition.id).update(
            {"review_id": review.id},
            synchronize_session=False,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException("You have already reviewed this tuition.")

    logger.info(f"Review {review.id}: tuition={tuition.id} tutor={tuition.tutor_id} rating={rating}")

    notification_service.emit(
        db,
        target_email=tuition.tutor_email,
        notification_type="NEW_REVIEW",
        title="New Review",
        message=f"{tuition.student_name} rated you {rating}/5",
        link="/dashboard/reviews",
    )
    return review
