# app/api/v1/endpoints/tutors.py
# Tutor onboarding endpoints
#
# POST  /tutors       -- submit own tutor profile (pending review)
# GET   /tutors/{id}  -- public profile with average rating
# PATCH /tutors/{id}  -- admin approves / rejects

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.dependencies import require_admin, require_login
from app.db.session import get_db
from app.models.user import User
from app.schemas.tutor import (
    TutorProfileCreate,
    TutorPublicResponse,
    TutorResponse,
    TutorReviewRequest,
)
from app.services import tutor_service

router = APIRouter()


@router.post(
    "",
    response_model=TutorResponse,
    status_code=201,
    summary="Submit tutor profile for review",
)
def submit_profile(
    payload: TutorProfileCreate,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    tutor = tutor_service.submit_tutor_profile(db, current_user, payload.model_dump(exclude_none=True))
    return TutorResponse.model_validate(tutor)


@router.get(
    "/{tutor_id}",
    response_model=TutorPublicResponse,
    summary="Get tutor public profile",
)
def get_tutor(
    tutor_id: UUID,
    db: Session = Depends(get_db),
):
    return TutorPublicResponse.model_validate(tutor_service.get_tutor(db, tutor_id))


@router.patch(
    "/{tutor_id}",
    response_model=TutorResponse,
    summary="Approve or reject a tutor profile (admin)",
)
def review_tutor(
    tutor_id: UUID,
    payload: TutorReviewRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    tutor = tutor_service.review_tutor(db, tutor_id, current_user, payload.status)
    return TutorResponse.model_validate(tutor)
