# app/api/v1/endpoints/reviews.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.dependencies import require_login
from app.db.session import get_db
from app.models.user import User
from app.schemas.review import ReviewCreate, ReviewResponse
from app.services import review_service

router = APIRouter()


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=201,
    summary="Review the tutor of a completed tuition",
)
def submit_review(
    payload: ReviewCreate,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    review = review_service.submit_review(
        db, payload.tuition_id, current_user, payload.rating, payload.review
    )
    return ReviewResponse.model_validate(review)
