# app/api/v1/endpoints/applications.py
# Application matching endpoints
#
# POST   /applications       -- approved tutor applies to an open tuition
# PATCH  /applications/{id}  -- tuition owner accepts / rejects
# DELETE /applications/{id}  -- tutor or student cancels (pending / rejected only)

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.dependencies import require_approved_tutor, require_login
from app.db.session import get_db
from app.models.tutor import Tutor
from app.models.user import User
from app.schemas.application import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationResponse,
)
from app.schemas.tuition import MessageResponse
from app.services import matching_service

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=201,
    summary="Apply to a tuition",
)
def apply(
    payload: ApplicationCreate,
    tutor: Tutor = Depends(require_approved_tutor),
    db: Session = Depends(get_db),
):
    application = matching_service.apply_to_tuition(
        db,
        tutor,
        payload.tuition_id,
        payload.salary,
        payload.cover_letter,
    )
    return ApplicationResponse.model_validate(application)


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Accept or reject an application",
)
def decide(
    application_id: UUID,
    payload: ApplicationDecision,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    application = matching_service.decide_application(
        db, application_id, payload.status, current_user
    )
    return ApplicationResponse.model_validate(application)


@router.delete(
    "/{application_id}",
    response_model=MessageResponse,
    summary="Cancel an application",
)
def cancel(
    application_id: UUID,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    matching_service.cancel_application(db, application_id, current_user)
    return MessageResponse(message="Application cancelled.")
