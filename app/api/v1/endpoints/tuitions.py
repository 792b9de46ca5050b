# app/api/v1/endpoints/tuitions.py
# Tuition lifecycle endpoints
#
# POST   /tuitions              -- student posts (201 new, 200 idempotent replay)
# GET    /tuitions/{id}         -- owner / assigned tutor reads
# PATCH  /tuitions/{id}         -- owner edits fields or requests closed/completed
# DELETE /tuitions/{id}         -- owner deletes with its applications
# PATCH  /tuitions/tutor/{id}   -- assigned tutor marks ongoing → completed

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.capabilities import ADMIN, capabilities_for
from app.core.dependencies import require_login
from app.core.exceptions import ForbiddenException
from app.db.session import get_db
from app.models.user import User
from app.schemas.tuition import (
    MessageResponse,
    TuitionCreate,
    TuitionResponse,
    TuitionUpdate,
)
from app.services import tuition_service

router = APIRouter()


@router.post(
    "",
    response_model=TuitionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a tuition",
)
def create_tuition(
    payload: TuitionCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump(exclude={"idempotency_key"})
    tuition, created = tuition_service.create_tuition(
        db,
        current_user.id,
        fields,
        payload.idempotency_key or idempotency_key,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return TuitionResponse.model_validate(tuition)


@router.get(
    "/{tuition_id}",
    response_model=TuitionResponse,
    summary="Get a tuition",
)
def get_tuition(
    tuition_id: UUID,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    tuition = tuition_service.get_tuition(db, tuition_id)
    is_party = current_user.id == tuition.student_id or current_user.email == tuition.tutor_email
    if not is_party and ADMIN not in capabilities_for(current_user):
        raise ForbiddenException("You are not allowed to view this tuition.")
    return TuitionResponse.model_validate(tuition)


@router.patch(
    "/tutor/{tuition_id}",
    response_model=TuitionResponse,
    summary="Assigned tutor completes an ongoing tuition",
)
def tutor_complete(
    tuition_id: UUID,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    tuition = tuition_service.tutor_complete(db, tuition_id, current_user.email)
    return TuitionResponse.model_validate(tuition)


@router.patch(
    "/{tuition_id}",
    response_model=TuitionResponse,
    summary="Edit a tuition or change its status",
)
def update_tuition(
    tuition_id: UUID,
    payload: TuitionUpdate,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump(exclude_unset=True, exclude={"status"})
    tuition = tuition_service.update_tuition(
        db,
        tuition_id,
        current_user.id,
        fields,
        status_request=payload.status,
    )
    return TuitionResponse.model_validate(tuition)


@router.delete(
    "/{tuition_id}",
    response_model=MessageResponse,
    summary="Delete a tuition and its applications",
)
def delete_tuition(
    tuition_id: UUID,
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    tuition_service.delete_tuition(db, tuition_id, current_user.id)
    return MessageResponse(message="Tuition deleted.")
