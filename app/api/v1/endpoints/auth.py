# app/api/v1/endpoints/auth.py
# Authentication endpoints
#
# POST /auth/register -- email + password signup (always role=student)
# POST /auth/login    -- returns a bearer access token

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401 -- registers all models so relationships resolve
from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse

router = APIRouter()


# Helper
def _build_token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.email, user.role),
        expires_in=settings.access_token_expire_minutes * 60,
        user_id=user.id,
        email=user.email,
        role=user.role,
        full_name=user.full_name,
    )


# Register
@router.post("/register", response_model=TokenResponse, status_code=201, summary="Sign up with email and password")
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="An account with this email already exists.")
    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
        photo_url=payload.photo_url,
        role="student",
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="An account with this email already exists.")
    return _build_token_response(user)


# Login
@router.post("/login", response_model=TokenResponse, summary="Log in with email and password")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(
        and_(User.email == payload.email.lower(), User.is_active == True)  # noqa: E712
    ).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Incorrect email or password.")
    if not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Incorrect email or password.")
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return _build_token_response(user)
