# app/core/dependencies.py
# FastAPI dependency functions for authentication and authorization
#
# Identity:      Bearer JWT -> active User (401 otherwise)
# Authorization: capabilities_for(user, tutor) composed into route guards
#                -- the guards only load records, the rule itself is pure

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.core.capabilities import ADMIN, APPLY, capabilities_for
from app.core.security import decode_token
from app.db.session import get_db
from app.models.tutor import Tutor
from app.models.user import User

# Bearer token extractor -- auto_error=False so we can handle 401 ourselves
bearer_scheme = HTTPBearer(auto_error=False)


# ── Token Extraction ──────────────────────────────────────────────────────────

def _extract_user_from_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
) -> Optional[User]:
    """
    Internal helper: decode Bearer token and load user from DB.
    Returns None if no token, invalid token, or user not found/inactive.
    """
    if not credentials:
        return None

    payload = decode_token(credentials.credentials)
    if not payload:
        return None

    if payload.get("type") != "access":
        return None

    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        return None

    return db.query(User).filter(
        and_(User.id == user_id, User.is_active == True)  # noqa: E712
    ).first()


def get_tutor_profile(user: User, db: Session) -> Optional[Tutor]:
    """Tutor profile owned by this account, if any."""
    return db.query(Tutor).filter(Tutor.user_id == user.id).first()


# ── Auth Dependencies ─────────────────────────────────────────────────────────

def require_login(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Requires a valid JWT token. Raises 401 if not authenticated.

    Use for: Any endpoint requiring login but not a specific capability.
    """
    user = _extract_user_from_token(credentials, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please log in.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_approved_tutor(
    current_user: User = Depends(require_login),
    db: Session = Depends(get_db),
) -> Tutor:
    """
    Requires an approved tutor profile. Returns the Tutor row.
    Use for: applying to tuitions.
    """
    tutor = get_tutor_profile(current_user, db)
    if tutor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: Tutor not found.",
        )
    if APPLY not in capabilities_for(current_user, tutor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: Tutor is not verified.",
        )
    return tutor


def require_admin(
    current_user: User = Depends(require_login),
) -> User:
    """
    Requires the admin capability. Raises 403 for all other accounts.
    Use for: tutor profile review.
    """
    if ADMIN not in capabilities_for(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return current_user
