# app/models/user.py
# Account record for every role: student | tutor | admin
# Tutor-specific data lives in Tutor (separate table, created on application)

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    String,
    Text,
    Uuid,
)

from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # ── Identity ──────────────────────────────────────────────────────────────
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=True)  # Null for social sign-in
    full_name = Column(String(255), nullable=False)
    photo_url = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)

    # ── Role ──────────────────────────────────────────────────────────────────
    # Everyone signs up as a student; admin approval of a tutor profile
    # promotes the account to 'tutor'.
    role = Column(
        Enum("student", "tutor", "admin", name="user_role_enum"),
        nullable=False,
        default="student",
    )

    # ── Account Status ────────────────────────────────────────────────────────
    is_active = Column(Boolean, nullable=False, default=True)

    # ── Timestamps ────────────────────────────────────────────────────────────
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
