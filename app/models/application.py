# app/models/application.py
# A tutor's bid on one open tuition

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from app.db.base_class import Base


class Application(Base):
    """
    Status lifecycle: pending → accepted | rejected
    accepted is final: the row can no longer be cancelled or re-decided.

    The tutor_* and tuition_* columns are a display snapshot taken at apply
    time so listings need no joins. Tutor and Tuition stay authoritative.
    """
    __tablename__ = "applications"
    __table_args__ = (
        # One bid per tutor per tuition -- the authoritative duplicate guard
        UniqueConstraint("tuition_id", "tutor_id", name="uq_applications_tuition_tutor"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # ── Parties ───────────────────────────────────────────────────────────────
    tuition_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tuitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tutor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # ── Offer ─────────────────────────────────────────────────────────────────
    salary = Column(Integer, nullable=False)
    cover_letter = Column(Text, nullable=False, default="")

    # ── Tutor snapshot ────────────────────────────────────────────────────────
    tutor_name = Column(String(255), nullable=True)
    tutor_photo = Column(Text, nullable=True)
    qualification = Column(String(255), nullable=True)
    institution = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True)
    experience_months = Column(Integer, nullable=True)

    # ── Tuition snapshot ──────────────────────────────────────────────────────
    tuition_time = Column(String(100), nullable=True)
    days = Column(Integer, nullable=True)
    class_level = Column(String(50), nullable=True)
    subjects = Column(JSON, nullable=True)
    location = Column(String(255), nullable=True)

    # ── Status ────────────────────────────────────────────────────────────────
    status = Column(
        Enum("pending", "accepted", "rejected", name="application_status_enum"),
        nullable=False,
        default="pending",
        index=True,
    )

    # ── Timestamps ────────────────────────────────────────────────────────────
    applied_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    decided_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Application tuition={self.tuition_id} "
            f"tutor={self.tutor_id} status={self.status}>"
        )
