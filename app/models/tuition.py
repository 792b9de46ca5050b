# app/models/tuition.py
# A student's posted request for tutoring and its lifecycle
#
# Flow:
#   1. Student posts a tuition          → POST /tuitions           (open)
#   2. Tutors in the district apply     → POST /applications
#   3. Student accepts one application  → PATCH /applications/{id} (assigned)
#   4. Student pays the agreed salary   → PATCH /payment-success   (ongoing)
#   5. Tutor marks the work done        → PATCH /tuitions/tutor/{id} (completed)
#   6. Student reviews the tutor        → POST /reviews
#
# Withdrawal: open → closed via PATCH /tuitions/{id}

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)

from app.db.base_class import Base

TUITION_STATUSES = ("open", "assigned", "ongoing", "completed", "closed")

# Legal edges of the lifecycle. completed and closed are terminal.
TUITION_TRANSITIONS = {
    "open": ("assigned", "closed"),
    "assigned": ("ongoing",),
    "ongoing": ("completed",),
}


class Tuition(Base):
    """
    Status is the single source of truth for which operations are legal.
    Every writer re-checks it inside its UPDATE ... WHERE status = ... so a
    stale read can never push the row through an illegal edge.
    """
    __tablename__ = "tuitions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Client-supplied token: repeated POSTs with the same key yield one row
    idempotency_key = Column(String(255), unique=True, nullable=False)

    # ── Owner (student) ───────────────────────────────────────────────────────
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_email = Column(String(255), nullable=False, index=True)
    student_name = Column(String(255), nullable=True)     # denormalised for display
    student_phone = Column(String(20), nullable=True)
    student_photo = Column(Text, nullable=True)

    # ── Request Details ───────────────────────────────────────────────────────
    subjects = Column(JSON, nullable=False, default=list)
    class_level = Column(String(50), nullable=False)
    mode = Column(String(50), nullable=False)             # online | offline
    district = Column(String(100), nullable=False, index=True)
    location = Column(String(255), nullable=True)
    days = Column(Integer, nullable=True)                 # days per week
    time = Column(String(100), nullable=True)
    duration = Column(String(100), nullable=True)
    min_budget = Column(Integer, nullable=True)
    max_budget = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)

    # ── Status ────────────────────────────────────────────────────────────────
    status = Column(
        Enum(*TUITION_STATUSES, name="tuition_status_enum"),
        nullable=False,
        default="open",
        index=True,
    )

    # ── Match (set atomically with the accepted application) ──────────────────
    tutor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tutors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tutor_email = Column(String(255), nullable=True, index=True)
    tutor_name = Column(String(255), nullable=True)
    tutor_photo = Column(Text, nullable=True)
    tutor_phone = Column(String(20), nullable=True)
    salary = Column(Integer, nullable=True)               # agreed, within budget
    assigned_application_id = Column(Uuid(as_uuid=True), nullable=True)

    # ── Review ────────────────────────────────────────────────────────────────
    reviewed = Column(Boolean, nullable=False, default=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_id = Column(Uuid(as_uuid=True), nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────────
    posted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<Tuition id={self.id} student={self.student_id} "
            f"status={self.status}>"
        )
