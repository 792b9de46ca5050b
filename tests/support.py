import tempfile
import unittest
import uuid
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import app.db.base  # noqa: F401
from app.db.base_class import Base
from app.models.tutor import Tutor
from app.models.user import User
from app.services import tuition_service
from app.services.razorpay_service import CheckoutSession, SessionStatus


def make_engine(db_path: Path, immediate: bool = False):
    """
    File-backed SQLite engine.

    immediate=True opens every transaction with BEGIN IMMEDIATE so concurrent
    writers queue on the database lock instead of failing with
    "database is locked" -- the closest SQLite gets to row locks.
    """
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False, "timeout": 15})
    if immediate:
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
    return engine


class DatabaseTestCase(unittest.TestCase):
    immediate_transactions = False

    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / f"{cls.__name__}.db"
        cls._engine = make_engine(db_path, immediate=cls.immediate_transactions)
        cls._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=cls._engine,
        )
        Base.metadata.create_all(bind=cls._engine)

    @classmethod
    def tearDownClass(cls):
        cls._engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        db = self._session_factory()
        try:
            for table in reversed(Base.metadata.sorted_tables):
                db.execute(table.delete())
            db.commit()
        finally:
            db.close()
        self.db = self._session_factory()

    def tearDown(self):
        self.db.close()


# ── Factories ─────────────────────────────────────────────────────────────────

def create_user(db, email: str, role: str = "student", full_name: Optional[str] = None, **extra) -> User:
    user = User(
        email=email,
        hashed_password="not-a-real-hash",
        full_name=full_name or email.split("@")[0].title(),
        role=role,
        is_active=True,
        **extra,
    )
    db.add(user)
    db.commit()
    return user


def create_tutor(db, user: User, district: str = "Dhaka", status: str = "approved", **extra) -> Tutor:
    tutor = Tutor(
        user_id=user.id,
        email=user.email,
        name=user.full_name,
        phone=extra.pop("phone", "01700000000"),
        subjects=extra.pop("subjects", ["Math"]),
        district=district,
        id_card_url="https://files.example.com/id.png",
        qualification=extra.pop("qualification", "BSc"),
        status=status,
        **extra,
    )
    if status == "approved" and user.role == "student":
        user.role = "tutor"
    db.add(tutor)
    db.commit()
    return tutor


def tuition_fields(**overrides) -> Dict:
    fields = {
        "subjects": ["Math", "Physics"],
        "class_level": "Class 9",
        "mode": "offline",
        "district": "Dhaka",
        "location": "Dhanmondi",
        "days": 3,
        "time": "5 PM",
        "duration": "1.5 hours",
        "min_budget": 3000,
        "max_budget": 5000,
        "description": "Need help with board exam prep",
    }
    fields.update(overrides)
    return fields


def post_tuition(db, student: User, key: Optional[str] = None, **overrides):
    tuition, _ = tuition_service.create_tuition(
        db,
        student.id,
        tuition_fields(**overrides),
        key or f"key-{uuid.uuid4()}",
    )
    return tuition


# ── Fake payment processor ────────────────────────────────────────────────────

class FakeGateway:
    """In-memory PaymentGateway. Sessions start unpaid; tests call pay()."""

    def __init__(self):
        self.sessions: Dict[str, SessionStatus] = {}
        self.created = []

    def create_checkout_session(self, amount, currency, payee_email, metadata, description=""):
        session_id = f"plink_{uuid.uuid4().hex[:12]}"
        self.sessions[session_id] = SessionStatus(
            payee_email=payee_email,
            payment_status="unpaid",
            transaction_id=None,
            amount_total=0,
            metadata=dict(metadata),
        )
        self.created.append({
            "session_id": session_id,
            "amount": amount,
            "currency": currency,
            "payee_email": payee_email,
            "metadata": dict(metadata),
        })
        return CheckoutSession(url=f"https://rzp.example/{session_id}", session_id=session_id)

    def pay(self, session_id: str, amount: Optional[int] = None, transaction_id: Optional[str] = None) -> str:
        status = self.sessions[session_id]
        created = next(c for c in self.created if c["session_id"] == session_id)
        status.payment_status = "paid"
        status.amount_total = created["amount"] if amount is None else amount
        status.transaction_id = transaction_id or f"pay_{uuid.uuid4().hex[:12]}"
        return status.transaction_id

    def retrieve_session(self, session_id):
        return self.sessions[session_id]
