# app/db/init_db.py
# Seed initial data into the database
# Run once after migrations: python -m app.db.init_db
#
# Creates:
#   1. Admin user (from env vars or defaults) -- reviews tutor profiles

import logging
import os

from dotenv import load_dotenv

# session.py reads DATABASE_URL at import time
load_dotenv()

import app.db.base  # noqa: F401, E402
from app.core.security import hash_password  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.models.user import User  # noqa: E402

logger = logging.getLogger("tutorlink.init_db")


def seed_admin(db) -> bool:
    """Create the admin user if it doesn't exist. Returns True if created."""
    admin_email = os.getenv("ADMIN_EMAIL", "admin@tutorlink.app").lower()
    admin_password = os.getenv("ADMIN_PASSWORD", "TutorLink@Admin123")
    admin_name = os.getenv("ADMIN_NAME", "TutorLink Admin")

    existing = db.query(User).filter(User.email == admin_email).first()
    if existing:
        if existing.role != "admin":
            existing.role = "admin"
            logger.info(f"Promoted existing account to admin: {admin_email}")
        else:
            logger.info(f"Admin already exists: {admin_email}")
        return False

    db.add(User(
        email=admin_email,
        hashed_password=hash_password(admin_password),
        full_name=admin_name,
        role="admin",
        is_active=True,
    ))
    db.flush()
    logger.info(f"Admin created: {admin_email}")
    return True


def init_db() -> None:
    logger.info("Seeding database...")
    db = SessionLocal()
    try:
        seed_admin(db)
        db.commit()
        logger.info("Done. Database seeded successfully.")
    except Exception as e:
        db.rollback()
        logger.error(f"Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    init_db()
