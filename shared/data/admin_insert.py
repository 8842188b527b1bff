"""Create the first admin account from ADMIN_EMAIL / ADMIN_PASSWORD.

    python -m shared.data.admin_insert
"""
import logging

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.database import Base, SessionLocal, engine
from shared.core.logging_config import setup_logging
from shared.models.users import Users
from shared.utils.enums import UserRole

logger = logging.getLogger(__name__)


def seed_admin(db: Session) -> Users:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        raise ValueError("ADMIN_EMAIL and ADMIN_PASSWORD must be set")

    email = settings.ADMIN_EMAIL.strip().lower()
    existing_admin = db.query(Users).filter(Users.email == email).first()
    if existing_admin:
        logger.info(f"Admin already exists: {existing_admin.email}")
        return existing_admin

    admin = Users(
        name=settings.ADMIN_NAME,
        email=email,
        role=UserRole.ADMIN.value,
        locations=[],
    )
    admin.set_password(settings.ADMIN_PASSWORD)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin created: {admin.email}")
    return admin


if __name__ == "__main__":
    setup_logging()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_admin(db)
    except Exception:
        db.rollback()
        logger.exception("Error creating admin")
        raise
    finally:
        db.close()
