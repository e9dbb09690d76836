from sqlalchemy import select
from sqlalchemy.orm import Session

from student_portal.config.settings import settings
from student_portal.db.models import User
from student_portal.utils.auth import AuthUtils
from student_portal.utils.logging import get_logger

logger = get_logger()


def seed_admin_user(db_session: Session) -> bool:
    """Create the configured admin account unless it already exists"""
    email = settings.ADMIN_EMAIL.strip().lower()
    existing = db_session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()
    if existing is not None:
        logger.info(f"Admin account {email} already present")
        return False

    db_session.add(
        User(
            email=email,
            display_name="Administrator",
            password_hash=AuthUtils.hash_password(settings.ADMIN_PASSWORD),
            is_active=True,
            access_token_version=0,
        )
    )
    db_session.commit()
    logger.info(f"Seeded admin account {email}")
    return True
