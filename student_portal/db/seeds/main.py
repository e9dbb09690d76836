"""
Seeds the data the portal needs before anyone can sign in.

Students are never seeded: an empty collection is a valid first-run state.
"""

from student_portal.db.session import session_scope
from student_portal.utils.logging import get_logger

from .users_seed import seed_admin_user

logger = get_logger()


def seed_all_data() -> bool:
    """Returns True when anything new was written"""
    logger.info("Starting database seeding...")
    try:
        with session_scope() as db_session:
            created = seed_admin_user(db_session)
    except Exception as e:
        logger.error(f"Database seeding failed: {str(e)}")
        raise

    logger.info("Database seeding completed successfully!")
    return created
