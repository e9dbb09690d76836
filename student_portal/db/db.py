"""
Schema and seed management for the portal database.

Run ``python -m student_portal.db.db --reset`` to rebuild a local database.
"""

import argparse

from .models import Base
from .seeds.main import seed_all_data
from .session import engine

from student_portal.utils.logging import get_logger

logger = get_logger()


def create_tables():
    # Existing tables are left alone, so this is safe on every startup
    Base.metadata.create_all(engine)
    logger.info(f"Ensured tables: {', '.join(sorted(Base.metadata.tables))}")


def drop_tables():
    Base.metadata.drop_all(engine)
    logger.warning("Dropped all tables.")


def seed_db():
    """Seed the accounts needed to sign in"""
    seed_all_data()


def init_db():
    create_tables()
    seed_db()


def reset_db():
    logger.info("Resetting database...")
    drop_tables()
    init_db()
    logger.info("Database reset complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage the student portal database")
    parser.add_argument(
        "--reset", action="store_true", help="Drop every table before recreating"
    )
    args = parser.parse_args()

    if args.reset:
        reset_db()
    else:
        init_db()
