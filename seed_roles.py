"""
Seed the roles table from the static role definitions.

Usage:
    python seed_roles.py

Uses DATABASE_URL from the environment (or .env) like the app does.
"""
import logging
import sys

from sqlalchemy.orm import sessionmaker

from learnhub.config import Config
from learnhub.models.database_models import Base
from learnhub.utils.db import make_engine
from learnhub.utils.role_seed import seed_roles

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('seed_roles')


def main():
    engine = make_engine({
        'SQLALCHEMY_DATABASE_URI': Config.SQLALCHEMY_DATABASE_URI,
        'SQLALCHEMY_ENGINE_OPTIONS': Config.SQLALCHEMY_ENGINE_OPTIONS,
    })
    Base.metadata.create_all(engine)

    db = sessionmaker(bind=engine)()
    try:
        changed = seed_roles(db)
    finally:
        db.close()

    logger.info(f"Done, {changed} role(s) inserted or updated")
    return 0


if __name__ == '__main__':
    sys.exit(main())
