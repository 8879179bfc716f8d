import logging
from flask import current_app, g
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from learnhub.models.database_models import Base, RoleRecord
from learnhub.rbac.role_table import RoleTable
from learnhub.utils.role_seed import seed_roles

logger = logging.getLogger(__name__)


def make_engine(config):
    """Build the engine for one application."""
    return create_engine(
        config['SQLALCHEMY_DATABASE_URI'],
        **config.get('SQLALCHEMY_ENGINE_OPTIONS', {})
    )


def get_db():
    """Get the request-scoped database session."""
    if 'db' not in g:
        try:
            g.db = current_app.extensions['learnhub_db']()
        except Exception as e:
            logger.error(f"Database connection error: {str(e)}")
            raise
    return g.db


def close_db(e=None):
    """Close the database session."""
    db = g.pop('db', None)
    if db is not None:
        try:
            if e is not None:
                db.rollback()
        finally:
            db.close()


def load_role_table(db, source: str) -> RoleTable:
    """Build the process-wide role table from the configured source."""
    if source == 'database':
        records = db.execute(select(RoleRecord)).scalars().all()
        if not records:
            raise RuntimeError('ROLE_DEFINITIONS_SOURCE is "database" but the roles table is empty')
        return RoleTable.from_records(records)
    if source != 'static':
        raise ValueError(f"Unknown ROLE_DEFINITIONS_SOURCE: {source!r}")
    return RoleTable.default()


def init_db(app):
    """Initialize the database schema, seed roles and build the role table."""
    try:
        engine = make_engine(app.config)
        session_factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
        app.extensions['learnhub_engine'] = engine
        app.extensions['learnhub_db'] = session_factory

        Base.metadata.create_all(engine)

        db = session_factory()
        try:
            if app.config.get('SEED_ROLES_ON_STARTUP', True):
                seed_roles(db)
            role_table = load_role_table(db, app.config.get('ROLE_DEFINITIONS_SOURCE', 'static'))
        finally:
            db.close()

        app.extensions['learnhub_role_table'] = role_table
        logger.info(f"Database initialized successfully ({role_table!r})")
    except Exception as e:
        logger.error(f"Database initialization error: {str(e)}")
        raise
