"""
Role seeding utility
Mirrors the static role definitions into the ``roles`` table on startup
"""
import logging

from sqlalchemy import select

from learnhub.models.database_models import RoleRecord
from learnhub.rbac.permissions import ROLE_PERMISSIONS
from learnhub.rbac.roles import ROLE_HIERARCHY, get_role_display_name, hierarchy_index

logger = logging.getLogger(__name__)


def seed_roles(db) -> int:
    """
    Upsert one ``roles`` row per role, keyed by name.

    Running it again leaves the table unchanged apart from bringing any
    edited row back in line with the static declaration.

    Args:
        db: SQLAlchemy session

    Returns:
        Number of rows inserted or updated
    """
    try:
        existing = {r.name: r for r in db.execute(select(RoleRecord)).scalars()}
        changed = 0

        for role in ROLE_HIERARCHY:
            permissions = sorted(p.value for p in ROLE_PERMISSIONS[role])
            level = hierarchy_index(role)
            record = existing.get(role.value)

            if record is None:
                db.add(RoleRecord(
                    name=role.value,
                    title=get_role_display_name(role),
                    level=level,
                    permissions=permissions,
                ))
                changed += 1
                logger.info(f"Seeded role: {role.value}")
            elif sorted(record.permissions or []) != permissions or record.level != level:
                record.permissions = permissions
                record.level = level
                record.title = get_role_display_name(role)
                changed += 1
                logger.info(f"Updated role: {role.value}")

        db.commit()
        logger.info(f"Role seeding completed ({changed} changed)")
        return changed
    except Exception as e:
        db.rollback()
        logger.error(f"Role seeding error: {str(e)}")
        raise
