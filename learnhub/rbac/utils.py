"""
Request-level RBAC helpers

The principal is re-read from the store on every request. Permissions
cached in the session by the login flow are never consulted.
"""
import logging
from typing import Optional

from flask import current_app, g, session
from sqlalchemy.exc import SQLAlchemyError

from learnhub.rbac.ownership import OwnershipRegistry
from learnhub.rbac.role_table import RoleTable
from learnhub.rbac.types import Principal

logger = logging.getLogger(__name__)

_NOT_LOADED = object()


def get_role_table() -> RoleTable:
    """Role table built at startup, or the static one outside an app."""
    return current_app.extensions.get('learnhub_role_table') or RoleTable.default()


def get_ownership_registry() -> OwnershipRegistry:
    return current_app.extensions['learnhub_ownership']


def get_principal_store():
    """Principal store bound to the request's database session"""
    from learnhub.models import PrincipalStore
    from learnhub.utils.db import get_db
    return PrincipalStore(get_db(), get_role_table())


def get_current_principal() -> Optional[Principal]:
    """
    Load the principal for the logged-in user.

    Returns:
        The principal, or None when there is no session user, the record
        is gone, or the store could not be read
    """
    cached = g.get('principal', _NOT_LOADED)
    if cached is not _NOT_LOADED:
        return cached

    principal = None
    user_id = session.get('user_id')
    if user_id is not None:
        try:
            principal = get_principal_store().get(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not load user {user_id} for authorization: {str(e)}")
            principal = None
        if principal is None:
            logger.info(f"Session user {user_id} could not be resolved to a principal")

    g.principal = principal
    return principal
