"""
RBAC decorators for route protection

Each decorator loads the current principal, runs one gate and either calls
the view or returns the gate's JSON denial. The view never runs on a denial.
"""
from functools import wraps
from flask import g, jsonify
import logging

from sqlalchemy.exc import SQLAlchemyError

from learnhub.rbac import guards
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.resolver import has_any_permission, has_permission
from learnhub.rbac.roles import ADMIN_ROLES, Role, get_rate_limit
from learnhub.rbac.types import GateDecision
from learnhub.rbac.utils import get_current_principal, get_ownership_registry, get_principal_store

logger = logging.getLogger(__name__)

USER_MANAGEMENT_PERMISSIONS = (
    Permissions.USER_MANAGE_ROLES,
    Permissions.USER_EDIT,
    Permissions.USER_DELETE,
)

LOOKUP_FAILED = 'Authorization could not be verified'


def _deny(decision: GateDecision):
    return jsonify(decision.to_dict()), decision.status


def _lookup_failed() -> GateDecision:
    return GateDecision(allowed=False, status=403, message=LOOKUP_FAILED, reason='lookup_failed')


def _gated(gate):
    """Turn ``gate(principal, kwargs) -> GateDecision`` into a view decorator."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            decision = gate(get_current_principal(), kwargs)
            if not decision.allowed:
                return _deny(decision)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def login_required(f):
    """Decorator to require a resolvable logged-in principal."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_principal() is None:
            logger.info("Unauthorized access attempt")
            return jsonify({'success': False, 'error': 'Login required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles: Role | str):
    """
    Decorator to require one of the given roles.

    Example:
        @role_required(Role.INSTRUCTOR, Role.ADMIN)
        def instructor_dashboard():
            ...
    """
    return _gated(lambda principal, _: guards.check_role(principal, roles))


def permission_required(*permissions: Permissions | str):
    """
    Decorator to require every one of the given permissions.

    Example:
        @permission_required(Permissions.COURSE_PUBLISH)
        def publish_course(course_id):
            ...
    """
    return _gated(lambda principal, _: guards.check_permissions(principal, permissions))


def any_permission_required(*permissions: Permissions | str):
    """Decorator to require at least one of the given permissions."""
    return _gated(lambda principal, _: guards.check_any_permission(principal, permissions))


def resource_management_required(resource_type: str):
    """Decorator to require '{resource}:manage_own' or '{resource}:manage_all'."""
    return _gated(lambda principal, _: guards.check_resource_management(principal, resource_type))


def ownership_or_manage_all_required(resource_type: str, id_arg: str = 'resource_id'):
    """
    Decorator to require ownership of the resource named by the ``id_arg``
    URL argument, or '{resource}:manage_all'.

    The owner is looked up through the lookup registered for
    ``resource_type`` in the ownership registry.
    """
    def gate(principal, view_kwargs):
        if principal is None:
            return guards.check_ownership_or_manage_all(None, resource_type, None)
        resource_id = view_kwargs.get(id_arg)
        try:
            owner_id = get_ownership_registry().owner_of(resource_type, resource_id)
        except Exception as e:
            # unregistered resource type or a failing lookup; deny
            logger.error(f"Owner lookup for {resource_type} {resource_id} failed: {str(e)}", exc_info=True)
            return _lookup_failed()
        return guards.check_ownership_or_manage_all(
            principal, resource_type, owner_id, resource_exists=owner_id is not None,
        )
    return _gated(gate)


def user_management_required(user_id_arg: str = 'user_id'):
    """
    Decorator for routes acting on another user.

    Acting on yourself is always allowed. Otherwise the caller needs one of
    the user management permissions and must outrank the target user.
    """
    def gate(principal, view_kwargs):
        if principal is None:
            return guards.check_principal_management(None, None)
        target_id = view_kwargs.get(user_id_arg)
        if str(target_id) == str(principal.id):
            return GateDecision(allowed=True)

        if not (principal.is_super_admin or has_any_permission(principal, USER_MANAGEMENT_PERMISSIONS)):
            return guards.check_any_permission(principal, USER_MANAGEMENT_PERMISSIONS)

        try:
            target = get_principal_store().get(target_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not load target user {target_id} for authorization: {str(e)}")
            return _lookup_failed()
        if target is None:
            if principal.is_super_admin or has_permission(principal, Permissions.USER_VIEW):
                # the view answers with a 404
                return GateDecision(allowed=True)
            return GateDecision(allowed=False, status=403, message=guards.SENIORITY_DENIED, reason='seniority')
        return guards.check_principal_management(principal, target.primary_role or target.role)
    return _gated(gate)


def admin_only(f):
    """Decorator to allow only admins (and super-admins) to access a route."""
    return role_required(*ADMIN_ROLES)(f)


def super_admin_only(f):
    """Decorator to allow only super-admins to access a route."""
    return role_required(Role.SUPER_ADMIN)(f)


def role_rate_limit(f):
    """
    Decorator exposing the caller's hourly request limit as ``g.rate_limit``
    for the rate limiter; anonymous callers get the lowest tier.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = get_current_principal()
        g.rate_limit = get_rate_limit(principal.assigned_roles if principal else ())
        return f(*args, **kwargs)
    return decorated_function
