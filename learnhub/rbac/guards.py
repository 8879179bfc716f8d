"""
Authorization gates

Each gate takes an already-loaded principal (or None) and returns a
GateDecision. Gates never raise; the Flask decorators and the
administration service decide how a denial is surfaced.
"""
import logging
from typing import Any, Iterable, Optional

from learnhub.rbac.permissions import Permissions
from learnhub.rbac.resolver import has_any_permission, has_permission, missing_permissions
from learnhub.rbac.roles import Role, is_senior
from learnhub.rbac.types import GateDecision, Principal

logger = logging.getLogger(__name__)

SENIORITY_DENIED = 'Cannot manage user with equal or higher role'


def _allow() -> GateDecision:
    return GateDecision(allowed=True)


def _unauthenticated() -> GateDecision:
    return GateDecision(allowed=False, status=401, message='Login required', reason='unauthenticated')


def _values(items: Iterable[Any]) -> list[str]:
    return [str(i) for i in items]


def check_role(principal: Optional[Principal], allowed_roles: Iterable[Role | str]) -> GateDecision:
    """Pass if any assigned role is allowed. Super-admin always passes."""
    if principal is None:
        return _unauthenticated()
    if principal.is_super_admin:
        return _allow()

    allowed = _values(Role.from_string(r) or r for r in allowed_roles)
    if principal.assigned_roles & set(allowed):
        return _allow()

    logger.info(f"User {principal.id} with roles {sorted(principal.assigned_roles)} denied, requires one of {allowed}")
    return GateDecision(
        allowed=False,
        status=403,
        message='Forbidden: insufficient role',
        required=allowed,
        reason='role',
    )


def check_permissions(principal: Optional[Principal], required: Iterable[Permissions | str]) -> GateDecision:
    """Pass if every listed permission is held. Super-admin always passes."""
    if principal is None:
        return _unauthenticated()
    if principal.is_super_admin:
        return _allow()

    required = _values(required)
    missing = missing_permissions(principal, required)
    if not missing:
        return _allow()

    logger.info(f"User {principal.id} denied, missing permissions {missing}")
    return GateDecision(
        allowed=False,
        status=403,
        message='Forbidden: missing permissions',
        required=required,
        missing=missing,
        mode='all',
        reason='permission',
    )


def check_any_permission(principal: Optional[Principal], permissions: Iterable[Permissions | str]) -> GateDecision:
    """Pass if at least one listed permission is held. Super-admin always passes."""
    if principal is None:
        return _unauthenticated()
    if principal.is_super_admin:
        return _allow()

    permissions = _values(permissions)
    if has_any_permission(principal, permissions):
        return _allow()

    logger.info(f"User {principal.id} denied, needs any of {permissions}")
    return GateDecision(
        allowed=False,
        status=403,
        message='Forbidden: insufficient permissions (need any one of the listed permissions)',
        required=permissions,
        missing=permissions,
        mode='any',
        reason='permission',
    )


def management_permissions(resource_type: str) -> tuple[str, str]:
    return f"{resource_type}:manage_own", f"{resource_type}:manage_all"


def check_resource_management(principal: Optional[Principal], resource_type: str) -> GateDecision:
    """Pass with either '{resource}:manage_own' or '{resource}:manage_all'."""
    decision = check_any_permission(principal, management_permissions(resource_type))
    if not decision.allowed and decision.status == 403:
        decision.message = f'Forbidden: cannot manage {resource_type}'
    return decision


def check_ownership_or_manage_all(
    principal: Optional[Principal],
    resource_type: str,
    owner_id: Any,
    resource_exists: bool = True,
) -> GateDecision:
    """
    Pass with '{resource}:manage_all', otherwise only when the principal owns
    the resource.

    A missing resource is only reported as such to callers who could manage
    that resource type; everyone else gets the same 403 as a non-owner.
    """
    if principal is None:
        return _unauthenticated()

    manage_own, manage_all = management_permissions(resource_type)
    if principal.is_super_admin or has_permission(principal, manage_all):
        if not resource_exists:
            return GateDecision(allowed=False, status=404, message=f'{resource_type} not found', reason='not_found')
        return _allow()

    if not resource_exists:
        if has_permission(principal, manage_own):
            return GateDecision(allowed=False, status=404, message=f'{resource_type} not found', reason='not_found')
    elif owner_id is not None and str(owner_id) == str(principal.id):
        return _allow()

    logger.info(f"User {principal.id} denied access to a {resource_type} it does not own")
    return GateDecision(
        allowed=False,
        status=403,
        message=f'Only the owner or users with manage_all permission can access this {resource_type}',
        required=[manage_all],
        reason='ownership',
    )


def check_principal_management(actor: Optional[Principal], target_role: Role | str | None) -> GateDecision:
    """Pass only when the actor's most senior role outranks the target role."""
    if actor is None:
        return _unauthenticated()

    actor_role = actor.primary_role
    if is_senior(actor_role, target_role):
        return _allow()

    logger.info(f"User {actor.id} ({actor_role}) cannot manage a user with role {target_role}")
    return GateDecision(
        allowed=False,
        status=403,
        message=SENIORITY_DENIED,
        reason='seniority',
    )
