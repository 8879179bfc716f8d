"""
Permission resolver

Computes a principal's effective permissions and answers has/any/all
questions against them. Everything here is a pure function of its inputs.
"""
import dataclasses
import logging
from typing import FrozenSet, Iterable, Optional

from learnhub.rbac.permissions import Permissions
from learnhub.rbac.role_table import RoleTable
from learnhub.rbac.types import Principal

logger = logging.getLogger(__name__)


def resolve(principal: Principal, role_table: Optional[RoleTable] = None) -> FrozenSet[str]:
    """
    Union of every assigned role's defaults, the extra grants and any
    manually set legacy permissions.

    Permissions only ever accumulate here; the one way to lose a
    role-granted permission is to lose the role. Tokens that are not in
    the catalog are dropped.
    """
    table = role_table or RoleTable.default()
    resolved = set()
    for role in principal.assigned_roles:
        resolved.update(p.value for p in table.permissions_for(role))

    for token in principal.extra_permissions | principal.manual_permissions:
        if Permissions.is_valid(token):
            resolved.add(Permissions.from_string(token).value)
        else:
            logger.warning(f"Ignoring unknown permission {token!r} on user {principal.id}")

    return frozenset(resolved)


def recompute_effective_permissions(principal: Principal, role_table: Optional[RoleTable] = None) -> Principal:
    """
    Return a copy of the principal with a freshly materialized permission set.

    Every mutation of role, roles, extra or manual permissions must pass
    through here before the record is persisted.
    """
    primary = principal.primary_role
    return dataclasses.replace(
        principal,
        role=primary.value if primary else principal.role,
        effective_permissions=resolve(principal, role_table),
    )


def effective_permissions_of(principal: Principal, role_table: Optional[RoleTable] = None) -> FrozenSet[str]:
    """Stored effective set, or a fresh resolution when none was stored."""
    if principal.effective_permissions is not None:
        return principal.effective_permissions
    return resolve(principal, role_table)


def _tokens(permissions: Iterable[Permissions | str]) -> list[str]:
    return [str(p) for p in permissions]


def has_permission(principal: Principal, permission: Permissions | str) -> bool:
    return str(permission) in effective_permissions_of(principal)


def has_any_permission(principal: Principal, permissions: Iterable[Permissions | str]) -> bool:
    """True when at least one is held. An empty list is never satisfied."""
    held = effective_permissions_of(principal)
    return any(p in held for p in _tokens(permissions))


def has_all_permissions(principal: Principal, permissions: Iterable[Permissions | str]) -> bool:
    """True when every one is held. An empty list is trivially satisfied."""
    held = effective_permissions_of(principal)
    return all(p in held for p in _tokens(permissions))


def missing_permissions(principal: Principal, permissions: Iterable[Permissions | str]) -> list[str]:
    held = effective_permissions_of(principal)
    return [p for p in _tokens(permissions) if p not in held]
