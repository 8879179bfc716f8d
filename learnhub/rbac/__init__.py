"""
RBAC (Role-Based Access Control) module for LearnHub

This module provides:
- the permission catalog and the per-role default permission sets
- the role seniority order used to decide who may manage whom
- the resolver computing a user's effective permissions
- authorization gates and the Flask decorators wrapping them
"""

from learnhub.rbac.errors import (
    RBACError,
    Unauthenticated,
    InsufficientRole,
    InsufficientPermission,
    InsufficientSeniority,
    NotFound,
    ValidationError,
)
from learnhub.rbac.roles import Role, ROLE_HIERARCHY, ROLE_RATE_LIMITS, get_rate_limit, hierarchy_index, is_senior
from learnhub.rbac.permissions import (
    Permissions,
    ALL_PERMISSIONS,
    ROLE_PERMISSIONS,
    get_permissions_for_role,
)
from learnhub.rbac.role_table import RoleTable, get_role_hierarchy
from learnhub.rbac.types import Principal, GateDecision, RoleTransitionResult, BulkAssignResult
from learnhub.rbac.resolver import (
    resolve,
    recompute_effective_permissions,
    has_permission,
    has_any_permission,
    has_all_permissions,
)
from learnhub.rbac.guards import (
    check_role,
    check_permissions,
    check_any_permission,
    check_resource_management,
    check_ownership_or_manage_all,
    check_principal_management,
)
from learnhub.rbac.ownership import OwnershipRegistry, column_owner_lookup
from learnhub.rbac.decorators import (
    login_required,
    role_required,
    permission_required,
    any_permission_required,
    resource_management_required,
    ownership_or_manage_all_required,
    user_management_required,
    admin_only,
    super_admin_only,
    role_rate_limit,
)
from learnhub.rbac.utils import get_current_principal

__all__ = [
    'RBACError',
    'Unauthenticated',
    'InsufficientRole',
    'InsufficientPermission',
    'InsufficientSeniority',
    'NotFound',
    'ValidationError',
    'Role',
    'ROLE_HIERARCHY',
    'hierarchy_index',
    'is_senior',
    'ROLE_RATE_LIMITS',
    'get_rate_limit',
    'Permissions',
    'ALL_PERMISSIONS',
    'ROLE_PERMISSIONS',
    'get_permissions_for_role',
    'RoleTable',
    'get_role_hierarchy',
    'Principal',
    'GateDecision',
    'RoleTransitionResult',
    'BulkAssignResult',
    'resolve',
    'recompute_effective_permissions',
    'has_permission',
    'has_any_permission',
    'has_all_permissions',
    'check_role',
    'check_permissions',
    'check_any_permission',
    'check_resource_management',
    'check_ownership_or_manage_all',
    'check_principal_management',
    'OwnershipRegistry',
    'column_owner_lookup',
    'login_required',
    'role_required',
    'permission_required',
    'any_permission_required',
    'resource_management_required',
    'ownership_or_manage_all_required',
    'user_management_required',
    'admin_only',
    'super_admin_only',
    'role_rate_limit',
    'get_current_principal',
]
