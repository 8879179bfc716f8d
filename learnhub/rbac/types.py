"""
RBAC Types

Core type definitions shared by the resolver, guards and the
administration service.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from learnhub.rbac import errors
from learnhub.rbac.roles import Role, most_senior


@dataclass
class Principal:
    """
    Privilege record of one user.

    Attributes:
        id: User identifier
        role: Primary role (legacy single-role field); for multi-role users
            this is the most senior assigned role
        roles: Every assigned role; empty means "just ``role``"
        extra_permissions: Grants beyond any role
        manual_permissions: Permissions set by hand on legacy records
        effective_permissions: Materialized union, None until computed
        username: Display name, informational only
        useremail: Email address, informational only
    """
    id: int
    role: Optional[str] = Role.USER.value
    roles: FrozenSet[str] = frozenset()
    extra_permissions: FrozenSet[str] = frozenset()
    manual_permissions: FrozenSet[str] = frozenset()
    effective_permissions: Optional[FrozenSet[str]] = None
    username: Optional[str] = None
    useremail: Optional[str] = None

    def __post_init__(self):
        self.roles = frozenset(str(r) for r in self.roles)
        self.extra_permissions = frozenset(str(p) for p in self.extra_permissions)
        self.manual_permissions = frozenset(str(p) for p in self.manual_permissions)
        if self.effective_permissions is not None:
            self.effective_permissions = frozenset(str(p) for p in self.effective_permissions)

    @property
    def assigned_roles(self) -> FrozenSet[str]:
        """All roles held, with single-role records treated as a one-element set."""
        if self.roles:
            return self.roles
        if self.role:
            return frozenset({str(self.role)})
        return frozenset()

    @property
    def primary_role(self) -> Optional[Role]:
        """Most senior known role, used for every seniority comparison."""
        return most_senior(self.assigned_roles)

    @property
    def is_super_admin(self) -> bool:
        return Role.SUPER_ADMIN.value in self.assigned_roles

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'username': self.username,
            'useremail': self.useremail,
            'role': self.role,
            'roles': sorted(self.assigned_roles),
            'extra_permissions': sorted(self.extra_permissions),
            'permissions': sorted(self.effective_permissions or ()),
        }


@dataclass
class GateDecision:
    """
    Outcome of an authorization gate.

    ``status`` is 200 when allowed, 401 when no principal was available,
    403 when privileges are insufficient and 404 when an ownership lookup
    found nothing for a caller entitled to know that.
    """
    allowed: bool
    status: int = 200
    message: str = ''
    required: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    mode: Optional[str] = None
    reason: Optional[str] = None

    def __bool__(self):
        return self.allowed

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'success': self.allowed, 'error': self.message}
        if self.required:
            payload['required'] = self.required
        if self.missing:
            payload['missing'] = self.missing
        if self.mode:
            payload['mode'] = self.mode
        return payload

    def raise_for_denial(self) -> None:
        """Raise the typed error matching a denial; no-op when allowed."""
        if self.allowed:
            return
        error_cls = {
            401: errors.Unauthenticated,
            404: errors.NotFound,
        }.get(self.status)
        if error_cls is None:
            error_cls = {
                'role': errors.InsufficientRole,
                'seniority': errors.InsufficientSeniority,
            }.get(self.reason, errors.InsufficientPermission)
        raise error_cls(self.message, required=self.required, missing=self.missing)


@dataclass
class RoleTransitionResult:
    """Dry-run answer for a role change."""
    valid: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'valid': self.valid, 'error': self.error}


@dataclass
class BulkAssignResult:
    """Per-target outcome of a bulk role assignment."""
    success: List[Any] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'success': list(self.success), 'failed': list(self.failed)}
