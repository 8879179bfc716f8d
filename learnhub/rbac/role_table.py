"""
Role definition table

A read-only mapping of role -> default permissions, built once at startup
either from the static declaration in ``permissions.py`` or from the
persisted role records. Resolution always goes through one of these tables.
"""
import logging
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from learnhub.rbac.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, Permissions
from learnhub.rbac.roles import ROLE_HIERARCHY, Role, hierarchy_index

logger = logging.getLogger(__name__)


class RoleTable:
    """Immutable role -> permission set mapping."""

    __slots__ = ('_permissions', 'source')

    def __init__(self, permissions: Dict[Role, FrozenSet[Permissions]], source: str = 'static'):
        table = {role: frozenset(permissions.get(role, ROLE_PERMISSIONS[role])) for role in Role}
        # super-admin is the whole catalog no matter what a record says
        table[Role.SUPER_ADMIN] = ALL_PERMISSIONS
        self._permissions = MappingProxyType(table)
        self.source = source

    @classmethod
    def default(cls) -> 'RoleTable':
        return _DEFAULT_TABLE

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> 'RoleTable':
        """
        Build a table from persisted role records.

        Each record needs ``name`` and ``permissions`` attributes (the
        ``RoleRecord`` model or any object shaped like it). Roles absent from
        the records keep their static defaults.

        Raises:
            ValueError: a record names an unknown role or permission
        """
        permissions: Dict[Role, FrozenSet[Permissions]] = {}
        for record in records:
            role = Role.from_string(record.name)
            if role is None:
                raise ValueError(f"Unknown role in role records: {record.name!r}")
            tokens = record.permissions or []
            invalid = [t for t in tokens if not Permissions.is_valid(t)]
            if invalid:
                raise ValueError(f"Role {role.value} references unknown permissions: {invalid}")
            permissions[role] = frozenset(Permissions.from_string(t) for t in tokens)
        logger.info(f"Loaded role table from {len(permissions)} persisted role records")
        return cls(permissions, source='database')

    def permissions_for(self, role: Role | str | None) -> FrozenSet[Permissions]:
        """Default permissions for a role; empty for unknown roles."""
        role_enum = Role.from_string(role)
        if role_enum is None:
            return frozenset()
        return self._permissions[role_enum]

    def as_dict(self) -> Dict[str, List[str]]:
        return {role.value: sorted(p.value for p in perms) for role, perms in self._permissions.items()}

    def __contains__(self, role) -> bool:
        return Role.from_string(role) is not None

    def __eq__(self, other):
        if not isinstance(other, RoleTable):
            return NotImplemented
        return dict(self._permissions) == dict(other._permissions)

    def __hash__(self):
        return hash(frozenset(self._permissions.items()))

    def __repr__(self):
        return f"RoleTable(source={self.source!r})"


_DEFAULT_TABLE = RoleTable(dict(ROLE_PERMISSIONS), source='static')


def get_role_hierarchy(role_table: Optional[RoleTable] = None) -> List[Dict[str, Any]]:
    """
    Describe the hierarchy for admin listings.

    Returns:
        One entry per role, lowest first, with its level and default permissions
    """
    table = role_table or RoleTable.default()
    return [
        {
            'role': role.value,
            'level': hierarchy_index(role),
            'permissions': sorted(p.value for p in table.permissions_for(role)),
        }
        for role in ROLE_HIERARCHY
    ]
