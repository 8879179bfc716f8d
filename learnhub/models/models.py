import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from learnhub.models.database_models import User as DBUser
from learnhub.rbac.errors import ValidationError
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.resolver import recompute_effective_permissions
from learnhub.rbac.role_table import RoleTable
from learnhub.rbac.roles import Role
from learnhub.rbac.types import Principal

logger = logging.getLogger(__name__)


class PrincipalStore:
    """
    Principal store backed by the ``users`` table.

    Reads return ``Principal`` objects; writes take them back. The store
    never decides anything about privileges, it only recomputes the
    materialized set on creation so no row is ever written without one.
    """

    def __init__(self, session, role_table: Optional[RoleTable] = None):
        self.session = session
        self.role_table = role_table or RoleTable.default()

    @staticmethod
    def _to_principal(user: DBUser) -> Principal:
        return Principal(
            id=user.id,
            role=user.role,
            roles=frozenset(user.roles or []),
            extra_permissions=frozenset(user.extra_permissions or []),
            manual_permissions=frozenset(user.manual_permissions or []),
            effective_permissions=frozenset(user.permissions or []),
            username=user.username,
            useremail=user.useremail,
        )

    @staticmethod
    def _coerce_id(user_id: Any) -> Optional[int]:
        if isinstance(user_id, bool):
            return None
        try:
            return int(user_id)
        except (TypeError, ValueError):
            return None

    def get(self, user_id: Any) -> Optional[Principal]:
        """Fetch a principal by id, or None"""
        key = self._coerce_id(user_id)
        if key is None:
            return None
        user = self.session.get(DBUser, key, populate_existing=True)
        return self._to_principal(user) if user else None

    def get_for_update(self, user_id: Any) -> Optional[Principal]:
        """Fetch a principal and lock its row until commit/rollback"""
        key = self._coerce_id(user_id)
        if key is None:
            return None
        user = self.session.execute(
            select(DBUser).where(DBUser.id == key).with_for_update().execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_principal(user) if user else None

    def create_user(self, username: str, useremail: str, role: str = Role.USER.value,
                    roles: Optional[Iterable[str]] = None,
                    extra_permissions: Optional[Iterable[str]] = None,
                    manual_permissions: Optional[Iterable[str]] = None) -> Principal:
        """Create a new user with a computed effective permission set"""
        assigned = list(roles) if roles else [role]
        invalid_roles = [r for r in assigned if not Role.is_valid(r)]
        if invalid_roles:
            raise ValidationError(f"Unknown roles: {invalid_roles}")
        extras = list(extra_permissions or [])
        invalid = [p for p in extras if not Permissions.is_valid(p)]
        if invalid:
            raise ValidationError(f"Unknown permissions: {invalid}", details={'invalid': invalid})

        principal = recompute_effective_permissions(
            Principal(
                id=0,
                role=Role.from_string(assigned[0]).value,
                roles=frozenset(Role.from_string(r).value for r in assigned),
                extra_permissions=frozenset(extras),
                manual_permissions=frozenset(manual_permissions or []),
            ),
            self.role_table,
        )
        user = DBUser(
            username=username,
            useremail=useremail,
            role=principal.role,
            roles=sorted(principal.roles),
            extra_permissions=sorted(principal.extra_permissions),
            manual_permissions=sorted(principal.manual_permissions),
            permissions=sorted(principal.effective_permissions),
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError('Username or email already exists')
        logger.info(f"Created user {user.id} with roles {sorted(principal.roles)}")
        return self._to_principal(user)

    def save(self, principal: Principal) -> None:
        """
        Write a principal back to its row (no commit).

        Privilege fields are always written; username and email only when set.
        """
        if principal.effective_permissions is None:
            raise ValueError('Refusing to save a principal without effective permissions')
        user = self.session.get(DBUser, principal.id)
        if user is None:
            raise LookupError(f"User {principal.id} vanished before save")
        user.role = principal.role
        user.roles = sorted(principal.assigned_roles)
        user.extra_permissions = sorted(principal.extra_permissions)
        user.manual_permissions = sorted(principal.manual_permissions)
        user.permissions = sorted(principal.effective_permissions)
        if principal.username is not None:
            user.username = principal.username
        if principal.useremail is not None:
            user.useremail = principal.useremail
        try:
            self.session.flush()
        except IntegrityError:
            raise ValidationError('Username or email already exists')

    def delete(self, user_id: Any) -> bool:
        """Delete a user row (no commit); False when there was none"""
        key = self._coerce_id(user_id)
        user = self.session.get(DBUser, key) if key is not None else None
        if user is None:
            return False
        self.session.delete(user)
        self.session.flush()
        logger.info(f"Deleted user {key}")
        return True

    def query(self, role: Optional[str] = None, permissions: Optional[Iterable[str]] = None,
              search: Optional[str] = None) -> List[Principal]:
        """
        List principals, optionally holding ``role`` among their roles and
        holding at least one of ``permissions``.
        """
        stmt = select(DBUser).order_by(DBUser.id)
        if search:
            stmt = stmt.where(or_(
                DBUser.username.ilike(f'%{search}%'),
                DBUser.useremail.ilike(f'%{search}%'),
            ))
        principals = [self._to_principal(u) for u in self.session.execute(stmt).scalars()]

        # roles/permissions are JSON arrays; membership is checked here to
        # stay portable across SQLite and PostgreSQL
        if role:
            principals = [p for p in principals if role in p.assigned_roles]
        if permissions:
            wanted = {str(p) for p in permissions}
            principals = [p for p in principals if wanted & (p.effective_permissions or frozenset())]
        return principals

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
