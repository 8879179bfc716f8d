"""
User account administration

Listing, creating, updating and deleting users. Any role or permission
change made here goes through the same seniority and admin checks as the
role management operations.
"""
import dataclasses
import logging
from typing import Any, Dict, Iterable, Optional

from learnhub.rbac.errors import InsufficientPermission, InsufficientSeniority, NotFound
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.resolver import has_any_permission, has_permission
from learnhub.rbac.roles import Role
from learnhub.rbac.types import Principal
from learnhub.services.role_management_service import (
    ASSIGNER_TOO_JUNIOR,
    ROLE_TOO_SENIOR,
    TARGET_TOO_SENIOR,
    RoleManagementService,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
LIST_PERMISSIONS = (
    Permissions.USER_VIEW,
    Permissions.USER_MANAGE_ROLES,
    Permissions.USER_MANAGE_PERMISSIONS,
)


class UserManagementService(RoleManagementService):
    """Account CRUD on top of the role management rules"""

    @staticmethod
    def _require_permission(actor: Principal, permission: Permissions, message: str) -> None:
        if not (actor.is_super_admin or has_permission(actor, permission)):
            raise InsufficientPermission(message, required=[permission.value], missing=[permission.value])

    def list_users(self, actor_id: Any, page: int = 1, limit: int = 20,
                   search: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
        """One page of users plus paging metadata"""
        actor = self._load_actor(actor_id)
        if not (actor.is_super_admin or has_any_permission(actor, LIST_PERMISSIONS)):
            raise InsufficientPermission('Insufficient permissions to list users',
                                         required=[p.value for p in LIST_PERMISSIONS])
        if role is not None:
            role = self._require_role(role).value

        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        users = self.store.query(role=role, search=search)
        total = len(users)
        start = (page - 1) * limit

        return {
            'users': users[start:start + limit],
            'meta': {
                'page': page,
                'limit': limit,
                'total': total,
                'total_pages': -(-total // limit),
            },
        }

    def get_user(self, target_id: Any, actor_id: Any) -> Principal:
        actor = self._load_actor(actor_id)
        if str(target_id) != str(actor.id):
            self._require_permission(actor, Permissions.USER_VIEW, 'Insufficient permissions to view users')
        target = self.store.get(target_id)
        if target is None:
            raise NotFound('User not found')
        return target

    def create_user(self, actor_id: Any, username: str, useremail: str,
                    role: Role | str = Role.USER, permissions: Optional[Iterable[str]] = None) -> Principal:
        """
        Create an account. The actor must outrank the role handed out, and
        only admins may attach extra permissions.
        """
        role_enum = self._require_role(role)
        actor = self._load_actor(actor_id)
        self._require_permission(actor, Permissions.USER_CREATE, 'Insufficient permissions to create users')
        self._require_senior(actor, role_enum, ROLE_TOO_SENIOR)

        extras = frozenset()
        if permissions:
            extras = self._require_permissions(permissions)
            self._require_admin(actor, 'Only admins can assign custom permissions')

        user = self.store.create_user(
            username=username,
            useremail=useremail,
            role=role_enum.value,
            extra_permissions=sorted(extras),
        )
        logger.info(f"User {actor.id} created user {user.id} with role {role_enum.value}")
        return user

    def update_user(self, target_id: Any, actor_id: Any, username: Optional[str] = None,
                    useremail: Optional[str] = None, role: Optional[Role | str] = None,
                    permissions: Optional[Iterable[str]] = None) -> Principal:
        """
        Update profile fields and, optionally, the role and the extra grants.

        ``permissions`` replaces the extra grants; an empty list clears them.
        A role change follows assign_role: manual permissions are dropped.
        """
        role_enum = self._require_role(role) if role is not None else None
        extras = None
        if permissions is not None:
            extras = self._require_permissions(permissions) if permissions else frozenset()
        actor = self._load_actor(actor_id)
        self._require_permission(actor, Permissions.USER_EDIT, 'Insufficient permissions to edit users')
        if extras is not None:
            self._require_admin(actor, 'Only admins can assign custom permissions')

        def change(target: Principal) -> Principal:
            target_role = target.primary_role or target.role
            if str(target.id) != str(actor.id):
                self._require_senior(actor, target_role, TARGET_TOO_SENIOR)
            updates: Dict[str, Any] = {}
            if username is not None:
                updates['username'] = username
            if useremail is not None:
                updates['useremail'] = useremail
            if role_enum is not None:
                self._require_senior(actor, target_role, ASSIGNER_TOO_JUNIOR)
                self._require_senior(actor, role_enum, ROLE_TOO_SENIOR)
                updates.update(
                    role=role_enum.value,
                    roles=frozenset({role_enum.value}),
                    manual_permissions=frozenset(),
                )
            if extras is not None:
                self._require_senior(actor, target_role, TARGET_TOO_SENIOR)
                updates['extra_permissions'] = extras
            return dataclasses.replace(target, **updates)

        updated = self._mutate(target_id, actor, InsufficientSeniority(TARGET_TOO_SENIOR), change)
        logger.info(f"User {actor.id} updated user {updated.id}")
        return updated

    def delete_user(self, target_id: Any, actor_id: Any) -> None:
        """Delete an account the actor outranks; nobody can delete themselves."""
        actor = self._load_actor(actor_id)
        self._require_permission(actor, Permissions.USER_DELETE, 'Insufficient permissions to delete users')
        try:
            target = self._load_target_for_update(target_id, actor, InsufficientSeniority(TARGET_TOO_SENIOR))
            self._require_senior(actor, target.primary_role or target.role, TARGET_TOO_SENIOR)
            self.store.delete(target.id)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
        logger.info(f"User {actor.id} deleted user {target.id}")
