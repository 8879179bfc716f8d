"""
Role and permission administration

Every mutating operation follows the same steps: load the acting user,
lock and load the target, check the preconditions, change the record,
recompute the effective permissions explicitly, then save and commit.
Nothing is written when a precondition fails.
"""
import dataclasses
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from learnhub.rbac.errors import (
    InsufficientPermission,
    InsufficientRole,
    InsufficientSeniority,
    NotFound,
    RBACError,
    Unauthenticated,
    ValidationError,
)
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.resolver import (
    effective_permissions_of,
    has_any_permission,
    has_permission,
    recompute_effective_permissions,
)
from learnhub.rbac.role_table import RoleTable, get_role_hierarchy
from learnhub.rbac.roles import ADMIN_ROLES, Role, is_senior
from learnhub.rbac.types import BulkAssignResult, Principal, RoleTransitionResult

logger = logging.getLogger(__name__)

ASSIGNER_TOO_JUNIOR = 'Insufficient privileges to change user role'
ROLE_TOO_SENIOR = 'Cannot assign role higher than or equal to your own'
TARGET_TOO_SENIOR = 'Cannot modify user with higher or equal role'


class RoleManagementService:
    """
    Role and permission administration on top of a principal store.

    Args:
        store: A ``PrincipalStore`` (or anything with the same methods)
        role_table: Role definitions to resolve against; defaults to the
            static table
    """

    def __init__(self, store, role_table: Optional[RoleTable] = None):
        self.store = store
        self.role_table = role_table or RoleTable.default()

    # ---------- input validation ----------

    @staticmethod
    def _require_role(role: Any) -> Role:
        role_enum = Role.from_string(role)
        if role_enum is None:
            raise ValidationError(f"Unknown role: {role!r}", details={'valid_roles': Role.get_all()})
        return role_enum

    @staticmethod
    def _require_permissions(permissions: Optional[Iterable[Any]]) -> FrozenSet[str]:
        if isinstance(permissions, (str, bytes)) or permissions is None:
            raise ValidationError('Permissions array is required')
        tokens = [str(p).strip() for p in permissions]
        if not tokens:
            raise ValidationError('Permissions array must not be empty')
        invalid = [t for t in tokens if not Permissions.is_valid(t)]
        if invalid:
            raise ValidationError(f"Unknown permissions: {invalid}", details={'invalid': invalid})
        return frozenset(Permissions.from_string(t).value for t in tokens)

    # ---------- loading ----------

    def _load_actor(self, actor_id: Any) -> Principal:
        actor = self.store.get(actor_id)
        if actor is None:
            raise Unauthenticated('Acting user not found')
        return actor

    @staticmethod
    def _can_see_users(actor: Principal) -> bool:
        return actor.is_super_admin or has_permission(actor, Permissions.USER_VIEW)

    def _load_target_for_update(self, target_id: Any, actor: Principal, denial: RBACError) -> Principal:
        """
        Lock and load the target. Callers who may not list users get
        ``denial`` for a missing target, the same error an existing but
        unmanageable target would produce.
        """
        target = self.store.get_for_update(target_id)
        if target is None:
            if self._can_see_users(actor):
                raise NotFound('User not found')
            raise denial
        return target

    # ---------- precondition checks ----------

    @staticmethod
    def _require_admin(actor: Principal, message: str) -> None:
        if not actor.assigned_roles & {r.value for r in ADMIN_ROLES}:
            raise InsufficientRole(message, required=[r.value for r in ADMIN_ROLES])

    @staticmethod
    def _require_senior(actor: Principal, other_role: Any, message: str) -> None:
        if not is_senior(actor.primary_role, other_role):
            raise InsufficientSeniority(message)

    def _mutate(self, target_id: Any, actor: Principal, denial: RBACError,
                change: Callable[[Principal], Principal]) -> Principal:
        """Run one read-modify-write on a single target inside its own transaction."""
        try:
            target = self._load_target_for_update(target_id, actor, denial)
            updated = recompute_effective_permissions(change(target), self.role_table)
            self.store.save(updated)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
        return updated

    def _role_defaults(self, principal: Principal) -> FrozenSet[str]:
        defaults = set()
        for role in principal.assigned_roles:
            defaults.update(p.value for p in self.role_table.permissions_for(role))
        return frozenset(defaults)

    # ---------- operations ----------

    def assign_role(self, target_id: Any, new_role: Role | str, actor_id: Any) -> Principal:
        """
        Replace the target's role(s) with ``new_role``.

        The actor must outrank both the target's current role and the new
        role. Extra permissions survive the change; manual legacy
        permissions do not.
        """
        role = self._require_role(new_role)
        actor = self._load_actor(actor_id)

        def change(target: Principal) -> Principal:
            self._require_senior(actor, target.primary_role or target.role, ASSIGNER_TOO_JUNIOR)
            self._require_senior(actor, role, ROLE_TOO_SENIOR)
            return dataclasses.replace(
                target,
                role=role.value,
                roles=frozenset({role.value}),
                manual_permissions=frozenset(),
            )

        updated = self._mutate(target_id, actor, InsufficientSeniority(ASSIGNER_TOO_JUNIOR), change)
        logger.info(f"User {actor.id} assigned role {role.value} to user {updated.id}")
        return updated

    def assign_roles(self, target_id: Any, new_roles: Iterable[Role | str], actor_id: Any) -> Principal:
        """Multi-role form of assign_role; the actor must outrank every new role."""
        if isinstance(new_roles, (str, bytes)) or not new_roles:
            raise ValidationError('Roles array is required')
        roles = frozenset(self._require_role(r) for r in new_roles)
        actor = self._load_actor(actor_id)

        def change(target: Principal) -> Principal:
            self._require_senior(actor, target.primary_role or target.role, ASSIGNER_TOO_JUNIOR)
            for role in roles:
                self._require_senior(actor, role, ROLE_TOO_SENIOR)
            return dataclasses.replace(
                target,
                roles=frozenset(r.value for r in roles),
                manual_permissions=frozenset(),
            )

        updated = self._mutate(target_id, actor, InsufficientSeniority(ASSIGNER_TOO_JUNIOR), change)
        logger.info(f"User {actor.id} assigned roles {sorted(updated.roles)} to user {updated.id}")
        return updated

    def add_extra_permissions(self, target_id: Any, permissions: Iterable[Permissions | str],
                              actor_id: Any) -> Principal:
        """Grant permissions on top of the target's roles (admins only)"""
        tokens = self._require_permissions(permissions)
        actor = self._load_actor(actor_id)
        message = 'Only admins can assign custom permissions'
        self._require_admin(actor, message)

        updated = self._mutate(
            target_id, actor, InsufficientRole(message),
            lambda target: dataclasses.replace(target, extra_permissions=target.extra_permissions | tokens),
        )
        logger.info(f"User {actor.id} granted {sorted(tokens)} to user {updated.id}")
        return updated

    def remove_extra_permissions(self, target_id: Any, permissions: Iterable[Permissions | str],
                                 actor_id: Any) -> Principal:
        """
        Withdraw extra grants (admins only).

        A permission that one of the target's roles also grants stays
        effective; only the extra grant is dropped.
        """
        tokens = self._require_permissions(permissions)
        actor = self._load_actor(actor_id)
        message = 'Only admins can remove custom permissions'
        self._require_admin(actor, message)

        updated = self._mutate(
            target_id, actor, InsufficientRole(message),
            lambda target: dataclasses.replace(
                target,
                extra_permissions=target.extra_permissions - tokens,
                manual_permissions=target.manual_permissions - tokens,
            ),
        )
        kept = sorted(tokens & self._role_defaults(updated))
        if kept:
            logger.info(f"Permissions {kept} remain effective for user {updated.id} through a role")
        logger.info(f"User {actor.id} removed {sorted(tokens)} from user {updated.id}")
        return updated

    def reset_to_role_defaults(self, target_id: Any, actor_id: Any) -> Principal:
        """Drop every extra and manual grant, leaving exactly the role defaults"""
        actor = self._load_actor(actor_id)
        message = 'Insufficient privileges to reset user permissions'

        def change(target: Principal) -> Principal:
            self._require_senior(actor, target.primary_role or target.role, message)
            return dataclasses.replace(target, extra_permissions=frozenset(), manual_permissions=frozenset())

        updated = self._mutate(target_id, actor, InsufficientSeniority(message), change)
        logger.info(f"User {actor.id} reset permissions of user {updated.id} to role defaults")
        return updated

    def bulk_assign_role(self, target_ids: Iterable[Any], new_role: Role | str, actor_id: Any) -> BulkAssignResult:
        """
        assign_role for each target independently.

        One target failing never stops or undoes the others; each failure
        is reported with its reason.
        """
        if isinstance(target_ids, (str, bytes)) or not target_ids:
            raise ValidationError('User IDs array is required')
        self._require_role(new_role)
        actor = self._load_actor(actor_id)
        self._require_admin(actor, 'Only admins can perform bulk role assignments')

        results = BulkAssignResult()
        for target_id in target_ids:
            try:
                self.assign_role(target_id, new_role, actor_id)
                results.success.append(target_id)
            except RBACError as e:
                results.failed.append({'user_id': target_id, 'error': e.message, 'error_type': e.error_type})
            except Exception as e:
                logger.error(f"Unexpected error assigning role to user {target_id}: {str(e)}", exc_info=True)
                results.failed.append({'user_id': target_id, 'error': 'Unexpected error', 'error_type': 'internal_error'})

        logger.info(f"Bulk role assignment by user {actor.id}: "
                    f"{len(results.success)} successful, {len(results.failed)} failed")
        return results

    @staticmethod
    def validate_role_transition(current_role: Role | str, new_role: Role | str,
                                 actor_role: Role | str) -> RoleTransitionResult:
        """Dry-run of the assign_role seniority rules; changes nothing"""
        if Role.from_string(new_role) is None:
            return RoleTransitionResult(valid=False, error=f"Unknown role: {new_role}")
        if not is_senior(actor_role, new_role):
            return RoleTransitionResult(valid=False, error=ROLE_TOO_SENIOR)
        if not is_senior(actor_role, current_role):
            return RoleTransitionResult(valid=False, error=TARGET_TOO_SENIOR)
        return RoleTransitionResult(valid=True)

    def check_role_change(self, target_id: Any, new_role: Role | str, actor_id: Any) -> RoleTransitionResult:
        """validate_role_transition against a stored user and the acting user"""
        actor = self._load_actor(actor_id)
        target = self.store.get(target_id)
        if target is None:
            if self._can_see_users(actor):
                raise NotFound('User not found')
            raise InsufficientSeniority(ASSIGNER_TOO_JUNIOR)
        return self.validate_role_transition(target.primary_role or target.role, new_role, actor.primary_role)

    def get_users_with_roles(self, actor_id: Any, role: Optional[str] = None,
                             permissions: Optional[Iterable[str]] = None,
                             search: Optional[str] = None) -> List[Principal]:
        """
        Users with their roles and permissions, limited to the ones the
        actor outranks (plus the actor itself).
        """
        actor = self._load_actor(actor_id)
        required = [Permissions.USER_VIEW, Permissions.USER_MANAGE_ROLES]
        if not (actor.is_super_admin or has_any_permission(actor, required)):
            raise InsufficientPermission('Insufficient permissions to view user roles',
                                         required=[p.value for p in required])
        if role is not None:
            role = self._require_role(role).value
        if permissions:
            permissions = self._require_permissions(permissions)

        users = self.store.query(role=role, permissions=permissions, search=search)
        return [
            u for u in users
            if is_senior(actor.primary_role, u.primary_role) or str(u.id) == str(actor.id)
        ]

    def get_permission_analysis(self, target_id: Any, actor_id: Any) -> Dict[str, Any]:
        """Split a user's effective permissions into role defaults and extra grants"""
        actor = self._load_actor(actor_id)
        if str(target_id) != str(actor.id) and not self._can_see_users(actor):
            raise InsufficientPermission('Insufficient permissions to view user permissions',
                                         required=[Permissions.USER_VIEW.value])

        target = self.store.get(target_id)
        if target is None:
            raise NotFound('User not found')

        effective = effective_permissions_of(target, self.role_table)
        role_permissions = self._role_defaults(target)
        custom_permissions = effective - role_permissions

        return {
            'user_id': target.id,
            'role': target.role,
            'roles': sorted(target.assigned_roles),
            'role_permissions': sorted(role_permissions),
            'extra_permissions': sorted(target.extra_permissions),
            'custom_permissions': sorted(custom_permissions),
            'all_permissions': sorted(effective),
            'analysis': {
                'role_permissions': len(role_permissions),
                'custom_permissions': len(custom_permissions),
                'total_permissions': len(effective),
            },
        }

    def get_role_hierarchy(self) -> Dict[str, Any]:
        """Role hierarchy with each role's default permissions"""
        return {
            'hierarchy': get_role_hierarchy(self.role_table),
            'role_permissions': self.role_table.as_dict(),
        }
