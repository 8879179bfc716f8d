"""
Tests for the authorization gates

Tests cover:
- Unauthenticated callers
- Super-admin bypass
- Role, all-of and any-of permission gates
- Resource management and ownership gates, including missing resources
- Seniority gate for managing other users
- GateDecision.raise_for_denial mapping
"""
import pytest

from learnhub.rbac import errors
from learnhub.rbac.guards import (
    check_any_permission,
    check_ownership_or_manage_all,
    check_permissions,
    check_principal_management,
    check_resource_management,
    check_role,
)
from learnhub.rbac.resolver import recompute_effective_permissions
from learnhub.rbac.roles import Role
from learnhub.rbac.types import GateDecision, Principal


def principal(role='user', roles=(), extra=(), id=1):
    return recompute_effective_permissions(
        Principal(id=id, role=role, roles=frozenset(roles), extra_permissions=frozenset(extra))
    )


class TestUnauthenticated:
    """Every gate answers 401 without a principal"""

    @pytest.mark.parametrize('decision', [
        check_role(None, [Role.ADMIN]),
        check_permissions(None, ['course:view']),
        check_any_permission(None, ['course:view']),
        check_resource_management(None, 'course'),
        check_ownership_or_manage_all(None, 'course', 1),
        check_principal_management(None, Role.USER),
    ])
    def test_denied_with_401(self, decision):
        assert not decision.allowed
        assert decision.status == 401


class TestSuperAdminBypass:
    """Super-admin passes every role and permission gate"""

    def test_role_gate(self):
        assert check_role(principal('super-admin'), [Role.STUDENT])

    def test_permission_gates(self):
        root = principal('super-admin')
        assert check_permissions(root, ['system:restore', 'payment:refund'])
        assert check_any_permission(root, ['system:restore'])
        assert check_resource_management(root, 'blog')

    def test_bypass_ignores_stored_permissions(self):
        # the bypass is decided from the role, not from a stale stored set
        root = Principal(id=1, role='super-admin', effective_permissions=frozenset())
        assert check_permissions(root, ['system:restore'])

    def test_ownership_gate(self):
        assert check_ownership_or_manage_all(principal('super-admin', id=1), 'course', owner_id=99)


class TestRoleGate:
    def test_allowed_role(self):
        assert check_role(principal('editor'), [Role.EDITOR, Role.ADMIN])

    def test_any_assigned_role_counts(self):
        assert check_role(principal(roles={'author', 'student'}), ['student'])

    def test_admin_has_no_implicit_bypass(self):
        decision = check_role(principal('admin'), [Role.INSTRUCTOR])
        assert not decision.allowed
        assert decision.status == 403
        assert decision.required == ['instructor']


class TestPermissionGates:
    def test_all_of_reports_missing(self):
        decision = check_permissions(principal('author'), ['blog:create', 'course:publish'])
        assert not decision.allowed
        assert decision.status == 403
        assert decision.missing == ['course:publish']
        assert decision.mode == 'all'

    def test_all_of_passes_with_extra_grant(self):
        assert check_permissions(principal('author', extra={'course:publish'}), ['blog:create', 'course:publish'])

    def test_any_of(self):
        assert check_any_permission(principal('author'), ['course:publish', 'blog:create'])
        decision = check_any_permission(principal('user'), ['course:publish', 'blog:create'])
        assert not decision.allowed
        assert decision.mode == 'any'

    def test_any_of_empty_list_denies(self):
        assert not check_any_permission(principal('admin'), [])

    def test_all_of_empty_list_allows(self):
        assert check_permissions(principal('user'), [])

    def test_denial_body(self):
        body = check_permissions(principal('user'), ['user:view']).to_dict()
        assert body['success'] is False
        assert body['required'] == ['user:view']
        assert body['missing'] == ['user:view']


class TestResourceGates:
    def test_manage_own_is_enough_for_management(self):
        assert check_resource_management(principal('instructor'), 'course')

    def test_no_management_permission(self):
        decision = check_resource_management(principal('student'), 'course')
        assert not decision.allowed
        assert decision.message == 'Forbidden: cannot manage course'

    def test_owner_allowed(self):
        assert check_ownership_or_manage_all(principal('instructor', id=5), 'course', owner_id=5)

    def test_owner_id_compared_as_string(self):
        assert check_ownership_or_manage_all(principal('instructor', id=5), 'course', owner_id='5')

    def test_non_owner_denied(self):
        decision = check_ownership_or_manage_all(principal('instructor', id=5), 'course', owner_id=6)
        assert not decision.allowed
        assert decision.status == 403
        assert decision.required == ['course:manage_all']

    def test_manage_all_allowed(self):
        assert check_ownership_or_manage_all(principal('editor', id=5), 'blog', owner_id=6)

    def test_missing_resource_is_404_for_managers(self):
        decision = check_ownership_or_manage_all(principal('instructor', id=5), 'course', None, resource_exists=False)
        assert decision.status == 404

    def test_missing_resource_is_403_for_everyone_else(self):
        missing = check_ownership_or_manage_all(principal('student', id=5), 'course', None, resource_exists=False)
        not_owned = check_ownership_or_manage_all(principal('student', id=5), 'course', owner_id=6)
        assert missing.status == not_owned.status == 403
        assert missing.to_dict() == not_owned.to_dict()


class TestPrincipalManagement:
    def test_senior_actor(self):
        assert check_principal_management(principal('admin'), Role.MODERATOR)

    def test_equal_role_denied(self):
        decision = check_principal_management(principal('admin'), Role.ADMIN)
        assert not decision.allowed
        assert decision.status == 403
        assert decision.reason == 'seniority'

    def test_super_admin_cannot_manage_super_admin(self):
        assert not check_principal_management(principal('super-admin'), Role.SUPER_ADMIN)

    def test_multi_role_actor_uses_most_senior(self):
        assert check_principal_management(principal(roles={'student', 'moderator'}), Role.EDITOR)


class TestRaiseForDenial:
    def test_allowed_is_noop(self):
        GateDecision(allowed=True).raise_for_denial()

    @pytest.mark.parametrize('decision, error_cls', [
        (check_role(None, ['admin']), errors.Unauthenticated),
        (check_role(principal('user'), ['admin']), errors.InsufficientRole),
        (check_permissions(principal('user'), ['user:view']), errors.InsufficientPermission),
        (check_principal_management(principal('user'), 'admin'), errors.InsufficientSeniority),
        (check_ownership_or_manage_all(principal('editor'), 'blog', None, resource_exists=False), errors.NotFound),
    ])
    def test_mapping(self, decision, error_cls):
        with pytest.raises(error_cls) as exc_info:
            decision.raise_for_denial()
        assert exc_info.value.status_code == decision.status
