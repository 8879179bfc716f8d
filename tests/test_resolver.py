"""
Tests for the permission resolver

Tests cover:
- Union of role defaults, extra and manual permissions
- Multi-role principals
- Unknown roles and unknown tokens
- recompute_effective_permissions
- has / any / all predicates, including empty lists
"""
from types import SimpleNamespace

from learnhub.rbac.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, Permissions
from learnhub.rbac.resolver import (
    effective_permissions_of,
    has_all_permissions,
    has_any_permission,
    has_permission,
    missing_permissions,
    recompute_effective_permissions,
    resolve,
)
from learnhub.rbac.role_table import RoleTable
from learnhub.rbac.roles import Role
from learnhub.rbac.types import Principal


def _defaults(role):
    return {p.value for p in ROLE_PERMISSIONS[Role(role)]}


class TestResolve:
    """Tests for resolve()"""

    def test_role_defaults_only(self):
        principal = Principal(id=1, role='student')
        assert resolve(principal) == _defaults('student')

    def test_extra_permissions_are_added(self):
        principal = Principal(id=1, role='author', extra_permissions={'course:publish'})
        resolved = resolve(principal)
        assert 'course:publish' in resolved
        assert _defaults('author') <= resolved

    def test_resolution_is_a_superset_of_every_input(self):
        principal = Principal(
            id=1,
            roles={'author', 'instructor'},
            extra_permissions={'payment:refund'},
            manual_permissions={'system:logs'},
        )
        resolved = resolve(principal)
        assert _defaults('author') <= resolved
        assert _defaults('instructor') <= resolved
        assert {'payment:refund', 'system:logs'} <= resolved

    def test_extra_already_in_role_is_deduplicated(self):
        principal = Principal(id=1, role='user', extra_permissions={'course:view'})
        assert resolve(principal) == _defaults('user')

    def test_super_admin_resolves_to_catalog(self):
        principal = Principal(id=1, role='super-admin')
        assert resolve(principal) == {p.value for p in ALL_PERMISSIONS}

    def test_unknown_role_resolves_to_extras_only(self):
        principal = Principal(id=1, role='teacher', extra_permissions={'blog:view'})
        assert resolve(principal) == {'blog:view'}

    def test_unknown_tokens_are_dropped(self, caplog):
        principal = Principal(id=7, role='user', extra_permissions={'course:teleport'})
        assert 'course:teleport' not in resolve(principal)
        assert "course:teleport" in caplog.text

    def test_custom_role_table(self):
        table = RoleTable.from_records([SimpleNamespace(name='user', permissions=['blog:view'])])
        assert resolve(Principal(id=1, role='user'), table) == {'blog:view'}

    def test_resolve_does_not_mutate(self):
        principal = Principal(id=1, role='author', extra_permissions={'course:publish'})
        resolve(principal)
        assert principal.effective_permissions is None
        assert principal.extra_permissions == {'course:publish'}


class TestRecompute:
    """Tests for recompute_effective_permissions()"""

    def test_returns_copy_with_effective_set(self):
        principal = Principal(id=1, role='editor')
        updated = recompute_effective_permissions(principal)
        assert updated is not principal
        assert principal.effective_permissions is None
        assert updated.effective_permissions == _defaults('editor')

    def test_primary_role_is_most_senior(self):
        updated = recompute_effective_permissions(Principal(id=1, role='user', roles={'author', 'moderator'}))
        assert updated.role == 'moderator'

    def test_stale_effective_set_is_replaced(self):
        principal = Principal(id=1, role='user', effective_permissions={'system:restore'})
        assert recompute_effective_permissions(principal).effective_permissions == _defaults('user')


class TestPredicates:
    """Tests for has / any / all"""

    def setup_method(self):
        self.author = recompute_effective_permissions(
            Principal(id=3, role='author', extra_permissions={'course:publish'})
        )

    def test_has_permission(self):
        assert has_permission(self.author, Permissions.COURSE_PUBLISH)
        assert has_permission(self.author, 'blog:create')
        assert not has_permission(self.author, 'user:manage_roles')

    def test_has_any(self):
        assert has_any_permission(self.author, ['user:delete', 'blog:create'])
        assert not has_any_permission(self.author, ['user:delete', 'system:restore'])

    def test_has_any_empty_is_false(self):
        assert not has_any_permission(self.author, [])

    def test_has_all(self):
        assert has_all_permissions(self.author, ['blog:create', 'course:publish'])
        assert not has_all_permissions(self.author, ['blog:create', 'system:restore'])

    def test_has_all_empty_is_true(self):
        assert has_all_permissions(self.author, [])

    def test_missing_permissions(self):
        assert missing_permissions(self.author, ['blog:create', 'system:restore']) == ['system:restore']

    def test_uses_stored_effective_set(self):
        principal = Principal(id=1, role='user', effective_permissions={'payment:refund'})
        assert has_permission(principal, 'payment:refund')
        assert not has_permission(principal, 'course:view')

    def test_resolves_when_nothing_stored(self):
        principal = Principal(id=1, role='user')
        assert effective_permissions_of(principal) == _defaults('user')
