"""
Tests for the permission catalog, the role table and the seniority order

Tests cover:
- Permissions enum parsing and validation
- Role enum parsing and the hierarchy helpers
- Per-role default permission sets
- RoleTable built from static declarations and from role records
"""
from types import SimpleNamespace

import pytest

from learnhub.rbac.permissions import (
    ALL_PERMISSIONS,
    PERMISSION_GROUPS,
    ROLE_PERMISSIONS,
    Permissions,
    get_permissions_for_role,
    has_permission,
)
from learnhub.rbac.role_table import RoleTable, get_role_hierarchy
from learnhub.rbac.roles import (
    ROLE_HIERARCHY,
    ROLE_RATE_LIMITS,
    Role,
    get_rate_limit,
    get_role_display_name,
    hierarchy_index,
    is_senior,
    most_senior,
)


# ========== Permission Catalog ==========

class TestPermissions:
    """Tests for the Permissions enum"""

    def test_tokens_are_plain_strings(self):
        assert isinstance(Permissions.COURSE_PUBLISH, str)
        assert Permissions.COURSE_PUBLISH == "course:publish"
        assert str(Permissions.COURSE_PUBLISH) == "course:publish"

    def test_resource_and_action(self):
        assert Permissions.USER_MANAGE_ROLES.resource == "user"
        assert Permissions.USER_MANAGE_ROLES.action == "manage_roles"

    def test_from_string(self):
        assert Permissions.from_string("blog:publish") is Permissions.BLOG_PUBLISH
        assert Permissions.from_string(" blog:publish ") is Permissions.BLOG_PUBLISH
        assert Permissions.from_string(Permissions.BLOG_PUBLISH) is Permissions.BLOG_PUBLISH

    def test_from_string_unknown_raises(self):
        with pytest.raises(ValueError):
            Permissions.from_string("course:teleport")

    def test_is_valid(self):
        assert Permissions.is_valid("payment:refund")
        assert not Permissions.is_valid("payment:steal")
        assert not Permissions.is_valid("")

    def test_catalog_size(self):
        assert len(ALL_PERMISSIONS) == 81

    def test_groups_cover_catalog(self):
        grouped = {p for perms in PERMISSION_GROUPS.values() for p in perms}
        assert grouped == set(ALL_PERMISSIONS)
        assert set(PERMISSION_GROUPS) == {
            'course', 'module', 'content', 'quiz', 'student', 'blog',
            'internship', 'user', 'analytics', 'system', 'payment',
        }


# ========== Roles and Hierarchy ==========

class TestRole:
    """Tests for the Role enum and seniority helpers"""

    def test_from_string(self):
        assert Role.from_string("admin") is Role.ADMIN
        assert Role.from_string(" Super-Admin ") is Role.SUPER_ADMIN
        assert Role.from_string(Role.EDITOR) is Role.EDITOR

    def test_from_string_unknown_is_none(self):
        assert Role.from_string("teacher") is None
        assert Role.from_string("") is None
        assert Role.from_string(None) is None

    def test_get_all(self):
        assert Role.get_all() == [
            'user', 'student', 'instructor', 'author', 'editor', 'moderator', 'admin', 'super-admin',
        ]

    def test_hierarchy_order(self):
        assert [r.value for r in ROLE_HIERARCHY] == [
            'user', 'student', 'author', 'instructor', 'editor', 'moderator', 'admin', 'super-admin',
        ]

    def test_hierarchy_index(self):
        assert hierarchy_index(Role.USER) == 0
        assert hierarchy_index('super-admin') == 7
        assert hierarchy_index('teacher') == -1
        assert hierarchy_index(None) == -1

    def test_seniority_is_strict(self):
        for role in Role:
            assert not is_senior(role, role)

    def test_seniority_pairs(self):
        assert is_senior(Role.ADMIN, Role.MODERATOR)
        assert is_senior(Role.INSTRUCTOR, Role.AUTHOR)
        assert not is_senior(Role.AUTHOR, Role.INSTRUCTOR)
        assert is_senior(Role.USER, 'unknown-role')
        assert not is_senior('unknown-role', Role.USER)

    def test_most_senior(self):
        assert most_senior(['author', 'instructor']) is Role.INSTRUCTOR
        assert most_senior(['bogus', 'student']) is Role.STUDENT
        assert most_senior(['bogus']) is None
        assert most_senior([]) is None

    def test_display_name(self):
        assert get_role_display_name(Role.SUPER_ADMIN) == 'Super Admin'
        assert get_role_display_name('moderator') == 'Moderator'

    def test_every_role_has_a_rate_limit(self):
        assert set(ROLE_RATE_LIMITS) == set(Role)

    def test_rate_limit_follows_most_senior_role(self):
        assert get_rate_limit(['user']) == 100
        assert get_rate_limit(['author', 'instructor']) == 500
        assert get_rate_limit(['admin']) == 1000
        assert get_rate_limit(['super-admin']) == -1

    def test_rate_limit_unknown_roles(self):
        assert get_rate_limit([]) == 100
        assert get_rate_limit(['bogus']) == 100


# ========== Default Role Permissions ==========

class TestRolePermissions:
    """Tests for the static per-role permission sets"""

    def test_every_role_declared(self):
        assert set(ROLE_PERMISSIONS) == set(Role)

    def test_super_admin_holds_everything(self):
        assert get_permissions_for_role(Role.SUPER_ADMIN) == ALL_PERMISSIONS

    def test_unknown_role_gets_nothing(self):
        assert get_permissions_for_role('teacher') == frozenset()
        assert get_permissions_for_role(None) == frozenset()

    def test_no_inheritance_from_junior_roles(self):
        # instructor outranks author but does not get blog authoring
        assert is_senior(Role.INSTRUCTOR, Role.AUTHOR)
        assert has_permission(Role.AUTHOR, Permissions.BLOG_CREATE)
        assert not has_permission(Role.INSTRUCTOR, Permissions.BLOG_CREATE)

    def test_role_defaults(self):
        assert has_permission('instructor', 'course:manage_own')
        assert not has_permission('instructor', 'course:manage_all')
        assert has_permission('moderator', 'user:view')
        assert not has_permission('moderator', 'user:manage_roles')
        assert has_permission('admin', 'user:manage_roles')
        assert has_permission('admin', 'user:manage_permissions')
        assert not has_permission('admin', 'system:restore')

    def test_has_permission_unknown_token(self):
        assert not has_permission('super-admin', 'course:teleport')

    def test_declared_sets_are_immutable(self):
        with pytest.raises(TypeError):
            ROLE_PERMISSIONS[Role.USER] = frozenset()


# ========== RoleTable ==========

class TestRoleTable:
    """Tests for RoleTable"""

    def test_default_matches_static(self):
        table = RoleTable.default()
        assert table.source == 'static'
        for role in Role:
            assert table.permissions_for(role) == ROLE_PERMISSIONS[role]

    def test_unknown_role(self):
        assert RoleTable.default().permissions_for('teacher') == frozenset()
        assert 'teacher' not in RoleTable.default()
        assert 'editor' in RoleTable.default()

    def test_from_records_overrides_and_falls_back(self):
        records = [SimpleNamespace(name='user', permissions=['course:view'])]
        table = RoleTable.from_records(records)
        assert table.source == 'database'
        assert table.permissions_for('user') == frozenset({Permissions.COURSE_VIEW})
        assert table.permissions_for('admin') == ROLE_PERMISSIONS[Role.ADMIN]

    def test_from_records_cannot_shrink_super_admin(self):
        records = [SimpleNamespace(name='super-admin', permissions=['course:view'])]
        assert RoleTable.from_records(records).permissions_for('super-admin') == ALL_PERMISSIONS

    def test_from_records_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            RoleTable.from_records([SimpleNamespace(name='teacher', permissions=[])])

    def test_from_records_rejects_unknown_permission(self):
        with pytest.raises(ValueError):
            RoleTable.from_records([SimpleNamespace(name='user', permissions=['course:teleport'])])

    def test_equality(self):
        records = [SimpleNamespace(name=r.value, permissions=[p.value for p in ROLE_PERMISSIONS[r]]) for r in Role]
        assert RoleTable.from_records(records) == RoleTable.default()

    def test_get_role_hierarchy(self):
        hierarchy = get_role_hierarchy()
        assert [h['role'] for h in hierarchy] == [r.value for r in ROLE_HIERARCHY]
        assert [h['level'] for h in hierarchy] == list(range(len(ROLE_HIERARCHY)))
        assert hierarchy[-1]['permissions'] == sorted(p.value for p in ALL_PERMISSIONS)
