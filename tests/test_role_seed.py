"""
Tests for role seeding and the startup role table

Tests cover:
- seed_roles inserts one row per role and is idempotent
- seed_roles repairs edited rows
- the role table built from seeded rows matches the static one
- invalid role table configuration fails at startup
"""
import pytest
from sqlalchemy import select

from learnhub import create_app
from learnhub.models import RoleRecord
from learnhub.rbac.permissions import ROLE_PERMISSIONS
from learnhub.rbac.role_table import RoleTable
from learnhub.rbac.roles import ROLE_HIERARCHY, Role
from learnhub.utils.role_seed import seed_roles


def _records(db_session):
    return {r.name: r for r in db_session.execute(select(RoleRecord)).scalars()}


class TestSeedRoles:
    def test_seeded_on_startup(self, db_session):
        records = _records(db_session)
        assert set(records) == set(Role.get_all())
        assert records['super-admin'].level == len(ROLE_HIERARCHY) - 1
        assert records['super-admin'].title == 'Super Admin'
        for role in Role:
            assert records[role.value].permissions == sorted(p.value for p in ROLE_PERMISSIONS[role])

    def test_idempotent(self, db_session):
        assert seed_roles(db_session) == 0
        assert seed_roles(db_session) == 0
        assert len(_records(db_session)) == len(Role)

    def test_repairs_edited_row(self, db_session):
        record = _records(db_session)['author']
        record.permissions = ['course:view']
        db_session.commit()

        assert seed_roles(db_session) == 1
        db_session.expire_all()
        assert _records(db_session)['author'].permissions == sorted(p.value for p in ROLE_PERMISSIONS[Role.AUTHOR])


class TestRoleTableSource:
    def _app(self, tmp_path, **config):
        return create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'roles.db'}",
            'SQLALCHEMY_ENGINE_OPTIONS': {},
            'LOG_DIR': None,
            **config,
        })

    def test_static_by_default(self, app):
        assert app.extensions['learnhub_role_table'].source == 'static'

    def test_database_source(self, tmp_path):
        app = self._app(tmp_path, ROLE_DEFINITIONS_SOURCE='database')
        table = app.extensions['learnhub_role_table']
        assert table.source == 'database'
        assert table == RoleTable.default()
        app.extensions['learnhub_engine'].dispose()

    def test_database_source_without_rows(self, tmp_path):
        with pytest.raises(RuntimeError):
            self._app(tmp_path, ROLE_DEFINITIONS_SOURCE='database', SEED_ROLES_ON_STARTUP=False)

    def test_unknown_source(self, tmp_path):
        with pytest.raises(ValueError):
            self._app(tmp_path, ROLE_DEFINITIONS_SOURCE='yaml')
