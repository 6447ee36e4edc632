"""
Permission and role management tests.

Verifies:
- Deleting a permission removes it from every role that held it
- Permission keys are immutable and validated
- Role guards: super-admin role is protected, assigned roles cannot be deleted
- Seeding is idempotent
"""

import pytest

from portal.errors import ConflictError, NotFoundError, ValidationError
from portal.models import Permission, Role, RolePermission
from portal.services import permission_service, role_service

from .conftest import resolve


def _role(session, name):
    return session.query(Role).filter_by(name=name).one()


class TestPermissionService:
    def test_create_permission(self, seeded):
        permission = permission_service.create_permission(
            None, key="view_reports", name="View Reports", category="SYSTEM"
        )

        assert permission.id is not None
        assert permission.key == "view_reports"

    def test_duplicate_key_conflicts(self, seeded):
        with pytest.raises(ConflictError):
            permission_service.create_permission(None, key="view_folder", name="Again")

    @pytest.mark.parametrize("key", ["View-Folder", "1abc", "x", "has space"])
    def test_bad_key_format_rejected(self, seeded, key):
        with pytest.raises(ValidationError):
            permission_service.create_permission(None, key=key, name="Bad")

    def test_key_is_immutable(self, seeded):
        permission = seeded.query(Permission).filter_by(key="view_folder").one()

        with pytest.raises(ValidationError):
            permission_service.update_permission(None, permission.id, {"key": "see_folder"})

        updated = permission_service.update_permission(
            None, permission.id, {"key": "view_folder", "name": "See folders"}
        )
        assert updated.name == "See folders"

    def test_delete_pulls_permission_from_all_roles(self, seeded, clerk):
        permission = seeded.query(Permission).filter_by(key="view_folder").one()
        holders = {
            link.role_id for link in seeded.query(RolePermission).filter_by(permission_id=permission.id)
        }
        assert len(holders) == 3

        result = permission_service.delete_permission(None, permission.id)

        assert result == {"key": "view_folder", "roles_updated": 3}
        assert seeded.query(Permission).filter_by(key="view_folder").first() is None
        for role in seeded.query(Role).all():
            assert "view_folder" not in role.permission_keys
        assert "view_folder" not in resolve(clerk).permissions

    def test_delete_missing_permission(self, seeded):
        with pytest.raises(NotFoundError):
            permission_service.delete_permission(None, 999999)

    def test_seeding_is_idempotent(self, seeded):
        assert permission_service.initialize_permissions() == 0
        assert permission_service.assign_default_role_permissions() == 0
        assert role_service.create_default_roles() == 0

    def test_grant_and_revoke(self, seeded):
        assert permission_service.grant_permission_to_role("user", "create_folder") is True
        assert permission_service.grant_permission_to_role("user", "create_folder") is False
        assert "create_folder" in _role(seeded, "user").permission_keys

        assert permission_service.revoke_permission_from_role("user", "create_folder") is True
        assert permission_service.revoke_permission_from_role("user", "create_folder") is False


class TestRoleService:
    def test_create_role_with_permissions(self, seeded):
        ids = [p.id for p in seeded.query(Permission).filter(Permission.key.in_(["view_folder", "payroll_view"]))]

        role = role_service.create_role(None, name="clerk", description="Ministry clerk", permission_ids=ids)

        assert role.permission_keys == {"view_folder", "payroll_view"}

    def test_unknown_permission_id_rejected(self, seeded):
        with pytest.raises(ValidationError):
            role_service.create_role(None, name="clerk", permission_ids=[999999])

    def test_duplicate_role_name(self, seeded):
        with pytest.raises(ConflictError):
            role_service.create_role(None, name="admin")

    def test_update_replaces_permission_set(self, seeded):
        role = role_service.create_role(None, name="clerk")
        key_ids = {p.key: p.id for p in seeded.query(Permission).all()}

        role_service.update_role(None, role.id, {"permissions": [key_ids["view_folder"]]})
        assert role.permission_keys == {"view_folder"}

        role_service.update_role(None, role.id, {"permissions": [key_ids["payroll_view"]]})
        assert role.permission_keys == {"payroll_view"}

    def test_super_admin_role_cannot_be_renamed_or_deleted(self, seeded):
        role = _role(seeded, "s-admin")

        with pytest.raises(ConflictError):
            role_service.update_role(None, role.id, {"name": "root"})
        with pytest.raises(ConflictError):
            role_service.delete_role(None, role.id)

    def test_role_with_users_cannot_be_deleted(self, seeded, clerk):
        with pytest.raises(ConflictError):
            role_service.delete_role(None, _role(seeded, "user").id)

    def test_delete_unused_role(self, seeded):
        role = role_service.create_role(None, name="temporary")
        role_id = role.id

        role_service.delete_role(None, role_id)

        assert seeded.get(Role, role_id) is None


class TestRoleRoutes:
    def test_super_admin_creates_role_over_http(self, client, super_admin_headers, seeded):
        view_id = seeded.query(Permission).filter_by(key="view_folder").one().id

        response = client.post('/roles', headers=super_admin_headers, json={
            'name': 'clerk',
            'description': 'Ministry clerk',
            'permissions': [view_id],
        })

        assert response.status_code == 201
        assert [p['key'] for p in response.get_json()['permissions']] == ['view_folder']

    def test_delete_permission_over_http(self, client, super_admin_headers, seeded):
        permission = permission_service.create_permission(None, key="temp_key", name="Temp")
        permission_service.grant_permission_to_role("user", "temp_key")

        response = client.delete(f'/permissions/{permission.id}', headers=super_admin_headers)

        assert response.status_code == 200
        assert response.get_json()['roles_updated'] == 1
