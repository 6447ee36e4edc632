"""
Access decision tests.

Verifies:
- Super-admin holds every permission without explicit grants
- Other roles hold exactly their granted keys
- Missing role data is an error, never a silent deny or an empty listing
- Permission-gated routes return 403 for the wrong role
"""

import pytest

from portal.errors import AuthorizationDataIncompleteError
from portal.permissions import SUPER_ADMIN_ROLE, get_all_permission_keys
from portal.services import access_service, folder_service
from portal.services.folder_service import FolderScope
from portal.services.access_service import ResolvedUser

from .conftest import resolve


def _bare_user(role_name, permissions=()):
    return ResolvedUser(
        id=1,
        username="someone",
        role_id=1,
        role_name=role_name,
        permissions=frozenset(permissions),
        first_name="Some",
        last_name="One",
        email="someone@portal.test",
        ministry=None,
    )


class TestHasPermission:
    def test_super_admin_bypass(self):
        user = _bare_user(SUPER_ADMIN_ROLE)

        assert access_service.has_permission(user, "anything_at_all")

    def test_membership(self):
        user = _bare_user("clerk", {"view_folder"})

        assert access_service.has_permission(user, "view_folder")
        assert not access_service.has_permission(user, "create_folder")

    def test_missing_role_raises(self):
        user = _bare_user(None)

        with pytest.raises(AuthorizationDataIncompleteError):
            access_service.has_permission(user, "view_folder")

    def test_actor_identity_for_system(self):
        assert access_service.actor_identity(None) == (None, access_service.SYSTEM_USER_NAME)


class TestResolvedUsers:
    def test_seeded_super_admin_role_holds_all_keys(self, super_admin):
        resolved = resolve(super_admin)

        assert resolved.is_super_admin
        assert resolved.is_admin
        assert set(get_all_permission_keys()) <= resolved.permissions

    def test_user_role_defaults(self, clerk):
        resolved = resolve(clerk)

        assert not resolved.is_admin
        assert resolved.permissions == frozenset(
            {"view_folder", "payroll_view", "download_payroll_pdfs", "submit_forms"}
        )
        assert resolved.display_name == "Clerk Tester"


class TestRouteGuards:
    @pytest.mark.parametrize("method,path", [
        ("get", "/users"),
        ("get", "/roles"),
        ("get", "/permissions"),
        ("get", "/system-events"),
        ("get", "/folders/manage"),
        ("post", "/folders/generate-archive"),
    ])
    def test_user_role_is_forbidden(self, client, clerk_headers, method, path):
        response = getattr(client, method)(path, headers=clerk_headers)

        assert response.status_code == 403
        assert response.get_json()["error"] == "Forbidden"

    @pytest.mark.parametrize("method,path", [
        ("get", "/users"),
        ("post", "/folders/manage"),
        ("get", "/submissions"),
        ("get", "/pdfs"),
    ])
    def test_requires_auth(self, client, seeded, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401

    def test_admin_can_list_users_but_not_delete_roles(self, client, admin_headers):
        assert client.get("/users", headers=admin_headers).status_code == 200
        assert client.delete("/roles/1", headers=admin_headers).status_code == 403

    def test_super_admin_passes_every_guard(self, client, super_admin_headers):
        assert client.get("/system-events", headers=super_admin_headers).status_code == 200
        assert client.get("/permissions", headers=super_admin_headers).status_code == 200

    @pytest.mark.parametrize("path", ["/folders/group/gosl-payroll", "/submissions", "/auth/me"])
    def test_dangling_role_is_reported_not_hidden(self, client, seeded, clerk, clerk_headers, path):
        clerk.role_id = 999999
        seeded.commit()

        response = client.get(path, headers=clerk_headers)

        assert response.status_code == 403
        assert response.get_json()["error"] == "AuthorizationDataIncomplete"

    def test_dangling_role_fails_folder_listing(self, seeded, clerk):
        clerk.role_id = 999999
        seeded.commit()

        with pytest.raises(AuthorizationDataIncompleteError):
            folder_service.list_visible_folders(FolderScope.everything(), resolve(clerk))
