"""
Folder hierarchy tests.

Verifies:
- page is globally unique; name is unique among siblings
- Listings are permission-filtered and ordered by sort_order then name
- A parent's child_group narrows its listed children
- parent_path always follows the structural parent
- Empty requirement sets follow the configured policy
- Delete is refused while children or submissions exist
"""

import pytest

from portal.errors import ConflictError, NotFoundError, ValidationError
from portal.models import Folder, SystemEvent
from portal.services import folder_service, group_service, permission_service, role_service, submission_service
from portal.services.folder_service import FolderScope

from .conftest import resolve

ROOT = "/gosl-payroll"


def _folder(name, page, **extra):
    data = {"name": name, "page": page, "group": "gosl-payroll", "parent_path": ROOT}
    data.update(extra)
    return folder_service.create_folder(None, data)


def _names(folders):
    return [f.name for f in folders]


class TestCreateFolder:
    def test_defaults(self, seeded):
        folder = _folder("Finance", f"{ROOT}/finance")

        assert folder.required_permissions == ["view_folder"]
        assert folder.theme == "gray"
        assert folder.is_active is True
        assert folder.sort_order == 1

    def test_group_display_defaults_are_not_inherited(self, seeded):
        group_service.create_group(None, {
            "name": "HRM", "code": "hrm", "default_theme": "green", "default_permissions": ["payroll_view"],
        })

        folder = _folder("Circulars", f"{ROOT}/circulars", group="hrm")

        assert folder.theme == "gray"
        assert folder.required_permissions == ["view_folder"]

    def test_sort_order_is_max_plus_one(self, seeded):
        _folder("A", f"{ROOT}/a", sort_order=10)
        second = _folder("B", f"{ROOT}/b")

        assert second.sort_order == 11

    def test_explicit_empty_permissions_kept(self, seeded):
        folder = _folder("Open", f"{ROOT}/open", required_permissions=[])

        assert folder.required_permissions == []

    def test_duplicate_page_conflicts(self, seeded):
        _folder("Finance", f"{ROOT}/finance")

        with pytest.raises(ConflictError):
            _folder("Finance Two", f"{ROOT}/finance")

    def test_duplicate_sibling_name_conflicts(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")
        _folder("Child", f"{ROOT}/parent/child", parent_folder_id=parent.id)

        with pytest.raises(ConflictError):
            _folder("Child", f"{ROOT}/parent/child-2", parent_folder_id=parent.id)

    def test_same_name_under_different_parents_allowed(self, seeded):
        first = _folder("First", f"{ROOT}/first")
        second = _folder("Second", f"{ROOT}/second")

        _folder("2026", f"{ROOT}/first/2026", parent_folder_id=first.id)
        _folder("2026", f"{ROOT}/second/2026", parent_folder_id=second.id)

    def test_parent_path_inferred_from_parent(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")
        child = folder_service.create_folder(None, {
            "name": "Child", "page": f"{ROOT}/parent/child", "group": "gosl-payroll",
            "parent_folder_id": parent.id,
        })

        assert child.parent_path == parent.page

    def test_missing_fields_rejected(self, seeded):
        with pytest.raises(ValidationError):
            folder_service.create_folder(None, {"name": "Nameless"})

    def test_unknown_theme_rejected(self, seeded):
        with pytest.raises(ValidationError):
            _folder("Pink", f"{ROOT}/pink", theme="pink")

    def test_create_records_event(self, seeded):
        _folder("Finance", f"{ROOT}/finance")

        actions = [e.action for e in seeded.query(SystemEvent).all()]
        assert any(a.startswith("Created folder: Finance") for a in actions)


class TestVisibility:
    def test_alice_loses_folder_when_role_loses_permission(self, seeded, make_user):
        role_service.create_role(None, name="clerk")
        permission_service.grant_permission_to_role("clerk", "view_folder")
        alice = make_user("alice", role="clerk", ministry="Finance")
        _folder("Finance", f"{ROOT}/finance", required_permissions=["view_folder"])

        listed = folder_service.list_visible_folders(FolderScope.by_group("gosl-payroll"), resolve(alice))
        assert _names(listed) == ["Finance"]

        permission_service.revoke_permission_from_role("clerk", "view_folder")

        listed = folder_service.list_visible_folders(FolderScope.by_group("gosl-payroll"), resolve(alice))
        assert listed == []

    def test_any_of_required_keys_suffices(self, seeded, clerk):
        _folder("Payroll", f"{ROOT}/payroll", required_permissions=["payroll_view", "manage_groups"])
        _folder("Secret", f"{ROOT}/secret", required_permissions=["manage_groups"])

        listed = folder_service.list_visible_folders(FolderScope.by_group("gosl-payroll"), resolve(clerk))

        assert _names(listed) == ["Payroll"]

    def test_super_admin_sees_everything(self, seeded, super_admin):
        _folder("Secret", f"{ROOT}/secret", required_permissions=["manage_groups"])
        _folder("Open", f"{ROOT}/open", required_permissions=[])

        listed = folder_service.list_visible_folders(FolderScope.by_group("gosl-payroll"), resolve(super_admin))

        assert sorted(_names(listed)) == ["Open", "Secret"]

    def test_user_without_permissions_sees_nothing(self, seeded, make_user):
        role_service.create_role(None, name="empty")
        nobody = make_user("nobody", role="empty")
        _folder("Open", f"{ROOT}/open", required_permissions=[])
        _folder("Finance", f"{ROOT}/finance")

        assert folder_service.list_visible_folders(FolderScope.everything(), resolve(nobody)) == []

    def test_empty_requirements_strict_by_default(self, seeded, clerk):
        _folder("Open", f"{ROOT}/open", required_permissions=[])

        assert folder_service.list_visible_folders(FolderScope.everything(), resolve(clerk)) == []

    def test_empty_requirements_open_policy(self, app, seeded, clerk, monkeypatch):
        monkeypatch.setitem(app.config, "FOLDER_EMPTY_PERMISSIONS_POLICY", "open")
        _folder("Open", f"{ROOT}/open", required_permissions=[])

        listed = folder_service.list_visible_folders(FolderScope.everything(), resolve(clerk))

        assert _names(listed) == ["Open"]

    def test_ordering_by_sort_order_then_name(self, seeded, clerk):
        _folder("Zulu", f"{ROOT}/zulu", sort_order=1)
        _folder("Alpha", f"{ROOT}/alpha", sort_order=2)
        _folder("Bravo", f"{ROOT}/bravo", sort_order=1)

        listed = folder_service.list_visible_folders(FolderScope.by_group("gosl-payroll"), resolve(clerk))

        assert _names(listed) == ["Bravo", "Zulu", "Alpha"]

    def test_inactive_folders_hidden(self, seeded, clerk):
        _folder("Old", f"{ROOT}/old", is_active=False)

        assert folder_service.list_visible_folders(FolderScope.everything(), resolve(clerk)) == []

    def test_child_group_narrows_children(self, seeded, clerk):
        _folder("HRM", f"{ROOT}/hrm", child_group="hrm-public-service")
        _folder("Circulars", f"{ROOT}/hrm/circulars", parent_path=f"{ROOT}/hrm", group="hrm-public-service")
        _folder("Stray", f"{ROOT}/hrm/stray", parent_path=f"{ROOT}/hrm", group="agd-finance")

        listed = folder_service.list_visible_folders(FolderScope.by_parent_path(f"{ROOT}/hrm"), resolve(clerk))

        assert _names(listed) == ["Circulars"]

    def test_parent_without_child_group_lists_all_children(self, seeded, clerk):
        _folder("HRM", f"{ROOT}/hrm")
        _folder("Circulars", f"{ROOT}/hrm/circulars", parent_path=f"{ROOT}/hrm", group="hrm-public-service")
        _folder("Stray", f"{ROOT}/hrm/stray", parent_path=f"{ROOT}/hrm", group="agd-finance")

        listed = folder_service.list_visible_folders(FolderScope.by_parent_path(f"{ROOT}/hrm"), resolve(clerk))

        assert sorted(_names(listed)) == ["Circulars", "Stray"]

    def test_exact_path_hidden_folder_is_not_found(self, seeded, clerk):
        _folder("Secret", f"{ROOT}/secret", required_permissions=["manage_groups"])

        with pytest.raises(NotFoundError):
            folder_service.get_visible_folder_by_path(f"{ROOT}/secret", resolve(clerk))

    def test_group_listing_over_http(self, client, clerk_headers, seeded):
        _folder("Finance", f"{ROOT}/finance")

        response = client.get('/folders/group/gosl-payroll', headers=clerk_headers)

        assert response.status_code == 200
        assert [f['page'] for f in response.get_json()] == [f"{ROOT}/finance"]

    def test_by_path_over_http(self, client, clerk_headers, seeded):
        _folder("Finance", f"{ROOT}/finance")

        found = client.get('/folders/by-path', query_string={'path': f"{ROOT}/finance"}, headers=clerk_headers)
        missing = client.get('/folders/by-path', query_string={'path': f"{ROOT}/nope"}, headers=clerk_headers)

        assert found.status_code == 200
        assert found.get_json()['name'] == "Finance"
        assert missing.status_code == 404


class TestUpdateAndDelete:
    def test_reparent_moves_parent_path(self, seeded, clerk):
        first = _folder("First", f"{ROOT}/first")
        second = _folder("Second", f"{ROOT}/second")
        child = _folder("Child", f"{ROOT}/first/child", parent_folder_id=first.id)

        folder_service.update_folder(None, child.id, {"parent_folder_id": second.id})

        assert child.parent_path == second.page
        listed = folder_service.list_visible_folders(FolderScope.by_parent_path(second.page), resolve(clerk))
        assert _names(listed) == ["Child"]
        assert folder_service.list_visible_folders(FolderScope.by_parent_path(first.page), resolve(clerk)) == []

    def test_parent_folder_overrides_supplied_parent_path(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")

        child = _folder("Child", f"{ROOT}/parent/child", parent_folder_id=parent.id, parent_path="/elsewhere")

        assert child.parent_path == parent.page

    def test_page_change_carries_children(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")
        child = _folder("Child", f"{ROOT}/parent/child", parent_folder_id=parent.id)

        folder_service.update_folder(None, parent.id, {"page": f"{ROOT}/renamed"})

        seeded.refresh(child)
        assert child.parent_path == f"{ROOT}/renamed"

    def test_rename_into_sibling_conflicts(self, seeded):
        _folder("A", f"{ROOT}/a")
        b = _folder("B", f"{ROOT}/b")

        with pytest.raises(ConflictError):
            folder_service.update_folder(None, b.id, {"name": "A"})

    def test_update_required_permissions(self, seeded):
        folder = _folder("A", f"{ROOT}/a")

        folder_service.update_folder(None, folder.id, {"required_permissions": ["payroll_view", "view_folder"]})

        assert folder.required_permissions == ["payroll_view", "view_folder"]

    def test_rejected_update_leaves_folder_untouched(self, seeded):
        folder = _folder("A", f"{ROOT}/a")

        with pytest.raises(ValidationError):
            folder_service.update_folder(None, folder.id, {"name": "Renamed", "theme": "pink"})

        seeded.expire_all()
        assert seeded.get(Folder, folder.id).name == "A"

    def test_delete_with_child_conflicts(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")
        _folder("Child", f"{ROOT}/parent/child", parent_folder_id=parent.id)

        with pytest.raises(ConflictError):
            folder_service.delete_folder(None, parent.id)

    def test_delete_with_logical_child_conflicts(self, seeded):
        parent = _folder("Parent", f"{ROOT}/parent")
        _folder("Child", f"{ROOT}/parent/child", parent_path=f"{ROOT}/parent")

        with pytest.raises(ConflictError):
            folder_service.delete_folder(None, parent.id)

    def test_delete_with_submissions_conflicts(self, seeded, clerk):
        folder = _folder("Inbox", f"{ROOT}/inbox")
        submission_service.create_submission(
            resolve(clerk), form_type="NewHire", target_folder_id=folder.id, form_data={"name": "A"}
        )

        with pytest.raises(ConflictError):
            folder_service.delete_folder(None, folder.id)

    def test_delete_leaf(self, seeded):
        folder = _folder("Leaf", f"{ROOT}/leaf")
        folder_id = folder.id

        folder_service.delete_folder(None, folder_id)

        assert seeded.get(Folder, folder_id) is None

    def test_reorder_reports_partial_failure(self, client, admin_headers, seeded):
        a = _folder("A", f"{ROOT}/a", sort_order=1)
        b = _folder("B", f"{ROOT}/b", sort_order=2)

        response = client.put('/folders/manage/reorder', headers=admin_headers, json={'folders': [
            {'id': a.id, 'sort_order': 5},
            {'id': 999999, 'sort_order': 1},
            {'id': b.id, 'sort_order': 'x'},
        ]})

        assert response.status_code == 200
        body = response.get_json()
        assert body['updated'] == [a.id]
        assert [f['id'] for f in body['failed']] == [999999, b.id]
        assert seeded.get(Folder, a.id).sort_order == 5


class TestGroupPaths:
    def test_resolve_group_from_path(self, seeded):
        assert folder_service.resolve_group_from_path(ROOT).code == "gosl-payroll"
        assert folder_service.resolve_group_from_path(f"{ROOT}/hrm-public-service/2026").code == "hrm-public-service"
        assert folder_service.resolve_group_from_path("/elsewhere") is None

    def test_archive_group_root(self, app, seeded):
        assert folder_service.group_root_path("PayrollArchive") == "/payroll-archive"
        assert folder_service.group_root_path("agd-finance") == f"{ROOT}/agd-finance"
