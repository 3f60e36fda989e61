"""
Menu action tests.

Verifies:
- Menu creation defaults (pending, starter code, prefixed keys)
- Code slot writes and admin code access
- Stats, API info and end-user management from the dashboard
"""

import pytest

from menuforge.extensions import db
from menuforge.models import DebugLog, Menu, MenuUser
from menuforge.services import menu_service

from conftest import call_action, reload


# =============================================================================
# CREATION
# =============================================================================


class TestCreateMenu:

    def test_defaults(self, client, dev_token, dev_user):
        resp = call_action(client, dev_token, "create_menu", name="  Cool Menu  ")
        assert resp.status_code == 200
        menu = resp.get_json()["menu"]

        assert menu["name"] == "Cool Menu"
        assert menu["status"] == "pending_approval"
        assert menu["owner_id"] == dev_user.id
        assert "Cool Menu" in menu["dev_code"]
        assert menu["build_code"] == ""
        assert menu["api_key_dev"].startswith("dev_")
        assert menu["api_key_build"].startswith("build_")
        assert menu["payment_api_key"].startswith("pay_")

    def test_keys_are_unique(self, dev_user):
        first = menu_service.create_menu(dev_user, "One")
        second = menu_service.create_menu(dev_user, "Two")
        keys = set(first.api_keys_dict().values()) | set(second.api_keys_dict().values())
        assert len(keys) == 6

    @pytest.mark.parametrize("name", [None, "", " ", "x", " y "])
    def test_name_too_short(self, client, dev_token, name):
        resp = call_action(client, dev_token, "create_menu", name=name)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Valid menu name required (min 2 chars)"}

    def test_admin_cannot_create(self, client, admin_token):
        resp = call_action(client, admin_token, "create_menu", name="Admin Menu")
        assert resp.status_code == 403

    def test_new_menu_is_not_served(self, client, dev_token):
        menu = call_action(client, dev_token, "create_menu", name="Fresh").get_json()["menu"]
        resp = client.post(
            "/api/external",
            json={"action": "get_code"},
            headers={"Authorization": f"Bearer {menu['api_key_dev']}"},
        )
        assert resp.status_code == 403


# =============================================================================
# CODE SLOTS
# =============================================================================


class TestCodeSlots:

    def test_update_code_writes_dev_slot(self, client, dev_token, active_menu):
        resp = call_action(client, dev_token, "update_code", menu_id=active_menu.id, code="dev()")
        assert resp.status_code == 200

        menu = reload(Menu, active_menu.id)
        assert menu.dev_code == "dev()"
        assert menu.build_code == ""

    def test_push_to_build(self, client, dev_token, active_menu):
        call_action(client, dev_token, "push_to_build", menu_id=active_menu.id, code="release()")
        assert reload(Menu, active_menu.id).build_code == "release()"

    @pytest.mark.parametrize("target,column", [("build", "build_code"), ("dev", "dev_code"), (None, "dev_code")])
    def test_upload_menu_target(self, client, dev_token, active_menu, target, column):
        params = {"menu_id": active_menu.id, "code": "uploaded()"}
        if target is not None:
            params["target"] = target
        call_action(client, dev_token, "upload_menu", **params)

        assert getattr(reload(Menu, active_menu.id), column) == "uploaded()"

    def test_empty_code_is_allowed(self, client, dev_token, active_menu):
        resp = call_action(client, dev_token, "update_code", menu_id=active_menu.id, code="")
        assert resp.status_code == 200
        assert reload(Menu, active_menu.id).dev_code == ""

    def test_code_required(self, client, dev_token, active_menu):
        resp = call_action(client, dev_token, "update_code", menu_id=active_menu.id)
        assert resp.status_code == 400

    def test_code_allowed_in_any_status(self, client, dev_token, pending_menu):
        resp = call_action(client, dev_token, "push_to_build", menu_id=pending_menu.id, code="early()")
        assert resp.status_code == 200

    def test_admin_view_and_edit_code(self, client, admin_token, active_menu):
        resp = call_action(client, admin_token, "admin_edit_code",
                           menu_id=active_menu.id, build_type="build", code="fixed()")
        assert resp.status_code == 200

        resp = call_action(client, admin_token, "admin_view_code", menu_id=active_menu.id, build_type="build")
        assert resp.get_json() == {"code": "fixed()", "name": "Active Menu"}

    def test_menu_dev_cannot_use_admin_code_view(self, client, dev_token, active_menu):
        resp = call_action(client, dev_token, "admin_view_code", menu_id=active_menu.id)
        assert resp.status_code == 403


# =============================================================================
# DASHBOARD READS
# =============================================================================


class TestDashboardReads:

    def test_get_menu_includes_keys_and_code(self, client, dev_token, active_menu):
        menu = call_action(client, dev_token, "get_menu", menu_id=active_menu.id).get_json()["menu"]
        assert menu["api_key_build"] == active_menu.api_key_build
        assert "dev_code" in menu

    def test_get_api_info(self, client, dev_token, active_menu):
        api = call_action(client, dev_token, "get_api_info", menu_id=active_menu.id).get_json()["api"]
        assert api == {
            "api_key_dev": active_menu.api_key_dev,
            "api_key_build": active_menu.api_key_build,
            "payment_api_key": active_menu.payment_api_key,
            "name": "Active Menu",
            "status": "active",
        }

    def test_stats(self, client, dev_token, active_menu, menu_user):
        db.session.add(MenuUser(menu_id=active_menu.id, email="banned@example.com", is_blacklisted=True))
        db.session.add(DebugLog(menu_id=active_menu.id, details="trace"))
        db.session.commit()

        stats = call_action(client, dev_token, "get_menu_stats", menu_id=active_menu.id).get_json()
        assert stats["total_users"] == 2
        assert stats["blacklisted_users"] == 1
        assert stats["debug_logs"] == 1
        assert stats["status"] == "active"

    def test_debug_logs_capped_at_100(self, client, dev_token, active_menu):
        for i in range(105):
            db.session.add(DebugLog(menu_id=active_menu.id, details=f"log {i}"))
        db.session.commit()

        logs = call_action(client, dev_token, "get_debug_logs", menu_id=active_menu.id).get_json()["logs"]
        assert len(logs) == 100


# =============================================================================
# END USERS FROM THE DASHBOARD
# =============================================================================


class TestDashboardMenuUsers:

    def test_list_users(self, client, dev_token, active_menu, menu_user):
        users = call_action(client, dev_token, "get_menu_users", menu_id=active_menu.id).get_json()["users"]
        assert [u["email"] for u in users] == ["player@example.com"]

    def test_blacklist_and_unblacklist(self, client, dev_token, active_menu, menu_user):
        resp = call_action(client, dev_token, "blacklist_user",
                           menu_id=active_menu.id, menu_user_id=menu_user.id, reason="Cheating")
        assert resp.status_code == 200
        row = reload(MenuUser, menu_user.id)
        assert row.is_blacklisted is True
        assert row.blacklist_reason == "Cheating"

        call_action(client, dev_token, "unblacklist_user", menu_id=active_menu.id, menu_user_id=menu_user.id)
        row = reload(MenuUser, menu_user.id)
        assert row.is_blacklisted is False
        assert row.blacklist_reason is None

    def test_blacklist_default_reason(self, client, dev_token, active_menu, menu_user):
        call_action(client, dev_token, "blacklist_user", menu_id=active_menu.id, menu_user_id=menu_user.id)
        assert reload(MenuUser, menu_user.id).blacklist_reason == "No reason provided"

    def test_cannot_blacklist_user_of_another_menu(self, client, other_token, other_dev, menu_user):
        own = menu_service.create_menu(other_dev, "Own Menu")

        resp = call_action(client, other_token, "blacklist_user", menu_id=own.id, menu_user_id=menu_user.id)
        assert resp.status_code == 404
        assert reload(MenuUser, menu_user.id).is_blacklisted is False

    def test_admin_manage_menu_users(self, client, admin_token, active_menu, menu_user):
        resp = call_action(client, admin_token, "admin_manage_menu_users", menu_id=active_menu.id)
        assert [u["id"] for u in resp.get_json()["users"]] == [menu_user.id]

    def test_admin_all_menus_include_owner(self, client, admin_token, dev_user, active_menu):
        menus = call_action(client, admin_token, "admin_get_all_menus").get_json()["menus"]
        assert menus[0]["owner"] == {"id": dev_user.id, "email": dev_user.email, "display_name": "Dev A"}
