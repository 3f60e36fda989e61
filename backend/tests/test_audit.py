"""
Audit trail tests.

Verifies:
- Each privileged mutation writes exactly one entry naming the actor,
  the action and the affected entity
- Denied or failed actions write nothing
- A failing audit write never fails or undoes the primary action
- Admins can page through the trail
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from menuforge.extensions import db
from menuforge.models import AuditLog, Menu

from conftest import call_action, get_auth_token, reload


def entries_for(action):
    db.session.expire_all()
    return db.session.query(AuditLog).filter_by(action=action).all()


def only_entry(action):
    entries = entries_for(action)
    assert len(entries) == 1, f"expected one '{action}' entry, found {len(entries)}"
    return entries[0]


# =============================================================================
# ONE ENTRY PER PRIVILEGED MUTATION
# =============================================================================


class TestAuditCompleteness:

    def test_login(self, client, dev_user):
        get_auth_token(client, dev_user.email)

        entry = only_entry("login")
        assert entry.user_id == dev_user.id
        assert entry.entity_type == "user"
        assert entry.entity_id == str(dev_user.id)

    def test_logout(self, client, dev_user):
        token = get_auth_token(client, dev_user.email)
        client.post("/api/auth", json={"action": "logout", "token": token})

        entry = only_entry("logout")
        assert entry.user_id == dev_user.id
        assert entry.entity_id == str(dev_user.id)

    def test_create_menu(self, client, dev_token, dev_user):
        resp = call_action(client, dev_token, "create_menu", name="Fresh Menu")
        menu_id = resp.get_json()["menu"]["id"]

        entry = only_entry("create_menu")
        assert entry.user_id == dev_user.id
        assert entry.entity_type == "menu"
        assert entry.entity_id == str(menu_id)
        assert entry.details == {"name": "Fresh Menu"}

    @pytest.mark.parametrize("action", ["update_code", "push_to_dev", "push_to_build"])
    def test_code_writes(self, client, dev_token, dev_user, active_menu, action):
        call_action(client, dev_token, action, menu_id=active_menu.id, code="x = 1")

        entry = only_entry(action)
        assert entry.user_id == dev_user.id
        assert entry.entity_type == "menu"
        assert entry.entity_id == str(active_menu.id)

    @pytest.mark.parametrize("action", ["admin_approve_menu", "admin_reject_menu", "admin_terminate_menu"])
    def test_admin_transitions(self, client, admin_token, admin_user, pending_menu, action):
        resp = call_action(client, admin_token, action, menu_id=pending_menu.id)
        assert resp.status_code == 200

        entry = only_entry(action)
        assert entry.user_id == admin_user.id
        assert entry.entity_id == str(pending_menu.id)
        assert entry.details["from"] == "pending_approval"

    def test_admin_toggle_user(self, client, admin_token, admin_user, dev_user):
        call_action(client, admin_token, "admin_toggle_user", user_id=dev_user.id, is_active=False)

        entry = only_entry("admin_toggle_user")
        assert entry.user_id == admin_user.id
        assert entry.entity_type == "user"
        assert entry.entity_id == str(dev_user.id)
        assert entry.details["is_active"] is False

    def test_request_deletion(self, client, dev_token, dev_user, active_menu):
        call_action(client, dev_token, "request_deletion", menu_id=active_menu.id, reason="Done with it")

        entry = only_entry("request_deletion")
        assert entry.user_id == dev_user.id
        assert entry.entity_id == str(active_menu.id)
        assert entry.details["reason"] == "Done with it"

    def test_admin_handle_deletion(self, client, admin_token, admin_user, dev_token, active_menu):
        created = call_action(client, dev_token, "request_deletion", menu_id=active_menu.id, reason="Bye")
        request_id = created.get_json()["request"]["id"]

        call_action(client, admin_token, "admin_handle_deletion", request_id=request_id, decision="rejected")

        entry = only_entry("admin_handle_deletion")
        assert entry.user_id == admin_user.id
        assert entry.entity_id == str(active_menu.id)

    def test_records_client_ip(self, client, dev_user):
        client.post(
            "/api/auth",
            json={"action": "login", "email": dev_user.email, "password": "Password123"},
            headers={"X-Forwarded-For": "198.51.100.4"},
        )
        assert only_entry("login").ip_address == "198.51.100.4"


# =============================================================================
# NOTHING FOR DENIED OR FAILED ACTIONS
# =============================================================================


class TestNoAuditOnFailure:

    def test_denied_code_write(self, client, other_token, active_menu):
        resp = call_action(client, other_token, "update_code", menu_id=active_menu.id, code="evil()")
        assert resp.status_code == 403
        assert entries_for("update_code") == []

    def test_failed_login(self, client, dev_user):
        client.post("/api/auth", json={"action": "login", "email": dev_user.email, "password": "Nope12345"})
        assert entries_for("login") == []

    def test_invalid_menu_name(self, client, dev_token):
        resp = call_action(client, dev_token, "create_menu", name="x")
        assert resp.status_code == 400
        assert entries_for("create_menu") == []

    def test_reads_are_not_audited(self, client, dev_token, active_menu):
        call_action(client, dev_token, "get_menus")
        call_action(client, dev_token, "get_menu", menu_id=active_menu.id)
        call_action(client, dev_token, "get_api_info", menu_id=active_menu.id)

        db.session.expire_all()
        actions = {e.action for e in db.session.query(AuditLog).all()}
        assert actions == {"login"}


# =============================================================================
# BEST-EFFORT WRITES
# =============================================================================


class TestAuditFailurePolicy:

    def test_failed_audit_write_keeps_primary_change(self, client, dev_token, active_menu, monkeypatch):
        def broken_add(instance, *args, **kwargs):
            if isinstance(instance, AuditLog):
                raise SQLAlchemyError("audit table unavailable")
            raise AssertionError("unexpected add during update_code")

        monkeypatch.setattr(db.session, "add", broken_add)

        resp = call_action(client, dev_token, "update_code", menu_id=active_menu.id, code="kept()")
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True}

        monkeypatch.undo()
        assert reload(Menu, active_menu.id).dev_code == "kept()"
        assert entries_for("update_code") == []


# =============================================================================
# READING THE TRAIL
# =============================================================================


class TestAuditListing:

    def test_newest_first_with_actor(self, client, admin_token, admin_user, dev_token, dev_user):
        call_action(client, dev_token, "create_menu", name="Listed Menu")

        resp = call_action(client, admin_token, "admin_get_audit_logs")
        assert resp.status_code == 200
        logs = resp.get_json()["logs"]

        assert logs[0]["action"] == "create_menu"
        assert logs[0]["user"] == {"id": dev_user.id, "email": dev_user.email, "display_name": "Dev A"}
        assert {log["action"] for log in logs} == {"login", "create_menu"}

    def test_limit_and_offset(self, client, admin_token, dev_user):
        for _ in range(3):
            get_auth_token(client, dev_user.email)

        first = call_action(client, admin_token, "admin_get_audit_logs", limit=2).get_json()["logs"]
        rest = call_action(client, admin_token, "admin_get_audit_logs", limit=2, offset=2).get_json()["logs"]

        assert len(first) == 2
        assert len(rest) == 2
        assert {e["id"] for e in first}.isdisjoint({e["id"] for e in rest})

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": -5}, {"offset": -1}, {"limit": "many"}])
    def test_bad_paging(self, client, admin_token, params):
        resp = call_action(client, admin_token, "admin_get_audit_logs", **params)
        assert resp.status_code == 400

    def test_listing_includes_login_fingerprint(self, client, admin_token, admin_user, dev_user):
        client.post('/api/auth', json={
            'action': 'login', 'email': dev_user.email, 'password': 'Password123', 'fingerprint': 'fp-dev',
        })

        logs = call_action(client, admin_token, "admin_get_audit_logs").get_json()["logs"]
        logins = {log["user_id"]: log for log in logs if log["action"] == "login"}

        assert logins[dev_user.id]["browser_fingerprint"] == "fp-dev"
        assert logins[admin_user.id]["browser_fingerprint"] is None
