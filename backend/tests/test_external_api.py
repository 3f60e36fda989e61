"""
Partner API tests (static per-menu keys).

Verifies:
- Key resolution and scope separation (dev/build vs payment)
- Code delivery is gated by menu status; payment operations are not
- End-user provisioning, blacklist and debug log ingestion
- Partner mutations are audited with no acting account
"""

import pytest

from menuforge.extensions import db
from menuforge.models import AuditLog, DebugLog, MenuStatus, MenuUser

from conftest import call_external, make_menu


def set_status(menu, status):
    menu.status = MenuStatus(status).value
    db.session.commit()


# =============================================================================
# KEY AUTHENTICATION
# =============================================================================


class TestKeyAuthentication:

    def test_missing_key(self, client, active_menu):
        resp = call_external(client, None, "get_code")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid API key"}

    def test_unknown_key(self, client, active_menu):
        resp = call_external(client, "dev_" + "0" * 48, "get_code")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid API key"}

    def test_payment_key_cannot_fetch_code(self, client, active_menu):
        resp = call_external(client, active_menu.payment_api_key, "get_code")
        assert resp.status_code == 401

    @pytest.mark.parametrize("action", [
        "create_user", "blacklist_user", "unblacklist_user", "check_blacklist", "check_user", "debug_log",
    ])
    @pytest.mark.parametrize("key_attr", ["api_key_dev", "api_key_build"])
    def test_code_keys_cannot_manage_users(self, client, active_menu, action, key_attr):
        resp = call_external(client, getattr(active_menu, key_attr), action, email="a@b.c", details="x")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid API key"}

    def test_unknown_action_with_valid_key(self, client, active_menu):
        resp = call_external(client, active_menu.payment_api_key, "delete_everything")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Unknown action"}

    def test_unknown_action_with_invalid_key_is_401(self, client, db_session):
        resp = call_external(client, "bogus", "delete_everything")
        assert resp.status_code == 401

    def test_session_token_is_not_a_key(self, client, dev_token, active_menu):
        resp = call_external(client, dev_token, "get_code")
        assert resp.status_code == 401


# =============================================================================
# CODE DELIVERY
# =============================================================================


class TestGetCode:

    def test_dev_key_returns_dev_code(self, client, active_menu):
        active_menu.dev_code = "print('dev')"
        active_menu.build_code = "print('build')"
        db.session.commit()

        resp = call_external(client, active_menu.api_key_dev, "get_code")
        assert resp.status_code == 200
        assert resp.get_json() == {"code": "print('dev')"}

    def test_build_key_returns_build_code_exactly(self, client, active_menu):
        body = "-- release\nlocal x = 1\n\tprint(x)  \n"
        active_menu.build_code = body
        db.session.commit()

        resp = call_external(client, active_menu.api_key_build, "get_code")
        assert resp.status_code == 200
        assert resp.get_json()["code"] == body

    def test_build_type_must_match_key(self, client, active_menu):
        resp = call_external(client, active_menu.api_key_dev, "get_code", build_type="build")
        assert resp.status_code == 401

        resp = call_external(client, active_menu.api_key_build, "get_code", build_type="build")
        assert resp.status_code == 200

    def test_maintenance_is_503(self, client, active_menu):
        set_status(active_menu, "maintenance")

        resp = call_external(client, active_menu.api_key_build, "get_code")
        assert resp.status_code == 503
        assert resp.get_json() == {"error": "Menu is under maintenance"}

    @pytest.mark.parametrize("status", ["terminated", "paused", "pending_approval", "rejected"])
    def test_blocked_statuses_are_403(self, client, active_menu, status):
        set_status(active_menu, status)

        resp = call_external(client, active_menu.api_key_build, "get_code")
        assert resp.status_code == 403
        assert resp.get_json() == {"error": f"Menu is {status}"}

    def test_deletion_requested_is_still_served(self, client, active_menu):
        set_status(active_menu, "deletion_requested")
        resp = call_external(client, active_menu.api_key_dev, "get_code")
        assert resp.status_code == 200

    def test_keys_are_per_menu(self, client, active_menu, other_dev):
        other = make_menu(other_dev, "Other Menu")
        other.dev_code = "other()"
        db.session.commit()

        resp = call_external(client, other.api_key_dev, "get_code")
        assert resp.get_json() == {"code": "other()"}


# =============================================================================
# END USERS (PAYMENT KEY)
# =============================================================================


class TestMenuUsers:

    def test_create_user(self, client, active_menu):
        resp = call_external(client, active_menu.payment_api_key, "create_user",
                             email="Buyer@Example.com", hwid="HW-9")
        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["email"] == "buyer@example.com"
        assert user["hwid"] == "HW-9"
        assert user["is_blacklisted"] is False

    def test_create_user_requires_email(self, client, active_menu):
        resp = call_external(client, active_menu.payment_api_key, "create_user")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Email required"}

    def test_duplicate_user_is_409(self, client, active_menu, menu_user):
        resp = call_external(client, active_menu.payment_api_key, "create_user", email="PLAYER@example.com")
        assert resp.status_code == 409
        assert resp.get_json() == {"error": "User already exists for this menu"}
        assert db.session.query(MenuUser).filter_by(menu_id=active_menu.id).count() == 1

    def test_same_email_on_another_menu_is_allowed(self, client, menu_user, other_dev):
        other = make_menu(other_dev, "Other Menu")
        resp = call_external(client, other.payment_api_key, "create_user", email=menu_user.email)
        assert resp.status_code == 200

    @pytest.mark.parametrize("status", ["paused", "maintenance", "terminated", "pending_approval"])
    def test_payment_operations_ignore_status(self, client, active_menu, menu_user, status):
        set_status(active_menu, status)
        key = active_menu.payment_api_key

        assert call_external(client, key, "create_user", email="late@example.com").status_code == 200
        assert call_external(client, key, "check_user", email=menu_user.email).status_code == 200
        assert call_external(client, key, "blacklist_user", email=menu_user.email).status_code == 200

    def test_blacklist_roundtrip(self, client, active_menu, menu_user):
        key = active_menu.payment_api_key

        resp = call_external(client, key, "blacklist_user", email=menu_user.email, reason="Chargeback")
        assert resp.get_json() == {"success": True}

        resp = call_external(client, key, "check_blacklist", email=menu_user.email)
        assert resp.get_json() == {"blacklisted": True, "reason": "Chargeback"}

        call_external(client, key, "unblacklist_user", email=menu_user.email)
        resp = call_external(client, key, "check_blacklist", email=menu_user.email)
        assert resp.get_json() == {"blacklisted": False, "reason": None}

    @pytest.mark.parametrize("hwid", [["a"], {"h": 1}, 7])
    def test_non_string_hwid_is_400(self, client, active_menu, hwid):
        resp = call_external(client, active_menu.payment_api_key, "create_user",
                             email="buyer@example.com", hwid=hwid)
        assert resp.status_code == 400
        assert db.session.query(MenuUser).filter_by(menu_id=active_menu.id).count() == 0

    def test_blank_hwid_is_stored_as_null(self, client, active_menu):
        resp = call_external(client, active_menu.payment_api_key, "create_user",
                             email="buyer@example.com", hwid="  ")
        assert resp.get_json()["user"]["hwid"] is None

    @pytest.mark.parametrize("reason", [{"x": 1}, ["chargeback"], 3])
    def test_non_string_blacklist_reason_is_400(self, client, active_menu, menu_user, reason):
        key = active_menu.payment_api_key
        resp = call_external(client, key, "blacklist_user", email=menu_user.email, reason=reason)
        assert resp.status_code == 400

        resp = call_external(client, key, "check_blacklist", email=menu_user.email)
        assert resp.get_json() == {"blacklisted": False, "reason": None}

    def test_blacklist_default_reason(self, client, active_menu, menu_user):
        key = active_menu.payment_api_key
        call_external(client, key, "blacklist_user", email=menu_user.email)

        resp = call_external(client, key, "check_blacklist", email=menu_user.email)
        assert resp.get_json()["reason"] == "Blacklisted via API"

    def test_check_user(self, client, active_menu, menu_user):
        resp = call_external(client, active_menu.payment_api_key, "check_user", email=menu_user.email)
        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert set(user) == {"email", "created_at", "is_blacklisted", "hwid"}
        assert user["hwid"] == "HWID-1"

    @pytest.mark.parametrize("action", ["check_user", "check_blacklist", "blacklist_user", "unblacklist_user"])
    def test_unknown_user_is_404(self, client, active_menu, action):
        resp = call_external(client, active_menu.payment_api_key, action, email="nobody@example.com")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "User not found"}

    def test_key_cannot_reach_users_of_other_menus(self, client, menu_user, other_dev):
        other = make_menu(other_dev, "Other Menu")
        resp = call_external(client, other.payment_api_key, "check_user", email=menu_user.email)
        assert resp.status_code == 404


# =============================================================================
# DEBUG LOGS
# =============================================================================


class TestDebugLog:

    def test_string_details(self, client, active_menu, menu_user):
        resp = call_external(client, active_menu.payment_api_key, "debug_log",
                             email=menu_user.email, details="nil value at line 4")
        assert resp.status_code == 200

        entry = db.session.query(DebugLog).filter_by(menu_id=active_menu.id).one()
        assert entry.details == "nil value at line 4"
        assert entry.menu_user_id == menu_user.id

    def test_structured_details_are_serialized(self, client, active_menu):
        call_external(client, active_menu.payment_api_key, "debug_log", details={"line": 4, "err": "nil"})

        entry = db.session.query(DebugLog).filter_by(menu_id=active_menu.id).one()
        assert entry.details == '{"err": "nil", "line": 4}'
        assert entry.menu_user_id is None

    @pytest.mark.parametrize("details", [None, "", {}])
    def test_details_required(self, client, active_menu, details):
        resp = call_external(client, active_menu.payment_api_key, "debug_log", details=details)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Details required"}

    def test_forwarded_ip_is_recorded(self, client, active_menu):
        client.post(
            "/api/external",
            json={"action": "debug_log", "details": "boom"},
            headers={
                "Authorization": f"Bearer {active_menu.payment_api_key}",
                "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
            },
        )
        entry = db.session.query(DebugLog).filter_by(menu_id=active_menu.id).one()
        assert entry.ip_address == "203.0.113.7"

    def test_logs_visible_to_owner(self, client, dev_token, active_menu):
        call_external(client, active_menu.payment_api_key, "debug_log", details="first")
        call_external(client, active_menu.payment_api_key, "debug_log", details="second")

        resp = client.post("/api/action", json={"action": "get_debug_logs", "token": dev_token,
                                                "menu_id": active_menu.id})
        logs = resp.get_json()["logs"]
        assert [log["details"] for log in logs] == ["second", "first"]


# =============================================================================
# PARTNER AUDIT
# =============================================================================


class TestPartnerAudit:

    @pytest.mark.parametrize("action,audit_action,params", [
        ("create_user", "external_create_user", {"email": "new@example.com"}),
        ("blacklist_user", "external_blacklist_user", {"email": "player@example.com"}),
        ("unblacklist_user", "external_unblacklist_user", {"email": "player@example.com"}),
        ("debug_log", "external_debug_log", {"details": "trace"}),
    ])
    def test_mutations_audited_without_account(self, client, active_menu, menu_user, action, audit_action, params):
        resp = call_external(client, active_menu.payment_api_key, action, **params)
        assert resp.status_code == 200

        db.session.expire_all()
        entries = db.session.query(AuditLog).filter_by(action=audit_action).all()
        assert len(entries) == 1
        assert entries[0].user_id is None
        assert entries[0].details["menu_id"] == active_menu.id

    def test_reads_are_not_audited(self, client, active_menu, menu_user):
        call_external(client, active_menu.api_key_dev, "get_code")
        call_external(client, active_menu.payment_api_key, "check_user", email=menu_user.email)
        call_external(client, active_menu.payment_api_key, "check_blacklist", email=menu_user.email)

        db.session.expire_all()
        assert db.session.query(AuditLog).count() == 0
