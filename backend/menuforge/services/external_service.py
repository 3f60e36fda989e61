# Overview: Service-layer operations for the partner API; static-key authentication and scoped operations.

"""
External Key Gateway

WHY: Loaders and payment integrations never hold a user session. They carry
one of three static per-menu keys, and the key alone decides what they may do.

KEY SCOPES (disjoint):
- dev / build: get_code only, gated by menu status
- payment:     end-user records, blacklist, debug logs; NO status gating
               (payments must keep working while a menu is paused)

FAILURE SEMANTICS:
- unknown key, or a key of the wrong scope for the action -> 401
- get_code on terminated/paused/pending_approval/rejected -> 403 (never servable)
- get_code on maintenance -> 503 (temporarily not servable)

Partner mutations are audited here with user_id=None, since no account is
behind the call.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..actions import ExternalAction
from ..errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, UnavailableError, ValidationError
from ..extensions import db
from ..models import DebugLog, Menu, MenuStatus, MenuUser
from ..validation import optional_text
from . import audit_service
from .menu_service import find_menu_user, normalize_menu_user_email
from menuforge.time_utils import utcnow


class KeyScope(str, Enum):
    DEV = "dev"
    BUILD = "build"
    PAYMENT = "payment"


ACTION_SCOPES: dict[ExternalAction, frozenset[KeyScope]] = {
    ExternalAction.GET_CODE: frozenset({KeyScope.DEV, KeyScope.BUILD}),
    ExternalAction.CREATE_USER: frozenset({KeyScope.PAYMENT}),
    ExternalAction.BLACKLIST_USER: frozenset({KeyScope.PAYMENT}),
    ExternalAction.UNBLACKLIST_USER: frozenset({KeyScope.PAYMENT}),
    ExternalAction.CHECK_BLACKLIST: frozenset({KeyScope.PAYMENT}),
    ExternalAction.CHECK_USER: frozenset({KeyScope.PAYMENT}),
    ExternalAction.DEBUG_LOG: frozenset({KeyScope.PAYMENT}),
}

BLOCKED_STATUSES = frozenset({
    MenuStatus.TERMINATED.value,
    MenuStatus.PAUSED.value,
    MenuStatus.PENDING_APPROVAL.value,
    MenuStatus.REJECTED.value,
})

INVALID_KEY = "Invalid API key"


@dataclass(frozen=True)
class KeyPrincipal:
    """The menu a partner key belongs to and the scope it carries."""
    menu: Menu
    scope: KeyScope


def resolve_key(key: str | None) -> KeyPrincipal | None:
    """Match a bearer value against the three key columns of every menu."""
    if not key:
        return None

    menu = db.session.query(Menu).filter(
        or_(
            Menu.api_key_dev == key,
            Menu.api_key_build == key,
            Menu.payment_api_key == key,
        )
    ).first()
    if menu is None:
        return None

    if menu.api_key_dev == key:
        return KeyPrincipal(menu=menu, scope=KeyScope.DEV)
    if menu.api_key_build == key:
        return KeyPrincipal(menu=menu, scope=KeyScope.BUILD)
    return KeyPrincipal(menu=menu, scope=KeyScope.PAYMENT)


def authenticate_key(key: str | None) -> KeyPrincipal:
    principal = resolve_key(key)
    if principal is None:
        raise AuthenticationError(INVALID_KEY)
    return principal


def require_scope(principal: KeyPrincipal, action: ExternalAction) -> None:
    """
    Check the key carries a scope the action accepts.

    Raises:
        AuthenticationError: Wrong scope (same message as an unknown key)
    """
    if principal.scope not in ACTION_SCOPES[action]:
        raise AuthenticationError(INVALID_KEY)


def get_code(principal: KeyPrincipal, build_type: str | None = None) -> dict:
    if build_type is not None and build_type != principal.scope.value:
        raise AuthenticationError(INVALID_KEY)

    status = principal.menu.status
    if status in BLOCKED_STATUSES:
        raise AuthorizationError(f"Menu is {status}")
    if status == MenuStatus.MAINTENANCE.value:
        raise UnavailableError("Menu is under maintenance")

    return {"code": principal.menu.code_for(principal.scope.value)}


def _require_email(params: dict) -> str:
    email = params.get("email")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email required")
    return normalize_menu_user_email(email)


def _require_menu_user(principal: KeyPrincipal, email: str) -> MenuUser:
    menu_user = find_menu_user(principal.menu.id, email)
    if menu_user is None:
        raise NotFoundError("User not found")
    return menu_user


def create_menu_user(principal: KeyPrincipal, params: dict, ip_address: str | None = None) -> dict:
    email = _require_email(params)
    hwid = optional_text(params, "hwid")

    if find_menu_user(principal.menu.id, email) is not None:
        raise ConflictError("User already exists for this menu")

    menu_user = MenuUser(
        menu_id=principal.menu.id,
        email=email,
        hwid=hwid,
        is_blacklisted=False,
        created_at=utcnow(),
    )
    db.session.add(menu_user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent create for the same email
        db.session.rollback()
        raise ConflictError("User already exists for this menu")

    audit_service.record(
        user_id=None,
        action="external_create_user",
        details={"menu_id": principal.menu.id, "email": email},
        ip_address=ip_address,
        entity_type="menu_user",
        entity_id=menu_user.id,
    )
    return {"success": True, "user": menu_user.to_dict()}


def set_blacklist(principal: KeyPrincipal, params: dict, blacklisted: bool, ip_address: str | None = None) -> dict:
    email = _require_email(params)
    reason = optional_text(params, "reason")
    menu_user = _require_menu_user(principal, email)

    menu_user.is_blacklisted = blacklisted
    menu_user.blacklist_reason = (reason or "Blacklisted via API") if blacklisted else None
    db.session.commit()

    audit_service.record(
        user_id=None,
        action="external_blacklist_user" if blacklisted else "external_unblacklist_user",
        details={"menu_id": principal.menu.id, "email": email, "reason": menu_user.blacklist_reason},
        ip_address=ip_address,
        entity_type="menu_user",
        entity_id=menu_user.id,
    )
    return {"success": True}


def check_blacklist(principal: KeyPrincipal, params: dict) -> dict:
    menu_user = _require_menu_user(principal, _require_email(params))
    return {"blacklisted": menu_user.is_blacklisted, "reason": menu_user.blacklist_reason}


def check_user(principal: KeyPrincipal, params: dict) -> dict:
    menu_user = _require_menu_user(principal, _require_email(params))
    data = menu_user.to_dict()
    return {
        "user": {
            "email": data["email"],
            "created_at": data["created_at"],
            "is_blacklisted": data["is_blacklisted"],
            "hwid": data["hwid"],
        }
    }


def append_debug_log(principal: KeyPrincipal, params: dict, ip_address: str | None = None) -> dict:
    details = params.get("details")
    if details is None or details == "" or details == {} or details == []:
        raise ValidationError("Details required")
    if not isinstance(details, str):
        details = json.dumps(details, sort_keys=True)

    menu_user_id = None
    email = params.get("email")
    if isinstance(email, str) and email.strip():
        menu_user = find_menu_user(principal.menu.id, email)
        menu_user_id = menu_user.id if menu_user else None

    entry = DebugLog(
        menu_id=principal.menu.id,
        menu_user_id=menu_user_id,
        details=details,
        ip_address=ip_address,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.commit()

    audit_service.record(
        user_id=None,
        action="external_debug_log",
        details={"menu_id": principal.menu.id, "menu_user_id": menu_user_id},
        ip_address=ip_address,
        entity_type="debug_log",
        entity_id=entry.id,
    )
    return {"success": True}
