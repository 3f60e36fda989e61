# Overview: Service-layer operations for menus; code slots, keys, end users and debug logs.

"""
Menu Service

Owns everything about a menu except its status, which only
lifecycle_service and deletion_service write.

CODE SLOTS:
- dev_code:   edited in the IDE, delivered to api_key_dev callers
- build_code: pushed releases, delivered to api_key_build callers

Code bodies are stored verbatim. Linting is a client concern.
"""

from __future__ import annotations

import secrets

from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import DebugLog, Menu, MenuStatus, MenuUser, User
from menuforge.time_utils import utcnow


API_KEY_PREFIXES = {
    "api_key_dev": "dev_",
    "api_key_build": "build_",
    "payment_api_key": "pay_",
}
API_KEY_BYTES = 24
DEBUG_LOG_PAGE = 100
MIN_NAME_LENGTH = 2


def default_code(name: str) -> str:
    """Starter Lua script placed in dev_code for a new menu."""
    return (
        f"-- FiveM Lua Menu: {name}\n"
        "-- Start coding here\n"
        "\n"
        "CreateThread(function()\n"
        "  while true do\n"
        "    Wait(0)\n"
        "    -- Your menu logic\n"
        "  end\n"
        "end)\n"
    )


def generate_api_key(prefix: str) -> str:
    return prefix + secrets.token_hex(API_KEY_BYTES)


def normalize_menu_user_email(email: str) -> str:
    return email.strip().lower()


def create_menu(owner: User, name) -> Menu:
    """
    Create a menu in pending_approval with fresh keys and starter code.

    Raises:
        ValidationError: Name missing or shorter than 2 characters after trimming
    """
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError("Valid menu name required (min 2 chars)")

    name = name.strip()
    now = utcnow()
    menu = Menu(
        name=name,
        owner_id=owner.id,
        status=MenuStatus.PENDING_APPROVAL.value,
        dev_code=default_code(name),
        build_code="",
        created_at=now,
        updated_at=now,
        **{column: generate_api_key(prefix) for column, prefix in API_KEY_PREFIXES.items()},
    )
    db.session.add(menu)
    db.session.commit()
    return menu


def list_menus(owner_id: int | None = None) -> list[Menu]:
    """Menus newest first. owner_id=None means every menu."""
    query = db.session.query(Menu)
    if owner_id is not None:
        query = query.filter(Menu.owner_id == owner_id)
    return query.order_by(Menu.created_at.desc(), Menu.id.desc()).all()


def list_menus_with_owners() -> list[dict]:
    result = []
    for menu in list_menus():
        data = menu.to_dict()
        data["owner"] = {
            "id": menu.owner.id,
            "email": menu.owner.email,
            "display_name": menu.owner.display_name,
        } if menu.owner else None
        result.append(data)
    return result


def write_code(menu: Menu, target: str, code: str) -> Menu:
    """Replace one code slot ("dev" or "build")."""
    if target == "build":
        menu.build_code = code
    else:
        menu.dev_code = code
    menu.updated_at = utcnow()
    db.session.commit()
    return menu


def get_stats(menu: Menu) -> dict:
    total_users = db.session.query(func.count(MenuUser.id)).filter(
        MenuUser.menu_id == menu.id
    ).scalar()
    blacklisted = db.session.query(func.count(MenuUser.id)).filter(
        MenuUser.menu_id == menu.id,
        MenuUser.is_blacklisted.is_(True),
    ).scalar()
    debug_logs = db.session.query(func.count(DebugLog.id)).filter(
        DebugLog.menu_id == menu.id
    ).scalar()

    summary = menu.to_summary_dict()
    return {
        "name": summary["name"],
        "status": summary["status"],
        "created_at": summary["created_at"],
        "updated_at": summary["updated_at"],
        "total_users": total_users or 0,
        "blacklisted_users": blacklisted or 0,
        "debug_logs": debug_logs or 0,
    }


def get_api_info(menu: Menu) -> dict:
    data = menu.api_keys_dict()
    data["name"] = menu.name
    data["status"] = menu.status
    return data


def list_debug_logs(menu: Menu, limit: int = DEBUG_LOG_PAGE) -> list[DebugLog]:
    return (
        db.session.query(DebugLog)
        .filter(DebugLog.menu_id == menu.id)
        .order_by(DebugLog.created_at.desc(), DebugLog.id.desc())
        .limit(limit)
        .all()
    )


def list_menu_users(menu: Menu) -> list[MenuUser]:
    return (
        db.session.query(MenuUser)
        .filter(MenuUser.menu_id == menu.id)
        .order_by(MenuUser.created_at.desc(), MenuUser.id.desc())
        .all()
    )


def find_menu_user(menu_id: int, email: str) -> MenuUser | None:
    return db.session.query(MenuUser).filter(
        MenuUser.menu_id == menu_id,
        MenuUser.email == normalize_menu_user_email(email),
    ).first()


def get_menu_user_for_menu(menu: Menu, menu_user_id: int) -> MenuUser:
    """
    Resolve an end user that must belong to the given menu.

    A user of another menu is reported exactly like a missing one.
    """
    menu_user = db.session.get(MenuUser, menu_user_id)
    if not menu_user or menu_user.menu_id != menu.id:
        raise NotFoundError("User not found")
    return menu_user


def set_blacklisted(menu_user: MenuUser, blacklisted: bool, reason: str | None = None) -> MenuUser:
    menu_user.is_blacklisted = blacklisted
    menu_user.blacklist_reason = (reason or "No reason provided") if blacklisted else None
    db.session.commit()
    return menu_user
