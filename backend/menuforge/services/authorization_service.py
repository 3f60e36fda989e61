# Overview: Service-layer authorization; pure allow/deny decisions per action.

"""
Authorization Evaluator

WHY: One pure function decides every internal action before a handler runs.
No database access, no request globals: the dispatcher loads the resource
and passes it in.

RULES (priority order):
1. No authenticated actor -> deny everything (UNAUTHENTICATED)
2. ADMIN_ONLY actions -> deny unless actor.role == admin
3. MENU_DEV_ONLY actions -> deny unless actor.role == menu_dev
4. A resource that failed to load -> NOT_FOUND for admins, FORBIDDEN for
   everyone else, so callers cannot probe for existence
5. OWNER_OR_ADMIN -> deny unless actor owns the resource or is admin
   OWNER_ONLY -> deny unless actor owns the resource
6. Admin self-protection: an admin may not toggle their own account
SELF_SCOPED reads are never denied; handlers narrow them with
visible_owner_id().

Resource-independent rules (1-3) can be evaluated before loading by calling
authorize() with no resource.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..actions import Action
from ..models import User, ROLE_ADMIN, ROLE_MENU_DEV


class AccessRule(str, Enum):
    AUTHENTICATED = "authenticated"
    SELF_SCOPED = "self_scoped"
    MENU_DEV_ONLY = "menu_dev_only"
    OWNER_ONLY = "owner_only"
    OWNER_OR_ADMIN = "owner_or_admin"
    ADMIN_ONLY = "admin_only"


# Deny reason codes
UNAUTHENTICATED = "unauthenticated"
FORBIDDEN = "forbidden"
NOT_FOUND = "not_found"
SELF_PROTECTION = "self_protection"


ACTION_RULES: dict[Action, AccessRule] = {
    Action.GET_MENUS: AccessRule.SELF_SCOPED,
    Action.CREATE_MENU: AccessRule.MENU_DEV_ONLY,
    Action.GET_MENU: AccessRule.OWNER_OR_ADMIN,
    Action.UPDATE_CODE: AccessRule.OWNER_OR_ADMIN,
    Action.PUSH_TO_DEV: AccessRule.OWNER_OR_ADMIN,
    Action.PUSH_TO_BUILD: AccessRule.OWNER_OR_ADMIN,
    Action.UPLOAD_MENU: AccessRule.OWNER_OR_ADMIN,
    Action.GET_MENU_USERS: AccessRule.OWNER_OR_ADMIN,
    Action.BLACKLIST_USER: AccessRule.OWNER_OR_ADMIN,
    Action.UNBLACKLIST_USER: AccessRule.OWNER_OR_ADMIN,
    Action.GET_MENU_STATS: AccessRule.OWNER_OR_ADMIN,
    Action.UPDATE_MENU_STATUS: AccessRule.OWNER_OR_ADMIN,
    Action.REQUEST_DELETION: AccessRule.OWNER_ONLY,
    Action.GET_API_INFO: AccessRule.OWNER_OR_ADMIN,
    Action.GET_DEBUG_LOGS: AccessRule.OWNER_OR_ADMIN,
    Action.CREATE_TICKET: AccessRule.AUTHENTICATED,
    Action.GET_TICKETS: AccessRule.SELF_SCOPED,
    Action.GET_TICKET_MESSAGES: AccessRule.OWNER_OR_ADMIN,
    Action.SEND_TICKET_MESSAGE: AccessRule.OWNER_OR_ADMIN,
    Action.UPDATE_TICKET_STATUS: AccessRule.ADMIN_ONLY,
    Action.ADMIN_GET_ALL_MENUS: AccessRule.ADMIN_ONLY,
    Action.ADMIN_APPROVE_MENU: AccessRule.ADMIN_ONLY,
    Action.ADMIN_REJECT_MENU: AccessRule.ADMIN_ONLY,
    Action.ADMIN_TERMINATE_MENU: AccessRule.ADMIN_ONLY,
    Action.ADMIN_GET_ALL_USERS: AccessRule.ADMIN_ONLY,
    Action.ADMIN_CREATE_USER: AccessRule.ADMIN_ONLY,
    Action.ADMIN_TOGGLE_USER: AccessRule.ADMIN_ONLY,
    Action.ADMIN_GET_AUDIT_LOGS: AccessRule.ADMIN_ONLY,
    Action.ADMIN_GET_DELETION_REQUESTS: AccessRule.ADMIN_ONLY,
    Action.ADMIN_HANDLE_DELETION: AccessRule.ADMIN_ONLY,
    Action.ADMIN_VIEW_CODE: AccessRule.ADMIN_ONLY,
    Action.ADMIN_EDIT_CODE: AccessRule.ADMIN_ONLY,
    Action.ADMIN_MANAGE_MENU_USERS: AccessRule.ADMIN_ONLY,
}

# Actions whose resource is an account the admin must not be acting on themself
SELF_PROTECTED_ACTIONS = frozenset({Action.ADMIN_TOGGLE_USER})


@dataclass(frozen=True)
class Actor:
    """Authenticated principal of the internal API (minimal account projection)."""
    id: int
    role: str
    email: str
    display_name: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role, email=user.email, display_name=user.display_name)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


ALLOW = Decision(allowed=True)


def resource_owner_id(resource: Any) -> int | None:
    """Owning account id of a menu (owner_id) or ticket (creator_id)."""
    for attr in ("owner_id", "creator_id"):
        if hasattr(resource, attr):
            return getattr(resource, attr)
    return None


def authorize(
    actor: Actor | None,
    action: Action,
    resource: Any = None,
    *,
    resource_missing: bool = False,
) -> Decision:
    """
    Decide whether actor may perform action on resource.

    resource_missing=True means the dispatcher looked the resource up and it
    does not exist.
    """
    if actor is None:
        return Decision.deny(UNAUTHENTICATED)

    rule = ACTION_RULES[action]

    if rule is AccessRule.ADMIN_ONLY and not actor.is_admin:
        return Decision.deny(FORBIDDEN)

    if rule is AccessRule.MENU_DEV_ONLY and actor.role != ROLE_MENU_DEV:
        return Decision.deny(FORBIDDEN)

    if resource_missing:
        return Decision.deny(NOT_FOUND if actor.is_admin else FORBIDDEN)

    if resource is None:
        return ALLOW

    if rule is AccessRule.OWNER_OR_ADMIN:
        if not actor.is_admin and resource_owner_id(resource) != actor.id:
            return Decision.deny(FORBIDDEN)

    if rule is AccessRule.OWNER_ONLY:
        if resource_owner_id(resource) != actor.id:
            return Decision.deny(FORBIDDEN)

    if action in SELF_PROTECTED_ACTIONS and getattr(resource, "id", None) == actor.id:
        return Decision.deny(SELF_PROTECTION)

    return ALLOW


def visible_owner_id(actor: Actor) -> int | None:
    """
    Row filter for SELF_SCOPED reads.

    None means unfiltered (admin); otherwise only rows owned by this id.
    """
    return None if actor.is_admin else actor.id
