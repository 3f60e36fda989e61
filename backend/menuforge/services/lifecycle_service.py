# Overview: Service-layer operations for lifecycle; encapsulates business logic and database work.

"""
Menu Lifecycle Service

================================================================================
PURPOSE: Own every legal status transition of a menu and who may trigger it
================================================================================

STATE MACHINE:

    pending_approval --admin--> active | rejected
    active <--owner/admin--> maintenance <--owner/admin--> paused <--> active
    active | maintenance | paused --owner--> deletion_requested   (deletion_service)
    deletion_requested --admin--> active | terminated             (deletion_service)
    any state except terminated --admin--> terminated

RULES (NON-NEGOTIABLE):
1. Owner transitions need BOTH current and target in {active, maintenance, paused}
2. rejected and terminated are absorbing for owners; nothing leaves terminated
3. deletion_requested blocks every owner toggle until an admin resolves it
4. Same-state "transitions" are rejected
5. Every write is a compare-and-set on (id, status); a lost race is a 409

The transition table is data, (current, target) -> roles allowed, so it can
be tested without any HTTP plumbing.
================================================================================
"""

from __future__ import annotations

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Menu, MenuStatus, ROLE_ADMIN, ROLE_MENU_DEV
from .concurrency import compare_and_set
from menuforge.time_utils import utcnow


OWNER_TOGGLE_STATUSES = frozenset({
    MenuStatus.ACTIVE,
    MenuStatus.MAINTENANCE,
    MenuStatus.PAUSED,
})


class LifecycleError(ValidationError):
    """
    Raised when an invalid lifecycle transition is attempted.

    This is a domain error, not a technical error. It indicates
    that the user attempted an operation that violates business rules.
    """
    pass


def _build_transition_table() -> dict[tuple[MenuStatus, MenuStatus], frozenset[str]]:
    owner_or_admin = frozenset({ROLE_MENU_DEV, ROLE_ADMIN})
    admin_only = frozenset({ROLE_ADMIN})

    table: dict[tuple[MenuStatus, MenuStatus], frozenset[str]] = {}

    for current in OWNER_TOGGLE_STATUSES:
        for target in OWNER_TOGGLE_STATUSES:
            if current is not target:
                table[(current, target)] = owner_or_admin

    table[(MenuStatus.PENDING_APPROVAL, MenuStatus.ACTIVE)] = admin_only
    table[(MenuStatus.PENDING_APPROVAL, MenuStatus.REJECTED)] = admin_only

    for current in MenuStatus:
        if current is not MenuStatus.TERMINATED:
            table[(current, MenuStatus.TERMINATED)] = admin_only

    return table


TRANSITIONS = _build_transition_table()


def parse_status(value) -> MenuStatus:
    """
    Validate that a status value is one of the allowed states.

    Raises:
        LifecycleError: If status is not a MenuStatus value
    """
    valid = {s.value for s in MenuStatus}
    if not isinstance(value, str) or value not in valid:
        raise LifecycleError(
            f"Invalid status '{value}'. Must be one of: {', '.join(sorted(valid))}"
        )
    return MenuStatus(value)


def can_transition(current: MenuStatus, target: MenuStatus, role: str) -> bool:
    """Check (current, target, role) against the transition table."""
    return role in TRANSITIONS.get((current, target), frozenset())


def transition_menu(
    menu: Menu,
    target: MenuStatus,
    *,
    role: str,
    require_from: MenuStatus | None = None,
) -> tuple[MenuStatus, MenuStatus]:
    """
    Move a menu to target status.

    Args:
        menu: The menu to transition (its loaded status is the expected current)
        target: Desired status
        role: Role the transition is performed under (admin or menu_dev)
        require_from: Restrict the starting state (e.g. approve only from pending)

    Returns:
        (from_status, to_status) for the audit entry

    Raises:
        LifecycleError: Transition not allowed for this role/state
        ConflictError: Status changed since the menu was loaded
    """
    current = parse_status(menu.status)

    if current is target:
        raise LifecycleError(f"Menu is already {target.value}")

    if require_from is not None and current is not require_from:
        raise LifecycleError(
            f"Cannot move menu to '{target.value}': "
            f"current status is '{current.value}', must be '{require_from.value}'"
        )

    if current is MenuStatus.DELETION_REQUESTED and role != ROLE_ADMIN:
        raise LifecycleError("Menu has a pending deletion request")

    if not can_transition(current, target, role):
        raise LifecycleError(
            f"Invalid status transition from '{current.value}' to '{target.value}'"
        )

    changed = compare_and_set(
        Menu,
        menu.id,
        expected={"status": current.value},
        values={"status": target.value, "updated_at": utcnow()},
    )
    if not changed:
        db.session.rollback()
        raise ConflictError("Menu status changed concurrently; reload and retry")

    db.session.commit()
    return current, target


def approve_menu(menu: Menu) -> tuple[MenuStatus, MenuStatus]:
    return transition_menu(
        menu, MenuStatus.ACTIVE, role=ROLE_ADMIN, require_from=MenuStatus.PENDING_APPROVAL
    )


def reject_menu(menu: Menu) -> tuple[MenuStatus, MenuStatus]:
    return transition_menu(
        menu, MenuStatus.REJECTED, role=ROLE_ADMIN, require_from=MenuStatus.PENDING_APPROVAL
    )


def terminate_menu(menu: Menu) -> tuple[MenuStatus, MenuStatus]:
    return transition_menu(menu, MenuStatus.TERMINATED, role=ROLE_ADMIN)
