# Overview: Service-layer operations for menu deletion requests; submit and resolve workflow.

"""
Deletion Workflow Service

WHY: Owners cannot delete a menu directly. They file a request, the menu is
frozen in deletion_requested, and an admin resolves it exactly once.

RESOLUTIONS:
- approved:    menu -> terminated (code and keys stay in storage)
- rejected:    menu -> active
- transferred: owner_id -> account matching transfer_email, menu -> active

ATOMICITY:
- request_deletion inserts the request and flips the menu in one commit
- resolve_deletion updates request and menu in one commit, each write
  conditional on its expected prior status; if either misses, nothing
  is written and the caller gets a 409
- a transfer target is looked up before any write, so an unknown email
  leaves the menu untouched
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import DeletionRequest, DeletionStatus, Menu, MenuStatus, User
from ..validation import require_choice
from .concurrency import compare_and_set
from .auth_service import find_user_by_email
from .lifecycle_service import OWNER_TOGGLE_STATUSES, LifecycleError, parse_status
from menuforge.time_utils import utcnow


RESOLUTION_DECISIONS = frozenset({
    DeletionStatus.APPROVED.value,
    DeletionStatus.REJECTED.value,
    DeletionStatus.TRANSFERRED.value,
})


def request_deletion(menu: Menu, requester: User | int, reason) -> DeletionRequest:
    """
    File a deletion request for a menu and freeze it in deletion_requested.

    Raises:
        ValidationError: Empty reason
        ConflictError: A request is already pending, or the status changed underneath
        LifecycleError: Menu is not in active/maintenance/paused
    """
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("Reason required")

    current = parse_status(menu.status)
    if current is MenuStatus.DELETION_REQUESTED:
        raise ConflictError("A deletion request is already pending for this menu")
    if current not in OWNER_TOGGLE_STATUSES:
        raise LifecycleError(f"Cannot request deletion of a menu in status '{current.value}'")

    requester_id = requester if isinstance(requester, int) else requester.id

    request_row = DeletionRequest(
        menu_id=menu.id,
        requester_id=requester_id,
        reason=reason.strip(),
        status=DeletionStatus.PENDING.value,
        created_at=utcnow(),
    )
    db.session.add(request_row)

    changed = compare_and_set(
        Menu,
        menu.id,
        expected={"status": current.value},
        values={"status": MenuStatus.DELETION_REQUESTED.value, "updated_at": utcnow()},
    )
    if not changed:
        db.session.rollback()
        raise ConflictError("Menu status changed concurrently; reload and retry")

    db.session.commit()
    return request_row


def resolve_deletion(
    request_id: int,
    decision: str,
    admin: User | int,
    response: str | None = None,
    transfer_email: str | None = None,
) -> DeletionRequest:
    """
    Resolve a pending deletion request.

    Args:
        request_id: DeletionRequest id
        decision: approved | rejected | transferred
        admin: Resolving admin (account or id)
        response: Optional note shown to the owner
        transfer_email: Required when decision == transferred

    Returns:
        The resolved DeletionRequest (refreshed)

    Raises:
        ValidationError: Bad decision, or transferred without an email
        NotFoundError: Unknown request, or unknown transfer target
        ConflictError: Request already resolved, or menu no longer deletion_requested
    """
    require_choice(decision, RESOLUTION_DECISIONS, "decision")

    request_row = db.session.get(DeletionRequest, request_id)
    if not request_row:
        raise NotFoundError("Request not found")

    if request_row.status != DeletionStatus.PENDING.value:
        raise ConflictError("Deletion request already resolved")

    menu_values = {"updated_at": utcnow()}
    target_user = None

    if decision == DeletionStatus.TRANSFERRED.value:
        if not transfer_email or not transfer_email.strip():
            raise ValidationError("transfer_email required for transfer")
        target_user = find_user_by_email(transfer_email)
        if not target_user:
            raise NotFoundError("Transfer target user not found")
        menu_values["owner_id"] = target_user.id
        menu_values["status"] = MenuStatus.ACTIVE.value
    elif decision == DeletionStatus.APPROVED.value:
        menu_values["status"] = MenuStatus.TERMINATED.value
    else:
        menu_values["status"] = MenuStatus.ACTIVE.value

    admin_id = admin if isinstance(admin, int) else admin.id
    now = utcnow()

    request_changed = compare_and_set(
        DeletionRequest,
        request_row.id,
        expected={"status": DeletionStatus.PENDING.value},
        values={
            "status": decision,
            "admin_response": response,
            "admin_id": admin_id,
            "transfer_to_email": target_user.email if target_user else None,
            "resolved_at": now,
        },
    )
    menu_changed = compare_and_set(
        Menu,
        request_row.menu_id,
        expected={"status": MenuStatus.DELETION_REQUESTED.value},
        values=menu_values,
    )

    if not (request_changed and menu_changed):
        db.session.rollback()
        raise ConflictError("Deletion request already resolved")

    db.session.commit()
    db.session.refresh(request_row)
    return request_row


def list_requests() -> list[dict]:
    """All deletion requests, newest first, with menu and requester projections."""
    rows = (
        db.session.query(DeletionRequest)
        .order_by(DeletionRequest.created_at.desc(), DeletionRequest.id.desc())
        .all()
    )

    result = []
    for row in rows:
        data = row.to_dict()
        data["menu"] = {
            "id": row.menu.id,
            "name": row.menu.name,
            "status": row.menu.status,
        } if row.menu else None
        data["requester"] = {
            "id": row.requester.id,
            "email": row.requester.email,
            "display_name": row.requester.display_name,
        } if row.requester else None
        result.append(data)
    return result
