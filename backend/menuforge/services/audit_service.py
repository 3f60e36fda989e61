# Overview: Service-layer operations for the audit trail; write-only side channel.

"""
Audit Recorder

Every privileged mutation produces exactly one AuditLog row. Handlers do not
write audit rows themselves: dispatched actions return an AuditEvent and the
dispatcher records it after the primary mutation has committed. Login/logout
and partner-API mutations call record() directly.

FAILURE POLICY: best-effort. The primary change is already committed when
record() runs, so a failed audit write is rolled back and logged with full
detail for operators; it never undoes or fails the primary action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AuditLog, User
from menuforge.time_utils import utcnow


@dataclass(frozen=True)
class AuditEvent:
    """What a handler reports about the mutation it just committed."""
    details: dict[str, Any] = field(default_factory=dict)
    entity_type: str | None = None
    entity_id: Any = None
    action: str | None = None  # defaults to the dispatched action name


def record(
    user_id: int | None,
    action: str,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    entity_type: str | None = None,
    entity_id: Any = None,
    browser_fingerprint: str | None = None,
) -> AuditLog | None:
    """
    Append one audit entry.

    Returns the entry, or None when the write failed (logged, not raised).
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        details=details or {},
        ip_address=ip_address,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        browser_fingerprint=browser_fingerprint,
        created_at=utcnow(),
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to write audit entry for action %s", action)
        return None
    return entry


def record_event(user_id: int | None, action: str, event: AuditEvent, ip_address: str | None) -> AuditLog | None:
    return record(
        user_id=user_id,
        action=event.action or action,
        details=event.details,
        ip_address=ip_address,
        entity_type=event.entity_type,
        entity_id=event.entity_id,
    )


def list_entries(*, limit: int = 100, offset: int = 0) -> list[dict]:
    """Newest-first page of audit entries with the acting account's projection."""
    entries = (
        db.session.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    user_ids = {e.user_id for e in entries if e.user_id is not None}
    users = {}
    if user_ids:
        for user in db.session.query(User).filter(User.id.in_(user_ids)).all():
            users[user.id] = {"id": user.id, "email": user.email, "display_name": user.display_name}

    result = []
    for entry in entries:
        data = entry.to_dict()
        data["user"] = users.get(entry.user_id) if entry.user_id is not None else None
        result.append(data)
    return result
