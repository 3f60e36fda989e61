from __future__ import annotations

from ..extensions import db
from menuforge.time_utils import to_utc_z, utcnow

class AuditLog(db.Model):
    """
    Audit trail of privileged mutations.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.

    user_id and entity_id are plain columns without foreign keys: entries
    outlive the accounts and menus they mention. user_id is null for
    partner-API (key-authenticated) mutations.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_created", "created_at"),
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, nullable=True, index=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    details = db.Column(db.JSON, nullable=False, default=dict)

    ip_address = db.Column(db.String(64), nullable=True)
    browser_fingerprint = db.Column(db.String(255), nullable=True)

    entity_type = db.Column(db.String(32), nullable=True)
    entity_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "details": self.details,
            "ip_address": self.ip_address,
            "browser_fingerprint": self.browser_fingerprint,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "created_at": to_utc_z(self.created_at),
        }
