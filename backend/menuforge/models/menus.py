from __future__ import annotations

from enum import Enum

from ..extensions import db
from menuforge.time_utils import to_utc_z, utcnow


class MenuStatus(str, Enum):
    """Closed set of lifecycle states for a menu (see lifecycle_service for transitions)."""
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    PAUSED = "paused"
    REJECTED = "rejected"
    TERMINATED = "terminated"
    DELETION_REQUESTED = "deletion_requested"


class DeletionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    TRANSFERRED = "transferred"


class Menu(db.Model):
    """
    A managed Lua menu: two independent code slots and three API keys.

    KEY SCOPES (never interchangeable):
    - api_key_dev:     partner code delivery of dev_code
    - api_key_build:   partner code delivery of build_code
    - payment_api_key: partner end-user management and debug logging

    Status is written only through compare-and-set updates in
    lifecycle_service / deletion_service.
    """
    __tablename__ = "menus"
    __table_args__ = (
        db.Index("ix_menus_owner_created", "owner_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(
        db.String(32),
        nullable=False,
        default=MenuStatus.PENDING_APPROVAL.value,
        index=True,
    )

    dev_code = db.Column(db.Text, nullable=False, default="")
    build_code = db.Column(db.Text, nullable=False, default="")

    api_key_dev = db.Column(db.String(80), nullable=False, unique=True, index=True)
    api_key_build = db.Column(db.String(80), nullable=False, unique=True, index=True)
    payment_api_key = db.Column(db.String(80), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", backref=db.backref("menus", lazy=True))

    def code_for(self, target: str) -> str:
        return self.build_code if target == "build" else self.dev_code

    def to_summary_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def api_keys_dict(self) -> dict:
        return {
            "api_key_dev": self.api_key_dev,
            "api_key_build": self.api_key_build,
            "payment_api_key": self.payment_api_key,
        }

    def to_dict(self) -> dict:
        data = self.to_summary_dict()
        data.update(self.api_keys_dict())
        data["dev_code"] = self.dev_code
        data["build_code"] = self.build_code
        return data


class MenuUser(db.Model):
    """End user of a menu, provisioned by the partner payment integration."""
    __tablename__ = "menu_users"
    __table_args__ = (
        db.UniqueConstraint("menu_id", "email", name="uq_menu_users_menu_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    menu_id = db.Column(db.Integer, db.ForeignKey("menus.id"), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    hwid = db.Column(db.String(255), nullable=True)

    is_blacklisted = db.Column(db.Boolean, nullable=False, default=False)
    blacklist_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    menu = db.relationship("Menu", backref=db.backref("menu_users", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "menu_id": self.menu_id,
            "email": self.email,
            "hwid": self.hwid,
            "is_blacklisted": self.is_blacklisted,
            "blacklist_reason": self.blacklist_reason,
            "created_at": to_utc_z(self.created_at),
        }


class DebugLog(db.Model):
    """Append-only debug report sent by a running menu through the partner API."""
    __tablename__ = "debug_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    menu_id = db.Column(db.Integer, db.ForeignKey("menus.id"), nullable=False, index=True)
    menu_user_id = db.Column(db.Integer, db.ForeignKey("menu_users.id"), nullable=True)
    details = db.Column(db.Text, nullable=False)
    ip_address = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "menu_id": self.menu_id,
            "menu_user_id": self.menu_user_id,
            "details": self.details,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }


class DeletionRequest(db.Model):
    """
    Owner-submitted request to retire a menu.

    Resolution is single-shot: status moves from pending to exactly one of
    approved / rejected / transferred and never changes again.
    """
    __tablename__ = "menu_deletion_requests"
    __table_args__ = (
        db.Index("ix_deletion_requests_menu_status", "menu_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    menu_id = db.Column(db.Integer, db.ForeignKey("menus.id"), nullable=False, index=True)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    reason = db.Column(db.Text, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=DeletionStatus.PENDING.value)
    admin_response = db.Column(db.Text, nullable=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    transfer_to_email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    menu = db.relationship("Menu", backref=db.backref("deletion_requests", lazy=True))
    requester = db.relationship("User", foreign_keys=[requester_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "menu_id": self.menu_id,
            "requester_id": self.requester_id,
            "reason": self.reason,
            "status": self.status,
            "admin_response": self.admin_response,
            "admin_id": self.admin_id,
            "transfer_to_email": self.transfer_to_email,
            "created_at": to_utc_z(self.created_at),
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
        }
