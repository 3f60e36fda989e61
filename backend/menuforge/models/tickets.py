from __future__ import annotations

from ..extensions import db
from menuforge.time_utils import to_utc_z, utcnow


TICKET_STATUSES = frozenset({"open", "in_progress", "resolved", "closed"})


class Ticket(db.Model):
    """Support ticket opened by an account, optionally about one of its menus."""
    __tablename__ = "tickets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    menu_id = db.Column(db.Integer, db.ForeignKey("menus.id"), nullable=True)

    subject = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="open")
    assigned_admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "creator_id": self.creator_id,
            "menu_id": self.menu_id,
            "subject": self.subject,
            "description": self.description,
            "status": self.status,
            "assigned_admin_id": self.assigned_admin_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TicketMessage(db.Model):
    __tablename__ = "ticket_messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    sender = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "sender_id": self.sender_id,
            "message": self.message,
            "created_at": to_utc_z(self.created_at),
        }
