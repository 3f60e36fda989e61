from __future__ import annotations

from ..extensions import db
from menuforge.time_utils import to_utc_z, utcnow


ROLE_ADMIN = "admin"
ROLE_MENU_DEV = "menu_dev"
VALID_ROLES = frozenset({ROLE_ADMIN, ROLE_MENU_DEV})


class User(db.Model):
    """
    Accounts for menu owners (menu_dev) and platform operators (admin).

    Emails are stored lower-cased so the unique constraint is effectively
    case-insensitive; lookups must lower-case their input too.

    Accounts are never hard-deleted. Deactivation (is_active=False) fails
    every authentication path immediately and revokes all sessions.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    display_name = db.Column(db.String(120), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_MENU_DEV)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_public_dict(self) -> dict:
        """Minimal projection returned by login/validate and used for authorization."""
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session for the internal action API.

    SECURITY NOTES:
    - Only the SHA-256 hash of the token is stored
    - 24-hour absolute expiry from issuance, no sliding refresh
    - Logout deletes the row; deactivating the account deletes all its rows
    """
    __tablename__ = "sessions"
    __table_args__ = (
        db.Index("ix_sessions_user_expires", "user_id", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # Request provenance
    ip_address = db.Column(db.String(64), nullable=True)
    browser_fingerprint = db.Column(db.String(255), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "ip_address": self.ip_address,
        }
