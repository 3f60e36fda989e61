# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: The internal action API trusts nothing but a live session. This module
is the only place sessions are issued, checked, and destroyed.

SECURITY FEATURES:
- Cryptographically secure random tokens (48 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour absolute timeout from issuance, no sliding refresh
- Valid iff now < expires_at AND the bound account is active
- Logout deletes the row; account deactivation deletes every row for it
- Records client IP and optional browser fingerprint
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from . import audit_service
from menuforge.time_utils import utcnow


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
TOKEN_BYTES = 48


@dataclass
class SessionContext:
    """Result of a successful validate_session."""
    user: User
    session: SessionToken


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 96-character hex string (48 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def issue_session(
    user: User,
    ip_address: str | None = None,
    browser_fingerprint: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for an already-authenticated account and audit the login.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()

    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        ip_address=ip_address,
        browser_fingerprint=browser_fingerprint,
    )

    db.session.add(session)
    db.session.commit()

    audit_service.record(
        user_id=user.id,
        action="login",
        details={"method": "email"},
        ip_address=ip_address,
        entity_type="user",
        entity_id=user.id,
        browser_fingerprint=browser_fingerprint,
    )

    return session, plaintext_token


def validate_session(token: str | None) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is missing or unknown (never issued, logged out, or purged)
    - Token is expired (now >= expires_at)
    - Bound account is deactivated

    Read-only: validation never writes.
    """
    if not token or not isinstance(token, str):
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token)
    ).first()

    if not session:
        return None

    if not utcnow() < session.expires_at:
        return None

    user = db.session.get(User, session.user_id)
    if not user or not user.is_active:
        return None

    return SessionContext(user=user, session=session)


def revoke_session(token: str | None, ip_address: str | None = None) -> bool:
    """
    Delete a session (logout). Idempotent.

    Returns True if a session was deleted, False if none matched.
    A "logout" audit entry is written only when a session existed.
    """
    if not token or not isinstance(token, str):
        return False

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token)
    ).first()

    if not session:
        return False

    user_id = session.user_id
    db.session.delete(session)
    db.session.commit()

    audit_service.record(
        user_id=user_id,
        action="logout",
        ip_address=ip_address,
        entity_type="user",
        entity_id=user_id,
    )
    return True


def revoke_all_user_sessions(user_id: int) -> int:
    """
    Delete every session for an account.

    Returns count of sessions deleted.

    Called by account deactivation. Commits whatever else is pending on the
    current transaction (the is_active flip) together with the deletes.
    """
    deleted = db.session.query(SessionToken).filter(
        SessionToken.user_id == user_id
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted


def cleanup_expired_sessions() -> int:
    """
    Delete expired sessions.

    Returns count of sessions deleted.
    Runs on every successful login and from `flask sessions cleanup`.
    """
    deleted = db.session.query(SessionToken).filter(
        SessionToken.expires_at <= utcnow()
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
