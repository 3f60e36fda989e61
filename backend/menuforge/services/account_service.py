# Overview: Service-layer operations for accounts; admin provisioning and activation toggles.

from __future__ import annotations

from ..errors import ValidationError
from ..extensions import db
from ..models import User, ROLE_MENU_DEV
from . import auth_service, session_service


def list_accounts() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def create_account(email: str, password: str, display_name: str, role=None) -> User:
    role = role or ROLE_MENU_DEV
    if not isinstance(role, str):
        raise ValidationError("role must be a string")
    return auth_service.create_user_with_password(
        email=email,
        password=password,
        display_name=display_name,
        role=role,
    )


def set_account_active(user: User, is_active: bool) -> int:
    """
    Activate or deactivate an account.

    Deactivation deletes every session of the account in the same commit
    as the flag change, so no previously issued token survives it.

    Returns the number of sessions revoked.
    """
    user.is_active = is_active
    if is_active:
        db.session.commit()
        return 0
    return session_service.revoke_all_user_sessions(user.id)
