# Overview: Service-layer operations for credentials; password hashing and account provisioning.

"""
Credential Store

WHY: Passwords are verified and accounts provisioned in one place. The rest
of the system only sees verify_password() and create_user_with_password().

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters with upper, lower and digit
- Email comparison is case-insensitive (stored lower-cased)
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User, ROLE_MENU_DEV, VALID_ROLES
from menuforge.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt after the strength check."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')  # Store as string in database


def find_user_by_email(email: str) -> User | None:
    """Case-insensitive account lookup."""
    return db.session.query(User).filter(
        func.lower(User.email) == normalize_email(email)
    ).first()


def verify_password(email: str, password: str) -> bool:
    """
    Check an email/password pair.

    Returns False for unknown emails and malformed hashes alike; bcrypt's
    checkpw is timing-safe for the comparison itself.
    """
    user = find_user_by_email(email)
    if user is None:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), user.password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user_with_password(
    email: str,
    password: str,
    display_name: str,
    role: str = ROLE_MENU_DEV,
) -> User:
    """
    Provision a new account.

    Raises:
        ValidationError: unknown role or blank display name
        PasswordValidationError: weak password
        ConflictError: email already registered (case-insensitive)
    """
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(sorted(VALID_ROLES))}")

    display_name = (display_name or "").strip()
    if not display_name:
        raise ValidationError("display_name required")

    if find_user_by_email(email) is not None:
        raise ConflictError("An account with this email already exists")

    user = User(
        email=normalize_email(email),
        display_name=display_name,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent registration of the same email won the unique index
        db.session.rollback()
        raise ConflictError("An account with this email already exists")
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Resolve login credentials to an active account.

    Returns None for bad credentials AND for inactive accounts, so callers
    cannot tell the two apart. Updates last_login_at on success.
    """
    if not verify_password(email, password):
        return None

    user = find_user_by_email(email)
    if user is None or not user.is_active:
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
