# Overview: Flask API route for authentication; login, session validation and logout.

"""
Authentication API

One POST endpoint with an action selector:

    {"action": "login", "email": ..., "password": ..., "fingerprint": ...}  -> {token, user}
    {"action": "validate", "token": ...}                                     -> {user}
    {"action": "logout", "token": ...}                                       -> {success}

The token may also arrive as `Authorization: Bearer <token>`.

SECURITY:
- Bad password, unknown email and deactivated account all return the same
  401 "Invalid credentials"
- Expired, revoked and unknown tokens all return 401 "Invalid session"
- Logout is idempotent and never reveals whether the token existed
- Self-registration does not exist; accounts come from admins or the CLI
"""

from flask import Blueprint, jsonify

from ..decorators import bearer_token, client_ip, json_body
from ..dispatch import error_response
from ..errors import AuthenticationError, ValidationError
from ..services import auth_service, session_service
from ..validation import optional_text


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _login(data: dict):
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
        raise ValidationError("Email and password required")
    fingerprint = optional_text(data, "fingerprint") or optional_text(data, "browser_fingerprint")

    user = auth_service.authenticate(email, password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    session_service.cleanup_expired_sessions()
    _, token = session_service.issue_session(
        user,
        ip_address=client_ip(),
        browser_fingerprint=fingerprint,
    )
    return {"token": token, "user": user.to_public_dict()}


def _validate(token: str | None):
    if not token:
        raise ValidationError("Token required")

    context = session_service.validate_session(token)
    if not context:
        raise AuthenticationError("Invalid session")
    return {"user": context.user.to_public_dict()}


def _logout(token: str | None):
    session_service.revoke_session(token, ip_address=client_ip())
    return {"success": True}


@auth_bp.post("/auth")
def auth_route():
    action = None
    try:
        data = json_body()
        action = data.get("action")
        token = data.get("token") or bearer_token()

        if action == "login":
            return jsonify(_login(data)), 200
        if action == "validate":
            return jsonify(_validate(token)), 200
        if action == "logout":
            return jsonify(_logout(token)), 200

        raise ValidationError("Unknown action")

    except Exception as exc:
        return error_response(exc, f"auth {action!r}")
