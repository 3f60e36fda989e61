# Overview: Request decorators and credential extraction helpers for API routes.

from functools import wraps

from flask import g, request

from .actions import ExternalAction
from .dispatch import error_response
from .errors import ValidationError
from .services import external_service


def bearer_token() -> str | None:
    """Value of an `Authorization: Bearer <value>` header, or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    value = auth_header.split(" ", 1)[1].strip()
    return value or None


def client_ip() -> str | None:
    """First X-Forwarded-For hop if present, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_api_key(f):
    """
    Authenticate a partner call by its static menu key.

    Parses {action, ...params}, resolves the bearer key, and checks its scope
    against the action before the route runs. Sets:
    - g.external_action: the ExternalAction being performed
    - g.key_principal: KeyPrincipal (menu + scope)
    - g.external_params: the remaining body fields

    SECURITY: Returns 401 "Invalid API key" for a missing, unknown or
    wrong-scope key. Unknown actions are 400 only after the key is valid.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            params = json_body()
            action_name = params.pop("action", None)
            principal = external_service.authenticate_key(bearer_token())

            try:
                action = ExternalAction(action_name)
            except ValueError:
                raise ValidationError("Unknown action")

            external_service.require_scope(principal, action)

            g.key_principal = principal
            g.external_action = action
            g.external_params = params
        except Exception as exc:
            return error_response(exc, "external authentication")

        return f(*args, **kwargs)

    return decorated_function
