# Overview: Flask API route for the internal action endpoint; one POST carrying {action, token, ...params}.

"""
Internal Action API

Every dashboard operation is one POST to /api/action:

    {"action": "<name>", "token": "<session token>", ...params}

The session token may also be sent as `Authorization: Bearer <token>`.
Responses are the action's result object on success, {"error": ...} otherwise.
"""

from flask import Blueprint, jsonify

from ..decorators import bearer_token, client_ip, json_body
from ..dispatch import dispatch, error_response

# Handler modules register themselves in the action table on import
from . import admin_actions, menu_actions, ticket_actions  # noqa: F401


api_bp = Blueprint("api", __name__, url_prefix="/api")


@api_bp.post("/action")
def action_route():
    action_name = None
    try:
        params = json_body()
        action_name = params.pop("action", None)
        token = params.pop("token", None) or bearer_token()

        payload = dispatch(token, action_name, params, ip_address=client_ip())
        return jsonify(payload), 200

    except Exception as exc:
        return error_response(exc, f"action {action_name!r}")
