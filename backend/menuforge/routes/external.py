# Overview: Flask API route for partner integrations; static-key authenticated actions.

"""
Partner API

    POST /api/external
    Authorization: Bearer <api_key_dev | api_key_build | payment_api_key>
    {"action": "<name>", ...params}

require_api_key has already matched the key and checked its scope against
the action; this route only runs the operation.
"""

from flask import Blueprint, g, jsonify

from ..actions import ExternalAction
from ..decorators import client_ip, require_api_key
from ..dispatch import error_response
from ..services import external_service


external_bp = Blueprint("external", __name__, url_prefix="/api")


def _run(action: ExternalAction, principal, params: dict, ip_address: str | None) -> dict:
    if action is ExternalAction.GET_CODE:
        return external_service.get_code(principal, params.get("build_type"))
    if action is ExternalAction.CREATE_USER:
        return external_service.create_menu_user(principal, params, ip_address)
    if action is ExternalAction.BLACKLIST_USER:
        return external_service.set_blacklist(principal, params, True, ip_address)
    if action is ExternalAction.UNBLACKLIST_USER:
        return external_service.set_blacklist(principal, params, False, ip_address)
    if action is ExternalAction.CHECK_BLACKLIST:
        return external_service.check_blacklist(principal, params)
    if action is ExternalAction.CHECK_USER:
        return external_service.check_user(principal, params)
    if action is ExternalAction.DEBUG_LOG:
        return external_service.append_debug_log(principal, params, ip_address)
    raise RuntimeError(f"No partner handler for {action.value}")


@external_bp.post("/external")
@require_api_key
def external_route():
    action = g.external_action
    try:
        payload = _run(action, g.key_principal, g.external_params, client_ip())
        return jsonify(payload), 200
    except Exception as exc:
        return error_response(exc, f"external {action.value}")
