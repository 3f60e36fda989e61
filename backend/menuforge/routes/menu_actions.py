# Overview: Internal action handlers for menus; code slots, end users, status and deletion requests.

"""
Menu action handlers

Each handler receives an ActionContext whose resource has already been
loaded and ownership-checked by the dispatcher. Handlers of audited actions
return the AuditEvent describing what they changed.
"""

from ..actions import Action
from ..dispatch import ActionContext, ActionOutcome, action_handler, load_menu
from ..services import deletion_service, menu_service
from ..services.audit_service import AuditEvent
from ..services.authorization_service import visible_owner_id
from ..services.lifecycle_service import parse_status, transition_menu
from ..validation import build_target, optional_text, require_code, require_int


def _menu_event(menu_id: int, **details) -> AuditEvent:
    return AuditEvent(details={"menu_id": menu_id, **details}, entity_type="menu", entity_id=menu_id)


@action_handler(Action.GET_MENUS)
def get_menus(ctx: ActionContext, params: dict) -> ActionOutcome:
    menus = menu_service.list_menus(owner_id=visible_owner_id(ctx.actor))
    return ActionOutcome({"menus": [m.to_summary_dict() for m in menus]})


@action_handler(Action.CREATE_MENU, audited=True)
def create_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = menu_service.create_menu(ctx.user, params.get("name"))
    return ActionOutcome(
        {"menu": menu.to_dict()},
        AuditEvent(details={"name": menu.name}, entity_type="menu", entity_id=menu.id),
    )


@action_handler(Action.GET_MENU, loader=load_menu)
def get_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome({"menu": ctx.resource.to_dict()})


@action_handler(Action.UPDATE_CODE, loader=load_menu, audited=True)
def update_code(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = menu_service.write_code(ctx.resource, "dev", require_code(params))
    return ActionOutcome({"success": True}, _menu_event(menu.id))


@action_handler(Action.PUSH_TO_DEV, loader=load_menu, audited=True)
def push_to_dev(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = menu_service.write_code(ctx.resource, "dev", require_code(params))
    return ActionOutcome({"success": True}, _menu_event(menu.id))


@action_handler(Action.PUSH_TO_BUILD, loader=load_menu, audited=True)
def push_to_build(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = menu_service.write_code(ctx.resource, "build", require_code(params))
    return ActionOutcome({"success": True}, _menu_event(menu.id))


@action_handler(Action.UPLOAD_MENU, loader=load_menu, audited=True)
def upload_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    target = build_target(params.get("target"))
    menu = menu_service.write_code(ctx.resource, target, require_code(params))
    return ActionOutcome({"success": True}, _menu_event(menu.id, target=target))


@action_handler(Action.GET_MENU_USERS, loader=load_menu)
def get_menu_users(ctx: ActionContext, params: dict) -> ActionOutcome:
    users = menu_service.list_menu_users(ctx.resource)
    return ActionOutcome({"users": [u.to_dict() for u in users]})


def _set_blacklisted(ctx: ActionContext, params: dict, blacklisted: bool) -> ActionOutcome:
    menu_user = menu_service.get_menu_user_for_menu(ctx.resource, require_int(params, "menu_user_id"))
    reason = optional_text(params, "reason") if blacklisted else None
    menu_user = menu_service.set_blacklisted(menu_user, blacklisted, reason)

    details = {"menu_id": menu_user.menu_id, "menu_user_id": menu_user.id}
    if blacklisted:
        details["reason"] = menu_user.blacklist_reason
    return ActionOutcome(
        {"success": True},
        AuditEvent(details=details, entity_type="menu_user", entity_id=menu_user.id),
    )


@action_handler(Action.BLACKLIST_USER, loader=load_menu, audited=True)
def blacklist_user(ctx: ActionContext, params: dict) -> ActionOutcome:
    return _set_blacklisted(ctx, params, True)


@action_handler(Action.UNBLACKLIST_USER, loader=load_menu, audited=True)
def unblacklist_user(ctx: ActionContext, params: dict) -> ActionOutcome:
    return _set_blacklisted(ctx, params, False)


@action_handler(Action.GET_MENU_STATS, loader=load_menu)
def get_menu_stats(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome(menu_service.get_stats(ctx.resource))


@action_handler(Action.UPDATE_MENU_STATUS, loader=load_menu, audited=True)
def update_menu_status(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = ctx.resource
    target = parse_status(params.get("status"))
    from_status, to_status = transition_menu(menu, target, role=ctx.actor.role)
    return ActionOutcome(
        {"success": True, "status": to_status.value},
        _menu_event(menu.id, **{"from": from_status.value, "to": to_status.value}),
    )


@action_handler(Action.REQUEST_DELETION, loader=load_menu, audited=True)
def request_deletion(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = ctx.resource
    request_row = deletion_service.request_deletion(menu, ctx.user, params.get("reason"))
    return ActionOutcome(
        {"request": request_row.to_dict()},
        _menu_event(request_row.menu_id, request_id=request_row.id, reason=request_row.reason),
    )


@action_handler(Action.GET_API_INFO, loader=load_menu)
def get_api_info(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome({"api": menu_service.get_api_info(ctx.resource)})


@action_handler(Action.GET_DEBUG_LOGS, loader=load_menu)
def get_debug_logs(ctx: ActionContext, params: dict) -> ActionOutcome:
    logs = menu_service.list_debug_logs(ctx.resource)
    return ActionOutcome({"logs": [log.to_dict() for log in logs]})
