# Overview: Internal action handlers restricted to admins; approvals, accounts, audit and deletion resolution.

"""
Admin action handlers

Every action here is ADMIN_ONLY in the authorization table, so the
dispatcher has already rejected non-admins before any of these run.
"""

from ..actions import Action
from ..dispatch import (
    ActionContext,
    ActionOutcome,
    action_handler,
    load_account,
    load_deletion_request,
    load_menu,
)
from ..errors import ValidationError
from ..services import account_service, audit_service, deletion_service, menu_service
from ..services.audit_service import AuditEvent
from ..services.lifecycle_service import approve_menu, reject_menu, terminate_menu
from ..validation import (
    build_target,
    optional_int,
    optional_text,
    require_bool,
    require_code,
    require_email,
    require_text,
)


AUDIT_PAGE_DEFAULT = 100
AUDIT_PAGE_MAX = 500


def _transition_event(menu_id: int, from_status, to_status) -> AuditEvent:
    return AuditEvent(
        details={"menu_id": menu_id, "from": from_status.value, "to": to_status.value},
        entity_type="menu",
        entity_id=menu_id,
    )


@action_handler(Action.ADMIN_GET_ALL_MENUS)
def admin_get_all_menus(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome({"menus": menu_service.list_menus_with_owners()})


@action_handler(Action.ADMIN_APPROVE_MENU, loader=load_menu, audited=True)
def admin_approve_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu_id = ctx.resource.id
    from_status, to_status = approve_menu(ctx.resource)
    return ActionOutcome({"success": True}, _transition_event(menu_id, from_status, to_status))


@action_handler(Action.ADMIN_REJECT_MENU, loader=load_menu, audited=True)
def admin_reject_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu_id = ctx.resource.id
    from_status, to_status = reject_menu(ctx.resource)
    return ActionOutcome({"success": True}, _transition_event(menu_id, from_status, to_status))


@action_handler(Action.ADMIN_TERMINATE_MENU, loader=load_menu, audited=True)
def admin_terminate_menu(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu_id = ctx.resource.id
    from_status, to_status = terminate_menu(ctx.resource)
    return ActionOutcome({"success": True}, _transition_event(menu_id, from_status, to_status))


@action_handler(Action.ADMIN_GET_ALL_USERS)
def admin_get_all_users(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome({"users": [u.to_dict() for u in account_service.list_accounts()]})


@action_handler(Action.ADMIN_CREATE_USER, audited=True)
def admin_create_user(ctx: ActionContext, params: dict) -> ActionOutcome:
    email = params.get("email")
    password = params.get("password")
    display_name = params.get("display_name")
    if not all(isinstance(v, str) and v.strip() for v in (email, password, display_name)):
        raise ValidationError("All fields required")
    email = require_email(params)
    display_name = require_text(params, "display_name")

    user = account_service.create_account(email, password, display_name, role=params.get("role"))
    return ActionOutcome(
        {"user_id": user.id, "user": user.to_dict()},
        AuditEvent(details={"email": user.email, "role": user.role}, entity_type="user", entity_id=user.id),
    )


@action_handler(Action.ADMIN_TOGGLE_USER, loader=load_account, audited=True)
def admin_toggle_user(ctx: ActionContext, params: dict) -> ActionOutcome:
    user = ctx.resource
    user_id = user.id
    is_active = require_bool(params, "is_active")
    revoked = account_service.set_account_active(user, is_active)
    return ActionOutcome(
        {"success": True, "sessions_revoked": revoked},
        AuditEvent(
            details={"user_id": user_id, "is_active": is_active, "sessions_revoked": revoked},
            entity_type="user",
            entity_id=user_id,
        ),
    )


@action_handler(Action.ADMIN_GET_AUDIT_LOGS)
def admin_get_audit_logs(ctx: ActionContext, params: dict) -> ActionOutcome:
    limit = optional_int(params, "limit")
    offset = optional_int(params, "offset") or 0
    if limit is None:
        limit = AUDIT_PAGE_DEFAULT
    if limit < 1 or offset < 0:
        raise ValidationError("limit must be positive and offset non-negative")
    limit = min(limit, AUDIT_PAGE_MAX)
    return ActionOutcome({"logs": audit_service.list_entries(limit=limit, offset=offset)})


@action_handler(Action.ADMIN_GET_DELETION_REQUESTS)
def admin_get_deletion_requests(ctx: ActionContext, params: dict) -> ActionOutcome:
    return ActionOutcome({"requests": deletion_service.list_requests()})


@action_handler(Action.ADMIN_HANDLE_DELETION, loader=load_deletion_request, audited=True)
def admin_handle_deletion(ctx: ActionContext, params: dict) -> ActionOutcome:
    request_row = deletion_service.resolve_deletion(
        ctx.resource.id,
        params.get("decision"),
        ctx.user,
        response=optional_text(params, "response"),
        transfer_email=optional_text(params, "transfer_to_email"),
    )
    return ActionOutcome(
        {"success": True, "request": request_row.to_dict()},
        AuditEvent(
            details={"request_id": request_row.id, "decision": request_row.status},
            entity_type="menu",
            entity_id=request_row.menu_id,
        ),
    )


@action_handler(Action.ADMIN_VIEW_CODE, loader=load_menu)
def admin_view_code(ctx: ActionContext, params: dict) -> ActionOutcome:
    menu = ctx.resource
    return ActionOutcome({
        "code": menu.code_for(build_target(params.get("build_type"))),
        "name": menu.name,
    })


@action_handler(Action.ADMIN_EDIT_CODE, loader=load_menu, audited=True)
def admin_edit_code(ctx: ActionContext, params: dict) -> ActionOutcome:
    target = build_target(params.get("build_type"))
    menu = menu_service.write_code(ctx.resource, target, require_code(params))
    return ActionOutcome(
        {"success": True},
        AuditEvent(details={"menu_id": menu.id, "build_type": target}, entity_type="menu", entity_id=menu.id),
    )


@action_handler(Action.ADMIN_MANAGE_MENU_USERS, loader=load_menu)
def admin_manage_menu_users(ctx: ActionContext, params: dict) -> ActionOutcome:
    users = menu_service.list_menu_users(ctx.resource)
    return ActionOutcome({"users": [u.to_dict() for u in users]})
