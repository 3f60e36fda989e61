# Overview: Internal action handlers for support tickets and their message threads.

from ..actions import Action
from ..dispatch import ActionContext, ActionOutcome, action_handler, load_ticket
from ..services import ticket_service
from ..services.audit_service import AuditEvent
from ..services.authorization_service import visible_owner_id
from ..validation import optional_int


@action_handler(Action.CREATE_TICKET, audited=True)
def create_ticket(ctx: ActionContext, params: dict) -> ActionOutcome:
    ticket = ticket_service.create_ticket(
        ctx.user,
        params.get("subject"),
        params.get("description"),
        menu_id=optional_int(params, "menu_id"),
    )
    return ActionOutcome(
        {"ticket": ticket.to_dict()},
        AuditEvent(details={"subject": ticket.subject}, entity_type="ticket", entity_id=ticket.id),
    )


@action_handler(Action.GET_TICKETS)
def get_tickets(ctx: ActionContext, params: dict) -> ActionOutcome:
    tickets = ticket_service.list_tickets(creator_id=visible_owner_id(ctx.actor))
    return ActionOutcome({"tickets": [t.to_dict() for t in tickets]})


@action_handler(Action.GET_TICKET_MESSAGES, loader=load_ticket)
def get_ticket_messages(ctx: ActionContext, params: dict) -> ActionOutcome:
    ticket = ctx.resource
    return ActionOutcome({
        "messages": ticket_service.list_messages(ticket),
        "ticket": ticket.to_dict(),
    })


@action_handler(Action.SEND_TICKET_MESSAGE, loader=load_ticket)
def send_ticket_message(ctx: ActionContext, params: dict) -> ActionOutcome:
    message = ticket_service.send_message(ctx.resource, ctx.user, params.get("message"))
    return ActionOutcome({"message": message})


@action_handler(Action.UPDATE_TICKET_STATUS, loader=load_ticket, audited=True)
def update_ticket_status(ctx: ActionContext, params: dict) -> ActionOutcome:
    ticket = ticket_service.update_status(ctx.resource, params.get("status"))
    return ActionOutcome(
        {"success": True},
        AuditEvent(
            details={"ticket_id": ticket.id, "status": ticket.status},
            entity_type="ticket",
            entity_id=ticket.id,
        ),
    )
