# Overview: Service-layer operations for support tickets; ownership-scoped CRUD and messaging.

from __future__ import annotations

from ..errors import ValidationError
from ..extensions import db
from ..models import Menu, Ticket, TicketMessage, TICKET_STATUSES, User
from ..validation import require_choice
from menuforge.time_utils import utcnow


def create_ticket(creator: User, subject, description, menu_id: int | None = None) -> Ticket:
    """
    Open a ticket.

    A menu reference must point at one of the creator's own menus (admins may
    reference any menu); otherwise it is rejected rather than stored.
    """
    if not isinstance(subject, str) or not subject.strip() or not isinstance(description, str) or not description.strip():
        raise ValidationError("Subject and description required")

    if menu_id is not None:
        menu = db.session.get(Menu, menu_id)
        if menu is None or (not creator.is_admin and menu.owner_id != creator.id):
            raise ValidationError("menu_id does not reference one of your menus")

    now = utcnow()
    ticket = Ticket(
        creator_id=creator.id,
        menu_id=menu_id,
        subject=subject.strip(),
        description=description.strip(),
        status="open",
        created_at=now,
        updated_at=now,
    )
    db.session.add(ticket)
    db.session.commit()
    return ticket


def list_tickets(creator_id: int | None = None) -> list[Ticket]:
    query = db.session.query(Ticket)
    if creator_id is not None:
        query = query.filter(Ticket.creator_id == creator_id)
    return query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def _sender_projection(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "display_name": user.display_name, "role": user.role}


def list_messages(ticket: Ticket) -> list[dict]:
    """Messages oldest first, each with a sender projection."""
    messages = (
        db.session.query(TicketMessage)
        .filter(TicketMessage.ticket_id == ticket.id)
        .order_by(TicketMessage.created_at.asc(), TicketMessage.id.asc())
        .all()
    )
    result = []
    for message in messages:
        data = message.to_dict()
        data["sender"] = _sender_projection(message.sender)
        result.append(data)
    return result


def send_message(ticket: Ticket, sender: User, text) -> dict:
    """
    Append a message.

    The first admin reply on an open ticket moves it to in_progress and
    assigns that admin, in the same commit as the message.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Message required")

    message = TicketMessage(
        ticket_id=ticket.id,
        sender_id=sender.id,
        message=text,
        created_at=utcnow(),
    )
    db.session.add(message)

    if sender.is_admin and ticket.status == "open":
        ticket.status = "in_progress"
        ticket.assigned_admin_id = sender.id
        ticket.updated_at = utcnow()

    db.session.commit()

    data = message.to_dict()
    data["sender"] = _sender_projection(sender)
    return data


def update_status(ticket: Ticket, status) -> Ticket:
    require_choice(status, TICKET_STATUSES, "ticket status")
    ticket.status = status
    ticket.updated_at = utcnow()
    db.session.commit()
    return ticket
