# Overview: Internal action dispatcher; authenticates, authorizes, routes to handlers and maps errors.

"""
Action Dispatcher

WHY: POST /api/action is the only entry point of the internal API. Every
action goes through the same pipeline:

    validate session -> parse Action -> authorize (role)
        -> load resource -> authorize (ownership) -> handler -> audit

HANDLER TABLE:
- Handlers register with @action_handler(Action.X, loader=..., audited=...)
- verify_action_table() runs at app start-up and refuses to boot if any
  Action lacks a handler or an authorization rule
- Audited handlers return an AuditEvent; the dispatcher records it after the
  handler's commit. Returning none from an audited handler is a bug (500).

ERROR MAPPING:
error_response() is the only place an exception becomes a status code.
ApiError subclasses carry their own; OperationalError (store timeout or
outage) is a 503; anything else is a logged 500 with a generic message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from flask import current_app, jsonify
from sqlalchemy.exc import OperationalError

from .actions import Action
from .errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from .extensions import db
from .models import DeletionRequest, Menu, Ticket, User
from .services import audit_service, session_service
from .services.audit_service import AuditEvent
from .services.authorization_service import (
    ACTION_RULES,
    NOT_FOUND,
    SELF_PROTECTION,
    UNAUTHENTICATED,
    Actor,
    Decision,
    authorize,
)
from .validation import require_int


@dataclass(frozen=True)
class ActionContext:
    """Everything a handler may rely on besides its params."""
    actor: Actor
    user: User
    resource: Any = None
    ip_address: str | None = None


@dataclass
class ActionOutcome:
    payload: dict = field(default_factory=dict)
    audit: AuditEvent | None = None


@dataclass(frozen=True)
class ResourceLoader:
    """Fetch the resource an action targets from an integer id param."""
    param: str
    model: type
    label: str

    def load(self, params: dict):
        return db.session.get(self.model, require_int(params, self.param))

    @property
    def missing_message(self) -> str:
        return f"{self.label} not found"


load_menu = ResourceLoader("menu_id", Menu, "Menu")
load_ticket = ResourceLoader("ticket_id", Ticket, "Ticket")
load_deletion_request = ResourceLoader("request_id", DeletionRequest, "Request")
load_account = ResourceLoader("user_id", User, "User")


Handler = Callable[[ActionContext, dict], ActionOutcome]


@dataclass(frozen=True)
class ActionSpec:
    action: Action
    handler: Handler
    loader: ResourceLoader | None = None
    audited: bool = False


ACTION_TABLE: dict[Action, ActionSpec] = {}


def action_handler(action: Action, *, loader: ResourceLoader | None = None, audited: bool = False):
    """Register a handler for one Action. Registering the same Action twice is an error."""
    def decorator(fn: Handler) -> Handler:
        if action in ACTION_TABLE:
            raise RuntimeError(f"Duplicate handler registered for action '{action.value}'")
        ACTION_TABLE[action] = ActionSpec(action=action, handler=fn, loader=loader, audited=audited)
        return fn
    return decorator


def verify_action_table() -> None:
    """Fail start-up unless every Action has both a handler and an authorization rule."""
    missing_handlers = sorted(a.value for a in Action if a not in ACTION_TABLE)
    missing_rules = sorted(a.value for a in Action if a not in ACTION_RULES)
    if missing_handlers or missing_rules:
        raise RuntimeError(
            "Action table incomplete: "
            f"missing handlers={missing_handlers}, missing rules={missing_rules}"
        )


def _enforce(decision: Decision, actor: Actor, action: Action, loader: ResourceLoader | None = None) -> None:
    if decision.allowed:
        return

    current_app.logger.warning(
        "Denied action %s for user %s: %s", action.value, actor.id, decision.reason
    )

    if decision.reason == UNAUTHENTICATED:
        raise AuthenticationError()
    if decision.reason == NOT_FOUND:
        raise NotFoundError(loader.missing_message if loader else None)
    if decision.reason == SELF_PROTECTION:
        raise AuthorizationError("Cannot toggle your own account")
    raise AuthorizationError()


def parse_action(name) -> Action:
    if not name:
        raise ValidationError("action required")
    if not isinstance(name, str):
        raise ValidationError("Unknown action")
    try:
        return Action(name)
    except ValueError:
        raise ValidationError("Unknown action")


def dispatch(token: str | None, action_name, params: dict, ip_address: str | None = None) -> dict:
    """
    Run one internal action end to end.

    Returns the handler's success payload. Raises ApiError subclasses for
    every expected failure; error_response() maps them.
    """
    context = session_service.validate_session(token)
    if context is None:
        raise AuthenticationError()

    actor = Actor.from_user(context.user)
    action = parse_action(action_name)
    spec = ACTION_TABLE[action]

    # Role rules need no resource; check them before touching the store again
    _enforce(authorize(actor, action), actor, action)

    resource = None
    if spec.loader is not None:
        resource = spec.loader.load(params)
        decision = authorize(actor, action, resource, resource_missing=resource is None)
        _enforce(decision, actor, action, spec.loader)

    outcome = spec.handler(
        ActionContext(actor=actor, user=context.user, resource=resource, ip_address=ip_address),
        params,
    )

    if spec.audited:
        if outcome.audit is None:
            raise RuntimeError(f"Audited action '{action.value}' returned no audit event")
        audit_service.record_event(actor.id, action.value, outcome.audit, ip_address)

    return outcome.payload


def error_response(exc: Exception, label: str | None = None):
    """Map any exception raised while serving a request to (json, status)."""
    if isinstance(exc, ApiError):
        return jsonify({"error": exc.message}), exc.status_code

    db.session.rollback()

    if isinstance(exc, OperationalError):
        current_app.logger.warning("Store unavailable while handling %s: %s", label, exc.orig)
        error = UnavailableError()
    else:
        current_app.logger.exception("Unhandled error while handling %s", label)
        error = InternalError()

    return jsonify({"error": error.message}), error.status_code
