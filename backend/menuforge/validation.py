from __future__ import annotations

import re
from typing import Any

from .errors import ValidationError


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_int(params: dict, key: str) -> int:
    """
    Read a required integer id from an action payload.

    Rejects booleans, floats and non-numeric strings so that "1.5" or True
    never silently resolve to a row.
    """
    value = params.get(key)
    if value is None or value == "":
        raise ValidationError(f"{key} required")
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{key} must be an integer")


def optional_int(params: dict, key: str) -> int | None:
    if params.get(key) in (None, ""):
        return None
    return require_int(params, key)


def require_text(params: dict, key: str, *, min_length: int = 1, label: str | None = None) -> str:
    """Read a required string field, trimmed. Enforces a minimum length after trimming."""
    value = params.get(key)
    name = label or key
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} required")
    stripped = value.strip()
    if len(stripped) < min_length:
        raise ValidationError(f"{name} must be at least {min_length} characters")
    return stripped


def optional_text(params: dict, key: str) -> str | None:
    value = params.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    stripped = value.strip()
    return stripped or None


def require_code(params: dict, key: str = "code") -> str:
    """Code bodies are stored verbatim; only the type is checked. Empty code is allowed."""
    value = params.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{key} required")
    return value


def require_bool(params: dict, key: str) -> bool:
    value = params.get(key)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def require_email(params: dict, key: str = "email") -> str:
    value = require_text(params, key, label="Email")
    if not EMAIL_RE.match(value):
        raise ValidationError("Email is not valid")
    return value


def require_choice(value: Any, choices: set[str] | frozenset[str], name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if value not in choices:
        raise ValidationError(
            f"Invalid {name} '{value}'. Must be one of: {', '.join(sorted(choices))}"
        )
    return value


def build_target(value: Any) -> str:
    """Normalise a dev/build selector. Anything other than "build" means the dev slot."""
    return "build" if value == "build" else "dev"
