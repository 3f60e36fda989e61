# Overview: Service-layer operations for concurrency; conditional single-statement updates.

from __future__ import annotations

from ..extensions import db


def compare_and_set(model, row_id: int, expected: dict, values: dict) -> bool:
    """
    UPDATE model SET values WHERE id = row_id AND expected columns match.

    Returns True if exactly one row changed. Does not commit: callers group
    several conditional writes into one transaction and roll back if any
    returns False.

    NOTE: The check and the write are one statement, so two concurrent
    transitions on the same row cannot both succeed on any backend.
    """
    query = db.session.query(model).filter(model.id == row_id)
    for column, value in expected.items():
        query = query.filter(getattr(model, column) == value)

    changed = query.update(values, synchronize_session=False)
    return changed == 1
