# Overview: System health and version endpoints; unauthenticated.

import sys
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import Menu, SessionToken, User
from menuforge.time_utils import utcnow


system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check store connectivity with a few cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        menu_count = db.session.query(Menu).count()
        live_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at > utcnow()
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "menus": menu_count,
                "live_sessions": live_sessions,
            },
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Liveness plus store check.

    Returns:
    - 200: store reachable
    - 503: store unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info. Never exposes secrets or paths."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": current_app.config["APP_VERSION"],
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
