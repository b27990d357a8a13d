"""
System health and version endpoints.

/health runs a few cheap probe queries against the order store and the
token table and reports per-probe latency.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import AuditEvent, Order, SessionToken, User
from orders.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def _timed_probe(label: str, counters: dict) -> dict:
    """Run each counter callable; any failure marks the probe unhealthy."""
    started = time.perf_counter()
    try:
        details = {name: count() for name, count in counters.items()}
        result = {"status": "healthy", "details": details}
    except Exception:
        current_app.logger.exception("%s health probe failed", label)
        db.session.rollback()
        result = {"status": "unhealthy", "error": f"{label} unavailable"}
    result["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return result


def check_database_health() -> dict:
    return _timed_probe("Database", {
        "users": db.session.query(User).count,
        "orders": db.session.query(Order).count,
        "audit_events": db.session.query(AuditEvent).count,
    })


def check_session_service_health() -> dict:
    def active_tokens():
        return db.session.query(SessionToken).filter(
            SessionToken.is_revoked == False,  # noqa: E712
            SessionToken.expires_at > utcnow(),
        ).count()

    return _timed_probe("Token store", {"active_tokens": active_tokens})


@system_bp.get("/health")
def health():
    """200 when every probe is healthy, 503 otherwise."""
    started = time.perf_counter()
    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "checks": checks,
    }, 200 if healthy else 503


@system_bp.get("/version")
def version():
    # No secrets, credentials or filesystem paths here.
    return {
        "api_version": API_VERSION,
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }


@system_bp.get("/api/ping")
def ping():
    return {"ok": True}
