# Overview: Service-layer operations for audit; appends immutable audit events.

"""
Audit Service

WHY: Every business action (order created, item added, status moved, user
registered/logged in) leaves an immutable record for traceability.

PROTOCOL: services commit their primary change first and append the audit
event second, in its own commit. The two are NOT atomic: if the append fails
the primary change stays committed and the caller gets AuditAppendError.
"""

from __future__ import annotations

import json
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import Session

from ..errors import AuditAppendError
from ..models import AuditEvent
from ..repositories.ports import AuditLog


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_details(details: dict | None) -> str | None:
    """Structured details -> JSON text stored on the event."""
    if details is None:
        return None
    return json.dumps(details, default=_json_default, sort_keys=True)


def build_event(
    action: str,
    user_id: str | None = None,
    order_id: str | None = None,
    details: dict | None = None,
) -> AuditEvent:
    return AuditEvent(
        action=action,
        user_id=user_id,
        order_id=order_id,
        details_json=serialize_details(details),
    )


class AuditService(AuditLog):
    """AuditLog backed by the audit_events table."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, event: AuditEvent) -> AuditEvent:
        """Insert and commit. Rolls back only its own insert on failure."""
        try:
            self.session.add(event)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return event

    def list_events(self, limit: int = 50, order_id: str | None = None) -> list[AuditEvent]:
        """Newest first, optionally narrowed to one order."""
        query = self.session.query(AuditEvent)
        if order_id:
            query = query.filter(AuditEvent.order_id == order_id)
        return query.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit).all()


def append_after_commit(audit: AuditLog, event: AuditEvent, result=None):
    """
    Second step of the commit-then-audit protocol.

    The primary change is already committed when this runs. A failing append
    is logged at WARNING and surfaced as AuditAppendError carrying `result`;
    nothing is rolled back and nothing is retried.
    """
    try:
        audit.append(event)
    except Exception as exc:
        current_app.logger.warning(
            "Audit append failed action=%s order_id=%s user_id=%s: %s",
            event.action, event.order_id, event.user_id, exc,
        )
        raise AuditAppendError(
            "Change saved but audit record could not be written.",
            result=result,
            details={"action": event.action},
        ) from exc
    return result
