from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..errors import ValidationError
from .users import new_id
from orders.time_utils import utcnow, to_utc_z


class AuditEvent(db.Model):
    """
    Audit trail of business actions ("OrderCreated", "ItemAdded", ...).

    IMMUTABLE: append-only. The ORM refuses UPDATE and DELETE on these rows.

    user_id and order_id are weak references: plain indexed columns without
    foreign keys, so an event outlives the user or order it mentions.
    """
    __tablename__ = "audit_events"
    __table_args__ = (
        db.Index("ix_audit_events_order_created", "order_id", "created_at"),
        db.Index("ix_audit_events_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), nullable=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    order_id = db.Column(db.String(36), nullable=True)
    details_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, index=True)

    def __init__(
        self,
        action: str,
        user_id: str | None = None,
        order_id: str | None = None,
        details_json: str | None = None,
    ):
        super().__init__()
        if not isinstance(action, str) or not action.strip():
            raise ValidationError("Action required.", details={"field": "action"})
        self.id = new_id()
        self.user_id = user_id
        self.action = action.strip()
        self.order_id = order_id
        self.details_json = details_json
        self.created_at = utcnow()

    def __repr__(self) -> str:
        return f"<AuditEvent id={self.id} action={self.action!r} order_id={self.order_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "action": self.action,
            "orderId": self.order_id,
            "detailsJson": self.details_json,
            "createdAtUtc": to_utc_z(self.created_at),
        }


@event.listens_for(AuditEvent, "before_update")
def _refuse_audit_update(mapper, connection, target):
    raise ValueError("AuditEvent entries are append-only. Updates are not allowed.")


@event.listens_for(AuditEvent, "before_delete")
def _refuse_audit_delete(mapper, connection, target):
    raise ValueError("AuditEvent entries are append-only. Deletions are not allowed.")
