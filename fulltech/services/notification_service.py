from datetime import datetime
import json

from sqlalchemy.orm import Session

from fulltech.db.models import Notification


def _to_dict(row: Notification) -> dict:
    return {
        "id": row.id,
        "kind": row.kind,
        "payload": json.loads(row.payload or "{}"),
        "readAt": row.read_at.isoformat() if row.read_at else None,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def queue_notification(db: Session, customer_id: str, kind: str, payload: dict) -> Notification:
    notification = Notification(
        customer_id=customer_id,
        kind=kind,
        payload=json.dumps(payload),
    )
    db.add(notification)
    return notification


def list_notifications(db: Session, customer_id: str) -> list[dict]:
    rows = (
        db.query(Notification)
        .filter(Notification.customer_id == customer_id)
        .order_by(Notification.created_at.desc())
        .limit(50)
        .all()
    )
    return [_to_dict(row) for row in rows]


def mark_notification_read(db: Session, customer_id: str, notification_id: str) -> dict | None:
    row = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.customer_id == customer_id)
        .first()
    )
    if not row:
        return None
    row.read_at = row.read_at or datetime.utcnow()
    db.commit()
    db.refresh(row)
    return _to_dict(row)
