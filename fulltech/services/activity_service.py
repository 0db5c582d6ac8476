import json
from typing import Any

from sqlalchemy.orm import Session

from fulltech.core.exceptions import AppException
from fulltech.db.models import ACTIVITY_TYPES, CustomerActivity
from fulltech.services.customer_service import touch_last_visit


def serialize_activity(row: CustomerActivity) -> dict:
    return {
        "id": row.id,
        "customerId": row.customer_id,
        "activityType": row.activity_type,
        "productId": row.product_id,
        "metadata": json.loads(row.meta_json or "{}"),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def add_activity(
    db: Session,
    customer_id: str,
    activity_type: str,
    product_id: str | None = None,
    meta: dict[str, Any] | None = None,
) -> CustomerActivity:
    """Stage an activity row on the session without committing."""
    if activity_type not in ACTIVITY_TYPES:
        raise AppException("Invalid activity type", status_code=400)
    row = CustomerActivity(
        customer_id=customer_id,
        activity_type=activity_type,
        product_id=product_id,
        meta_json=json.dumps(meta or {}, ensure_ascii=True),
    )
    db.add(row)
    return row


def record_activity(
    db: Session,
    customer_id: str,
    activity_type: str,
    product_id: str | None = None,
    meta: dict[str, Any] | None = None,
) -> CustomerActivity:
    row = add_activity(db, customer_id, activity_type, product_id=product_id, meta=meta)
    if activity_type == "visit":
        touch_last_visit(db, customer_id)
    db.commit()
    db.refresh(row)
    return row


def list_activities(db: Session, customer_id: str, limit: int = 50) -> list[CustomerActivity]:
    return (
        db.query(CustomerActivity)
        .filter(CustomerActivity.customer_id == customer_id)
        .order_by(CustomerActivity.created_at.desc())
        .limit(limit)
        .all()
    )
