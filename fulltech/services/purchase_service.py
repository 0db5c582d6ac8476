"""Purchase recording and the purchase → qualification → raffle entry workflow."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from fulltech.core.exceptions import AppException
from fulltech.db.models import MAX_AMOUNT, MAX_QUANTITY, CustomerPurchase
from fulltech.services.activity_service import add_activity
from fulltech.services.catalog_service import get_product_or_404
from fulltech.services.raffle_service import grant_referral_entry
from fulltech.services.referral_service import qualify_referral_for_purchase

logger = logging.getLogger(__name__)


def serialize_purchase(row: CustomerPurchase) -> dict:
    return {
        "id": row.id,
        "customerId": row.customer_id,
        "productId": row.product_id,
        "quantity": int(row.quantity),
        "unitPrice": int(row.unit_price),
        "totalPrice": int(row.total_price),
        "discountApplied": int(row.discount_applied or 0),
        "status": row.status,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def record_purchase(
    db: Session,
    customer_id: str,
    product_id: str,
    quantity: int,
    total_price: int,
    discount_applied: int = 0,
    now: datetime | None = None,
) -> CustomerPurchase:
    """Stage a completed purchase. The caller commits."""
    if quantity is None or not 1 <= int(quantity) <= MAX_QUANTITY:
        raise AppException(f"Quantity must be between 1 and {MAX_QUANTITY}", status_code=400)
    if not 0 <= int(total_price) <= MAX_AMOUNT:
        raise AppException("Total price is out of range", status_code=400)
    discount_applied = int(discount_applied or 0)
    if not 0 <= discount_applied <= 100:
        raise AppException("Discount must be between 0 and 100", status_code=400)

    product = get_product_or_404(db, product_id)

    purchase = CustomerPurchase(
        customer_id=customer_id,
        product_id=product.id,
        quantity=int(quantity),
        unit_price=round(int(total_price) / int(quantity)),
        total_price=int(total_price),
        discount_applied=discount_applied,
        created_at=now or datetime.utcnow(),
    )
    db.add(purchase)
    add_activity(
        db,
        customer_id,
        "purchase",
        product_id=product.id,
        meta={"quantity": int(quantity), "totalPrice": int(total_price)},
    )
    db.flush()
    return purchase


def place_purchase(
    db: Session,
    customer_id: str,
    product_id: str,
    quantity: int,
    total_price: int,
    discount_applied: int = 0,
) -> CustomerPurchase:
    """Record a purchase and apply referral qualification in one transaction."""
    try:
        purchase = record_purchase(
            db,
            customer_id=customer_id,
            product_id=product_id,
            quantity=quantity,
            total_price=total_price,
            discount_applied=discount_applied,
        )
        referral = qualify_referral_for_purchase(db, customer_id, now=datetime.utcnow())
        if referral is not None:
            grant_referral_entry(db, referral.referrer_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(purchase)
    logger.info(
        "Purchase %s recorded for customer %s (total=%s, referral_qualified=%s)",
        purchase.id,
        customer_id,
        purchase.total_price,
        referral is not None,
    )
    return purchase


def list_purchases(db: Session, customer_id: str) -> list[CustomerPurchase]:
    return (
        db.query(CustomerPurchase)
        .filter(CustomerPurchase.customer_id == customer_id)
        .order_by(CustomerPurchase.created_at.desc())
        .all()
    )
