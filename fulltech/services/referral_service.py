import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from fulltech.core.config import get_settings
from fulltech.core.exceptions import AppException
from fulltech.db.models import REFERRAL_PENDING, REFERRAL_QUALIFIED, Customer, Referral
from fulltech.services.customer_service import touch_last_visit
from fulltech.services.notification_service import queue_notification

settings = get_settings()
logger = logging.getLogger(__name__)


def serialize_referral(row: Referral) -> dict:
    return {
        "id": row.id,
        "referrerId": row.referrer_id,
        "referredId": row.referred_id,
        "status": row.status,
        "qualifiedAt": row.qualified_at.isoformat() if row.qualified_at else None,
        "rewardGiven": bool(row.reward_given),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def list_referrals_made(db: Session, referrer_id: str) -> list[Referral]:
    return (
        db.query(Referral)
        .filter(Referral.referrer_id == referrer_id)
        .order_by(Referral.created_at.desc())
        .all()
    )


def qualify_referral_for_purchase(
    db: Session,
    customer_id: str,
    now: datetime | None = None,
) -> Referral | None:
    """Flip the purchasing customer's pending referral to qualified.

    Returns the qualified referral, or None when the customer was not
    referred or has nothing pending. Changes are flushed, not committed.
    """
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer or not customer.referred_by:
        return None

    referrals = list_referrals_made(db, customer.referred_by)
    pending = next(
        (row for row in referrals if row.referred_id == customer.id and row.status == REFERRAL_PENDING),
        None,
    )
    if pending is None:
        return None

    now = now or datetime.utcnow()
    # Conditional on the row still being pending so a concurrent purchase
    # cannot qualify it twice.
    updated = (
        db.query(Referral)
        .filter(Referral.id == pending.id, Referral.status == REFERRAL_PENDING)
        .update(
            {Referral.status: REFERRAL_QUALIFIED, Referral.qualified_at: now},
            synchronize_session=False,
        )
    )
    if updated == 0:
        logger.info("Referral %s was already qualified, skipping", pending.id)
        return None
    db.refresh(pending)

    referrer = touch_last_visit(db, customer.referred_by, now=now)
    if referrer is not None:
        new_discount = int(referrer.discount_earned or 0) + settings.REFERRAL_DISCOUNT_PERCENT
        if settings.REFERRAL_PERSIST_DISCOUNT:
            referrer.discount_earned = new_discount
        logger.info(
            "Referral %s qualified: referrer %s discount %s%% (persisted=%s)",
            pending.id,
            referrer.id,
            new_discount,
            settings.REFERRAL_PERSIST_DISCOUNT,
        )
        queue_notification(
            db,
            referrer.id,
            "referral.qualified",
            {
                "message": f"{customer.name} made their first purchase. Your referral qualified.",
                "referredId": customer.id,
                "discountPercent": settings.REFERRAL_DISCOUNT_PERCENT,
            },
        )

    db.flush()
    return pending


def get_referral_summary(db: Session, customer_id: str) -> dict:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise AppException("Customer not found", status_code=404)

    counts = dict(
        db.query(Referral.status, func.count(Referral.id))
        .filter(Referral.referrer_id == customer_id)
        .group_by(Referral.status)
        .all()
    )
    return {
        "referralCode": customer.referral_code,
        "discountEarned": int(customer.discount_earned or 0),
        "rewardPerReferral": settings.REFERRAL_DISCOUNT_PERCENT,
        "totalReferrals": int(sum(counts.values())),
        "pendingReferrals": int(counts.get(REFERRAL_PENDING, 0)),
        "qualifiedReferrals": int(counts.get(REFERRAL_QUALIFIED, 0)),
    }
