from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fulltech.api.deps import get_current_customer
from fulltech.db.models import Customer
from fulltech.db.session import get_db
from fulltech.schemas.purchase import ActivityRequest, PurchaseRequest
from fulltech.services.activity_service import list_activities, record_activity, serialize_activity
from fulltech.services.customer_service import serialize_customer
from fulltech.services.purchase_service import list_purchases, place_purchase, serialize_purchase
from fulltech.services.raffle_service import customer_entry_total, get_current_raffle, serialize_raffle
from fulltech.services.referral_service import get_referral_summary, list_referrals_made, serialize_referral

router = APIRouter()


@router.get("/me")
def customer_me(customer: Customer = Depends(get_current_customer)):
    return {"data": serialize_customer(customer)}


@router.post("/purchase")
def customer_purchase(
    payload: PurchaseRequest,
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    purchase = place_purchase(
        db,
        customer_id=customer.id,
        product_id=payload.productId,
        quantity=payload.quantity,
        total_price=payload.totalPrice,
        discount_applied=payload.discountApplied,
    )
    return {"data": serialize_purchase(purchase)}


@router.get("/purchases")
def customer_purchases(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    return {"data": [serialize_purchase(row) for row in list_purchases(db, customer.id)]}


@router.get("/activities")
def customer_activities(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    return {"data": [serialize_activity(row) for row in list_activities(db, customer.id)]}


@router.post("/activity")
def customer_create_activity(
    payload: ActivityRequest,
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    row = record_activity(
        db,
        customer.id,
        payload.activityType,
        product_id=payload.productId,
        meta=payload.metadata,
    )
    return {"data": serialize_activity(row)}


@router.get("/referrals")
def customer_referrals(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    return {"data": [serialize_referral(row) for row in list_referrals_made(db, customer.id)]}


@router.get("/referrals/summary")
def customer_referral_summary(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    return {"data": get_referral_summary(db, customer.id)}


@router.get("/raffle/entries")
def customer_raffle_entries(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    raffle = get_current_raffle(db)
    return {
        "data": {
            "raffle": serialize_raffle(raffle),
            "entries": customer_entry_total(db, customer.id, raffle.id) if raffle else 0,
        }
    }
