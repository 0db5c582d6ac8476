import logging
import math
from datetime import datetime, timedelta

from sqlalchemy import extract, func, or_, select
from sqlalchemy.orm import Session, aliased

from fulltech.core.exceptions import AppException
from fulltech.core.security import ROLE_ADMIN, create_access_token, hash_password, verify_password
from fulltech.db.models import (
    REFERRAL_PENDING,
    REFERRAL_QUALIFIED,
    Admin,
    AuthProvider,
    Customer,
    CustomerActivity,
    CustomerPurchase,
    Product,
    RaffleEntry,
    Referral,
)
from fulltech.services.activity_service import serialize_activity
from fulltech.services.customer_service import get_customer_or_404, serialize_customer
from fulltech.services.purchase_service import serialize_purchase
from fulltech.services.referral_service import serialize_referral

logger = logging.getLogger(__name__)

ACTIVITY_PERIODS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90}


def _rate(part: int, whole: int) -> str:
    return f"{(part / whole) * 100:.1f}" if whole > 0 else "0.0"


def serialize_admin(admin: Admin) -> dict:
    return {
        "id": admin.id,
        "email": admin.email,
        "name": admin.name,
        "role": admin.role,
        "lastLogin": admin.last_login.isoformat() if admin.last_login else None,
    }


def create_admin(db: Session, email: str, password: str, name: str, role: str = "admin") -> Admin:
    email = email.strip().lower()
    if db.query(Admin.id).filter(Admin.email == email).first():
        raise AppException("Email already exists", status_code=409)
    admin = Admin(email=email, password_hash=hash_password(password), name=name, role=role)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def admin_login(db: Session, email: str, password: str) -> dict:
    admin = db.query(Admin).filter(Admin.email == (email or "").strip().lower()).first()
    if not admin or not verify_password(password, admin.password_hash):
        raise AppException("Invalid credentials", status_code=401)
    if not admin.active:
        raise AppException("Admin account is inactive", status_code=401)

    admin.last_login = datetime.utcnow()
    db.commit()
    db.refresh(admin)
    logger.info("Admin %s logged in", admin.id)
    return {
        "accessToken": create_access_token(admin.id, ROLE_ADMIN),
        "admin": serialize_admin(admin),
    }


def get_referral_statistics(db: Session) -> dict:
    total_customers = db.query(Customer).count()
    total_referred = db.query(Customer).filter(Customer.referred_by.is_not(None)).count()
    by_status = dict(
        db.query(Referral.status, func.count(Referral.id)).group_by(Referral.status).all()
    )

    referred = aliased(Customer)
    count_col = func.count(referred.id).label("referral_count")
    top_rows = (
        db.query(Customer.id, Customer.name, Customer.referral_code, count_col)
        .join(referred, referred.referred_by == Customer.id)
        .group_by(Customer.id, Customer.name, Customer.referral_code)
        .order_by(count_col.desc(), Customer.id.asc())
        .limit(10)
        .all()
    )
    return {
        "overview": {
            "totalCustomers": total_customers,
            "totalReferrals": total_referred,
            "referralRate": _rate(total_referred, total_customers),
        },
        "byStatus": {
            "pending": int(by_status.get(REFERRAL_PENDING, 0)),
            "qualified": int(by_status.get(REFERRAL_QUALIFIED, 0)),
        },
        "topReferrers": [
            {
                "customerId": customer_id,
                "customerName": name,
                "referralCode": code,
                "referralCount": int(count),
            }
            for customer_id, name, code, count in top_rows
        ],
    }


def get_dashboard_overview(db: Session) -> dict:
    total_customers = db.query(Customer).count()
    active_customers = db.query(Customer).filter(Customer.is_active == True).count()  # noqa: E712
    referred_customers = db.query(Customer).filter(Customer.referred_by.is_not(None)).count()
    total_products = db.query(Product).count()
    total_purchases = db.query(CustomerPurchase).count()
    revenue = db.query(func.coalesce(func.sum(CustomerPurchase.total_price), 0)).scalar()
    return {
        "totals": {
            "customers": total_customers,
            "activeCustomers": active_customers,
            "customersWithReferrals": referred_customers,
            "products": total_products,
            "purchases": total_purchases,
            "revenue": int(revenue or 0),
        },
        "metrics": {
            "activationRate": _rate(active_customers, total_customers),
            "referralRate": _rate(referred_customers, total_customers),
        },
    }


def get_customer_details(db: Session, customer_id: str) -> dict:
    customer = get_customer_or_404(db, customer_id)
    referrer = None
    if customer.referred_by:
        referrer = db.query(Customer).filter(Customer.id == customer.referred_by).first()

    referrals = (
        db.query(Referral)
        .filter(Referral.referrer_id == customer.id)
        .order_by(Referral.created_at.desc())
        .all()
    )
    purchases = (
        db.query(CustomerPurchase)
        .filter(CustomerPurchase.customer_id == customer.id)
        .order_by(CustomerPurchase.created_at.desc())
        .limit(20)
        .all()
    )
    raffle_entries = (
        db.query(func.coalesce(func.sum(RaffleEntry.entries), 0))
        .filter(RaffleEntry.customer_id == customer.id)
        .scalar()
    )
    return {
        "customer": serialize_customer(customer),
        "referredBy": serialize_customer(referrer) if referrer else None,
        "referralsMade": [serialize_referral(row) for row in referrals],
        "recentPurchases": [serialize_purchase(row) for row in purchases],
        "raffleEntriesTotal": int(raffle_entries or 0),
    }


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit > 0 else 0,
    }


def list_customers_with_stats(
    db: Session,
    page: int = 1,
    limit: int = 50,
    search: str | None = None,
    auth_provider: str | None = None,
    has_referrals: bool | None = None,
) -> dict:
    """Paginated customer list for the admin console.

    ``has_referrals`` filters on whether the customer signed up with a
    referral code (``referred_by`` set), not on referrals they made.
    """
    q = db.query(Customer)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Customer.name.ilike(pattern),
                Customer.phone.ilike(pattern),
                Customer.email.ilike(pattern),
            )
        )
    if auth_provider:
        try:
            provider = AuthProvider(auth_provider)
        except ValueError as exc:
            raise AppException("Unknown auth provider", status_code=400) from exc
        q = q.filter(Customer.auth_provider == provider)
    if has_referrals is True:
        q = q.filter(Customer.referred_by.is_not(None))
    elif has_referrals is False:
        q = q.filter(Customer.referred_by.is_(None))

    total = q.count()

    referred = aliased(Customer)
    total_referrals = (
        select(func.count(referred.id))
        .where(referred.referred_by == Customer.id)
        .correlate(Customer)
        .scalar_subquery()
    )
    total_activities = (
        select(func.count(CustomerActivity.id))
        .where(CustomerActivity.customer_id == Customer.id)
        .correlate(Customer)
        .scalar_subquery()
    )
    last_activity = (
        select(func.max(CustomerActivity.created_at))
        .where(CustomerActivity.customer_id == Customer.id)
        .correlate(Customer)
        .scalar_subquery()
    )
    rows = (
        q.add_columns(total_referrals, total_activities, last_activity)
        .order_by(Customer.created_at.desc(), Customer.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    customers = []
    for customer, referral_count, activity_count, last_at in rows:
        item = serialize_customer(customer)
        item["totalReferrals"] = int(referral_count or 0)
        item["totalActivities"] = int(activity_count or 0)
        item["lastActivity"] = last_at.isoformat() if last_at else None
        customers.append(item)
    return {"customers": customers, "pagination": _pagination(page, limit, total)}


def get_customer_referrals(db: Session, customer_id: str) -> list[dict]:
    """Customers who signed up with this customer's referral code."""
    get_customer_or_404(db, customer_id)
    rows = (
        db.query(Customer)
        .filter(Customer.referred_by == customer_id)
        .order_by(Customer.created_at.desc())
        .all()
    )
    return [serialize_customer(row) for row in rows]


def get_customer_activity_history(db: Session, customer_id: str, page: int = 1, limit: int = 20) -> dict:
    get_customer_or_404(db, customer_id)
    q = db.query(CustomerActivity).filter(CustomerActivity.customer_id == customer_id)
    total = q.count()
    rows = (
        q.order_by(CustomerActivity.created_at.desc(), CustomerActivity.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "activities": [serialize_activity(row) for row in rows],
        "pagination": _pagination(page, limit, total),
    }


def get_activity_statistics(
    db: Session,
    period: str = "7d",
    customer_id: str | None = None,
    now: datetime | None = None,
) -> dict:
    # Unknown periods fall back to a week.
    if period not in ACTIVITY_PERIODS:
        period = "7d"
    since = (now or datetime.utcnow()) - timedelta(days=ACTIVITY_PERIODS[period])

    conditions = [CustomerActivity.created_at >= since]
    if customer_id:
        conditions.append(CustomerActivity.customer_id == customer_id)

    count_col = func.count(CustomerActivity.id).label("activity_count")
    by_type = (
        db.query(CustomerActivity.activity_type, count_col)
        .filter(*conditions)
        .group_by(CustomerActivity.activity_type)
        .order_by(count_col.desc(), CustomerActivity.activity_type.asc())
        .all()
    )

    day_col = func.date(CustomerActivity.created_at).label("day")
    by_day = db.query(day_col, count_col).filter(*conditions).group_by(day_col).order_by(day_col).all()

    hour_col = extract("hour", CustomerActivity.created_at).label("hour")
    by_hour = db.query(hour_col, count_col).filter(*conditions).group_by(hour_col).order_by(hour_col).all()

    most_active = []
    if not customer_id:
        most_active = (
            db.query(CustomerActivity.customer_id, Customer.name, Customer.phone, count_col)
            .join(Customer, Customer.id == CustomerActivity.customer_id)
            .filter(*conditions)
            .group_by(CustomerActivity.customer_id, Customer.name, Customer.phone)
            .order_by(count_col.desc(), CustomerActivity.customer_id.asc())
            .limit(10)
            .all()
        )

    return {
        "period": period,
        "customerId": customer_id,
        "byType": [{"activityType": kind, "count": int(count)} for kind, count in by_type],
        "byDay": [{"date": str(day), "count": int(count)} for day, count in by_day],
        "byHour": [{"hour": int(hour), "count": int(count)} for hour, count in by_hour],
        "mostActiveCustomers": [
            {
                "customerId": cid,
                "customerName": name,
                "customerPhone": phone,
                "activityCount": int(count),
            }
            for cid, name, phone, count in most_active
        ],
    }
