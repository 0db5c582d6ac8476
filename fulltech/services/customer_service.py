import logging
import secrets
import string
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fulltech.core.config import get_settings
from fulltech.core.exceptions import AppException
from fulltech.core.security import (
    ROLE_CUSTOMER,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from fulltech.db.models import REFERRAL_PENDING, AuthProvider, Customer, Referral

settings = get_settings()
logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_LENGTH = 6


def serialize_customer(customer: Customer) -> dict:
    return {
        "id": customer.id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "address": customer.address,
        "authProvider": customer.auth_provider.value,
        "referralCode": customer.referral_code,
        "referredBy": customer.referred_by,
        "discountEarned": int(customer.discount_earned or 0),
        "isActive": bool(customer.is_active),
        "createdAt": customer.created_at.isoformat() if customer.created_at else None,
        "lastVisit": customer.last_visit.isoformat() if customer.last_visit else None,
    }


def _next_referral_code() -> str:
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_LENGTH))
    return f"{settings.REFERRAL_CODE_PREFIX}-{suffix}"


def generate_referral_code(db: Session) -> str:
    code = _next_referral_code()
    while db.query(Customer.id).filter(Customer.referral_code == code).first():
        code = _next_referral_code()
    return code


def _normalize_referral_code(referral_code: str | None) -> str | None:
    if referral_code is None:
        return None
    cleaned = referral_code.strip().upper()
    return cleaned or None


def _resolve_referrer(db: Session, referral_code: str | None) -> Customer | None:
    code = _normalize_referral_code(referral_code)
    if not code:
        return None
    referrer = db.query(Customer).filter(Customer.referral_code == code).first()
    if not referrer:
        raise AppException("Invalid referral code", status_code=400)
    return referrer


def _issue_tokens(customer: Customer) -> dict:
    return {
        "accessToken": create_access_token(customer.id, ROLE_CUSTOMER),
        "refreshToken": create_refresh_token(customer.id, ROLE_CUSTOMER),
        "customer": serialize_customer(customer),
    }


def register_customer(
    db: Session,
    name: str,
    password: str,
    phone: str | None = None,
    email: str | None = None,
    address: str | None = None,
    referral_code: str | None = None,
) -> dict:
    name = (name or "").strip()
    if not name:
        raise AppException("Name is required", status_code=400)
    phone = (phone or "").strip() or None
    email = (email or "").strip().lower() or None
    if bool(phone) == bool(email):
        raise AppException("Provide either a phone number or an email", status_code=400)

    provider = AuthProvider.phone if phone else AuthProvider.email
    if provider == AuthProvider.phone:
        if db.query(Customer.id).filter(Customer.phone == phone).first():
            raise AppException("Phone number already registered", status_code=409)
    elif db.query(Customer.id).filter(Customer.email == email).first():
        raise AppException("Email already registered", status_code=409)

    referrer = _resolve_referrer(db, referral_code)

    customer = Customer(
        name=name,
        phone=phone,
        email=email,
        address=address,
        password_hash=hash_password(password),
        auth_provider=provider,
        referral_code=generate_referral_code(db),
        referred_by=referrer.id if referrer else None,
    )
    db.add(customer)
    db.flush()
    if referrer:
        db.add(Referral(referrer_id=referrer.id, referred_id=customer.id, status=REFERRAL_PENDING))
    db.commit()
    db.refresh(customer)

    logger.info(
        "Customer %s registered via %s (referred_by=%s)",
        customer.id,
        provider.value,
        customer.referred_by,
    )
    return _issue_tokens(customer)


def authenticate_customer(db: Session, identifier: str, password: str) -> dict:
    login_key = (identifier or "").strip()
    customer = (
        db.query(Customer)
        .filter(or_(Customer.phone == login_key, Customer.email == login_key.lower()))
        .first()
    )
    if not customer or not verify_password(password, customer.password_hash):
        raise AppException("Invalid credentials", status_code=401)
    if not customer.is_active:
        raise AppException("Account is inactive", status_code=401)

    touch_last_visit(db, customer.id)
    db.commit()
    db.refresh(customer)
    return _issue_tokens(customer)


def refresh_customer_tokens(db: Session, refresh_token: str) -> dict:
    try:
        payload = decode_token(refresh_token)
    except ValueError as exc:
        raise AppException("Invalid refresh token", status_code=401) from exc
    if payload.get("type") != "refresh" or payload.get("role") != ROLE_CUSTOMER:
        raise AppException("Invalid refresh token", status_code=401)

    customer = get_customer(db, payload.get("sub"))
    if not customer or not customer.is_active:
        raise AppException("Invalid refresh token", status_code=401)
    return {
        "accessToken": create_access_token(customer.id, ROLE_CUSTOMER),
        "refreshToken": create_refresh_token(customer.id, ROLE_CUSTOMER),
    }


def get_customer(db: Session, customer_id: str | None) -> Customer | None:
    if not customer_id:
        return None
    return db.query(Customer).filter(Customer.id == customer_id).first()


def get_customer_or_404(db: Session, customer_id: str) -> Customer:
    customer = get_customer(db, customer_id)
    if not customer:
        raise AppException("Customer not found", status_code=404)
    return customer


def touch_last_visit(db: Session, customer_id: str | None, now: datetime | None = None) -> Customer | None:
    """Stamp ``last_visit`` on the customer. The caller commits."""
    customer = get_customer(db, customer_id)
    if customer is None:
        return None
    customer.last_visit = now or datetime.utcnow()
    return customer


def set_customer_status(db: Session, customer_id: str, is_active: bool) -> Customer:
    customer = get_customer_or_404(db, customer_id)
    customer.is_active = bool(is_active)
    db.commit()
    db.refresh(customer)
    return customer
