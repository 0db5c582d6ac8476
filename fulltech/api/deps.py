from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fulltech.core.security import ROLE_ADMIN, ROLE_CUSTOMER, decode_token
from fulltech.db.models import Admin, Customer
from fulltech.db.session import get_db

bearer_scheme = HTTPBearer(auto_error=False)


def _access_payload(credentials: HTTPAuthorizationCredentials | None, role: str) -> dict:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    if payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    if payload.get("role") != role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"{role.capitalize()} authentication required")
    return payload


def get_current_customer(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Customer:
    payload = _access_payload(credentials, ROLE_CUSTOMER)
    customer = db.query(Customer).filter(Customer.id == payload.get("sub")).first()
    if not customer or not customer.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Customer not found")
    return customer


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    payload = _access_payload(credentials, ROLE_ADMIN)
    admin = db.query(Admin).filter(Admin.id == payload.get("sub")).first()
    if not admin or not admin.active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
    return admin
