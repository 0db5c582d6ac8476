from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fulltech.db.session import get_db
from fulltech.schemas.auth import CustomerAuthResponse, LoginRequest, RefreshTokenRequest, RegisterRequest
from fulltech.services import customer_service

router = APIRouter()


@router.post("/register")
@router.post("/phone/register", include_in_schema=False)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    data = customer_service.register_customer(
        db=db,
        name=payload.name,
        password=payload.password,
        phone=payload.phone,
        email=payload.email,
        address=payload.address,
        referral_code=payload.referralCode,
    )
    return {"data": CustomerAuthResponse(**data).model_dump()}


@router.post("/login")
@router.post("/phone/login", include_in_schema=False)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    data = customer_service.authenticate_customer(db, payload.identifier, payload.password)
    return {"data": CustomerAuthResponse(**data).model_dump()}


@router.post("/refresh-token")
def refresh_token(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    return {"data": customer_service.refresh_customer_tokens(db, payload.refreshToken)}
