from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None
    referralCode: str | None = None


class LoginRequest(BaseModel):
    # Phone number or email.
    identifier: str
    password: str


class RefreshTokenRequest(BaseModel):
    refreshToken: str


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class CustomerOut(BaseModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    authProvider: str
    referralCode: str
    referredBy: str | None = None
    discountEarned: int = 0
    isActive: bool = True
    createdAt: str | None = None
    lastVisit: str | None = None


class CustomerAuthResponse(BaseModel):
    accessToken: str
    refreshToken: str
    customer: CustomerOut
