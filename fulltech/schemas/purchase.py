from pydantic import BaseModel, Field

from fulltech.db.models import MAX_AMOUNT, MAX_QUANTITY


class PurchaseRequest(BaseModel):
    productId: str
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)
    totalPrice: int = Field(ge=0, le=MAX_AMOUNT)
    discountApplied: int = Field(default=0, ge=0, le=100)


class ActivityRequest(BaseModel):
    activityType: str
    productId: str | None = None
    metadata: dict | None = None
