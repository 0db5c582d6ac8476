from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fulltech.api.deps import get_current_admin
from fulltech.db.models import MAX_AMOUNT, Admin
from fulltech.db.session import get_db
from fulltech.schemas.auth import AdminLoginRequest
from fulltech.services.admin_service import (
    admin_login,
    get_activity_statistics,
    get_customer_activity_history,
    get_customer_details,
    get_customer_referrals,
    get_dashboard_overview,
    get_referral_statistics,
    list_customers_with_stats,
    serialize_admin,
)
from fulltech.services.audit_service import list_audit_logs, serialize_audit_log, write_audit_log
from fulltech.services.catalog_service import create_product, serialize_product, update_product
from fulltech.services.customer_service import serialize_customer, set_customer_status
from fulltech.services.raffle_service import (
    create_raffle,
    draw_winner,
    list_raffle_standings,
    list_raffles,
    serialize_raffle,
    update_raffle,
)

router = APIRouter()


class CustomerStatusPatch(BaseModel):
    isActive: bool


class RaffleCreate(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=9999)
    prize: str = Field(min_length=1)
    description: str | None = None
    isActive: bool = True


class RaffleUpdate(BaseModel):
    prize: str | None = None
    description: str | None = None
    isActive: bool | None = None


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: int = Field(ge=0, le=MAX_AMOUNT)
    category: str = Field(min_length=1)
    inStock: bool = True
    featured: bool = False


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    price: int | None = Field(default=None, ge=0, le=MAX_AMOUNT)
    category: str | None = None
    inStock: bool | None = None
    featured: bool | None = None


@router.post("/login")
def admin_login_route(payload: AdminLoginRequest, db: Session = Depends(get_db)):
    return {"data": admin_login(db, payload.email, payload.password)}


@router.get("/me")
def admin_me(admin: Admin = Depends(get_current_admin)):
    return {"data": serialize_admin(admin)}


@router.get("/stats/referrals")
def admin_referral_stats(
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_referral_statistics(db)}


@router.get("/stats/overview")
def admin_overview(
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_dashboard_overview(db)}


@router.get("/stats/activity")
def admin_activity_stats(
    period: str = Query(default="7d"),
    customerId: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_activity_statistics(db, period=period, customer_id=customerId)}


@router.get("/customers")
def admin_list_customers(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    search: str | None = Query(default=None),
    authProvider: str | None = Query(default=None),
    hasReferrals: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    data = list_customers_with_stats(
        db,
        page=page,
        limit=limit,
        search=search,
        auth_provider=authProvider,
        has_referrals=hasReferrals,
    )
    return {"data": data}


@router.get("/customers/{customer_id}")
def admin_customer_detail(
    customer_id: str,
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_customer_details(db, customer_id)}


@router.get("/customers/{customer_id}/referrals")
def admin_customer_referrals(
    customer_id: str,
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_customer_referrals(db, customer_id)}


@router.get("/customers/{customer_id}/activity")
def admin_customer_activity(
    customer_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": get_customer_activity_history(db, customer_id, page=page, limit=limit)}


@router.put("/customers/{customer_id}/status")
def admin_customer_status(
    customer_id: str,
    payload: CustomerStatusPatch,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    customer = set_customer_status(db, customer_id, payload.isActive)
    write_audit_log(
        db,
        actor_admin_id=admin.id,
        action="customer.status",
        resource_type="customer",
        resource_id=customer.id,
        meta={"isActive": customer.is_active},
    )
    return {"data": serialize_customer(customer)}


@router.get("/raffles")
def admin_list_raffles(
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": [serialize_raffle(row) for row in list_raffles(db)]}


@router.post("/raffles")
def admin_create_raffle(
    payload: RaffleCreate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = create_raffle(
        db,
        month=payload.month,
        year=payload.year,
        prize=payload.prize,
        description=payload.description,
        is_active=payload.isActive,
    )
    write_audit_log(db, admin.id, "raffle.create", "raffle", row.id, {"month": row.month, "year": row.year})
    return {"data": serialize_raffle(row)}


@router.put("/raffles/{raffle_id}")
def admin_update_raffle(
    raffle_id: str,
    payload: RaffleUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = update_raffle(
        db,
        raffle_id,
        {"prize": payload.prize, "description": payload.description, "is_active": payload.isActive},
    )
    write_audit_log(db, admin.id, "raffle.update", "raffle", row.id, payload.model_dump(exclude_none=True))
    return {"data": serialize_raffle(row)}


@router.get("/raffles/{raffle_id}/entries")
def admin_raffle_entries(
    raffle_id: str,
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": list_raffle_standings(db, raffle_id)}


@router.post("/raffles/{raffle_id}/draw")
def admin_draw_raffle(
    raffle_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = draw_winner(db, raffle_id)
    write_audit_log(db, admin.id, "raffle.draw", "raffle", row.id, {"winnerId": row.winner_id})
    return {"data": serialize_raffle(row)}


@router.post("/products")
def admin_create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = create_product(
        db,
        name=payload.name,
        price=payload.price,
        category=payload.category,
        description=payload.description,
        in_stock=payload.inStock,
        featured=payload.featured,
    )
    write_audit_log(db, admin.id, "product.create", "product", row.id)
    return {"data": serialize_product(row)}


@router.put("/products/{product_id}")
def admin_update_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    row = update_product(
        db,
        product_id,
        {
            "name": payload.name,
            "description": payload.description,
            "price": payload.price,
            "category": payload.category,
            "in_stock": payload.inStock,
            "featured": payload.featured,
        },
    )
    write_audit_log(db, admin.id, "product.update", "product", row.id, payload.model_dump(exclude_none=True))
    return {"data": serialize_product(row)}


@router.get("/audit-logs")
def admin_audit_logs(
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    return {"data": [serialize_audit_log(row) for row in list_audit_logs(db, limit=limit)]}
