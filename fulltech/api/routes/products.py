from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fulltech.db.session import get_db
from fulltech.services.catalog_service import get_product_or_404, list_products, serialize_product

router = APIRouter()


@router.get("")
def products_list(
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return {"data": [serialize_product(row) for row in list_products(db, category=category)]}


@router.get("/{product_id}")
def products_detail(product_id: str, db: Session = Depends(get_db)):
    return {"data": serialize_product(get_product_or_404(db, product_id))}
