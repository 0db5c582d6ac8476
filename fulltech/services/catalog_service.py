from sqlalchemy.orm import Session

from fulltech.core.exceptions import AppException
from fulltech.db.models import MAX_AMOUNT, Product


def serialize_product(row: Product) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "price": int(row.price or 0),
        "category": row.category,
        "inStock": bool(row.in_stock),
        "featured": bool(row.featured),
    }


def list_products(db: Session, category: str | None = None) -> list[Product]:
    q = db.query(Product)
    if category:
        q = q.filter(Product.category == category)
    return q.order_by(Product.featured.desc(), Product.created_at.desc()).all()


def get_product(db: Session, product_id: str) -> Product | None:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_or_404(db: Session, product_id: str) -> Product:
    row = get_product(db, product_id)
    if not row:
        raise AppException("Product not found", status_code=404)
    return row


def create_product(
    db: Session,
    name: str,
    price: int,
    category: str,
    description: str = "",
    in_stock: bool = True,
    featured: bool = False,
) -> Product:
    if not 0 <= int(price) <= MAX_AMOUNT:
        raise AppException("Price is out of range", status_code=400)
    row = Product(
        name=name,
        description=description,
        price=int(price),
        category=category,
        in_stock=bool(in_stock),
        featured=bool(featured),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_product(db: Session, product_id: str, changes: dict) -> Product:
    row = get_product_or_404(db, product_id)
    price = changes.get("price")
    if price is not None and not 0 <= int(price) <= MAX_AMOUNT:
        raise AppException("Price is out of range", status_code=400)
    for field in ("name", "description", "price", "category", "in_stock", "featured"):
        if field in changes and changes[field] is not None:
            setattr(row, field, changes[field])
    db.commit()
    db.refresh(row)
    return row
