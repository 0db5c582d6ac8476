import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fulltech.api.routes import api_router
from fulltech.core.config import get_settings
from fulltech.core.exceptions import AppException, register_exception_handlers
from fulltech.core.logging import setup_logging
from fulltech.db.base import Base
from fulltech.db.models import Admin, MonthlyRaffle, Product
from fulltech.db.session import SessionLocal, engine
from fulltech.middleware.request_context import RequestContextMiddleware
from fulltech.services.admin_service import create_admin

settings = get_settings()
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    application = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    application.include_router(api_router, prefix=settings.API_PREFIX)
    application.add_middleware(RequestContextMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(application)
    return application


def _seed_dev_data(db: Session):
    if db.query(Admin).count() > 0:
        return

    products = [
        Product(
            name="Wireless Earbuds Pro",
            description="Noise cancelling earbuds with charging case.",
            price=5000,
            category="audio",
            featured=True,
        ),
        Product(
            name="USB-C Fast Charger 65W",
            description="GaN charger for laptops and phones.",
            price=2500,
            category="accessories",
        ),
    ]
    now = datetime.utcnow()
    raffle = MonthlyRaffle(
        month=now.month,
        year=now.year,
        prize="Smartwatch Series X",
        description="Monthly raffle for customers who refer friends.",
        is_active=True,
    )

    try:
        admin = create_admin(
            db,
            email=settings.SEED_ADMIN_EMAIL,
            password=settings.SEED_ADMIN_PASSWORD,
            name="Demo Admin",
            role="super_admin",
        )
        db.add_all(products)
        db.add(raffle)
        db.commit()
        logger.info("Seeded development data (admin %s)", admin.email)
    except (AppException, IntegrityError):
        # Another worker/process already inserted seed rows.
        db.rollback()


app = create_app()


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if settings.ENVIRONMENT.lower() == "development":
            _seed_dev_data(db)
    finally:
        db.close()
