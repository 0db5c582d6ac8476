import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fulltech.db.base import Base  # noqa: E402
from fulltech.db.session import build_engine, get_db  # noqa: E402
from fulltech.main import app  # noqa: E402
from fulltech.services import admin_service, catalog_service, customer_service, raffle_service  # noqa: E402


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def product(db):
    return catalog_service.create_product(db, name="Wireless Earbuds Pro", price=5000, category="audio")


@pytest.fixture
def current_raffle(db):
    now = datetime.utcnow()
    return raffle_service.create_raffle(db, month=now.month, year=now.year, prize="Smartwatch")


@pytest.fixture
def register(db):
    counter = {"n": 0}

    def _register(name: str = "Customer", referral_code: str | None = None, phone: str | None = None) -> dict:
        counter["n"] += 1
        return customer_service.register_customer(
            db,
            name=name,
            password="secret123",
            phone=phone or f"+1809555{counter['n']:04d}",
            referral_code=referral_code,
        )

    return _register


@pytest.fixture
def admin_headers(db):
    admin_service.create_admin(db, email="admin@fulltech.local", password="Password123!", name="Admin")
    data = admin_service.admin_login(db, "admin@fulltech.local", "Password123!")
    return {"Authorization": f"Bearer {data['accessToken']}"}


def auth_headers(registration: dict) -> dict:
    return {"Authorization": f"Bearer {registration['accessToken']}"}
