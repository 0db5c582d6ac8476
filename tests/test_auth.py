from fulltech.core.security import ROLE_CUSTOMER, create_access_token
from fulltech.db.models import Customer
from tests.conftest import auth_headers


def _register(client, **body):
    payload = {"name": "Ana", "password": "secret123"}
    payload.update(body)
    return client.post("/api/auth/register", json=payload)


def test_phone_registration_issues_code_and_tokens(client):
    response = _register(client, phone="+18095550001", address="Santo Domingo")

    assert response.status_code == 200
    data = response.json()["data"]
    customer = data["customer"]
    assert customer["authProvider"] == "phone"
    assert customer["referralCode"].startswith("FT-")
    assert len(customer["referralCode"]) == 9
    assert customer["referredBy"] is None
    assert data["accessToken"] and data["refreshToken"]


def test_email_registration_and_login(client):
    assert _register(client, email="Ana@Example.com").status_code == 200

    response = client.post("/api/auth/login", json={"identifier": "ana@example.com", "password": "secret123"})

    assert response.status_code == 200
    assert response.json()["data"]["customer"]["email"] == "ana@example.com"
    assert response.json()["data"]["customer"]["lastVisit"] is not None


def test_registration_requires_exactly_one_identifier(client):
    assert _register(client).status_code == 400
    assert _register(client, phone="+18095550001", email="ana@example.com").status_code == 400


def test_duplicate_phone_conflicts(client):
    assert _register(client, phone="+18095550001").status_code == 200

    response = client.post(
        "/api/auth/phone/register",
        json={"name": "Other", "password": "secret123", "phone": "+18095550001"},
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Phone number already registered"


def test_invalid_referral_code_is_rejected(client):
    response = _register(client, phone="+18095550001", referralCode="FT-NOPE00")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid referral code"


def test_wrong_password_is_unauthorized(client, register):
    register("Bob", phone="+18095550009")

    response = client.post("/api/auth/login", json={"identifier": "+18095550009", "password": "wrong-pass"})

    assert response.status_code == 401


def test_inactive_customer_cannot_use_token(client, db, register):
    from fulltech.services.customer_service import set_customer_status

    bob = register("Bob")
    set_customer_status(db, bob["customer"]["id"], False)

    response = client.get("/api/customer/me", headers=auth_headers(bob))

    assert response.status_code == 401


def test_admin_token_is_not_a_customer_token(client, admin_headers):
    response = client.get("/api/customer/me", headers=admin_headers)

    assert response.status_code == 401


def test_refresh_token_rotation(client, register):
    bob = register("Bob")

    response = client.post("/api/auth/refresh-token", json={"refreshToken": bob["refreshToken"]})
    assert response.status_code == 200
    fresh = response.json()["data"]["accessToken"]
    me = client.get("/api/customer/me", headers={"Authorization": f"Bearer {fresh}"})
    assert me.json()["data"]["id"] == bob["customer"]["id"]

    bad = client.post("/api/auth/refresh-token", json={"refreshToken": bob["accessToken"]})
    assert bad.status_code == 401


def test_token_for_unknown_customer_is_rejected(client):
    token = create_access_token("ghost", ROLE_CUSTOMER)

    response = client.get("/api/customer/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_blank_name_is_rejected(client, db):
    response = _register(client, name="   ", phone="+18095550001")

    assert response.status_code == 400
    assert response.json()["message"] == "Name is required"
    assert db.query(Customer).count() == 0


def test_name_is_stored_trimmed(client):
    response = _register(client, name="  Ana  ", phone="+18095550001")

    assert response.json()["data"]["customer"]["name"] == "Ana"
