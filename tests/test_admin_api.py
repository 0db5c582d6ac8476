from datetime import datetime, timedelta

from fulltech.db.models import Admin, AuditLog, CustomerActivity, MonthlyRaffle, Product
from fulltech.main import _seed_dev_data
from fulltech.services import admin_service
from fulltech.services.activity_service import record_activity
from tests.conftest import auth_headers


def test_admin_login_rejects_bad_password(client, admin_headers):
    response = client.post("/api/admin/login", json={"email": "admin@fulltech.local", "password": "nope"})

    assert response.status_code == 401


def test_admin_routes_require_admin_token(client, register):
    bob = register("Bob")

    assert client.get("/api/admin/stats/overview").status_code == 401
    assert client.get("/api/admin/stats/overview", headers=auth_headers(bob)).status_code == 401


def test_raffle_lifecycle(client, db, admin_headers, register, product):
    now = datetime.utcnow()
    created = client.post(
        "/api/admin/raffles",
        json={"month": now.month, "year": now.year, "prize": "Smartwatch"},
        headers=admin_headers,
    )
    assert created.status_code == 200
    raffle_id = created.json()["data"]["id"]

    duplicate = client.post(
        "/api/admin/raffles",
        json={"month": now.month, "year": now.year, "prize": "Again"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    alice = register("Alice")
    bob = register("Bob", referral_code=alice["customer"]["referralCode"])
    client.post(
        "/api/customer/purchase",
        json={"productId": product.id, "quantity": 1, "totalPrice": 5000},
        headers=auth_headers(bob),
    )

    standings = client.get(f"/api/admin/raffles/{raffle_id}/entries", headers=admin_headers).json()["data"]
    assert standings == [{"customerId": alice["customer"]["id"], "customerName": "Alice", "entries": 1}]

    drawn = client.post(f"/api/admin/raffles/{raffle_id}/draw", headers=admin_headers)
    assert drawn.status_code == 200
    assert drawn.json()["data"]["winnerId"] == alice["customer"]["id"]
    assert drawn.json()["data"]["isActive"] is False

    assert client.get("/api/raffle/current").json()["data"] is None
    actions = [row.action for row in db.query(AuditLog).all()]
    assert "raffle.create" in actions and "raffle.draw" in actions


def test_raffle_month_out_of_range_is_bad_request(client, admin_headers):
    response = client.post(
        "/api/admin/raffles",
        json={"month": 0, "year": 2026, "prize": "Smartwatch"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_referral_statistics(client, admin_headers, register):
    alice = register("Alice")
    code = alice["customer"]["referralCode"]
    register("Bob", referral_code=code)
    register("Dave", referral_code=code)
    register("Carol")

    data = client.get("/api/admin/stats/referrals", headers=admin_headers).json()["data"]

    assert data["overview"] == {"totalCustomers": 4, "totalReferrals": 2, "referralRate": "50.0"}
    assert data["byStatus"] == {"pending": 2, "qualified": 0}
    assert data["topReferrers"][0]["customerId"] == alice["customer"]["id"]
    assert data["topReferrers"][0]["referralCount"] == 2


def test_customer_status_and_details(client, admin_headers, register):
    alice = register("Alice")
    bob = register("Bob", referral_code=alice["customer"]["referralCode"])

    response = client.put(
        f"/api/admin/customers/{bob['customer']['id']}/status",
        json={"isActive": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False

    details = client.get(f"/api/admin/customers/{alice['customer']['id']}", headers=admin_headers).json()["data"]
    assert details["referredBy"] is None
    assert [row["referredId"] for row in details["referralsMade"]] == [bob["customer"]["id"]]

    assert client.get("/api/admin/customers/missing", headers=admin_headers).status_code == 404


def test_product_admin_and_public_catalog(client, admin_headers):
    created = client.post(
        "/api/admin/products",
        json={"name": "Charger", "price": 2500, "category": "accessories"},
        headers=admin_headers,
    )
    assert created.status_code == 200
    product_id = created.json()["data"]["id"]

    updated = client.put(f"/api/admin/products/{product_id}", json={"price": 2000}, headers=admin_headers)
    assert updated.json()["data"]["price"] == 2000

    listing = client.get("/api/products", params={"category": "accessories"}).json()["data"]
    assert [row["id"] for row in listing] == [product_id]
    assert client.get("/api/products/unknown").status_code == 404


def test_overview_totals(client, admin_headers, register, product):
    bob = register("Bob")
    client.post(
        "/api/customer/purchase",
        json={"productId": product.id, "quantity": 2, "totalPrice": 10000},
        headers=auth_headers(bob),
    )

    totals = client.get("/api/admin/stats/overview", headers=admin_headers).json()["data"]["totals"]

    assert totals["customers"] == 1
    assert totals["products"] == 1
    assert totals["purchases"] == 1
    assert totals["revenue"] == 10000


def test_customer_list_filters_and_paginates(client, admin_headers, register):
    alice = register("Alice")
    code = alice["customer"]["referralCode"]
    bob = register("Bob", referral_code=code)
    register("Dave", referral_code=code)
    client.post("/api/customer/activity", json={"activityType": "visit"}, headers=auth_headers(alice))

    everyone = client.get("/api/admin/customers", headers=admin_headers).json()["data"]
    assert everyone["pagination"] == {"page": 1, "limit": 50, "total": 3, "totalPages": 1}
    by_id = {row["id"]: row for row in everyone["customers"]}
    assert by_id[alice["customer"]["id"]]["totalReferrals"] == 2
    assert by_id[alice["customer"]["id"]]["totalActivities"] == 1
    assert by_id[alice["customer"]["id"]]["lastActivity"] is not None
    assert by_id[bob["customer"]["id"]]["lastActivity"] is None

    referred = client.get("/api/admin/customers", params={"hasReferrals": "true"}, headers=admin_headers)
    assert {row["name"] for row in referred.json()["data"]["customers"]} == {"Bob", "Dave"}

    searched = client.get("/api/admin/customers", params={"search": "ali"}, headers=admin_headers)
    assert [row["name"] for row in searched.json()["data"]["customers"]] == ["Alice"]

    paged = client.get("/api/admin/customers", params={"page": 2, "limit": 2}, headers=admin_headers).json()["data"]
    assert len(paged["customers"]) == 1
    assert paged["pagination"]["totalPages"] == 2

    by_email = client.get("/api/admin/customers", params={"authProvider": "email"}, headers=admin_headers)
    assert by_email.json()["data"]["customers"] == []
    bad = client.get("/api/admin/customers", params={"authProvider": "fax"}, headers=admin_headers)
    assert bad.status_code == 400


def test_customer_referrals_and_activity_history(client, admin_headers, register, product):
    alice = register("Alice")
    bob = register("Bob", referral_code=alice["customer"]["referralCode"])
    for kind in ("visit", "like", "share"):
        client.post(
            "/api/customer/activity",
            json={"activityType": kind, "productId": product.id},
            headers=auth_headers(bob),
        )

    referrals = client.get(f"/api/admin/customers/{alice['customer']['id']}/referrals", headers=admin_headers)
    assert [row["id"] for row in referrals.json()["data"]] == [bob["customer"]["id"]]

    history = client.get(
        f"/api/admin/customers/{bob['customer']['id']}/activity",
        params={"limit": 2},
        headers=admin_headers,
    ).json()["data"]
    assert len(history["activities"]) == 2
    assert history["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    missing = client.get("/api/admin/customers/missing/activity", headers=admin_headers)
    assert missing.status_code == 404


def test_activity_statistics(db, register):
    alice = register("Alice")
    bob = register("Bob")
    record_activity(db, alice["customer"]["id"], "visit")
    record_activity(db, alice["customer"]["id"], "like")
    record_activity(db, bob["customer"]["id"], "visit")
    stamp = db.query(CustomerActivity).first().created_at

    stats = admin_service.get_activity_statistics(db, period="30d")

    assert stats["period"] == "30d"
    assert stats["byType"] == [{"activityType": "visit", "count": 2}, {"activityType": "like", "count": 1}]
    assert stats["byDay"] == [{"date": stamp.date().isoformat(), "count": 3}]
    assert sum(row["count"] for row in stats["byHour"]) == 3
    assert stats["mostActiveCustomers"][0]["customerId"] == alice["customer"]["id"]
    assert stats["mostActiveCustomers"][0]["activityCount"] == 2

    scoped = admin_service.get_activity_statistics(db, period="bogus", customer_id=bob["customer"]["id"])
    assert scoped["period"] == "7d"
    assert scoped["byType"] == [{"activityType": "visit", "count": 1}]
    assert scoped["mostActiveCustomers"] == []

    future = admin_service.get_activity_statistics(db, period="1d", now=stamp + timedelta(days=3))
    assert future["byType"] == []


def test_activity_statistics_endpoint(client, admin_headers, register):
    bob = register("Bob")
    client.post("/api/customer/activity", json={"activityType": "share"}, headers=auth_headers(bob))

    response = client.get("/api/admin/stats/activity", params={"period": "7d"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["byType"] == [{"activityType": "share", "count": 1}]


def test_dev_seed_creates_admin_once(db):
    _seed_dev_data(db)
    _seed_dev_data(db)

    admins = db.query(Admin).all()
    assert [admin.role for admin in admins] == ["super_admin"]
    assert db.query(Product).count() == 2
    assert db.query(MonthlyRaffle).count() == 1
    assert admin_service.admin_login(db, admins[0].email, "Password123!")["admin"]["role"] == "super_admin"


def test_oversized_product_price_is_rejected(client, admin_headers):
    response = client.post(
        "/api/admin/products",
        json={"name": "Gold", "price": 10**20, "category": "luxury"},
        headers=admin_headers,
    )

    assert response.status_code == 400
