from tests.conftest import auth_headers


def test_health_is_not_cached(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_activity_tracking(client, register, product):
    bob = register("Bob")

    liked = client.post(
        "/api/customer/activity",
        json={"activityType": "like", "productId": product.id, "metadata": {"source": "home"}},
        headers=auth_headers(bob),
    )
    assert liked.status_code == 200
    assert liked.json()["data"]["metadata"] == {"source": "home"}

    bogus = client.post("/api/customer/activity", json={"activityType": "dance"}, headers=auth_headers(bob))
    assert bogus.status_code == 400
    assert bogus.json()["message"] == "Invalid activity type"


def test_referrer_is_notified_and_marks_read(client, register, product, current_raffle):
    alice = register("Alice")
    bob = register("Bob", referral_code=alice["customer"]["referralCode"])
    client.post(
        "/api/customer/purchase",
        json={"productId": product.id, "quantity": 1, "totalPrice": 5000},
        headers=auth_headers(bob),
    )

    rows = client.get("/api/notifications", headers=auth_headers(alice)).json()["data"]
    assert len(rows) == 1
    assert rows[0]["kind"] == "referral.qualified"
    assert rows[0]["payload"]["referredId"] == bob["customer"]["id"]

    read = client.post(f"/api/notifications/{rows[0]['id']}/read", headers=auth_headers(alice))
    assert read.json()["data"]["readAt"] is not None

    other = client.post(f"/api/notifications/{rows[0]['id']}/read", headers=auth_headers(bob))
    assert other.status_code == 404


def test_referral_summary_endpoint(client, register, product, current_raffle):
    alice = register("Alice")
    bob = register("Bob", referral_code=alice["customer"]["referralCode"])
    client.post(
        "/api/customer/purchase",
        json={"productId": product.id, "quantity": 1, "totalPrice": 5000},
        headers=auth_headers(bob),
    )

    summary = client.get("/api/customer/referrals/summary", headers=auth_headers(alice)).json()["data"]

    assert summary["qualifiedReferrals"] == 1
    assert summary["pendingReferrals"] == 0
    assert summary["discountEarned"] == 0


def test_visit_activity_stamps_last_visit(client, register):
    bob = register("Bob")
    assert bob["customer"]["lastVisit"] is None

    client.post("/api/customer/activity", json={"activityType": "like"}, headers=auth_headers(bob))
    after_like = client.get("/api/customer/me", headers=auth_headers(bob)).json()["data"]
    assert after_like["lastVisit"] is None

    client.post("/api/customer/activity", json={"activityType": "visit"}, headers=auth_headers(bob))
    after_visit = client.get("/api/customer/me", headers=auth_headers(bob)).json()["data"]
    assert after_visit["lastVisit"] is not None
