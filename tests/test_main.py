import pytest

ADMIN = {"X-Admin-Key": "test-admin-key"}
EMAIL = "tester@gmail.com"


def register(client, email=EMAIL):
    return client.post("/accounts/", json={"name": "Tester", "mobile": "9876543210", "city": "Pune", "email": email})


def add_reward(client, title, cost, quantity=None):
    resp = client.post("/admin/rewards/", json={"title": title, "cost": cost, "quantity": quantity}, headers=ADMIN)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def schedule(client, email=EMAIL):
    resp = client.post("/pickups/", json={
        "email": email,
        "name": "Tester",
        "phone": "9876543210",
        "address": "12 MG Road, Pune",
        "date": "2026-11-02",
        "time": "10:30",
        "items": "Old laptop",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def test_otp_signup_flow(client, notifier):
    resp = client.post("/auth/send-otp/", json={"email": EMAIL})
    assert resp.status_code == 200

    # The code only travels through the notification channel
    recipient, template, data = notifier.sent[-1]
    assert (recipient, template) == (EMAIL, "otp")
    code = data["code"]

    wrong = "111111" if code != "111111" else "222222"
    resp = client.post("/auth/verify-otp/", json={"email": EMAIL, "otp": wrong})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid OTP."

    resp = client.post("/auth/verify-otp/", json={"email": EMAIL, "otp": code})
    assert resp.status_code == 200

    resp = client.post("/auth/verify-otp/", json={"email": EMAIL, "otp": code})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No OTP sent to this email."


def test_login_requires_registered_email(client, notifier):
    resp = client.post("/auth/login/", json={"email": EMAIL})
    assert resp.status_code == 404
    assert notifier.sent == []

    register(client)
    resp = client.post("/auth/login/", json={"email": EMAIL})
    assert resp.status_code == 200
    assert notifier.templates() == ["login_otp"]


def test_registration(client):
    resp = register(client)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["points"] == 100
    assert body["tier"] == {"current_tier": "Silver", "next_tier": "Gold", "progress_percent": 0.0, "points_to_next": 100}

    assert client.post("/auth/check-email/", json={"email": EMAIL}).json() == {"exists": True}

    resp = register(client)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "conflict"


def test_burner_and_invalid_input_rejected_before_any_write(client):
    resp = register(client, email="someone@mailinator.com")
    assert resp.status_code == 422

    resp = client.post("/accounts/", json={"name": "", "mobile": "1", "city": "Pune", "email": EMAIL})
    assert resp.status_code == 422

    assert client.post("/auth/check-email/", json={"email": EMAIL}).json() == {"exists": False}


def test_pickup_points_and_redemption(client, notifier):
    register(client)
    tote = add_reward(client, "Jute Tote", cost=100, quantity=1)
    bottle = add_reward(client, "Steel Bottle", cost=400)

    pickup_id = schedule(client)
    resp = client.post("/pickups/complete/", json={"email": EMAIL, "pickup_id": pickup_id})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["points"] == 250
    assert body["tier"] == {
        "current_tier": "Gold", "next_tier": "Platinum", "progress_percent": pytest.approx(50 / 3), "points_to_next": 250,
    }

    # Terminal pickups are invisible to further transitions
    resp = client.post("/pickups/complete/", json={"email": EMAIL, "pickup_id": pickup_id})
    assert resp.status_code == 404

    resp = client.post("/redeem/", json={"email": EMAIL, "reward_id": bottle})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Insufficient points."

    resp = client.post("/redeem/", json={"email": EMAIL, "reward_id": tote})
    assert resp.status_code == 200, resp.text
    assert resp.json()["points"] == 150

    resp = client.post("/redeem/", json={"email": EMAIL, "reward_id": tote})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Reward out of stock."

    history = client.get("/rewards/history/", params={"email": EMAIL}).json()
    assert [(h["title"], h["cost"], h["status"]) for h in history] == [("Jute Tote", 100, "pending")]

    rewards = client.get("/rewards/").json()
    assert [r["title"] for r in rewards] == ["Jute Tote", "Steel Bottle"]
    assert rewards[0]["quantity"] == 0

    account = client.get("/accounts/", params={"email": EMAIL}).json()
    assert account["points"] == 150
    assert account["pickups_completed"] == 1

    assert notifier.templates() == ["pickup_scheduled", "pickup_completed", "reward_redeemed"]


def test_cancel_pickup(client, notifier):
    register(client)
    first = schedule(client)
    second = schedule(client)

    resp = client.post("/pickups/cancel/", json={"email": EMAIL, "pickup_id": first})
    assert resp.status_code == 200
    resp = client.post("/pickups/cancel/", json={"email": EMAIL, "pickup_id": first})
    assert resp.status_code == 404

    listed = client.get("/pickups/", params={"email": EMAIL}).json()
    assert [(p["id"], p["status"]) for p in listed] == [(second, "pending"), (first, "cancelled")]
    assert notifier.templates().count("pickup_cancelled") == 1


def test_profile_update_and_account_deletion(client, notifier):
    register(client)
    schedule(client)

    resp = client.post("/accounts/profile/", json={
        "email": EMAIL, "name": "Tester Two", "mobile": "1112223334", "city": "Mumbai", "profile_pic": None,
    })
    assert resp.status_code == 200
    assert resp.json()["city"] == "Mumbai"

    resp = client.post("/accounts/delete/", json={"email": EMAIL})
    assert resp.status_code == 200
    assert notifier.sent[-1] == (EMAIL, "account_deleted", {"email": EMAIL})

    assert client.get("/accounts/", params={"email": EMAIL}).status_code == 404
    assert client.get("/pickups/", params={"email": EMAIL}).status_code == 404


def test_catalog_management_requires_admin_key(client):
    resp = client.post("/admin/rewards/", json={"title": "Seed Kit", "cost": 50})
    assert resp.status_code == 401

    resp = client.post("/admin/rewards/", json={"title": "Seed Kit", "cost": 0}, headers=ADMIN)
    assert resp.status_code == 422

    inactive = client.post(
        "/admin/rewards/", json={"title": "Retired", "cost": 10, "active": False}, headers=ADMIN
    )
    assert inactive.status_code == 201
    assert client.get("/rewards/").json() == []
    assert len(client.get("/rewards/", params={"active_only": "false"}).json()) == 1


def test_tier_endpoint(client):
    assert client.get("/tiers/", params={"points": 350}).json() == {
        "current_tier": "Gold", "next_tier": "Platinum", "progress_percent": 50.0, "points_to_next": 150,
    }
    assert client.get("/tiers/", params={"points": -1}).status_code == 422
