from datetime import datetime, timedelta, timezone

from conftest import auth_headers, register

from app.services.security import issue_session_token
from app.services.users import find_by_email
from models import User


# ---- auth ----

def test_register_and_login(client):
    body = register(client, email="Alice@Example.com")

    assert body["message"] == "User registered successfully"
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["name"] == "Alice"
    assert "password" not in body["user"]
    assert body["token"]

    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret1"})
    assert res.status_code == 200
    assert res.json()["message"] == "Login successful"
    assert res.json()["user"]["id"] == body["user"]["id"]


def test_register_errors(client):
    register(client)

    res = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "ALICE@example.com", "password": "secret1"},
    )
    assert res.status_code == 400
    assert res.json() == {"message": "User already exists with this email"}

    res = client.post("/api/auth/register", json={"email": "x@example.com"})
    assert res.status_code == 400
    assert res.json() == {"message": "Email and password are required"}


def test_login_with_bad_credentials(client):
    register(client)

    for payload in (
        {"email": "alice@example.com", "password": "wrong-pass"},
        {"email": "ghost@example.com", "password": "secret1"},
    ):
        res = client.post("/api/auth/login", json=payload)
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid credentials"}


def test_malformed_body_is_a_400(client):
    res = client.post("/api/auth/login", content="not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert "message" in res.json()


# ---- password reset ----

def test_forgot_password_does_not_reveal_accounts(client, mailer):
    register(client)

    known = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json().keys() == unknown.json().keys() == {"message"}
    assert len(mailer.sent) == 1


def test_forgot_password_mail_failure(client, mailer, db):
    register(client)
    mailer.fail = True

    res = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to send password reset email. Please try again later."}
    assert find_by_email(db, "alice@example.com").reset_token is None


def test_forgot_password_without_mail_configured(settings):
    from fastapi.testclient import TestClient

    from app.application import create_app

    with TestClient(create_app(settings, mailer=None)) as client:
        res = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert res.status_code == 500
    assert res.json() == {"message": "Email service not configured. Please contact support."}


def test_reset_password_flow(client, mailer):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    token = mailer.last_token

    res = client.post(f"/api/auth/reset-password/{token}", json={"password": "abc"})
    assert res.status_code == 400
    assert res.json() == {"message": "Password must be at least 6 characters long"}

    res = client.post(f"/api/auth/reset-password/{token}", json={"password": "new-secret"})
    assert res.status_code == 200

    res = client.post(f"/api/auth/reset-password/{token}", json={"password": "newer-secret"})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid or expired reset token"}

    old = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret1"})
    new = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "new-secret"})
    assert old.status_code == 400
    assert new.status_code == 200


# ---- authorization gate ----

def test_gate_requires_a_token(client):
    res = client.get("/api/transactions")
    assert res.status_code == 401
    assert res.json() == {"message": "Access token required"}


def test_gate_rejects_bad_tokens(client, settings):
    res = client.get("/api/transactions", headers=auth_headers("garbage"))
    assert res.status_code == 403
    assert res.json() == {"message": "Invalid or expired token"}

    user = register(client)["user"]
    expired = issue_session_token(
        User(id=user["id"], email=user["email"]),
        settings,
        now=datetime.now(timezone.utc) - timedelta(days=8),
    )
    res = client.get("/api/transactions", headers=auth_headers(expired))
    assert res.status_code == 403


def test_gate_rejects_deleted_user(client, db):
    token = register(client)["token"]

    db.delete(find_by_email(db, "alice@example.com"))
    db.commit()

    res = client.get("/api/transactions", headers=auth_headers(token))
    assert res.status_code == 401
    assert res.json() == {"message": "Invalid token"}


def test_password_reset_revokes_older_sessions(client, mailer, db):
    user = register(client)["user"]
    stale = issue_session_token(
        User(id=user["id"], email=user["email"]),
        client.app.state.settings,
        now=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    assert client.get("/api/transactions", headers=auth_headers(stale)).status_code == 200

    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    client.post(f"/api/auth/reset-password/{mailer.last_token}", json={"password": "new-secret"})

    assert client.get("/api/transactions", headers=auth_headers(stale)).status_code == 403

    fresh = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "new-secret"})
    res = client.get("/api/transactions", headers=auth_headers(fresh.json()["token"]))
    assert res.status_code == 200


# ---- transactions ----

def _create(client, token, **overrides):
    payload = {
        "amount": 10,
        "category": "groceries",
        "type": "expense",
        "description": "Food",
        "date": "2025-03-01",
    }
    payload.update(overrides)
    return client.post("/api/transactions", json=payload, headers=auth_headers(token))


def test_transactions_end_to_end(client):
    register(client)
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret1"})
    token = login.json()["token"]

    created = [
        _create(client, token, amount=50, category="rent", description="Rent share"),
        _create(client, token, amount=1200, category="salary", type="income", description="Pay"),
        _create(client, token, amount="19.99", category="dining", description="Dinner"),
    ]
    assert [r.status_code for r in created] == [201, 201, 201]
    ids = [r.json()["transaction"]["id"] for r in created]

    res = client.get("/api/transactions", headers=auth_headers(token))
    assert res.status_code == 200
    listed = res.json()["transactions"]
    assert [tx["id"] for tx in listed] == list(reversed(ids))
    assert listed[0]["amount"] == 19.99
    assert listed[1]["type"] == "income"

    res = client.delete(f"/api/transactions/{ids[0]}", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json() == {"message": "Transaction deleted successfully"}

    listed = client.get("/api/transactions", headers=auth_headers(token)).json()["transactions"]
    assert [tx["id"] for tx in listed] == [ids[2], ids[1]]


def test_create_transaction_validation_over_http(client):
    token = register(client)["token"]

    res = _create(client, token, category="rent", type="income")
    assert res.status_code == 400
    assert res.json() == {"message": "Category does not match transaction type"}

    res = _create(client, token, amount=-1)
    assert res.status_code == 400
    assert res.json() == {"message": "Amount must be greater than 0"}

    res = _create(client, token, amount=True)
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid value for amount"}
    assert client.get("/api/transactions", headers=auth_headers(token)).json()["transactions"] == []


def test_owner_comes_from_token_not_body(client):
    alice = register(client)
    bob = register(client, name="Bob", email="bob@example.com")

    res = _create(client, alice["token"], userId=bob["user"]["id"])
    assert res.json()["transaction"]["userId"] == alice["user"]["id"]


def test_cannot_delete_other_users_transaction(client):
    alice = register(client)
    bob = register(client, name="Bob", email="bob@example.com")
    tx_id = _create(client, alice["token"]).json()["transaction"]["id"]

    res = client.delete(f"/api/transactions/{tx_id}", headers=auth_headers(bob["token"]))
    assert res.status_code == 404
    assert res.json() == {"message": "Transaction not found"}

    res = client.get("/api/transactions", headers=auth_headers(bob["token"]))
    assert res.json()["transactions"] == []

    res = client.get("/api/transactions", headers=auth_headers(alice["token"]))
    assert len(res.json()["transactions"]) == 1


def test_delete_with_bad_id(client):
    token = register(client)["token"]

    res = client.delete("/api/transactions/not-an-id", headers=auth_headers(token))
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid transaction ID"}

    res = client.delete("/api/transactions/99999999999999999999", headers=auth_headers(token))
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid transaction ID"}

    res = client.delete("/api/transactions/12345", headers=auth_headers(token))
    assert res.status_code == 404


# ---- dashboard & misc ----

def test_dashboard_summary(client):
    token = register(client)["token"]
    _create(client, token, amount=100, category="salary", type="income", date="2025-03-02")
    _create(client, token, amount=50, category="rent", date="2025-03-05")
    _create(client, token, amount=30, category="rent", date="2025-01-20")

    res = client.get("/api/dashboard?reference_date=2025-03-31", headers=auth_headers(token))
    assert res.status_code == 200
    summary = res.json()["summary"]

    assert summary["totalIncome"] == 100
    assert summary["totalExpenses"] == 80
    assert summary["balance"] == 20
    assert summary["expensesByCategory"] == {"rent": 80}
    assert len(summary["monthly"]) == 6
    assert summary["monthly"][-1] == {"month": "Mar", "period": "2025-03", "income": 100, "expense": 50}
    assert summary["monthly"][-3]["expense"] == 30


def test_dashboard_requires_auth(client):
    assert client.get("/api/dashboard").status_code == 401


def test_root_and_health(client):
    assert client.get("/").json() == {"activeStatus": True, "error": False}

    health = client.get("/api/health").json()
    assert health["status"] == "OK"
    assert health["emailConfigured"] is True


def test_test_email_endpoint(client, mailer):
    res = client.get("/api/test-email")
    assert res.status_code == 200
    assert res.json()["emailUser"] == "support@expensia.test"

    mailer.fail = True
    res = client.get("/api/test-email")
    assert res.status_code == 500


def test_unknown_route(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.json() == {"message": "Route not found"}
