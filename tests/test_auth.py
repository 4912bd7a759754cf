import pytest
from fastapi.testclient import TestClient

from conftest import FakeResult, make_user

from lending.core.security import create_access_token, decode_token
from lending.db.session import get_db
from lending.main import app


@pytest.fixture
def anonymous_client(fake_db):
    async def _get_db():
        yield fake_db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_login_returns_token_and_user(anonymous_client, fake_db):
    user = make_user(id=3, username="cashier", password="Cashier123!", is_admin=False)
    fake_db.on_execute_return(FakeResult(items=[user]))

    resp = anonymous_client.post(
        "/api/v1/auth/login", json={"username": "cashier", "password": "Cashier123!"}
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["username"] == "cashier"
    claims = decode_token(data["token"], expected_type="access")
    assert claims["user_id"] == 3
    assert claims["is_admin"] is False


def test_login_with_wrong_password(anonymous_client, fake_db):
    fake_db.on_execute_return(FakeResult(items=[make_user(password="Cashier123!")]))

    resp = anonymous_client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "nope-nope"}
    )

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


def test_login_unknown_user_is_generic(anonymous_client):
    resp = anonymous_client.post(
        "/api/v1/auth/login", json={"username": "ghost", "password": "whatever1"}
    )

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


def test_login_inactive_user(anonymous_client, fake_db):
    fake_db.on_execute_return(
        FakeResult(items=[make_user(password="Cashier123!", is_active=False)])
    )

    resp = anonymous_client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "Cashier123!"}
    )

    assert resp.status_code == 401


@pytest.mark.parametrize(
    "path",
    [
        "/api/v1/clients",
        "/api/v1/loans",
        "/api/v1/payments",
        "/api/v1/payments/loan/1/next-week",
        "/api/v1/reports/weekly",
        "/api/v1/auth/me",
    ],
)
def test_protected_routes_require_token(anonymous_client, path):
    resp = anonymous_client.get(path)

    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthorized"


def test_me_with_valid_token(anonymous_client, fake_db):
    user = make_user(id=5, username="teller")
    fake_db.on_execute_return(FakeResult(scalar=user))
    token = create_access_token(user_id=5, username="teller")

    resp = anonymous_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.json()["data"]["username"] == "teller"


def test_token_for_deleted_user_is_rejected(anonymous_client, fake_db):
    fake_db.on_execute_return(FakeResult(scalar=None))
    token = create_access_token(user_id=5, username="teller")

    resp = anonymous_client.get("/api/v1/loans", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401


def test_garbage_token_is_rejected(anonymous_client):
    resp = anonymous_client.get("/api/v1/loans", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
