import uuid

from app.features.auth.models.user import UserRole
from app.features.auth.services.auth_service import AuthService


def _signup_payload():
    # Unique email and username so reruns never collide
    unique_id = uuid.uuid4().hex[:8]
    return {
        "email": f"marketer{unique_id}@example.com",
        "username": f"marketer{unique_id}",
        "password": "TestPassword123",
    }


def test_signup_success(client):
    payload = _signup_payload()
    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 201, f"Expected 201, got {response.status_code}: {response.json()}"
    data = response.json()
    assert "registered successfully" in data["message"].lower()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == payload["email"]
    assert data["user"]["role"] == "user"


def test_signup_duplicate_email(client):
    payload = _signup_payload()
    assert client.post("/api/auth/signup", json=payload).status_code == 201

    again = dict(payload, username=payload["username"] + "x")
    response = client.post("/api/auth/signup", json=again)
    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


def test_signup_weak_password(client):
    payload = dict(_signup_payload(), password="alllowercase1")
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == 422


def test_login_and_use_token(client):
    payload = _signup_payload()
    client.post("/api/auth/signup", json=payload)

    response = client.post(
        "/api/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    balance = client.get("/api/balance", headers={"Authorization": f"Bearer {token}"})
    assert balance.status_code == 200
    assert balance.json()["balance"] == "0.00"


def test_login_wrong_password(client):
    payload = _signup_payload()
    client.post("/api/auth/signup", json=payload)

    response = client.post(
        "/api/auth/login",
        json={"email": payload["email"], "password": "WrongPassword1"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_invalid_token_rejected(client):
    response = client.get("/api/balance", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

async def test_ensure_owner_creates_then_promotes(db_session, user):
    service = AuthService(db_session)

    created = await service.ensure_owner("Boss@Example.com", "boss", "OwnerPass123")
    assert created.role == UserRole.OWNER
    assert created.email == "boss@example.com"
    assert (await service.ensure_owner("boss@example.com", "boss", "ignored")).id == created.id

    promoted = await service.ensure_owner(user.email, "whatever", "ignored")
    assert promoted.id == user.id
    assert promoted.is_owner


async def test_seeded_owner_can_log_in(client, session_factory):
    async with session_factory() as db:
        await AuthService(db).ensure_owner("owner@example.com", "owner", "OwnerPass123")

    response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "OwnerPass123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "owner"
