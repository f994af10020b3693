import pytest

from bookreview.security import create_access_token


@pytest.mark.asyncio
async def test_register_returns_user_and_token(client):
    resp = await client.post("/api/auth/register", json={
        "email": "Reader@Example.com",
        "password": "Secret123",
        "name": "  Reader One ",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    user = body["data"]["user"]
    assert user["email"] == "reader@example.com"
    assert user["name"] == "Reader One"
    assert "createdAt" in user
    assert "password" not in user
    assert "passwordHash" not in user
    assert body["data"]["token"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client, register):
    await register(email="reader@example.com")
    resp = await client.post("/api/auth/register", json={
        "email": "READER@example.com",
        "password": "Secret123",
        "name": "Someone Else",
    })
    assert resp.status_code == 409
    assert resp.json()["detail"] == "User with this email already exists"


@pytest.mark.asyncio
async def test_register_weak_password_is_validation_error(client):
    resp = await client.post("/api/auth/register", json={
        "email": "reader@example.com",
        "password": "password",
        "name": "Reader One",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["detail"] == "Validation failed"
    assert [e["field"] for e in body["errors"]] == ["password"]


@pytest.mark.asyncio
async def test_register_rejects_bad_email_and_short_name(client):
    resp = await client.post("/api/auth/register", json={
        "email": "not-an-email",
        "password": "Secret123",
        "name": "R",
    })
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"email", "name"}


@pytest.mark.asyncio
async def test_login(client, register):
    await register(email="reader@example.com")
    resp = await client.post("/api/auth/login", json={"email": "reader@example.com", "password": "Secret123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == "reader@example.com"
    assert body["data"]["token"]


@pytest.mark.asyncio
async def test_login_wrong_password(client, register):
    await register(email="reader@example.com")
    resp = await client.post("/api/auth/login", json={"email": "reader@example.com", "password": "Wrong123"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    resp = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "Secret123"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_profile_requires_token(client):
    resp = await client.get("/api/auth/profile")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Access token is required"
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_profile_rejects_bad_token(client):
    resp = await client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_profile_rejects_token_for_missing_user(client):
    token = create_access_token(999999)
    resp = await client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_profile(client, register, create_book, create_review):
    user, headers = await register()
    book = await create_book(headers)
    await create_review(headers, book["id"], 4)

    resp = await client.get("/api/auth/profile", headers=headers)
    assert resp.status_code == 200
    profile = resp.json()["data"]
    assert profile["id"] == user["id"]
    assert profile["reviewCount"] == 1
    assert "updatedAt" in profile


@pytest.mark.asyncio
async def test_refresh_token(client, register):
    _, headers = await register()
    resp = await client.post("/api/auth/refresh", headers=headers)
    assert resp.status_code == 200
    token = resp.json()["data"]["token"]

    resp = await client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
