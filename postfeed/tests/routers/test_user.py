import pytest
from httpx import AsyncClient


async def register_user(async_client: AsyncClient, email: str, password: str, name: str = "Tester"):
    return await async_client.post(
        "/api/users",
        json={"name": name, "email": email, "password": password},
    )


@pytest.mark.anyio
async def test_register_user(async_client: AsyncClient):
    response = await register_user(async_client, "test@example.com", "12345")

    assert response.status_code == 201
    assert "User created" in response.json()["detail"]


@pytest.mark.anyio
async def test_register_user_already_exists(async_client: AsyncClient):
    await register_user(async_client, "test@example.com", "12345")

    response = await register_user(async_client, "test@example.com", "12345")

    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]


@pytest.mark.anyio
async def test_register_requires_valid_email_and_name(async_client: AsyncClient):
    assert (await register_user(async_client, "not-an-email", "12345")).status_code == 422
    assert (await register_user(async_client, "test@example.com", "12345", name=" ")).status_code == 422


@pytest.mark.anyio
async def test_login_user_not_exists(async_client: AsyncClient):
    response = await async_client.post(
        "/api/token", json={"email": "email@email.com", "password": "1234tired."}
    )

    assert response.status_code == 401


@pytest.mark.anyio
async def test_login_with_wrong_password(async_client: AsyncClient):
    await register_user(async_client, "test@example.com", "12345")

    response = await async_client.post("/api/token", json={"email": "test@example.com", "password": "nope"})

    assert response.status_code == 401


@pytest.mark.anyio
async def test_login_registered_user_and_post(async_client: AsyncClient):
    registered = await register_user(async_client, "test@example.com", "12345", name="Tess")

    response = await async_client.post("/api/token", json={"email": "test@example.com", "password": "12345"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    created = await async_client.post(
        "/api/posts", json={"text": "first!"}, headers={"Authorization": f"Bearer {token}"}
    )
    assert created.status_code == 201
    assert created.json()["author_id"] == registered.json()["id"]
    assert created.json()["author_name"] == "Tess"
