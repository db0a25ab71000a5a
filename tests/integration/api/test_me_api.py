"""Integration tests for GET/PUT /me."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from jose import jwt as jose_jwt

from api.dependencies.services import get_profile_service
from core.exceptions import StoreUnavailableError
from infrastructure.auth.jwt_provider import JWTTokenVerifier
from tests.conftest import TEST_ISSUER, TEST_PHONE, TEST_SECRET


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def failing_store(app: FastAPI) -> AsyncMock:
    service = AsyncMock()
    service.get_by_phone.side_effect = StoreUnavailableError("connection refused")
    service.upsert_by_phone.side_effect = StoreUnavailableError("connection refused")
    app.dependency_overrides[get_profile_service] = lambda: service
    return service


class TestVerifiedAuth:
    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/me")

        assert response.status_code == 401
        assert response.json() == {"error": "missing_token"}

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, client: AsyncClient) -> None:
        response = await client.get("/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401
        assert response.json() == {"error": "missing_token"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.get("/me", headers=_bearer("not-a-jwt"))

        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token"}

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient) -> None:
        expired = JWTTokenVerifier(
            secret_key=TEST_SECRET, issuer=TEST_ISSUER, expire_minutes=-5
        ).create_token(TEST_PHONE)

        response = await client.put("/me", headers=_bearer(expired), json={"age": 1})

        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token"}

    @pytest.mark.asyncio
    async def test_token_without_phone_claim(self, client: AsyncClient) -> None:
        token = jose_jwt.encode(
            {"sub": "uid-1", "iss": TEST_ISSUER, "exp": 4102444800},
            TEST_SECRET,
            algorithm="HS256",
        )

        response = await client.get("/me", headers=_bearer(token))

        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token"}

    @pytest.mark.asyncio
    async def test_phone_query_is_ignored(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await client.put("/me", headers=auth_headers, json={"fullName": "Owner"})

        response = await client.get(
            "/me", headers=auth_headers, params={"phone": "+15550001111"}
        )

        assert response.json()["phone"] == TEST_PHONE


class TestGetMe:
    @pytest.mark.asyncio
    async def test_no_profile_returns_null(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.get("/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_get_does_not_create(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await client.get("/me", headers=auth_headers)
        response = await client.get("/me", headers=auth_headers)

        assert response.json() is None

    @pytest.mark.asyncio
    async def test_store_failure(
        self, client: AsyncClient, auth_headers: dict[str, str], failing_store: AsyncMock
    ) -> None:
        response = await client.get("/me", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "me_failed"}
        assert "connection refused" not in response.text


class TestPutMe:
    @pytest.mark.asyncio
    async def test_creates_profile(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            "/me",
            headers=auth_headers,
            json={"fullName": "Ana Tan", "age": 29},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["phone"] == TEST_PHONE
        assert data["fullName"] == "Ana Tan"
        assert data["age"] == 29
        assert data["address"] is None
        assert data["avatarUrl"] is None
        assert isinstance(data["id"], int)
        assert data["createdAt"] == data["updatedAt"]

        fetched = await client.get("/me", headers=auth_headers)
        assert fetched.json() == data

    @pytest.mark.asyncio
    async def test_second_put_replaces_whole_profile(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        first = (
            await client.put(
                "/me",
                headers=auth_headers,
                json={"fullName": "Ana Tan", "age": 29, "address": "1 Orchard Rd"},
            )
        ).json()

        second = (
            await client.put("/me", headers=auth_headers, json={"age": 30})
        ).json()

        assert second["id"] == first["id"]
        assert second["age"] == 30
        assert second["fullName"] is None
        assert second["address"] is None
        assert second["createdAt"] == first["createdAt"]
        assert datetime.fromisoformat(second["updatedAt"]) > datetime.fromisoformat(
            first["updatedAt"]
        )

    @pytest.mark.asyncio
    async def test_snake_case_body_is_accepted(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            "/me", headers=auth_headers, json={"full_name": "Ana", "avatar_url": "https://x/a.png"}
        )

        assert response.json()["fullName"] == "Ana"
        assert response.json()["avatarUrl"] == "https://x/a.png"

    @pytest.mark.asyncio
    async def test_empty_body_clears_fields(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await client.put("/me", headers=auth_headers, json={"fullName": "Ana"})

        response = await client.put("/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["fullName"] is None

    @pytest.mark.asyncio
    async def test_body_phone_is_ignored(
        self, client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            "/me", headers=auth_headers, json={"phone": "+15550001111", "age": 3}
        )

        assert response.json()["phone"] == TEST_PHONE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"age": -1}, {"age": 151}, {"age": "old"}, {"fullName": "x" * 201}],
    )
    async def test_invalid_body(
        self, client: AsyncClient, auth_headers: dict[str, str], body: dict
    ) -> None:
        response = await client.put("/me", headers=auth_headers, json=body)

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_store_failure(
        self, client: AsyncClient, auth_headers: dict[str, str], failing_store: AsyncMock
    ) -> None:
        response = await client.put("/me", headers=auth_headers, json={"age": 1})

        assert response.status_code == 500
        assert response.json() == {"error": "update_failed"}


class TestTrustedInputMode:
    @pytest.mark.asyncio
    async def test_get_without_phone(self, trusted_client: AsyncClient) -> None:
        response = await trusted_client.get("/me")

        assert response.status_code == 400
        assert response.json() == {"error": "missing_phone"}

    @pytest.mark.asyncio
    async def test_put_without_phone(self, trusted_client: AsyncClient) -> None:
        response = await trusted_client.put("/me", json={"fullName": "Ana"})

        assert response.status_code == 400
        assert response.json() == {"error": "missing_phone"}

    @pytest.mark.asyncio
    async def test_invalid_phone(self, trusted_client: AsyncClient) -> None:
        response = await trusted_client.get("/me", params={"phone": "12345"})

        assert response.status_code == 400
        assert response.json() == {"error": "invalid_phone"}

    @pytest.mark.asyncio
    async def test_put_then_get_with_normalized_phone(
        self, trusted_client: AsyncClient
    ) -> None:
        put = await trusted_client.put(
            "/me", json={"phone": "+65 9123-4567", "fullName": "Ana Tan"}
        )

        assert put.status_code == 200
        assert put.json()["phone"] == TEST_PHONE

        get = await trusted_client.get("/me", params={"phone": TEST_PHONE})
        assert get.json()["fullName"] == "Ana Tan"

    @pytest.mark.asyncio
    async def test_token_is_not_needed(self, trusted_client: AsyncClient) -> None:
        response = await trusted_client.get(
            "/me", params={"phone": TEST_PHONE}, headers=_bearer("garbage")
        )

        assert response.status_code == 200
        assert response.json() is None
