"""Tests for authentication, CSRF protection and error envelopes."""

import pytest
from httpx import AsyncClient

from brokerage_crm.core.deps import COOKIE_NAME
from brokerage_crm.core.security import create_session_token
from brokerage_crm.db.models import Membership


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_me_requires_session(client: AsyncClient):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


@pytest.mark.asyncio
async def test_me_with_cookie(authed_client: AsyncClient, test_auth):
    response = await authed_client.get("/auth/me")
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == test_auth.user.email
    assert data["org_slug"] == test_auth.org.slug
    assert data["role"] == "corretor"


@pytest.mark.asyncio
async def test_bearer_token_accepted(client: AsyncClient, test_auth):
    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {test_auth.token}"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid session"}


@pytest.mark.asyncio
async def test_mutation_without_csrf_header_rejected(client: AsyncClient, test_auth):
    client.cookies.set(COOKIE_NAME, test_auth.token)

    response = await client.post("/cotacoes", json={"ramo": "auto"})
    assert response.status_code == 403
    assert "CSRF" in response.json()["error"]

    # Reads don't need the header
    response = await client.get("/cotacoes")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_logout_revokes_existing_tokens(authed_client: AsyncClient, client: AsyncClient, test_auth):
    response = await authed_client.post("/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"status": "logged_out"}

    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {test_auth.token}"}
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Session revoked"}


@pytest.mark.asyncio
async def test_user_without_membership_forbidden(client: AsyncClient, db, test_auth):
    db.query(Membership).delete()
    db.commit()

    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {test_auth.token}"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_data_is_scoped_to_the_session_org(authed_client: AsyncClient, client: AsyncClient, db):
    from brokerage_crm.db.enums import Role
    from brokerage_crm.services import org_service, user_service

    created = await authed_client.post("/cotacoes", json={"ramo": "auto", "lead_nome": "Ana"})
    quote_id = created.json()["id"]

    other_org = org_service.create_org(db, name="Outra Corretora", slug="outra")
    other_user = user_service.create_user(db, other_org.id, "outro@outra.com", "Outro", Role.ADMIN)
    token = create_session_token(other_user.id, other_org.id, Role.ADMIN.value, other_user.token_version)
    headers = {"Authorization": f"Bearer {token}"}

    response = await client.get(f"/cotacoes/{quote_id}", headers=headers)
    assert response.status_code == 404

    listing = (await client.get("/cotacoes", headers=headers)).json()
    assert listing["total"] == 0


@pytest.mark.asyncio
async def test_validation_error_envelope(authed_client: AsyncClient):
    response = await authed_client.post("/cotacoes", json={"lead_nome": "Sem ramo"})
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Invalid request"
    assert body["details"][0]["loc"] == ["body", "ramo"]
