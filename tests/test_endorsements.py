"""Tests for policy endorsements."""

import pytest
from httpx import AsyncClient

from brokerage_crm.db.models import Endorsement


async def _policy(client: AsyncClient) -> dict:
    cid = (await client.post("/clientes", json={"nome": "Maria Souza"})).json()["id"]
    response = await client.post(
        "/apolices", json={"cliente_id": cid, "seguradora": "Porto", "ramo": "auto"}
    )
    assert response.status_code == 201
    return response.json()


async def _endorse(client: AsyncClient, policy_id: str, **fields) -> dict:
    payload = {"apolice_id": policy_id, "tipo": "inclusao", "descricao": "Inclusão de condutor"}
    payload.update(fields)
    response = await client.post("/endossos", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_endorsement_starts_as_draft(authed_client: AsyncClient):
    policy = await _policy(authed_client)

    data = await _endorse(authed_client, policy["id"], valor_novo=1850.5, status="emitido")
    assert data["status"] == "rascunho"
    assert data["tipo"] == "inclusao"
    assert data["valor_novo"] == 1850.5
    assert data["data_emissao"] is None


@pytest.mark.asyncio
async def test_create_endorsement_validation(authed_client: AsyncClient):
    policy = await _policy(authed_client)

    response = await authed_client.post(
        "/endossos", json={"apolice_id": policy["id"], "tipo": "cancelamento"}
    )
    assert response.status_code == 422

    response = await authed_client.post(
        "/endossos",
        json={"apolice_id": "00000000-0000-0000-0000-000000000001", "tipo": "alteracao"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Policy not found"


@pytest.mark.asyncio
async def test_list_policy_endorsements_newest_first(authed_client: AsyncClient):
    policy = await _policy(authed_client)
    first = await _endorse(authed_client, policy["id"])
    second = await _endorse(authed_client, policy["id"], tipo="exclusao")

    response = await authed_client.get(f"/endossos/apolice/{policy['id']}")
    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == [second["id"], first["id"]]

    response = await authed_client.get("/endossos/apolice/00000000-0000-0000-0000-000000000001")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_issue_endorsement_stamps_date_and_is_final(authed_client: AsyncClient):
    policy = await _policy(authed_client)
    endorsement = await _endorse(authed_client, policy["id"])
    url = f"/endossos/{endorsement['id']}/status"

    response = await authed_client.patch(url, json={"status": "enviado"})
    assert response.status_code == 200
    assert response.json()["data_emissao"] is None

    response = await authed_client.patch(url, json={"status": "emitido"})
    assert response.status_code == 200
    assert response.json()["status"] == "emitido"
    assert response.json()["data_emissao"] is not None

    response = await authed_client.patch(url, json={"status": "rascunho"})
    assert response.status_code == 400
    assert response.json()["error"] == "Issued endorsements cannot change status"


@pytest.mark.asyncio
async def test_deleting_policy_removes_endorsements(authed_client: AsyncClient, db):
    policy = await _policy(authed_client)
    await _endorse(authed_client, policy["id"])

    response = await authed_client.delete(f"/apolices/{policy['id']}")
    assert response.status_code == 204
    assert db.query(Endorsement).count() == 0
