"""Tests for pipeline phase configuration."""

import pytest
from httpx import AsyncClient

from brokerage_crm.services import pipeline_service


DEFAULT_KEYS = [
    "nova",
    "em_cotacao",
    "enviada",
    "em_negociacao",
    "fechada_ganha",
    "fechada_perdida",
]


async def _phases(client: AsyncClient) -> list[dict]:
    response = await client.get("/pipeline/fases")
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_defaults_seeded_on_first_access(authed_client: AsyncClient):
    phases = await _phases(authed_client)

    assert [p["chave"] for p in phases] == DEFAULT_KEYS
    assert [p["ordem"] for p in phases] == [1, 2, 3, 4, 5, 6]
    system = {p["chave"] for p in phases if p["sistema"]}
    assert system == {"nova", "fechada_ganha", "fechada_perdida"}


@pytest.mark.asyncio
async def test_seeding_is_idempotent(authed_client: AsyncClient):
    await _phases(authed_client)
    phases = await _phases(authed_client)
    assert len(phases) == len(DEFAULT_KEYS)


@pytest.mark.asyncio
async def test_create_phase_appends_with_derived_key(authed_client: AsyncClient):
    response = await authed_client.post(
        "/pipeline/fases", json={"nome": "Aguardando Vistoria", "cor": "cyan"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["chave"] == "aguardando_vistoria"
    assert data["ordem"] == 7
    assert data["sistema"] is False

    # Same name again gets a suffixed key
    response = await authed_client.post("/pipeline/fases", json={"nome": "Aguardando Vistoria"})
    assert response.status_code == 201
    assert response.json()["chave"] == "aguardando_vistoria_2"


@pytest.mark.asyncio
async def test_create_phase_at_position_shifts_the_rest(authed_client: AsyncClient):
    response = await authed_client.post(
        "/pipeline/fases", json={"nome": "Análise", "chave": "analise", "ordem": 2}
    )
    assert response.status_code == 201

    phases = await _phases(authed_client)
    assert [p["chave"] for p in phases][:3] == ["nova", "analise", "em_cotacao"]
    assert [p["ordem"] for p in phases] == list(range(1, 8))


@pytest.mark.asyncio
async def test_create_phase_before_closing_phases(authed_client: AsyncClient):
    response = await authed_client.post("/pipeline/fases", json={"nome": "Vistoria", "ordem": 5})
    assert response.status_code == 201

    phases = await _phases(authed_client)
    assert [p["chave"] for p in phases][-3:] == ["vistoria", "fechada_ganha", "fechada_perdida"]


@pytest.mark.asyncio
@pytest.mark.parametrize("ordem", [1, 6])
async def test_create_phase_cannot_displace_system_phases(authed_client: AsyncClient, ordem: int):
    response = await authed_client.post("/pipeline/fases", json={"nome": "Fora", "ordem": ordem})
    assert response.status_code == 400

    phases = await _phases(authed_client)
    assert [p["chave"] for p in phases] == DEFAULT_KEYS

    quote = (await authed_client.post("/cotacoes", json={"ramo": "auto"})).json()
    assert quote["status_pipeline"] == "nova"


@pytest.mark.asyncio
async def test_create_phase_with_taken_key_rejected(authed_client: AsyncClient):
    response = await authed_client.post(
        "/pipeline/fases", json={"nome": "Outra", "chave": "enviada"}
    )
    assert response.status_code == 400
    assert "already exists" in response.json()["error"]


@pytest.mark.asyncio
async def test_create_phase_invalid_color_rejected(authed_client: AsyncClient):
    response = await authed_client.post("/pipeline/fases", json={"nome": "X", "cor": "gold"})
    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request"


@pytest.mark.asyncio
async def test_update_phase_name_and_color(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    target = next(p for p in phases if p["chave"] == "em_cotacao")

    response = await authed_client.put(
        f"/pipeline/fases/{target['id']}", json={"nome": "Cotando", "cor": "orange"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["nome"] == "Cotando"
    assert data["cor"] == "orange"
    assert data["chave"] == "em_cotacao"


@pytest.mark.asyncio
async def test_update_phase_without_changes_rejected(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    response = await authed_client.put(f"/pipeline/fases/{phases[1]['id']}", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_system_phase_cannot_be_deleted(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    won = next(p for p in phases if p["chave"] == "fechada_ganha")

    response = await authed_client.delete(f"/pipeline/fases/{won['id']}")
    assert response.status_code == 400
    assert response.json()["error"] == "System phases cannot be removed"


@pytest.mark.asyncio
async def test_phase_with_quotes_cannot_be_deleted(authed_client: AsyncClient):
    quote = (await authed_client.post("/cotacoes", json={"ramo": "auto", "lead_nome": "Ana"})).json()
    moved = await authed_client.patch(
        f"/cotacoes/{quote['id']}/status", json={"status_pipeline": "em_cotacao"}
    )
    assert moved.status_code == 200

    phases = await _phases(authed_client)
    target = next(p for p in phases if p["chave"] == "em_cotacao")
    response = await authed_client.delete(f"/pipeline/fases/{target['id']}")
    assert response.status_code == 400
    assert "still has 1 quote" in response.json()["error"]


@pytest.mark.asyncio
async def test_delete_phase_closes_the_gap(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    target = next(p for p in phases if p["chave"] == "enviada")

    response = await authed_client.delete(f"/pipeline/fases/{target['id']}")
    assert response.status_code == 204

    phases = await _phases(authed_client)
    assert "enviada" not in [p["chave"] for p in phases]
    assert [p["ordem"] for p in phases] == [1, 2, 3, 4, 5]

    response = await authed_client.delete(f"/pipeline/fases/{target['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_recreating_removed_key_reactivates_row(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    target = next(p for p in phases if p["chave"] == "em_negociacao")
    await authed_client.delete(f"/pipeline/fases/{target['id']}")

    response = await authed_client.post(
        "/pipeline/fases", json={"nome": "Negociando", "chave": "em_negociacao"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["id"] == target["id"]
    assert data["nome"] == "Negociando"
    assert data["ativo"] is True
    assert data["ordem"] == 6


@pytest.mark.asyncio
async def test_reorder_phases(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    ids = [p["id"] for p in phases]
    # Swap em_cotacao and em_negociacao
    ids[1], ids[3] = ids[3], ids[1]

    response = await authed_client.post("/pipeline/fases/reordenar", json={"ids": ids})
    assert response.status_code == 200
    data = response.json()
    assert [p["chave"] for p in data] == [
        "nova",
        "em_negociacao",
        "enviada",
        "em_cotacao",
        "fechada_ganha",
        "fechada_perdida",
    ]
    assert [p["ordem"] for p in data] == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_reorder_with_ordem_items(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    items = [{"id": p["id"], "ordem": p["ordem"] * 10} for p in phases]
    items[1]["ordem"], items[2]["ordem"] = items[2]["ordem"], items[1]["ordem"]

    response = await authed_client.post("/pipeline/fases/reordenar", json={"ordem": items})
    assert response.status_code == 200
    data = response.json()
    assert [p["chave"] for p in data][1:3] == ["enviada", "em_cotacao"]
    assert [p["ordem"] for p in data] == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_reorder_cannot_move_system_phase(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    ids = [p["id"] for p in phases]
    ids[0], ids[1] = ids[1], ids[0]

    response = await authed_client.post("/pipeline/fases/reordenar", json={"ids": ids})
    assert response.status_code == 400
    assert "cannot be moved" in response.json()["error"]


@pytest.mark.asyncio
async def test_reorder_must_list_every_phase(authed_client: AsyncClient):
    phases = await _phases(authed_client)
    ids = [p["id"] for p in phases][:-1]

    response = await authed_client.post("/pipeline/fases/reordenar", json={"ids": ids})
    assert response.status_code == 400


def test_entry_phase_skips_terminal_phases(db, test_org):
    entry = pipeline_service.get_entry_phase(db, test_org.id)
    assert entry.chave == "nova"

    # Entry phase removed from the front: next open phase takes over
    phases = pipeline_service.get_phases(db, test_org.id)
    nova = phases[0]
    nova.sistema = False
    db.commit()
    pipeline_service.delete_phase(db, nova)

    assert pipeline_service.get_entry_phase(db, test_org.id).chave == "em_cotacao"
