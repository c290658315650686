"""Tests for commission rates, commission calculation and the finance dashboard."""

from datetime import date

import pytest
from httpx import AsyncClient

from brokerage_crm.services import commission_service


async def _policy(client: AsyncClient, seguradora: str = "Porto", ramo: str = "auto", premio: float = 2000) -> dict:
    cid = (await client.post("/clientes", json={"nome": "Maria Souza"})).json()["id"]
    response = await client.post(
        "/apolices",
        json={
            "cliente_id": cid,
            "seguradora": seguradora,
            "ramo": ramo,
            "valor_premio": premio,
            "data_inicio": "2026-02-01",
        },
    )
    assert response.status_code == 201
    return response.json()


async def _rate(client: AsyncClient, seguradora: str, ramo: str = "todos", **percents) -> dict:
    payload = {"seguradora": seguradora, "ramo": ramo, "percentual_comissao": 10}
    payload.update(percents)
    response = await client.post("/financeiro/comissao-config", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_calculate_commission_with_specific_rate(authed_client: AsyncClient):
    policy = await _policy(authed_client)
    await _rate(authed_client, "Porto", "auto", percentual_comissao=15, percentual_repasse=20, percentual_imposto=5)
    await _rate(authed_client, "Porto", "todos", percentual_comissao=8)

    response = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": policy["id"]})
    assert response.status_code == 201
    body = response.json()

    assert body["calculo"] == {
        "premio": 2000.0,
        "percentual_comissao": 15.0,
        "valor_bruto": 300.0,
        "percentual_repasse": 20.0,
        "valor_repasse": 60.0,
        "percentual_imposto": 5.0,
        "valor_imposto": 15.0,
        "valor_liquido": 225.0,
    }
    commission = body["comissao"]
    assert commission["valor_bruto"] == 300.0
    assert commission["valor_liquido"] == 225.0
    assert commission["status"] == "pendente"
    assert commission["data_receita"] == "2026-02-01"
    assert commission["descontos_json"]["repasse"] == 60.0
    assert commission["apolice"]["seguradora"] == "Porto"


@pytest.mark.asyncio
async def test_rate_falls_back_to_insurer_wide_then_default(authed_client: AsyncClient):
    await _rate(authed_client, "Porto", "todos", percentual_comissao=8)
    await _rate(authed_client, "Outros", "todos", percentual_comissao=5)

    porto = await _policy(authed_client, "Porto", "residencial", premio=1000)
    other = await _policy(authed_client, "Tokio", "vida", premio=1000)

    r1 = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": porto["id"]})
    r2 = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": other["id"]})

    assert r1.json()["calculo"]["valor_bruto"] == 80.0
    assert r2.json()["calculo"]["valor_bruto"] == 50.0


@pytest.mark.asyncio
async def test_inactive_rate_is_skipped(authed_client: AsyncClient):
    specific = await _rate(authed_client, "Porto", "auto", percentual_comissao=15)
    await _rate(authed_client, "Porto", "todos", percentual_comissao=8)
    await authed_client.put(f"/financeiro/comissao-config/{specific['id']}", json={"ativo": False})

    policy = await _policy(authed_client)
    response = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": policy["id"]})
    assert response.json()["calculo"]["percentual_comissao"] == 8.0


@pytest.mark.asyncio
async def test_calculate_without_rate_rejected(authed_client: AsyncClient):
    policy = await _policy(authed_client)
    response = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": policy["id"]})
    assert response.status_code == 400
    assert response.json()["error"] == "No commission rate configured for this insurer/line"


@pytest.mark.asyncio
async def test_calculate_twice_rejected(authed_client: AsyncClient):
    policy = await _policy(authed_client)
    await _rate(authed_client, "Porto")

    first = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": policy["id"]})
    second = await authed_client.post("/financeiro/calcular-comissao", json={"apolice_id": policy["id"]})
    assert first.status_code == 201
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_rate_rejected(authed_client: AsyncClient):
    await _rate(authed_client, "Porto", "auto")
    response = await authed_client.post(
        "/financeiro/comissao-config",
        json={"seguradora": "Porto", "ramo": "auto", "percentual_comissao": 12},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rate_percent_bounds(authed_client: AsyncClient):
    response = await authed_client.post(
        "/financeiro/comissao-config",
        json={"seguradora": "Porto", "percentual_comissao": 120},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_commission_crud_and_month_filter(authed_client: AsyncClient):
    policy = await _policy(authed_client)

    created = await authed_client.post(
        "/financeiro/comissoes",
        json={
            "apolice_id": policy["id"],
            "valor_bruto": 300,
            "valor_liquido": 250,
            "data_receita": "2026-03-05",
        },
    )
    assert created.status_code == 201
    commission = created.json()

    march = (await authed_client.get("/financeiro/comissoes", params={"mes": "2026-03"})).json()
    april = (await authed_client.get("/financeiro/comissoes", params={"mes": "2026-04"})).json()
    assert march["total"] == 1
    assert march["data"][0]["apolice"]["id"] == policy["id"]
    assert april == {"data": [], "total": 0}

    bad = await authed_client.get("/financeiro/comissoes", params={"mes": "2026-3"})
    assert bad.status_code == 422

    updated = await authed_client.put(
        f"/financeiro/comissoes/{commission['id']}", json={"status": "recebida"}
    )
    assert updated.json()["status"] == "recebida"

    deleted = await authed_client.delete(f"/financeiro/comissoes/{commission['id']}")
    assert deleted.status_code == 204


def test_month_bounds():
    assert commission_service.month_bounds("2026-02") == (date(2026, 2, 1), date(2026, 2, 28))
    assert commission_service.month_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    with pytest.raises(ValueError):
        commission_service.month_bounds("2026-13")


@pytest.mark.asyncio
async def test_finance_dashboard(authed_client: AsyncClient, db, test_org):
    policy = await _policy(authed_client)
    today = date.today()

    for status, liquido, receita in (
        ("pendente", 100, today),
        ("pendente", 50, today),
        ("recebida", 200, today),
        ("paga", 70, date(2020, 1, 10)),
    ):
        response = await authed_client.post(
            "/financeiro/comissoes",
            json={
                "apolice_id": policy["id"],
                "valor_bruto": liquido,
                "valor_liquido": liquido,
                "status": status,
                "data_receita": receita.isoformat(),
            },
        )
        assert response.status_code == 201

    dashboard = commission_service.finance_dashboard(db, test_org.id, today=today)
    assert dashboard == {
        "receita_mes": 200.0,
        "comissoes_pendentes": 2,
        "valor_pendente": 150.0,
        "total_recebido": 270.0,
    }

    response = await authed_client.get("/financeiro/dashboard")
    assert response.status_code == 200
