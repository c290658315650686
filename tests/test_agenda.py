"""Tests for agenda tasks and the calendar."""

from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from brokerage_crm.db.models import Quote, Task
from brokerage_crm.services import calendar_service
from brokerage_crm.utils.dates import utcnow


async def _task(client: AsyncClient, **fields) -> dict:
    payload = {"descricao": "Ligar para cliente", "data_vencimento": "2026-03-10"}
    payload.update(fields)
    response = await client.post("/agenda/tarefas", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def _client_with_policy(client: AsyncClient, data_fim: str = "2026-03-15") -> tuple[dict, dict]:
    customer = (await client.post("/clientes", json={"nome": "Maria Souza"})).json()
    policy = (await client.post(
        "/apolices",
        json={
            "cliente_id": customer["id"],
            "numero_apolice": "AP-1",
            "seguradora": "Porto",
            "ramo": "auto",
            "data_fim": data_fim,
        },
    )).json()
    return customer, policy


# =============================================================================
# Tasks
# =============================================================================

@pytest.mark.asyncio
async def test_create_task_defaults_owner_to_creator(authed_client: AsyncClient, test_user):
    data = await _task(authed_client, descricao="<b>Enviar</b> proposta", prioridade="alta")

    assert data["usuario_id"] == str(test_user.id)
    assert data["descricao"] == "Enviar proposta"
    assert data["prioridade"] == "alta"
    assert data["tipo"] == "outro"
    assert data["concluida"] is False


@pytest.mark.asyncio
async def test_create_task_checks_links(authed_client: AsyncClient):
    customer, policy = await _client_with_policy(authed_client)
    other = (await authed_client.post("/clientes", json={"nome": "João"})).json()

    await _task(authed_client, cliente_id=customer["id"], apolice_id=policy["id"])

    response = await authed_client.post(
        "/agenda/tarefas",
        json={"descricao": "X", "data_vencimento": "2026-03-10", "cliente_id": other["id"], "apolice_id": policy["id"]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Policy does not belong to this client"

    response = await authed_client.post(
        "/agenda/tarefas",
        json={"descricao": "X", "data_vencimento": "2026-03-10", "usuario_id": "00000000-0000-0000-0000-000000000001"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_toggle_and_update_task(authed_client: AsyncClient):
    task = await _task(authed_client)
    url = f"/agenda/tarefas/{task['id']}"

    response = await authed_client.patch(f"{url}/toggle")
    assert response.json()["concluida"] is True
    assert response.json()["concluida_em"] is not None

    response = await authed_client.patch(f"{url}/toggle")
    assert response.json()["concluida"] is False
    assert response.json()["concluida_em"] is None

    response = await authed_client.put(url, json={"prioridade": "baixa", "concluida": True})
    assert response.status_code == 200
    assert response.json()["prioridade"] == "baixa"
    assert response.json()["concluida"] is True

    response = await authed_client.put(url, json={"descricao": "<p></p>"})
    assert response.status_code == 400
    assert (await authed_client.get(url)).json()["descricao"] == "Ligar para cliente"


@pytest.mark.asyncio
async def test_list_tasks_filters_and_order(authed_client: AsyncClient):
    late = await _task(authed_client, data_vencimento="2026-03-20", prioridade="alta")
    early = await _task(authed_client, data_vencimento="2026-03-01", tipo="email")
    await authed_client.patch(f"/agenda/tarefas/{early['id']}/toggle")

    body = (await authed_client.get("/agenda/tarefas")).json()
    assert body["total"] == 2
    assert [t["id"] for t in body["data"]] == [early["id"], late["id"]]

    pending = (await authed_client.get("/agenda/tarefas", params={"status": "pendentes"})).json()
    assert [t["id"] for t in pending["data"]] == [late["id"]]

    emails = (await authed_client.get("/agenda/tarefas", params={"tipo": "email"})).json()
    assert [t["id"] for t in emails["data"]] == [early["id"]]


@pytest.mark.asyncio
async def test_task_stats(authed_client: AsyncClient):
    today = utcnow().date()
    await _task(authed_client, data_vencimento=today.isoformat(), prioridade="alta")
    await _task(authed_client, data_vencimento=(today - timedelta(days=3)).isoformat())
    done = await _task(authed_client, data_vencimento=(today - timedelta(days=3)).isoformat())
    await authed_client.patch(f"/agenda/tarefas/{done['id']}/toggle")

    response = await authed_client.get("/agenda/tarefas/stats/summary")
    assert response.status_code == 200
    assert response.json() == {
        "total": 3,
        "pendentes": 2,
        "concluidas": 1,
        "hoje": 1,
        "atrasadas": 1,
        "alta_prioridade": 1,
    }


@pytest.mark.asyncio
async def test_delete_task(authed_client: AsyncClient):
    task = await _task(authed_client)

    response = await authed_client.delete(f"/agenda/tarefas/{task['id']}")
    assert response.status_code == 204
    response = await authed_client.get(f"/agenda/tarefas/{task['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleting_client_keeps_tasks_unlinked(authed_client: AsyncClient, db):
    customer, policy = await _client_with_policy(authed_client)
    task = await _task(authed_client, cliente_id=customer["id"], apolice_id=policy["id"])

    response = await authed_client.delete(f"/clientes/{customer['id']}")
    assert response.status_code == 204

    db.expire_all()
    kept = db.query(Task).one()
    assert str(kept.id) == task["id"]
    assert kept.cliente_id is None
    assert kept.apolice_id is None


# =============================================================================
# Calendar
# =============================================================================

@pytest.mark.asyncio
async def test_calendar_merges_sources_by_date(authed_client: AsyncClient):
    customer, policy = await _client_with_policy(authed_client, data_fim="2026-03-15")
    task = await _task(authed_client, data_vencimento="2026-03-20", prioridade="alta", cliente_id=customer["id"])
    quote = (await authed_client.post(
        "/cotacoes",
        json={"ramo": "auto", "lead_nome": "Ana", "proximo_contato": "2026-03-05T14:00:00Z"},
    )).json()
    # Outside the range
    await _task(authed_client, data_vencimento="2026-04-02")

    response = await authed_client.get(
        "/agenda/calendario", params={"inicio": "2026-03-01", "fim": "2026-03-31"}
    )
    assert response.status_code == 200
    body = response.json()

    assert body["total"] == 3
    assert body["periodo"] == {"inicio": "2026-03-01", "fim": "2026-03-31"}
    assert [e["id"] for e in body["data"]] == [
        f"followup-{quote['id']}",
        f"renovacao-{policy['id']}",
        f"tarefa-{task['id']}",
    ]
    followup, renewal, task_event = body["data"]
    assert followup["data"] == "2026-03-05"
    assert followup["titulo"] == "Follow-up: Ana"
    assert followup["status_pipeline"] == "nova"
    assert renewal["titulo"] == "Renovação: AP-1"
    assert renewal["subtitulo"] == "Porto - auto"
    assert renewal["cliente"] == "Maria Souza"
    assert task_event["cor"] == "red"
    assert task_event["cliente"] == "Maria Souza"


@pytest.mark.asyncio
async def test_calendar_skips_closed_quotes_and_inactive_policies(authed_client: AsyncClient):
    customer, policy = await _client_with_policy(authed_client, data_fim="2026-03-15")
    await authed_client.put(f"/apolices/{policy['id']}", json={"status": "cancelada"})
    quote = (await authed_client.post(
        "/cotacoes", json={"ramo": "auto", "lead_nome": "Ana", "proximo_contato": "2026-03-05T14:00:00Z"}
    )).json()
    await authed_client.patch(
        f"/cotacoes/{quote['id']}/status",
        json={"status_pipeline": "fechada_perdida", "motivo_perda": "preco"},
    )

    body = (await authed_client.get(
        "/agenda/calendario", params={"inicio": "2026-03-01", "fim": "2026-03-31"}
    )).json()
    assert body["data"] == []


@pytest.mark.asyncio
async def test_calendar_rejects_bad_ranges(authed_client: AsyncClient):
    response = await authed_client.get(
        "/agenda/calendario", params={"inicio": "2026-03-31", "fim": "2026-03-01"}
    )
    assert response.status_code == 400

    response = await authed_client.get("/agenda/calendario", params={"inicio": "2026-03-01"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_calendar_day(authed_client: AsyncClient):
    await _client_with_policy(authed_client, data_fim="2026-03-10")
    low = await _task(authed_client, prioridade="baixa")
    high = await _task(authed_client, prioridade="alta")
    await authed_client.patch(f"/agenda/tarefas/{high['id']}/toggle")

    response = await authed_client.get("/agenda/calendario/dia/2026-03-10")
    assert response.status_code == 200
    body = response.json()

    assert body["data"] == "2026-03-10"
    assert [t["referencia_id"] for t in body["tarefas"]] == [high["id"], low["id"]]
    assert len(body["renovacoes"]) == 1
    assert body["resumo"] == {
        "total_tarefas": 2,
        "total_followups": 0,
        "total_renovacoes": 1,
        "tarefas_pendentes": 1,
    }


def test_followup_window_covers_whole_days(db, test_org, test_user):
    late_evening = datetime(2026, 3, 31, 23, 30, tzinfo=timezone.utc)
    db.add(Quote(
        organization_id=test_org.id,
        ramo="vida",
        lead_nome="Beto",
        status_pipeline="nova",
        proximo_contato=late_evening,
    ))
    db.commit()

    calendar = calendar_service.get_calendar(db, test_org.id, date(2026, 3, 31), date(2026, 3, 31))
    assert [e["tipo"] for e in calendar["data"]] == ["followup"]
    assert calendar_service.get_calendar(db, test_org.id, date(2026, 4, 1), date(2026, 4, 1))["total"] == 0
