"""Tests for the kanban board builder and the sales dashboards."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from brokerage_crm.schemas.quote import QuoteCreate
from brokerage_crm.services import dashboard_service, quote_service
from brokerage_crm.services.pipeline_board import build_board, percent

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _phase(chave: str, ordem: int, sistema: bool = False):
    return SimpleNamespace(chave=chave, nome=chave.title(), cor="slate", ordem=ordem, sistema=sistema)


def _quote(status: str, valor=None, **overrides):
    fields = dict(
        id=uuid.uuid4(),
        client=None,
        lead_nome="Lead",
        lead_telefone=None,
        lead_email=None,
        ramo="auto",
        dados_cotacao={},
        valor_estimado=valor,
        data_criacao=NOW - timedelta(days=10),
        data_envio=None,
        proximo_contato=None,
        updated_at=NOW - timedelta(days=3),
        motivo_perda=None,
        notas_negociacao=None,
        status_pipeline=status,
        version=1,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


PHASES = [
    _phase("nova", 1, sistema=True),
    _phase("enviada", 2),
    _phase("fechada_ganha", 3, sistema=True),
    _phase("fechada_perdida", 4, sistema=True),
]


def _build(quotes, **kwargs):
    return build_board(
        PHASES,
        quotes,
        won_key="fechada_ganha",
        lost_key="fechada_perdida",
        now=NOW,
        **kwargs,
    )


def test_percent_rounds_halves_up():
    assert percent(1, 8) == 13
    assert percent(1, 3) == 33
    assert percent(2, 3) == 67
    assert percent(5, 0) == 0


def test_columns_follow_phase_order():
    board = build_board(list(reversed(PHASES)), [], now=NOW)
    assert [c["chave"] for c in board["colunas"]] == [
        "nova",
        "enviada",
        "fechada_ganha",
        "fechada_perdida",
    ]


def test_quotes_grouped_by_status():
    board = _build([_quote("nova", 100), _quote("nova", 50), _quote("enviada", 200)])
    columns = {c["chave"]: c for c in board["colunas"]}

    assert columns["nova"]["total"] == 2
    assert columns["nova"]["valor"] == 150
    assert columns["enviada"]["total"] == 1
    assert columns["fechada_ganha"]["cotacoes"] == []


def test_unknown_status_goes_to_separate_bucket():
    stale = _quote("arquivada", 80)
    board = _build([_quote("nova"), stale])

    assert [card["id"] for card in board["desconhecidas"]] == [stale.id]
    assert board["metricas"]["total_cotacoes"] == 2
    assert board["metricas"]["em_andamento"] == 2


def test_hiding_closed_columns_keeps_metrics():
    quotes = [
        _quote("nova", 100),
        _quote("fechada_ganha", 300),
        _quote("fechada_ganha", 300),
        _quote("fechada_perdida", 50),
    ]
    shown = _build(quotes, show_closed=True)
    hidden = _build(quotes, show_closed=False)

    assert [c["chave"] for c in hidden["colunas"]] == ["nova", "enviada"]
    assert hidden["metricas"] == shown["metricas"]
    assert shown["metricas"]["ganhas"] == 2
    assert shown["metricas"]["perdidas"] == 1
    assert shown["metricas"]["taxa_conversao"] == 67
    assert shown["metricas"]["valor_pipeline_ativo"] == 100


def test_card_value_falls_back_to_quote_data():
    board = _build([_quote("nova", None, dados_cotacao={"valor_estimado": "1234.5", "modelo": "Onix"})])
    card = board["colunas"][0]["cotacoes"][0]

    assert card["valor"] == 1234.5
    assert card["modelo"] == "Onix"


def test_card_contact_and_idle_days():
    client = SimpleNamespace(nome="Maria Souza", telefone="1199", email="maria@x.com")
    board = _build([
        _quote("nova", client=client),
        _quote("nova", lead_nome=None, updated_at=(NOW - timedelta(days=7)).replace(tzinfo=None)),
    ])
    first, second = board["colunas"][0]["cotacoes"]

    assert first["cliente"] == "Maria Souza"
    assert first["telefone"] == "1199"
    assert first["dias_parado"] == 3
    assert second["cliente"] == "Lead (Sem Nome)"
    assert second["dias_parado"] == 7


def test_no_closed_quotes_gives_zero_conversion():
    board = _build([_quote("nova")])
    assert board["metricas"]["taxa_conversao"] == 0


# =============================================================================
# Endpoints
# =============================================================================

@pytest.mark.asyncio
async def test_board_endpoint(authed_client: AsyncClient):
    created = await authed_client.post(
        "/cotacoes", json={"ramo": "auto", "lead_nome": "Ana", "valor_estimado": 700}
    )
    assert created.status_code == 201

    response = await authed_client.get("/pipeline/quadro")
    assert response.status_code == 200
    board = response.json()
    assert [c["chave"] for c in board["colunas"]][0] == "nova"
    assert board["colunas"][0]["cotacoes"][0]["cliente"] == "Ana"
    assert board["metricas"]["valor_pipeline_ativo"] == 700

    response = await authed_client.get("/dashboard/pipeline-vendas", params={"mostrar_fechadas": "false"})
    assert response.status_code == 200
    keys = [c["chave"] for c in response.json()["colunas"]]
    assert "fechada_ganha" not in keys
    assert "fechada_perdida" not in keys


def test_conversion_metrics(db, test_org, test_user):
    def new_quote(ramo: str, valor: float):
        return quote_service.create_quote(
            db, test_org.id, test_user.id, QuoteCreate(ramo=ramo, lead_nome="Lead", valor_estimado=valor)
        )

    won = new_quote("auto", 1000)
    lost = new_quote("auto", 400)
    sent = new_quote("vida", 300)
    new_quote("vida", 200)

    quote_service.change_status(db, won, test_user.id, "fechada_ganha")
    quote_service.change_status(db, lost, test_user.id, "fechada_perdida", motivo_perda="preco")
    quote_service.change_status(db, sent, test_user.id, "enviada")

    metrics = dashboard_service.conversion_metrics(db, test_org.id, periodo=30)

    assert metrics["total_cotacoes"] == 4
    assert metrics["por_status"] == {"fechada_ganha": 1, "fechada_perdida": 1, "enviada": 1, "nova": 1}
    assert metrics["por_ramo"] == {"auto": {"total": 2, "ganhas": 1}, "vida": {"total": 2, "ganhas": 0}}
    assert metrics["taxas"] == {"conversao_geral": 50, "envio_proposta": 75, "fechamento": 33}
    assert metrics["valor_total"] == {"pipeline": 500.0, "ganho": 1000.0, "perdido": 400.0}


def test_conversion_metrics_window_excludes_old_quotes(db, test_org, test_user):
    quote = quote_service.create_quote(
        db, test_org.id, test_user.id, QuoteCreate(ramo="auto", lead_nome="Lead")
    )
    later = datetime.now(timezone.utc) + timedelta(days=45)

    metrics = dashboard_service.conversion_metrics(db, test_org.id, periodo=30, now=later)

    assert metrics["total_cotacoes"] == 0
    assert metrics["taxas"]["envio_proposta"] == 0
    assert quote.status_pipeline == "nova"


@pytest.mark.asyncio
async def test_conversion_metrics_endpoint_validates_period(authed_client: AsyncClient):
    response = await authed_client.get("/dashboard/metricas-conversao", params={"periodo": 0})
    assert response.status_code == 422

    response = await authed_client.get("/dashboard/metricas-conversao", params={"periodo": 7})
    assert response.status_code == 200
    assert response.json()["periodo"] == 7
