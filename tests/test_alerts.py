"""Tests for user alerts and the periodic alert checks."""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient

from brokerage_crm.db.enums import AlertPriority, AlertType, Role
from brokerage_crm.db.models import (
    Alert,
    Claim,
    Client,
    Commission,
    Membership,
    Policy,
    Task,
    User,
)
from brokerage_crm.services import alert_service
from brokerage_crm.utils.dates import utcnow

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def _member(db, org, role: Role = Role.CORRETOR) -> User:
    user = User(email=f"member-{uuid.uuid4().hex[:8]}@test.com", display_name="Outro Corretor")
    db.add(user)
    db.flush()
    db.add(Membership(user_id=user.id, organization_id=org.id, role=role.value))
    db.commit()
    return user


def _client(db, org, **fields) -> Client:
    client = Client(organization_id=org.id, nome=fields.pop("nome", "Maria Souza"), **fields)
    db.add(client)
    db.commit()
    return client


def _policy(db, org, client, days_left: int, status: str = "vigente", numero: str = "AP-1") -> Policy:
    policy = Policy(
        organization_id=org.id,
        cliente_id=client.id,
        numero_apolice=numero,
        seguradora="Porto",
        ramo="auto",
        status=status,
        data_fim=TODAY + timedelta(days=days_left),
    )
    db.add(policy)
    db.commit()
    return policy


def _alerts(db, user, tipo: AlertType) -> list[Alert]:
    return db.query(Alert).filter(
        Alert.usuario_id == user.id,
        Alert.tipo == tipo.value,
    ).order_by(Alert.data_referencia).all()


# =============================================================================
# Periodic checks
# =============================================================================

def test_renewal_alerts_by_days_left(db, test_org, test_user):
    client = _client(db, test_org)
    for days, numero in ((5, "AP-5"), (10, "AP-10"), (20, "AP-20"), (45, "AP-45")):
        _policy(db, test_org, client, days, numero=numero)
    _policy(db, test_org, client, 5, status="cancelada", numero="AP-X")
    _policy(db, test_org, client, -1, numero="AP-OLD")

    created = alert_service.check_policy_renewals(db, test_org.id, NOW)
    db.commit()

    assert created == 3
    alerts = _alerts(db, test_user, AlertType.RENOVACAO_APOLICE)
    assert [a.titulo for a in alerts] == ["Renovação: AP-5", "Renovação: AP-10", "Renovação: AP-20"]
    assert [a.prioridade for a in alerts] == ["urgente", "alta", "media"]
    assert "vence em 5 dias" in alerts[0].mensagem
    assert alerts[0].entidade_tipo == "apolice"

    # Same policies, same users: nothing new
    assert alert_service.check_policy_renewals(db, test_org.id, NOW + timedelta(days=1)) == 0


def test_renewal_alerts_reach_every_member(db, test_org, test_user):
    other = _member(db, test_org)
    _policy(db, test_org, _client(db, test_org), 3)

    assert alert_service.check_policy_renewals(db, test_org.id, NOW) == 2
    db.commit()
    assert len(_alerts(db, test_user, AlertType.RENOVACAO_APOLICE)) == 1
    assert len(_alerts(db, other, AlertType.RENOVACAO_APOLICE)) == 1


def test_overdue_task_alert_goes_to_owner(db, test_org, test_user):
    other = _member(db, test_org)
    for owner, days_late in ((other, 10), (test_user, 2), (test_user, 0)):
        db.add(Task(
            organization_id=test_org.id,
            usuario_id=owner.id,
            descricao=f"Tarefa {days_late}",
            prioridade="media",
            data_vencimento=TODAY - timedelta(days=days_late),
        ))
    db.add(Task(
        organization_id=test_org.id,
        usuario_id=test_user.id,
        descricao="Feita",
        data_vencimento=TODAY - timedelta(days=30),
        concluida=True,
    ))
    db.commit()

    assert alert_service.check_overdue_tasks(db, test_org.id, NOW) == 2
    db.commit()

    [mine] = _alerts(db, test_user, AlertType.TAREFA_ATRASADA)
    [theirs] = _alerts(db, other, AlertType.TAREFA_ATRASADA)
    assert mine.prioridade == AlertPriority.ALTA.value
    assert mine.titulo == "Tarefa atrasada: Tarefa 2"
    assert theirs.prioridade == AlertPriority.URGENTE.value
    assert alert_service.check_overdue_tasks(db, test_org.id, NOW) == 0


def test_stale_claim_alert_repeats_weekly(db, test_org, test_user):
    client = _client(db, test_org)
    for numero, status, age in (
        ("SIN-2026-00001", "em_analise", 45),
        ("SIN-2026-00002", "pago", 90),
        ("SIN-2026-00003", "notificado", 10),
    ):
        db.add(Claim(
            organization_id=test_org.id,
            cliente_id=client.id,
            numero_sinistro=numero,
            tipo="Colisão",
            status=status,
            created_at=NOW - timedelta(days=age),
        ))
    db.commit()

    assert alert_service.check_stale_claims(db, test_org.id, NOW) == 1
    db.commit()
    [alert] = _alerts(db, test_user, AlertType.SINISTRO_PENDENTE)
    assert alert.titulo == "Sinistro pendente: SIN-2026-00001"
    assert alert.prioridade == "alta"

    assert alert_service.check_stale_claims(db, test_org.id, NOW + timedelta(days=3)) == 0
    assert alert_service.check_stale_claims(db, test_org.id, NOW + timedelta(days=8)) == 1


def test_pending_commissions_consolidated_daily(db, test_org, test_user):
    policy = _policy(db, test_org, _client(db, test_org), 200)
    for liquido, status in ((3000, "pendente"), (2500.5, "pendente"), (9000, "recebida")):
        db.add(Commission(
            organization_id=test_org.id,
            apolice_id=policy.id,
            valor_bruto=Decimal(str(liquido)),
            valor_liquido=Decimal(str(liquido)),
            descontos_json={},
            status=status,
        ))
    db.commit()

    assert alert_service.check_pending_commissions(db, test_org.id, NOW) == 1
    db.commit()
    [alert] = _alerts(db, test_user, AlertType.COMISSAO_PENDENTE)
    assert alert.titulo == "2 comissões pendentes"
    assert "R$ 5500.50" in alert.mensagem
    assert alert.prioridade == "alta"

    assert alert_service.check_pending_commissions(db, test_org.id, NOW + timedelta(hours=6)) == 0
    assert alert_service.check_pending_commissions(db, test_org.id, NOW + timedelta(days=2)) == 1


def test_no_commission_alert_without_pending(db, test_org, test_user):
    assert alert_service.check_pending_commissions(db, test_org.id, NOW) == 0


def test_birthday_alerts(db, test_org, test_user):
    today_client = _client(db, test_org, nome="Ana", data_nascimento=date(1990, 3, 10))
    _client(db, test_org, nome="Beto", data_nascimento=date(1985, 3, 14))
    _client(db, test_org, nome="Caio", data_nascimento=date(1985, 3, 30))
    _client(db, test_org, nome="Duda", data_nascimento=date(1985, 3, 11), ativo=False)

    assert alert_service.check_client_birthdays(db, test_org.id, NOW) == 2
    db.commit()

    alerts = _alerts(db, test_user, AlertType.ANIVERSARIO_CLIENTE)
    assert [a.titulo for a in alerts] == ["Aniversário hoje: Ana", "Aniversário em 4 dias: Beto"]
    assert [a.prioridade for a in alerts] == ["alta", "baixa"]
    assert alerts[0].entidade_id == today_client.id
    assert alerts[1].data_referencia == date(2026, 3, 14)

    assert alert_service.check_client_birthdays(db, test_org.id, NOW + timedelta(days=1)) == 0


def test_run_checks_reports_per_check(db, test_org, test_user):
    client = _client(db, test_org, data_nascimento=date(1990, 3, 12))
    _policy(db, test_org, client, 8)

    result = alert_service.run_checks(db, test_org.id, NOW)
    assert result == {
        "renovacoes": 1,
        "tarefas": 0,
        "sinistros": 0,
        "comissoes": 0,
        "aniversarios": 1,
        "total": 2,
    }
    assert alert_service.run_checks(db, test_org.id, NOW)["total"] == 0


def test_purge_removes_only_old_read_alerts(db, test_org, test_user):
    old_read = alert_service.create_alert(
        db, test_org.id, test_user.id, AlertType.MANUAL, "Lido antigo", "x", now=NOW - timedelta(days=100)
    )
    old_read.lido = True
    alert_service.create_alert(
        db, test_org.id, test_user.id, AlertType.MANUAL, "Não lido antigo", "x", now=NOW - timedelta(days=100)
    )
    recent_read = alert_service.create_alert(
        db, test_org.id, test_user.id, AlertType.MANUAL, "Lido recente", "x", now=NOW - timedelta(days=5)
    )
    recent_read.lido = True
    db.commit()

    assert alert_service.purge_old_alerts(db, now=NOW) == 1
    assert sorted(a.titulo for a in db.query(Alert).all()) == ["Lido recente", "Não lido antigo"]


# =============================================================================
# API
# =============================================================================

def _seed_alerts(db, org, user) -> list[Alert]:
    alerts = [
        alert_service.create_alert(
            db, org.id, user.id, tipo, titulo, "mensagem", prioridade=prioridade,
            now=NOW + timedelta(minutes=i),
        )
        for i, (tipo, titulo, prioridade) in enumerate((
            (AlertType.RENOVACAO_APOLICE, "Renovação", AlertPriority.MEDIA),
            (AlertType.TAREFA_ATRASADA, "Tarefa", AlertPriority.URGENTE),
            (AlertType.RENOVACAO_APOLICE, "Renovação 2", AlertPriority.BAIXA),
        ))
    ]
    db.commit()
    return alerts


@pytest.mark.asyncio
async def test_list_alerts_newest_first_with_filters(authed_client: AsyncClient, db, test_org, test_user):
    _seed_alerts(db, test_org, test_user)
    # Another user's alert is never listed
    alert_service.create_alert(db, test_org.id, _member(db, test_org).id, AlertType.MANUAL, "Outro", "x")
    db.commit()

    body = (await authed_client.get("/alertas", params={"limit": 2})).json()
    assert body["total"] == 3
    assert body["page"] == 1
    assert [a["titulo"] for a in body["data"]] == ["Renovação 2", "Tarefa"]

    body = (await authed_client.get("/alertas", params={"tipo": "renovacao_apolice"})).json()
    assert body["total"] == 2

    response = await authed_client.get("/alertas", params={"tipo": "desconhecido"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_mark_read_and_unread_filter(authed_client: AsyncClient, db, test_org, test_user):
    first, _, _ = _seed_alerts(db, test_org, test_user)

    response = await authed_client.patch(f"/alertas/{first.id}/lido")
    assert response.status_code == 200
    assert response.json()["lido"] is True
    assert response.json()["lido_em"] is not None

    body = (await authed_client.get("/alertas", params={"nao_lidos": True})).json()
    assert body["total"] == 2

    response = await authed_client.post("/alertas/marcar-todos-lidos")
    assert response.json() == {"count": 2}
    assert (await authed_client.get("/alertas/contagem")).json() == {"total": 0, "por_tipo": {}}


@pytest.mark.asyncio
async def test_summary_orders_by_priority(authed_client: AsyncClient, db, test_org, test_user):
    _seed_alerts(db, test_org, test_user)

    body = (await authed_client.get("/alertas/resumo")).json()
    assert body["urgentes"] == 1
    assert body["media_prioridade"] == 1
    assert body["baixa_prioridade"] == 1
    assert body["alta_prioridade"] == 0
    assert body["total_nao_lidos"] == 3
    assert [a["titulo"] for a in body["alertas"]] == ["Tarefa", "Renovação", "Renovação 2"]


@pytest.mark.asyncio
async def test_unread_count_by_type(authed_client: AsyncClient, db, test_org, test_user):
    _seed_alerts(db, test_org, test_user)

    body = (await authed_client.get("/alertas/contagem")).json()
    assert body == {"total": 3, "por_tipo": {"renovacao_apolice": 2, "tarefa_atrasada": 1}}


@pytest.mark.asyncio
async def test_manual_alert_and_delete(authed_client: AsyncClient):
    response = await authed_client.post(
        "/alertas",
        json={"titulo": "Ligar para Porto", "mensagem": "Confirmar vistoria", "prioridade": "alta"},
    )
    assert response.status_code == 201
    alert = response.json()
    assert alert["tipo"] == "manual"
    assert alert["lido"] is False

    response = await authed_client.get(f"/alertas/{alert['id']}")
    assert response.status_code == 200

    response = await authed_client.delete(f"/alertas/{alert['id']}")
    assert response.status_code == 204
    response = await authed_client.get(f"/alertas/{alert['id']}")
    assert response.status_code == 404

    response = await authed_client.post("/alertas", json={"titulo": "Sem mensagem"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_read_alerts(authed_client: AsyncClient, db, test_org, test_user):
    first, second, _ = _seed_alerts(db, test_org, test_user)
    await authed_client.patch(f"/alertas/{first.id}/lido")
    await authed_client.patch(f"/alertas/{second.id}/lido")

    response = await authed_client.delete("/alertas/lidos/todos")
    assert response.json() == {"count": 2}
    assert (await authed_client.get("/alertas")).json()["total"] == 1


@pytest.mark.asyncio
async def test_other_users_alert_is_not_found(authed_client: AsyncClient, db, test_org):
    other = _member(db, test_org)
    alert = alert_service.create_alert(db, test_org.id, other.id, AlertType.MANUAL, "Privado", "x")
    db.commit()

    assert (await authed_client.get(f"/alertas/{alert.id}")).status_code == 404
    assert (await authed_client.patch(f"/alertas/{alert.id}/lido")).status_code == 404
    assert (await authed_client.delete(f"/alertas/{alert.id}")).status_code == 404


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin_role(authed_client: AsyncClient, db, test_org, test_user):
    response = await authed_client.post("/alertas/admin/verificar")
    assert response.status_code == 403
    assert (await authed_client.get("/alertas/admin/estatisticas")).status_code == 403

    db.query(Membership).filter(Membership.user_id == test_user.id).update({"role": Role.ADMIN.value})
    db.commit()
    client = _client(db, test_org)
    db.add(Policy(
        organization_id=test_org.id,
        cliente_id=client.id,
        seguradora="Porto",
        ramo="auto",
        status="vigente",
        data_fim=utcnow().date() + timedelta(days=3),
    ))
    db.commit()

    response = await authed_client.post("/alertas/admin/verificar")
    assert response.status_code == 200
    assert response.json()["renovacoes"] == 1
    assert response.json()["total"] == 1

    stats = (await authed_client.get("/alertas/admin/estatisticas")).json()
    assert stats == {
        "total": 1,
        "nao_lidos": 1,
        "por_tipo": {"renovacao_apolice": 1},
        "por_prioridade": {"urgente": 1},
    }
