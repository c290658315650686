"""
Alert Service - in-app alerts for brokers.

Provides CRUD for a user's alerts and the periodic checks that generate them:
- policy renewals coming up
- overdue agenda tasks
- claims open for too long
- pending commissions (one consolidated alert per user per day)
- client birthdays

Checks are idempotent: each one skips an alert the user already has for the
same row (within a window for the recurring kinds), so they can run as often
as needed from the CLI or the admin endpoint.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from brokerage_crm.core.config import settings
from brokerage_crm.db.enums import (
    AlertPriority,
    AlertType,
    ClaimStatus,
    CommissionStatus,
    PolicyStatus,
)
from brokerage_crm.db.models import (
    Alert,
    Claim,
    Client,
    Commission,
    Membership,
    Organization,
    Policy,
)
from brokerage_crm.schemas.alert import AlertCreate
from brokerage_crm.services import task_service
from brokerage_crm.utils.dates import ensure_utc, utcnow
from brokerage_crm.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

_PRIORITY_RANK = {
    AlertPriority.URGENTE.value: 0,
    AlertPriority.ALTA.value: 1,
    AlertPriority.MEDIA.value: 2,
    AlertPriority.BAIXA.value: 3,
}
SUMMARY_LIMIT = 20


# =============================================================================
# Alert CRUD
# =============================================================================

def _already_alerted(
    db: Session,
    user_id: UUID,
    tipo: AlertType,
    entidade_id: UUID | None,
    since: datetime | None = None,
) -> bool:
    query = db.query(Alert.id).filter(
        Alert.usuario_id == user_id,
        Alert.tipo == tipo.value,
    )
    if entidade_id is not None:
        query = query.filter(Alert.entidade_id == entidade_id)
    if since is not None:
        query = query.filter(Alert.created_at >= since)
    return query.first() is not None


def create_alert(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    tipo: AlertType,
    titulo: str,
    mensagem: str,
    prioridade: AlertPriority = AlertPriority.MEDIA,
    entidade_tipo: str | None = None,
    entidade_id: UUID | None = None,
    data_referencia: date | None = None,
    now: datetime | None = None,
) -> Alert:
    """Create an alert (flushed so later dedupe lookups see it). Callers commit."""
    alert = Alert(
        organization_id=org_id,
        usuario_id=user_id,
        tipo=tipo.value,
        titulo=titulo[:255],
        mensagem=mensagem,
        prioridade=prioridade.value,
        entidade_tipo=entidade_tipo,
        entidade_id=entidade_id,
        data_referencia=data_referencia,
        created_at=now or utcnow(),
    )
    db.add(alert)
    db.flush()
    return alert


def create_manual_alert(db: Session, org_id: UUID, user_id: UUID, data: AlertCreate) -> Alert:
    alert = create_alert(
        db,
        org_id,
        user_id,
        tipo=data.tipo,
        titulo=data.titulo,
        mensagem=data.mensagem,
        prioridade=data.prioridade,
        entidade_tipo=data.entidade_tipo,
        entidade_id=data.entidade_id,
        data_referencia=data.data_referencia,
    )
    db.commit()
    db.refresh(alert)
    return alert


def _user_alerts(db: Session, org_id: UUID, user_id: UUID):
    return db.query(Alert).filter(
        Alert.organization_id == org_id,
        Alert.usuario_id == user_id,
    )


def list_alerts(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    pagination: PaginationParams,
    tipo: str | None = None,
    unread_only: bool = False,
) -> tuple[list[Alert], int]:
    """A user's alerts, newest first. Returns (page, total)."""
    query = _user_alerts(db, org_id, user_id)
    if tipo:
        query = query.filter(Alert.tipo == tipo)
    if unread_only:
        query = query.filter(Alert.lido == False)  # noqa: E712
    total = query.count()
    items = query.order_by(Alert.created_at.desc()).offset(
        pagination.offset
    ).limit(pagination.limit).all()
    return items, total


def get_alert(db: Session, org_id: UUID, user_id: UUID, alert_id: UUID) -> Alert | None:
    """Get one of the user's alerts; other users' alerts are not visible."""
    return _user_alerts(db, org_id, user_id).filter(Alert.id == alert_id).first()


def mark_read(db: Session, alert: Alert) -> Alert:
    if not alert.lido:
        alert.lido = True
        alert.lido_em = utcnow()
        db.commit()
        db.refresh(alert)
    return alert


def mark_all_read(db: Session, org_id: UUID, user_id: UUID) -> int:
    """Mark all of the user's alerts as read. Returns count updated."""
    count = _user_alerts(db, org_id, user_id).filter(
        Alert.lido == False,  # noqa: E712
    ).update({Alert.lido: True, Alert.lido_em: utcnow()}, synchronize_session=False)
    db.commit()
    return count


def delete_alert(db: Session, alert: Alert) -> None:
    db.delete(alert)
    db.commit()


def delete_read_alerts(db: Session, org_id: UUID, user_id: UUID) -> int:
    count = _user_alerts(db, org_id, user_id).filter(
        Alert.lido == True,  # noqa: E712
    ).delete(synchronize_session=False)
    db.commit()
    return count


def get_summary(db: Session, org_id: UUID, user_id: UUID) -> dict:
    """Unread counts per priority and the most urgent unread alerts."""
    unread = _user_alerts(db, org_id, user_id).filter(
        Alert.lido == False,  # noqa: E712
    ).order_by(Alert.created_at.desc()).all()
    unread.sort(key=lambda alert: _PRIORITY_RANK.get(alert.prioridade, len(_PRIORITY_RANK)))

    by_priority = Counter(alert.prioridade for alert in unread)
    return {
        "urgentes": by_priority[AlertPriority.URGENTE.value],
        "alta_prioridade": by_priority[AlertPriority.ALTA.value],
        "media_prioridade": by_priority[AlertPriority.MEDIA.value],
        "baixa_prioridade": by_priority[AlertPriority.BAIXA.value],
        "total_nao_lidos": len(unread),
        "alertas": unread[:SUMMARY_LIMIT],
    }


def count_unread_by_type(db: Session, org_id: UUID, user_id: UUID) -> dict:
    rows = db.query(Alert.tipo, func.count(Alert.id)).filter(
        Alert.organization_id == org_id,
        Alert.usuario_id == user_id,
        Alert.lido == False,  # noqa: E712
    ).group_by(Alert.tipo).all()
    por_tipo = {tipo: count for tipo, count in rows}
    return {"total": sum(por_tipo.values()), "por_tipo": por_tipo}


def org_stats(db: Session, org_id: UUID) -> dict:
    """Alert counts across every user of the org."""
    base = db.query(Alert).filter(Alert.organization_id == org_id)
    by_type = db.query(Alert.tipo, func.count(Alert.id)).filter(
        Alert.organization_id == org_id,
    ).group_by(Alert.tipo).all()
    by_priority = db.query(Alert.prioridade, func.count(Alert.id)).filter(
        Alert.organization_id == org_id,
    ).group_by(Alert.prioridade).all()
    return {
        "total": base.count(),
        "nao_lidos": base.filter(Alert.lido == False).count(),  # noqa: E712
        "por_tipo": dict(by_type),
        "por_prioridade": dict(by_priority),
    }


def purge_old_alerts(db: Session, days: int | None = None, now: datetime | None = None) -> int:
    """Delete read alerts older than the retention period (all orgs)."""
    days = settings.ALERT_RETENTION_DAYS if days is None else days
    cutoff = (now or utcnow()) - timedelta(days=days)
    count = db.query(Alert).filter(
        Alert.lido == True,  # noqa: E712
        Alert.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Purged old alerts", extra={"count": count, "retention_days": days})
    return count


# =============================================================================
# Periodic checks
# =============================================================================

def _member_ids(db: Session, org_id: UUID) -> list[UUID]:
    return [
        row.user_id for row in db.query(Membership.user_id).filter(
            Membership.organization_id == org_id,
        )
    ]


def check_policy_renewals(db: Session, org_id: UUID, now: datetime) -> int:
    """
    Alert every member about 'vigente' policies ending within the renewal window.

    One alert per policy and user: <= 7 days urgente, <= 15 alta, else media.
    """
    today = now.date()
    limit = today + timedelta(days=settings.ALERT_RENEWAL_WINDOW_DAYS)
    rows = db.query(Policy, Client.nome).join(Client, Client.id == Policy.cliente_id).filter(
        Policy.organization_id == org_id,
        Policy.status == PolicyStatus.VIGENTE.value,
        Policy.data_fim >= today,
        Policy.data_fim <= limit,
    ).all()

    created = 0
    members = _member_ids(db, org_id)
    for policy, client_name in rows:
        days_left = (policy.data_fim - today).days
        if days_left <= 7:
            prioridade = AlertPriority.URGENTE
        elif days_left <= 15:
            prioridade = AlertPriority.ALTA
        else:
            prioridade = AlertPriority.MEDIA
        label = policy.numero_apolice or policy.seguradora

        for user_id in members:
            if _already_alerted(db, user_id, AlertType.RENOVACAO_APOLICE, policy.id):
                continue
            create_alert(
                db, org_id, user_id,
                tipo=AlertType.RENOVACAO_APOLICE,
                titulo=f"Renovação: {label}",
                mensagem=(
                    f"A apólice {label} do cliente {client_name} vence em {days_left} dias "
                    f"({policy.data_fim.strftime('%d/%m/%Y')}). Seguradora: {policy.seguradora}"
                ),
                prioridade=prioridade,
                entidade_tipo="apolice",
                entidade_id=policy.id,
                data_referencia=policy.data_fim,
                now=now,
            )
            created += 1
    return created


def check_overdue_tasks(db: Session, org_id: UUID, now: datetime) -> int:
    """Alert the owner of each overdue task once: > 7 days late urgente, else alta."""
    today = now.date()
    created = 0
    for task in task_service.list_overdue_tasks(db, org_id, today):
        if _already_alerted(db, task.usuario_id, AlertType.TAREFA_ATRASADA, task.id):
            continue
        days_late = (today - task.data_vencimento).days
        create_alert(
            db, org_id, task.usuario_id,
            tipo=AlertType.TAREFA_ATRASADA,
            titulo=f"Tarefa atrasada: {task.descricao[:50]}",
            mensagem=(
                f'A tarefa "{task.descricao}" está atrasada há {days_late} dias. '
                f"Prioridade original: {task.prioridade}"
            ),
            prioridade=AlertPriority.URGENTE if days_late > 7 else AlertPriority.ALTA,
            entidade_tipo="tarefa",
            entidade_id=task.id,
            data_referencia=task.data_vencimento,
            now=now,
        )
        created += 1
    return created


def check_stale_claims(db: Session, org_id: UUID, now: datetime) -> int:
    """
    Alert every member about claims still open after ALERT_CLAIM_STALE_DAYS.

    Repeats at most weekly per claim: > 60 days urgente, > 30 alta, else media.
    """
    stale_days = settings.ALERT_CLAIM_STALE_DAYS
    cutoff = now - timedelta(days=stale_days)
    rows = db.query(Claim, Client.nome).join(Client, Client.id == Claim.cliente_id).filter(
        Claim.organization_id == org_id,
        Claim.status.notin_(ClaimStatus.closed()),
        Claim.created_at <= cutoff,
    ).all()

    created = 0
    members = _member_ids(db, org_id)
    week_ago = now - timedelta(days=7)
    for claim, client_name in rows:
        days_open = (now - ensure_utc(claim.created_at)).days
        if days_open > 60:
            prioridade = AlertPriority.URGENTE
        elif days_open > 30:
            prioridade = AlertPriority.ALTA
        else:
            prioridade = AlertPriority.MEDIA

        for user_id in members:
            if _already_alerted(db, user_id, AlertType.SINISTRO_PENDENTE, claim.id, since=week_ago):
                continue
            create_alert(
                db, org_id, user_id,
                tipo=AlertType.SINISTRO_PENDENTE,
                titulo=f"Sinistro pendente: {claim.numero_sinistro}",
                mensagem=(
                    f'O sinistro {claim.numero_sinistro} está em "{claim.status}" há '
                    f"{days_open} dias. Cliente: {client_name}"
                ),
                prioridade=prioridade,
                entidade_tipo="sinistro",
                entidade_id=claim.id,
                now=now,
            )
            created += 1
    return created


def check_pending_commissions(db: Session, org_id: UUID, now: datetime) -> int:
    """One consolidated alert per member per day while commissions are pending."""
    count, total = db.query(
        func.count(Commission.id),
        func.coalesce(func.sum(Commission.valor_liquido), 0),
    ).filter(
        Commission.organization_id == org_id,
        Commission.status == CommissionStatus.PENDENTE.value,
    ).one()
    if not count:
        return 0

    total = Decimal(str(total)).quantize(Decimal("0.01"))
    day_ago = now - timedelta(days=1)
    created = 0
    for user_id in _member_ids(db, org_id):
        if _already_alerted(db, user_id, AlertType.COMISSAO_PENDENTE, None, since=day_ago):
            continue
        create_alert(
            db, org_id, user_id,
            tipo=AlertType.COMISSAO_PENDENTE,
            titulo=f"{count} comissões pendentes",
            mensagem=f"Existem {count} comissões pendentes totalizando R$ {total:.2f}",
            prioridade=AlertPriority.ALTA if total > 5000 else AlertPriority.MEDIA,
            entidade_tipo="comissao",
            now=now,
        )
        created += 1
    return created


def _next_birthday(birth: date, today: date, window: int) -> date | None:
    """The birthday falling within [today, today + window], if any."""
    for offset in range(window + 1):
        day = today + timedelta(days=offset)
        if (day.month, day.day) == (birth.month, birth.day):
            return day
    return None


def check_client_birthdays(db: Session, org_id: UUID, now: datetime) -> int:
    """Alert every member about active clients with a birthday in the next days."""
    today = now.date()
    window = settings.ALERT_BIRTHDAY_WINDOW_DAYS
    clients = db.query(Client).filter(
        Client.organization_id == org_id,
        Client.ativo == True,  # noqa: E712
        Client.data_nascimento.isnot(None),
    ).all()

    created = 0
    members = _member_ids(db, org_id)
    month_ago = now - timedelta(days=30)
    for client in clients:
        birthday = _next_birthday(client.data_nascimento, today, window)
        if birthday is None:
            continue
        days_until = (birthday - today).days
        if days_until == 0:
            titulo = f"Aniversário hoje: {client.nome}"
            mensagem = f"Hoje é aniversário do cliente {client.nome}."
        else:
            titulo = f"Aniversário em {days_until} dias: {client.nome}"
            mensagem = (
                f"O cliente {client.nome} faz aniversário em {days_until} dias "
                f"({birthday.strftime('%d/%m')})."
            )

        for user_id in members:
            if _already_alerted(db, user_id, AlertType.ANIVERSARIO_CLIENTE, client.id, since=month_ago):
                continue
            create_alert(
                db, org_id, user_id,
                tipo=AlertType.ANIVERSARIO_CLIENTE,
                titulo=titulo,
                mensagem=mensagem,
                prioridade=AlertPriority.ALTA if days_until == 0 else AlertPriority.BAIXA,
                entidade_tipo="cliente",
                entidade_id=client.id,
                data_referencia=birthday,
                now=now,
            )
            created += 1
    return created


def run_checks(db: Session, org_id: UUID, now: datetime | None = None) -> dict[str, int]:
    """Run every check for one org and commit. Returns alerts created per check."""
    now = now or utcnow()
    result = {
        "renovacoes": check_policy_renewals(db, org_id, now),
        "tarefas": check_overdue_tasks(db, org_id, now),
        "sinistros": check_stale_claims(db, org_id, now),
        "comissoes": check_pending_commissions(db, org_id, now),
        "aniversarios": check_client_birthdays(db, org_id, now),
    }
    result["total"] = sum(result.values())
    db.commit()
    logger.info("Alert checks finished", extra={"org_id": str(org_id), **result})
    return result


def run_checks_for_all_orgs(db: Session, now: datetime | None = None) -> dict[str, int]:
    """Run the checks for every org. Returns alerts created per org slug."""
    now = now or utcnow()
    return {
        org.slug: run_checks(db, org.id, now)["total"]
        for org in db.query(Organization).order_by(Organization.slug).all()
    }
