"""Calendar service - one date-ordered view over tasks, follow-ups and renewals.

Three sources feed the calendar:
- agenda tasks, on their due date
- quote follow-ups (proximo_contato) of quotes still open in the pipeline
- renewals: 'vigente' policies on their end date
"""

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from brokerage_crm.core.config import settings
from brokerage_crm.db.enums import PolicyStatus, TaskPriority
from brokerage_crm.db.models import Client, Policy, Quote, Task
from brokerage_crm.utils.dates import ensure_utc

MAX_RANGE_DAYS = 366

_TASK_COLORS = {
    TaskPriority.ALTA.value: "red",
    TaskPriority.MEDIA.value: "amber",
}
_PRIORITY_RANK = {
    TaskPriority.ALTA.value: 0,
    TaskPriority.MEDIA.value: 1,
    TaskPriority.BAIXA.value: 2,
}


def _task_event(task: Task) -> dict:
    return {
        "id": f"tarefa-{task.id}",
        "tipo": "tarefa",
        "titulo": task.descricao,
        "data": task.data_vencimento,
        "cor": "emerald" if task.concluida else _TASK_COLORS.get(task.prioridade, "slate"),
        "concluido": task.concluida,
        "prioridade": task.prioridade,
        "cliente": task.client.nome if task.client else None,
        "cliente_id": task.cliente_id,
        "referencia_id": task.id,
        "referencia_tipo": "tarefa",
    }


def _followup_event(quote: Quote) -> dict:
    client_name = quote.client.nome if quote.client else quote.lead_nome
    return {
        "id": f"followup-{quote.id}",
        "tipo": "followup",
        "titulo": f"Follow-up: {client_name or 'Cotação'}",
        "subtitulo": quote.ramo,
        "data": ensure_utc(quote.proximo_contato).date(),
        "cor": "violet",
        "status_pipeline": quote.status_pipeline,
        "cliente": client_name,
        "cliente_id": quote.cliente_id,
        "referencia_id": quote.id,
        "referencia_tipo": "cotacao",
    }


def _renewal_event(policy: Policy, client_name: str) -> dict:
    return {
        "id": f"renovacao-{policy.id}",
        "tipo": "renovacao",
        "titulo": f"Renovação: {policy.numero_apolice or policy.seguradora}",
        "subtitulo": f"{policy.seguradora} - {policy.ramo}",
        "data": policy.data_fim,
        "cor": "cyan",
        "cliente": client_name,
        "cliente_id": policy.cliente_id,
        "referencia_id": policy.id,
        "referencia_tipo": "apolice",
    }


def _collect(db: Session, org_id: UUID, inicio: date, fim: date) -> tuple[list, list, list]:
    tasks = db.query(Task).filter(
        Task.organization_id == org_id,
        Task.data_vencimento >= inicio,
        Task.data_vencimento <= fim,
    ).order_by(Task.data_vencimento, Task.created_at).all()

    # proximo_contato is a timestamp; the window covers whole UTC days
    window_start = datetime.combine(inicio, time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(fim + timedelta(days=1), time.min, tzinfo=timezone.utc)
    quotes = db.query(Quote).filter(
        Quote.organization_id == org_id,
        Quote.proximo_contato.isnot(None),
        Quote.proximo_contato >= window_start,
        Quote.proximo_contato < window_end,
        Quote.status_pipeline.notin_(settings.terminal_phase_keys),
    ).order_by(Quote.proximo_contato).all()

    renewals = db.query(Policy, Client.nome).join(
        Client, Client.id == Policy.cliente_id
    ).filter(
        Policy.organization_id == org_id,
        Policy.status == PolicyStatus.VIGENTE.value,
        Policy.data_fim >= inicio,
        Policy.data_fim <= fim,
    ).order_by(Policy.data_fim).all()

    return (
        [_task_event(task) for task in tasks],
        [_followup_event(quote) for quote in quotes],
        [_renewal_event(policy, nome) for policy, nome in renewals],
    )


def get_calendar(db: Session, org_id: UUID, inicio: date, fim: date) -> dict:
    """
    Calendar events between two dates (inclusive), ordered by date.

    Raises ValueError if fim is before inicio or the range exceeds a year.
    """
    if fim < inicio:
        raise ValueError("fim must not be before inicio")
    if (fim - inicio).days > MAX_RANGE_DAYS:
        raise ValueError(f"Calendar range cannot exceed {MAX_RANGE_DAYS} days")

    tasks, followups, renewals = _collect(db, org_id, inicio, fim)
    events = sorted(tasks + followups + renewals, key=lambda event: event["data"])
    return {
        "data": events,
        "total": len(events),
        "periodo": {"inicio": inicio, "fim": fim},
    }


def get_day(db: Session, org_id: UUID, day: date) -> dict:
    """Everything due on one day, tasks by priority (alta first)."""
    tasks, followups, renewals = _collect(db, org_id, day, day)
    tasks.sort(key=lambda event: _PRIORITY_RANK.get(event["prioridade"], len(_PRIORITY_RANK)))
    return {
        "data": day,
        "tarefas": tasks,
        "followups": followups,
        "renovacoes": renewals,
        "resumo": {
            "total_tarefas": len(tasks),
            "total_followups": len(followups),
            "total_renovacoes": len(renewals),
            "tarefas_pendentes": sum(1 for event in tasks if not event["concluido"]),
        },
    }
