"""Task service - broker agenda tasks."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from brokerage_crm.db.enums import TaskPriority
from brokerage_crm.db.models import Client, Membership, Policy, Task
from brokerage_crm.schemas.agenda import TaskCreate, TaskUpdate
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import sanitize_text

logger = logging.getLogger(__name__)


def _check_links(
    db: Session,
    org_id: UUID,
    usuario_id: UUID | None = None,
    cliente_id: UUID | None = None,
    apolice_id: UUID | None = None,
) -> None:
    """Raise ValueError unless the owner, client and policy all belong to the org."""
    if usuario_id:
        member = db.query(Membership.id).filter(
            Membership.user_id == usuario_id,
            Membership.organization_id == org_id,
        ).first()
        if not member:
            raise ValueError("User is not a member of this organization")

    if cliente_id:
        client = db.query(Client.id).filter(
            Client.id == cliente_id,
            Client.organization_id == org_id,
        ).first()
        if not client:
            raise ValueError("Client not found")

    if apolice_id:
        policy = db.query(Policy).filter(
            Policy.id == apolice_id,
            Policy.organization_id == org_id,
        ).first()
        if not policy:
            raise ValueError("Policy not found")
        if cliente_id and policy.cliente_id != cliente_id:
            raise ValueError("Policy does not belong to this client")


def create_task(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    data: TaskCreate,
) -> Task:
    """Create a task. Owner defaults to the creator."""
    owner_id = data.usuario_id or user_id
    _check_links(db, org_id, owner_id, data.cliente_id, data.apolice_id)

    descricao = sanitize_text(data.descricao)
    if not descricao:
        raise ValueError("Task description is required")

    task = Task(
        organization_id=org_id,
        usuario_id=owner_id,
        cliente_id=data.cliente_id,
        apolice_id=data.apolice_id,
        descricao=descricao,
        tipo=data.tipo.value,
        prioridade=data.prioridade.value,
        data_vencimento=data.data_vencimento,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(
        "Task created",
        extra={"org_id": str(org_id), "task_id": str(task.id), "owner_id": str(owner_id)},
    )
    return task


def update_task(db: Session, task: Task, data: TaskUpdate) -> Task:
    """
    Update task fields (partial).

    Setting concluida stamps or clears concluida_em like toggle_task does.
    """
    fields = data.model_dump(exclude_unset=True)
    _check_links(
        db,
        task.organization_id,
        fields.get("usuario_id"),
        fields.get("cliente_id", task.cliente_id),
        fields.get("apolice_id", task.apolice_id),
    )

    for name, value in fields.items():
        if name == "concluida":
            if value is not None:
                _set_done(task, value)
            continue
        if value is None and name in ("descricao", "tipo", "prioridade", "data_vencimento", "usuario_id"):
            continue
        if name == "descricao":
            value = sanitize_text(value)
            if not value:
                raise ValueError("Task description is required")
        elif hasattr(value, "value"):
            value = value.value
        setattr(task, name, value)

    task.updated_at = utcnow()
    db.commit()
    db.refresh(task)
    return task


def _set_done(task: Task, done: bool) -> None:
    task.concluida = done
    task.concluida_em = utcnow() if done else None


def toggle_task(db: Session, task: Task) -> Task:
    """Flip a task between done and pending."""
    _set_done(task, not task.concluida)
    task.updated_at = utcnow()
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    db.delete(task)
    db.commit()


def get_task(db: Session, org_id: UUID, task_id: UUID) -> Task | None:
    """Get task by ID (org-scoped)."""
    return db.query(Task).filter(
        Task.id == task_id,
        Task.organization_id == org_id,
    ).first()


def list_tasks(
    db: Session,
    org_id: UUID,
    usuario_id: UUID | None = None,
    status: str | None = None,
    prioridade: str | None = None,
    tipo: str | None = None,
) -> list[Task]:
    """
    List tasks by due date.

    status: 'pendentes', 'concluidas' or anything else for both.
    """
    query = db.query(Task).filter(Task.organization_id == org_id)
    if usuario_id:
        query = query.filter(Task.usuario_id == usuario_id)
    if status == "pendentes":
        query = query.filter(Task.concluida == False)  # noqa: E712
    elif status == "concluidas":
        query = query.filter(Task.concluida == True)  # noqa: E712
    if prioridade:
        query = query.filter(Task.prioridade == prioridade)
    if tipo:
        query = query.filter(Task.tipo == tipo)
    return query.order_by(Task.data_vencimento, Task.created_at).all()


def task_stats(db: Session, org_id: UUID, today: date | None = None) -> dict[str, int]:
    """Counts for the agenda header: totals, due today, overdue, high priority pending."""
    today = today or utcnow().date()
    base = db.query(func.count(Task.id)).filter(Task.organization_id == org_id)
    pending = base.filter(Task.concluida == False)  # noqa: E712

    total = base.scalar() or 0
    pendentes = pending.scalar() or 0
    return {
        "total": total,
        "pendentes": pendentes,
        "concluidas": total - pendentes,
        "hoje": pending.filter(Task.data_vencimento == today).scalar() or 0,
        "atrasadas": pending.filter(Task.data_vencimento < today).scalar() or 0,
        "alta_prioridade": pending.filter(
            Task.prioridade == TaskPriority.ALTA.value
        ).scalar() or 0,
    }


def list_overdue_tasks(db: Session, org_id: UUID, today: date | None = None) -> list[Task]:
    """Pending tasks whose due date has passed."""
    today = today or utcnow().date()
    return db.query(Task).filter(
        Task.organization_id == org_id,
        Task.concluida == False,  # noqa: E712
        Task.data_vencimento < today,
    ).order_by(Task.data_vencimento).all()
