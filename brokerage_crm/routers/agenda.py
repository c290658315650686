"""Agenda router - tasks and the calendar."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.db.enums import TaskPriority, TaskType
from brokerage_crm.schemas.agenda import (
    CalendarResponse,
    DayAgenda,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskStats,
    TaskUpdate,
)
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.services import calendar_service, task_service

router = APIRouter(prefix="/agenda", tags=["Agenda"])


# =============================================================================
# Calendar
# =============================================================================

@router.get("/calendario", response_model=CalendarResponse)
def calendar(
    inicio: date,
    fim: date,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Tasks, quote follow-ups and policy renewals between two dates."""
    try:
        return calendar_service.get_calendar(db, session.org_id, inicio, fim)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.get("/calendario/dia/{day}", response_model=DayAgenda)
def calendar_day(
    day: date,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return calendar_service.get_day(db, session.org_id, day)


# =============================================================================
# Tasks
# =============================================================================

def _get_task_or_404(db: Session, session: UserSession, task_id: UUID):
    task = task_service.get_task(db, session.org_id, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return task


@router.get("/tarefas/stats/summary", response_model=TaskStats)
def task_stats(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return task_service.task_stats(db, session.org_id)


@router.get("/tarefas", response_model=TaskListResponse)
def list_tasks(
    usuario_id: UUID | None = None,
    status: str | None = None,
    prioridade: TaskPriority | None = None,
    tipo: TaskType | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """List tasks by due date. status: pendentes | concluidas."""
    tasks = task_service.list_tasks(
        db,
        session.org_id,
        usuario_id=usuario_id,
        status=status,
        prioridade=prioridade.value if prioridade else None,
        tipo=tipo.value if tipo else None,
    )
    return TaskListResponse(data=tasks, total=len(tasks))


@router.get("/tarefas/{task_id}", response_model=TaskRead)
def get_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return _get_task_or_404(db, session, task_id)


@router.post(
    "/tarefas",
    response_model=TaskRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        return task_service.create_task(db, session.org_id, session.user_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/tarefas/{task_id}",
    response_model=TaskRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    task = _get_task_or_404(db, session, task_id)
    try:
        return task_service.update_task(db, task, data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(400, str(e))


@router.patch(
    "/tarefas/{task_id}/toggle",
    response_model=TaskRead,
    dependencies=[Depends(require_csrf_header)],
)
def toggle_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Flip a task between done and pending."""
    task = _get_task_or_404(db, session, task_id)
    return task_service.toggle_task(db, task)


@router.delete(
    "/tarefas/{task_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    task = _get_task_or_404(db, session, task_id)
    task_service.delete_task(db, task)
    return Response(status_code=204)
