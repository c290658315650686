"""Pydantic schemas for the agenda: tasks and the calendar view."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from brokerage_crm.db.enums import TaskPriority, TaskType


class TaskCreate(BaseModel):
    descricao: str = Field(..., min_length=1, max_length=5000)
    tipo: TaskType = TaskType.OUTRO
    prioridade: TaskPriority = TaskPriority.MEDIA
    data_vencimento: date
    cliente_id: UUID | None = None
    apolice_id: UUID | None = None
    usuario_id: UUID | None = None  # Defaults to the creator


class TaskUpdate(BaseModel):
    descricao: str | None = Field(None, min_length=1, max_length=5000)
    tipo: TaskType | None = None
    prioridade: TaskPriority | None = None
    data_vencimento: date | None = None
    cliente_id: UUID | None = None
    apolice_id: UUID | None = None
    usuario_id: UUID | None = None
    concluida: bool | None = None


class TaskRead(BaseModel):
    id: UUID
    usuario_id: UUID
    cliente_id: UUID | None
    apolice_id: UUID | None
    descricao: str
    tipo: str
    prioridade: str
    data_vencimento: date
    concluida: bool
    concluida_em: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    data: list[TaskRead]
    total: int


class TaskStats(BaseModel):
    total: int
    pendentes: int
    concluidas: int
    hoje: int
    atrasadas: int
    alta_prioridade: int


# =============================================================================
# Calendar
# =============================================================================

class CalendarEvent(BaseModel):
    """
    One calendar entry, built from a task, a quote follow-up or a policy renewal.

    id is prefixed with the source ("tarefa-", "followup-", "renovacao-") so
    entries from different tables never collide.
    """
    id: str
    tipo: Literal["tarefa", "followup", "renovacao"]
    titulo: str
    subtitulo: str | None = None
    data: date
    cor: str
    concluido: bool = False
    prioridade: str | None = None
    status_pipeline: str | None = None
    cliente: str | None = None
    cliente_id: UUID | None = None
    referencia_id: UUID
    referencia_tipo: Literal["tarefa", "cotacao", "apolice"]


class CalendarPeriod(BaseModel):
    inicio: date
    fim: date


class CalendarResponse(BaseModel):
    data: list[CalendarEvent]
    total: int
    periodo: CalendarPeriod


class DaySummary(BaseModel):
    total_tarefas: int
    total_followups: int
    total_renovacoes: int
    tarefas_pendentes: int


class DayAgenda(BaseModel):
    data: date
    tarefas: list[CalendarEvent]
    followups: list[CalendarEvent]
    renovacoes: list[CalendarEvent]
    resumo: DaySummary
