"""Pydantic schemas for user alerts."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from brokerage_crm.db.enums import AlertPriority, AlertType


class AlertCreate(BaseModel):
    """Manual alert for the current user."""
    tipo: AlertType = AlertType.MANUAL
    titulo: str = Field(..., min_length=1, max_length=255)
    mensagem: str = Field(..., min_length=1, max_length=5000)
    prioridade: AlertPriority = AlertPriority.MEDIA
    entidade_tipo: str | None = Field(None, max_length=30)
    entidade_id: UUID | None = None
    data_referencia: date | None = None


class AlertRead(BaseModel):
    id: UUID
    tipo: str
    titulo: str
    mensagem: str
    prioridade: str
    entidade_tipo: str | None
    entidade_id: UUID | None
    data_referencia: date | None
    lido: bool
    lido_em: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AlertListResponse(BaseModel):
    data: list[AlertRead]
    total: int
    page: int
    limit: int


class AlertSummary(BaseModel):
    """Unread alerts of the user grouped by priority, most urgent first."""
    urgentes: int
    alta_prioridade: int
    media_prioridade: int
    baixa_prioridade: int
    total_nao_lidos: int
    alertas: list[AlertRead]


class AlertCount(BaseModel):
    total: int
    por_tipo: dict[str, int]


class AlertCheckResult(BaseModel):
    """Alerts created by one run of the periodic checks, per check."""
    renovacoes: int
    tarefas: int
    sinistros: int
    comissoes: int
    aniversarios: int
    total: int


class AlertStats(BaseModel):
    total: int
    nao_lidos: int
    por_tipo: dict[str, int]
    por_prioridade: dict[str, int]
