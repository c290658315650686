"""Pydantic schemas for quotes (cotacoes) and their history."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from brokerage_crm.db.enums import ClientType, ContactResult
from brokerage_crm.schemas.client import ClientRead
from brokerage_crm.utils.normalization import validate_tax_id


class ClientDraft(BaseModel):
    """Client data captured when a quote is won (dados_cliente)."""
    nome: str | None = Field(None, max_length=255)
    cpf_cnpj: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=50)
    tipo: ClientType | None = None

    @field_validator("cpf_cnpj")
    @classmethod
    def validate_cpf_cnpj(cls, v: str | None) -> str | None:
        return validate_tax_id(v)


class QuoteCreate(BaseModel):
    """Request to create a quote."""
    cliente_id: UUID | None = None
    lead_nome: str | None = Field(None, max_length=255)
    lead_telefone: str | None = Field(None, max_length=50)
    lead_email: str | None = Field(None, max_length=255)
    ramo: str = Field(..., min_length=1, max_length=50)
    dados_cotacao: dict[str, Any] = Field(default_factory=dict)
    seguradoras_json: list[Any] = Field(default_factory=list)
    validade_cotacao: date | None = None
    valor_estimado: float | None = Field(None, ge=0)
    proximo_contato: datetime | None = None
    notas_negociacao: str | None = Field(None, max_length=5000)


class QuoteUpdate(BaseModel):
    """
    Partial quote update.

    When status_pipeline is present the request is a phase transition and
    goes through the same rules as PATCH /cotacoes/{id}/status.
    """
    cliente_id: UUID | None = None
    lead_nome: str | None = Field(None, max_length=255)
    lead_telefone: str | None = Field(None, max_length=50)
    lead_email: str | None = Field(None, max_length=255)
    ramo: str | None = Field(None, min_length=1, max_length=50)
    dados_cotacao: dict[str, Any] | None = None
    seguradoras_json: list[Any] | None = None
    validade_cotacao: date | None = None
    valor_estimado: float | None = Field(None, ge=0)
    proximo_contato: datetime | None = None
    notas_negociacao: str | None = Field(None, max_length=5000)
    # Transition fields
    status_pipeline: str | None = Field(None, min_length=1, max_length=50)
    motivo_perda: str | None = None
    notas: str | None = Field(None, max_length=5000)
    dados_cliente: ClientDraft | None = None
    expected_version: int | None = None


class QuoteStatusChange(BaseModel):
    """Request to move a quote to another pipeline phase."""
    status_pipeline: str = Field(..., min_length=1, max_length=50)
    motivo_perda: str | None = None
    notas: str | None = Field(None, max_length=5000)
    dados_cliente: ClientDraft | None = None
    expected_version: int | None = Field(
        None, description="Optional optimistic concurrency check"
    )


class FollowUpSchedule(BaseModel):
    proximo_contato: datetime
    notas: str | None = Field(None, max_length=5000)


class HistoryCreate(BaseModel):
    """Contact log entry."""
    tipo_evento: str = "anotacao"
    notas: str | None = Field(None, max_length=5000)
    resultado: ContactResult | None = None


class HistoryRead(BaseModel):
    id: UUID
    cotacao_id: UUID
    tipo_evento: str
    status_anterior: str | None
    status_novo: str | None
    motivo_perda: str | None
    notas: str | None
    resultado: str | None
    data_evento: datetime
    usuario_id: UUID | None

    model_config = {"from_attributes": True}


class QuoteRead(BaseModel):
    id: UUID
    cliente_id: UUID | None
    lead_nome: str | None
    lead_telefone: str | None
    lead_email: str | None
    ramo: str
    dados_cotacao: dict[str, Any]
    seguradoras_json: list[Any]
    validade_cotacao: date | None
    valor_estimado: float | None
    proximo_contato: datetime | None
    status_pipeline: str
    motivo_perda: str | None
    notas_negociacao: str | None
    data_criacao: datetime
    data_envio: datetime | None
    data_fechamento: datetime | None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class QuoteListItem(QuoteRead):
    client: ClientRead | None = Field(
        None,
        validation_alias=AliasChoices("client", "cliente"),
        serialization_alias="cliente",
    )


class QuoteDetail(QuoteListItem):
    history: list[HistoryRead] = Field(
        default_factory=list,
        validation_alias=AliasChoices("history", "historico"),
        serialization_alias="historico",
    )


class QuoteListResponse(BaseModel):
    """Paginated quote list."""
    data: list[QuoteListItem]
    total: int
    page: int
    limit: int


class PhaseStats(BaseModel):
    count: int
    valor: float
