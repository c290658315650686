"""Pydantic schemas for clients."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from brokerage_crm.db.enums import ClientType
from brokerage_crm.utils.normalization import validate_tax_id


class ClientCreate(BaseModel):
    """Request to create a client."""
    nome: str = Field(..., min_length=1, max_length=255)
    tipo: ClientType = ClientType.PF
    cpf_cnpj: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=50)
    data_nascimento: date | None = None
    endereco: str | None = Field(None, max_length=1000)
    observacoes: str | None = Field(None, max_length=5000)

    @field_validator("cpf_cnpj")
    @classmethod
    def validate_cpf_cnpj(cls, v: str | None) -> str | None:
        """Digits only; 11 for CPF, 14 for CNPJ."""
        return validate_tax_id(v)  # Raises ValueError on invalid


class ClientUpdate(BaseModel):
    """Request to update a client (partial)."""
    nome: str | None = Field(None, min_length=1, max_length=255)
    tipo: ClientType | None = None
    cpf_cnpj: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=50)
    data_nascimento: date | None = None
    endereco: str | None = Field(None, max_length=1000)
    observacoes: str | None = Field(None, max_length=5000)
    ativo: bool | None = None

    @field_validator("cpf_cnpj")
    @classmethod
    def validate_cpf_cnpj(cls, v: str | None) -> str | None:
        return validate_tax_id(v)


class ClientRead(BaseModel):
    id: UUID
    nome: str
    tipo: str
    cpf_cnpj: str | None
    email: str | None
    telefone: str | None
    data_nascimento: date | None = None
    endereco: str | None = None
    observacoes: str | None = None
    ativo: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ClientStats(BaseModel):
    total: int
    ativos: int
    pf: int
    pj: int


# =============================================================================
# 360 summary
# =============================================================================

class PolicySummary(BaseModel):
    total: int
    ativas: int
    valor_total: float


class ClaimSummary(BaseModel):
    total: int
    abertos: int


class ConsortiumSummary(BaseModel):
    total: int
    ativos: int
    valor_credito: float


class HealthPlanSummary(BaseModel):
    total: int
    ativos: int
    mensalidade_total: float


class FinancingSummary(BaseModel):
    total: int
    ativos: int
    saldo_devedor: float


class QuoteSummary(BaseModel):
    total: int
    em_negociacao: int


class Client360(BaseModel):
    """Everything the brokerage holds for one client, summarized."""
    cliente: ClientRead
    apolices: PolicySummary
    sinistros: ClaimSummary
    consorcios: ConsortiumSummary
    planos_saude: HealthPlanSummary
    financiamentos: FinancingSummary
    cotacoes: QuoteSummary
