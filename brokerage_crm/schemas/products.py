"""Pydantic schemas for client products: policies, claims, consortiums,
health plans and financings."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from brokerage_crm.db.enums import (
    ClaimStatus,
    ConsortiumStatus,
    EndorsementStatus,
    EndorsementType,
    FinancingStatus,
    HealthPlanStatus,
    HealthPlanType,
    PolicyStatus,
)


# =============================================================================
# Policies (apolices)
# =============================================================================

class PolicyCreate(BaseModel):
    cliente_id: UUID
    numero_apolice: str | None = Field(None, max_length=100)
    seguradora: str = Field(..., min_length=1, max_length=100)
    ramo: str = Field(..., min_length=1, max_length=50)
    status: PolicyStatus = PolicyStatus.VIGENTE
    valor_premio: float = Field(0, ge=0)
    data_inicio: date | None = None
    data_fim: date | None = None
    observacoes: str | None = Field(None, max_length=5000)


class PolicyUpdate(BaseModel):
    numero_apolice: str | None = Field(None, max_length=100)
    seguradora: str | None = Field(None, min_length=1, max_length=100)
    ramo: str | None = Field(None, min_length=1, max_length=50)
    status: PolicyStatus | None = None
    valor_premio: float | None = Field(None, ge=0)
    data_inicio: date | None = None
    data_fim: date | None = None
    observacoes: str | None = Field(None, max_length=5000)


class PolicyRead(BaseModel):
    id: UUID
    cliente_id: UUID
    numero_apolice: str | None
    seguradora: str
    ramo: str
    status: str
    valor_premio: float
    data_inicio: date | None
    data_fim: date | None
    observacoes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Claims (sinistros)
# =============================================================================

class ClaimCreate(BaseModel):
    """New claim. Number and initial status are assigned by the server."""
    cliente_id: UUID
    apolice_id: UUID | None = None
    tipo: str = Field(..., min_length=1, max_length=100)
    descricao: str | None = Field(None, max_length=5000)
    data_ocorrencia: date | None = None
    valor_indenizacao: float | None = Field(None, ge=0)


class ClaimUpdate(BaseModel):
    tipo: str | None = Field(None, min_length=1, max_length=100)
    descricao: str | None = Field(None, max_length=5000)
    status: ClaimStatus | None = None
    data_ocorrencia: date | None = None
    valor_indenizacao: float | None = Field(None, ge=0)


class ClaimRead(BaseModel):
    id: UUID
    cliente_id: UUID
    apolice_id: UUID | None
    numero_sinistro: str
    tipo: str
    descricao: str | None
    status: str
    data_ocorrencia: date | None
    valor_indenizacao: float | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Consortiums (consorcios)
# =============================================================================

class ConsortiumCreate(BaseModel):
    cliente_id: UUID
    administradora: str = Field(..., min_length=1, max_length=100)
    grupo: str | None = Field(None, max_length=50)
    cota: str | None = Field(None, max_length=50)
    valor_credito: float = Field(0, ge=0)
    valor_parcela: float | None = Field(None, ge=0)
    prazo_meses: int | None = Field(None, ge=1)
    status: ConsortiumStatus = ConsortiumStatus.ATIVO
    data_adesao: date | None = None


class ConsortiumUpdate(BaseModel):
    administradora: str | None = Field(None, min_length=1, max_length=100)
    grupo: str | None = Field(None, max_length=50)
    cota: str | None = Field(None, max_length=50)
    valor_credito: float | None = Field(None, ge=0)
    valor_parcela: float | None = Field(None, ge=0)
    prazo_meses: int | None = Field(None, ge=1)
    status: ConsortiumStatus | None = None
    data_adesao: date | None = None


class ConsortiumRead(BaseModel):
    id: UUID
    cliente_id: UUID
    administradora: str
    grupo: str | None
    cota: str | None
    valor_credito: float
    valor_parcela: float | None
    prazo_meses: int | None
    status: str
    data_adesao: date | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Health plans (planos de saude)
# =============================================================================

class HealthPlanCreate(BaseModel):
    cliente_id: UUID
    operadora: str = Field(..., min_length=1, max_length=100)
    plano: str | None = Field(None, max_length=100)
    tipo: HealthPlanType = HealthPlanType.INDIVIDUAL
    valor_mensalidade: float = Field(0, ge=0)
    numero_vidas: int = Field(1, ge=1)
    status: HealthPlanStatus = HealthPlanStatus.ATIVO
    data_inicio: date | None = None


class HealthPlanUpdate(BaseModel):
    operadora: str | None = Field(None, min_length=1, max_length=100)
    plano: str | None = Field(None, max_length=100)
    tipo: HealthPlanType | None = None
    valor_mensalidade: float | None = Field(None, ge=0)
    numero_vidas: int | None = Field(None, ge=1)
    status: HealthPlanStatus | None = None
    data_inicio: date | None = None


class HealthPlanRead(BaseModel):
    id: UUID
    cliente_id: UUID
    operadora: str
    plano: str | None
    tipo: str
    valor_mensalidade: float
    numero_vidas: int
    status: str
    data_inicio: date | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Financings (financiamentos)
# =============================================================================

class FinancingCreate(BaseModel):
    cliente_id: UUID
    instituicao: str = Field(..., min_length=1, max_length=100)
    tipo: str | None = Field(None, max_length=50)
    valor_financiado: float = Field(0, ge=0)
    saldo_devedor: float = Field(0, ge=0)
    valor_parcela: float | None = Field(None, ge=0)
    prazo_meses: int | None = Field(None, ge=1)
    taxa_juros: float | None = Field(None, ge=0)
    status: FinancingStatus = FinancingStatus.ATIVO
    data_contratacao: date | None = None


class FinancingUpdate(BaseModel):
    instituicao: str | None = Field(None, min_length=1, max_length=100)
    tipo: str | None = Field(None, max_length=50)
    valor_financiado: float | None = Field(None, ge=0)
    saldo_devedor: float | None = Field(None, ge=0)
    valor_parcela: float | None = Field(None, ge=0)
    prazo_meses: int | None = Field(None, ge=1)
    taxa_juros: float | None = Field(None, ge=0)
    status: FinancingStatus | None = None
    data_contratacao: date | None = None


class FinancingRead(BaseModel):
    id: UUID
    cliente_id: UUID
    instituicao: str
    tipo: str | None
    valor_financiado: float
    saldo_devedor: float
    valor_parcela: float | None
    prazo_meses: int | None
    taxa_juros: float | None
    status: str
    data_contratacao: date | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Endorsements (endossos)
# =============================================================================

class EndorsementCreate(BaseModel):
    """New endorsement on a policy. Always starts as 'rascunho'."""
    apolice_id: UUID
    tipo: EndorsementType
    descricao: str | None = Field(None, max_length=5000)
    valor_novo: float | None = Field(None, ge=0)


class EndorsementStatusChange(BaseModel):
    status: EndorsementStatus


class EndorsementRead(BaseModel):
    id: UUID
    apolice_id: UUID
    tipo: str
    descricao: str | None
    valor_novo: float | None
    status: str
    data_solicitacao: datetime
    data_emissao: datetime | None

    model_config = {"from_attributes": True}
