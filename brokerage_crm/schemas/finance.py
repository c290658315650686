"""Pydantic schemas for commission accounting."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from brokerage_crm.db.enums import CommissionStatus


class CommissionCreate(BaseModel):
    apolice_id: UUID
    valor_bruto: float = Field(..., ge=0)
    descontos_json: dict[str, Any] = Field(default_factory=dict)
    valor_liquido: float = Field(..., ge=0)
    data_receita: date | None = None
    status: CommissionStatus = CommissionStatus.PENDENTE
    observacoes: str | None = Field(None, max_length=5000)


class CommissionUpdate(BaseModel):
    valor_bruto: float | None = Field(None, ge=0)
    descontos_json: dict[str, Any] | None = None
    valor_liquido: float | None = Field(None, ge=0)
    data_receita: date | None = None
    status: CommissionStatus | None = None
    observacoes: str | None = Field(None, max_length=5000)


class CommissionPolicyRef(BaseModel):
    """Policy fields shown next to a commission."""
    id: UUID
    numero_apolice: str | None
    seguradora: str
    ramo: str
    valor_premio: float

    model_config = {"from_attributes": True}


class CommissionRead(BaseModel):
    id: UUID
    apolice_id: UUID
    valor_bruto: float
    descontos_json: dict[str, Any]
    valor_liquido: float
    data_receita: date | None
    status: str
    observacoes: str | None
    created_at: datetime
    policy: CommissionPolicyRef | None = Field(
        None,
        validation_alias=AliasChoices("policy", "apolice"),
        serialization_alias="apolice",
    )

    model_config = {"from_attributes": True}


class CommissionListResponse(BaseModel):
    data: list[CommissionRead]
    total: int


class CommissionConfigCreate(BaseModel):
    seguradora: str = Field(..., min_length=1, max_length=100)
    ramo: str = Field("todos", min_length=1, max_length=50)
    percentual_comissao: float = Field(..., ge=0, le=100)
    percentual_repasse: float = Field(0, ge=0, le=100)
    percentual_imposto: float = Field(0, ge=0, le=100)
    ativo: bool = True


class CommissionConfigUpdate(BaseModel):
    percentual_comissao: float | None = Field(None, ge=0, le=100)
    percentual_repasse: float | None = Field(None, ge=0, le=100)
    percentual_imposto: float | None = Field(None, ge=0, le=100)
    ativo: bool | None = None


class CommissionConfigRead(BaseModel):
    id: UUID
    seguradora: str
    ramo: str
    percentual_comissao: float
    percentual_repasse: float
    percentual_imposto: float
    ativo: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CommissionCalculateRequest(BaseModel):
    apolice_id: UUID


class CommissionBreakdown(BaseModel):
    premio: float
    percentual_comissao: float
    valor_bruto: float
    percentual_repasse: float
    valor_repasse: float
    percentual_imposto: float
    valor_imposto: float
    valor_liquido: float


class CommissionCalculateResponse(BaseModel):
    comissao: CommissionRead
    calculo: CommissionBreakdown


class FinanceDashboard(BaseModel):
    receita_mes: float
    comissoes_pendentes: int
    valor_pendente: float
    total_recebido: float
