"""Pydantic schemas for pipeline phases and the kanban board."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from brokerage_crm.db.enums import PhaseColor


class PhaseCreate(BaseModel):
    """Request to add a pipeline phase."""
    nome: str = Field(..., min_length=1, max_length=100)
    cor: PhaseColor = PhaseColor.SLATE
    chave: str | None = Field(None, min_length=1, max_length=50, pattern=r"^[a-z0-9_]+$")
    ordem: int | None = Field(None, ge=1)


class PhaseUpdate(BaseModel):
    """Rename / recolor a phase. Key and position are not editable here."""
    nome: str | None = Field(None, min_length=1, max_length=100)
    cor: PhaseColor | None = None


class PhaseOrderItem(BaseModel):
    id: UUID
    ordem: int


class PhaseReorder(BaseModel):
    """
    New phase order.

    Either `ordem` ([{id, ordem}, ...]) or `ids` (ids in the desired order).
    """
    ordem: list[PhaseOrderItem] | None = None
    ids: list[UUID] | None = None

    @model_validator(mode="after")
    def _one_form(self) -> "PhaseReorder":
        if (self.ordem is None) == (self.ids is None):
            raise ValueError("Provide exactly one of 'ordem' or 'ids'")
        return self

    def ordered_ids(self) -> list[UUID]:
        """Ids in the requested left-to-right order."""
        if self.ids is not None:
            return list(self.ids)
        return [item.id for item in sorted(self.ordem or [], key=lambda item: item.ordem)]


class PhaseRead(BaseModel):
    id: UUID
    nome: str
    chave: str
    cor: str
    ordem: int
    sistema: bool
    ativo: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Board
# =============================================================================

class BoardCard(BaseModel):
    """One quote on the kanban board."""
    id: UUID
    cliente: str
    telefone: str | None = None
    email: str | None = None
    ramo: str
    modelo: str | None = None
    valor: float = 0
    data_criacao: datetime | None = None
    data_envio: datetime | None = None
    proximo_contato: datetime | None = None
    dias_parado: int = 0
    motivo_perda: str | None = None
    notas: str | None = None
    status_pipeline: str
    version: int


class BoardColumn(BaseModel):
    chave: str
    nome: str
    cor: str
    ordem: int
    sistema: bool
    cotacoes: list[BoardCard]
    total: int
    valor: float


class BoardMetrics(BaseModel):
    total_cotacoes: int
    em_andamento: int
    ganhas: int
    perdidas: int
    taxa_conversao: int
    valor_pipeline_ativo: float


class BoardResponse(BaseModel):
    colunas: list[BoardColumn]
    desconhecidas: list[BoardCard]
    metricas: BoardMetrics
