"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from brokerage_crm.db.base import Base

if TYPE_CHECKING:
    from brokerage_crm.db.models.clients import Client


class Quote(Base):
    """
    Insurance quote (cotacao) moving through the sales pipeline.

    status_pipeline holds the chave of a PipelinePhase of the same
    organization. A quote may start as a bare lead (lead_nome/lead_telefone)
    and only get a client when it is won.

    version: optimistic concurrency counter, bumped on every status change.
    """

    __tablename__ = "cotacoes"
    __table_args__ = (
        Index("idx_cotacoes_org_status", "organization_id", "status_pipeline"),
        Index("idx_cotacoes_org_cliente", "organization_id", "cliente_id"),
        Index("idx_cotacoes_org_criacao", "organization_id", "data_criacao"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True
    )

    # Lead contact (before a client exists)
    lead_nome: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lead_telefone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lead_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    ramo: Mapped[str] = mapped_column(String(50), nullable=False)
    dados_cotacao: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    seguradoras_json: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    validade_cotacao: Mapped[date | None] = mapped_column(Date, nullable=True)
    valor_estimado: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    proximo_contato: Mapped[datetime | None] = mapped_column(nullable=True)

    # Pipeline
    status_pipeline: Mapped[str] = mapped_column(String(50), nullable=False)
    motivo_perda: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notas_negociacao: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_criacao: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    data_envio: Mapped[datetime | None] = mapped_column(nullable=True)
    data_fechamento: Mapped[datetime | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client: Mapped["Client | None"] = relationship()
    history: Mapped[list["QuoteHistory"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteHistory.data_evento.desc()",
    )


class QuoteHistory(Base):
    """
    Append-only log for a quote: status transitions, scheduled follow-ups
    and contacts logged by hand.
    """

    __tablename__ = "historico_cotacoes"
    __table_args__ = (Index("idx_historico_cotacao_data", "cotacao_id", "data_evento"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cotacao_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cotacoes.id", ondelete="CASCADE"), nullable=False
    )
    tipo_evento: Mapped[str] = mapped_column(String(30), nullable=False)
    status_anterior: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status_novo: Mapped[str | None] = mapped_column(String(50), nullable=True)
    motivo_perda: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notas: Mapped[str | None] = mapped_column(Text, nullable=True)
    resultado: Mapped[str | None] = mapped_column(String(20), nullable=True)
    data_evento: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
    usuario_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    quote: Mapped["Quote"] = relationship(back_populates="history")
