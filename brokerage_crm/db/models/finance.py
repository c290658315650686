"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from brokerage_crm.db.base import Base
from brokerage_crm.db.models.products import Policy


class Commission(Base):
    """
    Commission (comissao) earned on a policy.

    descontos_json records the deducted amounts (repasse, imposto) and the
    rates they were computed with.
    """

    __tablename__ = "comissoes"
    __table_args__ = (
        Index("idx_comissoes_org_status", "organization_id", "status"),
        Index("idx_comissoes_org_data", "organization_id", "data_receita"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    apolice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("apolices.id", ondelete="CASCADE"), nullable=False
    )
    valor_bruto: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    descontos_json: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    valor_liquido: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    data_receita: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pendente", nullable=False)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    policy: Mapped[Policy] = relationship()


class CommissionConfig(Base):
    """
    Commission rates per insurer and line.

    ramo='todos' is the insurer-wide fallback, seguradora='Outros' with
    ramo='todos' the brokerage-wide default.
    """

    __tablename__ = "comissao_config"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "seguradora", "ramo", name="uq_comissao_config_seguradora_ramo"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    seguradora: Mapped[str] = mapped_column(String(100), nullable=False)
    ramo: Mapped[str] = mapped_column(String(50), default="todos", nullable=False)
    percentual_comissao: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    percentual_repasse: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    percentual_imposto: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    ativo: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
