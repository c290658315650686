"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from brokerage_crm.db.base import Base


class Policy(Base):
    """Insurance policy (apolice) held by a client."""

    __tablename__ = "apolices"
    __table_args__ = (
        Index("idx_apolices_org_cliente", "organization_id", "cliente_id"),
        Index("idx_apolices_org_status", "organization_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False
    )
    numero_apolice: Mapped[str | None] = mapped_column(String(100), nullable=True)
    seguradora: Mapped[str] = mapped_column(String(100), nullable=False)
    ramo: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="vigente", nullable=False)
    valor_premio: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    data_inicio: Mapped[date | None] = mapped_column(Date, nullable=True)
    data_fim: Mapped[date | None] = mapped_column(Date, nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Claim(Base):
    """
    Insurance claim (sinistro).

    numero_sinistro is generated on creation (SIN-YYYY-NNNNN, sequential per
    organization and year) and claims always start as 'notificado'.
    """

    __tablename__ = "sinistros"
    __table_args__ = (
        UniqueConstraint("organization_id", "numero_sinistro", name="uq_sinistro_numero"),
        Index("idx_sinistros_org_cliente", "organization_id", "cliente_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False
    )
    apolice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("apolices.id", ondelete="SET NULL"), nullable=True
    )
    numero_sinistro: Mapped[str] = mapped_column(String(20), nullable=False)
    tipo: Mapped[str] = mapped_column(String(100), nullable=False)
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="notificado", nullable=False)
    data_ocorrencia: Mapped[date | None] = mapped_column(Date, nullable=True)
    valor_indenizacao: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Consortium(Base):
    """Consortium quota (consorcio)."""

    __tablename__ = "consorcios"
    __table_args__ = (Index("idx_consorcios_org_cliente", "organization_id", "cliente_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False
    )
    administradora: Mapped[str] = mapped_column(String(100), nullable=False)
    grupo: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cota: Mapped[str | None] = mapped_column(String(50), nullable=True)
    valor_credito: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    valor_parcela: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    prazo_meses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="ativo", nullable=False)
    data_adesao: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class HealthPlan(Base):
    """Health plan contract (plano de saude)."""

    __tablename__ = "planos_saude"
    __table_args__ = (Index("idx_planos_saude_org_cliente", "organization_id", "cliente_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False
    )
    operadora: Mapped[str] = mapped_column(String(100), nullable=False)
    plano: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tipo: Mapped[str] = mapped_column(String(20), default="individual", nullable=False)
    valor_mensalidade: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=0, nullable=False
    )
    numero_vidas: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="ativo", nullable=False)
    data_inicio: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Financing(Base):
    """Financing contract (financiamento)."""

    __tablename__ = "financiamentos"
    __table_args__ = (
        Index("idx_financiamentos_org_cliente", "organization_id", "cliente_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="CASCADE"), nullable=False
    )
    instituicao: Mapped[str] = mapped_column(String(100), nullable=False)
    tipo: Mapped[str | None] = mapped_column(String(50), nullable=True)
    valor_financiado: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=0, nullable=False
    )
    saldo_devedor: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    valor_parcela: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    prazo_meses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    taxa_juros: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="ativo", nullable=False)
    data_contratacao: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Endorsement(Base):
    """
    Policy endorsement (endosso): a change requested on a live policy.

    Starts as 'rascunho'; data_emissao is stamped when it reaches 'emitido'.
    """

    __tablename__ = "endossos"
    __table_args__ = (Index("idx_endossos_apolice", "apolice_id", "data_solicitacao"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    apolice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("apolices.id", ondelete="CASCADE"), nullable=False
    )
    tipo: Mapped[str] = mapped_column(String(20), nullable=False)
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    valor_novo: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="rascunho", nullable=False)
    data_solicitacao: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    data_emissao: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
