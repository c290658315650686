"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from brokerage_crm.db.base import Base
from brokerage_crm.db.models.clients import Client
from brokerage_crm.db.models.products import Policy


class Task(Base):
    """
    Broker agenda task (tarefa).

    Owned by one user; optionally tied to a client and/or a policy.
    Shows up on the calendar on its due date.
    """

    __tablename__ = "tarefas"
    __table_args__ = (
        Index("idx_tarefas_org_vencimento", "organization_id", "data_vencimento"),
        Index("idx_tarefas_usuario_pendentes", "usuario_id", "concluida"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    usuario_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    cliente_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True
    )
    apolice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("apolices.id", ondelete="SET NULL"), nullable=True
    )
    descricao: Mapped[str] = mapped_column(Text, nullable=False)
    tipo: Mapped[str] = mapped_column(String(20), default="outro", nullable=False)
    prioridade: Mapped[str] = mapped_column(String(10), default="media", nullable=False)
    data_vencimento: Mapped[date] = mapped_column(Date, nullable=False)
    concluida: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    concluida_em: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client: Mapped[Client | None] = relationship()
    policy: Mapped[Policy | None] = relationship()


class Alert(Base):
    """
    In-app alert for one user.

    Generated alerts point at the row they are about through
    (entidade_tipo, entidade_id); the periodic checks use that pair to avoid
    repeating an alert.
    """

    __tablename__ = "alertas"
    __table_args__ = (
        Index("idx_alertas_usuario_lido", "usuario_id", "lido", "created_at"),
        Index("idx_alertas_dedupe", "tipo", "entidade_id", "usuario_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    usuario_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    tipo: Mapped[str] = mapped_column(String(30), nullable=False)
    titulo: Mapped[str] = mapped_column(String(255), nullable=False)
    mensagem: Mapped[str] = mapped_column(Text, nullable=False)
    prioridade: Mapped[str] = mapped_column(String(10), default="media", nullable=False)
    entidade_tipo: Mapped[str | None] = mapped_column(String(30), nullable=True)
    entidade_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    data_referencia: Mapped[date | None] = mapped_column(Date, nullable=True)
    lido: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    lido_em: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
