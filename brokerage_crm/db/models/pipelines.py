"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from brokerage_crm.db.base import Base


class PipelinePhase(Base):
    """
    One column of the sales pipeline (kanban) board.

    - chave: stable slug, unique per organization; quotes reference it
      through status_pipeline
    - ordem: left-to-right position, unique among active phases
    - sistema: built-in phase, cannot be deleted or moved
    - Soft-delete via ativo + deleted_at
    """

    __tablename__ = "pipeline_fases"
    __table_args__ = (
        UniqueConstraint("organization_id", "chave", name="uq_pipeline_fase_chave"),
        Index("idx_pipeline_fases_org_ordem", "organization_id", "ordem"),
        Index("idx_pipeline_fases_org_ativo", "organization_id", "ativo"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )

    nome: Mapped[str] = mapped_column(String(100), nullable=False)
    chave: Mapped[str] = mapped_column(String(50), nullable=False)
    cor: Mapped[str] = mapped_column(String(20), default="slate", nullable=False)
    ordem: Mapped[int] = mapped_column(Integer, nullable=False)
    sistema: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )

    # Soft-delete
    ativo: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
