"""Agenda tasks, alerts and policy endorsements

Revision ID: 0002_agenda_alerts_endorsements
Revises: 0001_baseline
Create Date: 2026-10-16
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_agenda_alerts_endorsements'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _org() -> sa.Column:
    return sa.Column(
        'organization_id',
        sa.Uuid(),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'),
        nullable=False,
    )


def _user(name: str, nullable: bool, ondelete: str) -> sa.Column:
    return sa.Column(
        name,
        sa.Uuid(),
        sa.ForeignKey('users.id', ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        'endossos',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _org(),
        sa.Column('apolice_id', sa.Uuid(), sa.ForeignKey('apolices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('valor_novo', sa.Numeric(14, 2), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('data_solicitacao', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('data_emissao', sa.DateTime(timezone=True), nullable=True),
        _user('created_by_user_id', nullable=True, ondelete='SET NULL'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_endossos_apolice', 'endossos', ['apolice_id', 'data_solicitacao'])

    op.create_table(
        'tarefas',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _org(),
        _user('usuario_id', nullable=False, ondelete='CASCADE'),
        sa.Column('cliente_id', sa.Uuid(), sa.ForeignKey('clientes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('apolice_id', sa.Uuid(), sa.ForeignKey('apolices.id', ondelete='SET NULL'), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=False),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('prioridade', sa.String(10), nullable=False),
        sa.Column('data_vencimento', sa.Date(), nullable=False),
        sa.Column('concluida', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('concluida_em', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_tarefas_org_vencimento', 'tarefas', ['organization_id', 'data_vencimento'])
    op.create_index('idx_tarefas_usuario_pendentes', 'tarefas', ['usuario_id', 'concluida'])

    op.create_table(
        'alertas',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _org(),
        _user('usuario_id', nullable=False, ondelete='CASCADE'),
        sa.Column('tipo', sa.String(30), nullable=False),
        sa.Column('titulo', sa.String(255), nullable=False),
        sa.Column('mensagem', sa.Text(), nullable=False),
        sa.Column('prioridade', sa.String(10), nullable=False),
        sa.Column('entidade_tipo', sa.String(30), nullable=True),
        sa.Column('entidade_id', sa.Uuid(), nullable=True),
        sa.Column('data_referencia', sa.Date(), nullable=True),
        sa.Column('lido', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('lido_em', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_alertas_usuario_lido', 'alertas', ['usuario_id', 'lido', 'created_at'])
    op.create_index('idx_alertas_dedupe', 'alertas', ['tipo', 'entidade_id', 'usuario_id'])


def downgrade() -> None:
    for table in ('alertas', 'tarefas', 'endossos'):
        op.drop_table(table)
