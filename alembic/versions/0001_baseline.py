"""Baseline migration - tenants, sales pipeline, clients, products, commissions

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-16

Creates every table of the brokerage CRM. Column types are portable
(sa.Uuid, sa.JSON) so the same migration runs on PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', sa.Uuid(), primary_key=True)


def _org() -> sa.Column:
    return sa.Column(
        'organization_id',
        sa.Uuid(),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'),
        nullable=False,
    )


def _client(nullable: bool = False, ondelete: str = 'CASCADE') -> sa.Column:
    return sa.Column(
        'cliente_id',
        sa.Uuid(),
        sa.ForeignKey('clientes.id', ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ==========================================================================
    # Tenants and users
    # ==========================================================================
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'memberships',
        _id(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        _org(),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_memberships_org_id', 'memberships', ['organization_id'])

    # ==========================================================================
    # Sales pipeline phases
    # ==========================================================================
    op.create_table(
        'pipeline_fases',
        _id(),
        _org(),
        sa.Column('nome', sa.String(100), nullable=False),
        sa.Column('chave', sa.String(50), nullable=False),
        sa.Column('cor', sa.String(20), nullable=False),
        sa.Column('ordem', sa.Integer(), nullable=False),
        sa.Column('sistema', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('ativo', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'chave', name='uq_pipeline_fase_chave'),
    )
    op.create_index('idx_pipeline_fases_org_ordem', 'pipeline_fases', ['organization_id', 'ordem'])
    op.create_index('idx_pipeline_fases_org_ativo', 'pipeline_fases', ['organization_id', 'ativo'])

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.create_table(
        'clientes',
        _id(),
        _org(),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('tipo', sa.String(2), nullable=False),
        sa.Column('cpf_cnpj', sa.String(14), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('telefone', sa.String(50), nullable=True),
        sa.Column('data_nascimento', sa.Date(), nullable=True),
        sa.Column('endereco', sa.Text(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('ativo', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'cpf_cnpj', name='uq_cliente_cpf_cnpj'),
    )
    op.create_index('idx_clientes_org_nome', 'clientes', ['organization_id', 'nome'])

    # ==========================================================================
    # Quotes and their history
    # ==========================================================================
    op.create_table(
        'cotacoes',
        _id(),
        _org(),
        _client(nullable=True, ondelete='SET NULL'),
        sa.Column('lead_nome', sa.String(255), nullable=True),
        sa.Column('lead_telefone', sa.String(50), nullable=True),
        sa.Column('lead_email', sa.String(255), nullable=True),
        sa.Column('ramo', sa.String(50), nullable=False),
        sa.Column('dados_cotacao', sa.JSON(), nullable=False),
        sa.Column('seguradoras_json', sa.JSON(), nullable=False),
        sa.Column('validade_cotacao', sa.Date(), nullable=True),
        sa.Column('valor_estimado', sa.Numeric(14, 2), nullable=True),
        sa.Column('proximo_contato', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status_pipeline', sa.String(50), nullable=False),
        sa.Column('motivo_perda', sa.String(50), nullable=True),
        sa.Column('notas_negociacao', sa.Text(), nullable=True),
        sa.Column('data_criacao', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('data_envio', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data_fechamento', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_cotacoes_org_status', 'cotacoes', ['organization_id', 'status_pipeline'])
    op.create_index('idx_cotacoes_org_cliente', 'cotacoes', ['organization_id', 'cliente_id'])
    op.create_index('idx_cotacoes_org_criacao', 'cotacoes', ['organization_id', 'data_criacao'])

    op.create_table(
        'historico_cotacoes',
        _id(),
        _org(),
        sa.Column('cotacao_id', sa.Uuid(), sa.ForeignKey('cotacoes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tipo_evento', sa.String(30), nullable=False),
        sa.Column('status_anterior', sa.String(50), nullable=True),
        sa.Column('status_novo', sa.String(50), nullable=True),
        sa.Column('motivo_perda', sa.String(50), nullable=True),
        sa.Column('notas', sa.Text(), nullable=True),
        sa.Column('resultado', sa.String(20), nullable=True),
        sa.Column('data_evento', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('usuario_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('idx_historico_cotacao_data', 'historico_cotacoes', ['cotacao_id', 'data_evento'])

    # ==========================================================================
    # Client products
    # ==========================================================================
    op.create_table(
        'apolices',
        _id(),
        _org(),
        _client(),
        sa.Column('numero_apolice', sa.String(100), nullable=True),
        sa.Column('seguradora', sa.String(100), nullable=False),
        sa.Column('ramo', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('valor_premio', sa.Numeric(14, 2), nullable=False),
        sa.Column('data_inicio', sa.Date(), nullable=True),
        sa.Column('data_fim', sa.Date(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_apolices_org_cliente', 'apolices', ['organization_id', 'cliente_id'])
    op.create_index('idx_apolices_org_status', 'apolices', ['organization_id', 'status'])

    op.create_table(
        'sinistros',
        _id(),
        _org(),
        _client(),
        sa.Column('apolice_id', sa.Uuid(), sa.ForeignKey('apolices.id', ondelete='SET NULL'), nullable=True),
        sa.Column('numero_sinistro', sa.String(20), nullable=False),
        sa.Column('tipo', sa.String(100), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('data_ocorrencia', sa.Date(), nullable=True),
        sa.Column('valor_indenizacao', sa.Numeric(14, 2), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'numero_sinistro', name='uq_sinistro_numero'),
    )
    op.create_index('idx_sinistros_org_cliente', 'sinistros', ['organization_id', 'cliente_id'])

    op.create_table(
        'consorcios',
        _id(),
        _org(),
        _client(),
        sa.Column('administradora', sa.String(100), nullable=False),
        sa.Column('grupo', sa.String(50), nullable=True),
        sa.Column('cota', sa.String(50), nullable=True),
        sa.Column('valor_credito', sa.Numeric(14, 2), nullable=False),
        sa.Column('valor_parcela', sa.Numeric(14, 2), nullable=True),
        sa.Column('prazo_meses', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('data_adesao', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_consorcios_org_cliente', 'consorcios', ['organization_id', 'cliente_id'])

    op.create_table(
        'planos_saude',
        _id(),
        _org(),
        _client(),
        sa.Column('operadora', sa.String(100), nullable=False),
        sa.Column('plano', sa.String(100), nullable=True),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('valor_mensalidade', sa.Numeric(14, 2), nullable=False),
        sa.Column('numero_vidas', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('data_inicio', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_planos_saude_org_cliente', 'planos_saude', ['organization_id', 'cliente_id'])

    op.create_table(
        'financiamentos',
        _id(),
        _org(),
        _client(),
        sa.Column('instituicao', sa.String(100), nullable=False),
        sa.Column('tipo', sa.String(50), nullable=True),
        sa.Column('valor_financiado', sa.Numeric(14, 2), nullable=False),
        sa.Column('saldo_devedor', sa.Numeric(14, 2), nullable=False),
        sa.Column('valor_parcela', sa.Numeric(14, 2), nullable=True),
        sa.Column('prazo_meses', sa.Integer(), nullable=True),
        sa.Column('taxa_juros', sa.Numeric(6, 3), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('data_contratacao', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_financiamentos_org_cliente', 'financiamentos', ['organization_id', 'cliente_id'])

    # ==========================================================================
    # Commissions
    # ==========================================================================
    op.create_table(
        'comissoes',
        _id(),
        _org(),
        sa.Column('apolice_id', sa.Uuid(), sa.ForeignKey('apolices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('valor_bruto', sa.Numeric(14, 2), nullable=False),
        sa.Column('descontos_json', sa.JSON(), nullable=False),
        sa.Column('valor_liquido', sa.Numeric(14, 2), nullable=False),
        sa.Column('data_receita', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('observacoes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_comissoes_org_status', 'comissoes', ['organization_id', 'status'])
    op.create_index('idx_comissoes_org_data', 'comissoes', ['organization_id', 'data_receita'])

    op.create_table(
        'comissao_config',
        _id(),
        _org(),
        sa.Column('seguradora', sa.String(100), nullable=False),
        sa.Column('ramo', sa.String(50), nullable=False),
        sa.Column('percentual_comissao', sa.Numeric(5, 2), nullable=False),
        sa.Column('percentual_repasse', sa.Numeric(5, 2), nullable=False),
        sa.Column('percentual_imposto', sa.Numeric(5, 2), nullable=False),
        sa.Column('ativo', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'seguradora', 'ramo', name='uq_comissao_config_seguradora_ramo'),
    )


def downgrade() -> None:
    """Drop all tables (reverse dependency order)."""
    for table in (
        'comissao_config',
        'comissoes',
        'financiamentos',
        'planos_saude',
        'consorcios',
        'sinistros',
        'apolices',
        'historico_cotacoes',
        'cotacoes',
        'clientes',
        'pipeline_fases',
        'memberships',
        'users',
        'organizations',
    ):
        op.drop_table(table)
