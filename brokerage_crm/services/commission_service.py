"""Commission service - commissions, commission rates and the finance dashboard.

Rates are configured per (seguradora, ramo). calculate_commission picks the
most specific active rate for a policy:
    (seguradora, ramo) -> (seguradora, 'todos') -> ('Outros', 'todos')
"""

import calendar
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from brokerage_crm.db.enums import CommissionStatus
from brokerage_crm.db.models import Commission, CommissionConfig, Policy
from brokerage_crm.schemas.finance import (
    CommissionConfigCreate,
    CommissionConfigUpdate,
    CommissionCreate,
    CommissionUpdate,
)
from brokerage_crm.utils.dates import utcnow

logger = logging.getLogger(__name__)

CATCH_ALL_LINE = "todos"
DEFAULT_INSURER = "Outros"
CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _percent_of(base: Decimal, percent) -> Decimal:
    return base * Decimal(str(percent or 0)) / Decimal(100)


def month_bounds(month: str) -> tuple[date, date]:
    """First and last day of a YYYY-MM month. Raises ValueError if malformed."""
    try:
        year, number = (int(part) for part in month.split("-"))
        last_day = calendar.monthrange(year, number)[1]
    except (TypeError, ValueError):
        raise ValueError("mes must be in YYYY-MM format")
    return date(year, number, 1), date(year, number, last_day)


def _check_policy(db: Session, org_id: UUID, policy_id: UUID) -> Policy:
    policy = db.query(Policy).filter(
        Policy.id == policy_id,
        Policy.organization_id == org_id,
    ).first()
    if not policy:
        raise ValueError("Policy not found")
    return policy


# =============================================================================
# Commissions
# =============================================================================

def get_commission(db: Session, org_id: UUID, commission_id: UUID) -> Commission | None:
    return db.query(Commission).options(joinedload(Commission.policy)).filter(
        Commission.id == commission_id,
        Commission.organization_id == org_id,
    ).first()


def list_commissions(
    db: Session,
    org_id: UUID,
    apolice_id: UUID | None = None,
    status: str | None = None,
    mes: str | None = None,
    inicio: date | None = None,
    fim: date | None = None,
) -> list[Commission]:
    """
    List commissions by revenue date, newest first.

    mes (YYYY-MM) wins over an inicio/fim range.
    """
    query = db.query(Commission).options(joinedload(Commission.policy)).filter(
        Commission.organization_id == org_id,
    )
    if apolice_id:
        query = query.filter(Commission.apolice_id == apolice_id)
    if status and status != "todos":
        query = query.filter(Commission.status == status)

    if mes:
        first_day, last_day = month_bounds(mes)
        query = query.filter(Commission.data_receita.between(first_day, last_day))
    else:
        if inicio:
            query = query.filter(Commission.data_receita >= inicio)
        if fim:
            query = query.filter(Commission.data_receita <= fim)

    return query.order_by(Commission.data_receita.desc(), Commission.created_at.desc()).all()


def create_commission(db: Session, org_id: UUID, data: CommissionCreate) -> Commission:
    _check_policy(db, org_id, data.apolice_id)
    commission = Commission(
        organization_id=org_id,
        apolice_id=data.apolice_id,
        valor_bruto=_money(data.valor_bruto),
        descontos_json=data.descontos_json,
        valor_liquido=_money(data.valor_liquido),
        data_receita=data.data_receita,
        status=data.status.value,
        observacoes=data.observacoes,
    )
    db.add(commission)
    db.commit()
    db.refresh(commission)
    return commission


def update_commission(db: Session, commission: Commission, data: CommissionUpdate) -> Commission:
    fields = data.model_dump(exclude_unset=True)
    for field in ("valor_bruto", "valor_liquido"):
        if fields.get(field) is not None:
            setattr(commission, field, _money(fields[field]))
    if fields.get("descontos_json") is not None:
        commission.descontos_json = fields["descontos_json"]
    if "data_receita" in fields:
        commission.data_receita = fields["data_receita"]
    if fields.get("status"):
        commission.status = CommissionStatus(fields["status"]).value
    if "observacoes" in fields:
        commission.observacoes = fields["observacoes"]
    commission.updated_at = utcnow()
    db.commit()
    db.refresh(commission)
    return commission


def delete_commission(db: Session, commission: Commission) -> None:
    db.delete(commission)
    db.commit()


# =============================================================================
# Commission rates
# =============================================================================

def get_config(db: Session, org_id: UUID, config_id: UUID) -> CommissionConfig | None:
    return db.query(CommissionConfig).filter(
        CommissionConfig.id == config_id,
        CommissionConfig.organization_id == org_id,
    ).first()


def list_configs(
    db: Session,
    org_id: UUID,
    seguradora: str | None = None,
    ramo: str | None = None,
    ativo: bool | None = None,
) -> list[CommissionConfig]:
    query = db.query(CommissionConfig).filter(CommissionConfig.organization_id == org_id)
    if seguradora:
        query = query.filter(CommissionConfig.seguradora == seguradora)
    if ramo:
        query = query.filter(CommissionConfig.ramo == ramo)
    if ativo is not None:
        query = query.filter(CommissionConfig.ativo == ativo)
    return query.order_by(CommissionConfig.seguradora, CommissionConfig.ramo).all()


def create_config(db: Session, org_id: UUID, data: CommissionConfigCreate) -> CommissionConfig:
    """
    Create a rate for (seguradora, ramo).

    Raises ValueError if the pair is already configured.
    """
    seguradora = data.seguradora.strip()
    ramo = data.ramo.strip()
    duplicate = db.query(CommissionConfig.id).filter(
        CommissionConfig.organization_id == org_id,
        CommissionConfig.seguradora == seguradora,
        CommissionConfig.ramo == ramo,
    ).first()
    if duplicate:
        raise ValueError("A commission rate already exists for this insurer/line")

    config = CommissionConfig(
        organization_id=org_id,
        seguradora=seguradora,
        ramo=ramo,
        percentual_comissao=Decimal(str(data.percentual_comissao)),
        percentual_repasse=Decimal(str(data.percentual_repasse)),
        percentual_imposto=Decimal(str(data.percentual_imposto)),
        ativo=data.ativo,
    )
    db.add(config)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("A commission rate already exists for this insurer/line")
    db.refresh(config)
    return config


def update_config(
    db: Session,
    config: CommissionConfig,
    data: CommissionConfigUpdate,
) -> CommissionConfig:
    fields = data.model_dump(exclude_unset=True)
    for field in ("percentual_comissao", "percentual_repasse", "percentual_imposto"):
        if fields.get(field) is not None:
            setattr(config, field, Decimal(str(fields[field])))
    if fields.get("ativo") is not None:
        config.ativo = fields["ativo"]
    config.updated_at = utcnow()
    db.commit()
    db.refresh(config)
    return config


def delete_config(db: Session, config: CommissionConfig) -> None:
    db.delete(config)
    db.commit()


def find_rate(db: Session, org_id: UUID, seguradora: str, ramo: str) -> CommissionConfig | None:
    """Most specific active rate for an insurer/line, or None."""
    for insurer, line in (
        (seguradora, ramo),
        (seguradora, CATCH_ALL_LINE),
        (DEFAULT_INSURER, CATCH_ALL_LINE),
    ):
        config = db.query(CommissionConfig).filter(
            CommissionConfig.organization_id == org_id,
            CommissionConfig.seguradora == insurer,
            CommissionConfig.ramo == line,
            CommissionConfig.ativo == True,  # noqa: E712
        ).first()
        if config is not None:
            return config
    return None


def calculate_commission(db: Session, org_id: UUID, policy_id: UUID) -> tuple[Commission, dict]:
    """
    Create the pending commission for a policy from the applicable rate.

        bruto   = premio x %comissao
        repasse = bruto x %repasse
        imposto = bruto x %imposto
        liquido = bruto - repasse - imposto

    Returns:
        (commission, breakdown)

    Raises ValueError if the policy already has a commission or no rate applies.
    """
    policy = _check_policy(db, org_id, policy_id)

    existing = db.query(Commission.id).filter(
        Commission.organization_id == org_id,
        Commission.apolice_id == policy.id,
    ).first()
    if existing:
        raise ValueError("A commission already exists for this policy")

    config = find_rate(db, org_id, policy.seguradora, policy.ramo)
    if config is None or not config.percentual_comissao:
        raise ValueError("No commission rate configured for this insurer/line")

    premium = Decimal(str(policy.valor_premio or 0))
    gross = _percent_of(premium, config.percentual_comissao)
    transfer = _percent_of(gross, config.percentual_repasse)
    tax = _percent_of(gross, config.percentual_imposto)
    net = gross - transfer - tax

    breakdown = {
        "premio": float(premium),
        "percentual_comissao": float(config.percentual_comissao),
        "valor_bruto": float(_money(gross)),
        "percentual_repasse": float(config.percentual_repasse or 0),
        "valor_repasse": float(_money(transfer)),
        "percentual_imposto": float(config.percentual_imposto or 0),
        "valor_imposto": float(_money(tax)),
        "valor_liquido": float(_money(net)),
    }

    commission = Commission(
        organization_id=org_id,
        apolice_id=policy.id,
        valor_bruto=_money(gross),
        descontos_json={
            "repasse": breakdown["valor_repasse"],
            "imposto": breakdown["valor_imposto"],
            "percentual_comissao": breakdown["percentual_comissao"],
            "percentual_repasse": breakdown["percentual_repasse"],
            "percentual_imposto": breakdown["percentual_imposto"],
        },
        valor_liquido=_money(net),
        data_receita=policy.data_inicio,
        status=CommissionStatus.PENDENTE.value,
    )
    db.add(commission)
    db.commit()
    db.refresh(commission)
    logger.info(
        "Commission calculated",
        extra={"org_id": str(org_id), "policy_id": str(policy.id)},
    )
    return commission, breakdown


# =============================================================================
# Dashboard
# =============================================================================

def finance_dashboard(db: Session, org_id: UUID, today: date | None = None) -> dict:
    """Revenue this month, pending commissions and total received."""
    today = today or utcnow().date()
    month_start = today.replace(day=1)
    settled = CommissionStatus.settled()

    def net_sum(*conditions) -> float:
        value = db.query(func.coalesce(func.sum(Commission.valor_liquido), 0)).filter(
            Commission.organization_id == org_id,
            *conditions,
        ).scalar()
        return float(value or 0)

    pending_count = db.query(func.count(Commission.id)).filter(
        Commission.organization_id == org_id,
        Commission.status == CommissionStatus.PENDENTE.value,
    ).scalar() or 0

    return {
        "receita_mes": net_sum(
            Commission.status.in_(settled),
            Commission.data_receita >= month_start,
        ),
        "comissoes_pendentes": pending_count,
        "valor_pendente": net_sum(Commission.status == CommissionStatus.PENDENTE.value),
        "total_recebido": net_sum(Commission.status.in_(settled)),
    }
