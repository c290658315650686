"""Product service - CRUD shared by the client portfolio products.

Policies, claims, consortiums, health plans and financings all hang off a
client and share the same lifecycle: list (by client / status), get, create,
update, delete, and a per-status summary. Each product is described by a
ProductKind; the functions below are generic over it.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from brokerage_crm.db.enums import (
    ClaimStatus,
    ConsortiumStatus,
    FinancingStatus,
    HealthPlanStatus,
    PolicyStatus,
)
from brokerage_crm.db.models import (
    Claim,
    Client,
    Commission,
    Consortium,
    Endorsement,
    Financing,
    HealthPlan,
    Policy,
    Task,
)
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import sanitize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductKind:
    model: type
    statuses: type[Enum]
    label: str
    order_by: str = "created_at"


POLICIES = ProductKind(Policy, PolicyStatus, "Policy", order_by="data_fim")
CLAIMS = ProductKind(Claim, ClaimStatus, "Claim")
CONSORTIUMS = ProductKind(Consortium, ConsortiumStatus, "Consortium")
HEALTH_PLANS = ProductKind(HealthPlan, HealthPlanStatus, "Health plan")
FINANCINGS = ProductKind(Financing, FinancingStatus, "Financing")

# Free-text columns stripped of HTML
TEXT_FIELDS = {"observacoes", "descricao"}


def _column_values(model: type, fields: dict[str, Any]) -> dict[str, Any]:
    """Convert validated payload values to column values (Decimal, enum value, clean text)."""
    columns = model.__table__.c
    values = {}
    for name, value in fields.items():
        if name not in columns:
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, float) and isinstance(columns[name].type, Numeric):
            value = Decimal(str(value))
        elif name in TEXT_FIELDS:
            value = sanitize_text(value)
        values[name] = value
    return values


def _check_client(db: Session, org_id: UUID, client_id: UUID) -> None:
    exists = db.query(Client.id).filter(
        Client.id == client_id,
        Client.organization_id == org_id,
    ).first()
    if not exists:
        raise ValueError("Client not found")


def _check_policy(db: Session, org_id: UUID, policy_id: UUID, client_id: UUID) -> None:
    policy = db.query(Policy).filter(
        Policy.id == policy_id,
        Policy.organization_id == org_id,
    ).first()
    if not policy:
        raise ValueError("Policy not found")
    if policy.cliente_id != client_id:
        raise ValueError("Policy does not belong to this client")


def next_claim_number(db: Session, org_id: UUID, year: int | None = None) -> str:
    """Next claim number for the org: SIN-YYYY-NNNNN, sequential per year."""
    year = year or utcnow().year
    prefix = f"SIN-{year}-"
    numbers = db.query(Claim.numero_sinistro).filter(
        Claim.organization_id == org_id,
        Claim.numero_sinistro.like(f"{prefix}%"),
    ).all()
    last = 0
    for (numero,) in numbers:
        match = re.fullmatch(rf"{prefix}(\d+)", numero)
        if match:
            last = max(last, int(match.group(1)))
    return f"{prefix}{last + 1:05d}"


# =============================================================================
# CRUD
# =============================================================================

def list_items(
    db: Session,
    org_id: UUID,
    kind: ProductKind,
    cliente_id: UUID | None = None,
    status: str | None = None,
) -> list:
    """List products of one kind, newest (or latest-ending for policies) first."""
    model = kind.model
    query = db.query(model).filter(model.organization_id == org_id)
    if cliente_id:
        query = query.filter(model.cliente_id == cliente_id)
    if status and status != "todos":
        query = query.filter(model.status == status)
    return query.order_by(getattr(model, kind.order_by).desc(), model.created_at.desc()).all()


def get_item(db: Session, org_id: UUID, kind: ProductKind, item_id: UUID):
    """Get a product by ID (org-scoped)."""
    model = kind.model
    return db.query(model).filter(
        model.id == item_id,
        model.organization_id == org_id,
    ).first()


def create_item(db: Session, org_id: UUID, kind: ProductKind, data: BaseModel):
    """
    Create a product for a client of the org.

    Claims get a generated number and always start as 'notificado'.
    Raises ValueError if the client (or the claim's policy) is not in the org.
    """
    fields = data.model_dump()
    _check_client(db, org_id, fields["cliente_id"])

    values = _column_values(kind.model, fields)
    if kind is CLAIMS:
        if values.get("apolice_id"):
            _check_policy(db, org_id, values["apolice_id"], values["cliente_id"])
        values["numero_sinistro"] = next_claim_number(db, org_id)
        values["status"] = ClaimStatus.NOTIFICADO.value

    item = kind.model(organization_id=org_id, **values)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(
        "%s created",
        kind.label,
        extra={"org_id": str(org_id), "item_id": str(item.id)},
    )
    return item


def update_item(db: Session, kind: ProductKind, item, data: BaseModel):
    """Update product fields (partial). Client and claim number are fixed."""
    fields = data.model_dump(exclude_unset=True)
    for name, value in _column_values(kind.model, fields).items():
        if name in ("cliente_id", "numero_sinistro"):
            continue
        if value is None and not kind.model.__table__.c[name].nullable:
            continue
        setattr(item, name, value)
    item.updated_at = utcnow()
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, kind: ProductKind, item) -> None:
    """
    Delete a product.

    Removing a policy also removes its commissions and endorsements; claims
    and tasks that referenced it are kept without the link.
    """
    if kind is POLICIES:
        for model in (Commission, Endorsement):
            db.query(model).filter(model.apolice_id == item.id).delete(
                synchronize_session=False
            )
        db.query(Task).filter(Task.apolice_id == item.id).update(
            {Task.apolice_id: None}, synchronize_session=False
        )
        db.query(Claim).filter(Claim.apolice_id == item.id).update(
            {Claim.apolice_id: None}, synchronize_session=False
        )
    db.delete(item)
    db.commit()


def status_summary(db: Session, org_id: UUID, kind: ProductKind) -> dict[str, int]:
    """Total plus one count per status (zero-filled)."""
    model = kind.model
    summary = {"total": 0}
    summary.update({status.value: 0 for status in kind.statuses})
    rows = db.query(model.status, func.count(model.id)).filter(
        model.organization_id == org_id,
    ).group_by(model.status).all()
    for status, count in rows:
        summary["total"] += count
        summary[status] = summary.get(status, 0) + count
    return summary
