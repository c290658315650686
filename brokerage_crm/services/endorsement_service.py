"""Endorsement service - changes requested on a live policy.

Lifecycle: rascunho -> enviado -> aceito -> emitido. Any forward or backward
move is allowed until the insurer issues the endorsement; once 'emitido' it
is final and carries its issue date.
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from brokerage_crm.core.structured_logging import build_log_context
from brokerage_crm.db.enums import EndorsementStatus
from brokerage_crm.db.models import Endorsement, Policy
from brokerage_crm.schemas.products import EndorsementCreate
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import sanitize_text

logger = logging.getLogger(__name__)


def get_policy(db: Session, org_id: UUID, policy_id: UUID) -> Policy | None:
    return db.query(Policy).filter(
        Policy.id == policy_id,
        Policy.organization_id == org_id,
    ).first()


def list_for_policy(db: Session, policy: Policy) -> list[Endorsement]:
    """Endorsements of a policy, most recently requested first."""
    return db.query(Endorsement).filter(
        Endorsement.organization_id == policy.organization_id,
        Endorsement.apolice_id == policy.id,
    ).order_by(Endorsement.data_solicitacao.desc(), Endorsement.created_at.desc()).all()


def get_endorsement(db: Session, org_id: UUID, endorsement_id: UUID) -> Endorsement | None:
    return db.query(Endorsement).filter(
        Endorsement.id == endorsement_id,
        Endorsement.organization_id == org_id,
    ).first()


def create_endorsement(
    db: Session,
    org_id: UUID,
    user_id: UUID | None,
    data: EndorsementCreate,
) -> Endorsement:
    """
    Create a draft endorsement.

    Raises ValueError if the policy is not in the org.
    """
    policy = get_policy(db, org_id, data.apolice_id)
    if not policy:
        raise ValueError("Policy not found")

    endorsement = Endorsement(
        organization_id=org_id,
        apolice_id=policy.id,
        tipo=data.tipo.value,
        descricao=sanitize_text(data.descricao),
        valor_novo=Decimal(str(data.valor_novo)) if data.valor_novo is not None else None,
        status=EndorsementStatus.RASCUNHO.value,
        data_solicitacao=utcnow(),
        created_by_user_id=user_id,
    )
    db.add(endorsement)
    db.commit()
    db.refresh(endorsement)
    logger.info(
        "Endorsement requested",
        extra={
            **build_log_context(user_id=user_id, org_id=org_id, policy_id=policy.id),
            "tipo": endorsement.tipo,
        },
    )
    return endorsement


def change_status(
    db: Session,
    endorsement: Endorsement,
    status: EndorsementStatus,
) -> Endorsement:
    """
    Move an endorsement to another status; 'emitido' stamps data_emissao.

    Raises ValueError once the endorsement has been issued.
    """
    if endorsement.status == EndorsementStatus.EMITIDO.value:
        raise ValueError("Issued endorsements cannot change status")

    endorsement.status = status.value
    if status == EndorsementStatus.EMITIDO:
        endorsement.data_emissao = utcnow()
    endorsement.updated_at = utcnow()
    db.commit()
    db.refresh(endorsement)
    return endorsement
