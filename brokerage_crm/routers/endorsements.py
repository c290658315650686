"""Endorsements router - changes requested on policies."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.products import (
    EndorsementCreate,
    EndorsementRead,
    EndorsementStatusChange,
)
from brokerage_crm.services import endorsement_service

router = APIRouter(prefix="/endossos", tags=["Endorsements"])


@router.get("/apolice/{policy_id}", response_model=list[EndorsementRead])
def list_policy_endorsements(
    policy_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Endorsements of a policy, newest request first."""
    policy = endorsement_service.get_policy(db, session.org_id, policy_id)
    if not policy:
        raise HTTPException(404, "Policy not found")
    return endorsement_service.list_for_policy(db, policy)


@router.post(
    "",
    response_model=EndorsementRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_endorsement(
    data: EndorsementCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        return endorsement_service.create_endorsement(db, session.org_id, session.user_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.patch(
    "/{endorsement_id}/status",
    response_model=EndorsementRead,
    dependencies=[Depends(require_csrf_header)],
)
def change_endorsement_status(
    endorsement_id: UUID,
    data: EndorsementStatusChange,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    endorsement = endorsement_service.get_endorsement(db, session.org_id, endorsement_id)
    if not endorsement:
        raise HTTPException(404, "Endorsement not found")
    try:
        return endorsement_service.change_status(db, endorsement, data.status)
    except ValueError as e:
        raise HTTPException(400, str(e))
