"""Clients router - client CRUD, portfolio and 360 summary."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.client import (
    Client360,
    ClientCreate,
    ClientRead,
    ClientStats,
    ClientUpdate,
)
from brokerage_crm.schemas.products import ClaimRead, PolicyRead
from brokerage_crm.services import client_service

router = APIRouter(prefix="/clientes", tags=["Clients"])


def _get_client_or_404(db: Session, session: UserSession, client_id: UUID):
    client = client_service.get_client(db, session.org_id, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("", response_model=list[ClientRead])
def list_clients(
    search: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return client_service.list_clients(db, session.org_id, search=search)


@router.get("/stats/summary", response_model=ClientStats)
def client_stats(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return client_service.client_stats(db, session.org_id)


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return _get_client_or_404(db, session, client_id)


@router.get("/{client_id}/resumo-360", response_model=Client360)
def client_360(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Policies, claims, consortiums, health plans, financings and quotes at a glance."""
    client = _get_client_or_404(db, session, client_id)
    return client_service.client_360(db, client)


@router.get("/{client_id}/apolices", response_model=list[PolicyRead])
def client_policies(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    client = _get_client_or_404(db, session, client_id)
    return client_service.list_client_policies(db, client)


@router.get("/{client_id}/sinistros", response_model=list[ClaimRead])
def client_claims(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    client = _get_client_or_404(db, session, client_id)
    return client_service.list_client_claims(db, client)


@router.post(
    "",
    response_model=ClientRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        return client_service.create_client(db, session.org_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/{client_id}",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_client(
    client_id: UUID,
    data: ClientUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    client = _get_client_or_404(db, session, client_id)
    try:
        return client_service.update_client(db, client, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.delete(
    "/{client_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Delete a client and its products. Quotes are kept, unlinked."""
    client = _get_client_or_404(db, session, client_id)
    client_service.delete_client(db, client)
    return Response(status_code=204)
