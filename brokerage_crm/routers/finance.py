"""Finance router - commissions, commission rates and the finance dashboard."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.finance import (
    CommissionCalculateRequest,
    CommissionCalculateResponse,
    CommissionConfigCreate,
    CommissionConfigRead,
    CommissionConfigUpdate,
    CommissionCreate,
    CommissionListResponse,
    CommissionRead,
    CommissionUpdate,
    FinanceDashboard,
)
from brokerage_crm.services import commission_service

router = APIRouter(prefix="/financeiro", tags=["Finance"])


@router.get("/dashboard", response_model=FinanceDashboard)
def finance_dashboard(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Revenue this month, pending commissions and total received."""
    return commission_service.finance_dashboard(db, session.org_id)


# =============================================================================
# Commissions
# =============================================================================

@router.get("/comissoes", response_model=CommissionListResponse)
def list_commissions(
    apolice_id: UUID | None = None,
    status: str | None = None,
    mes: str | None = Query(None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    inicio: date | None = None,
    fim: date | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        items = commission_service.list_commissions(
            db,
            session.org_id,
            apolice_id=apolice_id,
            status=status,
            mes=mes,
            inicio=inicio,
            fim=fim,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return CommissionListResponse(data=items, total=len(items))


@router.get("/comissoes/{commission_id}", response_model=CommissionRead)
def get_commission(
    commission_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    commission = commission_service.get_commission(db, session.org_id, commission_id)
    if not commission:
        raise HTTPException(404, "Commission not found")
    return commission


@router.post(
    "/comissoes",
    response_model=CommissionRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_commission(
    data: CommissionCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        return commission_service.create_commission(db, session.org_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/comissoes/{commission_id}",
    response_model=CommissionRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_commission(
    commission_id: UUID,
    data: CommissionUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    commission = commission_service.get_commission(db, session.org_id, commission_id)
    if not commission:
        raise HTTPException(404, "Commission not found")
    return commission_service.update_commission(db, commission, data)


@router.delete(
    "/comissoes/{commission_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_commission(
    commission_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    commission = commission_service.get_commission(db, session.org_id, commission_id)
    if not commission:
        raise HTTPException(404, "Commission not found")
    commission_service.delete_commission(db, commission)
    return Response(status_code=204)


@router.post(
    "/calcular-comissao",
    response_model=CommissionCalculateResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def calculate_commission(
    data: CommissionCalculateRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Create the pending commission for a policy from the configured rates."""
    try:
        commission, breakdown = commission_service.calculate_commission(
            db, session.org_id, data.apolice_id
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return CommissionCalculateResponse(
        comissao=CommissionRead.model_validate(commission),
        calculo=breakdown,
    )


# =============================================================================
# Commission rates
# =============================================================================

@router.get("/comissao-config", response_model=list[CommissionConfigRead])
def list_configs(
    seguradora: str | None = None,
    ramo: str | None = None,
    ativo: bool | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return commission_service.list_configs(
        db, session.org_id, seguradora=seguradora, ramo=ramo, ativo=ativo
    )


@router.get("/comissao-config/{config_id}", response_model=CommissionConfigRead)
def get_config(
    config_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    config = commission_service.get_config(db, session.org_id, config_id)
    if not config:
        raise HTTPException(404, "Commission rate not found")
    return config


@router.post(
    "/comissao-config",
    response_model=CommissionConfigRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_config(
    data: CommissionConfigCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    try:
        return commission_service.create_config(db, session.org_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/comissao-config/{config_id}",
    response_model=CommissionConfigRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_config(
    config_id: UUID,
    data: CommissionConfigUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    config = commission_service.get_config(db, session.org_id, config_id)
    if not config:
        raise HTTPException(404, "Commission rate not found")
    return commission_service.update_config(db, config, data)


@router.delete(
    "/comissao-config/{config_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_config(
    config_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    config = commission_service.get_config(db, session.org_id, config_id)
    if not config:
        raise HTTPException(404, "Commission rate not found")
    commission_service.delete_config(db, config)
    return Response(status_code=204)
