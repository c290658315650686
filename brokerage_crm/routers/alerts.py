"""Alerts router - the current user's alerts, plus admin triggers for the checks."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import (
    get_current_session,
    get_db,
    require_csrf_header,
    require_roles,
)
from brokerage_crm.db.enums import AlertType, Role
from brokerage_crm.schemas.alert import (
    AlertCheckResult,
    AlertCount,
    AlertCreate,
    AlertListResponse,
    AlertRead,
    AlertStats,
    AlertSummary,
)
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.services import alert_service
from brokerage_crm.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/alertas", tags=["Alerts"])


@router.get("", response_model=AlertListResponse)
def list_alerts(
    tipo: AlertType | None = None,
    nao_lidos: bool = False,
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """The user's alerts, newest first."""
    items, total = alert_service.list_alerts(
        db,
        session.org_id,
        session.user_id,
        pagination,
        tipo=tipo.value if tipo else None,
        unread_only=nao_lidos,
    )
    return AlertListResponse(data=items, total=total, page=pagination.page, limit=pagination.limit)


@router.get("/resumo", response_model=AlertSummary)
def alert_summary(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return alert_service.get_summary(db, session.org_id, session.user_id)


@router.get("/contagem", response_model=AlertCount)
def alert_count(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Unread alerts per type (for the header badge)."""
    return alert_service.count_unread_by_type(db, session.org_id, session.user_id)


# =============================================================================
# Admin
# =============================================================================

@router.post(
    "/admin/verificar",
    response_model=AlertCheckResult,
    dependencies=[Depends(require_csrf_header)],
)
def run_alert_checks(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_roles([Role.ADMIN])),
):
    """Run the periodic alert checks for this organization now."""
    return alert_service.run_checks(db, session.org_id)


@router.get("/admin/estatisticas", response_model=AlertStats)
def alert_stats(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_roles([Role.ADMIN])),
):
    return alert_service.org_stats(db, session.org_id)


# =============================================================================
# Single alert
# =============================================================================

@router.post(
    "",
    response_model=AlertRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_alert(
    data: AlertCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Create an alert for yourself (a reminder)."""
    return alert_service.create_manual_alert(db, session.org_id, session.user_id, data)


@router.post("/marcar-todos-lidos", dependencies=[Depends(require_csrf_header)])
def mark_all_read(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    count = alert_service.mark_all_read(db, session.org_id, session.user_id)
    return {"count": count}


@router.delete("/lidos/todos", dependencies=[Depends(require_csrf_header)])
def delete_read_alerts(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    count = alert_service.delete_read_alerts(db, session.org_id, session.user_id)
    return {"count": count}


def _get_alert_or_404(db: Session, session: UserSession, alert_id: UUID):
    alert = alert_service.get_alert(db, session.org_id, session.user_id, alert_id)
    if not alert:
        raise HTTPException(404, "Alert not found")
    return alert


@router.get("/{alert_id}", response_model=AlertRead)
def get_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return _get_alert_or_404(db, session, alert_id)


@router.patch(
    "/{alert_id}/lido",
    response_model=AlertRead,
    dependencies=[Depends(require_csrf_header)],
)
def mark_read(
    alert_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    alert = _get_alert_or_404(db, session, alert_id)
    return alert_service.mark_read(db, alert)


@router.delete(
    "/{alert_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    alert = _get_alert_or_404(db, session, alert_id)
    alert_service.delete_alert(db, alert)
    return Response(status_code=204)
