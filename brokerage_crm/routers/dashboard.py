"""Dashboard router - sales board and conversion analytics."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.dashboard import ConversionMetrics
from brokerage_crm.schemas.pipeline import BoardResponse
from brokerage_crm.services import dashboard_service, pipeline_board

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/pipeline-vendas", response_model=BoardResponse)
def sales_pipeline(
    mostrar_fechadas: bool = Query(True, description="Include won/lost columns"),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Same board as GET /pipeline/quadro."""
    return pipeline_board.get_board(db, session.org_id, show_closed=mostrar_fechadas)


@router.get("/metricas-conversao", response_model=ConversionMetrics)
def conversion_metrics(
    periodo: int = Query(30, ge=1, le=3650, description="Trailing window in days"),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return dashboard_service.conversion_metrics(db, session.org_id, periodo=periodo)
