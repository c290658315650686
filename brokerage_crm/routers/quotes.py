"""Quotes router - quote CRUD, pipeline transitions, follow-ups and history."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.quote import (
    FollowUpSchedule,
    HistoryCreate,
    HistoryRead,
    PhaseStats,
    QuoteCreate,
    QuoteDetail,
    QuoteListResponse,
    QuoteRead,
    QuoteStatusChange,
    QuoteUpdate,
)
from brokerage_crm.services import quote_service
from brokerage_crm.services.version_service import VersionConflictError
from brokerage_crm.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/cotacoes", tags=["Quotes"])


def _get_quote_or_404(db: Session, session: UserSession, quote_id: UUID):
    quote = quote_service.get_quote(db, session.org_id, quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _version_conflict(e: VersionConflictError) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=f"Version conflict: expected {e.expected}, got {e.actual}",
    )


@router.get("", response_model=QuoteListResponse)
def list_quotes(
    cliente_id: UUID | None = None,
    ramo: str | None = None,
    status_pipeline: str | None = None,
    search: str | None = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """List quotes with filters and pagination."""
    items, total = quote_service.list_quotes(
        db,
        session.org_id,
        pagination,
        cliente_id=cliente_id,
        ramo=ramo,
        status_pipeline=status_pipeline,
        search=search,
    )
    return QuoteListResponse(
        data=items,
        total=total,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.get("/stats/pipeline", response_model=dict[str, PhaseStats])
def pipeline_stats(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Quote count and value per active phase."""
    return quote_service.pipeline_stats(db, session.org_id)


@router.post(
    "",
    response_model=QuoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_quote(
    data: QuoteCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Create a quote in the pipeline's entry phase."""
    try:
        return quote_service.create_quote(db, session.org_id, session.user_id, data)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.get("/{quote_id}", response_model=QuoteDetail)
def get_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Quote with its client and history."""
    quote = _get_quote_or_404(db, session, quote_id)
    return QuoteDetail.model_validate(quote)


@router.put(
    "/{quote_id}",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_quote(
    quote_id: UUID,
    data: QuoteUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Update quote fields.

    A changed status_pipeline is applied as a phase transition
    (same rules as PATCH /cotacoes/{id}/status).
    """
    quote = _get_quote_or_404(db, session, quote_id)
    try:
        return quote_service.update_quote(db, quote, session.user_id, data)
    except VersionConflictError as e:
        raise _version_conflict(e)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.patch(
    "/{quote_id}/status",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def change_status(
    quote_id: UUID,
    data: QuoteStatusChange,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Move a quote to another phase.

    - Lost requires motivo_perda
    - Won links (or creates) the client from dados_cliente
    Returns 409 if expected_version is stale.
    """
    quote = _get_quote_or_404(db, session, quote_id)
    try:
        return quote_service.change_status(
            db,
            quote,
            user_id=session.user_id,
            target_key=data.status_pipeline,
            motivo_perda=data.motivo_perda,
            notas=data.notas,
            dados_cliente=data.dados_cliente,
            expected_version=data.expected_version,
        )
    except VersionConflictError as e:
        raise _version_conflict(e)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post(
    "/{quote_id}/follow-up",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def schedule_follow_up(
    quote_id: UUID,
    data: FollowUpSchedule,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Schedule the next contact."""
    quote = _get_quote_or_404(db, session, quote_id)
    return quote_service.schedule_follow_up(
        db, quote, session.user_id, data.proximo_contato, data.notas
    )


@router.get("/{quote_id}/historico", response_model=list[HistoryRead])
def list_history(
    quote_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Quote history, newest first."""
    quote = _get_quote_or_404(db, session, quote_id)
    return quote_service.list_history(db, quote)


@router.post(
    "/{quote_id}/historico",
    response_model=HistoryRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_history(
    quote_id: UUID,
    data: HistoryCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Log a contact (ligacao, email, whatsapp, reuniao, anotacao)."""
    quote = _get_quote_or_404(db, session, quote_id)
    try:
        return quote_service.add_history_entry(
            db,
            quote,
            session.user_id,
            tipo_evento=data.tipo_evento,
            notas=data.notas,
            resultado=data.resultado.value if data.resultado else None,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
