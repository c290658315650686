"""Pipeline router - phase configuration and the kanban board."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.pipeline import (
    BoardResponse,
    PhaseCreate,
    PhaseRead,
    PhaseReorder,
    PhaseUpdate,
)
from brokerage_crm.services import pipeline_board, pipeline_service

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])


@router.get("/fases", response_model=list[PhaseRead])
def list_phases(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Active phases in board order. Seeds the defaults on first access."""
    return pipeline_service.get_or_create_default_phases(db, session.org_id, session.user_id)


@router.post(
    "/fases",
    response_model=PhaseRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_phase(
    data: PhaseCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Add a phase.

    Key derived from the name when omitted; appended at the end unless
    `ordem` is given.
    """
    try:
        return pipeline_service.create_phase(
            db=db,
            org_id=session.org_id,
            nome=data.nome,
            cor=data.cor.value,
            chave=data.chave,
            ordem=data.ordem,
            user_id=session.user_id,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post(
    "/fases/reordenar",
    response_model=list[PhaseRead],
    dependencies=[Depends(require_csrf_header)],
)
def reorder_phases(
    data: PhaseReorder,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Reorder phases. Must list every active phase once.

    Order values are normalized to 1, 2, 3...
    """
    pipeline_service.get_or_create_default_phases(db, session.org_id, session.user_id)
    try:
        return pipeline_service.reorder_phases(db, session.org_id, data.ordered_ids())
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.put(
    "/fases/{phase_id}",
    response_model=PhaseRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_phase(
    phase_id: UUID,
    data: PhaseUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Rename or recolor a phase."""
    phase = pipeline_service.get_phase(db, session.org_id, phase_id)
    if not phase:
        raise HTTPException(404, "Phase not found")
    if data.nome is None and data.cor is None:
        raise HTTPException(400, "No updates provided")

    try:
        return pipeline_service.update_phase(
            db,
            phase,
            nome=data.nome,
            cor=data.cor.value if data.cor else None,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.delete(
    "/fases/{phase_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_phase(
    phase_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Remove a phase. System phases and phases holding quotes are refused."""
    phase = pipeline_service.get_phase(db, session.org_id, phase_id)
    if not phase:
        raise HTTPException(404, "Phase not found")

    try:
        pipeline_service.delete_phase(db, phase)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return Response(status_code=204)


@router.get("/quadro", response_model=BoardResponse)
def get_board(
    mostrar_fechadas: bool = Query(True, description="Include won/lost columns"),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Kanban board: one column per phase, quotes grouped by status."""
    return pipeline_board.get_board(db, session.org_id, show_closed=mostrar_fechadas)
