"""Pipeline service - manage org-configurable sales pipeline phases.

Phases are stored as PipelinePhase rows keyed by an immutable `chave`.
Quotes reference phases by key (Quote.status_pipeline), so:
- Keys never change after creation
- Removal is a soft-delete, refused while any quote still sits in the phase
- System phases (entry, won, lost) cannot be removed or moved

Active phases of an org always carry contiguous `ordem` values 1..n.
"""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from brokerage_crm.core.config import settings
from brokerage_crm.db.enums import PhaseColor
from brokerage_crm.db.models import PipelinePhase, Quote
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import normalize_name, slugify_key

logger = logging.getLogger(__name__)


DEFAULT_PHASES = [
    # (chave, nome, cor, sistema)
    ("nova", "Novas", PhaseColor.SLATE, True),
    ("em_cotacao", "Em Cotação", PhaseColor.BLUE, False),
    ("enviada", "Enviadas", PhaseColor.VIOLET, False),
    ("em_negociacao", "Em Negociação", PhaseColor.AMBER, False),
    ("fechada_ganha", "Ganhas", PhaseColor.EMERALD, True),
    ("fechada_perdida", "Perdidas", PhaseColor.RED, True),
]


def get_default_phase_defs() -> list[dict]:
    """Generate default phase definitions, in board order."""
    return [
        {
            "chave": chave,
            "nome": nome,
            "cor": cor.value,
            "ordem": ordem,
            "sistema": sistema,
        }
        for ordem, (chave, nome, cor, sistema) in enumerate(DEFAULT_PHASES, start=1)
    ]


def get_or_create_default_phases(
    db: Session,
    org_id: UUID,
    user_id: UUID | None = None,
) -> list[PipelinePhase]:
    """
    Get the active phases for an org, seeding the defaults if it has none.

    Called on first access to ensure every org has a pipeline. Seeding only
    happens when the org has never had a phase (active or removed).
    """
    has_any = db.query(PipelinePhase.id).filter(
        PipelinePhase.organization_id == org_id,
    ).first()

    if not has_any:
        db.add_all([
            PipelinePhase(
                organization_id=org_id,
                created_by_user_id=user_id,
                ativo=True,
                **phase_def,
            )
            for phase_def in get_default_phase_defs()
        ])
        db.commit()
        logger.info("Seeded default pipeline phases", extra={"org_id": str(org_id)})

    return get_phases(db, org_id)


# =============================================================================
# Queries
# =============================================================================

def get_phases(
    db: Session,
    org_id: UUID,
    include_inactive: bool = False,
) -> list[PipelinePhase]:
    """Get phases for an org, ordered by position."""
    query = db.query(PipelinePhase).filter(PipelinePhase.organization_id == org_id)
    if not include_inactive:
        query = query.filter(PipelinePhase.ativo == True)  # noqa: E712
    return query.order_by(PipelinePhase.ordem, PipelinePhase.created_at).all()


def get_phase(db: Session, org_id: UUID, phase_id: UUID) -> PipelinePhase | None:
    """Get an active phase by ID (org-scoped)."""
    return db.query(PipelinePhase).filter(
        PipelinePhase.id == phase_id,
        PipelinePhase.organization_id == org_id,
        PipelinePhase.ativo == True,  # noqa: E712
    ).first()


def get_phase_by_key(
    db: Session,
    org_id: UUID,
    chave: str,
    include_inactive: bool = False,
) -> PipelinePhase | None:
    """Get a phase by key (unique per org)."""
    query = db.query(PipelinePhase).filter(
        PipelinePhase.organization_id == org_id,
        PipelinePhase.chave == chave,
    )
    if not include_inactive:
        query = query.filter(PipelinePhase.ativo == True)  # noqa: E712
    return query.first()


def get_entry_phase(db: Session, org_id: UUID) -> PipelinePhase | None:
    """First active phase that is neither won nor lost; new quotes start here."""
    get_or_create_default_phases(db, org_id)
    return db.query(PipelinePhase).filter(
        PipelinePhase.organization_id == org_id,
        PipelinePhase.ativo == True,  # noqa: E712
        PipelinePhase.chave.notin_(settings.terminal_phase_keys),
    ).order_by(PipelinePhase.ordem).first()


def count_quotes_in_phase(db: Session, org_id: UUID, chave: str) -> int:
    return db.query(func.count(Quote.id)).filter(
        Quote.organization_id == org_id,
        Quote.status_pipeline == chave,
    ).scalar() or 0


def _unique_key(db: Session, org_id: UUID, base: str) -> str:
    """Append a numeric suffix until the key is free among active phases."""
    candidate = base
    suffix = 2
    while get_phase_by_key(db, org_id, candidate) is not None:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def _check_insert_position(phases: list[PipelinePhase], ordem: int) -> int:
    """
    Validate an explicit insert position among the active phases.

    System phases at the start (entry) and at the end (won/lost) keep their
    place: a new phase may go right after the leading block or right before
    the trailing block, never inside either one.
    """
    leading = 0
    for phase in phases:
        if not phase.sistema:
            break
        leading = phase.ordem

    trailing_start = phases[-1].ordem + 1 if phases else 1
    for phase in reversed(phases):
        if not phase.sistema or phase.ordem <= leading:
            break
        trailing_start = phase.ordem

    if ordem <= leading:
        raise ValueError("New phases cannot be placed before the system entry phase")
    if ordem > trailing_start:
        raise ValueError("New phases cannot be placed between or after the closing phases")
    return ordem


def _renumber(phases: list[PipelinePhase]) -> None:
    """Rewrite ordem to 1..n following list order."""
    now = utcnow()
    for position, phase in enumerate(phases, start=1):
        if phase.ordem != position:
            phase.ordem = position
            phase.updated_at = now


# =============================================================================
# Phase CRUD
# =============================================================================

def create_phase(
    db: Session,
    org_id: UUID,
    nome: str,
    cor: str = PhaseColor.SLATE.value,
    chave: str | None = None,
    ordem: int | None = None,
    user_id: UUID | None = None,
) -> PipelinePhase:
    """
    Create a new pipeline phase.

    - chave defaults to a slug of nome; derived keys get a numeric suffix on
      collision, explicit keys are rejected instead
    - A key that belongs to a previously removed phase reactivates that row
    - ordem defaults to the end; an explicit ordem shifts the phases at or
      after it one position right

    Raises ValueError if the name yields no key, an explicit key is taken or
    the color is not in the palette.
    """
    phases = get_or_create_default_phases(db, org_id, user_id)

    nome = normalize_name(nome) or ""
    if not nome:
        raise ValueError("Phase name is required")
    if cor not in PhaseColor._value2member_map_:
        raise ValueError(f"Invalid color: {cor}")

    if chave:
        key = slugify_key(chave)
        if not key:
            raise ValueError("Phase key must contain letters or digits")
        if get_phase_by_key(db, org_id, key) is not None:
            raise ValueError(f"Phase key '{key}' already exists")
    else:
        base = slugify_key(nome)
        if not base:
            raise ValueError("Phase name must contain letters or digits")
        key = _unique_key(db, org_id, base[:45])

    # Position: append, or insert and shift the tail right
    last = phases[-1].ordem if phases else 0
    if ordem is None or ordem > last:
        position = last + 1
    else:
        position = _check_insert_position(phases, ordem)
        now = utcnow()
        for phase in phases:
            if phase.ordem >= position:
                phase.ordem += 1
                phase.updated_at = now

    phase = get_phase_by_key(db, org_id, key, include_inactive=True)
    if phase is not None:
        # Previously removed: bring it back with the new name/color/position
        phase.nome = nome
        phase.cor = cor
        phase.ordem = position
        phase.ativo = True
        phase.deleted_at = None
        phase.updated_at = utcnow()
    else:
        phase = PipelinePhase(
            organization_id=org_id,
            nome=nome,
            chave=key,
            cor=cor,
            ordem=position,
            sistema=False,
            ativo=True,
            created_by_user_id=user_id,
        )
        db.add(phase)

    db.commit()
    db.refresh(phase)
    logger.info(
        "Pipeline phase created",
        extra={"org_id": str(org_id), "phase_key": phase.chave, "ordem": phase.ordem},
    )
    return phase


def update_phase(
    db: Session,
    phase: PipelinePhase,
    nome: str | None = None,
    cor: str | None = None,
) -> PipelinePhase:
    """
    Update phase name or color.

    chave and ordem are not editable here (use reorder_phases for position).
    """
    if nome is not None:
        nome = normalize_name(nome)
        if not nome:
            raise ValueError("Phase name is required")
        phase.nome = nome

    if cor is not None:
        if cor not in PhaseColor._value2member_map_:
            raise ValueError(f"Invalid color: {cor}")
        phase.cor = cor

    phase.updated_at = utcnow()
    db.commit()
    db.refresh(phase)
    return phase


def delete_phase(db: Session, phase: PipelinePhase) -> None:
    """
    Soft-delete a phase and close the gap in the ordering.

    Raises ValueError for system phases and for phases that still hold quotes.
    """
    if phase.sistema:
        raise ValueError("System phases cannot be removed")

    in_use = count_quotes_in_phase(db, phase.organization_id, phase.chave)
    if in_use:
        raise ValueError(
            f"Phase '{phase.nome}' still has {in_use} quote(s); move them before removing it"
        )

    now = utcnow()
    phase.ativo = False
    phase.deleted_at = now
    phase.updated_at = now

    remaining = [
        p for p in get_phases(db, phase.organization_id) if p.id != phase.id
    ]
    _renumber(remaining)

    db.commit()
    logger.info(
        "Pipeline phase removed",
        extra={"org_id": str(phase.organization_id), "phase_key": phase.chave},
    )


def reorder_phases(
    db: Session,
    org_id: UUID,
    ordered_phase_ids: list[UUID],
) -> list[PipelinePhase]:
    """
    Reorder phases by providing every active phase ID in the new order.

    Normalizes order values to 1, 2, 3...
    System phases must stay at their current position.
    """
    phases = get_phases(db, org_id)
    phase_map = {p.id: p for p in phases}
    if len(ordered_phase_ids) != len(set(ordered_phase_ids)) or set(ordered_phase_ids) != set(phase_map):
        raise ValueError("Reorder must include every active phase exactly once")

    for current_index, phase in enumerate(phases):
        if phase.sistema and ordered_phase_ids[current_index] != phase.id:
            raise ValueError(f"System phase '{phase.nome}' cannot be moved")

    _renumber([phase_map[phase_id] for phase_id in ordered_phase_ids])
    db.commit()
    return get_phases(db, org_id)
