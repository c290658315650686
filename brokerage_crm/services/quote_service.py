"""Quote service - quote CRUD, pipeline transitions, follow-ups and history.

Status transitions (change_status) are the only way a quote moves between
pipeline phases. Closing as won resolves/creates the client, updates the
quote and appends history in ONE transaction; any failure rolls all of it
back and the quote stays in its previous phase.
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from brokerage_crm.core.config import settings
from brokerage_crm.core.structured_logging import build_log_context
from brokerage_crm.db.enums import ClientType, LossReason, QuoteEventType
from brokerage_crm.db.models import Client, PipelinePhase, Quote, QuoteHistory
from brokerage_crm.schemas.quote import ClientDraft, QuoteCreate, QuoteUpdate
from brokerage_crm.services import pipeline_service
from brokerage_crm.services.version_service import check_version
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import (
    normalize_email,
    normalize_name,
    normalize_tax_id,
    sanitize_text,
)
from brokerage_crm.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

# Fields a plain PUT may change (status goes through change_status)
EDITABLE_FIELDS = (
    "cliente_id",
    "lead_nome",
    "lead_telefone",
    "lead_email",
    "ramo",
    "dados_cotacao",
    "seguradoras_json",
    "validade_cotacao",
    "valor_estimado",
    "proximo_contato",
    "notas_negociacao",
)

LEAD_FALLBACK_NAME = "Cliente (Lead)"


def _to_decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


# =============================================================================
# Queries
# =============================================================================

def get_quote(db: Session, org_id: UUID, quote_id: UUID) -> Quote | None:
    """Get quote by ID (org-scoped), with client loaded."""
    return db.query(Quote).options(joinedload(Quote.client)).filter(
        Quote.id == quote_id,
        Quote.organization_id == org_id,
    ).first()


def list_quotes(
    db: Session,
    org_id: UUID,
    pagination: PaginationParams,
    cliente_id: UUID | None = None,
    ramo: str | None = None,
    status_pipeline: str | None = None,
    search: str | None = None,
) -> tuple[list[Quote], int]:
    """
    List quotes with filters, most recently updated first.

    search matches lead name, client name and the vehicle model in
    dados_cotacao (case-insensitive).
    """
    query = db.query(Quote).outerjoin(Client, Quote.cliente_id == Client.id).filter(
        Quote.organization_id == org_id,
    )
    if cliente_id:
        query = query.filter(Quote.cliente_id == cliente_id)
    if ramo:
        query = query.filter(Quote.ramo == ramo)
    if status_pipeline:
        query = query.filter(Quote.status_pipeline == status_pipeline)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Quote.lead_nome.ilike(pattern),
            Client.nome.ilike(pattern),
            Quote.dados_cotacao["modelo"].as_string().ilike(pattern),
        ))

    query = query.options(joinedload(Quote.client)).order_by(
        Quote.updated_at.desc(), Quote.data_criacao.desc()
    )
    return paginate_query(query, pagination)


def list_history(db: Session, quote: Quote) -> list[QuoteHistory]:
    """History entries for a quote, newest first."""
    return db.query(QuoteHistory).filter(
        QuoteHistory.cotacao_id == quote.id,
    ).order_by(QuoteHistory.data_evento.desc()).all()


def pipeline_stats(db: Session, org_id: UUID) -> dict[str, dict]:
    """Quote count and estimated value per active phase key."""
    phases = pipeline_service.get_or_create_default_phases(db, org_id)
    stats = {phase.chave: {"count": 0, "valor": 0.0} for phase in phases}

    rows = db.query(
        Quote.status_pipeline,
        func.count(Quote.id),
        func.coalesce(func.sum(Quote.valor_estimado), 0),
    ).filter(
        Quote.organization_id == org_id,
    ).group_by(Quote.status_pipeline).all()

    for chave, count, valor in rows:
        if chave in stats:
            stats[chave] = {"count": count, "valor": float(valor or 0)}
    return stats


# =============================================================================
# CRUD
# =============================================================================

def _check_client(db: Session, org_id: UUID, client_id: UUID) -> None:
    exists = db.query(Client.id).filter(
        Client.id == client_id,
        Client.organization_id == org_id,
    ).first()
    if not exists:
        raise ValueError("Client not found")


def create_quote(
    db: Session,
    org_id: UUID,
    user_id: UUID | None,
    data: QuoteCreate,
) -> Quote:
    """
    Create a quote in the entry phase.

    Raises ValueError if the client is unknown or the org has no entry phase.
    """
    if data.cliente_id:
        _check_client(db, org_id, data.cliente_id)

    entry = pipeline_service.get_entry_phase(db, org_id)
    if entry is None:
        raise ValueError("No active entry phase configured for the pipeline")

    quote = Quote(
        organization_id=org_id,
        cliente_id=data.cliente_id,
        lead_nome=normalize_name(data.lead_nome),
        lead_telefone=data.lead_telefone,
        lead_email=normalize_email(data.lead_email),
        ramo=data.ramo,
        dados_cotacao=data.dados_cotacao,
        seguradoras_json=data.seguradoras_json,
        validade_cotacao=data.validade_cotacao,
        valor_estimado=_to_decimal(data.valor_estimado),
        proximo_contato=data.proximo_contato,
        notas_negociacao=sanitize_text(data.notas_negociacao),
        status_pipeline=entry.chave,
        data_criacao=utcnow(),
        version=1,
        created_by_user_id=user_id,
    )
    db.add(quote)
    db.commit()
    db.refresh(quote)
    return quote


def update_quote(
    db: Session,
    quote: Quote,
    user_id: UUID | None,
    data: QuoteUpdate,
) -> Quote:
    """
    Partial update.

    If the payload carries status_pipeline the field edits and the
    transition are committed together (or not at all).
    """
    fields = data.model_dump(exclude_unset=True)

    # Transitions check the version inside change_status
    transition = bool(data.status_pipeline) and data.status_pipeline != quote.status_pipeline
    if data.expected_version is not None and not transition:
        check_version(quote.version, data.expected_version)

    if fields.get("cliente_id"):
        _check_client(db, quote.organization_id, fields["cliente_id"])

    for field in EDITABLE_FIELDS:
        if field not in fields:
            continue
        value = fields[field]
        if field == "valor_estimado":
            value = _to_decimal(value)
        elif field == "notas_negociacao":
            value = sanitize_text(value)
        elif field == "lead_nome":
            value = normalize_name(value)
        elif field == "lead_email":
            value = normalize_email(value)
        elif field in ("dados_cotacao", "seguradoras_json") and value is None:
            continue
        elif field == "ramo" and not value:
            continue
        setattr(quote, field, value)

    if transition:
        try:
            return change_status(
                db,
                quote,
                user_id=user_id,
                target_key=data.status_pipeline,
                motivo_perda=data.motivo_perda,
                notas=data.notas,
                dados_cliente=data.dados_cliente,
                expected_version=data.expected_version,
            )
        except Exception:
            # Rejected transition: drop the field edits too
            db.rollback()
            raise

    quote.updated_at = utcnow()
    db.commit()
    db.refresh(quote)
    return quote


# =============================================================================
# Status transitions
# =============================================================================

def _resolve_client(
    db: Session,
    quote: Quote,
    draft: ClientDraft | None,
) -> Client:
    """
    Find or create the client a won quote belongs to.

    Resolution order:
    1. Client already linked to the quote
    2. Client of the same org with the same CPF/CNPJ
    3. New client built from the draft, falling back to the lead fields

    Non-empty draft fields overwrite the found client's data. Only flushes;
    the caller owns the transaction.
    """
    draft = draft or ClientDraft()
    org_id = quote.organization_id
    tax_id = normalize_tax_id(draft.cpf_cnpj)
    updates = {
        "nome": normalize_name(draft.nome),
        "cpf_cnpj": tax_id,
        "email": normalize_email(draft.email),
        "telefone": (draft.telefone or "").strip() or None,
        "tipo": draft.tipo.value if draft.tipo else None,
    }
    updates = {key: value for key, value in updates.items() if value}

    client = None
    if quote.cliente_id:
        client = db.query(Client).filter(
            Client.id == quote.cliente_id,
            Client.organization_id == org_id,
        ).first()
    if client is None and tax_id:
        client = db.query(Client).filter(
            Client.organization_id == org_id,
            Client.cpf_cnpj == tax_id,
        ).first()

    if client is not None:
        if tax_id and client.cpf_cnpj != tax_id:
            owner = db.query(Client.id).filter(
                Client.organization_id == org_id,
                Client.cpf_cnpj == tax_id,
                Client.id != client.id,
            ).first()
            if owner:
                raise ValueError("CPF/CNPJ already belongs to another client")
        for field, value in updates.items():
            setattr(client, field, value)
        client.ativo = True
        client.updated_at = utcnow()
    else:
        client = Client(
            organization_id=org_id,
            nome=updates.get("nome") or quote.lead_nome or LEAD_FALLBACK_NAME,
            tipo=updates.get("tipo") or ClientType.PF.value,
            cpf_cnpj=tax_id,
            email=updates.get("email") or quote.lead_email,
            telefone=updates.get("telefone") or quote.lead_telefone,
            ativo=True,
        )
        db.add(client)

    db.flush()
    return client


def _record_transition(
    db: Session,
    quote: Quote,
    user_id: UUID | None,
    previous: str,
    notas: str | None,
) -> QuoteHistory:
    entry = QuoteHistory(
        organization_id=quote.organization_id,
        cotacao_id=quote.id,
        tipo_evento=QuoteEventType.MUDANCA_STATUS.value,
        status_anterior=previous,
        status_novo=quote.status_pipeline,
        motivo_perda=quote.motivo_perda if quote.status_pipeline == settings.PIPELINE_LOST_KEY else None,
        notas=notas,
        data_evento=utcnow(),
        usuario_id=user_id,
    )
    db.add(entry)
    db.flush()
    return entry


def change_status(
    db: Session,
    quote: Quote,
    user_id: UUID | None,
    target_key: str,
    motivo_perda: str | None = None,
    notas: str | None = None,
    dados_cliente: ClientDraft | None = None,
    expected_version: int | None = None,
) -> Quote:
    """
    Move a quote to another pipeline phase.

    - Won: client resolved/created and linked, closing date stamped
    - Lost: motivo_perda required, closing date stamped
    - Sent: data_envio stamped the first time
    - Reopened (terminal -> open phase): closing date and loss reason cleared

    Raises:
        ValueError: unknown/inactive target, same phase, missing loss reason
        VersionConflictError: expected_version is stale
    """
    if expected_version is not None:
        check_version(quote.version, expected_version)

    target: PipelinePhase | None = pipeline_service.get_phase_by_key(
        db, quote.organization_id, target_key
    )
    if target is None:
        raise ValueError(f"Invalid pipeline status: {target_key}")
    if target.chave == quote.status_pipeline:
        raise ValueError("Quote is already in this phase")

    is_won = target.chave == settings.PIPELINE_WON_KEY
    is_lost = target.chave == settings.PIPELINE_LOST_KEY
    if is_lost and not LossReason.has_value(motivo_perda):
        raise ValueError(
            "A loss reason is required to close a quote as lost "
            f"({', '.join(r.value for r in LossReason)})"
        )

    previous = quote.status_pipeline
    notes = sanitize_text(notas)
    now = utcnow()

    try:
        if is_won:
            client = _resolve_client(db, quote, dados_cliente)
            quote.cliente_id = client.id
            quote.motivo_perda = None
            quote.data_fechamento = now
        elif is_lost:
            quote.motivo_perda = motivo_perda
            quote.data_fechamento = now
        else:
            quote.motivo_perda = None
            quote.data_fechamento = None
            if target.chave == settings.PIPELINE_SENT_KEY and quote.data_envio is None:
                quote.data_envio = now

        if notes:
            quote.notas_negociacao = notes
        quote.status_pipeline = target.chave
        quote.version += 1
        quote.updated_at = now
        _record_transition(db, quote, user_id, previous, notes)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Conflicting client data (duplicate CPF/CNPJ); please retry")
    except Exception:
        db.rollback()
        raise

    db.refresh(quote)
    logger.info(
        "Quote status changed",
        extra={
            **build_log_context(
                user_id=user_id,
                org_id=quote.organization_id,
                quote_id=quote.id,
            ),
            "status_from": previous,
            "status_to": quote.status_pipeline,
        },
    )
    return quote


# =============================================================================
# Follow-up and contact history
# =============================================================================

def schedule_follow_up(
    db: Session,
    quote: Quote,
    user_id: UUID | None,
    proximo_contato,
    notas: str | None = None,
) -> Quote:
    """Set the next contact date; notes are logged to the history."""
    quote.proximo_contato = proximo_contato
    quote.updated_at = utcnow()

    notes = sanitize_text(notas)
    if notes:
        db.add(QuoteHistory(
            organization_id=quote.organization_id,
            cotacao_id=quote.id,
            tipo_evento=QuoteEventType.FOLLOW_UP_AGENDADO.value,
            notas=f"Follow-up agendado para {proximo_contato.strftime('%d/%m/%Y')}: {notes}",
            data_evento=utcnow(),
            usuario_id=user_id,
        ))

    db.commit()
    db.refresh(quote)
    return quote


def add_history_entry(
    db: Session,
    quote: Quote,
    user_id: UUID | None,
    tipo_evento: str,
    notas: str | None = None,
    resultado: str | None = None,
) -> QuoteHistory:
    """
    Log a contact (call, email, meeting...) against a quote.

    Raises ValueError for event types that are not contact types.
    """
    if tipo_evento not in QuoteEventType.contact_types():
        raise ValueError(f"Invalid event type: {tipo_evento}")

    entry = QuoteHistory(
        organization_id=quote.organization_id,
        cotacao_id=quote.id,
        tipo_evento=tipo_evento,
        notas=sanitize_text(notas),
        resultado=resultado,
        data_evento=utcnow(),
        usuario_id=user_id,
    )
    db.add(entry)
    quote.updated_at = utcnow()
    db.commit()
    db.refresh(entry)
    return entry
