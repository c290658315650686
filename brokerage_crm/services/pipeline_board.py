"""Kanban board for the sales pipeline.

build_board is a pure function: phases and quotes in, board out. Quotes whose
status_pipeline matches no active phase land in `desconhecidas` instead of
being dropped.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from brokerage_crm.core.config import settings
from brokerage_crm.db.models import Quote
from brokerage_crm.services import pipeline_service
from brokerage_crm.utils.dates import ensure_utc, utcnow

LEAD_PLACEHOLDER = "Lead (Sem Nome)"


def percent(part: int, whole: int) -> int:
    """Whole percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)


def quote_value(quote: Any) -> float:
    """Estimated value, falling back to the one captured in dados_cotacao."""
    value = quote.valor_estimado
    if value is None:
        value = (quote.dados_cotacao or {}).get("valor_estimado")
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def days_idle(quote: Any, now: datetime) -> int:
    """Whole days since the quote last changed."""
    last_change = ensure_utc(quote.updated_at or quote.data_criacao)
    if last_change is None:
        return 0
    return max((ensure_utc(now) - last_change).days, 0)


def build_card(quote: Any, now: datetime) -> dict:
    client = quote.client
    dados = quote.dados_cotacao or {}
    return {
        "id": quote.id,
        "cliente": (client.nome if client else None) or quote.lead_nome or LEAD_PLACEHOLDER,
        "telefone": (client.telefone if client else None) or quote.lead_telefone,
        "email": (client.email if client else None) or quote.lead_email,
        "ramo": quote.ramo,
        "modelo": dados.get("modelo"),
        "valor": quote_value(quote),
        "data_criacao": quote.data_criacao,
        "data_envio": quote.data_envio,
        "proximo_contato": quote.proximo_contato,
        "dias_parado": days_idle(quote, now),
        "motivo_perda": quote.motivo_perda,
        "notas": quote.notas_negociacao,
        "status_pipeline": quote.status_pipeline,
        "version": quote.version,
    }


def build_board(
    phases: Sequence[Any],
    quotes: Iterable[Any],
    *,
    show_closed: bool = True,
    won_key: str | None = None,
    lost_key: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Group quotes into one column per active phase.

    Args:
        phases: active phases (any order; columns follow ascending ordem)
        quotes: quotes to place, already in card order
        show_closed: include the won/lost columns
        won_key / lost_key: terminal phase keys (default from settings)

    Returns:
        {"colunas": [...], "desconhecidas": [...], "metricas": {...}}
        Metrics always cover every quote, whatever the toggle.
    """
    won_key = won_key or settings.PIPELINE_WON_KEY
    lost_key = lost_key or settings.PIPELINE_LOST_KEY
    terminal = {won_key, lost_key}
    now = now or utcnow()

    ordered = sorted(phases, key=lambda phase: phase.ordem)
    buckets: dict[str, list[dict]] = {phase.chave: [] for phase in ordered}
    unknown: list[dict] = []

    for quote in quotes:
        card = build_card(quote, now)
        bucket = buckets.get(quote.status_pipeline)
        if bucket is None:
            unknown.append(card)
        else:
            bucket.append(card)

    columns = [
        {
            "chave": phase.chave,
            "nome": phase.nome,
            "cor": phase.cor,
            "ordem": phase.ordem,
            "sistema": phase.sistema,
            "cotacoes": buckets[phase.chave],
            "total": len(buckets[phase.chave]),
            "valor": sum(card["valor"] for card in buckets[phase.chave]),
        }
        for phase in ordered
        if show_closed or phase.chave not in terminal
    ]

    won = len(buckets.get(won_key, []))
    lost = len(buckets.get(lost_key, []))
    total = sum(len(cards) for cards in buckets.values()) + len(unknown)
    open_value = sum(
        card["valor"]
        for chave, cards in buckets.items()
        if chave not in terminal
        for card in cards
    )

    return {
        "colunas": columns,
        "desconhecidas": unknown,
        "metricas": {
            "total_cotacoes": total,
            "em_andamento": total - won - lost,
            "ganhas": won,
            "perdidas": lost,
            "taxa_conversao": percent(won, won + lost),
            "valor_pipeline_ativo": open_value,
        },
    }


def get_board(db: Session, org_id: UUID, show_closed: bool = True) -> dict:
    """Load the org's phases and quotes and build the board."""
    phases = pipeline_service.get_or_create_default_phases(db, org_id)
    quotes = db.query(Quote).options(joinedload(Quote.client)).filter(
        Quote.organization_id == org_id,
    ).order_by(Quote.updated_at.desc(), Quote.data_criacao.desc()).all()
    return build_board(phases, quotes, show_closed=show_closed)
