"""Dashboard analytics - quote funnel over a trailing period."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from brokerage_crm.core.config import settings
from brokerage_crm.db.models import Quote
from brokerage_crm.services import pipeline_service
from brokerage_crm.services.pipeline_board import percent
from brokerage_crm.utils.dates import utcnow

DEFAULT_LINE = "outros"


def conversion_metrics(
    db: Session,
    org_id: UUID,
    periodo: int = 30,
    now: datetime | None = None,
) -> dict:
    """
    Funnel for quotes created in the last `periodo` days.

    Rates (whole percentages):
    - conversao_geral: won / (won + lost)
    - envio_proposta: quotes that reached sent or beyond / all quotes
    - fechamento: won / quotes that reached sent or beyond
    """
    now = now or utcnow()
    since = now - timedelta(days=periodo)
    won_key = settings.PIPELINE_WON_KEY
    lost_key = settings.PIPELINE_LOST_KEY

    rows = db.query(Quote.status_pipeline, Quote.valor_estimado, Quote.ramo).filter(
        Quote.organization_id == org_id,
        Quote.data_criacao >= since,
    ).all()

    by_status: dict[str, int] = {}
    value_by_status: dict[str, float] = {}
    by_line: dict[str, dict[str, int]] = {}
    for status, value, line in rows:
        by_status[status] = by_status.get(status, 0) + 1
        value_by_status[status] = value_by_status.get(status, 0.0) + float(value or 0)
        bucket = by_line.setdefault(line or DEFAULT_LINE, {"total": 0, "ganhas": 0})
        bucket["total"] += 1
        if status == won_key:
            bucket["ganhas"] += 1

    total = len(rows)
    won = by_status.get(won_key, 0)
    lost = by_status.get(lost_key, 0)

    # Phases from "sent" onwards (inclusive), excluding the terminal ones
    phases = pipeline_service.get_or_create_default_phases(db, org_id)
    sent = next((p for p in phases if p.chave == settings.PIPELINE_SENT_KEY), None)
    terminal = settings.terminal_phase_keys
    after_sent = {
        p.chave for p in phases
        if sent is not None and p.ordem >= sent.ordem and p.chave not in terminal
    }
    open_keys = {p.chave for p in phases if p.chave not in terminal}

    reached_sent = sum(by_status.get(key, 0) for key in after_sent) + won + lost

    return {
        "periodo": periodo,
        "total_cotacoes": total,
        "por_status": by_status,
        "valor_por_status": value_by_status,
        "por_ramo": by_line,
        "taxas": {
            "conversao_geral": percent(won, won + lost),
            "envio_proposta": percent(reached_sent, total),
            "fechamento": percent(won, reached_sent),
        },
        "valor_total": {
            "pipeline": sum(value_by_status.get(key, 0.0) for key in open_keys),
            "ganho": value_by_status.get(won_key, 0.0),
            "perdido": value_by_status.get(lost_key, 0.0),
        },
    }
