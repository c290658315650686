"""Pydantic schemas for dashboard analytics."""

from pydantic import BaseModel


class LineConversion(BaseModel):
    total: int
    ganhas: int


class ConversionRates(BaseModel):
    conversao_geral: int
    envio_proposta: int
    fechamento: int


class ValueTotals(BaseModel):
    pipeline: float
    ganho: float
    perdido: float


class ConversionMetrics(BaseModel):
    """Quote funnel for quotes created in the last `periodo` days."""
    periodo: int
    total_cotacoes: int
    por_status: dict[str, int]
    valor_por_status: dict[str, float]
    por_ramo: dict[str, LineConversion]
    taxas: ConversionRates
    valor_total: ValueTotals
