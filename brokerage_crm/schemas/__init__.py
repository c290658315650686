"""Pydantic schemas for API request/response models."""

from brokerage_crm.schemas.auth import MeResponse, TokenPayload, UserSession
from brokerage_crm.schemas.client import Client360, ClientCreate, ClientRead, ClientUpdate
from brokerage_crm.schemas.pipeline import (
    BoardResponse,
    PhaseCreate,
    PhaseRead,
    PhaseReorder,
    PhaseUpdate,
)
from brokerage_crm.schemas.quote import (
    ClientDraft,
    QuoteCreate,
    QuoteDetail,
    QuoteRead,
    QuoteStatusChange,
    QuoteUpdate,
)

__all__ = [
    # Auth
    "TokenPayload",
    "UserSession",
    "MeResponse",
    # Clients
    "Client360",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    # Pipeline
    "BoardResponse",
    "PhaseCreate",
    "PhaseRead",
    "PhaseReorder",
    "PhaseUpdate",
    # Quotes
    "ClientDraft",
    "QuoteCreate",
    "QuoteDetail",
    "QuoteRead",
    "QuoteStatusChange",
    "QuoteUpdate",
]
