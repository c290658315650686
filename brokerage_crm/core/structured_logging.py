"""Logging setup and log context for the brokerage API.

Log records carry identifiers only. Client names, CPF/CNPJ, phones and
e-mails stay out of the logs; a record points at the quote, org or user so
the data can be looked up in the database when needed.
"""

import logging
from typing import Any
from uuid import UUID

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Fields whose values are row ids (stringified so JSON formatters accept them)
_ID_FIELDS = ("user_id", "org_id", "quote_id", "client_id", "policy_id")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at process startup."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    org_id: UUID | str | None = None,
    quote_id: UUID | str | None = None,
    client_id: UUID | str | None = None,
    policy_id: UUID | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Build the `extra` dict for a log call, skipping unset fields."""
    ids = {
        "user_id": user_id,
        "org_id": org_id,
        "quote_id": quote_id,
        "client_id": client_id,
        "policy_id": policy_id,
    }
    context: dict[str, Any] = {name: str(ids[name]) for name in _ID_FIELDS if ids[name]}
    for name, value in (("request_id", request_id), ("route", route), ("method", method)):
        if value:
            context[name] = value
    return context
