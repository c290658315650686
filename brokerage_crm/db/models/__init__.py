"""SQLAlchemy ORM models, re-exported for `from brokerage_crm.db.models import X`."""

from brokerage_crm.db.models.agenda import Alert, Task
from brokerage_crm.db.models.auth import Membership, Organization, User
from brokerage_crm.db.models.clients import Client
from brokerage_crm.db.models.finance import Commission, CommissionConfig
from brokerage_crm.db.models.pipelines import PipelinePhase
from brokerage_crm.db.models.products import (
    Claim,
    Consortium,
    Endorsement,
    Financing,
    HealthPlan,
    Policy,
)
from brokerage_crm.db.models.quotes import Quote, QuoteHistory

__all__ = [
    "Alert",
    "Claim",
    "Client",
    "Commission",
    "CommissionConfig",
    "Consortium",
    "Endorsement",
    "Financing",
    "HealthPlan",
    "Membership",
    "Organization",
    "PipelinePhase",
    "Policy",
    "Quote",
    "QuoteHistory",
    "Task",
    "User",
]
