"""Client service - client CRUD, portfolio lookups and the 360 summary."""

import logging
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brokerage_crm.db.enums import (
    ClaimStatus,
    ClientType,
    ConsortiumStatus,
    FinancingStatus,
    HealthPlanStatus,
    PolicyStatus,
)
from brokerage_crm.db.models import (
    Claim,
    Client,
    Commission,
    Consortium,
    Endorsement,
    Financing,
    HealthPlan,
    Policy,
    Quote,
    Task,
)
from brokerage_crm.schemas.client import ClientCreate, ClientUpdate
from brokerage_crm.utils.dates import utcnow
from brokerage_crm.utils.normalization import (
    normalize_email,
    normalize_name,
    normalize_tax_id,
    sanitize_text,
)

logger = logging.getLogger(__name__)

# Quote phases counted as "em negociacao" in the 360 summary
NEGOTIATION_PHASES = ("em_cotacao", "enviada", "em_negociacao")


def get_client(db: Session, org_id: UUID, client_id: UUID) -> Client | None:
    """Get client by ID (org-scoped)."""
    return db.query(Client).filter(
        Client.id == client_id,
        Client.organization_id == org_id,
    ).first()


def list_clients(db: Session, org_id: UUID, search: str | None = None) -> list[Client]:
    """List clients ordered by name; search matches name, document and email."""
    query = db.query(Client).filter(Client.organization_id == org_id)
    if search and search.strip():
        term = search.strip()
        pattern = f"%{term}%"
        conditions = [Client.nome.ilike(pattern), Client.email.ilike(pattern)]
        digits = normalize_tax_id(term)
        if digits:
            conditions.append(Client.cpf_cnpj.like(f"%{digits}%"))
        query = query.filter(or_(*conditions))
    return query.order_by(Client.nome).all()


def _tax_id_taken(
    db: Session,
    org_id: UUID,
    tax_id: str,
    exclude_id: UUID | None = None,
) -> bool:
    query = db.query(Client.id).filter(
        Client.organization_id == org_id,
        Client.cpf_cnpj == tax_id,
    )
    if exclude_id:
        query = query.filter(Client.id != exclude_id)
    return query.first() is not None


def create_client(db: Session, org_id: UUID, data: ClientCreate) -> Client:
    """
    Create a client.

    Raises ValueError if another client of the org has the same CPF/CNPJ.
    """
    tax_id = normalize_tax_id(data.cpf_cnpj)
    if tax_id and _tax_id_taken(db, org_id, tax_id):
        raise ValueError("A client with this CPF/CNPJ already exists")

    client = Client(
        organization_id=org_id,
        nome=normalize_name(data.nome) or data.nome,
        tipo=data.tipo.value,
        cpf_cnpj=tax_id,
        email=normalize_email(data.email),
        telefone=data.telefone,
        data_nascimento=data.data_nascimento,
        endereco=data.endereco,
        observacoes=sanitize_text(data.observacoes),
        ativo=True,
    )
    db.add(client)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("A client with this CPF/CNPJ already exists")
    db.refresh(client)
    return client


def update_client(db: Session, client: Client, data: ClientUpdate) -> Client:
    """Update client fields (partial)."""
    fields = data.model_dump(exclude_unset=True)

    if "cpf_cnpj" in fields:
        tax_id = normalize_tax_id(fields["cpf_cnpj"])
        if tax_id and _tax_id_taken(db, client.organization_id, tax_id, exclude_id=client.id):
            raise ValueError("A client with this CPF/CNPJ already exists")
        client.cpf_cnpj = tax_id
    if "nome" in fields and fields["nome"]:
        client.nome = normalize_name(fields["nome"]) or client.nome
    if fields.get("tipo"):
        client.tipo = ClientType(fields["tipo"]).value
    if "email" in fields:
        client.email = normalize_email(fields["email"])
    if "observacoes" in fields:
        client.observacoes = sanitize_text(fields["observacoes"])
    for field in ("telefone", "data_nascimento", "endereco"):
        if field in fields:
            setattr(client, field, fields[field])
    if fields.get("ativo") is not None:
        client.ativo = fields["ativo"]

    client.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("A client with this CPF/CNPJ already exists")
    db.refresh(client)
    return client


def delete_client(db: Session, client: Client) -> None:
    """
    Delete a client with its products, their commissions and endorsements.

    Quotes and agenda tasks are kept and unlinked (their lead fields still identify them).
    """
    org_id, client_id = client.organization_id, client.id

    policy_ids = [
        row.id for row in db.query(Policy.id).filter(
            Policy.organization_id == org_id,
            Policy.cliente_id == client_id,
        )
    ]
    if policy_ids:
        db.query(Commission).filter(Commission.apolice_id.in_(policy_ids)).delete(
            synchronize_session=False
        )
        db.query(Endorsement).filter(Endorsement.apolice_id.in_(policy_ids)).delete(
            synchronize_session=False
        )
        db.query(Task).filter(Task.apolice_id.in_(policy_ids)).update(
            {Task.apolice_id: None}, synchronize_session=False
        )
    # Tasks belong to their owner and only lose the link
    db.query(Task).filter(
        Task.organization_id == org_id,
        Task.cliente_id == client_id,
    ).update({Task.cliente_id: None}, synchronize_session=False)
    for model in (Claim, Policy, Consortium, HealthPlan, Financing):
        db.query(model).filter(
            model.organization_id == org_id,
            model.cliente_id == client_id,
        ).delete(synchronize_session=False)
    db.query(Quote).filter(
        Quote.organization_id == org_id,
        Quote.cliente_id == client_id,
    ).update({Quote.cliente_id: None}, synchronize_session=False)

    db.delete(client)
    db.commit()
    logger.info("Client deleted", extra={"org_id": str(org_id), "client_id": str(client_id)})


def list_client_policies(db: Session, client: Client) -> list[Policy]:
    return db.query(Policy).filter(
        Policy.organization_id == client.organization_id,
        Policy.cliente_id == client.id,
    ).order_by(Policy.data_fim.desc()).all()


def list_client_claims(db: Session, client: Client) -> list[Claim]:
    return db.query(Claim).filter(
        Claim.organization_id == client.organization_id,
        Claim.cliente_id == client.id,
    ).order_by(Claim.created_at.desc()).all()


def client_stats(db: Session, org_id: UUID) -> dict:
    """Counts for the clients page header."""
    rows = db.query(Client.tipo, Client.ativo, func.count(Client.id)).filter(
        Client.organization_id == org_id,
    ).group_by(Client.tipo, Client.ativo).all()

    stats = {"total": 0, "ativos": 0, "pf": 0, "pj": 0}
    for tipo, ativo, count in rows:
        stats["total"] += count
        if ativo:
            stats["ativos"] += count
        if tipo == ClientType.PF.value:
            stats["pf"] += count
        elif tipo == ClientType.PJ.value:
            stats["pj"] += count
    return stats


def _sum(rows, attr: str) -> float:
    return float(sum((getattr(row, attr) or 0) for row in rows))


def client_360(db: Session, client: Client) -> dict:
    """
    Summarize everything held for a client.

    Six independent reads (one per product plus quotes) on the request's
    session, summarized in memory. Sums only cover active items.
    """
    org_id = client.organization_id

    def rows(model, *columns):
        return db.query(*columns).filter(
            model.organization_id == org_id,
            model.cliente_id == client.id,
        ).all()

    policies = rows(Policy, Policy.status, Policy.valor_premio)
    claims = rows(Claim, Claim.status)
    consortiums = rows(Consortium, Consortium.status, Consortium.valor_credito)
    health_plans = rows(HealthPlan, HealthPlan.status, HealthPlan.valor_mensalidade)
    financings = rows(Financing, Financing.status, Financing.saldo_devedor)
    quotes = rows(Quote, Quote.status_pipeline)

    active_policies = [p for p in policies if p.status == PolicyStatus.VIGENTE.value]
    open_claims = [c for c in claims if c.status not in ClaimStatus.closed()]
    active_consortiums = [c for c in consortiums if c.status == ConsortiumStatus.ATIVO.value]
    active_plans = [p for p in health_plans if p.status == HealthPlanStatus.ATIVO.value]
    active_financings = [f for f in financings if f.status == FinancingStatus.ATIVO.value]
    negotiating = [q for q in quotes if q.status_pipeline in NEGOTIATION_PHASES]

    return {
        "cliente": client,
        "apolices": {
            "total": len(policies),
            "ativas": len(active_policies),
            "valor_total": _sum(active_policies, "valor_premio"),
        },
        "sinistros": {
            "total": len(claims),
            "abertos": len(open_claims),
        },
        "consorcios": {
            "total": len(consortiums),
            "ativos": len(active_consortiums),
            "valor_credito": _sum(active_consortiums, "valor_credito"),
        },
        "planos_saude": {
            "total": len(health_plans),
            "ativos": len(active_plans),
            "mensalidade_total": _sum(active_plans, "valor_mensalidade"),
        },
        "financiamentos": {
            "total": len(financings),
            "ativos": len(active_financings),
            "saldo_devedor": _sum(active_financings, "saldo_devedor"),
        },
        "cotacoes": {
            "total": len(quotes),
            "em_negociacao": len(negotiating),
        },
    }
