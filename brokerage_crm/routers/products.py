"""Product routers - policies, claims, consortiums, health plans, financings.

The five products share one lifecycle, so their routers are built from a
single template around product_service.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import UserSession
from brokerage_crm.schemas.products import (
    ClaimCreate,
    ClaimRead,
    ClaimUpdate,
    ConsortiumCreate,
    ConsortiumRead,
    ConsortiumUpdate,
    FinancingCreate,
    FinancingRead,
    FinancingUpdate,
    HealthPlanCreate,
    HealthPlanRead,
    HealthPlanUpdate,
    PolicyCreate,
    PolicyRead,
    PolicyUpdate,
)
from brokerage_crm.services import product_service
from brokerage_crm.services.product_service import ProductKind


def build_product_router(
    kind: ProductKind,
    prefix: str,
    tag: str,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    read_schema: type[BaseModel],
) -> APIRouter:
    """CRUD + stats/summary router for one product kind."""
    router = APIRouter(prefix=prefix, tags=[tag])
    not_found = f"{kind.label} not found"

    def _get_or_404(db: Session, session: UserSession, item_id: UUID):
        item = product_service.get_item(db, session.org_id, kind, item_id)
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return item

    @router.get("", response_model=list[read_schema])
    def list_items(
        cliente_id: UUID | None = None,
        status: str | None = None,
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        return product_service.list_items(
            db, session.org_id, kind, cliente_id=cliente_id, status=status
        )

    @router.get("/stats/summary", response_model=dict[str, int])
    def summary(
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        """Total and count per status."""
        return product_service.status_summary(db, session.org_id, kind)

    @router.get("/{item_id}", response_model=read_schema)
    def get_item(
        item_id: UUID,
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        return _get_or_404(db, session, item_id)

    @router.post(
        "",
        response_model=read_schema,
        status_code=201,
        dependencies=[Depends(require_csrf_header)],
    )
    def create_item(
        data: create_schema,
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        try:
            return product_service.create_item(db, session.org_id, kind, data)
        except ValueError as e:
            raise HTTPException(400, str(e))

    @router.put(
        "/{item_id}",
        response_model=read_schema,
        dependencies=[Depends(require_csrf_header)],
    )
    def update_item(
        item_id: UUID,
        data: update_schema,
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        item = _get_or_404(db, session, item_id)
        return product_service.update_item(db, kind, item, data)

    @router.delete(
        "/{item_id}",
        status_code=204,
        dependencies=[Depends(require_csrf_header)],
    )
    def delete_item(
        item_id: UUID,
        db: Session = Depends(get_db),
        session: UserSession = Depends(get_current_session),
    ):
        item = _get_or_404(db, session, item_id)
        product_service.delete_item(db, kind, item)
        return Response(status_code=204)

    return router


policies_router = build_product_router(
    product_service.POLICIES, "/apolices", "Policies",
    PolicyCreate, PolicyUpdate, PolicyRead,
)
claims_router = build_product_router(
    product_service.CLAIMS, "/sinistros", "Claims",
    ClaimCreate, ClaimUpdate, ClaimRead,
)
consortiums_router = build_product_router(
    product_service.CONSORTIUMS, "/consorcios", "Consortiums",
    ConsortiumCreate, ConsortiumUpdate, ConsortiumRead,
)
health_plans_router = build_product_router(
    product_service.HEALTH_PLANS, "/planos-saude", "Health plans",
    HealthPlanCreate, HealthPlanUpdate, HealthPlanRead,
)
financings_router = build_product_router(
    product_service.FINANCINGS, "/financiamentos", "Financings",
    FinancingCreate, FinancingUpdate, FinancingRead,
)
