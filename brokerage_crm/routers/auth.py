"""Authentication router - session introspection and logout.

Sessions are issued out of band (identity provider or the CLI's
`issue-token`) as signed JWTs, carried in the session cookie or a bearer
header.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from brokerage_crm.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from brokerage_crm.schemas.auth import MeResponse, UserSession
from brokerage_crm.services import org_service, user_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me")
def get_me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Get current authenticated user info.

    Used by frontend to bootstrap auth state on page load.
    """
    user = user_service.get_user_by_id(db, session.user_id)
    org = org_service.get_org_by_id(db, session.org_id)

    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        org_id=org.id,
        org_name=org.name,
        org_slug=org.slug,
        role=session.role,
    )


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Revoke every session of the user and clear the session cookie.

    Requires X-Requested-With header for CSRF protection.
    """
    user_service.revoke_all_sessions(db, session.user_id)
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}
