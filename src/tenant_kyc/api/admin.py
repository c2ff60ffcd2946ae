"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from tenant_kyc.api.models import IdentityStatusView

if TYPE_CHECKING:
    from tenant_kyc.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request) -> dict[str, object]:
    """Return the verification sessions currently held in memory."""
    container: AppContainer = request.app.state.container
    sessions = sorted(
        container.session_store.list_sessions(), key=lambda session: session.created_at
    )
    return {
        "sessions": [
            {
                "id": str(session.id),
                "profile_id": str(session.profile_id),
                "step": session.step.value,
                "document_type": session.document_type.id
                if session.document_type
                else None,
                "created_at": session.created_at.isoformat(),
            }
            for session in sessions
        ]
    }


@router.get("/profiles/{profile_id}", dependencies=[Depends(require_admin)])
async def profile_status(profile_id: UUID, request: Request) -> IdentityStatusView:
    """Return a tenant's identity verification status."""
    container: AppContainer = request.app.state.container
    return IdentityStatusView.from_status(
        container.identity_status_service.get_status(profile_id)
    )
