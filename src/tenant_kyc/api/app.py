"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.responses import FileResponse

from tenant_kyc.api.admin import router as admin_router
from tenant_kyc.api.models import (
    DocumentTypeView,
    IdentityStatusView,
    SelectDocumentRequest,
    SessionView,
)
from tenant_kyc.app_logging import configure_logging
from tenant_kyc.containers import AppContainer
from tenant_kyc.domain.documents import DOCUMENT_TYPES
from tenant_kyc.domain.errors import (
    CaptureRejectedError,
    FlowStateError,
    UnknownDocumentTypeError,
)
from tenant_kyc.domain.sessions import CaptureSlot, VerificationSession
from tenant_kyc.domain.verification import ExtractedIdentity


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/verification/document-types")
    async def document_types() -> dict[str, list[DocumentTypeView]]:
        """Return the accepted identity document types."""
        return {
            "document_types": [
                DocumentTypeView.from_descriptor(descriptor)
                for descriptor in DOCUMENT_TYPES
            ]
        }

    @app.post("/verification/start")
    async def start(request: Request, x_profile_id: UUID = Header()) -> SessionView:
        """Open the document choice, creating the session if needed."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_store.get(x_profile_id)
        if session is None:
            session = state_container.flow.new_session(x_profile_id)
        with _translate_errors():
            state_container.flow.start(session)
        state_container.session_store.put(session)
        return _session_view(request, session)

    @app.get("/verification")
    async def current(request: Request, x_profile_id: UUID = Header()) -> SessionView:
        """Return the active session."""
        session = _require_session(request, x_profile_id)
        return _session_view(request, session)

    @app.post("/verification/document")
    async def select_document(
        body: SelectDocumentRequest, request: Request, x_profile_id: UUID = Header()
    ) -> SessionView:
        """Choose the identity document type."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        with _translate_errors():
            state_container.flow.select_document(session, body.document_type)
        state_container.session_store.put(session)
        return _session_view(request, session)

    @app.put("/verification/captures/{slot}")
    async def capture(
        slot: CaptureSlot, request: Request, x_profile_id: UUID = Header()
    ) -> SessionView:
        """Store a capture; the selfie runs verification."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        data = await request.body()
        flow = state_container.flow
        attempt = session.attempt
        with _translate_errors():
            if slot == CaptureSlot.RECTO:
                flow.capture_recto(session, data)
            elif slot == CaptureSlot.VERSO:
                flow.capture_verso(session, data)
            else:
                outcome = await flow.capture_selfie(session, data)
                logger.info(
                    "Verification finished",
                    extra={
                        "profile_id": str(x_profile_id),
                        "success": outcome.success,
                        "error_code": outcome.error_code,
                    },
                )
        # A session reset or cancelled while verifying is not stored again.
        if session.attempt == attempt:
            state_container.session_store.put(session)
        return _session_view(request, session)

    @app.delete("/verification/captures/{slot}")
    async def retry_capture(
        slot: CaptureSlot, request: Request, x_profile_id: UUID = Header()
    ) -> SessionView:
        """Discard one capture and reopen its scan step."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        with _translate_errors():
            state_container.flow.retry(session, slot)
        state_container.session_store.put(session)
        return _session_view(request, session)

    @app.get("/verification/captures/{slot}/preview")
    async def preview(
        slot: CaptureSlot, request: Request, x_profile_id: UUID = Header()
    ) -> FileResponse:
        """Serve the preview of a capture while it is held."""
        session = _require_session(request, x_profile_id)
        captured = session.get_slot(slot)
        if captured is None or captured.preview is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return FileResponse(
            captured.preview.path, media_type=captured.preview.content_type
        )

    @app.post("/verification/back")
    async def back(request: Request, x_profile_id: UUID = Header()) -> SessionView:
        """Go one step back."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        with _translate_errors():
            state_container.flow.back(session)
        state_container.session_store.put(session)
        return _session_view(request, session)

    @app.post("/verification/reset")
    async def reset(request: Request, x_profile_id: UUID = Header()) -> SessionView:
        """Clear the session and return to the intro."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_store.get(x_profile_id)
        if session is None:
            session = state_container.flow.new_session(x_profile_id)
        state_container.flow.reset(session)
        state_container.session_store.put(session)
        return _session_view(request, session)

    @app.post("/verification/continue")
    async def continue_flow(
        request: Request, x_profile_id: UUID = Header()
    ) -> dict[str, ExtractedIdentity]:
        """Leave the success step and return the verified identity."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        with _translate_errors():
            identity = state_container.flow.continue_flow(session)
        state_container.session_store.pop(x_profile_id)
        return {"identity": identity}

    @app.post("/verification/skip")
    async def skip(request: Request, x_profile_id: UUID = Header()) -> dict[str, str]:
        """Leave the flow without verifying."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_store.get(x_profile_id)
        if session is None:
            session = state_container.flow.new_session(x_profile_id)
        with _translate_errors():
            state_container.flow.skip(session)
        state_container.session_store.pop(x_profile_id)
        return {"status": "skipped"}

    @app.post("/verification/help")
    async def help_requested(
        request: Request, x_profile_id: UUID = Header()
    ) -> SessionView:
        """Record a help request; the step is unchanged."""
        state_container: AppContainer = request.app.state.container
        session = _require_session(request, x_profile_id)
        with _translate_errors():
            state_container.flow.help(session)
        return _session_view(request, session)

    @app.delete("/verification")
    async def cancel(request: Request, x_profile_id: UUID = Header()) -> dict[str, str]:
        """Cancel and dispose of the active session."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_store.pop(x_profile_id)
        if session is not None:
            state_container.flow.dispose(session)
        return {"status": "cancelled"}

    @app.get("/identity/status")
    async def identity_status(
        request: Request, x_profile_id: UUID = Header()
    ) -> IdentityStatusView:
        """Return the tenant's verification status and lease documents."""
        state_container: AppContainer = request.app.state.container
        return IdentityStatusView.from_status(
            state_container.identity_status_service.get_status(x_profile_id)
        )

    return app


def _require_session(request: Request, profile_id: UUID) -> VerificationSession:
    container: AppContainer = request.app.state.container
    session = container.session_store.get(profile_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active verification session",
        )
    return session


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map flow errors to HTTP errors."""
    try:
        yield
    except FlowStateError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    except (UnknownDocumentTypeError, CaptureRejectedError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _session_view(request: Request, session: VerificationSession) -> SessionView:
    """Render a session, with raw error detail only in local environments."""
    container: AppContainer = request.app.state.container
    return SessionView.from_session(
        session, debug=container.settings.environment == "local"
    )
