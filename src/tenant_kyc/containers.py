"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from tenant_kyc.adapters.httpx_oracle_client import HttpxVerificationOracle
from tenant_kyc.adapters.supabase_artifact_store import SupabaseArtifactStore
from tenant_kyc.adapters.supabase_audit_repository import SupabaseAuditRepository
from tenant_kyc.adapters.supabase_identity_repository import (
    SupabaseTenantIdentityRepository,
)
from tenant_kyc.adapters.supabase_lease_document_repository import (
    SupabaseLeaseDocumentRepository,
)
from tenant_kyc.adapters.supabase_lease_repository import SupabaseLeaseRepository
from tenant_kyc.adapters.tempfile_preview_store import TempFilePreviewStore
from tenant_kyc.config import Settings
from tenant_kyc.domain.verification import ExtractedIdentity
from tenant_kyc.services.artifacts import ArtifactService
from tenant_kyc.services.audit import AuditService
from tenant_kyc.services.capture import CaptureService
from tenant_kyc.services.flow import FlowCallbacks, VerificationFlow
from tenant_kyc.services.identity import IdentityStatusService
from tenant_kyc.services.leases import LeaseDocumentService
from tenant_kyc.services.session_store import InMemorySessionStore, SessionStore
from tenant_kyc.services.synchronizer import ResultSynchronizer
from tenant_kyc.services.verification import VerificationService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    flow: VerificationFlow
    session_store: SessionStore
    identity_status_service: IdentityStatusService
    close_resources: Callable[[], Awaitable[None]]


def logging_callbacks() -> FlowCallbacks:
    """Callbacks that report flow exits to the application log."""

    def on_success(identity: ExtractedIdentity) -> None:
        logger.info(
            "Identity flow completed",
            extra={"document_number": identity.document_number},
        )

    def on_skip() -> None:
        logger.info("Identity flow skipped")

    def on_help() -> None:
        logger.info("Identity flow help requested")

    return FlowCallbacks(on_success=on_success, on_skip=on_skip, on_help=on_help)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    identity_repository = SupabaseTenantIdentityRepository(supabase_client)
    lease_repository = SupabaseLeaseRepository(supabase_client)
    lease_document_service = LeaseDocumentService(
        SupabaseLeaseDocumentRepository(supabase_client)
    )
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    artifact_service = ArtifactService(
        SupabaseArtifactStore(supabase_client, resolved_settings.storage_bucket)
    )
    oracle = HttpxVerificationOracle.create(
        api_key=resolved_settings.oracle_api_key,
        base_url=resolved_settings.oracle_base_url,
        timeout=resolved_settings.oracle_timeout_seconds,
    )
    synchronizer = ResultSynchronizer(
        identity_repository=identity_repository,
        lease_repository=lease_repository,
        lease_document_service=lease_document_service,
        audit_service=audit_service,
    )
    verification_service = VerificationService(
        artifact_service=artifact_service,
        oracle=oracle,
        identity_repository=identity_repository,
        synchronizer=synchronizer,
    )
    capture_service = CaptureService(
        preview_store=TempFilePreviewStore(directory=resolved_settings.preview_dir),
        max_bytes=resolved_settings.max_capture_bytes,
    )
    flow = VerificationFlow(
        capture_service=capture_service,
        verification_service=verification_service,
        callbacks=logging_callbacks(),
    )
    session_store = InMemorySessionStore(
        ttl_seconds=resolved_settings.session_ttl_seconds,
        on_expire=flow.dispose,
    )
    identity_status_service = IdentityStatusService(
        identity_repository=identity_repository,
        lease_repository=lease_repository,
        lease_document_service=lease_document_service,
    )

    async def close_resources() -> None:
        for session in session_store.list_sessions():
            flow.dispose(session)
        await oracle.close()

    return AppContainer(
        settings=resolved_settings,
        flow=flow,
        session_store=session_store,
        identity_status_service=identity_status_service,
        close_resources=close_resources,
    )
