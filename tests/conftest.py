"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from tenant_kyc.config import Settings
from tenant_kyc.containers import AppContainer
from tenant_kyc.domain.errors import OracleError, OracleFailureCode
from tenant_kyc.domain.records import (
    AuditEvent,
    KycStatus,
    LeaseDocumentRecord,
    LeaseDocumentType,
    TenantContact,
    TenantIdentityRecord,
)
from tenant_kyc.domain.sessions import CaptureSlot, PreviewHandle
from tenant_kyc.domain.verification import (
    ArtifactHandle,
    ExtractedIdentity,
    OracleResult,
)
from tenant_kyc.services.artifacts import ArtifactService, ArtifactStore
from tenant_kyc.services.audit import AuditRepository, AuditService
from tenant_kyc.services.capture import CaptureService, PreviewStore
from tenant_kyc.services.flow import FlowCallbacks, VerificationFlow
from tenant_kyc.services.identity import (
    IdentityStatusService,
    TenantIdentityRepository,
)
from tenant_kyc.services.leases import (
    LeaseDocumentRepository,
    LeaseDocumentService,
    LeaseRepository,
)
from tenant_kyc.services.session_store import InMemorySessionStore
from tenant_kyc.services.synchronizer import ResultSynchronizer
from tenant_kyc.services.verification import VerificationOracle, VerificationService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBP" + b"\x00" * 32


@dataclass
class InMemoryTenantIdentityRepository(TenantIdentityRepository):
    """In-memory identity repository for tests."""

    records: dict[UUID, TenantIdentityRecord] = field(default_factory=dict)
    contacts: dict[UUID, TenantContact] = field(default_factory=dict)
    status_history: list[tuple[UUID, KycStatus]] = field(default_factory=list)
    fail_save: bool = False

    def get_identity(self, profile_id: UUID) -> TenantIdentityRecord | None:
        return self.records.get(profile_id)

    def set_kyc_status(self, profile_id: UUID, status: KycStatus) -> None:
        self.status_history.append((profile_id, status))
        current = self.records.get(profile_id) or TenantIdentityRecord(
            profile_id=profile_id
        )
        self.records[profile_id] = current.model_copy(update={"kyc_status": status})

    def save_identity(self, record: TenantIdentityRecord) -> None:
        if self.fail_save:
            raise RuntimeError("database unavailable")
        self.status_history.append((record.profile_id, record.kyc_status))
        self.records[record.profile_id] = record

    def get_contact(self, profile_id: UUID) -> TenantContact | None:
        return self.contacts.get(profile_id)

    def status_of(self, profile_id: UUID) -> KycStatus:
        record = self.records.get(profile_id)
        return record.kyc_status if record else KycStatus.UNVERIFIED


@dataclass
class InMemoryLeaseRepository(LeaseRepository):
    """In-memory lease repository keyed by profile."""

    leases: dict[UUID, list[UUID]] = field(default_factory=dict)

    def list_signed_lease_ids(
        self, profile_id: UUID, roles: tuple[str, ...]
    ) -> list[UUID]:
        return list(self.leases.get(profile_id, []))


@dataclass
class InMemoryLeaseDocumentRepository(LeaseDocumentRepository):
    """In-memory document table for tests."""

    documents: list[LeaseDocumentRecord] = field(default_factory=list)
    failing_leases: set[UUID] = field(default_factory=set)

    def list_active(
        self, lease_id: UUID, types: tuple[LeaseDocumentType, ...]
    ) -> list[LeaseDocumentRecord]:
        return [
            document
            for document in self.documents
            if document.lease_id == lease_id
            and document.type in types
            and not document.is_archived
        ]

    def archive_active(self, lease_id: UUID, type: LeaseDocumentType) -> None:
        if lease_id in self.failing_leases:
            raise RuntimeError("lease write failed")
        self.documents = [
            document.model_copy(update={"is_archived": True})
            if document.lease_id == lease_id and document.type == type
            else document
            for document in self.documents
        ]

    def insert(self, record: LeaseDocumentRecord) -> LeaseDocumentRecord:
        stored = record.model_copy(
            update={"id": uuid4(), "created_at": datetime.now(tz=UTC)}
        )
        self.documents.append(stored)
        return stored

    def active_for(
        self, lease_id: UUID, type: LeaseDocumentType
    ) -> list[LeaseDocumentRecord]:
        return self.list_active(lease_id, (type,))


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    events: list[AuditEvent] = field(default_factory=list)
    fail: bool = False

    def create_event(self, event: AuditEvent) -> None:
        if self.fail:
            raise RuntimeError("audit unavailable")
        self.events.append(event)


@dataclass
class FakeArtifactStore(ArtifactStore):
    """Artifact store recording uploads; can fail on chosen sides."""

    objects: dict[str, bytes] = field(default_factory=dict)
    uploads: list[str] = field(default_factory=list)
    failing_sides: set[str] = field(default_factory=set)

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        self.uploads.append(path)
        side = path.rsplit("/", 1)[-1].split("_")[-2]
        if side in self.failing_sides:
            raise RuntimeError("storage unavailable")
        self.objects[path] = data


@dataclass
class FakeOracle(VerificationOracle):
    """Oracle returning a fixed verdict."""

    result: OracleResult = field(
        default_factory=lambda: OracleResult(
            confidence=0.97,
            extracted_identity=ExtractedIdentity(
                name="MARTIN",
                first_name="Claire",
                birth_date=date(1990, 4, 12),
                birth_place="Lyon",
                sex="F",
                nationality="FRA",
                document_number="X4RTBPFW4",
                expiry_date=date(2031, 6, 30),
            ),
        )
    )
    error: Exception | None = None
    calls: list[tuple[str, dict[CaptureSlot, ArtifactHandle]]] = field(
        default_factory=list
    )

    async def verify(
        self, document_type: str, artifacts: dict[CaptureSlot, ArtifactHandle]
    ) -> OracleResult:
        self.calls.append((document_type, dict(artifacts)))
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class InMemoryPreviewStore(PreviewStore):
    """Preview store tracking live handles."""

    live: dict[str, PreviewHandle] = field(default_factory=dict)
    released: list[str] = field(default_factory=list)

    def create(self, data: bytes, content_type: str) -> PreviewHandle:
        handle = PreviewHandle(
            id=uuid4().hex,
            path=f"/tmp/preview-{len(self.live)}",
            content_type=content_type,
        )
        self.live[handle.id] = handle
        return handle

    def release(self, handle: PreviewHandle) -> None:
        self.live.pop(handle.id, None)
        self.released.append(handle.id)


@dataclass
class RecordingCallbacks:
    """Collects flow callback invocations."""

    successes: list[ExtractedIdentity] = field(default_factory=list)
    skips: int = 0
    helps: int = 0

    def as_callbacks(self) -> FlowCallbacks:
        def on_skip() -> None:
            self.skips += 1

        def on_help() -> None:
            self.helps += 1

        return FlowCallbacks(
            on_success=self.successes.append, on_skip=on_skip, on_help=on_help
        )


@dataclass
class Harness:
    """A flow wired to in-memory collaborators."""

    flow: VerificationFlow
    identity_repository: InMemoryTenantIdentityRepository
    lease_repository: InMemoryLeaseRepository
    document_repository: InMemoryLeaseDocumentRepository
    audit_repository: InMemoryAuditRepository
    artifact_store: FakeArtifactStore
    oracle: FakeOracle
    preview_store: InMemoryPreviewStore
    callbacks: RecordingCallbacks
    synchronizer: ResultSynchronizer
    verification_service: VerificationService
    identity_status_service: IdentityStatusService


def build_harness() -> Harness:
    identity_repository = InMemoryTenantIdentityRepository()
    lease_repository = InMemoryLeaseRepository()
    document_repository = InMemoryLeaseDocumentRepository()
    audit_repository = InMemoryAuditRepository()
    artifact_store = FakeArtifactStore()
    oracle = FakeOracle()
    preview_store = InMemoryPreviewStore()
    callbacks = RecordingCallbacks()
    lease_document_service = LeaseDocumentService(document_repository)
    synchronizer = ResultSynchronizer(
        identity_repository=identity_repository,
        lease_repository=lease_repository,
        lease_document_service=lease_document_service,
        audit_service=AuditService(audit_repository),
    )
    verification_service = VerificationService(
        artifact_service=ArtifactService(artifact_store),
        oracle=oracle,
        identity_repository=identity_repository,
        synchronizer=synchronizer,
    )
    flow = VerificationFlow(
        capture_service=CaptureService(preview_store),
        verification_service=verification_service,
        callbacks=callbacks.as_callbacks(),
    )
    return Harness(
        flow=flow,
        identity_repository=identity_repository,
        lease_repository=lease_repository,
        document_repository=document_repository,
        audit_repository=audit_repository,
        artifact_store=artifact_store,
        oracle=oracle,
        preview_store=preview_store,
        callbacks=callbacks,
        synchronizer=synchronizer,
        verification_service=verification_service,
        identity_status_service=IdentityStatusService(
            identity_repository=identity_repository,
            lease_repository=lease_repository,
            lease_document_service=lease_document_service,
        ),
    )


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        oracle_base_url="https://oracle.example.com/v1",
        oracle_api_key="oracle-key",
    )


@pytest.fixture
def container(settings: Settings, harness: Harness) -> AppContainer:
    session_store = InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds, on_expire=harness.flow.dispose
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        flow=harness.flow,
        session_store=session_store,
        identity_status_service=harness.identity_status_service,
        close_resources=close_resources,
    )


def oracle_rejection(reason: OracleFailureCode) -> OracleError:
    return OracleError(reason, f"rejected: {reason.value}")
