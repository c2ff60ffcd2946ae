"""Persists a verified identity into the profile and every signed lease."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from tenant_kyc.domain.documents import DocumentTypeDescriptor
from tenant_kyc.domain.records import (
    AuditEvent,
    KycStatus,
    LeaseDocumentRecord,
    LeaseDocumentStatus,
    LeaseDocumentType,
    TenantContact,
    TenantIdentityRecord,
)
from tenant_kyc.domain.sessions import CaptureSlot
from tenant_kyc.domain.verification import ArtifactHandle, OracleResult
from tenant_kyc.services.audit import IDENTITY_VERIFIED, AuditService
from tenant_kyc.services.identity import TenantIdentityRepository
from tenant_kyc.services.leases import (
    SIGNER_ROLES,
    LeaseDocumentService,
    LeaseRepository,
)

logger = logging.getLogger(__name__)

VERIFICATION_METHOD = "identity_flow"

_LEASE_SIDES = (
    (CaptureSlot.RECTO, LeaseDocumentType.IDENTITY_FRONT, "front"),
    (CaptureSlot.VERSO, LeaseDocumentType.IDENTITY_BACK, "back"),
)


@dataclass(frozen=True)
class SyncReport:
    """Summary of a synchronization run."""

    identity: TenantIdentityRecord
    updated_lease_ids: list[UUID]
    failed_lease_ids: list[UUID]
    audit_event: AuditEvent | None


@dataclass
class ResultSynchronizer:
    """Fans a successful verification out to durable records."""

    identity_repository: TenantIdentityRepository
    lease_repository: LeaseRepository
    lease_document_service: LeaseDocumentService
    audit_service: AuditService
    method: str = VERIFICATION_METHOD
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(tz=UTC))

    def sync(
        self,
        profile_id: UUID,
        document_type: DocumentTypeDescriptor,
        artifacts: dict[CaptureSlot, ArtifactHandle],
        result: OracleResult,
    ) -> SyncReport:
        """Mark the profile verified, then update leases and audit best-effort.

        Errors while writing the profile propagate. Errors on individual
        leases or on the audit write are logged and reported.
        """
        verified_at = self.clock()
        identity = self._build_identity(profile_id, artifacts, result, verified_at)
        self.identity_repository.save_identity(identity)
        logger.info("Tenant identity verified", extra={"profile_id": str(profile_id)})

        contact = self._load_contact(profile_id)
        try:
            lease_ids = self.lease_repository.list_signed_lease_ids(
                profile_id, SIGNER_ROLES
            )
        except Exception:
            logger.exception(
                "Failed to list signed leases", extra={"profile_id": str(profile_id)}
            )
            lease_ids = []
        updated: list[UUID] = []
        failed: list[UUID] = []
        for lease_id in lease_ids:
            try:
                self._sync_lease(
                    lease_id, profile_id, document_type, artifacts, result, contact
                )
            except Exception:
                logger.exception(
                    "Failed to sync identity documents to lease",
                    extra={"lease_id": str(lease_id), "profile_id": str(profile_id)},
                )
                failed.append(lease_id)
            else:
                updated.append(lease_id)

        audit_event = self._record_audit(profile_id, document_type)
        return SyncReport(
            identity=identity,
            updated_lease_ids=updated,
            failed_lease_ids=failed,
            audit_event=audit_event,
        )

    def _build_identity(
        self,
        profile_id: UUID,
        artifacts: dict[CaptureSlot, ArtifactHandle],
        result: OracleResult,
        verified_at: datetime,
    ) -> TenantIdentityRecord:
        extracted = result.extracted_identity
        recto = artifacts.get(CaptureSlot.RECTO)
        verso = artifacts.get(CaptureSlot.VERSO)
        selfie = artifacts.get(CaptureSlot.SELFIE)
        return TenantIdentityRecord(
            profile_id=profile_id,
            kyc_status=KycStatus.VERIFIED,
            identity_front_path=recto.path if recto else None,
            identity_back_path=verso.path if verso else None,
            selfie_path=selfie.path if selfie else None,
            extracted_identity=extracted,
            document_number=extracted.document_number,
            document_expiry_date=extracted.expiry_date,
            verified_at=verified_at,
            selfie_verified_at=verified_at if selfie else None,
        )

    def _load_contact(self, profile_id: UUID) -> TenantContact | None:
        try:
            return self.identity_repository.get_contact(profile_id)
        except Exception:
            logger.exception(
                "Failed to load tenant contact", extra={"profile_id": str(profile_id)}
            )
            return None

    def _sync_lease(  # noqa: PLR0913
        self,
        lease_id: UUID,
        profile_id: UUID,
        document_type: DocumentTypeDescriptor,
        artifacts: dict[CaptureSlot, ArtifactHandle],
        result: OracleResult,
        contact: TenantContact | None,
    ) -> None:
        extracted = result.extracted_identity
        full_name = " ".join(
            part for part in (extracted.first_name, extracted.name) if part
        )
        for slot, lease_document_type, side_label in _LEASE_SIDES:
            handle = artifacts.get(slot)
            if handle is None:
                continue
            title = f"{document_type.label} ({side_label})"
            if full_name:
                title = f"{title} - {full_name}"
            self.lease_document_service.replace_active(
                LeaseDocumentRecord(
                    type=lease_document_type,
                    title=title,
                    lease_id=lease_id,
                    tenant_id=profile_id,
                    storage_path=handle.path,
                    expiry_date=extracted.expiry_date,
                    verification_status=LeaseDocumentStatus.VERIFIED,
                    metadata={
                        "side": slot.value,
                        "document_type": document_type.id,
                        "verification_method": self.method,
                        "confidence": result.confidence,
                        "tenant_name": full_name or None,
                        "tenant_email": contact.email if contact else None,
                        "tenant_phone": contact.phone if contact else None,
                    },
                )
            )

    def _record_audit(
        self, profile_id: UUID, document_type: DocumentTypeDescriptor
    ) -> AuditEvent | None:
        try:
            return self.audit_service.record_event(
                actor_id=profile_id,
                action=IDENTITY_VERIFIED,
                entity_type="profile",
                entity_id=profile_id,
                metadata={"document_type": document_type.id, "method": self.method},
            )
        except Exception:
            logger.exception(
                "Failed to record identity audit event",
                extra={"profile_id": str(profile_id)},
            )
            return None
