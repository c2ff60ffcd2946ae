"""Uploads captures, calls the verification oracle and resolves KYC status."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.documents import DocumentTypeDescriptor
from tenant_kyc.domain.errors import ArtifactUploadError, OracleError
from tenant_kyc.domain.records import KycStatus
from tenant_kyc.domain.sessions import CaptureSlot
from tenant_kyc.domain.verification import (
    ArtifactHandle,
    OracleResult,
    VerificationErrorCode,
    VerificationOutcome,
)
from tenant_kyc.services.artifacts import ArtifactService
from tenant_kyc.services.identity import TenantIdentityRepository
from tenant_kyc.services.synchronizer import ResultSynchronizer

logger = logging.getLogger(__name__)

_UPLOAD_ORDER = (CaptureSlot.RECTO, CaptureSlot.VERSO, CaptureSlot.SELFIE)


class VerificationOracle(Protocol):
    """External identity verification provider."""

    async def verify(
        self, document_type: str, artifacts: dict[CaptureSlot, ArtifactHandle]
    ) -> OracleResult:
        """Verify uploaded artifacts or raise OracleError."""


@dataclass(frozen=True)
class CaptureArtifacts:
    """Raw captures submitted for verification."""

    recto: bytes
    verso: bytes | None = None
    selfie: bytes | None = None
    recto_content_type: str = "image/jpeg"
    verso_content_type: str = "image/jpeg"
    selfie_content_type: str = "image/jpeg"

    def items(self) -> list[tuple[CaptureSlot, bytes, str]]:
        """Return present captures in upload order."""
        captures = {
            CaptureSlot.RECTO: (self.recto, self.recto_content_type),
            CaptureSlot.VERSO: (self.verso, self.verso_content_type),
            CaptureSlot.SELFIE: (self.selfie, self.selfie_content_type),
        }
        return [
            (slot, captures[slot][0], captures[slot][1])
            for slot in _UPLOAD_ORDER
            if captures[slot][0] is not None
        ]


@dataclass
class VerificationService:
    """Runs one verification attempt for a tenant."""

    artifact_service: ArtifactService
    oracle: VerificationOracle
    identity_repository: TenantIdentityRepository
    synchronizer: ResultSynchronizer

    async def verify(
        self,
        profile_id: UUID,
        document_type: DocumentTypeDescriptor,
        artifacts: CaptureArtifacts,
    ) -> VerificationOutcome:
        """Upload, verify and persist; never raises for provider failures.

        Uploads happen before the profile is marked as processing, so an
        upload failure leaves the KYC status untouched. Once marked, the
        status always ends as verified or rejected.
        """
        try:
            handles = self._upload_all(profile_id, document_type, artifacts)
        except ArtifactUploadError as exc:
            logger.warning(
                "Identity artifact upload failed",
                extra={"profile_id": str(profile_id), "side": exc.side},
            )
            return VerificationOutcome.failed(
                VerificationErrorCode.UPLOAD_ERROR, str(exc)
            )

        self.identity_repository.set_kyc_status(profile_id, KycStatus.PROCESSING)
        try:
            result = await self.oracle.verify(document_type.id, handles)
            report = self.synchronizer.sync(profile_id, document_type, handles, result)
        except asyncio.CancelledError:
            self._mark_rejected(profile_id)
            raise
        except OracleError as exc:
            logger.info(
                "Identity verification rejected",
                extra={"profile_id": str(profile_id), "reason": exc.reason},
            )
            self._mark_rejected(profile_id)
            return VerificationOutcome.failed(
                VerificationErrorCode.VERIFICATION_FAILED, exc.message, exc.reason
            )
        except Exception as exc:
            logger.exception(
                "Identity verification failed", extra={"profile_id": str(profile_id)}
            )
            self._mark_rejected(profile_id)
            return VerificationOutcome.failed(
                VerificationErrorCode.VERIFICATION_FAILED,
                str(exc) or type(exc).__name__,
            )

        if report.failed_lease_ids:
            logger.warning(
                "Identity verified with lease sync failures",
                extra={
                    "profile_id": str(profile_id),
                    "failed_lease_ids": [str(i) for i in report.failed_lease_ids],
                },
            )
        return VerificationOutcome(
            success=True,
            confidence=result.confidence,
            extracted_identity=result.extracted_identity,
        )

    def _upload_all(
        self,
        profile_id: UUID,
        document_type: DocumentTypeDescriptor,
        artifacts: CaptureArtifacts,
    ) -> dict[CaptureSlot, ArtifactHandle]:
        handles: dict[CaptureSlot, ArtifactHandle] = {}
        for slot, data, content_type in artifacts.items():
            handles[slot] = self.artifact_service.upload(
                profile_id, document_type.id, slot.value, data, content_type
            )
        return handles

    def _mark_rejected(self, profile_id: UUID) -> None:
        try:
            self.identity_repository.set_kyc_status(profile_id, KycStatus.REJECTED)
        except Exception:
            logger.exception(
                "Failed to mark identity as rejected",
                extra={"profile_id": str(profile_id)},
            )
