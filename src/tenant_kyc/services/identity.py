"""Tenant identity records and verification status."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.records import (
    KycStatus,
    LeaseDocumentRecord,
    LeaseDocumentStatus,
    LeaseDocumentType,
    TenantContact,
    TenantIdentityRecord,
)
from tenant_kyc.services.leases import (
    SIGNER_ROLES,
    LeaseDocumentService,
    LeaseRepository,
)


class TenantIdentityRepository(Protocol):
    """Persistence interface for tenant identity columns."""

    def get_identity(self, profile_id: UUID) -> TenantIdentityRecord | None:
        """Return the identity record of a profile, if present."""

    def set_kyc_status(self, profile_id: UUID, status: KycStatus) -> None:
        """Update only the KYC status of a profile."""

    def save_identity(self, record: TenantIdentityRecord) -> None:
        """Write every identity column of a profile."""

    def get_contact(self, profile_id: UUID) -> TenantContact | None:
        """Return contact details for a profile, if present."""


@dataclass(frozen=True)
class LeaseIdentityDocuments:
    """Active identity documents on one lease."""

    lease_id: UUID
    documents: list[LeaseDocumentRecord]


@dataclass(frozen=True)
class IdentityStatus:
    """Verification status of a tenant across profile and leases."""

    profile_id: UUID
    kyc_status: KycStatus
    verification_status: LeaseDocumentStatus
    verified_at: datetime | None
    document_expiry_date: date | None
    leases: list[LeaseIdentityDocuments]


@dataclass
class IdentityStatusService:
    """Reads a tenant's verification status."""

    identity_repository: TenantIdentityRepository
    lease_repository: LeaseRepository
    lease_document_service: LeaseDocumentService

    def get_status(self, profile_id: UUID) -> IdentityStatus:
        """Return the profile status plus active identity documents per lease."""
        record = self.identity_repository.get_identity(profile_id)
        leases = [
            LeaseIdentityDocuments(
                lease_id=lease_id,
                documents=self.lease_document_service.list_identity_documents(
                    lease_id
                ),
            )
            for lease_id in self.lease_repository.list_signed_lease_ids(
                profile_id, SIGNER_ROLES
            )
        ]
        return IdentityStatus(
            profile_id=profile_id,
            kyc_status=record.kyc_status if record else KycStatus.UNVERIFIED,
            verification_status=_global_status(record, leases),
            verified_at=record.verified_at if record else None,
            document_expiry_date=record.document_expiry_date if record else None,
            leases=leases,
        )


def _global_status(
    record: TenantIdentityRecord | None, leases: list[LeaseIdentityDocuments]
) -> LeaseDocumentStatus:
    """Verified profile first, then the first active front-side lease document."""
    if record is not None and (
        record.kyc_status == KycStatus.VERIFIED or record.verified_at is not None
    ):
        return LeaseDocumentStatus.VERIFIED
    for lease in leases:
        for document in lease.documents:
            if document.type == LeaseDocumentType.IDENTITY_FRONT:
                return document.verification_status
    return LeaseDocumentStatus.PENDING
