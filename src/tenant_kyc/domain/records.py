"""Persistence DTOs validated at the repository boundary."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from tenant_kyc.domain.verification import ExtractedIdentity


class KycStatus(StrEnum):
    """Identity verification status of a tenant profile."""

    UNVERIFIED = "unverified"
    PROCESSING = "processing"
    VERIFIED = "verified"
    REJECTED = "rejected"


class LeaseDocumentStatus(StrEnum):
    """Verification status of an identity document stored on a lease.

    This service writes verified documents; other writers of the shared
    documents table store the other statuses.
    """

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"


class LeaseDocumentType(StrEnum):
    """Identity document kinds attached to a lease."""

    IDENTITY_FRONT = "identity_front"
    IDENTITY_BACK = "identity_back"


class TenantIdentityRecord(BaseModel):
    """Identity columns of a tenant profile."""

    profile_id: UUID
    kyc_status: KycStatus = KycStatus.UNVERIFIED
    identity_front_path: str | None = None
    identity_back_path: str | None = None
    selfie_path: str | None = None
    extracted_identity: ExtractedIdentity | None = None
    document_number: str | None = None
    document_expiry_date: date | None = None
    verified_at: datetime | None = None
    selfie_verified_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "TenantIdentityRecord":
        """Validate a tenant profile row."""
        return cls.model_validate(row)

    def to_row(self) -> dict[str, object]:
        """Serialize the writable columns."""
        return self.model_dump(mode="json", exclude={"profile_id"})


class LeaseDocumentRecord(BaseModel):
    """Identity document attached to a lease for one tenant."""

    id: UUID | None = None
    type: LeaseDocumentType
    title: str
    lease_id: UUID
    tenant_id: UUID
    storage_path: str
    expiry_date: date | None = None
    verification_status: LeaseDocumentStatus = LeaseDocumentStatus.VERIFIED
    is_archived: bool = False
    metadata: dict[str, object] = Field(default_factory=dict)
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "LeaseDocumentRecord":
        """Validate a lease document row."""
        return cls.model_validate(row)

    def to_row(self) -> dict[str, object]:
        """Serialize the insertable columns."""
        return self.model_dump(mode="json", exclude={"id", "created_at"})


class AuditEvent(BaseModel):
    """Append-only audit trail entry."""

    actor_id: UUID
    action: str
    entity_type: str
    entity_id: UUID
    metadata: dict[str, object] = Field(default_factory=dict)

    def to_row(self) -> dict[str, object]:
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class TenantContact:
    """Contact details copied into lease document metadata."""

    email: str | None
    phone: str | None
    display_name: str | None
