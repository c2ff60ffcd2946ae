"""Lease lookups and lease-scoped identity documents."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.records import LeaseDocumentRecord, LeaseDocumentType

logger = logging.getLogger(__name__)

SIGNER_ROLES = ("primary_tenant", "co_tenant")


class LeaseRepository(Protocol):
    """Read access to leases and their signers."""

    def list_signed_lease_ids(
        self, profile_id: UUID, roles: tuple[str, ...]
    ) -> list[UUID]:
        """Return active leases where the profile signs with one of the roles."""


class LeaseDocumentRepository(Protocol):
    """Persistence interface for lease documents."""

    def list_active(
        self, lease_id: UUID, types: tuple[LeaseDocumentType, ...]
    ) -> list[LeaseDocumentRecord]:
        """Return non-archived documents of the given types for a lease."""

    def archive_active(self, lease_id: UUID, type: LeaseDocumentType) -> None:
        """Archive the non-archived documents of a type for a lease."""

    def insert(self, record: LeaseDocumentRecord) -> LeaseDocumentRecord:
        """Insert a document and return the stored row."""


@dataclass
class LeaseDocumentService:
    """Keeps one active document per lease and type."""

    repository: LeaseDocumentRepository

    def replace_active(self, record: LeaseDocumentRecord) -> LeaseDocumentRecord:
        """Archive the current document of the record's type, then insert it.

        A failed insert leaves the lease without an active document of
        that type.
        """
        self.repository.archive_active(record.lease_id, record.type)
        stored = self.repository.insert(record)
        logger.info(
            "Replaced lease identity document",
            extra={"lease_id": str(record.lease_id), "type": str(record.type)},
        )
        return stored

    def list_identity_documents(self, lease_id: UUID) -> list[LeaseDocumentRecord]:
        return self.repository.list_active(lease_id, tuple(LeaseDocumentType))
