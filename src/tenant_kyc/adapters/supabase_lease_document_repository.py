"""Supabase-backed lease document repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from tenant_kyc.domain.records import LeaseDocumentRecord, LeaseDocumentType
from tenant_kyc.services.leases import LeaseDocumentRepository

_DOCUMENT_COLUMNS = (
    "id, type, title, lease_id, tenant_id, storage_path, expiry_date, "
    "verification_status, is_archived, metadata, created_at"
)


@dataclass
class SupabaseLeaseDocumentRepository(LeaseDocumentRepository):
    """Supabase implementation over the documents table."""

    client: Client

    def list_active(
        self, lease_id: UUID, types: tuple[LeaseDocumentType, ...]
    ) -> list[LeaseDocumentRecord]:
        """Return non-archived documents of the given types."""
        response = (
            self.client.table("documents")
            .select(_DOCUMENT_COLUMNS)
            .eq("lease_id", str(lease_id))
            .eq("is_archived", False)
            .in_("type", [document_type.value for document_type in types])
            .order("created_at", desc=True)
            .execute()
        )
        return [LeaseDocumentRecord.from_row(row) for row in response.data or []]

    def archive_active(self, lease_id: UUID, type: LeaseDocumentType) -> None:
        """Flag the current documents of a type as archived."""
        self.client.table("documents").update(
            {
                "is_archived": True,
                "archived_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("lease_id", str(lease_id)).eq("type", type.value).eq(
            "is_archived", False
        ).execute()

    def insert(self, record: LeaseDocumentRecord) -> LeaseDocumentRecord:
        """Insert a document row and return it."""
        response = self.client.table("documents").insert(record.to_row()).execute()
        if not response.data:
            raise RuntimeError("Failed to insert lease document")
        return LeaseDocumentRecord.from_row(response.data[0])
