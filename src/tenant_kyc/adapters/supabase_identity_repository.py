"""Supabase-backed tenant identity repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from tenant_kyc.domain.records import KycStatus, TenantContact, TenantIdentityRecord
from tenant_kyc.services.identity import TenantIdentityRepository

_IDENTITY_COLUMNS = (
    "profile_id, kyc_status, identity_front_path, identity_back_path, selfie_path, "
    "extracted_identity, document_number, document_expiry_date, verified_at, "
    "selfie_verified_at"
)


@dataclass
class SupabaseTenantIdentityRepository(TenantIdentityRepository):
    """Supabase implementation over tenant_profiles and profiles."""

    client: Client

    def get_identity(self, profile_id: UUID) -> TenantIdentityRecord | None:
        """Return the identity columns of a tenant profile."""
        response = (
            self.client.table("tenant_profiles")
            .select(_IDENTITY_COLUMNS)
            .eq("profile_id", str(profile_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = dict(response.data[0])
        if row.get("kyc_status") is None:
            row["kyc_status"] = KycStatus.UNVERIFIED
        return TenantIdentityRecord.from_row(row)

    def set_kyc_status(self, profile_id: UUID, status: KycStatus) -> None:
        """Update the KYC status column."""
        self.client.table("tenant_profiles").update(
            {
                "kyc_status": status.value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("profile_id", str(profile_id)).execute()

    def save_identity(self, record: TenantIdentityRecord) -> None:
        """Write every identity column of the profile."""
        payload = record.to_row()
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("tenant_profiles")
            .update(payload)
            .eq("profile_id", str(record.profile_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update tenant identity")

    def get_contact(self, profile_id: UUID) -> TenantContact | None:
        """Return email, phone and display name from the profile."""
        response = (
            self.client.table("profiles")
            .select("id, email, phone, first_name, last_name")
            .eq("id", str(profile_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        name = " ".join(
            part for part in (row.get("first_name"), row.get("last_name")) if part
        )
        return TenantContact(
            email=row.get("email"),
            phone=row.get("phone"),
            display_name=name or None,
        )
