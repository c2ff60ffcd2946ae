"""Supabase-backed lease lookups."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from tenant_kyc.services.leases import LeaseRepository

_CLOSED_LEASE_STATUSES = {"terminated", "cancelled", "archived"}


@dataclass
class SupabaseLeaseRepository(LeaseRepository):
    """Supabase implementation over lease_signers and leases."""

    client: Client

    def list_signed_lease_ids(
        self, profile_id: UUID, roles: tuple[str, ...]
    ) -> list[UUID]:
        """Return open leases where the profile signs with one of the roles."""
        response = (
            self.client.table("lease_signers")
            .select("lease_id, role")
            .eq("profile_id", str(profile_id))
            .in_("role", list(roles))
            .execute()
        )
        lease_ids: list[str] = []
        for row in response.data or []:
            lease_id = row.get("lease_id")
            if lease_id and lease_id not in lease_ids:
                lease_ids.append(lease_id)
        if not lease_ids:
            return []

        leases = (
            self.client.table("leases")
            .select("id, status")
            .in_("id", lease_ids)
            .execute()
        )
        open_ids = {
            row["id"]
            for row in leases.data or []
            if row.get("status") not in _CLOSED_LEASE_STATUSES
        }
        return [UUID(lease_id) for lease_id in lease_ids if lease_id in open_ids]
