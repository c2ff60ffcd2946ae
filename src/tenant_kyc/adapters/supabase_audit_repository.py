"""Supabase repository for audit events."""

from dataclasses import dataclass

from supabase import Client

from tenant_kyc.domain.records import AuditEvent
from tenant_kyc.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(self, event: AuditEvent) -> None:
        """Insert an audit_log row."""
        self.client.table("audit_log").insert(event.to_row()).execute()
