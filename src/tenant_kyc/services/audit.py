"""Audit logging service."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.records import AuditEvent

IDENTITY_VERIFIED = "identity_verified"


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(self, event: AuditEvent) -> None:
        """Append an audit event row."""


@dataclass
class AuditService:
    """Service for recording audit events."""

    repository: AuditRepository

    def record_event(
        self,
        actor_id: UUID,
        action: str,
        entity_type: str,
        entity_id: UUID,
        metadata: dict[str, object] | None = None,
    ) -> AuditEvent:
        """Persist an audit event and return it."""
        event = AuditEvent(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata or {},
        )
        self.repository.create_event(event)
        return event
