"""In-memory store of active verification sessions, one per profile."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.sessions import VerificationSession


class SessionStore(Protocol):
    """Holds the active session of each profile."""

    def get(self, profile_id: UUID) -> VerificationSession | None:
        """Return the active session for a profile if it hasn't expired."""

    def put(self, session: VerificationSession) -> None:
        """Store or refresh a session."""

    def pop(self, profile_id: UUID) -> VerificationSession | None:
        """Remove and return a profile's session."""

    def list_sessions(self) -> list[VerificationSession]:
        """Return every live session."""


@dataclass
class _StoreEntry:
    session: VerificationSession
    expires_at: datetime


@dataclass
class InMemorySessionStore(SessionStore):
    """Session store with idle expiry; expired sessions go to on_expire."""

    ttl_seconds: int
    on_expire: Callable[[VerificationSession], None]
    _entries: dict[UUID, _StoreEntry]

    def __init__(
        self,
        ttl_seconds: int,
        on_expire: Callable[[VerificationSession], None] | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.on_expire = on_expire or (lambda _session: None)
        self._entries = {}

    def get(self, profile_id: UUID) -> VerificationSession | None:
        """Return a session if it hasn't expired."""
        self._purge_expired()
        entry = self._entries.get(profile_id)
        return entry.session if entry else None

    def put(self, session: VerificationSession) -> None:
        """Store a session with a fresh expiry."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=self.ttl_seconds)
        self._entries[session.profile_id] = _StoreEntry(
            session=session, expires_at=expires_at
        )

    def pop(self, profile_id: UUID) -> VerificationSession | None:
        entry = self._entries.pop(profile_id, None)
        return entry.session if entry else None

    def list_sessions(self) -> list[VerificationSession]:
        self._purge_expired()
        return [entry.session for entry in self._entries.values()]

    def _purge_expired(self) -> None:
        now = datetime.now(tz=UTC)
        expired = [
            profile_id
            for profile_id, entry in self._entries.items()
            if now >= entry.expires_at
        ]
        for profile_id in expired:
            entry = self._entries.pop(profile_id)
            self.on_expire(entry.session)
