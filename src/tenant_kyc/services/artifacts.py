"""Artifact uploads for identity captures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from tenant_kyc.domain.errors import ArtifactUploadError
from tenant_kyc.domain.verification import ArtifactHandle

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ArtifactStore(Protocol):
    """Binary storage for captures."""

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Write bytes under a path, overwriting an existing object."""


def build_artifact_path(
    tenant_id: UUID,
    document_type: str,
    side: str,
    timestamp_ms: int,
    content_type: str = "image/jpeg",
) -> str:
    """Build the storage path for a capture."""
    extension = _EXTENSIONS.get(content_type, "jpg")
    return f"identity/{tenant_id}/{document_type}_{side}_{timestamp_ms}.{extension}"


@dataclass
class ArtifactService:
    """Uploads captures under the identity path convention."""

    store: ArtifactStore
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(tz=UTC))

    def upload(  # noqa: PLR0913
        self,
        tenant_id: UUID,
        document_type: str,
        side: str,
        data: bytes,
        content_type: str = "image/jpeg",
    ) -> ArtifactHandle:
        """Upload a capture and return its handle."""
        created_at = self.clock()
        path = build_artifact_path(
            tenant_id,
            document_type,
            side,
            int(created_at.timestamp() * 1000),
            content_type,
        )
        try:
            self.store.upload(path, data, content_type)
        except Exception as exc:
            raise ArtifactUploadError(side, str(exc) or type(exc).__name__) from exc
        return ArtifactHandle(path=path, content_type=content_type, created_at=created_at)
