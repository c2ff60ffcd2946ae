"""Slot-level capture storage with preview lifecycle management."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from tenant_kyc.domain.errors import CaptureRejectedError
from tenant_kyc.domain.sessions import (
    CapturedSlot,
    CaptureSlot,
    PreviewHandle,
    VerificationSession,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CAPTURE_BYTES = 10 * 1024 * 1024


class PreviewStore(Protocol):
    """Creates and revokes temporary preview copies of captures."""

    def create(self, data: bytes, content_type: str) -> PreviewHandle:
        """Store a preview and return its handle."""

    def release(self, handle: PreviewHandle) -> None:
        """Revoke a preview handle."""


@dataclass
class CaptureService:
    """Mutates capture slots of a session, one slot at a time."""

    preview_store: PreviewStore
    max_bytes: int = DEFAULT_MAX_CAPTURE_BYTES

    def set_slot(
        self, session: VerificationSession, slot: CaptureSlot, data: bytes
    ) -> CapturedSlot:
        """Validate and store a capture, replacing only the given slot."""
        content_type = self.validate(data)
        preview = self.preview_store.create(data, content_type)
        self._release(session.get_slot(slot))
        captured = CapturedSlot(
            data=data,
            content_type=content_type,
            preview=preview,
            captured_at=datetime.now(tz=UTC),
        )
        session.put_slot(slot, captured)
        return captured

    def clear_slot(self, session: VerificationSession, slot: CaptureSlot) -> None:
        """Drop a capture and revoke its preview."""
        self._release(session.get_slot(slot))
        session.put_slot(slot, None)

    def clear_all(self, session: VerificationSession) -> None:
        for slot in CaptureSlot:
            self.clear_slot(session, slot)

    def release_previews(self, session: VerificationSession) -> None:
        """Revoke every preview while keeping the captured bytes."""
        for slot in CaptureSlot:
            captured = session.get_slot(slot)
            if captured is not None:
                self._release(captured)
                captured.preview = None

    def validate(self, data: bytes) -> str:
        """Return the sniffed content type of an acceptable capture."""
        if not data:
            raise CaptureRejectedError("Capture is empty")
        if len(data) > self.max_bytes:
            raise CaptureRejectedError(
                f"Capture exceeds {self.max_bytes} bytes ({len(data)} received)"
            )
        content_type = detect_image_type(data)
        if content_type is None:
            raise CaptureRejectedError("Capture must be a JPEG, PNG or WEBP image")
        return content_type

    def _release(self, captured: CapturedSlot | None) -> None:
        if captured is None or captured.preview is None:
            return
        try:
            self.preview_store.release(captured.preview)
        except Exception:
            logger.exception(
                "Failed to release preview", extra={"preview_id": captured.preview.id}
            )


def detect_image_type(data: bytes) -> str | None:
    """Infer an image MIME type from file signatures."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None
