"""Preview store writing captures to temporary files."""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from tenant_kyc.domain.sessions import PreviewHandle
from tenant_kyc.services.capture import PreviewStore

logger = logging.getLogger(__name__)

_SUFFIXES = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


@dataclass
class TempFilePreviewStore(PreviewStore):
    """Keeps each preview in its own temporary file until released."""

    directory: str | None = None
    live: set[str] = field(default_factory=set)

    def create(self, data: bytes, content_type: str) -> PreviewHandle:
        """Write a preview file and return its handle."""
        if self.directory:
            os.makedirs(self.directory, exist_ok=True)
        fd, path = tempfile.mkstemp(
            prefix="kyc_preview_",
            suffix=_SUFFIXES.get(content_type, ".bin"),
            dir=self.directory,
        )
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        preview = PreviewHandle(id=uuid4().hex, path=path, content_type=content_type)
        self.live.add(preview.path)
        return preview

    def release(self, handle: PreviewHandle) -> None:
        """Delete the preview file; releasing twice is harmless."""
        self.live.discard(handle.path)
        Path(handle.path).unlink(missing_ok=True)
        logger.debug("Released preview", extra={"preview_id": handle.id})
