"""Domain models for an in-memory verification session."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from tenant_kyc.domain.documents import DocumentTypeDescriptor
from tenant_kyc.domain.verification import VerificationOutcome


class VerificationStep(StrEnum):
    """Steps of the capture flow."""

    INTRO = "intro"
    DOCUMENT_CHOICE = "document_choice"
    DOCUMENT_SCAN_RECTO = "document_scan_recto"
    DOCUMENT_SCAN_VERSO = "document_scan_verso"
    SELFIE = "selfie"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class CaptureSlot(StrEnum):
    """Capture slots held by a session."""

    RECTO = "recto"
    VERSO = "verso"
    SELFIE = "selfie"


@dataclass(frozen=True)
class PreviewHandle:
    """Temporary, locally displayable copy of a capture."""

    id: str
    path: str
    content_type: str


@dataclass
class CapturedSlot:
    """Raw capture bytes with their preview, if still held."""

    data: bytes
    content_type: str
    preview: PreviewHandle | None
    captured_at: datetime


@dataclass
class CapturedDocument:
    """Document sides captured so far."""

    recto: CapturedSlot | None = None
    verso: CapturedSlot | None = None


@dataclass
class VerificationSession:
    """A single verification attempt owned by the caller."""

    profile_id: UUID
    id: UUID = field(default_factory=uuid4)
    step: VerificationStep = VerificationStep.INTRO
    document_type: DocumentTypeDescriptor | None = None
    captured_document: CapturedDocument = field(default_factory=CapturedDocument)
    captured_selfie: CapturedSlot | None = None
    last_result: VerificationOutcome | None = None
    attempt: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def get_slot(self, slot: CaptureSlot) -> CapturedSlot | None:
        """Return the capture stored in a slot."""
        if slot == CaptureSlot.RECTO:
            return self.captured_document.recto
        if slot == CaptureSlot.VERSO:
            return self.captured_document.verso
        return self.captured_selfie

    def put_slot(self, slot: CaptureSlot, value: CapturedSlot | None) -> None:
        """Replace the capture stored in a slot."""
        if slot == CaptureSlot.RECTO:
            self.captured_document.recto = value
        elif slot == CaptureSlot.VERSO:
            self.captured_document.verso = value
        else:
            self.captured_selfie = value

    @property
    def requires_verso(self) -> bool:
        return bool(self.document_type and self.document_type.requires_verso)

    def is_empty(self) -> bool:
        """Return true when nothing has been selected or captured."""
        return (
            self.document_type is None
            and all(self.get_slot(slot) is None for slot in CaptureSlot)
            and self.last_result is None
        )
