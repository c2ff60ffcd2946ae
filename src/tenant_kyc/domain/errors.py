"""Exception taxonomy for the verification flow."""

from enum import StrEnum


class KycError(Exception):
    """Base class for identity verification errors."""


class FlowStateError(KycError):
    """Raised when a transition is not allowed from the current step."""

    def __init__(self, action: str, step: str) -> None:
        super().__init__(f"Cannot {action} while in step {step}")
        self.action = action
        self.step = step


class UnknownDocumentTypeError(KycError):
    """Raised when a document type id is not in the catalog."""

    def __init__(self, document_type_id: str) -> None:
        super().__init__(f"Unknown document type: {document_type_id}")
        self.document_type_id = document_type_id


class CaptureRejectedError(KycError):
    """Raised when a captured image cannot be accepted."""


class ArtifactUploadError(KycError):
    """Raised when an artifact could not be written to storage."""

    def __init__(self, side: str, message: str) -> None:
        super().__init__(f"Failed to upload {side}: {message}")
        self.side = side


class OracleFailureCode(StrEnum):
    """Failure reasons reported by the verification provider."""

    DOCUMENT_BLURRY = "document_blurry"
    DOCUMENT_EXPIRED = "document_expired"
    FACE_NOT_DETECTED = "face_not_detected"
    FACE_MISMATCH = "face_mismatch"
    DOCUMENT_UNREADABLE = "document_unreadable"
    NETWORK_ERROR = "network_error"


class OracleError(KycError):
    """Raised by oracle clients when a submission is not verified."""

    def __init__(self, reason: OracleFailureCode | None, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
