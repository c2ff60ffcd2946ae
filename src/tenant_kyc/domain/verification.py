"""Verification outcomes, artifact handles and user-facing error texts."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from tenant_kyc.domain.errors import OracleFailureCode


@dataclass(frozen=True)
class ArtifactHandle:
    """Durable reference to an uploaded capture."""

    path: str
    content_type: str
    created_at: datetime


class ExtractedIdentity(BaseModel):
    """Identity fields read from the document by the oracle."""

    name: str | None = None
    first_name: str | None = None
    birth_date: date | None = None
    birth_place: str | None = None
    sex: str | None = None
    nationality: str | None = None
    document_number: str | None = None
    expiry_date: date | None = None


class OracleResult(BaseModel):
    """Successful response from the verification oracle."""

    confidence: float = Field(ge=0.0, le=1.0)
    extracted_identity: ExtractedIdentity


class VerificationErrorCode(StrEnum):
    """Error codes carried by a failed verification outcome."""

    MISSING_DOCUMENT = "missing_document"
    UPLOAD_ERROR = "upload_error"
    VERIFICATION_FAILED = "verification_failed"


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of one verification attempt."""

    success: bool
    confidence: float = 0.0
    extracted_identity: ExtractedIdentity | None = None
    error_code: VerificationErrorCode | None = None
    error_message: str | None = None
    reason: OracleFailureCode | None = None

    @classmethod
    def failed(
        cls,
        error_code: VerificationErrorCode,
        error_message: str,
        reason: OracleFailureCode | None = None,
    ) -> "VerificationOutcome":
        """Build a failed outcome."""
        return cls(
            success=False,
            error_code=error_code,
            error_message=error_message,
            reason=reason,
        )


@dataclass(frozen=True)
class ErrorExplanation:
    """User-facing explanation and remediation tip for a failure."""

    title: str
    message: str
    tip: str


ERROR_EXPLANATIONS: dict[str, ErrorExplanation] = {
    VerificationErrorCode.MISSING_DOCUMENT: ErrorExplanation(
        title="Document missing",
        message="We did not receive a photo of your identity document.",
        tip="Go back and photograph the front of your document.",
    ),
    VerificationErrorCode.UPLOAD_ERROR: ErrorExplanation(
        title="Upload failed",
        message="Your photos could not be sent.",
        tip="Check your connection and try again.",
    ),
    VerificationErrorCode.VERIFICATION_FAILED: ErrorExplanation(
        title="Verification failed",
        message="We could not verify your identity.",
        tip="Retake the photos in good lighting and try again.",
    ),
    OracleFailureCode.DOCUMENT_BLURRY: ErrorExplanation(
        title="Blurry document",
        message="The photo of your document is not sharp enough.",
        tip="Hold the phone steady and make sure the text is in focus.",
    ),
    OracleFailureCode.DOCUMENT_EXPIRED: ErrorExplanation(
        title="Expired document",
        message="The document you photographed has expired.",
        tip="Use a document that is still valid.",
    ),
    OracleFailureCode.FACE_NOT_DETECTED: ErrorExplanation(
        title="Face not detected",
        message="We could not find your face in the selfie.",
        tip="Face the camera in a well lit place without a hat or glasses.",
    ),
    OracleFailureCode.FACE_MISMATCH: ErrorExplanation(
        title="Face does not match",
        message="Your selfie does not match the photo on the document.",
        tip="Make sure you are photographing your own document.",
    ),
    OracleFailureCode.DOCUMENT_UNREADABLE: ErrorExplanation(
        title="Document unreadable",
        message="The information on the document could not be read.",
        tip="Lay the document flat, avoid reflections and fill the frame.",
    ),
    OracleFailureCode.NETWORK_ERROR: ErrorExplanation(
        title="Network error",
        message="The verification service could not be reached.",
        tip="Check your connection and try again in a moment.",
    ),
}


def explain_outcome(outcome: VerificationOutcome) -> ErrorExplanation | None:
    """Return the most specific explanation for a failed outcome."""
    if outcome.success:
        return None
    if outcome.reason is not None and outcome.reason in ERROR_EXPLANATIONS:
        return ERROR_EXPLANATIONS[outcome.reason]
    if outcome.error_code is not None:
        return ERROR_EXPLANATIONS.get(outcome.error_code)
    return ERROR_EXPLANATIONS[VerificationErrorCode.VERIFICATION_FAILED]
