"""Pydantic request and response models for the HTTP API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from tenant_kyc.domain.documents import DocumentTypeDescriptor
from tenant_kyc.domain.records import (
    KycStatus,
    LeaseDocumentRecord,
    LeaseDocumentStatus,
)
from tenant_kyc.domain.sessions import CaptureSlot, VerificationSession
from tenant_kyc.domain.verification import (
    ExtractedIdentity,
    VerificationOutcome,
    explain_outcome,
)
from tenant_kyc.services.flow import available_actions
from tenant_kyc.services.identity import IdentityStatus


class SelectDocumentRequest(BaseModel):
    """Body of the document selection call."""

    document_type: str


class DocumentTypeView(BaseModel):
    id: str
    label: str
    requires_verso: bool

    @classmethod
    def from_descriptor(cls, descriptor: DocumentTypeDescriptor) -> "DocumentTypeView":
        return cls(
            id=descriptor.id,
            label=descriptor.label,
            requires_verso=descriptor.requires_verso,
        )


class ExplanationView(BaseModel):
    title: str
    message: str
    tip: str


class OutcomeView(BaseModel):
    """Verification outcome with its user-facing explanation."""

    success: bool
    confidence: float
    extracted_identity: ExtractedIdentity | None = None
    error_code: str | None = None
    error_message: str | None = None
    reason: str | None = None
    explanation: ExplanationView | None = None

    @classmethod
    def from_outcome(
        cls, outcome: VerificationOutcome, debug: bool = False
    ) -> "OutcomeView":
        """Build the view; without debug the raw error text is replaced."""
        explanation = explain_outcome(outcome)
        error_message = outcome.error_message
        if not debug and explanation is not None:
            error_message = explanation.message
        return cls(
            success=outcome.success,
            confidence=outcome.confidence,
            extracted_identity=outcome.extracted_identity,
            error_code=outcome.error_code,
            error_message=error_message,
            reason=outcome.reason,
            explanation=(
                ExplanationView(
                    title=explanation.title,
                    message=explanation.message,
                    tip=explanation.tip,
                )
                if explanation
                else None
            ),
        )


class SessionView(BaseModel):
    """Current state of a verification session."""

    session_id: UUID
    step: str
    document_type: DocumentTypeView | None = None
    captured: dict[str, bool]
    result: OutcomeView | None = None
    available_actions: list[str]

    @classmethod
    def from_session(
        cls, session: VerificationSession, debug: bool = False
    ) -> "SessionView":
        return cls(
            session_id=session.id,
            step=session.step,
            document_type=(
                DocumentTypeView.from_descriptor(session.document_type)
                if session.document_type
                else None
            ),
            captured={
                slot.value: session.get_slot(slot) is not None for slot in CaptureSlot
            },
            result=(
                OutcomeView.from_outcome(session.last_result, debug)
                if session.last_result
                else None
            ),
            available_actions=list(available_actions(session.step)),
        )


class LeaseDocumentsView(BaseModel):
    lease_id: UUID
    documents: list[LeaseDocumentRecord]


class IdentityStatusView(BaseModel):
    """Tenant verification status across profile and leases."""

    profile_id: UUID
    kyc_status: KycStatus
    verification_status: LeaseDocumentStatus
    verified_at: datetime | None = None
    document_expiry_date: date | None = None
    leases: list[LeaseDocumentsView]

    @classmethod
    def from_status(cls, status: IdentityStatus) -> "IdentityStatusView":
        return cls(
            profile_id=status.profile_id,
            kyc_status=status.kyc_status,
            verification_status=status.verification_status,
            verified_at=status.verified_at,
            document_expiry_date=status.document_expiry_date,
            leases=[
                LeaseDocumentsView(lease_id=lease.lease_id, documents=lease.documents)
                for lease in status.leases
            ],
        )
