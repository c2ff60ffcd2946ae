"""State machine driving the identity capture flow."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID

from tenant_kyc.domain.documents import get_document_type
from tenant_kyc.domain.errors import FlowStateError
from tenant_kyc.domain.sessions import (
    CapturedSlot,
    CaptureSlot,
    VerificationSession,
    VerificationStep,
)
from tenant_kyc.domain.verification import (
    ExtractedIdentity,
    VerificationErrorCode,
    VerificationOutcome,
)
from tenant_kyc.services.capture import CaptureService
from tenant_kyc.services.verification import CaptureArtifacts, VerificationService

logger = logging.getLogger(__name__)

_SCAN_STEPS = {
    CaptureSlot.RECTO: VerificationStep.DOCUMENT_SCAN_RECTO,
    CaptureSlot.VERSO: VerificationStep.DOCUMENT_SCAN_VERSO,
    CaptureSlot.SELFIE: VerificationStep.SELFIE,
}

_STEP_ACTIONS: dict[VerificationStep, tuple[str, ...]] = {
    VerificationStep.INTRO: ("start", "skip", "help"),
    VerificationStep.DOCUMENT_CHOICE: ("select_document", "back", "skip", "help"),
    VerificationStep.DOCUMENT_SCAN_RECTO: ("capture", "back", "help"),
    VerificationStep.DOCUMENT_SCAN_VERSO: ("capture", "retry", "back", "help"),
    VerificationStep.SELFIE: ("capture", "retry", "back", "help"),
    VerificationStep.PROCESSING: (),
    VerificationStep.SUCCESS: ("continue",),
    VerificationStep.ERROR: ("retry", "back", "help"),
}

# Accepted from every step.
_SESSION_ACTIONS = ("reset", "cancel")


def available_actions(step: VerificationStep) -> tuple[str, ...]:
    """Return the user actions offered from a step.

    The transition functions accept exactly these actions.
    """
    return _STEP_ACTIONS[step] + _SESSION_ACTIONS


def _noop() -> None:
    return None


def _noop_success(_identity: ExtractedIdentity) -> None:
    return None


@dataclass
class FlowCallbacks:
    """Hooks the embedding caller receives from the flow."""

    on_success: Callable[[ExtractedIdentity], None] = _noop_success
    on_skip: Callable[[], None] = _noop
    on_help: Callable[[], None] = _noop


@dataclass
class VerificationFlow:
    """Transition functions over a caller-owned VerificationSession."""

    capture_service: CaptureService
    verification_service: VerificationService
    callbacks: FlowCallbacks = field(default_factory=FlowCallbacks)

    def new_session(self, profile_id: UUID) -> VerificationSession:
        """Create an empty session at the intro step."""
        return VerificationSession(profile_id=profile_id)

    def dispose(self, session: VerificationSession) -> None:
        """Tear a session down to an empty intro, revoking every preview it holds.

        Bumping the attempt makes an in-flight verification result stale.
        """
        self.capture_service.clear_all(session)
        session.document_type = None
        session.last_result = None
        session.attempt += 1
        self._move(session, VerificationStep.INTRO)

    def start(self, session: VerificationSession) -> None:
        self._require_action(session, "start")
        self._move(session, VerificationStep.DOCUMENT_CHOICE)

    def select_document(self, session: VerificationSession, document_type: str) -> None:
        """Store the chosen document type and open the recto scan."""
        self._require_action(session, "select_document")
        session.document_type = get_document_type(document_type)
        self._move(session, VerificationStep.DOCUMENT_SCAN_RECTO)

    def capture_recto(self, session: VerificationSession, data: bytes) -> CapturedSlot:
        """Store the document front; branch on whether a back is required."""
        self._require(session, "capture recto", VerificationStep.DOCUMENT_SCAN_RECTO)
        captured = self.capture_service.set_slot(session, CaptureSlot.RECTO, data)
        if session.requires_verso:
            self._move(session, VerificationStep.DOCUMENT_SCAN_VERSO)
        else:
            self._move(session, VerificationStep.SELFIE)
        return captured

    def capture_verso(self, session: VerificationSession, data: bytes) -> CapturedSlot:
        self._require(session, "capture verso", VerificationStep.DOCUMENT_SCAN_VERSO)
        captured = self.capture_service.set_slot(session, CaptureSlot.VERSO, data)
        self._move(session, VerificationStep.SELFIE)
        return captured

    async def capture_selfie(
        self, session: VerificationSession, data: bytes
    ) -> VerificationOutcome:
        """Store the selfie and run verification; capture is the commit."""
        self._require(session, "capture selfie", VerificationStep.SELFIE)
        self.capture_service.set_slot(session, CaptureSlot.SELFIE, data)
        self._move(session, VerificationStep.PROCESSING)
        attempt = session.attempt
        outcome = await self._process(session)
        if session.attempt != attempt:
            logger.info(
                "Discarding verification result for a reset session",
                extra={"session_id": str(session.id)},
            )
            return outcome
        session.last_result = outcome
        self.capture_service.release_previews(session)
        self._move(
            session,
            VerificationStep.SUCCESS if outcome.success else VerificationStep.ERROR,
        )
        return outcome

    def back(self, session: VerificationSession) -> None:
        """Step back; the exact inverse of the forward transition."""
        self._require_action(session, "back")
        step = session.step
        if step == VerificationStep.DOCUMENT_CHOICE:
            self._move(session, VerificationStep.INTRO)
        elif step == VerificationStep.DOCUMENT_SCAN_RECTO:
            session.document_type = None
            self._move(session, VerificationStep.DOCUMENT_CHOICE)
        elif step == VerificationStep.DOCUMENT_SCAN_VERSO:
            self._move(session, VerificationStep.DOCUMENT_SCAN_RECTO)
        elif step == VerificationStep.SELFIE:
            if session.requires_verso:
                self._move(session, VerificationStep.DOCUMENT_SCAN_VERSO)
            else:
                self._move(session, VerificationStep.DOCUMENT_SCAN_RECTO)
        else:
            self.reset(session)

    def retry(self, session: VerificationSession, slot: CaptureSlot) -> None:
        """Clear one capture slot and reopen its scan step.

        Slots captured after it are kept. A slot can only be retried once
        every slot before it is captured, so the selfie step is never
        reached with part of the document missing.
        """
        self._require_action(session, "retry")
        if not self._slot_reachable(session, slot):
            raise FlowStateError(f"retry {slot}", session.step)
        self.capture_service.clear_slot(session, slot)
        session.last_result = None
        self._move(session, _SCAN_STEPS[slot])

    def reset(self, session: VerificationSession) -> None:
        """Return to intro with an empty session; safe to call repeatedly."""
        if session.step == VerificationStep.INTRO and session.is_empty():
            return
        self.dispose(session)

    def continue_flow(self, session: VerificationSession) -> ExtractedIdentity:
        """Leave the success step and hand the identity to the caller."""
        self._require_action(session, "continue")
        outcome = session.last_result
        identity = (
            outcome.extracted_identity
            if outcome and outcome.extracted_identity
            else ExtractedIdentity()
        )
        self.dispose(session)
        self.callbacks.on_success(identity)
        return identity

    def skip(self, session: VerificationSession) -> None:
        """Abandon verification for now and notify the caller."""
        self._require_action(session, "skip")
        self.reset(session)
        self.callbacks.on_skip()

    def help(self, session: VerificationSession) -> None:
        """Notify the caller that help was requested; the step is unchanged."""
        self._require_action(session, "help")
        logger.info(
            "Help requested",
            extra={"session_id": str(session.id), "step": str(session.step)},
        )
        self.callbacks.on_help()

    async def _process(self, session: VerificationSession) -> VerificationOutcome:
        document_type = session.document_type
        recto = session.captured_document.recto
        verso = session.captured_document.verso
        if document_type is None or recto is None:
            return VerificationOutcome.failed(
                VerificationErrorCode.MISSING_DOCUMENT,
                "No identity document was captured",
            )
        if document_type.requires_verso and verso is None:
            return VerificationOutcome.failed(
                VerificationErrorCode.MISSING_DOCUMENT,
                "The back of the identity document was not captured",
            )
        selfie = session.captured_selfie
        artifacts = CaptureArtifacts(
            recto=recto.data,
            recto_content_type=recto.content_type,
            verso=verso.data if verso and document_type.requires_verso else None,
            verso_content_type=verso.content_type if verso else "image/jpeg",
            selfie=selfie.data if selfie else None,
            selfie_content_type=selfie.content_type if selfie else "image/jpeg",
        )
        try:
            return await self.verification_service.verify(
                session.profile_id, document_type, artifacts
            )
        except Exception as exc:
            logger.exception(
                "Verification processing failed",
                extra={"session_id": str(session.id)},
            )
            return VerificationOutcome.failed(
                VerificationErrorCode.VERIFICATION_FAILED,
                str(exc) or type(exc).__name__,
            )

    def _slot_reachable(
        self, session: VerificationSession, slot: CaptureSlot
    ) -> bool:
        """True when every slot captured before ``slot`` is present."""
        if session.document_type is None:
            return False
        has_recto = session.captured_document.recto is not None
        has_verso = session.captured_document.verso is not None
        if slot == CaptureSlot.RECTO:
            return True
        if slot == CaptureSlot.VERSO:
            return session.requires_verso and has_recto
        return has_recto and (has_verso or not session.requires_verso)

    def _require_action(self, session: VerificationSession, action: str) -> None:
        if action not in available_actions(session.step):
            raise FlowStateError(action, session.step)

    def _require(
        self, session: VerificationSession, action: str, step: VerificationStep
    ) -> None:
        if session.step != step:
            raise FlowStateError(action, session.step)

    def _move(self, session: VerificationSession, step: VerificationStep) -> None:
        logger.info(
            "Verification step changed",
            extra={
                "session_id": str(session.id),
                "from_step": str(session.step),
                "to_step": str(step),
            },
        )
        session.step = step
