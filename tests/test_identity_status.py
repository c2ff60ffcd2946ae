"""Tests for the identity status service."""

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

from tenant_kyc.domain.records import (
    KycStatus,
    LeaseDocumentRecord,
    LeaseDocumentStatus,
    LeaseDocumentType,
    TenantIdentityRecord,
)
from tests.conftest import JPEG_BYTES, Harness


def test_unknown_profile_is_unverified(harness: Harness) -> None:
    status = harness.identity_status_service.get_status(uuid4())

    assert status.kyc_status == KycStatus.UNVERIFIED
    assert status.verified_at is None
    assert status.verification_status == LeaseDocumentStatus.PENDING
    assert status.leases == []


def test_verified_at_wins_over_status(harness: Harness) -> None:
    profile_id = uuid4()
    harness.identity_repository.records[profile_id] = TenantIdentityRecord(
        profile_id=profile_id,
        kyc_status=KycStatus.PROCESSING,
        verified_at=datetime(2026, 2, 1, tzinfo=UTC),
    )

    status = harness.identity_status_service.get_status(profile_id)

    assert status.kyc_status == KycStatus.PROCESSING
    assert status.verification_status == LeaseDocumentStatus.VERIFIED


def test_lease_document_status_used_without_profile_verification(
    harness: Harness,
) -> None:
    profile_id = uuid4()
    lease_id = uuid4()
    harness.lease_repository.leases[profile_id] = [lease_id]
    harness.identity_repository.records[profile_id] = TenantIdentityRecord(
        profile_id=profile_id, kyc_status=KycStatus.UNVERIFIED
    )
    harness.document_repository.documents.append(
        LeaseDocumentRecord(
            type=LeaseDocumentType.IDENTITY_FRONT,
            title="ID",
            lease_id=lease_id,
            tenant_id=profile_id,
            storage_path="identity/t/id_card_recto_1.jpg",
            verification_status=LeaseDocumentStatus.REJECTED,
        )
    )

    status = harness.identity_status_service.get_status(profile_id)

    assert status.kyc_status == KycStatus.UNVERIFIED
    assert status.verification_status == LeaseDocumentStatus.REJECTED
    assert len(status.leases[0].documents) == 1


def test_status_after_flow_lists_lease_documents(harness: Harness) -> None:
    flow = harness.flow
    profile_id = uuid4()
    lease_id = uuid4()
    harness.lease_repository.leases[profile_id] = [lease_id]
    session = flow.new_session(profile_id)
    flow.start(session)
    flow.select_document(session, "id_card")
    flow.capture_recto(session, JPEG_BYTES)
    flow.capture_verso(session, JPEG_BYTES)
    asyncio.run(flow.capture_selfie(session, JPEG_BYTES))

    status = harness.identity_status_service.get_status(profile_id)

    assert status.kyc_status == KycStatus.VERIFIED
    assert status.document_expiry_date is not None
    assert status.verification_status == LeaseDocumentStatus.VERIFIED
    assert {document.type for document in status.leases[0].documents} == {
        LeaseDocumentType.IDENTITY_FRONT,
        LeaseDocumentType.IDENTITY_BACK,
    }


def test_expired_lease_document_is_reported(harness: Harness) -> None:
    profile_id = uuid4()
    lease_id = uuid4()
    harness.lease_repository.leases[profile_id] = [lease_id]
    harness.document_repository.documents.append(
        LeaseDocumentRecord.from_row(
            {
                "type": "identity_front",
                "title": "ID",
                "lease_id": str(lease_id),
                "tenant_id": str(profile_id),
                "storage_path": "identity/t/id_card_recto_1.jpg",
                "expiry_date": "2025-01-31",
                "verification_status": "expired",
            }
        )
    )

    status = harness.identity_status_service.get_status(profile_id)

    assert status.kyc_status == KycStatus.UNVERIFIED
    assert status.verification_status == LeaseDocumentStatus.EXPIRED


def test_profile_without_documents_is_pending(harness: Harness) -> None:
    profile_id = uuid4()
    harness.identity_repository.records[profile_id] = TenantIdentityRecord(
        profile_id=profile_id, kyc_status=KycStatus.REJECTED
    )

    status = harness.identity_status_service.get_status(profile_id)

    assert status.kyc_status == KycStatus.REJECTED
    assert status.verification_status == LeaseDocumentStatus.PENDING
