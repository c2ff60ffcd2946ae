"""Tests for artifact uploads."""

from datetime import UTC, datetime
from uuid import UUID

import pytest

from tenant_kyc.domain.errors import ArtifactUploadError
from tenant_kyc.services.artifacts import ArtifactService, build_artifact_path
from tests.conftest import FakeArtifactStore

_TENANT = UUID("6f1c2b9e-3c44-4a8e-9a51-0d3f0a6b7c21")


def test_build_artifact_path() -> None:
    assert (
        build_artifact_path(_TENANT, "id_card", "recto", 1767225600000)
        == f"identity/{_TENANT}/id_card_recto_1767225600000.jpg"
    )
    assert build_artifact_path(
        _TENANT, "passport", "selfie", 1, "image/webp"
    ).endswith("passport_selfie_1.webp")


def test_upload_returns_handle() -> None:
    store = FakeArtifactStore()
    created_at = datetime(2026, 1, 1, tzinfo=UTC)
    service = ArtifactService(store, clock=lambda: created_at)

    handle = service.upload(_TENANT, "passport", "recto", b"data", "image/png")

    assert handle.path == f"identity/{_TENANT}/passport_recto_1767225600000.png"
    assert handle.content_type == "image/png"
    assert handle.created_at == created_at
    assert store.objects[handle.path] == b"data"


def test_upload_wraps_storage_errors() -> None:
    store = FakeArtifactStore(failing_sides={"verso"})
    service = ArtifactService(store)

    with pytest.raises(ArtifactUploadError) as exc_info:
        service.upload(_TENANT, "id_card", "verso", b"data")

    assert exc_info.value.side == "verso"
    assert "storage unavailable" in str(exc_info.value)
