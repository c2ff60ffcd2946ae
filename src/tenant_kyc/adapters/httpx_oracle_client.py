"""HTTP client for the identity verification provider."""

from dataclasses import dataclass

import httpx

from tenant_kyc.domain.errors import OracleError, OracleFailureCode
from tenant_kyc.domain.sessions import CaptureSlot
from tenant_kyc.domain.verification import ArtifactHandle, OracleResult
from tenant_kyc.services.verification import VerificationOracle


@dataclass
class HttpxVerificationOracle(VerificationOracle):
    """HTTPX-backed verification oracle."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout: float = 30
    ) -> "HttpxVerificationOracle":
        """Create an oracle client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def verify(
        self, document_type: str, artifacts: dict[CaptureSlot, ArtifactHandle]
    ) -> OracleResult:
        """Submit artifact handles and return the provider verdict."""
        payload = {
            "document_type": document_type,
            "artifacts": {
                slot.value: {"path": handle.path, "content_type": handle.content_type}
                for slot, handle in artifacts.items()
            },
        }
        try:
            response = await self.http_client.post(
                f"{self.base_url}/verifications",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise OracleError(
                OracleFailureCode.NETWORK_ERROR,
                f"Verification provider unavailable: {exc}",
            ) from exc

        data = response.json()
        if data.get("status") != "approved":
            raise OracleError(
                _parse_reason(data.get("reason")),
                str(data.get("message") or "Identity could not be verified"),
            )
        return OracleResult.model_validate(
            {
                "confidence": data.get("confidence", 0.0),
                "extracted_identity": data.get("identity") or {},
            }
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_reason(raw: object) -> OracleFailureCode | None:
    try:
        return OracleFailureCode(str(raw))
    except ValueError:
        return None
