"""ASGI entrypoint for the tenant identity verification API."""

from tenant_kyc.api.app import create_app
from tenant_kyc.containers import build_container

app = create_app(build_container())
