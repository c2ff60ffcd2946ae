"""Supabase Storage backed artifact store."""

from dataclasses import dataclass

from supabase import Client

from tenant_kyc.services.artifacts import ArtifactStore


@dataclass
class SupabaseArtifactStore(ArtifactStore):
    """Writes identity captures to a Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Upload bytes, overwriting any object already at the path."""
        self.client.storage.from_(self.bucket).upload(
            path,
            data,
            {
                "content-type": content_type,
                "cache-control": "3600",
                "upsert": "true",
            },
        )
