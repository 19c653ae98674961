"""Supabase Storage adapter for card media."""

from dataclasses import dataclass

from supabase import Client

from unboxme.services.media import MediaStorage


@dataclass
class SupabaseMediaStorage(MediaStorage):
    """Stores card media in a public Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes and return the object's public URL."""
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=content,
            file_options={"content-type": content_type},
        )
        return bucket.get_public_url(path)
