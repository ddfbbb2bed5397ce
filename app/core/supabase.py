from typing import Optional
from supabase import create_client, Client
from functools import lru_cache
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Supabase Storage access for avatar objects (service role)."""

    def __init__(self, bucket: Optional[str] = None):
        self._service_client: Optional[Client] = None
        self.bucket = bucket or settings.STORAGE_BUCKET

    @property
    def service(self) -> Client:
        if self._service_client is None:
            self._service_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return self._service_client

    @property
    def public_url_base(self) -> str:
        return f"{settings.SUPABASE_URL.rstrip('/')}/storage/v1/object/public/{self.bucket}"

    def path_from_locator(self, locator: str) -> Optional[str]:
        """Object path for a public URL we issued, or None if it is foreign."""
        prefix = self.public_url_base + "/"
        if not locator.startswith(prefix):
            return None
        return locator[len(prefix):].split("?", 1)[0]

    def put(self, path: str, content: bytes, content_type: str) -> str:
        """Store bytes under path and return the public locator."""
        try:
            self.service.storage.from_(self.bucket).upload(path, content, {"content-type": content_type})
            return self.service.storage.from_(self.bucket).get_public_url(path)
        except Exception as e:
            logger.error(f"Storage upload error for {path}: {e}")
            raise

    def delete(self, path: str) -> bool:
        try:
            self.service.storage.from_(self.bucket).remove([path])
            return True
        except Exception as e:
            logger.error(f"Storage delete error for {path}: {e}")
            raise


@lru_cache()
def get_supabase() -> SupabaseClient:
    return SupabaseClient()
