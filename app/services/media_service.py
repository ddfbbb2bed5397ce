"""
ApplyForm API - Media Service
Avatar validation, upload and removal against Supabase Storage
"""

import re
import time
import logging
from uuid import uuid4
from typing import Optional

import anyio
from fastapi import UploadFile
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import ValidationError, UpstreamError
from app.core.supabase import SupabaseClient, get_supabase

logger = logging.getLogger(__name__)

# Extension used for the object key when the filename carries none
EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class AvatarUpload(BaseModel):
    """Avatar bytes as received from a multipart form."""
    content: bytes
    content_type: str
    filename: Optional[str] = None


class MediaTracker:
    """
    Owns the avatar locators stored on member rows.

    Uploads are validated locally before any network call. Removal is
    best-effort: it is queued after a commit and never raises.
    """

    def __init__(
        self,
        object_store: SupabaseClient,
        max_size: Optional[int] = None,
        allowed_types: Optional[list] = None,
        timeout: Optional[float] = None
    ):
        self.object_store = object_store
        self.max_size = max_size or settings.MAX_AVATAR_SIZE
        self.allowed_types = allowed_types or settings.ALLOWED_AVATAR_TYPES
        self.timeout = timeout or settings.MEDIA_UPLOAD_TIMEOUT

    def validate(self, avatar: AvatarUpload) -> str:
        """Check size and type; returns the file extension to use."""
        if not avatar.content:
            raise ValidationError("The avatar file is empty.", field="avatar")
        if len(avatar.content) > self.max_size:
            limit_mb = self.max_size / (1024 * 1024)
            raise ValidationError(f"Avatar file size must be under {limit_mb:g}MB.", field="avatar")
        if avatar.content_type not in self.allowed_types:
            raise ValidationError(
                f"Avatar type '{avatar.content_type}' is not allowed. "
                f"Allowed: {', '.join(self.allowed_types)}",
                field="avatar"
            )

        ext = None
        if avatar.filename and "." in avatar.filename:
            ext = avatar.filename.rsplit(".", 1)[1].lower()
            if not ext.isalnum():
                ext = None
        return ext or EXTENSIONS.get(avatar.content_type, "bin")

    @staticmethod
    def build_object_key(team_code: str, owner_key: str, ext: str) -> str:
        safe_owner = _UNSAFE_KEY_CHARS.sub("_", owner_key) or "member"
        epoch_ms = int(time.time() * 1000)
        return f"avatars/{team_code}/{safe_owner}_{epoch_ms}_{str(uuid4())[:8]}.{ext}"

    async def upload(self, avatar: AvatarUpload, owner_key: str, team_code: str) -> str:
        """
        Store the avatar and return its public locator.

        Raises:
            ValidationError: empty, too large or disallowed type
            UpstreamError: storage failure or timeout
        """
        ext = self.validate(avatar)
        path = self.build_object_key(team_code, owner_key, ext)

        try:
            with anyio.fail_after(self.timeout):
                locator = await anyio.to_thread.run_sync(
                    lambda: self.object_store.put(path, avatar.content, avatar.content_type),
                    abandon_on_cancel=True
                )
        except TimeoutError:
            logger.error(f"Avatar upload timed out after {self.timeout}s ({path})")
            raise UpstreamError("Avatar upload timed out.", service="storage")
        except Exception as e:
            logger.error(f"Avatar upload failed ({path}): {e}")
            raise UpstreamError("Failed to upload avatar.", service="storage")

        logger.info(f"Avatar stored at {path}")
        return locator

    async def remove(self, locator: Optional[str]):
        """Delete a previously issued locator. Never raises."""
        if not locator:
            return
        path = self.object_store.path_from_locator(locator)
        if not path:
            logger.warning(f"Skipping removal of foreign media locator {locator!r}")
            return
        try:
            await anyio.to_thread.run_sync(lambda: self.object_store.delete(path))
            logger.info(f"Avatar removed: {path}")
        except Exception as e:
            logger.error(f"Avatar removal failed for {path}: {e}")


async def read_avatar(upload: Optional[UploadFile]) -> Optional[AvatarUpload]:
    """
    Read a multipart avatar field.

    A part without a filename is a form submitted with no file chosen. At
    most MAX_AVATAR_SIZE + 1 bytes are read, enough for the size check.
    """
    if upload is None or not upload.filename:
        return None
    content = await upload.read(settings.MAX_AVATAR_SIZE + 1)
    return AvatarUpload(
        content=content,
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename
    )


def get_media_tracker() -> MediaTracker:
    """FastAPI dependency for the media tracker."""
    return MediaTracker(get_supabase())
