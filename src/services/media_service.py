"""Media upload service backed by Supabase Storage."""

import logging
import mimetypes
import re
import secrets
import time
from pathlib import PurePosixPath
from typing import Any

from supabase import Client

from src.api.middleware.error_handler import UpstreamError, ValidationError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client, public_object_url

logger = logging.getLogger(__name__)

_FOLDER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(?:/[A-Za-z0-9_-]+)*$")


class MediaService:
    """Service for storing images in a public storage bucket."""

    def __init__(self, supabase_client: Client | None = None) -> None:
        """Initialize media service.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self._supabase_client = supabase_client
        self.settings = get_settings()
        self.bucket = self.settings.storage_bucket

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    def build_object_path(self, filename: str | None, content_type: str, folder: str | None = None) -> str:
        """Generate a unique object path: <folder>/<epoch-ms>_<random>.<ext>.

        Raises:
            ValidationError: If the folder name is not a plain relative path.
        """
        folder = (folder or self.settings.default_media_folder).strip("/")
        if not _FOLDER_PATTERN.match(folder):
            raise ValidationError("Invalid folder name")

        ext = PurePosixPath(filename or "").suffix.lstrip(".").lower()
        if not ext:
            guessed = mimetypes.guess_extension(content_type) or ".bin"
            ext = guessed.lstrip(".")

        return f"{folder}/{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"

    async def upload(
        self,
        content: bytes,
        filename: str | None,
        content_type: str | None,
        folder: str | None = None,
    ) -> dict[str, Any]:
        """Upload one image and return its public URL.

        Args:
            content: File bytes.
            filename: Original client filename, used for the extension.
            content_type: MIME type reported by the client.
            folder: Target folder inside the bucket.

        Returns:
            dict: url, path and size.

        Raises:
            ValidationError: If the file is empty or not an image.
            UpstreamError: If the storage upload fails.
        """
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError("Only image files are allowed")
        if not content:
            raise ValidationError("Uploaded file is empty")

        path = self.build_object_path(filename, content_type, folder)

        try:
            self.supabase.storage.from_(self.bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error("Failed to upload %s to bucket %s: %s", path, self.bucket, str(e))
            raise UpstreamError("Failed to upload file", service="storage") from e

        url = public_object_url(self.bucket, path)
        logger.info("Uploaded %s (%d bytes)", path, len(content))
        return {"url": url, "path": path, "size": len(content)}

    async def upload_many(
        self,
        files: list[tuple[bytes, str | None, str | None]],
        folder: str | None = None,
    ) -> list[dict[str, Any]]:
        """Upload several images, stopping at the first failure.

        Args:
            files: (content, filename, content_type) per file.
            folder: Target folder inside the bucket.

        Returns:
            list[dict]: One upload result per file, in order.
        """
        if not files:
            raise ValidationError("No files uploaded")
        return [
            await self.upload(content, filename, content_type, folder)
            for content, filename, content_type in files
        ]

    def object_path_from_url(self, url: str) -> str:
        """Recover the object path from a public URL of this bucket.

        Raises:
            ValidationError: If the URL does not point into this bucket.
        """
        prefix = public_object_url(self.bucket, "")
        path = url[len(prefix):] if url.startswith(prefix) else ""
        if not path or ".." in path.split("/"):
            raise ValidationError("URL does not belong to the media bucket")
        return path

    async def delete(self, url: str) -> str:
        """Delete the object behind a public URL.

        Returns:
            str: The deleted object path.

        Raises:
            ValidationError: If the URL is outside the bucket.
            UpstreamError: If the storage call fails.
        """
        path = self.object_path_from_url(url)

        try:
            self.supabase.storage.from_(self.bucket).remove([path])
        except Exception as e:
            logger.error("Failed to delete %s from bucket %s: %s", path, self.bucket, str(e))
            raise UpstreamError("Failed to delete file", service="storage") from e

        logger.info("Deleted %s", path)
        return path
