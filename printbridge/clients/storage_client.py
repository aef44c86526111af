"""
Supabase Storage client.

Downloads source PDFs referenced by storage path instead of URL, using
the Storage REST API with the service key. Only reads are needed.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import quote

import aiohttp

from printbridge.clients.base_client import BaseHTTPClient
from printbridge.core.config import Settings
from printbridge.utils.error_handler import DownloadError

logger = logging.getLogger(__name__)


class SupabaseStorageClient(BaseHTTPClient):
    """
    Read-only client for Supabase Storage objects.
    """

    def __init__(self, session: aiohttp.ClientSession, settings: Optional[Settings] = None):
        super().__init__(session, settings)
        self.base_url = (self.settings.SUPABASE_URL or "").rstrip("/")
        self.default_bucket = self.settings.SUPABASE_BUCKET

    @property
    def is_configured(self) -> bool:
        return self.settings.storage_configured

    def resolve(self, storage_path: str) -> Tuple[str, str]:
        """
        Split a storage reference into bucket and object path.

        ``"path/to/file.pdf"`` uses SUPABASE_BUCKET; without a configured
        bucket the first segment is taken as the bucket name.

        Returns:
            Tuple[str, str]: (bucket, object path)

        Raises:
            DownloadError: The reference does not name an object
        """
        path = storage_path.strip().lstrip("/")
        if self.default_bucket:
            prefix = f"{self.default_bucket}/"
            if path.startswith(prefix):
                path = path[len(prefix):]
            bucket = self.default_bucket
        else:
            bucket, _, path = path.partition("/")

        if not bucket or not path:
            raise self._error(DownloadError, f"Invalid storage reference '{storage_path}'", status=None)
        return bucket, path

    def object_url(self, bucket: str, path: str) -> str:
        """Authenticated download URL for an object."""
        return f"{self.base_url}/storage/v1/object/{quote(bucket)}/{quote(path)}"

    async def download(self, storage_path: str) -> bytes:
        """
        Download an object.

        Args:
            storage_path: ``[bucket/]path/to/file.pdf``

        Returns:
            bytes: Object content

        Raises:
            DownloadError: Storage not configured or object not readable
        """
        if not self.is_configured:
            raise self._error(
                DownloadError,
                "Storage reference given but SUPABASE_URL / SUPABASE_SERVICE_KEY are not configured",
                status=None,
            )

        bucket, path = self.resolve(storage_path)
        key = self.settings.SUPABASE_SERVICE_KEY
        logger.info(f"Downloading storage object {bucket}/{path}")
        return await self._read_bytes(
            self.object_url(bucket, path),
            error_cls=DownloadError,
            operation="Storage download",
            headers={"Authorization": f"Bearer {key}", "apikey": key},
        )
