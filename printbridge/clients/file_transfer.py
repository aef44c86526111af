"""
Remote file transfer.

Downloads a source document (signed URL or storage path) and re-uploads
it to an upload target supplied by the print partner. Documents are
buffered whole; print files are small enough for that.
"""

import logging
from typing import Optional

import aiohttp

from printbridge.clients.base_client import BaseHTTPClient
from printbridge.clients.storage_client import SupabaseStorageClient
from printbridge.core.config import Settings
from printbridge.utils.error_handler import DownloadError, UploadError
from printbridge.utils.retry_handler import RetryHandler, create_upload_retry_handler

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def is_remote_url(reference: str) -> bool:
    return reference.lower().startswith(("http://", "https://"))


class RemoteFileTransfer(BaseHTTPClient):
    """
    Fetches source documents and sends them to partner upload targets.

    Upload method (PUT/POST) and encoding (raw/multipart) come from
    configuration and can be overridden per call.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: Optional[Settings] = None,
        storage: Optional[SupabaseStorageClient] = None,
        retry_handler: Optional[RetryHandler] = None,
    ):
        super().__init__(session, settings)
        self.storage = storage or SupabaseStorageClient(session, self.settings)
        self.retry_handler = retry_handler or create_upload_retry_handler(
            max_attempts=self.settings.UPLOAD_MAX_ATTEMPTS,
            base_delay=self.settings.UPLOAD_RETRY_DELAY_SECONDS,
        )

    async def fetch_document(self, source_ref: str) -> bytes:
        """
        Download a source document.

        Args:
            source_ref: ``http(s)://`` URL or storage path

        Returns:
            bytes: Document content

        Raises:
            DownloadError: The source answered non-2xx or was unreachable
        """
        if not source_ref:
            raise self._error(DownloadError, "Empty source reference", status=None)

        if is_remote_url(source_ref):
            return await self._read_bytes(source_ref, error_cls=DownloadError, operation="Document download")

        return await self.storage.download(source_ref)

    async def send_document(
        self,
        upload_target: str,
        data: bytes,
        method: Optional[str] = None,
        encoding: Optional[str] = None,
    ) -> None:
        """
        Upload a document to a partner upload target.

        Args:
            upload_target: URL supplied by the partner
            data: Document bytes
            method: PUT or POST (defaults to UPLOAD_METHOD)
            encoding: raw or multipart (defaults to UPLOAD_ENCODING)

        Raises:
            UploadError: Non-2xx response, timeout or connection failure
        """
        method = (method or self.settings.UPLOAD_METHOD).upper()
        encoding = (encoding or self.settings.UPLOAD_ENCODING).lower()

        if encoding == "multipart":
            form = aiohttp.FormData()
            form.add_field(
                self.settings.UPLOAD_MULTIPART_FIELD,
                data,
                filename="document.pdf",
                content_type=PDF_CONTENT_TYPE,
            )
            request_kwargs = {"data": form}
        else:
            request_kwargs = {"data": data, "headers": {"Content-Type": PDF_CONTENT_TYPE}}

        response = await self._request(
            method,
            upload_target,
            error_cls=UploadError,
            operation=f"Upload ({method} {encoding})",
            error_kwargs={"method": method},
            **request_kwargs,
        )
        if not response.ok:
            raise self._error(
                UploadError,
                f"Upload with {method} failed with HTTP {response.status}",
                status=response.status,
                body=response.body_text,
                method=method,
            )
        logger.info(f"Uploaded {len(data)} bytes with {method} ({encoding})")

    async def upload_with_fallback(self, upload_target: str, data: bytes) -> str:
        """
        Upload with the configured method, then the alternate one once.

        Transient failures (5xx, timeout) of the configured method are
        retried once by the retry handler before falling back.

        Returns:
            str: HTTP method that succeeded

        Raises:
            UploadError: Both methods failed (the last error is raised)
        """
        primary = self.settings.UPLOAD_METHOD
        try:
            await self.retry_handler.execute(
                self.send_document, upload_target, data, primary, context={"method": primary}
            )
            return primary
        except UploadError as e:
            fallback = self.settings.effective_upload_fallback_method
            if not fallback or fallback == primary:
                raise
            logger.warning(f"Upload with {primary} failed (status={e.status}), falling back to {fallback}")

        await self.send_document(upload_target, data, fallback)
        return fallback

    async def transfer(self, source_ref: str, upload_target: str) -> str:
        """
        Fetch a document and upload it to ``upload_target``.

        Returns:
            str: HTTP method used for the upload
        """
        data = await self.fetch_document(source_ref)
        return await self.upload_with_fallback(upload_target, data)
