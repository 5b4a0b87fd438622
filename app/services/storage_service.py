"""Storage service for handling Supabase storage operations."""

from typing import Optional
from urllib.parse import unquote

import httpx

from app.core.config import settings
from app.core.exceptions import DocumentUnavailableError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for reading exam PDFs out of Supabase storage."""

    def __init__(
        self,
        url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.service_role_key = (
            service_role_key if service_role_key is not None else settings.supabase_service_role_key
        )
        self.bucket = bucket or settings.storage_bucket
        self.timeout = timeout or settings.http_timeout
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    @property
    def public_url_prefix(self) -> str:
        """Prefix of public object URLs in this bucket."""
        return f"{self.base_api_url}/object/public/{self.bucket}/"

    def resolve_storage_path(self, document_url: str) -> str:
        """Turn a public object URL into a bucket-relative key.

        Anything that does not carry the public prefix is taken to already
        be a key.

        Args:
            document_url: Public URL (or bare key) of the object

        Returns:
            The object key inside the bucket
        """
        path = document_url.strip()
        if path.startswith(self.public_url_prefix):
            path = path[len(self.public_url_prefix):]
        # Drop any query string (cache busters, download flags)
        path = path.split("?", 1)[0]
        return unquote(path).lstrip("/")

    async def download_file(self, path: str) -> bytes:
        """Download an object from the bucket.

        Args:
            path: Object key inside the bucket

        Returns:
            The object's bytes

        Raises:
            DocumentUnavailableError: If the object cannot be fetched
        """
        if not path:
            raise DocumentUnavailableError("Missing document path")

        download_url = f"{self.base_api_url}/object/{self.bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    download_url,
                    headers=self.headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(
                f"Error downloading file from Supabase: {str(e)}",
                exc_info=True,
                extra={"bucket": self.bucket, "path": path}
            )
            raise DocumentUnavailableError(f"Failed to download PDF: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from Supabase: {response.text[:500]}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code}
            )
            raise DocumentUnavailableError(
                f"Failed to download PDF: {response.status_code} - {response.text[:200]}"
            )

        return response.content

    async def download_document(self, document_url: str) -> bytes:
        """Resolve a public document URL and download it."""
        if not document_url:
            raise DocumentUnavailableError("Missing pdfUrl in request body")
        return await self.download_file(self.resolve_storage_path(document_url))
