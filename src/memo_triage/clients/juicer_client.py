"""Juicer client: uploads files to the document parsing service."""

import asyncio
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel

from memo_triage.config import Settings, get_settings
from memo_triage.models.document import UploadedFile
from memo_triage.utils.errors import ParsingError
from memo_triage.utils.logging import get_logger

logger = get_logger("juicer_client")


class UploadResult(BaseModel):
    """Outcome of uploading one file. Exactly one of data/error is meaningful."""

    filename: str
    data: Any = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


class JuicerClient:
    """
    HTTP client for the Juicer parsing service.

    The service accepts a multipart ``file`` field on ``/upload-file`` and
    answers with the parsed document as JSON.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Juicer client.

        Args:
            settings: Application settings (defaults to the global settings)
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.juicer.url.rstrip("/")
        self.timeout = self.settings.juicer.timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def upload_file(
        self,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> Any:
        """
        Upload a file and return the parsed content.

        Args:
            filename: Name sent with the multipart part
            data: Raw file bytes
            content_type: Media type of the file

        Returns:
            Parsed document (JSON-decoded response body)

        Raises:
            ParsingError: If the upload fails, times out or returns invalid JSON
        """
        url = f"{self.base_url}/upload-file"
        size_mb = len(data) / (1024 * 1024)
        logger.info(f"Uploading file to Juicer: {filename} ({size_mb:.2f}MB)")

        try:
            async with self._client() as client:
                response = await client.post(
                    url, files={"file": (filename, data, content_type)}
                )

                if response.status_code >= 400:
                    logger.error(
                        f"Juicer upload failed: {filename}. "
                        f"Status: {response.status_code}, Response: {response.text}"
                    )
                    raise ParsingError(
                        f"Upload failed: {response.status_code} {response.reason_phrase} - {response.text}",
                        filename=filename,
                        status_code=502 if response.status_code >= 500 else 422,
                        details={"upstream_status": response.status_code},
                    )

                try:
                    parsed = response.json()
                except ValueError as e:
                    raise ParsingError(
                        "Parsing service returned invalid JSON",
                        filename=filename,
                        status_code=502,
                    ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Timeout uploading file to Juicer: {filename} - {e}")
            raise ParsingError(
                f"Timeout uploading file: {filename}", filename=filename, status_code=504
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error uploading file to Juicer: {filename} - {e}")
            raise ParsingError(
                f"Request error uploading file: {filename}", filename=filename, status_code=502
            ) from e

        logger.info(f"File parsed successfully by Juicer: {filename}")
        return parsed

    async def upload_files(self, files: List[UploadedFile]) -> List[UploadResult]:
        """Upload files concurrently. Failures are captured per file, in input order."""
        logger.info(f"Uploading {len(files)} files to Juicer")

        async def _upload(file: UploadedFile) -> UploadResult:
            try:
                data = await self.upload_file(file.filename, file.data, file.content_type)
                return UploadResult(filename=file.filename, data=data)
            except ParsingError as e:
                return UploadResult(filename=file.filename, error=e.message or "Upload failed")

        results = await asyncio.gather(*(_upload(f) for f in files))

        success_count = sum(1 for r in results if r.success)
        logger.info(f"Uploaded {success_count}/{len(files)} files successfully to Juicer")
        return list(results)
