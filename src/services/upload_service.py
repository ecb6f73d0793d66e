"""Upload service: validates, stages and serves uploaded image files."""

import base64
import binascii
import re
import time
from pathlib import PurePosixPath

from botocore.exceptions import BotoCoreError, ClientError

from src.config import settings
from src.exceptions import BadRequestError, NotFoundError, RelayError, UploadError
from src.logging.config import get_logger
from src.repositories.record_repository import RecordRepository
from src.repositories.upload_repository import StoredBlob, UploadRepository
from src.schemas.upload import (
    FailedFile,
    FileUpload,
    StagedFile,
    UploadRequest,
    UploadResponse,
)

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_EXTENSION_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}


def sanitize_filename(name: str) -> str:
    """Reduce a client filename to a safe single path segment."""
    base = PurePosixPath(name.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "upload"


def guess_content_type(filename: str) -> str:
    """Content type from the file extension, octet-stream when unknown."""
    suffix = PurePosixPath(filename.lower()).suffix
    return _EXTENSION_TYPES.get(suffix, "application/octet-stream")


class UploadService:
    """
    Stages uploaded files so they can be exposed at a public URL.

    Each file is validated on its own; a rejected file never fails the
    rest of the request.
    """

    def __init__(
        self,
        repository: UploadRepository | None = None,
        record_repository: RecordRepository | None = None,
    ) -> None:
        """
        Initialize UploadService.

        Args:
            repository: UploadRepository instance (creates new if None)
            record_repository: RecordRepository used to attach URLs
                (creates new if None)
        """
        self.repository = repository or UploadRepository()
        self.record_repository = record_repository or RecordRepository()
        self.allowed_types = settings.allowed_upload_type_set
        self.max_bytes = settings.max_upload_bytes

    def public_url(self, key: str) -> str:
        return f"{settings.public_base_url.rstrip('/')}/files/{key}"

    def _decode(self, file: FileUpload) -> bytes:
        """
        Validate one file and return its bytes.

        Raises:
            UploadError: If the type, size or payload is not acceptable
        """
        if file.type not in self.allowed_types:
            raise UploadError(f"File type {file.type} is not supported", file.name)

        limit_mb = self.max_bytes / 1024 / 1024
        if file.size is not None and file.size > self.max_bytes:
            raise UploadError(
                f"File size {file.size / 1024 / 1024:.2f}MB exceeds limit of {limit_mb:.0f}MB",
                file.name,
            )

        if not file.data:
            raise UploadError("No file data provided", file.name)

        data = file.data
        # Accept data URLs as produced by FileReader.readAsDataURL
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]

        try:
            body = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UploadError("File data is not valid base64", file.name) from e

        if len(body) > self.max_bytes:
            raise UploadError(
                f"File size {len(body) / 1024 / 1024:.2f}MB exceeds limit of {limit_mb:.0f}MB",
                file.name,
            )
        return body

    async def _stage_one(self, file: FileUpload) -> StagedFile:
        body = self._decode(file)
        key = f"{int(time.time() * 1000)}_{sanitize_filename(file.name)}"

        try:
            expires_at = await self.repository.put(key, body, file.type)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"Failed to store {file.name}: {e}",
                extra={"context": {"file_name": file.name, "key": key}},
            )
            raise UploadError("File storage not available", file.name) from e

        return StagedFile(
            file_name=file.name,
            key=key,
            url=self.public_url(key),
            content_type=file.type,
            size=len(body),
            expires_at=expires_at.isoformat(),
        )

    async def stage(self, request: UploadRequest) -> UploadResponse:
        """
        Stage every file in the request.

        Args:
            request: Files and optional record to attach to

        Returns:
            UploadResponse listing stored and rejected files

        Raises:
            BadRequestError: If no files were provided
        """
        if not request.files:
            raise BadRequestError(message="No files provided")

        uploaded: list[StagedFile] = []
        failed: list[FailedFile] = []

        for file in request.files:
            try:
                uploaded.append(await self._stage_one(file))
            except UploadError as e:
                logger.info(
                    f"Rejected upload {file.name}: {e.message}",
                    extra={"context": {"file_name": file.name, "type": file.type}},
                )
                failed.append(FailedFile(file_name=file.name, error=e.message))

        record_updated = None
        if request.record_id and uploaded:
            record_updated = await self._attach(request.record_id, uploaded[0].url)

        message = f"Successfully uploaded {len(uploaded)} files"
        if failed:
            message += f", {len(failed)} failed"

        return UploadResponse(
            uploaded_files=uploaded,
            failed_files=failed,
            message=message,
            total_files=len(request.files),
            successful_count=len(uploaded),
            failed_count=len(failed),
            record_updated=record_updated,
        )

    async def _attach(self, record_id: str, url: str) -> bool:
        try:
            await self.record_repository.attach_image(record_id, url)
        except RelayError as e:
            # The file is staged either way; the caller can retry the attach
            logger.warning(
                f"Staged file but failed to attach it to record {record_id}: {e.message}",
                extra={"context": {"record_id": record_id, "url": url}},
            )
            return False
        return True

    async def fetch(self, filename: str) -> StoredBlob:
        """
        Load a staged file for serving.

        Args:
            filename: Stored key

        Returns:
            StoredBlob with content_type always set

        Raises:
            NotFoundError: If the file does not exist or has expired
        """
        if not filename or filename != sanitize_filename(filename):
            raise NotFoundError(message="File not found", resource=filename)

        blob = await self.repository.get(filename)
        if blob is None:
            raise NotFoundError(message="File not found", resource=filename)

        if blob.is_expired():
            logger.info(
                "Refusing expired staged file",
                extra={"context": {"key": filename}},
            )
            try:
                await self.repository.delete(filename)
            except (ClientError, BotoCoreError) as e:
                # The bucket lifecycle rule removes it later anyway
                logger.warning(f"Failed to delete expired file {filename}: {e}")
            raise NotFoundError(message="File not found", resource=filename)

        if not blob.content_type or blob.content_type == "binary/octet-stream":
            blob.content_type = guess_content_type(filename)
        return blob
