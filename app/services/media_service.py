"""
Media Service - Pass-through uploads to S3-compatible object storage
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, get_settings
from app.exceptions import BadRequest, UnsupportedMedia, UpstreamFailure
from app.models.issue import MediaKind

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".mp4", ".webm", ".mov"}
ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/mov",
}
UNSUPPORTED_TYPE_MESSAGE = "Images (jpeg, jpg, png, gif) and videos (mp4, webm, mov) only"


@dataclass
class MediaFile:
    """An uploaded file held in memory"""
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @property
    def size(self) -> int:
        return len(self.data)


def classify(content_type: str) -> MediaKind:
    """Images by content type prefix; everything else accepted is video"""
    if content_type.lower().startswith("image/"):
        return MediaKind.IMAGE
    return MediaKind.VIDEO


class MediaService:
    """Validates files and forwards them to object storage"""

    def __init__(self, client: Any = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = client

    def _get_client(self):
        """Lazy initialization of the S3 client"""
        if self._client is None:
            kwargs: Dict[str, Any] = {
                "region_name": self.settings.s3_region,
                "config": Config(signature_version="s3v4"),
            }
            if self.settings.s3_endpoint_url:
                kwargs["endpoint_url"] = self.settings.s3_endpoint_url
            if self.settings.aws_access_key_id and self.settings.aws_secret_access_key:
                kwargs["aws_access_key_id"] = self.settings.aws_access_key_id
                kwargs["aws_secret_access_key"] = self.settings.aws_secret_access_key
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def validate(self, file: MediaFile) -> None:
        """Reject files outside the type allow-list or above the size ceiling"""
        content_type = (file.content_type or "").lower()
        if file.extension not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
            logger.warning(
                "Rejected upload %s (%s)", file.filename, file.content_type
            )
            raise UnsupportedMedia(UNSUPPORTED_TYPE_MESSAGE)

        self.check_size(file.filename, file.size)

    def check_size(self, filename: str, size: int) -> None:
        """Reject a file above the size ceiling"""
        if size > self.settings.max_upload_bytes:
            logger.warning("Rejected upload %s: %d bytes", filename, size)
            limit_mb = self.settings.max_upload_bytes // (1024 * 1024)
            raise UnsupportedMedia(f"File too large, maximum size is {limit_mb}MB")

    def check_batch(self, count: int) -> None:
        """Reject an empty batch or one above the file limit"""
        if count == 0:
            raise BadRequest("No files uploaded")
        if count > self.settings.max_batch_files:
            raise BadRequest(f"At most {self.settings.max_batch_files} files per upload")

    def _stage(self, file: MediaFile) -> Path:
        """Write the bytes to the local staging directory"""
        staging_dir = Path(self.settings.upload_staging_path)
        staging_dir.mkdir(parents=True, exist_ok=True)
        staged = staging_dir / f"file-{uuid.uuid4().hex}{file.extension}"
        staged.write_bytes(file.data)
        return staged

    async def _store(self, file: MediaFile) -> Dict[str, str]:
        kind = classify(file.content_type)
        key = f"{self.settings.media_folder}/{kind.value}/{uuid.uuid4().hex}{file.extension}"
        staged = self._stage(file)

        try:
            client = self._get_client()
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: client.upload_file(
                    str(staged),
                    self.settings.s3_bucket,
                    key,
                    ExtraArgs={"ContentType": file.content_type},
                ),
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("Upload of %s to object storage failed", file.filename)
            raise UpstreamFailure("File upload failed") from e
        finally:
            staged.unlink(missing_ok=True)

        logger.info("Uploaded %s as %s", file.filename, key)
        return {
            "kind": kind.value,
            "url": f"{self.settings.effective_media_base_url}/{key}",
            "external_id": key,
        }

    async def upload(self, file: Optional[MediaFile]) -> Dict[str, str]:
        """Validate and upload one file, returning its reference"""
        if file is None:
            raise BadRequest("No file uploaded")
        self.validate(file)
        return await self._store(file)

    async def upload_many(self, files: List[MediaFile]) -> List[Dict[str, str]]:
        """Upload files concurrently; any failure fails the whole batch"""
        self.check_batch(len(files))

        for file in files:
            self.validate(file)

        return list(await asyncio.gather(*(self._store(f) for f in files)))

    async def delete_by_reference(self, external_id: str, kind: MediaKind = MediaKind.IMAGE) -> None:
        """Remove a stored object"""
        client = self._get_client()
        try:
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: client.delete_object(Bucket=self.settings.s3_bucket, Key=external_id),
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("Deleting %s %s from object storage failed", kind.value, external_id)
            raise UpstreamFailure("File deletion failed") from e

        logger.info("Deleted %s %s", kind.value, external_id)
