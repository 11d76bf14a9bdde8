import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ats_forms.config import settings
from ats_forms.services.errors import FileStorageError
from ats_forms.services.form_schema import FileDescriptor

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class UploadedFile:
    """Raw bytes of a file a candidate attached, before it is stored."""

    data: bytes
    filename: str
    content_type: Optional[str] = None


def make_file_name(original_name: str, now_ms: Optional[int] = None) -> str:
    """Storage name for an upload: ``<epoch-ms>_<sanitized original name>``."""
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    sanitized = _UNSAFE_CHARS.sub("_", original_name or "upload")
    return f"{timestamp}_{sanitized}"


def check_handle(handle: str) -> str:
    if not handle or "/" in handle or "\\" in handle or handle in (".", ".."):
        raise FileStorageError(f"Invalid file handle: {handle!r}")
    return handle


class FileStorage:
    """Stores uploaded bytes and hands back a FileDescriptor for them."""

    def __init__(self, max_bytes: Optional[int] = None, allowed_types: Optional[list[str]] = None):
        self.max_bytes = settings.max_upload_bytes if max_bytes is None else max_bytes
        self.allowed_types = settings.allowed_upload_types if allowed_types is None else allowed_types

    def check_upload(self, data: bytes, original_name: str, content_type: Optional[str] = None) -> None:
        if content_type and self.allowed_types and content_type not in self.allowed_types:
            raise FileStorageError(
                f"Invalid file type for {original_name}. Only PDF, DOC, and DOCX files are allowed."
            )
        if len(data) > self.max_bytes:
            raise FileStorageError(
                f"File {original_name} is too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
            )

    def store(self, data: bytes, original_name: str, content_type: Optional[str] = None) -> FileDescriptor:
        self.check_upload(data, original_name, content_type)
        file_name = make_file_name(original_name)
        self._write(file_name, data, content_type)
        return FileDescriptor(file_name=file_name, original_name=original_name, path=f"/uploads/{file_name}")

    def retrieve(self, handle: str) -> bytes:
        return self._read(check_handle(handle))

    def _write(self, file_name: str, data: bytes, content_type: Optional[str]) -> None:
        raise NotImplementedError

    def _read(self, file_name: str) -> bytes:
        raise NotImplementedError


class LocalFileStorage(FileStorage):
    """Keeps uploads in a directory on local disk."""

    def __init__(self, upload_dir: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.upload_dir = upload_dir or settings.upload_dir

    def _write(self, file_name: str, data: bytes, content_type: Optional[str]) -> None:
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(os.path.join(self.upload_dir, file_name), "wb") as fh:
                fh.write(data)
        except OSError as e:
            logger.error(f"Failed to write upload {file_name}: {e}")
            raise FileStorageError(f"Failed to upload file: {e}") from e
        logger.info(f"Stored upload on disk: {file_name} ({len(data)} bytes)")

    def _read(self, file_name: str) -> bytes:
        try:
            with open(os.path.join(self.upload_dir, file_name), "rb") as fh:
                return fh.read()
        except OSError as e:
            raise FileStorageError(f"File {file_name} not found") from e


class S3FileStorage(FileStorage):
    """Keeps uploads in a MinIO / S3-compatible bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.bucket = bucket or settings.minio_bucket

        self.client = client or boto3.client(
            's3',
            endpoint_url=settings.minio_endpoint,
            aws_access_key_id=settings.minio_access_key,
            aws_secret_access_key=settings.minio_secret_key,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            region_name='us-east-1'
        )

        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Create the bucket if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ('404', 'NoSuchBucket'):
                try:
                    self.client.create_bucket(Bucket=self.bucket)
                    logger.info(f"Created MinIO bucket: {self.bucket}")
                except (ClientError, BotoCoreError) as create_error:
                    logger.warning(f"Failed to create MinIO bucket: {create_error}")
            else:
                logger.warning(f"Failed to check MinIO bucket: {e}")
        except BotoCoreError as e:
            logger.warning(f"MinIO unreachable while checking bucket {self.bucket}: {e}")

    def _write(self, file_name: str, data: bytes, content_type: Optional[str]) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=file_name,
                Body=data,
                ContentType=content_type or 'application/octet-stream',
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {file_name} to MinIO: {e}")
            raise FileStorageError(f"Failed to upload file: {e}") from e
        logger.info(f"Uploaded file to MinIO: {file_name} ({len(data)} bytes)")

    def _read(self, file_name: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=file_name)
            return response['Body'].read()
        except ClientError as e:
            raise FileStorageError(f"File {file_name} not found") from e
        except BotoCoreError as e:
            logger.error(f"Failed to read {file_name} from MinIO: {e}")
            raise FileStorageError(f"Failed to read file: {e}") from e


_instance: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """Process-wide storage backend chosen by ``settings.storage_backend``."""
    global _instance
    if _instance is None:
        if settings.storage_backend == "s3":
            _instance = S3FileStorage()
        else:
            _instance = LocalFileStorage()
    return _instance
