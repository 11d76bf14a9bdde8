"""Tests for the upload storage backends."""

import re
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from ats_forms.services.errors import FileStorageError
from ats_forms.services.file_storage import (
    LocalFileStorage,
    S3FileStorage,
    check_handle,
    make_file_name,
)

PDF = "application/pdf"


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "Operation")


def test_make_file_name_sanitizes():
    assert make_file_name("My Résumé (final).pdf", now_ms=1700000000000) == "1700000000000_My_R_sum___final_.pdf"


def test_make_file_name_uses_current_time():
    assert re.fullmatch(r"\d{13}_cv\.pdf", make_file_name("cv.pdf"))


@pytest.mark.parametrize("handle", ["", ".", "..", "../etc/passwd", "a/b.pdf", "a\\b.pdf"])
def test_check_handle_rejects_paths(handle):
    with pytest.raises(FileStorageError):
        check_handle(handle)


# ---------------------------------------------------------------------------
# Local disk
# ---------------------------------------------------------------------------

def test_local_store_and_retrieve(tmp_path):
    storage = LocalFileStorage(upload_dir=str(tmp_path / "uploads"))
    descriptor = storage.store(b"%PDF-1.7", "cv.pdf", PDF)

    assert descriptor.original_name == "cv.pdf"
    assert descriptor.path == f"/uploads/{descriptor.file_name}"
    assert storage.retrieve(descriptor.file_name) == b"%PDF-1.7"


def test_local_rejects_disallowed_type(tmp_path):
    storage = LocalFileStorage(upload_dir=str(tmp_path))
    with pytest.raises(FileStorageError, match="Only PDF, DOC, and DOCX"):
        storage.store(b"GIF89a", "cat.gif", "image/gif")


def test_local_rejects_large_files(tmp_path):
    storage = LocalFileStorage(upload_dir=str(tmp_path), max_bytes=4)
    with pytest.raises(FileStorageError, match="too large"):
        storage.store(b"12345", "cv.pdf", PDF)


def test_local_retrieve_missing(tmp_path):
    storage = LocalFileStorage(upload_dir=str(tmp_path))
    with pytest.raises(FileStorageError):
        storage.retrieve("1_missing.pdf")


def test_local_write_failure_is_wrapped(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    storage = LocalFileStorage(upload_dir=str(blocker))
    with pytest.raises(FileStorageError, match="Failed to upload file"):
        storage.store(b"%PDF", "cv.pdf", PDF)


# ---------------------------------------------------------------------------
# S3 / MinIO
# ---------------------------------------------------------------------------

def test_s3_creates_missing_bucket():
    client = MagicMock()
    client.head_bucket.side_effect = _client_error("404")
    S3FileStorage(client=client, bucket="cvs")
    client.create_bucket.assert_called_once_with(Bucket="cvs")


def test_s3_store_puts_object():
    client = MagicMock()
    storage = S3FileStorage(client=client, bucket="cvs")

    descriptor = storage.store(b"%PDF", "cv.pdf", PDF)

    client.put_object.assert_called_once()
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "cvs"
    assert kwargs["Key"] == descriptor.file_name
    assert kwargs["ContentType"] == PDF
    client.create_bucket.assert_not_called()


def test_s3_upload_failure():
    client = MagicMock()
    client.put_object.side_effect = _client_error("InternalError")
    storage = S3FileStorage(client=client, bucket="cvs")
    with pytest.raises(FileStorageError):
        storage.store(b"%PDF", "cv.pdf", PDF)


def test_s3_retrieve():
    client = MagicMock()
    client.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=b"data"))}
    storage = S3FileStorage(client=client, bucket="cvs")
    assert storage.retrieve("1_cv.pdf") == b"data"
    client.get_object.assert_called_once_with(Bucket="cvs", Key="1_cv.pdf")


def test_s3_retrieve_missing():
    client = MagicMock()
    client.get_object.side_effect = _client_error("NoSuchKey")
    storage = S3FileStorage(client=client, bucket="cvs")
    with pytest.raises(FileStorageError):
        storage.retrieve("1_cv.pdf")


def _unreachable() -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url="http://minio:9000")


def test_s3_unreachable_endpoint_does_not_break_construction():
    client = MagicMock()
    client.head_bucket.side_effect = _unreachable()
    storage = S3FileStorage(client=client, bucket="cvs")
    assert storage.bucket == "cvs"
    client.create_bucket.assert_not_called()


def test_s3_upload_connection_failure_is_wrapped():
    client = MagicMock()
    client.put_object.side_effect = _unreachable()
    storage = S3FileStorage(client=client, bucket="cvs")
    with pytest.raises(FileStorageError, match="Failed to upload file"):
        storage.store(b"%PDF", "cv.pdf", PDF)


def test_s3_retrieve_connection_failure_is_wrapped():
    client = MagicMock()
    client.get_object.side_effect = _unreachable()
    storage = S3FileStorage(client=client, bucket="cvs")
    with pytest.raises(FileStorageError):
        storage.retrieve("1_cv.pdf")
