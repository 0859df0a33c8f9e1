"""Store configuration and the S3 requests shared by every upload."""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Iterator

from .errors import is_error_code
from .part_producer import TEMP_FILE_PREFIX, PartChunk
from .partsize import calc_optimal_part_size as _calc_optimal_part_size

METRIC_GET_INFO_OBJECT = "get_info_object"
METRIC_PUT_INFO_OBJECT = "put_info_object"
METRIC_CREATE_MULTIPART_UPLOAD = "create_multipart_upload"
METRIC_COMPLETE_MULTIPART_UPLOAD = "complete_multipart_upload"
METRIC_UPLOAD_PART = "upload_part"
METRIC_LIST_PARTS = "list_parts"
METRIC_HEAD_PART_OBJECT = "head_part_object"
METRIC_GET_PART_OBJECT = "get_part_object"
METRIC_PUT_PART_OBJECT = "put_part_object"
METRIC_DELETE_PART_OBJECT = "delete_part_object"

# Error codes under which a missing incomplete part object may be reported.
_MISSING_PART_CODES = ("NoSuchKey", "NotFound", "AccessDenied", "Forbidden")

_COPY_BLOCK = 64 * 1024

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB
TIB = 1024 * GIB


def split_ids(upload_id: str) -> tuple[str, str]:
    """Split an upload ID into object ID and multipart ID at the last plus sign.

    Both parts are empty when the ID holds no plus sign.
    """
    object_id, separator, multipart_id = upload_id.rpartition("+")
    if not separator:
        return "", ""
    return object_id, multipart_id


def _with_prefix(prefix: str, key: str) -> str:
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    return prefix + key


@dataclass
class StoreSettings:
    """Configuration of the S3 backend together with the service client.

    ``service`` offers the S3 operations as methods taking keyword arguments
    (``get_object(Bucket=..., Key=...)`` and so on) and returning dicts.
    Failures are raised as ``S3APIError`` or ``S3ResponseError``.
    """

    bucket: str
    service: Any
    object_prefix: str = ""
    metadata_object_prefix: str = ""
    max_part_size: int = 5 * GIB
    min_part_size: int = 5 * MIB
    preferred_part_size: int = 50 * MIB
    max_multipart_parts: int = 10000
    max_object_size: int = 5 * TIB
    max_buffered_parts: int = 20
    temporary_directory: str = ""
    disable_content_hashes: bool = False
    concurrent_part_uploads: int = 10
    request_duration_observer: Callable[[str, float], None] | None = None
    disk_write_observer: Callable[[float], None] | None = None
    upload_semaphore: threading.Semaphore = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.set_concurrent_part_uploads(self.concurrent_part_uploads)

    def set_concurrent_part_uploads(self, limit: int) -> None:
        """Change how many part uploads to S3 may run at the same time."""
        if limit < 1:
            raise ValueError("the limit of concurrent part uploads must be at least 1")
        self.concurrent_part_uploads = limit
        self.upload_semaphore = threading.Semaphore(limit)

    def key_with_prefix(self, key: str) -> str:
        """Return the object key for upload data under the object prefix."""
        return _with_prefix(self.object_prefix, key)

    def metadata_key_with_prefix(self, key: str) -> str:
        """Return the key for .info and .part objects under the metadata prefix."""
        return _with_prefix(self.metadata_object_prefix or self.object_prefix, key)

    def calc_optimal_part_size(self, size: int) -> int:
        """Return the part size to use for an upload of ``size`` bytes."""
        return _calc_optimal_part_size(
            size,
            self.preferred_part_size,
            self.max_part_size,
            self.max_multipart_parts,
        )

    def list_all_parts(self, object_id: str, multipart_id: str) -> list[dict[str, Any]]:
        """Return every uploaded part as a dict with PartNumber, Size and ETag.

        Follows truncated listings until the last page.
        """
        parts: list[dict[str, Any]] = []
        marker = None
        while True:
            request: dict[str, Any] = {
                "Bucket": self.bucket,
                "Key": self.key_with_prefix(object_id),
                "UploadId": multipart_id,
            }
            if marker is not None:
                request["PartNumberMarker"] = marker
            with self._timed(METRIC_LIST_PARTS):
                response = self.service.list_parts(**request)
            parts.extend(
                {
                    "PartNumber": int(part["PartNumber"]),
                    "Size": int(part["Size"]),
                    "ETag": part["ETag"],
                }
                for part in response.get("Parts") or []
            )
            if not response.get("IsTruncated"):
                return parts
            marker = response.get("NextPartNumberMarker")

    def head_incomplete_part(self, object_id: str) -> int:
        """Return the size of the incomplete part object, or 0 if there is none."""
        try:
            with self._timed(METRIC_HEAD_PART_OBJECT):
                response = self.service.head_object(
                    Bucket=self.bucket,
                    Key=self.metadata_key_with_prefix(object_id + ".part"),
                )
        except Exception as exc:
            if is_error_code(exc, *_MISSING_PART_CODES):
                return 0
            raise
        return int(response["ContentLength"])

    def download_incomplete_part(self, object_id: str) -> PartChunk | None:
        """Fetch the incomplete part object into a temporary file.

        Returns None when no incomplete part exists. Closing the returned
        chunk removes the temporary file.
        """
        start = time.monotonic()
        try:
            response = self.service.get_object(
                Bucket=self.bucket,
                Key=self.metadata_key_with_prefix(object_id + ".part"),
            )
        except Exception as exc:
            if is_error_code(exc, *_MISSING_PART_CODES):
                return None
            raise

        body = response["Body"]
        fd, path = tempfile.mkstemp(
            prefix=TEMP_FILE_PREFIX, dir=self.temporary_directory or None
        )
        file = os.fdopen(fd, "w+b")
        try:
            try:
                copied = _copy_all(body, file)
            finally:
                close = getattr(body, "close", None)
                if close is not None:
                    close()
            self._observe(METRIC_GET_PART_OBJECT, start)
            expected = response.get("ContentLength")
            if expected is not None and copied < int(expected):
                raise OSError("short read of incomplete upload")
            file.seek(0)
        except BaseException:
            file.close()
            with contextlib.suppress(OSError):
                os.remove(path)
            raise
        return PartChunk(file, copied, path)

    def put_incomplete_part(self, object_id: str, body: BinaryIO) -> None:
        """Store ``body`` as the incomplete part object of the upload."""
        with self._timed(METRIC_PUT_PART_OBJECT):
            self.service.put_object(
                Bucket=self.bucket,
                Key=self.metadata_key_with_prefix(object_id + ".part"),
                Body=body,
            )

    def delete_incomplete_part(self, object_id: str) -> None:
        """Remove the incomplete part object of the upload."""
        with self._timed(METRIC_DELETE_PART_OBJECT):
            self.service.delete_object(
                Bucket=self.bucket,
                Key=self.metadata_key_with_prefix(object_id + ".part"),
            )

    def _observe(self, label: str, start: float) -> None:
        if self.request_duration_observer is not None:
            elapsed_ms = float(int((time.monotonic() - start) * 1000))
            self.request_duration_observer(label, elapsed_ms)

    @contextlib.contextmanager
    def _timed(self, label: str) -> Iterator[None]:
        start = time.monotonic()
        try:
            yield
        finally:
            self._observe(label, start)


def _copy_all(source: BinaryIO, dest: BinaryIO) -> int:
    copied = 0
    while True:
        block = source.read(_COPY_BLOCK)
        if not block:
            return copied
        dest.write(block)
        copied += len(block)