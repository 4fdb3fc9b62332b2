"""Cloudinary image uploads — config, validation, and API client.

Uploads go through an unsigned upload preset, so no API secret is ever
needed.  Files are validated locally (media type and size ceiling)
before any network call is made.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import os
import urllib.error
import urllib.request
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from sitedash.errors import ConfigurationError, UploadError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.cloudinary.com/v1_1"
MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
)
CHUNK_SIZE = 64 * 1024

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."

mimetypes.add_type("image/webp", ".webp")


class MediaConfig(BaseModel):
    """Configuration for Cloudinary unsigned uploads."""

    cloud_name: str = ""
    upload_preset: str = ""
    folder: str = "dashboard-uploads"
    api_base: str = DEFAULT_API_BASE
    timeout: float = 60.0

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    @property
    def upload_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/{self.cloud_name}/image/upload"

    @classmethod
    def from_env(cls) -> MediaConfig:
        """Create config from environment variables."""
        return cls(
            cloud_name=os.environ.get("CLOUDINARY_CLOUD_NAME", ""),
            upload_preset=os.environ.get("CLOUDINARY_UPLOAD_PRESET", ""),
            folder=os.environ.get("CLOUDINARY_FOLDER", "dashboard-uploads"),
        )


class ProgressSink(Protocol):
    """Receives upload progress as integer percentages."""

    def update(self, percent: int) -> None: ...


class CallbackProgress:
    """Adapt a plain ``callable(percent)`` to the ProgressSink interface."""

    def __init__(self, callback: Callable[[int], None]) -> None:
        self._callback = callback

    def update(self, percent: int) -> None:
        self._callback(percent)


class _MonotonicProgress:
    """Forward only non-decreasing values in [0, 100], and nothing after 100."""

    def __init__(self, sink: ProgressSink | None) -> None:
        self._sink = sink
        self._last = -1
        self._closed = False

    def update(self, percent: int) -> None:
        if self._sink is None or self._closed:
            return
        percent = max(0, min(100, percent))
        if percent <= self._last:
            return
        self._last = percent
        self._sink.update(percent)
        if percent == 100:
            self._closed = True

    def close(self) -> None:
        self._closed = True


def validate_image_file(file_path: Path) -> str:
    """Check that a file is an accepted image under the size ceiling.

    Returns:
        The detected media type.

    Raises:
        ValidationError: If the file is missing, of the wrong type,
            or larger than 10MB.
    """
    if not file_path.is_file():
        raise ValidationError(f"No file provided: {file_path}")

    content_type, _ = mimetypes.guess_type(file_path.name)
    if content_type not in ALLOWED_TYPES:
        raise ValidationError(
            "Invalid file type. Please upload a JPEG, PNG, GIF, WebP, or SVG image."
        )

    size = file_path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValidationError(
            f"File size ({size / 1024 / 1024:.2f}MB) exceeds the 10MB limit."
        )
    return content_type


def optimized_url(
    url: str,
    width: int = 800,
    height: int = 400,
    crop: str = "fill",
    quality: str = "auto",
    format: str = "auto",
) -> str:
    """Insert Cloudinary delivery transformations into an upload URL.

    URLs that are not served by Cloudinary are returned unchanged.
    """
    if not url or "cloudinary.com" not in url:
        return url
    transformations = f"w_{width},h_{height},c_{crop},q_{quality},f_{format}"
    return url.replace("/upload/", f"/upload/{transformations}/", 1)


class MediaUploader:
    """Client for Cloudinary's unsigned image upload endpoint."""

    def __init__(self, config: MediaConfig) -> None:
        self.config = config

    def status(self) -> dict[str, bool]:
        """Report which settings are present."""
        return {
            "configured": self.config.is_configured,
            "cloud_name": bool(self.config.cloud_name),
            "upload_preset": bool(self.config.upload_preset),
        }

    def upload(
        self,
        file_path: Path,
        *,
        progress: ProgressSink | None = None,
        folder: str | None = None,
    ) -> str:
        """Upload an image and return its public ``secure_url``.

        Args:
            file_path: Local image file.
            progress: Optional sink for upload percentages.
            folder: Target folder; defaults to the configured folder.

        Raises:
            ConfigurationError: Cloud name or upload preset missing.
            ValidationError: Wrong media type or file too large.
            UploadError: The request failed or was rejected.
        """
        if not self.config.is_configured:
            raise ConfigurationError(
                "Cloudinary configuration is missing. Set CLOUDINARY_CLOUD_NAME "
                "and CLOUDINARY_UPLOAD_PRESET."
            )
        content_type = validate_image_file(file_path)

        sink = _MonotonicProgress(progress)
        fields = {
            "upload_preset": self.config.upload_preset,
            "folder": folder or self.config.folder,
        }
        body = _MultipartBody(file_path, content_type, fields, sink)
        req = urllib.request.Request(
            self.config.upload_url,
            data=body,
            method="POST",
            headers={
                "Content-Type": f"multipart/form-data; boundary={body.boundary}",
                "Content-Length": str(len(body)),
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            sink.close()
            message = _error_message(exc)
            logger.warning("Upload of '%s' rejected (%s): %s", file_path, exc.code, message)
            raise UploadError(message) from exc
        except (urllib.error.URLError, OSError) as exc:
            sink.close()
            logger.warning("Upload of '%s' failed", file_path, exc_info=True)
            raise UploadError(NETWORK_ERROR_MESSAGE) from exc

        try:
            result = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            sink.close()
            raise UploadError("Upload failed. Please try again.") from exc

        url = result.get("secure_url") if isinstance(result, dict) else None
        if not url:
            sink.close()
            raise UploadError("Upload failed. Please try again.")
        sink.update(100)
        logger.info("Uploaded '%s' to %s", file_path, url)
        return url


class _MultipartBody:
    """Iterable multipart/form-data body that reports bytes sent."""

    def __init__(
        self,
        file_path: Path,
        content_type: str,
        fields: dict[str, str],
        sink: _MonotonicProgress,
    ) -> None:
        self.boundary = f"----SiteDashUploadBoundary{uuid.uuid4().hex}"
        self._file_path = file_path
        self._sink = sink

        head: list[bytes] = []
        for name, value in fields.items():
            head.append(
                f"--{self.boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
                f"{value}\r\n".encode()
            )
        head.append(
            f"--{self.boundary}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{file_path.name}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n".encode()
        )
        self._head = b"".join(head)
        self._tail = f"\r\n--{self.boundary}--\r\n".encode()
        self._length = len(self._head) + file_path.stat().st_size + len(self._tail)

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[bytes]:
        sent = 0
        for chunk in self._chunks():
            sent += len(chunk)
            yield chunk
            # 100 is reserved for a confirmed upload
            self._sink.update(min(99, sent * 100 // self._length))

    def _chunks(self) -> Iterator[bytes]:
        yield self._head
        with open(self._file_path, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk
        yield self._tail


def _error_message(exc: urllib.error.HTTPError) -> str:
    try:
        payload = json.loads(exc.read().decode("utf-8"))
        return payload["error"]["message"]
    except (ValueError, KeyError, TypeError, OSError):
        return "Upload failed. Please try again."
