"""Error hierarchy shared by the store, server, sync client, and uploader."""

from __future__ import annotations


class SiteDashError(Exception):
    """Base class for all sitedash errors."""


class ValidationError(SiteDashError):
    """Input rejected before any state was mutated."""


class TransportError(SiteDashError):
    """Network failure or non-2xx response from the content API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(SiteDashError):
    """A required setting is missing."""


class NotFoundError(SiteDashError):
    """Unrecognized route or resource."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Route not found: {path}")
        self.path = path


class UploadError(SiteDashError):
    """The media host rejected or failed an upload."""
