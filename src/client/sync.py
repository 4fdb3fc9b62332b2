"""Synchronization between the local working copy and the content API.

The working copy is the editable, possibly unsaved, client-side shadow
of the server's record.  The rules are:

* ``load_from_remote`` — remote wins: every section in the response
  overwrites the working copy and unsaved local edits are discarded.
* ``save_to_remote`` — local wins: the full working copy is sent and
  overwrites the server's record.  The working copy itself is untouched.
* ``reset_local_and_remote`` — the server resets to its defaults and the
  working copy adopts whatever it returns.

Failures never touch the working copy; they are recorded in
``status.last_error`` and returned to the caller, who decides whether
to retry.  Every working-copy mutation is mirrored to the cache.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from sitedash.client.api import ContentAPIClient
from sitedash.client.cache import PersistenceCache
from sitedash.content.models import (
    INVALID_NAVBAR_MESSAGE,
    ContentRecord,
    Footer,
    FooterUpdate,
    Header,
    HeaderUpdate,
    NavLink,
    Section,
    SyncStatus,
    default_record,
    merge_fields,
)
from sitedash.errors import SiteDashError, ValidationError

logger = logging.getLogger(__name__)

_SECTION_ADAPTERS: dict[Section, TypeAdapter] = {
    Section.HEADER: TypeAdapter(Header),
    Section.NAVBAR: TypeAdapter(list[NavLink]),
    Section.FOOTER: TypeAdapter(Footer),
}


class SyncResult(BaseModel):
    """Outcome of one remote operation."""

    success: bool
    data: ContentRecord | None = None
    error: str | None = None


class SyncClient:
    """Owns the working copy and reconciles it with the content API.

    Concurrent calls are not serialized: two overlapping saves both
    reach the server and the later one wins.
    """

    def __init__(
        self,
        api: ContentAPIClient,
        cache: PersistenceCache,
        working_copy: ContentRecord | None = None,
    ) -> None:
        self.api = api
        self.cache = cache
        self.working_copy = working_copy if working_copy is not None else cache.load()
        self.status = SyncStatus()

    # ── Remote operations ────────────────────────────────────────

    def load_from_remote(self) -> SyncResult:
        """Pull the server's record into the working copy (remote wins)."""
        self.status.loading = True
        try:
            data = self.api.fetch_components()
            sections = _parse_sections(data)
        except SiteDashError as exc:
            return self._failure(exc, "Failed to fetch data from server")
        finally:
            self.status.loading = False

        for section, value in sections.items():
            setattr(self.working_copy, section.value, value)
            self.cache.save_section(section, self.working_copy)
        self.status.last_error = None
        logger.info("Loaded %d section(s) from server", len(sections))
        return SyncResult(success=True, data=self.working_copy.model_copy(deep=True))

    def save_to_remote(self, record: ContentRecord | None = None) -> SyncResult:
        """Push the full working copy (or ``record``) to the server (local wins)."""
        payload = (record or self.working_copy).to_wire()
        self.status.loading = True
        try:
            data = self.api.save_components(payload)
            saved = ContentRecord.model_validate(data)
        except (SiteDashError, PydanticValidationError) as exc:
            return self._failure(exc, "Failed to save data to server")
        finally:
            self.status.loading = False

        self.status.last_saved_at = datetime.now(tz=UTC)
        self.status.last_error = None
        logger.info("Saved working copy to server")
        return SyncResult(success=True, data=saved)

    def reset_local_and_remote(self) -> SyncResult:
        """Reset the server to defaults and adopt them locally."""
        self.status.loading = True
        try:
            data = self.api.reset_components()
            record = ContentRecord.model_validate(data)
        except (SiteDashError, PydanticValidationError) as exc:
            return self._failure(exc, "Failed to reset data on server")
        finally:
            self.status.loading = False

        self.working_copy = record
        self.cache.save_all(self.working_copy)
        self.status.last_error = None
        logger.info("Reset server and working copy to defaults")
        return SyncResult(success=True, data=record.model_copy(deep=True))

    def _failure(self, exc: Exception, fallback: str) -> SyncResult:
        message = str(exc) or fallback
        if isinstance(exc, PydanticValidationError):
            message = f"{fallback}: malformed response"
        self.status.last_error = message
        logger.warning("%s: %s", fallback, message)
        return SyncResult(success=False, error=message)

    # ── Local edits ──────────────────────────────────────────────

    def update_header(self, **fields: Any) -> Header:
        """Merge the given header fields into the working copy."""
        update = _validate(HeaderUpdate, fields)
        self.working_copy.header = merge_fields(self.working_copy.header, update)
        self.cache.save_section(Section.HEADER, self.working_copy)
        return self.working_copy.header

    def update_navbar(self, links: Iterable[NavLink | Mapping[str, Any]]) -> list[NavLink]:
        """Replace the working copy's navbar with ``links``."""
        try:
            navbar = _SECTION_ADAPTERS[Section.NAVBAR].validate_python(
                [link.model_dump() if isinstance(link, NavLink) else link for link in links]
            )
        except PydanticValidationError as exc:
            raise ValidationError(INVALID_NAVBAR_MESSAGE) from exc
        self.working_copy.navbar = navbar
        self.cache.save_section(Section.NAVBAR, self.working_copy)
        return self.working_copy.navbar

    def update_footer(self, **fields: Any) -> Footer:
        """Merge the given footer fields into the working copy."""
        update = _validate(FooterUpdate, fields)
        self.working_copy.footer = merge_fields(self.working_copy.footer, update)
        self.cache.save_section(Section.FOOTER, self.working_copy)
        return self.working_copy.footer

    def reset_local_to_defaults(self) -> ContentRecord:
        """Discard local edits in favour of the built-in defaults (no server call)."""
        self.working_copy = default_record()
        self.cache.save_all(self.working_copy)
        return self.working_copy

    def clear_error(self) -> None:
        self.status.last_error = None


def _parse_sections(data: Any) -> dict[Section, Any]:
    """Validate every section present in a server response.

    Nothing is applied unless all present sections are well-formed.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Malformed response: expected a content record")
    sections: dict[Section, Any] = {}
    for section in Section:
        raw = data.get(section.value)
        if raw is None:
            continue
        try:
            sections[section] = _SECTION_ADAPTERS[section].validate_python(raw)
        except PydanticValidationError as exc:
            raise ValidationError(f"Malformed {section.value} in response") from exc
    return sections


def _validate(model: type[BaseModel], fields: Mapping[str, Any]) -> Any:
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as exc:
        raise ValidationError(str(exc.errors()[0]["msg"])) from exc
