"""In-memory content store.

Holds the one canonical ContentRecord for the lifetime of the process.
All access goes through a lock and callers only ever see copies, so a
rejected update can never leave a half-applied record behind.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from sitedash.content.models import (
    ContentRecord,
    ContentUpdate,
    Footer,
    FooterUpdate,
    Header,
    HeaderUpdate,
    NavbarUpdate,
    NavLink,
    Section,
    default_record,
    merge_fields,
    parse_content_update,
    parse_section_update,
)

logger = logging.getLogger(__name__)


class ContentStore:
    """Single-record store with field-merge and whole-list-replace updates.

    Updates are last-write-wins: there is no version token, so two
    clients saving in turn silently overwrite each other.
    """

    def __init__(self, initial: ContentRecord | None = None) -> None:
        self._lock = threading.Lock()
        self._record = (initial or default_record()).model_copy(deep=True)

    # ── Read operations ──────────────────────────────────────────

    def get(self) -> ContentRecord:
        """Return a copy of the current record."""
        with self._lock:
            return self._record.model_copy(deep=True)

    # ── Write operations ─────────────────────────────────────────

    def replace_all(self, update: ContentUpdate | Mapping[str, Any]) -> ContentRecord:
        """Apply a combined update and return the resulting record.

        Header and footer are merged field by field; a supplied navbar
        replaces the whole list.

        Raises:
            ValidationError: If the navbar is malformed.  Nothing is
                applied in that case, not even header or footer fields.
        """
        parsed = parse_content_update(update)
        with self._lock:
            record = self._record.model_copy(deep=True)
            if parsed.header is not None:
                record.header = merge_fields(record.header, parsed.header)
            if parsed.navbar is not None:
                record.navbar = [link.model_copy() for link in parsed.navbar]
            if parsed.footer is not None:
                record.footer = merge_fields(record.footer, parsed.footer)
            self._record = record
            logger.info(
                "Content updated (sections: %s)",
                ", ".join(sorted(parsed.model_dump(exclude_none=True))) or "none",
            )
            return record.model_copy(deep=True)

    def update_section(
        self,
        section: Section | str,
        data: HeaderUpdate | NavbarUpdate | FooterUpdate | Mapping[str, Any],
    ) -> Header | list[NavLink] | Footer:
        """Update one section and return its new value.

        A navbar update needs ``links``; without it the navbar is left
        unchanged and returned as-is.
        """
        section = Section(section)
        parsed = parse_section_update(section, data)
        with self._lock:
            if isinstance(parsed, HeaderUpdate):
                self._record.header = merge_fields(self._record.header, parsed)
                result: Header | list[NavLink] | Footer = self._record.header
            elif isinstance(parsed, NavbarUpdate):
                if parsed.links is not None:
                    self._record.navbar = [link.model_copy() for link in parsed.links]
                result = self._record.navbar
            else:
                self._record.footer = merge_fields(self._record.footer, parsed)
                result = self._record.footer
            logger.info("Section '%s' updated", section)
            if isinstance(result, list):
                return [link.model_copy() for link in result]
            return result.model_copy()

    def update_header(self, data: HeaderUpdate | Mapping[str, Any]) -> Header:
        return self.update_section(Section.HEADER, data)  # type: ignore[return-value]

    def update_navbar(self, data: NavbarUpdate | Mapping[str, Any]) -> list[NavLink]:
        return self.update_section(Section.NAVBAR, data)  # type: ignore[return-value]

    def update_footer(self, data: FooterUpdate | Mapping[str, Any]) -> Footer:
        return self.update_section(Section.FOOTER, data)  # type: ignore[return-value]

    def reset_to_defaults(self) -> ContentRecord:
        """Restore the built-in defaults and return them."""
        with self._lock:
            self._record = default_record()
            logger.info("Content reset to defaults")
            return self._record.model_copy(deep=True)
