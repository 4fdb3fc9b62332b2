"""Per-section persistence of the working copy.

Each section lives in its own JSON file under a stable key, so a
corrupt header file never stops the navbar or footer from loading.
Writes are best-effort: a failed write is logged and the in-memory
edit still stands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from sitedash.content.models import (
    ContentRecord,
    Footer,
    Header,
    NavLink,
    Section,
    default_record,
)

logger = logging.getLogger(__name__)

SECTION_KEYS: dict[Section, str] = {
    Section.HEADER: "dashboardHeader",
    Section.NAVBAR: "dashboardNavbar",
    Section.FOOTER: "dashboardFooter",
}

_ADAPTERS: dict[Section, TypeAdapter] = {
    Section.HEADER: TypeAdapter(Header),
    Section.NAVBAR: TypeAdapter(list[NavLink]),
    Section.FOOTER: TypeAdapter(Footer),
}


class PersistenceCache:
    """Directory-backed mirror of the working copy."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    def path_for(self, section: Section) -> Path:
        return self.cache_dir / f"{SECTION_KEYS[section]}.json"

    def load(self) -> ContentRecord:
        """Build a working copy from the cache, section by section.

        Missing or corrupt sections fall back to their defaults.
        """
        record = default_record()
        for section in Section:
            value = self._load_section(section)
            if value is not None:
                setattr(record, section.value, value)
        return record

    def _load_section(self, section: Section) -> Header | Footer | list[NavLink] | None:
        path = self.path_for(section)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return _ADAPTERS[section].validate_python(raw)
        except (json.JSONDecodeError, ValueError, OSError):
            logger.warning("Corrupt cache entry at %s, using defaults", path)
            return None

    def save_section(self, section: Section, record: ContentRecord) -> None:
        """Write one section of ``record`` to its key."""
        section = Section(section)
        value = getattr(record, section.value)
        path = self.path_for(section)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                _ADAPTERS[section].dump_json(value, by_alias=True).decode("utf-8"),
                encoding="utf-8",
            )
        except OSError:
            logger.warning("Failed to persist %s to %s", section, path, exc_info=True)

    def save_all(self, record: ContentRecord) -> None:
        for section in Section:
            self.save_section(section, record)

    def clear(self) -> None:
        """Remove every cached section."""
        for section in Section:
            path = self.path_for(section)
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Failed to remove %s", path, exc_info=True)
