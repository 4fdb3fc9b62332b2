"""Content domain — the canonical site content record and its store.

Provides the ContentRecord model (header, navigation links, footer),
the validated update payloads, and the in-memory ContentStore that
applies field-level merges and whole-list replacement.
"""

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
    SyncStatus,
    default_record,
    parse_content_update,
    parse_section_update,
)
from sitedash.content.store import ContentStore

__all__ = [
    "ContentRecord",
    "ContentStore",
    "ContentUpdate",
    "Footer",
    "FooterUpdate",
    "Header",
    "HeaderUpdate",
    "NavLink",
    "NavbarUpdate",
    "Section",
    "SyncStatus",
    "default_record",
    "parse_content_update",
    "parse_section_update",
]
