"""Client side: API client, persistence cache, and the sync client."""

from sitedash.client.api import ContentAPIClient
from sitedash.client.cache import SECTION_KEYS, PersistenceCache
from sitedash.client.sync import SyncClient, SyncResult

__all__ = [
    "SECTION_KEYS",
    "ContentAPIClient",
    "PersistenceCache",
    "SyncClient",
    "SyncResult",
]
