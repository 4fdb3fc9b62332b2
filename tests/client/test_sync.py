"""Tests for SyncClient — working copy reconciliation with the content API."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sitedash.client.api import ContentAPIClient
from sitedash.client.cache import PersistenceCache
from sitedash.client.sync import SyncClient
from sitedash.content.models import NavLink, Section, default_record
from sitedash.content.store import ContentStore
from sitedash.errors import TransportError, ValidationError


class FakeAPI:
    """In-process stand-in for ContentAPIClient backed by a real store."""

    def __init__(self, store: ContentStore | None = None) -> None:
        self.store = store or ContentStore()
        self.fail_with: Exception | None = None
        self.calls: list[str] = []
        self.observed_loading: list[bool] = []
        self.client: SyncClient | None = None

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.client is not None:
            self.observed_loading.append(self.client.status.loading)
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_components(self) -> dict:
        self._call("fetch")
        return self.store.get().to_wire()

    def save_components(self, record: dict) -> dict:
        self._call("save")
        return self.store.replace_all(record).to_wire()

    def reset_components(self) -> dict:
        self._call("reset")
        return self.store.reset_to_defaults().to_wire()


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def cache(tmp_path: Path) -> PersistenceCache:
    return PersistenceCache(tmp_path / "cache")


@pytest.fixture
def client(api: FakeAPI, cache: PersistenceCache) -> SyncClient:
    sync = SyncClient(api, cache)  # type: ignore[arg-type]
    api.client = sync
    return sync


class TestStartup:
    def test_seeds_from_cache(self, api: FakeAPI, cache: PersistenceCache):
        record = default_record()
        record.header.title = "From last session"
        cache.save_all(record)
        assert SyncClient(api, cache).working_copy.header.title == "From last session"  # type: ignore[arg-type]

    def test_defaults_without_cache(self, client: SyncClient):
        assert client.working_copy == default_record()
        assert client.status.loading is False
        assert client.status.last_error is None
        assert client.status.last_saved_at is None


class TestLoadFromRemote:
    def test_remote_wins_over_local_edits(self, client: SyncClient, api: FakeAPI):
        api.store.replace_all({"header": {"title": "Server title"}})
        client.update_header(title="Unsaved local title")

        result = client.load_from_remote()

        assert result.success is True
        assert client.working_copy.header.title == "Server title"
        assert result.data == client.working_copy

    def test_persists_loaded_sections(self, client: SyncClient, api: FakeAPI, cache: PersistenceCache):
        api.store.replace_all({"navbar": [{"label": "Remote", "url": "/r"}]})
        client.load_from_remote()
        assert cache.load().navbar == [NavLink(label="Remote", url="/r")]

    def test_failure_leaves_working_copy(self, client: SyncClient, api: FakeAPI):
        client.update_footer(email="local@example.com")
        before = client.working_copy.model_copy(deep=True)
        api.fail_with = TransportError("Could not reach server")

        result = client.load_from_remote()

        assert result.success is False
        assert result.error == "Could not reach server"
        assert client.status.last_error == "Could not reach server"
        assert client.working_copy == before

    def test_no_automatic_retry(self, client: SyncClient, api: FakeAPI):
        api.fail_with = TransportError("down")
        client.load_from_remote()
        assert api.calls == ["fetch"]

    def test_success_clears_previous_error(self, client: SyncClient, api: FakeAPI):
        api.fail_with = TransportError("down")
        client.load_from_remote()
        api.fail_with = None
        client.load_from_remote()
        assert client.status.last_error is None

    def test_loading_flag_during_call(self, client: SyncClient, api: FakeAPI):
        client.load_from_remote()
        assert api.observed_loading == [True]
        assert client.status.loading is False

    def test_loading_cleared_after_failure(self, client: SyncClient, api: FakeAPI):
        api.fail_with = TransportError("down")
        client.load_from_remote()
        assert client.status.loading is False

    def test_only_present_sections_overwrite(self, client: SyncClient, cache: PersistenceCache):
        class PartialAPI(FakeAPI):
            def fetch_components(self) -> dict:
                return {"footer": {"email": "x@y.z", "phone": "1", "address": "a"}}

        client.api = PartialAPI()  # type: ignore[assignment]
        client.update_header(title="Keep me")
        client.load_from_remote()
        assert client.working_copy.header.title == "Keep me"
        assert client.working_copy.footer.email == "x@y.z"

    def test_malformed_response_is_failure(self, client: SyncClient):
        class BadAPI(FakeAPI):
            def fetch_components(self) -> dict:
                return {"header": {"title": "ok", "imageUrl": "u"}, "navbar": [{"label": 1}]}

        client.api = BadAPI()  # type: ignore[assignment]
        result = client.load_from_remote()
        assert result.success is False
        assert client.working_copy == default_record()


class TestSaveToRemote:
    def test_pushes_working_copy(self, client: SyncClient, api: FakeAPI):
        client.update_header(title="Local")
        client.update_navbar([{"label": "One", "url": "/1"}])

        result = client.save_to_remote()

        assert result.success is True
        assert api.store.get() == client.working_copy
        assert client.status.last_saved_at is not None
        assert client.status.last_error is None

    def test_failure_keeps_working_copy_and_records_error(self, client: SyncClient, api: FakeAPI):
        client.update_header(title="Unsaved")
        api.fail_with = TransportError("Server exploded", status_code=500)

        result = client.save_to_remote()

        assert result.success is False
        assert client.status.last_error == "Server exploded"
        assert client.status.last_saved_at is None
        assert client.working_copy.header.title == "Unsaved"
        assert client.status.loading is False

    def test_does_not_mutate_working_copy(self, client: SyncClient, api: FakeAPI):
        api.store.replace_all({"footer": {"phone": "server phone"}})
        before = client.working_copy.model_copy(deep=True)
        client.save_to_remote()
        assert client.working_copy == before

    def test_save_then_load_round_trip(self, client: SyncClient, api: FakeAPI):
        record = default_record()
        record.header.title = "X"
        record.navbar = [NavLink(label="A", url="/a"), NavLink(label="B", url="/b")]
        client.save_to_remote(record)
        client.save_to_remote(record)

        client.load_from_remote()
        assert client.working_copy == record

    def test_last_write_wins_between_clients(self, api: FakeAPI, tmp_path: Path):
        tab_a = SyncClient(api, PersistenceCache(tmp_path / "a"))  # type: ignore[arg-type]
        tab_b = SyncClient(api, PersistenceCache(tmp_path / "b"))  # type: ignore[arg-type]
        tab_a.update_header(title="From A")
        tab_b.update_footer(email="b@example.com")

        tab_a.save_to_remote()
        tab_b.save_to_remote()

        remote = api.store.get()
        assert remote.header.title == "Welcome to My Dashboard"
        assert remote.footer.email == "b@example.com"


class TestResetLocalAndRemote:
    def test_adopts_server_defaults(self, client: SyncClient, api: FakeAPI, cache: PersistenceCache):
        api.store.replace_all({"navbar": []})
        client.update_header(title="Local")

        result = client.reset_local_and_remote()

        assert result.success is True
        assert client.working_copy == default_record()
        assert api.store.get() == default_record()
        assert cache.load() == default_record()

    def test_failure_leaves_working_copy(self, client: SyncClient, api: FakeAPI):
        client.update_header(title="Local")
        api.fail_with = TransportError("down")

        result = client.reset_local_and_remote()

        assert result.success is False
        assert client.working_copy.header.title == "Local"


class TestLocalEdits:
    def test_update_header_merges(self, client: SyncClient):
        header = client.update_header(title="Only title")
        assert header.title == "Only title"
        assert header.image_url == default_record().header.image_url

    def test_update_header_by_alias(self, client: SyncClient):
        assert client.update_header(imageUrl="https://img").image_url == "https://img"

    def test_update_footer_persists(self, client: SyncClient, cache: PersistenceCache):
        client.update_footer(phone="123")
        assert cache.load().footer.phone == "123"

    def test_update_navbar_replaces_and_persists(self, client: SyncClient, cache: PersistenceCache):
        client.update_navbar([NavLink(label="A", url="/a"), {"label": "B", "url": "/b"}])
        assert [link.label for link in cache.load().navbar] == ["A", "B"]

    def test_update_navbar_rejects_malformed(self, client: SyncClient):
        with pytest.raises(ValidationError):
            client.update_navbar([{"label": "no url"}])
        assert client.working_copy.navbar == default_record().navbar

    def test_reset_local_to_defaults(self, client: SyncClient, api: FakeAPI, cache: PersistenceCache):
        client.update_header(title="Local")
        client.reset_local_to_defaults()
        assert client.working_copy == default_record()
        assert cache.load() == default_record()
        assert api.calls == []

    def test_clear_error(self, client: SyncClient, api: FakeAPI):
        api.fail_with = TransportError("down")
        client.save_to_remote()
        client.clear_error()
        assert client.status.last_error is None

    def test_edits_persist_section_by_section(self, client: SyncClient, cache: PersistenceCache):
        client.update_header(title="Header only")
        assert cache.path_for(Section.HEADER).exists()
        assert not cache.path_for(Section.NAVBAR).exists()


def _raw_response(raw: bytes) -> MagicMock:
    mock_response = MagicMock()
    mock_response.read.return_value = raw
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


class TestGarbledServerResponses:
    """A real ContentAPIClient fed bodies that are not JSON objects."""

    @pytest.fixture
    def http_client(self, cache: PersistenceCache) -> SyncClient:
        return SyncClient(ContentAPIClient("http://api.test"), cache)

    @pytest.mark.parametrize("raw", [b"[]", b'"OK"', b"\xff\xfe{"])
    def test_load_reports_failure(self, http_client: SyncClient, raw: bytes):
        http_client.update_header(title="Local")
        with patch("sitedash.client.api.urllib.request.urlopen", return_value=_raw_response(raw)):
            result = http_client.load_from_remote()

        assert result.success is False
        assert result.error
        assert http_client.status.last_error == result.error
        assert http_client.status.loading is False
        assert http_client.working_copy.header.title == "Local"

    @pytest.mark.parametrize("raw", [b"[]", b"\xff\xfe{"])
    def test_save_reports_failure(self, http_client: SyncClient, raw: bytes):
        with patch("sitedash.client.api.urllib.request.urlopen", return_value=_raw_response(raw)):
            result = http_client.save_to_remote()

        assert result.success is False
        assert http_client.status.last_error
        assert http_client.status.last_saved_at is None

    def test_reset_reports_failure(self, http_client: SyncClient):
        http_client.update_header(title="Local")
        with patch("sitedash.client.api.urllib.request.urlopen", return_value=_raw_response(b'"OK"')):
            result = http_client.reset_local_and_remote()

        assert result.success is False
        assert http_client.working_copy.header.title == "Local"
