"""Tests for the registry fetch and its shared cache."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest
import requests

from zed_provider_manager.errors import RegistryFetchError
from zed_provider_manager.records import RegistryEntry
from zed_provider_manager.registry_cache import RegistryCache, fetch_registry_entries

from .helpers import FakeResponse, make_session


class TestFetchRegistryEntries:
    """Tests for downloading the registry dataset."""

    def test_decodes_entries_and_skips_malformed(self) -> None:
        payload = {
            "data": [
                {
                    "id": "openai/gpt-4o",
                    "name": "OpenAI: GPT-4o",
                    "supported_parameters": ["tools"],
                    "architecture": {"input_modalities": ["text", "image"]},
                    "top_provider": {"max_completion_tokens": 16384},
                },
                {"name": "no id"},
                "not an object",
            ]
        }
        session = make_session([FakeResponse(200, payload)])

        entries = fetch_registry_entries("https://registry.test/models", session=session, timeout=5)

        assert [e.id for e in entries] == ["openai/gpt-4o"]
        assert entries[0].input_modalities == ["text", "image"]
        assert entries[0].max_completion_tokens == 16384
        session.get.assert_called_once()
        assert session.get.call_args.kwargs["timeout"] == 5

    def test_http_error_is_wrapped(self) -> None:
        session = make_session([FakeResponse(503, {"error": "down"})])
        with pytest.raises(RegistryFetchError) as excinfo:
            fetch_registry_entries("https://registry.test/models", session=session)
        assert excinfo.value.url == "https://registry.test/models"

    def test_transport_error_is_wrapped(self) -> None:
        session = make_session([requests.ConnectionError("refused")])
        with pytest.raises(RegistryFetchError):
            fetch_registry_entries("https://registry.test/models", session=session)

    def test_missing_data_array(self) -> None:
        session = make_session([FakeResponse(200, {"models": []})])
        with pytest.raises(RegistryFetchError, match="no 'data' array"):
            fetch_registry_entries("https://registry.test/models", session=session)

    def test_invalid_json(self) -> None:
        session = make_session([FakeResponse(200, text="<html>")])
        with pytest.raises(RegistryFetchError, match="invalid JSON"):
            fetch_registry_entries("https://registry.test/models", session=session)


class TestRegistryCache:
    """Tests for fetch deduplication and memoization."""

    def test_fetches_once_and_memoizes(self, registry_entries: List[RegistryEntry]) -> None:
        cache = RegistryCache(fetcher=lambda: registry_entries)
        assert not cache.is_loaded

        first = cache.get_entries()
        second = cache.get_entries()

        assert first == second == tuple(registry_entries)
        assert cache.fetch_count == 1
        assert cache.is_loaded

    def test_concurrent_callers_share_one_fetch(self, registry_entries: List[RegistryEntry]) -> None:
        """Callers arriving during a fetch wait for it instead of starting another."""
        started = threading.Event()
        release = threading.Event()

        def slow_fetch() -> List[RegistryEntry]:
            started.set()
            release.wait(5)
            return registry_entries

        cache = RegistryCache(fetcher=slow_fetch)
        with ThreadPoolExecutor(max_workers=5) as pool:
            futures = [pool.submit(cache.get_entries) for _ in range(5)]
            assert started.wait(5)
            time.sleep(0.2)
            release.set()
            results = [f.result(timeout=5) for f in futures]

        assert cache.fetch_count == 1
        assert all(result == tuple(registry_entries) for result in results)

    def test_waiters_see_the_same_failure(self) -> None:
        started = threading.Event()
        release = threading.Event()

        def failing_fetch() -> List[RegistryEntry]:
            started.set()
            release.wait(5)
            raise RegistryFetchError("registry down", url="https://registry.test/models")

        cache = RegistryCache(fetcher=failing_fetch)
        with ThreadPoolExecutor(max_workers=3) as pool:
            futures = [pool.submit(cache.get_entries) for _ in range(3)]
            assert started.wait(5)
            time.sleep(0.2)
            release.set()
            errors = [f.exception(timeout=5) for f in futures]

        assert all(isinstance(error, RegistryFetchError) for error in errors)
        assert cache.fetch_count == 1
        assert not cache.is_loaded

    def test_failure_is_not_cached(self, registry_entries: List[RegistryEntry]) -> None:
        """A failed fetch is forgotten so the next caller retries."""
        outcomes = [RegistryFetchError("registry down"), registry_entries]

        def flaky_fetch() -> List[RegistryEntry]:
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        cache = RegistryCache(fetcher=flaky_fetch)
        with pytest.raises(RegistryFetchError):
            cache.get_entries()

        assert cache.get_entries() == tuple(registry_entries)
        assert cache.fetch_count == 2

    def test_clear_forces_refetch(self, registry_cache: RegistryCache) -> None:
        registry_cache.get_entries()
        registry_cache.clear()
        assert not registry_cache.is_loaded
        registry_cache.get_entries()
        assert registry_cache.fetch_count == 2

    def test_default_fetcher_uses_session(self) -> None:
        session = make_session([FakeResponse(200, {"data": [{"id": "x/y"}]})])
        cache = RegistryCache(url="https://registry.test/models", session=session, timeout=1)

        assert [e.id for e in cache.get_entries()] == ["x/y"]
        assert session.get.call_args.args[0] == "https://registry.test/models"
