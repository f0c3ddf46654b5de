"""Fetching and caching of the public model registry.

The registry is only a fallback signal source for capabilities, so it is
fetched lazily, at most once per cache object, and shared by every caller.
"""

import threading
from concurrent.futures import Future
from typing import Any, Callable, List, Optional, Sequence, Tuple

import requests

from .config_paths import get_http_timeout, get_registry_url
from .errors import RegistryFetchError
from .logging import LogEvent, get_logger, log_debug, log_info
from .records import RegistryEntry

logger = get_logger(__name__)

RegistryFetcher = Callable[[], Sequence[RegistryEntry]]


def fetch_registry_entries(
    url: Optional[str] = None,
    session: Optional[Any] = None,
    timeout: Optional[float] = None,
) -> List[RegistryEntry]:
    """Download and decode the registry's ``data`` array.

    Args:
        url: Registry endpoint (defaults to ``ZPM_REGISTRY_URL`` or OpenRouter)
        session: Optional ``requests.Session`` (or compatible object)
        timeout: Request timeout in seconds

    Returns:
        Registry entries in registry order; malformed elements are skipped

    Raises:
        RegistryFetchError: On transport errors, non-success responses or an
            unexpected payload shape
    """
    url = url or get_registry_url()
    http = session or requests
    try:
        response = http.get(
            url,
            headers={"Accept": "application/json"},
            timeout=timeout if timeout is not None else get_http_timeout(),
        )
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise RegistryFetchError(f"Failed to fetch model registry: {e}", url=url) from e
    except ValueError as e:
        raise RegistryFetchError(f"Model registry returned invalid JSON: {e}", url=url) from e

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise RegistryFetchError("Model registry response has no 'data' array", url=url)

    entries: List[RegistryEntry] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(RegistryEntry.from_dict(item))
        except ValueError as e:
            log_debug(LogEvent.REGISTRY_FETCH, f"Skipping registry entry: {e}", url=url)

    log_info(LogEvent.REGISTRY_FETCH, f"Fetched {len(entries)} registry entries", url=url, count=len(entries))
    return entries


class RegistryCache:
    """Process-lifetime memo of the registry dataset.

    Construct one per process (or per test) and hand it to every
    :class:`~zed_provider_manager.capabilities.CapabilityResolver`. Concurrent
    callers that arrive while a fetch is running wait for that same fetch and
    see the same result or the same exception. A successful result is kept; a
    failed fetch is forgotten so a later caller can try again.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        session: Optional[Any] = None,
        timeout: Optional[float] = None,
        fetcher: Optional[RegistryFetcher] = None,
    ) -> None:
        """Initialize the cache.

        Args:
            url: Registry endpoint used by the default fetcher
            session: Optional ``requests.Session`` used by the default fetcher
            timeout: Request timeout used by the default fetcher
            fetcher: Callable returning registry entries; replaces the HTTP fetch
        """
        self.url = url or get_registry_url()
        self._session = session
        self._timeout = timeout
        self._fetcher = fetcher
        self._lock = threading.Lock()
        self._entries: Optional[Tuple[RegistryEntry, ...]] = None
        self._in_flight: Optional["Future[Tuple[RegistryEntry, ...]]"] = None
        self.fetch_count = 0

    @property
    def is_loaded(self) -> bool:
        """Whether the dataset has been fetched successfully."""
        with self._lock:
            return self._entries is not None

    def _fetch(self) -> Tuple[RegistryEntry, ...]:
        if self._fetcher is not None:
            return tuple(self._fetcher())
        return tuple(fetch_registry_entries(self.url, self._session, self._timeout))

    def get_entries(self) -> Tuple[RegistryEntry, ...]:
        """Return the registry dataset, fetching it on first use.

        Raises:
            RegistryFetchError: If the fetch this call waited on failed
        """
        with self._lock:
            if self._entries is not None:
                return self._entries
            future = self._in_flight
            owner = future is None
            if future is None:
                future = Future()
                self._in_flight = future
                self.fetch_count += 1

        if not owner:
            return future.result()

        try:
            entries = self._fetch()
        except BaseException as e:
            with self._lock:
                self._in_flight = None
            future.set_exception(e)
            raise

        with self._lock:
            self._entries = entries
            self._in_flight = None
        future.set_result(entries)
        return entries

    def clear(self) -> None:
        """Drop the cached dataset; an in-flight fetch is left to finish."""
        with self._lock:
            self._entries = None
        logger.debug("Registry cache cleared")
