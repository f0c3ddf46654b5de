"""Fetching of model listings from OpenAI-compatible providers."""

import json
from typing import Any, Callable, List, Optional

import requests

from .config_paths import get_http_timeout
from .errors import AuthenticationError, SourceFetchError
from .logging import LogEvent, log_debug, log_info, log_warning
from .records import RawModelRecord


# Characters of a failed response body kept for diagnostics
PREVIEW_LIMIT = 2048

# Called with the number of the attempt that was rejected; returns a new key or None
KeyProvider = Callable[[int], Optional[str]]

AUTH_FAILURE_CODES = (401, 403)


def _preview(body: Any) -> str:
    text = body if isinstance(body, str) else json.dumps(body, ensure_ascii=False, default=str)
    return text[:PREVIEW_LIMIT]


def _decode_models(endpoint: str, payload: Any) -> List[RawModelRecord]:
    models = None
    if isinstance(payload, dict):
        # OpenAI-style {"data": [...]} or a bare {"models": [...]}
        models = payload.get("data") or payload.get("models")

    if not isinstance(models, list) or not models:
        raise SourceFetchError("No models found in response", url=endpoint, preview=_preview(payload))

    records: List[RawModelRecord] = []
    for item in models:
        if not isinstance(item, dict):
            continue
        try:
            records.append(RawModelRecord.from_dict(item))
        except ValueError as e:
            log_debug(LogEvent.MODEL_FETCH, f"Skipping model entry: {e}", url=endpoint)

    if not records:
        raise SourceFetchError("No model entries with an 'id' found in response", url=endpoint, preview=_preview(payload))
    return records


def _request(http: Any, endpoint: str, key: Optional[str], timeout: float, attempt: int) -> Any:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if key:
        headers["Authorization"] = f"Bearer {key}"

    log_debug(LogEvent.MODEL_FETCH, f"Fetching models from {endpoint}", url=endpoint, attempt=attempt)
    try:
        return http.get(endpoint, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise SourceFetchError(f"Failed to fetch models from {endpoint}: {e}", url=endpoint) from e


def fetch_models(
    endpoint: str,
    api_key: Optional[str] = None,
    key_provider: Optional[KeyProvider] = None,
    max_attempts: int = 3,
    session: Optional[Any] = None,
    timeout: Optional[float] = None,
    env_var: Optional[str] = None,
) -> List[RawModelRecord]:
    """Fetch a provider's model listing.

    When the provider answers 401/403 and ``key_provider`` supplies another
    key, the request is retried with it, up to ``max_attempts`` requests in
    total.

    Args:
        endpoint: Full ``.../models`` URL
        api_key: Bearer token for the first attempt
        key_provider: Source of replacement keys after an auth failure
        max_attempts: Upper bound on the number of requests
        session: Optional ``requests.Session`` (or compatible object)
        timeout: Request timeout in seconds
        env_var: Environment variable named in the authentication error

    Returns:
        Model records in the order the provider listed them

    Raises:
        AuthenticationError: If the provider keeps rejecting the credentials
        SourceFetchError: On transport errors, non-success responses or an
            empty/unrecognized listing
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    http = session or requests
    timeout = timeout if timeout is not None else get_http_timeout()
    key = api_key
    attempt = 1
    response = _request(http, endpoint, key, timeout, attempt)

    while response.status_code in AUTH_FAILURE_CODES:
        status = response.status_code
        replacement = key_provider(attempt) if key_provider is not None and attempt < max_attempts else None
        if not replacement:
            hint = f" Set {env_var} to your API key." if env_var and not key else ""
            raise AuthenticationError(
                f"Authentication failed with HTTP {status} for {endpoint}.{hint}",
                url=endpoint,
                status_code=status,
                env_var=env_var,
            )

        log_warning(
            LogEvent.MODEL_FETCH,
            f"HTTP {status} from {endpoint}, retrying with another API key",
            url=endpoint,
            attempt=attempt,
        )
        key = replacement
        attempt += 1
        response = _request(http, endpoint, key, timeout, attempt)

    status = response.status_code
    if not 200 <= status < 300:
        raise SourceFetchError(
            f"Failed to fetch models: HTTP {status}",
            url=endpoint,
            status_code=status,
            preview=_preview(response.text),
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise SourceFetchError(
            f"Provider returned invalid JSON: {e}",
            url=endpoint,
            status_code=status,
            preview=_preview(response.text),
        ) from e

    records = _decode_models(endpoint, payload)
    log_info(LogEvent.MODEL_FETCH, f"Fetched {len(records)} models from {endpoint}", url=endpoint)
    return records
