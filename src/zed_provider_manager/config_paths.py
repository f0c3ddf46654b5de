"""Configuration path and environment handling.

This module resolves the location of the Zed settings file, following the XDG
Base Directory Specification where Zed does, and derives the endpoint URLs
and environment variable names used for each provider.
"""

import os
import re
import sys
from pathlib import Path
from typing import Mapping, Optional

import platformdirs

# Application whose settings file is managed
ZED_APP_NAME = "zed"

# Environment variable names
ENV_SETTINGS_PATH = "ZPM_SETTINGS_PATH"
ENV_REGISTRY_URL = "ZPM_REGISTRY_URL"
ENV_DEFAULT_MAX_TOKENS = "ZPM_DEFAULT_MAX_TOKENS"
ENV_HTTP_TIMEOUT = "ZPM_HTTP_TIMEOUT"

# Defaults
SETTINGS_FILENAME = "settings.json"
DEFAULT_REGISTRY_URL = "https://openrouter.ai/api/v1/models"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_HTTP_TIMEOUT = 30.0

_NON_ENV_CHARS = re.compile(r"[^A-Z0-9]")


def get_zed_config_dir() -> Path:
    """Get the directory holding Zed's user settings.

    Zed follows XDG on Linux and uses ``~/.config/zed`` everywhere else.
    """
    if sys.platform.startswith("linux"):
        return Path(platformdirs.user_config_dir(ZED_APP_NAME))
    return Path.home() / ".config" / ZED_APP_NAME


def get_settings_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Get the path to the Zed settings file.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Path to the settings file (it may not exist yet)
    """
    env = os.environ if environ is None else environ

    # 1. Check environment variable
    env_path = env.get(ENV_SETTINGS_PATH)
    if env_path:
        return Path(env_path).expanduser()

    # 2. Fall back to Zed's config directory
    return get_zed_config_dir() / SETTINGS_FILENAME


def get_registry_url(environ: Optional[Mapping[str, str]] = None) -> str:
    """Get the public model registry endpoint."""
    env = os.environ if environ is None else environ
    return env.get(ENV_REGISTRY_URL) or DEFAULT_REGISTRY_URL


def get_default_max_tokens(environ: Optional[Mapping[str, str]] = None) -> int:
    """Get the default token limit for newly added models.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Positive token limit

    Raises:
        ValueError: If the environment override is not a positive integer
    """
    env = os.environ if environ is None else environ
    raw = env.get(ENV_DEFAULT_MAX_TOKENS)
    if not raw:
        return DEFAULT_MAX_TOKENS

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_DEFAULT_MAX_TOKENS} must be an integer, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{ENV_DEFAULT_MAX_TOKENS} must be positive, got {value}")
    return value


def get_http_timeout(environ: Optional[Mapping[str, str]] = None) -> float:
    """Get the timeout, in seconds, applied to outbound HTTP requests."""
    env = os.environ if environ is None else environ
    raw = env.get(ENV_HTTP_TIMEOUT)
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_HTTP_TIMEOUT} must be a number, got '{raw}'")


def normalize_api_url(api_url: str) -> str:
    """Strip trailing slashes and make sure the URL ends in ``/v1``.

    Args:
        api_url: URL as entered by the user

    Returns:
        Normalized API base URL
    """
    trimmed = api_url.rstrip("/")
    return trimmed if trimmed.endswith("/v1") else f"{trimmed}/v1"


def get_models_endpoint(api_url: str) -> str:
    """Get the model listing endpoint for an API base URL."""
    return f"{normalize_api_url(api_url)}/models"


def derive_env_var_name(provider_name: str) -> str:
    """Derive the environment variable that holds a provider's API key.

    Examples:
        >>> derive_env_var_name("Open Router")
        'OPEN_ROUTER_API_KEY'
    """
    return f"{_NON_ENV_CHARS.sub('_', provider_name.upper())}_API_KEY"


def derive_display_name(model_id: str) -> str:
    """Derive a display name from the last ``/`` segment of a model id."""
    parts = model_id.split("/")
    return parts[-1] if len(parts) > 1 else model_id
