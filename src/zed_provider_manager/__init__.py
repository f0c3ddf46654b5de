"""Manage OpenAI-compatible providers in Zed's settings file.

This package edits ``language_models.openai_compatible`` in Zed's
JSON-with-comments settings without disturbing the rest of the file, and
fills in each model's capabilities and token limit from the provider's model
listing, falling back to a public model registry when the provider says
nothing.
"""

# Version of the package
try:
    from importlib.metadata import version as _version

    __version__ = _version("zed-provider-manager")
except ImportError:
    raise ImportError(
        "Failed to determine package version. This package requires Python 3.8+ "
        "where importlib.metadata is available, or must be installed as a package."
    )

# Import main components for easier access
from .capabilities import CapabilityResolver, ResolvedCapabilities
from .errors import (
    AuthenticationError,
    ConfigFileNotFoundError,
    ConfigurationError,
    InvalidPathError,
    MalformedDocumentError,
    ModelNotFoundError,
    NetworkError,
    ProviderExistsError,
    ProviderManagerError,
    ProviderNotFoundError,
    RegistryFetchError,
    SourceFetchError,
)
from .jsonc import parse, remove_value, set_value
from .manager import ModelChanges, ProviderManager
from .matcher import DEFAULT_WEIGHTS, MatchWeights, match, match_registry
from .records import (
    CapabilitySet,
    ProviderConfig,
    RawModelRecord,
    RegistryEntry,
    ResolvedModelConfig,
)
from .registry_cache import RegistryCache
from .settings import SettingsDocument, SettingsStore

# Define public API
__all__ = [
    # Operations
    "ProviderManager",
    "ModelChanges",
    "SettingsStore",
    "SettingsDocument",
    # Capability resolution
    "CapabilityResolver",
    "ResolvedCapabilities",
    "RegistryCache",
    "MatchWeights",
    "DEFAULT_WEIGHTS",
    "match",
    "match_registry",
    # Document patching
    "parse",
    "set_value",
    "remove_value",
    # Records
    "CapabilitySet",
    "ProviderConfig",
    "RawModelRecord",
    "RegistryEntry",
    "ResolvedModelConfig",
    # Errors
    "ProviderManagerError",
    "ConfigurationError",
    "ConfigFileNotFoundError",
    "MalformedDocumentError",
    "InvalidPathError",
    "ProviderExistsError",
    "ProviderNotFoundError",
    "ModelNotFoundError",
    "NetworkError",
    "SourceFetchError",
    "AuthenticationError",
    "RegistryFetchError",
]
