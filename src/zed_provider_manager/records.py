"""Data records shared by the resolver, the registry cache and the manager."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .config_paths import DEFAULT_MAX_TOKENS, derive_display_name

# Capability keys as they appear in the settings file
CAPABILITY_FIELDS = ("tools", "images", "parallel_tool_calls", "prompt_cache_key")

# Baseline values used when nothing better is known
BASELINE_CAPABILITIES: Dict[str, bool] = {
    "tools": True,
    "images": False,
    "parallel_tool_calls": False,
    "prompt_cache_key": False,
}

_RAW_RECORD_FIELDS = frozenset(
    ["id", "name", "capabilities", "supported_parameters", "input_modalities", "max_completion_tokens"]
)


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0 or int(value) != value:
        return None
    return int(value)


def _nested(payload: Mapping[str, Any], outer: str, inner: str) -> Any:
    container = payload.get(outer)
    if isinstance(container, Mapping):
        return container.get(inner)
    return None


@dataclass(frozen=True)
class RawModelRecord:
    """A model as reported by a provider's ``/models`` endpoint.

    Only the fields the resolver understands are typed; everything else the
    provider sent is kept verbatim in ``extra``.
    """

    id: str
    name: Optional[str] = None
    capabilities: Optional[Dict[str, Any]] = None
    supported_parameters: Optional[List[str]] = None
    input_modalities: Optional[List[str]] = None
    max_completion_tokens: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RawModelRecord":
        """Build a record from a decoded JSON object.

        Args:
            payload: One element of the provider's ``data``/``models`` array

        Returns:
            RawModelRecord instance

        Raises:
            ValueError: If the payload has no string ``id``
        """
        model_id = payload.get("id")
        if not isinstance(model_id, str) or not model_id:
            raise ValueError(f"Model entry has no string 'id': {dict(payload)!r}")

        name = payload.get("name")
        capabilities = payload.get("capabilities")

        modalities = payload.get("input_modalities")
        if modalities is None:
            modalities = _nested(payload, "architecture", "input_modalities")

        max_tokens = payload.get("max_completion_tokens")
        if max_tokens is None:
            max_tokens = _nested(payload, "top_provider", "max_completion_tokens")

        return cls(
            id=model_id,
            name=name if isinstance(name, str) else None,
            capabilities=dict(capabilities) if isinstance(capabilities, Mapping) else None,
            supported_parameters=_string_list(payload.get("supported_parameters")),
            input_modalities=_string_list(modalities),
            max_completion_tokens=_positive_int(max_tokens),
            extra={k: v for k, v in payload.items() if k not in _RAW_RECORD_FIELDS},
        )


@dataclass(frozen=True)
class RegistryEntry:
    """A model listed in the public registry; immutable once fetched."""

    id: str
    name: Optional[str] = None
    canonical_slug: Optional[str] = None
    supported_parameters: Optional[List[str]] = None
    input_modalities: Optional[List[str]] = None
    max_completion_tokens: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RegistryEntry":
        """Build an entry from one element of the registry's ``data`` array.

        Raises:
            ValueError: If the payload has no string ``id``
        """
        entry_id = payload.get("id")
        if not isinstance(entry_id, str) or not entry_id:
            raise ValueError(f"Registry entry has no string 'id': {dict(payload)!r}")

        name = payload.get("name")
        slug = payload.get("canonical_slug")
        return cls(
            id=entry_id,
            name=name if isinstance(name, str) else None,
            canonical_slug=slug if isinstance(slug, str) else None,
            supported_parameters=_string_list(payload.get("supported_parameters")),
            input_modalities=_string_list(_nested(payload, "architecture", "input_modalities")),
            max_completion_tokens=_positive_int(_nested(payload, "top_provider", "max_completion_tokens")),
        )


@dataclass(frozen=True)
class CapabilitySet:
    """The four capability flags written for every model."""

    tools: bool
    images: bool
    parallel_tool_calls: bool
    prompt_cache_key: bool

    @classmethod
    def baseline(cls) -> "CapabilitySet":
        """Capabilities assumed when nothing is known about a model."""
        return cls(**BASELINE_CAPABILITIES)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CapabilitySet":
        """Build a capability set, using baseline values for missing or non-boolean keys."""
        values = dict(BASELINE_CAPABILITIES)
        for key in CAPABILITY_FIELDS:
            if isinstance(payload.get(key), bool):
                values[key] = payload[key]
        return cls(**values)

    def to_dict(self) -> Dict[str, bool]:
        """Return the settings-file representation."""
        return {key: getattr(self, key) for key in CAPABILITY_FIELDS}


@dataclass(frozen=True)
class ResolvedModelConfig:
    """A model entry as persisted under ``available_models``."""

    name: str
    display_name: str
    max_tokens: int
    capabilities: CapabilitySet

    def __post_init__(self) -> None:
        """Ensure the token limit is a positive integer."""
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ResolvedModelConfig":
        """Build a model config from a settings-file entry.

        Hand-written entries may omit fields; those get the same defaults a
        newly added model would get.

        Raises:
            ValueError: If the entry has no name or an invalid token limit
        """
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Model entry has no string 'name': {dict(payload)!r}")

        display_name = payload.get("display_name")
        capabilities = payload.get("capabilities")
        return cls(
            name=name,
            display_name=display_name if isinstance(display_name, str) else derive_display_name(name),
            max_tokens=payload.get("max_tokens", DEFAULT_MAX_TOKENS),
            capabilities=CapabilitySet.from_dict(capabilities if isinstance(capabilities, Mapping) else {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings-file representation."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "max_tokens": self.max_tokens,
            "capabilities": self.capabilities.to_dict(),
        }


@dataclass(frozen=True)
class ProviderConfig:
    """An OpenAI-compatible provider entry."""

    api_url: str
    available_models: List[ResolvedModelConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure model names are unique within the provider."""
        seen = set()
        for model in self.available_models:
            if model.name in seen:
                raise ValueError(f"Duplicate model '{model.name}' in provider")
            seen.add(model.name)

    @property
    def model_names(self) -> List[str]:
        """Model names in selection order."""
        return [model.name for model in self.available_models]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProviderConfig":
        """Build a provider config from its settings-file entry.

        Raises:
            ValueError: If the entry is not shaped like a provider
        """
        api_url = payload.get("api_url")
        if not isinstance(api_url, str):
            raise ValueError("Provider entry has no string 'api_url'")

        models = payload.get("available_models") or []
        if not isinstance(models, list):
            raise ValueError("'available_models' must be a list")
        return cls(
            api_url=api_url,
            available_models=[ResolvedModelConfig.from_dict(m) for m in models if isinstance(m, Mapping)],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings-file representation."""
        return {
            "api_url": self.api_url,
            "available_models": [model.to_dict() for model in self.available_models],
        }
