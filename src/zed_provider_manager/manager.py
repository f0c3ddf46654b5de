"""Provider operations on the Zed settings document.

Every operation reads the settings file fresh, computes the new text with the
patcher and writes it back once. A failure before the write leaves the file
untouched.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from . import jsonc
from .capabilities import CapabilityResolver
from .config_paths import (
    derive_env_var_name,
    get_default_max_tokens,
    get_models_endpoint,
    normalize_api_url,
)
from .errors import (
    ConfigurationError,
    ModelNotFoundError,
    ProviderExistsError,
    ProviderNotFoundError,
)
from .logging import LogEvent, log_info
from .model_source import KeyProvider, fetch_models
from .records import CAPABILITY_FIELDS, ProviderConfig, RawModelRecord
from .registry_cache import RegistryCache
from .settings import SettingsDocument, SettingsStore, provider_path


@dataclass(frozen=True)
class ModelChanges:
    """Model ids added to and removed from a provider."""

    additions: List[str] = field(default_factory=list)
    removals: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.additions or self.removals)


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _validate_max_tokens(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"max_tokens must be a positive integer, got {value!r}")
    return value


class ProviderManager:
    """Add, update, rename and delete OpenAI-compatible providers."""

    def __init__(
        self,
        store: SettingsStore,
        cache: Optional[RegistryCache] = None,
        session: Optional[Any] = None,
        default_max_tokens: Optional[int] = None,
        environ: Optional[Mapping[str, str]] = None,
        max_attempts: int = 3,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Settings document store
            cache: Registry cache shared by all resolutions; created if None
            session: Optional ``requests.Session`` for provider and registry calls
            default_max_tokens: Token limit for new models (environment default if None)
            environ: Environment used for API keys and defaults
            max_attempts: Upper bound on model-listing requests per fetch
        """
        self.store = store
        self.session = session
        self.environ = os.environ if environ is None else environ
        self.cache = cache if cache is not None else RegistryCache(session=session)
        self.resolver = CapabilityResolver(self.cache)
        self.default_max_tokens = _validate_max_tokens(
            default_max_tokens if default_max_tokens is not None else get_default_max_tokens(self.environ)
        )
        self.max_attempts = max_attempts

    def api_key_for(self, provider_name: str) -> Optional[str]:
        """API key for a provider from ``<NAME>_API_KEY``, if set."""
        return self.environ.get(derive_env_var_name(provider_name)) or None

    def _requested_max_tokens(self, value: Optional[int]) -> int:
        return _validate_max_tokens(self.default_max_tokens if value is None else value)

    def _require_provider(self, document: SettingsDocument, name: str) -> Dict[str, Any]:
        entry = document.providers().get(name)
        if not isinstance(entry, dict):
            raise ProviderNotFoundError(f"Provider '{name}' not found", provider=name)
        return entry

    def list_providers(self) -> Dict[str, ProviderConfig]:
        """Configured providers in document order."""
        return self.store.read().provider_configs()

    def get_provider(self, name: str) -> ProviderConfig:
        """Return one configured provider.

        Raises:
            ProviderNotFoundError: If no provider has this name
        """
        document = self.store.read()
        entry = self._require_provider(document, name)
        try:
            return ProviderConfig.from_dict(entry)
        except ValueError as e:
            raise ConfigurationError(f"Provider '{name}' is malformed: {e}", path=document.path) from e

    def fetch_available_models(
        self,
        api_url: str,
        provider_name: str,
        key_provider: Optional[KeyProvider] = None,
    ) -> List[RawModelRecord]:
        """Fetch the models a provider currently offers.

        Raises:
            SourceFetchError: If the listing cannot be fetched
        """
        return fetch_models(
            get_models_endpoint(api_url),
            api_key=self.api_key_for(provider_name),
            key_provider=key_provider,
            max_attempts=self.max_attempts,
            session=self.session,
            env_var=derive_env_var_name(provider_name),
        )

    def _offered_models(
        self,
        api_url: str,
        provider_name: str,
        key_provider: Optional[KeyProvider],
    ) -> Dict[str, RawModelRecord]:
        by_id: Dict[str, RawModelRecord] = {}
        for record in self.fetch_available_models(api_url, provider_name, key_provider):
            by_id.setdefault(record.id, record)
        return by_id

    def add_provider(
        self,
        name: str,
        api_url: str,
        model_ids: Optional[Sequence[str]] = None,
        default_max_tokens: Optional[int] = None,
        key_provider: Optional[KeyProvider] = None,
    ) -> ProviderConfig:
        """Create a provider with resolved entries for the selected models.

        Args:
            name: Provider name (key under ``openai_compatible``)
            api_url: Provider base URL; ``/v1`` is appended when missing
            model_ids: Models to add; all offered models if None
            default_max_tokens: Requested token limit for every model
            key_provider: Source of replacement API keys after a 401/403

        Returns:
            The provider entry that was written

        Raises:
            ProviderExistsError: If the name is already configured
            ModelNotFoundError: If a requested model is not offered
            SourceFetchError: If the model listing cannot be fetched
        """
        name = name.strip()
        if not name:
            raise ValueError("Provider name is required")
        if not api_url.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")

        document = self.store.read()
        if name in document.providers():
            raise ProviderExistsError(f"Provider '{name}' already exists", provider=name)

        normalized_url = normalize_api_url(api_url)
        by_id = self._offered_models(normalized_url, name, key_provider)

        selected = list(by_id) if model_ids is None else _unique(model_ids)
        if not selected:
            raise ValueError("No models selected")
        unknown = [model_id for model_id in selected if model_id not in by_id]
        if unknown:
            raise ModelNotFoundError(f"Models not offered by '{name}': {', '.join(unknown)}", models=unknown)

        max_tokens = self._requested_max_tokens(default_max_tokens)
        models = self.resolver.resolve_models([by_id[model_id] for model_id in selected], max_tokens)
        provider = ProviderConfig(api_url=normalized_url, available_models=models)

        document = self.store.read()
        if name in document.providers():
            raise ProviderExistsError(f"Provider '{name}' already exists", provider=name)
        self.store.write(jsonc.set_value(document.text, provider_path(name), provider.to_dict()))

        log_info(
            LogEvent.PROVIDER_UPDATE,
            f"Configured provider '{name}' with {len(models)} models",
            provider=name,
            models=len(models),
        )
        return provider

    def sync_models(
        self,
        name: str,
        model_ids: Optional[Sequence[str]] = None,
        default_max_tokens: Optional[int] = None,
        key_provider: Optional[KeyProvider] = None,
    ) -> ModelChanges:
        """Make ``model_ids`` the provider's model list.

        Entries already configured are kept exactly as they are; new ids are
        resolved; ids not selected are dropped. Order follows ``model_ids``,
        or the provider's listing when ``model_ids`` is None (every offered
        model). Nothing is written when the set of models is unchanged.

        Raises:
            ProviderNotFoundError: If no provider has this name
            ModelNotFoundError: If a new id is not offered by the provider
            SourceFetchError: If the model listing cannot be fetched
        """
        document = self.store.read()
        entry = self._require_provider(document, name)
        api_url = entry.get("api_url")
        if not isinstance(api_url, str):
            raise ConfigurationError(f"Provider '{name}' has no api_url", path=document.path)

        existing: Dict[str, Any] = {}
        for model in entry.get("available_models") or []:
            if isinstance(model, dict) and isinstance(model.get("name"), str):
                existing.setdefault(model["name"], model)

        by_id: Dict[str, RawModelRecord] = {}
        if model_ids is None:
            by_id = self._offered_models(api_url, name, key_provider)
            selected = list(by_id)
        else:
            selected = _unique(model_ids)
        selected_set = set(selected)
        additions = [model_id for model_id in selected if model_id not in existing]
        removals = [model_name for model_name in existing if model_name not in selected_set]
        if not additions and not removals:
            return ModelChanges()

        resolved: Dict[str, Any] = {}
        if additions:
            if not by_id:
                by_id = self._offered_models(api_url, name, key_provider)
            unknown = [model_id for model_id in additions if model_id not in by_id]
            if unknown:
                raise ModelNotFoundError(f"Models not offered by '{name}': {', '.join(unknown)}", models=unknown)

            max_tokens = self._requested_max_tokens(default_max_tokens)
            models = self.resolver.resolve_models([by_id[model_id] for model_id in additions], max_tokens)
            resolved = {model.name: model.to_dict() for model in models}

        payload = [existing[model_id] if model_id in existing else resolved[model_id] for model_id in selected]

        document = self.store.read()
        self._require_provider(document, name)
        self.store.write(jsonc.set_value(document.text, provider_path(name, "available_models"), payload))

        log_info(
            LogEvent.PROVIDER_UPDATE,
            f"Updated models of '{name}': +{len(additions)} -{len(removals)}",
            provider=name,
            additions=additions,
            removals=removals,
        )
        return ModelChanges(additions=additions, removals=removals)

    def update_models(
        self,
        name: str,
        model_names: Sequence[str],
        max_tokens: Optional[int] = None,
        capabilities: Optional[Mapping[str, bool]] = None,
    ) -> int:
        """Change the token limit and/or capability flags of configured models.

        Args:
            name: Provider name
            model_names: Models to change
            max_tokens: New token limit, if it should change
            capabilities: Capability flags to set, e.g. ``{"images": True}``

        Returns:
            Number of models changed

        Raises:
            ProviderNotFoundError: If no provider has this name
            ModelNotFoundError: If a model is not configured for the provider
            InvalidPathError: If a model entry is shaped so it cannot be patched
        """
        capabilities = dict(capabilities or {})
        if max_tokens is None and not capabilities:
            raise ValueError("Nothing to update: give max_tokens or capabilities")
        if max_tokens is not None:
            _validate_max_tokens(max_tokens)
        for flag, value in capabilities.items():
            if flag not in CAPABILITY_FIELDS:
                raise ValueError(f"Unknown capability '{flag}'; expected one of {', '.join(CAPABILITY_FIELDS)}")
            if not isinstance(value, bool):
                raise ValueError(f"Capability '{flag}' must be true or false")

        document = self.store.read()
        entry = self._require_provider(document, name)
        models = entry.get("available_models")
        positions: Dict[str, int] = {}
        if isinstance(models, list):
            for index, model in enumerate(models):
                if isinstance(model, dict) and isinstance(model.get("name"), str):
                    positions.setdefault(model["name"], index)

        targets = _unique(model_names)
        missing = [model_name for model_name in targets if model_name not in positions]
        if missing:
            raise ModelNotFoundError(f"Models not configured for '{name}': {', '.join(missing)}", models=missing)

        text = document.text
        for model_name in targets:
            base = provider_path(name, "available_models", positions[model_name])
            if max_tokens is not None:
                text = jsonc.set_value(text, [*base, "max_tokens"], max_tokens)
            for flag, value in capabilities.items():
                text = jsonc.set_value(text, [*base, "capabilities", flag], value)

        self.store.write(text)
        log_info(
            LogEvent.PROVIDER_UPDATE,
            f"Updated {len(targets)} model(s) of '{name}'",
            provider=name,
            models=targets,
        )
        return len(targets)

    def delete_provider(self, name: str) -> None:
        """Remove a provider.

        Raises:
            ProviderNotFoundError: If no provider has this name
        """
        document = self.store.read()
        self._require_provider(document, name)
        self.store.write(jsonc.remove_value(document.text, provider_path(name)))
        log_info(LogEvent.PROVIDER_UPDATE, f"Deleted provider '{name}'", provider=name)

    def rename_provider(self, old_name: str, new_name: str) -> None:
        """Move a provider entry to a new name.

        Raises:
            ProviderNotFoundError: If ``old_name`` is not configured
            ProviderExistsError: If ``new_name`` is already taken
        """
        new_name = new_name.strip()
        if not new_name:
            raise ValueError("Provider name is required")
        if new_name == old_name:
            raise ValueError("Name unchanged")

        document = self.store.read()
        entry = self._require_provider(document, old_name)
        if new_name in document.providers():
            raise ProviderExistsError(f"Provider '{new_name}' already exists", provider=new_name)

        text = jsonc.set_value(document.text, provider_path(new_name), entry)
        text = jsonc.remove_value(text, provider_path(old_name))
        self.store.write(text)
        log_info(LogEvent.PROVIDER_UPDATE, f"Renamed provider '{old_name}' to '{new_name}'", provider=new_name)
