"""Best-effort capability and token-limit resolution for provider models.

Capabilities come from the provider's own model listing when it says anything
about them. Only when it is completely silent does the resolver look the model
up in the public registry, and any problem with that lookup is ignored.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config_paths import derive_display_name
from .logging import LogEvent, log_debug
from .matcher import DEFAULT_WEIGHTS, MatchWeights, match_registry
from .records import (
    BASELINE_CAPABILITIES,
    CAPABILITY_FIELDS,
    CapabilitySet,
    RawModelRecord,
    ResolvedModelConfig,
)
from .registry_cache import RegistryCache


# Supported-parameter entries that signal tool calling
TOOL_PARAMETERS = frozenset(["tools", "tool_choice"])
PARALLEL_TOOL_PARAMETER = "parallel_tool_calls"
IMAGE_MODALITY = "image"


@dataclass(frozen=True)
class ResolvedCapabilities:
    """Final capabilities and token limit for one model."""

    capabilities: CapabilitySet
    max_tokens: int


def _flag_name(value: str) -> str:
    return value.strip().lower().replace("-", "_")


def derive_partial_capabilities(
    explicit: Optional[Mapping[str, Any]] = None,
    supported_parameters: Optional[Sequence[str]] = None,
    input_modalities: Optional[Sequence[str]] = None,
) -> Dict[str, bool]:
    """Collect the capability flags a data source actually has evidence for.

    An explicit capability mapping wins outright. Otherwise flags are derived
    from the supported-parameter and input-modality lists; an empty or missing
    list is no evidence, so its flags are left out of the result.

    Args:
        explicit: Capability mapping reported by the source, if any
        supported_parameters: Request parameters the model accepts
        input_modalities: Input modalities the model accepts

    Returns:
        Mapping containing only the flags with evidence
    """
    partial: Dict[str, bool] = {}
    if explicit is not None:
        for key, value in explicit.items():
            name = _flag_name(str(key))
            if name in CAPABILITY_FIELDS and isinstance(value, bool):
                partial[name] = value
        return partial

    if supported_parameters:
        params = {_flag_name(p) for p in supported_parameters}
        partial["tools"] = bool(params & TOOL_PARAMETERS)
        partial["parallel_tool_calls"] = PARALLEL_TOOL_PARAMETER in params

    if input_modalities:
        partial["images"] = IMAGE_MODALITY in {m.strip().lower() for m in input_modalities}

    return partial


class CapabilityResolver:
    """Resolve capabilities, falling back to a shared registry cache."""

    def __init__(self, cache: Optional[RegistryCache] = None, weights: MatchWeights = DEFAULT_WEIGHTS) -> None:
        """Initialize the resolver.

        Args:
            cache: Registry cache consulted when the provider is silent; None
                disables the fallback
            weights: Matching weights used for the registry lookup
        """
        self.cache = cache
        self.weights = weights

    def resolve(
        self,
        identifier: str,
        primary_record: Optional[RawModelRecord],
        requested_max_tokens: int,
    ) -> ResolvedCapabilities:
        """Resolve the capability set and token limit for one model.

        Args:
            identifier: Model id as reported by the provider
            primary_record: The provider's record for the model, if available
            requested_max_tokens: Token limit requested by the user

        Returns:
            Fully defined capabilities and a token limit no larger than requested

        Raises:
            ValueError: If ``requested_max_tokens`` is not a positive integer
        """
        if isinstance(requested_max_tokens, bool) or not isinstance(requested_max_tokens, int):
            raise ValueError(f"requested_max_tokens must be an integer, got {requested_max_tokens!r}")
        if requested_max_tokens <= 0:
            raise ValueError(f"requested_max_tokens must be positive, got {requested_max_tokens}")

        partial: Dict[str, bool] = {}
        if primary_record is not None:
            partial = derive_partial_capabilities(
                primary_record.capabilities,
                primary_record.supported_parameters,
                primary_record.input_modalities,
            )
        has_primary_signal = bool(partial)
        values = {**BASELINE_CAPABILITIES, **partial}

        max_tokens = requested_max_tokens
        if primary_record is not None and primary_record.max_completion_tokens:
            max_tokens = min(max_tokens, primary_record.max_completion_tokens)

        if not has_primary_signal and self.cache is not None:
            try:
                entry = match_registry(identifier, self.cache, self.weights)
            except Exception as e:
                log_debug(
                    LogEvent.CAPABILITY_RESOLUTION,
                    f"Registry fallback unavailable for '{identifier}': {e}",
                    model=identifier,
                    error=str(e),
                )
                entry = None

            if entry is not None:
                fallback = derive_partial_capabilities(None, entry.supported_parameters, entry.input_modalities)
                fallback["prompt_cache_key"] = False
                values.update(fallback)
                if entry.max_completion_tokens:
                    max_tokens = min(max_tokens, entry.max_completion_tokens)
                log_debug(
                    LogEvent.CAPABILITY_RESOLUTION,
                    f"Resolved '{identifier}' from registry entry '{entry.id}'",
                    model=identifier,
                    registry_id=entry.id,
                )

        return ResolvedCapabilities(capabilities=CapabilitySet(**values), max_tokens=max_tokens)

    def resolve_model(self, record: RawModelRecord, default_max_tokens: int) -> ResolvedModelConfig:
        """Build the persisted entry for a provider model."""
        resolved = self.resolve(record.id, record, default_max_tokens)
        return ResolvedModelConfig(
            name=record.id,
            display_name=derive_display_name(record.id),
            max_tokens=resolved.max_tokens,
            capabilities=resolved.capabilities,
        )

    def resolve_models(
        self,
        records: Sequence[RawModelRecord],
        default_max_tokens: int,
        max_workers: int = 8,
    ) -> List[ResolvedModelConfig]:
        """Resolve several models concurrently, keeping their order.

        Models that need the registry share a single registry fetch.
        """
        if not records:
            return []
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(records)))) as pool:
            return list(pool.map(lambda record: self.resolve_model(record, default_max_tokens), records))
