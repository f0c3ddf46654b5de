"""JSON and YAML output formatters for CLI."""

import json
import sys
from typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO

import yaml

from ...records import ProviderConfig, RawModelRecord


def format_json(data: Any, output: Optional[TextIO] = None, indent: int = 2) -> None:
    """Format data as JSON and write to output.

    Args:
        data: Data to format
        output: Output stream (defaults to stdout)
        indent: JSON indentation level
    """
    if output is None:
        output = sys.stdout

    json.dump(data, output, indent=indent, ensure_ascii=False, default=str)
    output.write("\n")


def format_yaml(data: Any, output: Optional[TextIO] = None) -> None:
    """Format data as YAML and write to output."""
    if output is None:
        output = sys.stdout

    yaml.safe_dump(data, output, sort_keys=False, allow_unicode=True)


def format_providers_json(providers: Mapping[str, ProviderConfig]) -> Dict[str, Any]:
    """Format configured providers for structured output.

    Args:
        providers: Providers in document order

    Returns:
        Formatted data structure
    """
    items = [
        {"name": name, "api_url": provider.api_url, "model_count": len(provider.available_models)}
        for name, provider in providers.items()
    ]
    return {"providers": items, "count": len(items)}


def format_models_json(provider_name: str, provider: ProviderConfig) -> Dict[str, Any]:
    """Format a provider's configured models for structured output."""
    return {
        "provider": provider_name,
        "api_url": provider.api_url,
        "models": [model.to_dict() for model in provider.available_models],
        "count": len(provider.available_models),
    }


def format_available_json(records: Iterable[RawModelRecord], configured: Iterable[str]) -> Dict[str, Any]:
    """Format a provider's remote model listing for structured output."""
    active = set(configured)
    items: List[Dict[str, Any]] = [
        {
            "id": record.id,
            "configured": record.id in active,
            "max_completion_tokens": record.max_completion_tokens,
        }
        for record in records
    ]
    return {"models": items, "count": len(items)}
