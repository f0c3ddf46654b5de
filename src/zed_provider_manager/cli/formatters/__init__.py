"""CLI formatters package."""

from .json import (
    format_available_json,
    format_json,
    format_models_json,
    format_providers_json,
    format_yaml,
)
from .table import (
    create_console,
    format_available_table,
    format_models_table,
    format_providers_table,
)

__all__ = [
    "format_json",
    "format_yaml",
    "format_providers_json",
    "format_models_json",
    "format_available_json",
    "create_console",
    "format_providers_table",
    "format_models_table",
    "format_available_table",
]
