"""Shared fixtures for the provider manager tests."""

from pathlib import Path
from typing import List

import pytest

from zed_provider_manager.records import RegistryEntry
from zed_provider_manager.registry_cache import RegistryCache

from .helpers import SAMPLE_SETTINGS


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """A settings file with two configured providers."""
    path = tmp_path / "zed" / "settings.json"
    path.parent.mkdir()
    path.write_text(SAMPLE_SETTINGS, encoding="utf-8")
    return path


@pytest.fixture
def registry_entries() -> List[RegistryEntry]:
    """A small registry resembling OpenRouter's catalog."""
    return [
        RegistryEntry(
            id="openai/gpt-4o",
            name="OpenAI: GPT-4o",
            canonical_slug="openai/gpt-4o",
            supported_parameters=["tools", "tool_choice", "parallel_tool_calls"],
            input_modalities=["text", "image"],
            max_completion_tokens=16384,
        ),
        RegistryEntry(
            id="meta-llama/llama-3.1-8b-instruct",
            name="Meta: Llama 3.1 8B Instruct",
            canonical_slug="meta-llama/llama-3.1-8b-instruct",
            supported_parameters=["temperature", "top_p"],
            input_modalities=["text"],
            max_completion_tokens=4096,
        ),
        RegistryEntry(
            id="qwen/qwen3-coder",
            name="Qwen: Qwen3 Coder",
            canonical_slug="qwen/qwen3-coder",
            supported_parameters=["tools"],
            input_modalities=["text"],
            max_completion_tokens=None,
        ),
    ]


@pytest.fixture
def registry_cache(registry_entries: List[RegistryEntry]) -> RegistryCache:
    """A registry cache that serves the sample registry without HTTP."""
    return RegistryCache(fetcher=lambda: registry_entries)
