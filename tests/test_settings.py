"""Tests for reading and writing the settings document."""

import os
import stat
from pathlib import Path

import pytest

from zed_provider_manager.errors import ConfigFileNotFoundError, MalformedDocumentError
from zed_provider_manager.settings import SettingsDocument, SettingsStore, provider_path

from .helpers import SAMPLE_SETTINGS


class TestSettingsDocument:
    """Tests for parsed settings."""

    def test_providers_in_document_order(self) -> None:
        document = SettingsDocument.from_text(SAMPLE_SETTINGS)

        assert list(document.providers()) == ["OpenRouter", "Ollama"]
        configs = document.provider_configs()
        assert configs["OpenRouter"].model_names == ["openai/gpt-4o"]
        assert configs["OpenRouter"].available_models[0].capabilities.images is True
        assert configs["Ollama"].api_url == "http://localhost:11434/v1"

    def test_no_providers_section(self) -> None:
        assert SettingsDocument.from_text('{"theme": "One Dark"}').providers() == {}
        assert SettingsDocument.from_text('{"language_models": []}').providers() == {}
        assert SettingsDocument.from_text("").data == {}

    def test_unreadable_provider_is_skipped(self) -> None:
        text = (
            '{"language_models": {"openai_compatible": {'
            '"bad": {"available_models": []}, "worse": 3, '
            '"good": {"api_url": "http://h/v1", "available_models": [{"name": "m"}]}}}}'
        )
        configs = SettingsDocument.from_text(text).provider_configs()

        assert list(configs) == ["good"]
        model = configs["good"].available_models[0]
        assert model.display_name == "m"
        assert model.max_tokens == 8192
        assert model.capabilities.tools is True

    def test_malformed_carries_path(self) -> None:
        with pytest.raises(MalformedDocumentError) as excinfo:
            SettingsDocument.from_text('{"a": ', path="/tmp/settings.json")
        assert excinfo.value.path == "/tmp/settings.json"

    def test_root_must_be_object(self) -> None:
        with pytest.raises(MalformedDocumentError):
            SettingsDocument.from_text("[1, 2]")

    def test_provider_path(self) -> None:
        assert provider_path("X", "available_models", 0) == [
            "language_models",
            "openai_compatible",
            "X",
            "available_models",
            0,
        ]


class TestSettingsStore:
    """Tests for the file-backed store."""

    def test_read(self, settings_file: Path) -> None:
        document = SettingsStore(settings_file).read()
        assert document.text == SAMPLE_SETTINGS
        assert document.path == str(settings_file)

    def test_missing_file(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "nope.json")
        assert not store.exists()
        with pytest.raises(ConfigFileNotFoundError) as excinfo:
            store.read()
        assert excinfo.value.path == str(tmp_path / "nope.json")

    def test_write_replaces_atomically(self, settings_file: Path) -> None:
        os.chmod(settings_file, 0o600)
        store = SettingsStore(settings_file)

        store.write('{\r\n  "a": 1\r\n}\r\n')

        assert settings_file.read_bytes() == b'{\r\n  "a": 1\r\n}\r\n'
        assert stat.S_IMODE(settings_file.stat().st_mode) == 0o600
        assert [p.name for p in settings_file.parent.iterdir()] == ["settings.json"]

    def test_write_creates_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "new" / "settings.json"
        SettingsStore(path).write("{}\n")
        assert path.read_text() == "{}\n"

    def test_path_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZPM_SETTINGS_PATH", str(tmp_path / "custom.json"))
        assert SettingsStore().path == tmp_path / "custom.json"
