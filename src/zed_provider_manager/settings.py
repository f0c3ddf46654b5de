"""Reading and writing of the Zed settings document.

The document is always read fresh at the start of an operation and written
back in one atomic replace at the end of it. Text is read and written without
newline translation so that untouched bytes stay untouched.
"""

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import jsonc
from .config_paths import get_settings_path
from .errors import ConfigFileNotFoundError, MalformedDocumentError, PathSegment
from .logging import LogEvent, get_logger, log_debug, log_info, log_warning
from .records import ProviderConfig

logger = get_logger(__name__)

LANGUAGE_MODELS_KEY = "language_models"
OPENAI_COMPATIBLE_KEY = "openai_compatible"
PROVIDERS_PATH: List[PathSegment] = [LANGUAGE_MODELS_KEY, OPENAI_COMPATIBLE_KEY]


def provider_path(name: str, *rest: PathSegment) -> List[PathSegment]:
    """Structural path of a provider entry, or of something inside it."""
    return [*PROVIDERS_PATH, name, *rest]


@dataclass(frozen=True)
class SettingsDocument:
    """Settings text together with its parsed value."""

    text: str
    data: Dict[str, Any]
    path: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, path: Optional[str] = None) -> "SettingsDocument":
        """Parse settings text.

        Raises:
            MalformedDocumentError: If the text is not a JSON-with-comments object
        """
        try:
            data = jsonc.parse(text)
        except MalformedDocumentError as e:
            e.path = path
            raise
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedDocumentError("Settings document must contain a JSON object", 0, 1, 1, path=path)
        return cls(text=text, data=data, path=path)

    def providers(self) -> Dict[str, Any]:
        """Raw provider entries under ``language_models.openai_compatible``."""
        language_models = self.data.get(LANGUAGE_MODELS_KEY)
        if not isinstance(language_models, dict):
            return {}
        providers = language_models.get(OPENAI_COMPATIBLE_KEY)
        return providers if isinstance(providers, dict) else {}

    def provider_configs(self) -> Dict[str, ProviderConfig]:
        """Typed provider entries in document order; unreadable entries are skipped."""
        configs: Dict[str, ProviderConfig] = {}
        for name, entry in self.providers().items():
            if not isinstance(entry, dict):
                log_warning(LogEvent.SETTINGS_IO, f"Ignoring provider '{name}': not an object", provider=name)
                continue
            try:
                configs[name] = ProviderConfig.from_dict(entry)
            except ValueError as e:
                log_warning(LogEvent.SETTINGS_IO, f"Ignoring provider '{name}': {e}", provider=name)
        return configs


class SettingsStore:
    """File-backed settings document."""

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        """Initialize the store.

        Args:
            path: Settings file location; resolved from the environment if None
        """
        self.path = Path(path) if path is not None else get_settings_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> SettingsDocument:
        """Read and parse the settings file.

        Raises:
            ConfigFileNotFoundError: If the file does not exist
            MalformedDocumentError: If the file cannot be parsed
        """
        if not self.exists():
            raise ConfigFileNotFoundError(f"Zed settings not found at: {self.path}", path=str(self.path))

        with open(self.path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
        log_debug(LogEvent.SETTINGS_IO, f"Read settings from {self.path}", path=str(self.path))
        return SettingsDocument.from_text(text, str(self.path))

    def write(self, text: str) -> None:
        """Atomically replace the settings file with ``text``.

        The new text is written to a temporary file in the same directory and
        moved over the old file, keeping its permission bits.

        Raises:
            OSError: If the file cannot be written
        """
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=str(directory), prefix=".settings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            if self.path.exists():
                shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError as e:
                logger.error(f"Failed to remove temporary settings file {tmp_name}: {e}")
            raise

        log_info(LogEvent.SETTINGS_IO, f"Wrote settings to {self.path}", path=str(self.path))
