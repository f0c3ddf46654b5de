"""HTTP fakes and sample documents shared by the tests."""

import json
from typing import Any, Iterable, Optional
from unittest.mock import Mock

import requests

SAMPLE_SETTINGS = """// Zed settings
{
  "theme": "One Dark", // keep me
  "language_models": {
    "openai_compatible": {
      "OpenRouter": { // my router
        "api_url": "https://openrouter.ai/api/v1",
        "available_models": [
          {
            "name": "openai/gpt-4o",
            "display_name": "gpt-4o",
            "max_tokens": 8192,
            "capabilities": {
              "tools": true,
              "images": true,
              "parallel_tool_calls": true,
              "prompt_cache_key": false
            }
          }
        ]
      },
      "Ollama": {
        "api_url": "http://localhost:11434/v1",
        "available_models": []
      }
    }
  }
}
"""


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.text)
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def make_session(responses: Iterable[Any]) -> Mock:
    """Session whose ``get`` returns (or raises) the given items in order."""
    session = Mock()
    session.get.side_effect = list(responses)
    return session


def models_payload(*records: dict) -> dict:
    return {"object": "list", "data": list(records)}
