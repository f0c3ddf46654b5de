"""Canonical forms of model identifiers used for fuzzy comparison."""

import re
from dataclasses import dataclass
from typing import FrozenSet, List

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(model_id: str) -> str:
    """Lowercase an id and drop its variant tag.

    Examples:
        >>> normalize(" Meta-Llama/Llama-3-8B:free ")
        'meta-llama/llama-3-8b'
    """
    return model_id.split(":", 1)[0].strip().lower()


def suffix(model_id: str) -> str:
    """Return the last ``/`` segment of the normalized id."""
    return normalize(model_id).split("/")[-1]


def tokens(model_id: str) -> List[str]:
    """Split the normalized id into its alphanumeric runs."""
    return [piece for piece in _NON_ALNUM.split(normalize(model_id)) if piece]


@dataclass(frozen=True)
class NormalizedIdentifier:
    """The three comparable views of one model id."""

    canonical: str
    suffix: str
    tokens: FrozenSet[str]

    @classmethod
    def from_raw(cls, model_id: str) -> "NormalizedIdentifier":
        return cls(canonical=normalize(model_id), suffix=suffix(model_id), tokens=frozenset(tokens(model_id)))
