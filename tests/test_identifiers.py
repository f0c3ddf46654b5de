"""Tests for model identifier normalization."""

from zed_provider_manager.identifiers import NormalizedIdentifier, normalize, suffix, tokens


class TestNormalize:
    """Tests for the canonical form of an id."""

    def test_lowercases_and_strips(self) -> None:
        assert normalize("  OpenAI/GPT-4o  ") == "openai/gpt-4o"

    def test_drops_variant_tag(self) -> None:
        """Everything from the first colon on is a variant tag."""
        assert normalize("meta-llama/Llama-3-8B:free") == "meta-llama/llama-3-8b"
        assert normalize("qwen3:8b:q4") == "qwen3"

    def test_empty(self) -> None:
        assert normalize("") == ""
        assert suffix("") == ""
        assert tokens("") == []


class TestSuffixAndTokens:
    """Tests for the suffix and token views."""

    def test_suffix_is_last_segment(self) -> None:
        assert suffix("accounts/fireworks/models/Qwen3-Coder:latest") == "qwen3-coder"
        assert suffix("gpt-4o") == "gpt-4o"

    def test_tokens_split_on_non_alphanumerics(self) -> None:
        assert tokens("meta-llama/Llama-3.1_8B") == ["meta", "llama", "llama", "3", "1", "8b"]

    def test_from_raw(self) -> None:
        ident = NormalizedIdentifier.from_raw("OpenAI/GPT-4o:beta")
        assert ident.canonical == "openai/gpt-4o"
        assert ident.suffix == "gpt-4o"
        assert ident.tokens == frozenset(["openai", "gpt", "4o"])
