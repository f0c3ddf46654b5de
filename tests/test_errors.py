"""Tests for error classes."""

from zed_provider_manager.errors import (
    AuthenticationError,
    ConfigFileNotFoundError,
    ConfigurationError,
    InvalidPathError,
    MalformedDocumentError,
    ModelNotFoundError,
    NetworkError,
    ProviderExistsError,
    ProviderManagerError,
    ProviderNotFoundError,
    RegistryFetchError,
    SourceFetchError,
)


class TestErrorClasses:
    """Tests for all error classes."""

    def test_base_error(self) -> None:
        error = ProviderManagerError("Base error message")
        assert str(error) == "Base error message"
        assert error.message == "Base error message"

    def test_configuration_errors(self) -> None:
        """Settings errors carry the file path."""
        missing = ConfigFileNotFoundError("not found", path="/x/settings.json")
        assert missing.path == "/x/settings.json"
        assert isinstance(missing, ConfigurationError)

        malformed = MalformedDocumentError("bad", offset=4, line=1, column=5)
        assert (malformed.offset, malformed.line, malformed.column) == (4, 1, 5)
        assert malformed.path is None
        assert isinstance(malformed, ConfigurationError)

    def test_invalid_path_error(self) -> None:
        error = InvalidPathError("nope", ("a", 0))
        assert error.path == ["a", 0]
        assert isinstance(error, ProviderManagerError)

    def test_lookup_errors(self) -> None:
        assert ProviderExistsError("exists", provider="X").provider == "X"
        assert ProviderNotFoundError("missing", provider="Y").provider == "Y"
        assert ModelNotFoundError("missing", models=("a", "b")).models == ["a", "b"]

    def test_network_errors(self) -> None:
        fetch = SourceFetchError("failed", url="http://h/v1/models", status_code=500, preview="oops")
        assert (fetch.url, fetch.status_code, fetch.preview) == ("http://h/v1/models", 500, "oops")
        assert isinstance(fetch, NetworkError)

        auth = AuthenticationError("denied", url="http://h", status_code=401, env_var="H_API_KEY")
        assert auth.env_var == "H_API_KEY"
        assert auth.preview is None
        assert isinstance(auth, SourceFetchError)

        registry = RegistryFetchError("registry down", url="http://r")
        assert isinstance(registry, NetworkError)
        assert not isinstance(registry, SourceFetchError)
