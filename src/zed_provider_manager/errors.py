"""Error types for the Zed provider manager.

This module defines the error types raised while fetching provider models,
resolving capabilities and patching the settings document.
"""

from typing import Optional, Sequence, Union

PathSegment = Union[str, int]


class ProviderManagerError(Exception):
    """Base class for all provider-manager errors.

    This is the parent class for all package-specific exceptions.
    """

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Error message
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return string representation of the error.

        Returns:
            Error message
        """
        return self.message


class ConfigurationError(ProviderManagerError):
    """Base class for settings-file errors.

    This is raised for errors related to locating, reading or parsing the
    settings document.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message
            path: Optional path to the settings file that caused the error
        """
        super().__init__(message)
        self.path = path


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when the settings file does not exist.

    Examples:
        >>> try:
        ...     store.read()
        ... except ConfigFileNotFoundError as e:
        ...     print(f"Settings not found: {e.path}")
    """

    pass


class MalformedDocumentError(ConfigurationError):
    """Raised when the settings text cannot be parsed as JSON with comments.

    Examples:
        >>> try:
        ...     jsonc.parse('{"a": }')
        ... except MalformedDocumentError as e:
        ...     print(f"line {e.line}, column {e.column}: {e}")
    """

    def __init__(
        self,
        message: str,
        offset: int,
        line: int,
        column: int,
        path: Optional[str] = None,
    ) -> None:
        """Initialize malformed document error.

        Args:
            message: Error message
            offset: Character offset of the offending token
            line: 1-based line of the offending token
            column: 1-based column of the offending token
            path: Optional path to the settings file
        """
        super().__init__(message, path)
        self.offset = offset
        self.line = line
        self.column = column


class InvalidPathError(ProviderManagerError):
    """Raised when a patch cannot be realized at the requested path.

    The document is never partially modified when this is raised.

    Examples:
        >>> try:
        ...     jsonc.set_value('{"a": "text"}', ["a", "b"], 1)
        ... except InvalidPathError as e:
        ...     print(f"Rejected patch at {e.path}")
    """

    def __init__(self, message: str, path: Sequence[PathSegment]) -> None:
        """Initialize invalid path error.

        Args:
            message: Error message
            path: The structural path that was rejected
        """
        super().__init__(message)
        self.path = list(path)


class ProviderExistsError(ProviderManagerError):
    """Raised when adding a provider whose name is already configured."""

    def __init__(self, message: str, provider: str) -> None:
        """Initialize provider exists error.

        Args:
            message: Error message
            provider: The conflicting provider name
        """
        super().__init__(message)
        self.provider = provider


class ProviderNotFoundError(ProviderManagerError):
    """Raised when a provider is not present in the settings document."""

    def __init__(self, message: str, provider: str) -> None:
        """Initialize provider not found error.

        Args:
            message: Error message
            provider: The missing provider name
        """
        super().__init__(message)
        self.provider = provider


class ModelNotFoundError(ProviderManagerError):
    """Raised when a requested model id is not offered or not configured."""

    def __init__(self, message: str, models: Sequence[str]) -> None:
        """Initialize model not found error.

        Args:
            message: Error message
            models: The model ids that could not be found
        """
        super().__init__(message)
        self.models = list(models)


class NetworkError(ProviderManagerError):
    """Raised when a network operation fails.

    Examples:
        >>> try:
        ...     fetch_models("https://api.example.com/v1/models")
        ... except NetworkError as e:
        ...     print(f"Network error for {e.url}: {e}")
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        """Initialize network error.

        Args:
            message: Error message
            url: Optional URL that was being accessed
        """
        super().__init__(message)
        self.url = url


class SourceFetchError(NetworkError):
    """Raised when the provider model list cannot be fetched.

    This is fatal for the calling operation: nothing is written.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        preview: Optional[str] = None,
    ) -> None:
        """Initialize source fetch error.

        Args:
            message: Error message
            url: URL that was being accessed
            status_code: HTTP status code, if a response was received
            preview: Leading part of the response body, if any
        """
        super().__init__(message, url)
        self.status_code = status_code
        self.preview = preview


class AuthenticationError(SourceFetchError):
    """Raised when the provider keeps rejecting the request with 401/403."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        env_var: Optional[str] = None,
    ) -> None:
        """Initialize authentication error.

        Args:
            message: Error message
            url: URL that was being accessed
            status_code: The 401 or 403 status code
            env_var: Environment variable expected to hold the API key
        """
        super().__init__(message, url=url, status_code=status_code)
        self.env_var = env_var


class RegistryFetchError(NetworkError):
    """Raised when the public model registry cannot be fetched or decoded.

    The capability resolver treats this as non-fatal.
    """

    pass
