"""
Exceptions raised by jsonconfig.

File system failures are not wrapped: they surface as the built-in ``OSError``.
"""


class JsonConfigError(Exception):
    """Base class for the errors of this package."""
    pass


class ParseError(JsonConfigError, ValueError):
    """Raised when a config file is not a valid config document."""
    pass


class VersionMismatchError(JsonConfigError):
    """Raised when a loaded document has a different version than the current one."""

    def __init__(self, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(
            f"The version '{found}' does not match the expected version '{expected}'"
        )


class KeyNotFoundError(JsonConfigError, KeyError):
    """Raised when an operation requires a key that is not in the config."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"The key could not be found in the config: {key}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DeserializationError(JsonConfigError, ValueError):
    """Raised when a stored value cannot be decoded as the requested type."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class SerializationError(JsonConfigError, TypeError):
    """Raised when a value cannot be encoded to JSON text."""
    pass
