"""
Exception hierarchy for the generator.

Every failure the compiler can detect is fatal to the run: the input document
is static, so retrying would only reproduce the same error. The CLI catches
``GeneratorError`` and exits with the class-level ``exit_code``.

    GeneratorError (exit 1)
    +-- InvalidInvocation       (exit 2)
    +-- EmptyOrInvalidDocument
    +-- MalformedDocument
    +-- UnresolvedReference
    +-- InvalidResourceShape
    +-- UnsupportedSchemaShape
    +-- ConfigError
"""

EXIT_FAILURE = 1
EXIT_INVALID_USAGE = 2


class GeneratorError(Exception):
    """Base class for all fatal generation errors."""

    exit_code: int = EXIT_FAILURE


class InvalidInvocation(GeneratorError):
    """Raised when the command is given the wrong number of input arguments."""

    exit_code = EXIT_INVALID_USAGE


class EmptyOrInvalidDocument(GeneratorError):
    """Raised when the input is too short (or unreadable) to be an API document."""


class MalformedDocument(GeneratorError):
    """Raised when the input cannot be decoded as JSON or YAML."""

    def __init__(self, message: str, cause: str | None = None):
        super().__init__(message)
        self.cause = cause


class UnresolvedReference(GeneratorError):
    """Raised when a ``$ref`` points at a schema that does not exist."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Unresolved schema reference '{name}'.")
        self.name = name


class InvalidResourceShape(GeneratorError):
    """Raised when a schema classified as a resource is not an object."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(
            message or f"Resource schema '{name}' must be an object schema."
        )
        self.name = name


class UnsupportedSchemaShape(GeneratorError):
    """Raised when a schema cannot be mapped to any supported variant."""

    def __init__(self, path: str, message: str | None = None):
        super().__init__(message or f"Unsupported schema shape at '{path}'.")
        self.path = path


class ConfigError(GeneratorError):
    """Raised when the generator configuration file is invalid."""
