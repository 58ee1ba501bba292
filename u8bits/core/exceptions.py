"""Custom exceptions used throughout the u8bits package."""

from typing import Any, Optional


class U8BitsError(Exception):
    """Base exception for all u8bits errors.

    All package-specific exceptions inherit from this class, so callers can
    catch every generation or configuration failure with a single clause.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """

        super().__init__(message)
        self.details = details or {}


class ConfigurationError(U8BitsError):
    """Raised when a layout file cannot be loaded or fails validation.

    This includes:
    - YAML that does not parse
    - Missing required keys
    - Type references that cannot be imported
    """

    def __init__(
        self,
        config_key: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize configuration error.

        Args:
            config_key: The configuration key that caused the error
            message: Description of what's wrong. If omitted, config_key is
                treated as the message and the key defaults to "configuration".
            details: Additional context
        """
        if message is None:
            message = config_key or "Invalid configuration"
            config_key = "configuration"
        if config_key is None:
            config_key = "configuration"

        full_message = f"Configuration error for '{config_key}': {message}"
        super().__init__(message=full_message, details=details)
        self.config_key = config_key


class GenerationError(U8BitsError):
    """Base exception for everything that blocks accessor generation.

    Generation errors are raised while a host type is being built and never
    from a generated accessor.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if field is not None:
            details = details or {}
            details["field"] = field

        super().__init__(message=message, details=details)
        self.field = field


class GrammarError(GenerationError):
    """Raised when field declaration text is malformed.

    Examples:
    - Missing ':' after the identifier
    - Unknown direction token
    - Wrong number of position arguments
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if line is not None:
            details = details or {}
            details["line"] = line
            details["column"] = column
            message = f"{message} (line {line}, column {column})"
        super().__init__(message=message, details=details)
        self.line = line
        self.column = column


class DuplicateFieldError(GenerationError):
    """Raised when an identifier is declared twice in one generation unit."""

    def __init__(self, identifier: str, details: Optional[dict[str, Any]] = None):
        message = f"Field '{identifier}' is declared more than once"
        super().__init__(message=message, field=identifier, details=details)


class PositionError(GenerationError):
    """Raised when byte or bit coordinates are out of range.

    Examples:
    - bit position 8
    - lsb greater than msb
    - byte index past the end of a host of known size
    """

    def __init__(
        self,
        identifier: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"Invalid position for field '{identifier}': {message}",
            field=identifier,
            details=details,
        )


class ConversionError(GenerationError):
    """Raised when a range field's type lacks the conversion it needs."""

    def __init__(
        self,
        identifier: str,
        type_name: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        details["type"] = type_name
        super().__init__(
            message=f"Field '{identifier}' of type {type_name}: {message}",
            field=identifier,
            details=details,
        )
        self.type_name = type_name
