"""
Structured error types for tenantry.

Every failure raised by the data-access core is a ``TenantryError`` subclass
carrying a category, a retry hint, structured context and the chained
underlying cause.

Manifesto:
    - **Typed Error Hierarchy:** Callers branch on the error type, not on
      message text (a missing tenant is a client error, a dead database is
      not).
    - **Explicit Retry Semantics:** Each error knows whether retrying can help.
    - **Rich Context:** Errors carry scope, tenant and migration metadata for
      logging.
    - **Error Chaining:** The driver exception is preserved as ``__cause__``.

Architecture:
    ::

        TenantryError  (category, retryable, context, cause)
        ├── TransientError (retryable=True)
        │   └── DatabaseConnectionError
        ├── ConfigError
        │   ├── MissingConfigError
        │   └── InvalidConfigError
        ├── ValidationError
        │   └── FilterError            (also a TypeError)
        ├── MissingIdentityError
        ├── InvalidScopeError          (also a ValueError)
        └── DatabaseError
            ├── NoActiveTransactionError
            └── MigrationError

Examples:
    >>> error = MissingIdentityError("tenant")
    >>> error.retryable
    False
    >>> error.category.value
    'SCOPE'

    >>> try:
    ...     raise OSError("disk full")
    ... except OSError as e:
    ...     raise MigrationError("Migration 0001_a failed", migration="0001_a", cause=e)
    Traceback (most recent call last):
    ...
    MigrationError: Migration 0001_a failed

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, tenantry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    NETWORK = "NETWORK"           # Connection, timeout, DNS
    DATABASE = "DATABASE"         # Connection, query, transaction

    # Caller errors
    VALIDATION = "VALIDATION"     # Malformed filters, bad values
    SCOPE = "SCOPE"               # Unknown scope, missing tenant/unit identity

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"             # Missing config, invalid settings

    # Schema evolution
    MIGRATION = "MIGRATION"       # Migration unit failures

    # Internal errors
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the scope coordinates every data-access failure has;
    anything else goes into ``metadata``. ``to_dict()`` serializes only the
    fields that are set.

    Examples:
        >>> ctx = ErrorContext(scope="tenant", identity="acme")
        >>> ctx.to_dict()
        {'scope': 'tenant', 'identity': 'acme'}
    """

    scope: str | None = None
    identity: str | None = None
    driver: str | None = None
    migration: str | None = None
    request_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["scope", "identity", "driver", "migration", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TenantryError(Exception):
    """
    Base exception for all tenantry errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TenantryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DatabaseError("Query failed").with_context(scope="tenant", identity="acme")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(TenantryError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """The underlying network or file connection could not be established."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TenantryError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None, **kwargs: Any):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}", **kwargs)


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None, **kwargs: Any):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}", **kwargs)


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(TenantryError):
    """
    Caller-supplied data is malformed.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class FilterError(ValidationError, TypeError):
    """Malformed operator/value combination in a query filter."""

    pass


# =============================================================================
# SCOPE ERRORS
# =============================================================================


class MissingIdentityError(TenantryError):
    """A tenant/unit operation ran without an identity and defaults were not allowed."""

    default_category = ErrorCategory.SCOPE
    default_retryable = False

    def __init__(self, scope: str, message: str | None = None):
        self.scope = scope
        super().__init__(
            message or f"{scope.capitalize()} ID not available in context",
            context=ErrorContext(scope=scope),
        )


class InvalidScopeError(TenantryError, ValueError):
    """Unknown scope-kind."""

    default_category = ErrorCategory.SCOPE
    default_retryable = False

    def __init__(self, scope: Any, message: str | None = None):
        self.scope = scope
        super().__init__(
            message or f"Invalid scope: {scope!r} (expected core, tenant or unit)",
            context=ErrorContext(scope=str(scope)),
        )


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(TenantryError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class NoActiveTransactionError(DatabaseError):
    """``close``/``rollback`` was called without a matching ``open``."""

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(
            f"No active transaction for scope: {scope}. Call open() first.",
            context=ErrorContext(scope=scope),
        )


class MigrationError(DatabaseError):
    """A migration unit failed; ``migration`` names the unit."""

    default_category = ErrorCategory.MIGRATION

    def __init__(self, message: str, *, migration: str, **kwargs: Any):
        self.migration = migration
        super().__init__(message, **kwargs)
        self.context.migration = migration


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, TenantryError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TenantryError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TenantryError",
    # Transient
    "TransientError",
    "DatabaseConnectionError",
    # Config
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    # Validation
    "ValidationError",
    "FilterError",
    # Scope
    "MissingIdentityError",
    "InvalidScopeError",
    # Database
    "DatabaseError",
    "NoActiveTransactionError",
    "MigrationError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
