"""
Exception Hierarchy for the Cosmos DB MongoDB Database Reconciler

Every failure the reconciler surfaces derives from ``CosmosMongoError`` and
carries an error code, a context dictionary identifying the database and
account involved, the underlying cause and, where one exists, a recovery
suggestion for the user.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Programmatic classification of reconciler failures."""

    ALREADY_EXISTS = "ALREADY_EXISTS"
    MALFORMED_IDENTIFIER = "MALFORMED_IDENTIFIER"
    MIGRATION_FAILURE = "MIGRATION_FAILURE"
    CONFLICTING_CAPACITY_MODE = "CONFLICTING_CAPACITY_MODE"
    THROUGHPUT_RETROFIT = "THROUGHPUT_RETROFIT"
    REMOTE_READ_FAILURE = "REMOTE_READ_FAILURE"
    REMOTE_OPERATION_FAILURE = "REMOTE_OPERATION_FAILURE"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    MISSING_CONFIGURATION = "MISSING_CONFIGURATION"


class CosmosMongoError(Exception):
    """
    Base exception class for all reconciler errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    kind: ErrorKind = ErrorKind.REMOTE_OPERATION_FAILURE

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.kind.value
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = f"[{self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


def _database_context(
    kwargs: Dict[str, Any],
    name: Optional[str] = None,
    account_name: Optional[str] = None,
) -> Dict[str, Any]:
    context = kwargs.get("context", {})
    if name:
        context["name"] = name
    if account_name:
        context["account_name"] = account_name
    return context


class AlreadyExistsError(CosmosMongoError):
    """Raised when a create finds the database already present remotely."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, message: str, resource_id: str, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault(
            "recovery_suggestion",
            f"Import the existing database into state using ID {resource_id!r}",
        )
        super().__init__(message, **kwargs)
        self.resource_id = resource_id


class MalformedIdentifierError(CosmosMongoError):
    """Raised when a resource identifier does not have the expected layout."""

    kind = ErrorKind.MALFORMED_IDENTIFIER

    def __init__(
        self, message: str, identifier: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if identifier is not None:
            context["identifier"] = identifier
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class MigrationError(CosmosMongoError):
    """Raised when persisted state cannot be upgraded to the current schema."""

    kind = ErrorKind.MIGRATION_FAILURE

    def __init__(
        self,
        message: str,
        from_version: Optional[int] = None,
        identifier: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if from_version is not None:
            context["from_version"] = from_version
        if identifier is not None:
            context["identifier"] = identifier
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class ConflictingCapacityModeError(CosmosMongoError):
    """Raised when fixed throughput and autoscale would be set together."""

    kind = ErrorKind.CONFLICTING_CAPACITY_MODE

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        account_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _database_context(kwargs, name, account_name)
        kwargs.setdefault(
            "recovery_suggestion",
            "Set either throughput or autoscale_settings, not both. Switching "
            "between the two modes requires migrating the database outside of "
            "this tool and then refreshing its state",
        )
        super().__init__(message, **kwargs)


class ThroughputRetrofitError(CosmosMongoError):
    """Raised when throughput is configured on a database created without it."""

    kind = ErrorKind.THROUGHPUT_RETROFIT

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        account_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _database_context(kwargs, name, account_name)
        kwargs.setdefault(
            "recovery_suggestion",
            "If the database has not been created with an initial throughput, "
            "you cannot configure it later. Recreate the database with a "
            "throughput or autoscale setting",
        )
        super().__init__(message, **kwargs)


class RemoteOperationError(CosmosMongoError):
    """Raised when a call against the Cosmos DB control plane fails."""

    kind = ErrorKind.REMOTE_OPERATION_FAILURE

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        account_name: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = _database_context(kwargs, name, account_name)
        if operation:
            context["operation"] = operation
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class RemoteReadError(RemoteOperationError):
    """Raised when reading remote state fails for a reason other than absence."""

    kind = ErrorKind.REMOTE_READ_FAILURE


class InvariantViolationError(CosmosMongoError):
    """Raised when the control plane breaks a guarantee it is expected to keep."""

    kind = ErrorKind.INVARIANT_VIOLATION

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        account_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _database_context(kwargs, name, account_name)
        super().__init__(message, **kwargs)


class OperationTimeoutError(CosmosMongoError):
    """Raised when an operation exceeds its deadline."""

    kind = ErrorKind.OPERATION_TIMEOUT

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        timeout_value: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if operation:
            context["operation"] = operation
        if timeout_value:
            context["timeout"] = f"{timeout_value}s"
        kwargs["context"] = context
        kwargs.setdefault(
            "recovery_suggestion",
            "Read the database before retrying; the remote change may still "
            "have been applied",
        )
        super().__init__(message, **kwargs)
        self.operation = operation
        self.timeout_value = timeout_value


# Configuration-related exceptions
class ConfigurationError(CosmosMongoError):
    """Base class for configuration-related errors."""

    kind = ErrorKind.INVALID_CONFIGURATION


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(
        self, message: str, config_section: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if config_section:
            context["config_section"] = config_section
        kwargs["context"] = context
        kwargs.setdefault(
            "recovery_suggestion", "Check configuration file and environment variables"
        )
        super().__init__(message, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    kind = ErrorKind.MISSING_CONFIGURATION

    def __init__(
        self, message: str, missing_keys: Optional[list[str]] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)


def wrap_azure_exception(
    exc: Exception,
    message: str,
    name: str,
    account_name: str,
    operation: str,
    resource_group: Optional[str] = None,
    read: bool = False,
) -> RemoteOperationError:
    """
    Wrap an Azure SDK exception with the identity of the database involved.

    Args:
        exc: The original exception
        message: What the reconciler was doing when the call failed
        name: Database name
        account_name: Cosmos DB account name
        operation: Short name of the remote call
        resource_group: Optional resource group name
        read: Wrap as a RemoteReadError instead of a RemoteOperationError

    Returns:
        RemoteOperationError: Wrapped exception with enhanced context
    """
    context: Dict[str, Any] = {}
    if resource_group:
        context["resource_group"] = resource_group
    status_code = getattr(exc, "status_code", None)
    if status_code:
        context["status_code"] = status_code

    error_class = RemoteReadError if read else RemoteOperationError
    return error_class(
        f"{message} {name!r} (Account: {account_name!r})",
        name=name,
        account_name=account_name,
        operation=operation,
        context=context,
        cause=exc,
    )
