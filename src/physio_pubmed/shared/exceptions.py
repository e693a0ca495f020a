"""
Unified Exception Hierarchy for Physio PubMed Search.

Required-path failures (validation, core E-utilities calls, deadlines)
surface to callers as these types. Best-effort failures (citation
enrichment, per-article parsing) are built as exceptions too so they can
be logged uniformly, but they are absorbed by the layer that detects them.

Exception Hierarchy:
    PhysioPubMedError (base)
    ├── ValidationError
    │   ├── InvalidRequestError
    │   └── InvalidParameterError
    ├── TransportError
    │   ├── NetworkError
    │   ├── RateLimitError
    │   ├── ServiceUnavailableError
    │   └── ResponseFormatError
    ├── SearchTimeoutError
    ├── EnrichmentError
    ├── ParseError
    └── ConfigurationError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    WARNING = auto()  # Recoverable, degraded output
    ERROR = auto()  # Failed but can retry
    CRITICAL = auto()  # Cannot continue
    TRANSIENT = auto()  # Temporary, retry later


class ErrorCategory(Enum):
    """Categories for error classification."""

    VALIDATION = "validation"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    ENRICHMENT = "enrichment"
    DATA = "data"
    CONFIGURATION = "config"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Structured context attached to every error."""

    operation: str | None = None
    endpoint: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    retry_after: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class PhysioPubMedError(Exception):
    """
    Base exception for all Physio PubMed Search errors.

    Provides:
    - Structured error context
    - Severity and category classification
    - Retry guidance
    - JSON-friendly formatting
    """

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.TRANSPORT,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "type": type(self).__name__,
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.operation:
            result["operation"] = self.context.operation
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(PhysioPubMedError):
    """Malformed or out-of-range input, detected before any network call."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidRequestError(ValidationError):
    """Raised when a SearchRequest fails validation.

    Carries every problem found, not only the first one.
    """

    def __init__(
        self,
        problems: list[str] | tuple[str, ...],
        *,
        context: ErrorContext | None = None,
    ) -> None:
        self.problems = tuple(problems)
        super().__init__(
            f"Invalid search parameters: {', '.join(self.problems)}",
            context=context or ErrorContext(operation="search"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["problems"] = list(self.problems)
        return result


class InvalidParameterError(ValidationError):
    """Raised when a single parameter value is invalid."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = ErrorContext(
            operation=ctx.operation,
            endpoint=ctx.endpoint,
            input_value=value,
            suggestion=f"Expected {expected}",
            retry_after=ctx.retry_after,
            metadata=ctx.metadata,
        )
        self.param_name = param_name
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx,
        )


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(PhysioPubMedError):
    """Non-success status or network failure on a required E-utilities call."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        context: ErrorContext | None = None,
        retryable: bool = False,
    ) -> None:
        ctx = context or ErrorContext(endpoint=endpoint)
        super().__init__(
            message,
            context=ctx,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.TRANSPORT,
            retryable=retryable,
        )
        self.endpoint = endpoint or ctx.endpoint
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.endpoint:
            result["endpoint"] = self.endpoint
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


class NetworkError(TransportError):
    """Connection failure or per-request timeout."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        endpoint: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, endpoint=endpoint, context=context, retryable=True)


class RateLimitError(TransportError):
    """Raised when NCBI answers HTTP 429."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        endpoint: str | None = None,
        retry_after: float = 1.0,
    ) -> None:
        ctx = ErrorContext(
            endpoint=endpoint,
            suggestion="Wait and retry the request",
            retry_after=retry_after,
        )
        super().__init__(message, endpoint=endpoint, status_code=429, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class ServiceUnavailableError(TransportError):
    """Raised when NCBI answers with a 5xx status."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"NCBI: {message}",
            endpoint=endpoint,
            status_code=status_code,
            retryable=True,
        )
        self.severity = ErrorSeverity.TRANSIENT


class ResponseFormatError(TransportError):
    """Raised when a required response body cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, endpoint=endpoint, retryable=False)


# =============================================================================
# Deadline, Enrichment and Parse Errors
# =============================================================================


class SearchTimeoutError(PhysioPubMedError):
    """Raised when a caller-supplied deadline expires before a search completes."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Search did not complete within {timeout:g}s",
            context=ErrorContext(operation="search", input_value=timeout),
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.TIMEOUT,
            retryable=False,
        )
        self.timeout = timeout


class EnrichmentError(PhysioPubMedError):
    """Citation-count batch failure. Logged and degraded, never raised to callers."""

    def __init__(
        self,
        ids: list[str] | tuple[str, ...],
        cause: BaseException | None = None,
    ) -> None:
        self.ids = tuple(ids)
        reason = f": {cause}" if cause else ""
        super().__init__(
            f"Citation lookup failed for {len(self.ids)} ids{reason}",
            context=ErrorContext(operation="citation_counts", input_value=self.ids),
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.ENRICHMENT,
            retryable=False,
        )


class ParseError(PhysioPubMedError):
    """Raised when one article's record cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
    ) -> None:
        full_msg = f"Parse error ({source}): {message}" if source else f"Parse error: {message}"
        super().__init__(
            full_msg,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.DATA,
            retryable=False,
        )


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PhysioPubMedError):
    """Raised for invalid settings."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


def is_retryable_error(error: BaseException) -> bool:
    """Check if an error should be retried by a caller-level retry loop."""
    if isinstance(error, PhysioPubMedError):
        return error.retryable
    return False
