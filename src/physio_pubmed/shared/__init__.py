"""
Shared Layer - Cross-Cutting Concerns

Contains:
- exceptions: Error hierarchy
- async_utils: Rate limiter and caller-level retry
- settings: Environment-driven configuration
"""

from .async_utils import RateLimiter, retry_async
from .exceptions import (
    ConfigurationError,
    EnrichmentError,
    InvalidParameterError,
    InvalidRequestError,
    NetworkError,
    ParseError,
    PhysioPubMedError,
    RateLimitError,
    ResponseFormatError,
    SearchTimeoutError,
    ServiceUnavailableError,
    TransportError,
    ValidationError,
    is_retryable_error,
)
from .settings import Settings

__all__ = [
    "RateLimiter",
    "retry_async",
    "Settings",
    "PhysioPubMedError",
    "ValidationError",
    "InvalidRequestError",
    "InvalidParameterError",
    "TransportError",
    "NetworkError",
    "RateLimitError",
    "ServiceUnavailableError",
    "ResponseFormatError",
    "SearchTimeoutError",
    "EnrichmentError",
    "ParseError",
    "ConfigurationError",
    "is_retryable_error",
]
