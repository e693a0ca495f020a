"""
Runtime settings for the PubMed search client.

Everything the core needs from the outside world (endpoint, credentials,
rate limit, cache sizing, page sizes) lives here so nothing is hard-coded
in the search path. Values come from keyword arguments or environment
variables.

Environment Variables:
    PUBMED_EUTILS_BASE_URL: E-utilities base URL
    NCBI_API_KEY: Optional NCBI API key
    NCBI_EMAIL: Contact email sent with every request
    NCBI_TOOL: Tool name sent with every request
    PUBMED_RATE_LIMIT_INTERVAL: Seconds between dispatches (default: 0.35)
    PUBMED_CACHE_TTL: Cache time-to-live in seconds (default: 300)
    PUBMED_CACHE_MAX_ENTRIES: Cache capacity (default: 500)
    PUBMED_DEFAULT_PAGE_SIZE: Default max_results (default: 20)
    PUBMED_MAX_RESULTS: Upper bound accepted for max_results (default: 100)
    PUBMED_REQUEST_TIMEOUT: Per-request HTTP timeout in seconds (default: 30)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any

from .exceptions import ConfigurationError

DEFAULT_EUTILS_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
DEFAULT_EMAIL = "physio-pubmed@example.com"
DEFAULT_TOOL = "physio-pubmed-search"


@dataclass(frozen=True)
class Settings:
    """Externally injectable configuration."""

    base_url: str = DEFAULT_EUTILS_URL
    api_key: str | None = None
    email: str = DEFAULT_EMAIL
    tool: str = DEFAULT_TOOL
    rate_limit_interval: float = 0.35
    cache_ttl: float = 300.0
    cache_max_entries: int = 500
    default_page_size: int = 20
    max_results_limit: int = 100
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.rate_limit_interval < 0:
            raise ConfigurationError("rate_limit_interval must be >= 0")
        if self.cache_ttl <= 0:
            raise ConfigurationError("cache_ttl must be > 0")
        if self.cache_max_entries < 1:
            raise ConfigurationError("cache_max_entries must be >= 1")
        if not 1 <= self.default_page_size <= self.max_results_limit:
            raise ConfigurationError(
                f"default_page_size must be between 1 and max_results_limit ({self.max_results_limit})"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """
        Build settings from environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        values: dict[str, Any] = {
            "base_url": os.environ.get("PUBMED_EUTILS_BASE_URL", "").strip() or DEFAULT_EUTILS_URL,
            "api_key": os.environ.get("NCBI_API_KEY", "").strip() or None,
            "email": os.environ.get("NCBI_EMAIL", "").strip() or DEFAULT_EMAIL,
            "tool": os.environ.get("NCBI_TOOL", "").strip() or DEFAULT_TOOL,
            "rate_limit_interval": _env_number("PUBMED_RATE_LIMIT_INTERVAL", 0.35, float),
            "cache_ttl": _env_number("PUBMED_CACHE_TTL", 300.0, float),
            "cache_max_entries": _env_number("PUBMED_CACHE_MAX_ENTRIES", 500, int),
            "default_page_size": _env_number("PUBMED_DEFAULT_PAGE_SIZE", 20, int),
            "max_results_limit": _env_number("PUBMED_MAX_RESULTS", 100, int),
            "request_timeout": _env_number("PUBMED_REQUEST_TIMEOUT", 30.0, float),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def as_dict(self) -> dict[str, Any]:
        """Plain dict, used to feed the DI container configuration."""
        return asdict(self)


def _env_number(name: str, default: float, cast: type) -> Any:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
