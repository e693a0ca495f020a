"""Tests for Settings defaults, validation and environment loading."""

import pytest

from physio_pubmed.shared.exceptions import ConfigurationError
from physio_pubmed.shared.settings import DEFAULT_EUTILS_URL, Settings

ENV_VARS = (
    "PUBMED_EUTILS_BASE_URL",
    "NCBI_API_KEY",
    "NCBI_EMAIL",
    "NCBI_TOOL",
    "PUBMED_RATE_LIMIT_INTERVAL",
    "PUBMED_CACHE_TTL",
    "PUBMED_CACHE_MAX_ENTRIES",
    "PUBMED_DEFAULT_PAGE_SIZE",
    "PUBMED_MAX_RESULTS",
    "PUBMED_REQUEST_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.base_url == DEFAULT_EUTILS_URL
        assert settings.api_key is None
        assert settings.rate_limit_interval == 0.35
        assert settings.cache_ttl == 300.0
        assert settings.cache_max_entries == 500
        assert settings.default_page_size == 20
        assert settings.max_results_limit == 100

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"rate_limit_interval": -1},
            {"cache_ttl": 0},
            {"cache_max_entries": 0},
            {"default_page_size": 0},
            {"default_page_size": 200},
            {"request_timeout": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            Settings(**kwargs)

    def test_as_dict_round_trips(self):
        settings = Settings(api_key="abc", cache_ttl=60)
        assert Settings(**settings.as_dict()) == settings


class TestFromEnv:
    def test_empty_environment_gives_defaults(self, clean_env):
        assert Settings.from_env() == Settings()

    def test_reads_environment(self, clean_env):
        clean_env.setenv("NCBI_API_KEY", "key-123")
        clean_env.setenv("NCBI_EMAIL", "pt@clinic.org")
        clean_env.setenv("PUBMED_RATE_LIMIT_INTERVAL", "0.1")
        clean_env.setenv("PUBMED_CACHE_MAX_ENTRIES", "50")
        clean_env.setenv("PUBMED_EUTILS_BASE_URL", "http://localhost:8080/eutils")

        settings = Settings.from_env()

        assert settings.api_key == "key-123"
        assert settings.email == "pt@clinic.org"
        assert settings.rate_limit_interval == 0.1
        assert settings.cache_max_entries == 50
        assert settings.base_url == "http://localhost:8080/eutils"

    def test_blank_values_ignored(self, clean_env):
        clean_env.setenv("NCBI_API_KEY", "   ")
        assert Settings.from_env().api_key is None

    def test_overrides_win(self, clean_env):
        clean_env.setenv("NCBI_EMAIL", "env@example.com")
        settings = Settings.from_env(email="explicit@example.com", api_key=None)
        assert settings.email == "explicit@example.com"

    def test_unparseable_number(self, clean_env):
        clean_env.setenv("PUBMED_CACHE_TTL", "five minutes")
        with pytest.raises(ConfigurationError, match="PUBMED_CACHE_TTL"):
            Settings.from_env()
