import pytest

from alphaview.config import settings as settings_module
from alphaview.config.settings import DEFAULT_RELAY_URLS, get_settings

ENV_KEYS = (
    "RELAY_URLS",
    "CACHE_TTL_SECONDS",
    "REFERENCE_CURRENCY",
    "QUOTE_CURRENCY",
    "FETCH_MAX_SWEEPS",
    "AUTO_REFRESH",
    "REFRESH_INTERVAL_SECONDS",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: False)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    settings = get_settings()
    assert settings.relay_urls == DEFAULT_RELAY_URLS
    assert settings.cache_ttl_seconds == 300
    assert settings.fetch_max_sweeps == 3
    assert settings.reference_currency == "EUR"
    assert settings.quote_currency == "USD"
    assert settings.fx_initial_rate == pytest.approx(1 / 1.08)
    assert settings.refresh_interval_seconds == 60.0


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("RELAY_URLS", "https://one.example/?, ,https://two.example/?u=")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("REFERENCE_CURRENCY", "gbp")
    monkeypatch.setenv("PORT", "not-a-number")
    settings = get_settings()
    assert settings.relay_urls == ("https://one.example/?", "https://two.example/?u=")
    assert settings.cache_ttl_seconds == 60
    assert settings.reference_currency == "GBP"
    assert settings.port == 8000


def test_auto_refresh_can_be_disabled(monkeypatch) -> None:
    monkeypatch.setenv("AUTO_REFRESH", "false")
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "30")
    assert get_settings().refresh_interval_seconds == 0.0
