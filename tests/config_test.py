from __future__ import annotations

import pytest

from config import AppSettings
from services.octopus_client import OctopusClient
from services.retrying_fetcher import RetryPolicy, build_default_fetcher


def test_settings_have_working_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AGILE_TARIFF_CODE", raising=False)

    settings = AppSettings(_env_file=None)  # type: ignore[call-arg]

    assert settings.base_url == "https://api.octopus.energy"
    assert settings.retry_max_attempts == 3
    assert settings.retry_backoff_seconds == 2.0


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGILE_TARIFF_CODE", "E-1R-AGILE-24-10-01-C")
    monkeypatch.setenv("AGILE_RETRY_MAX_ATTEMPTS", "5")

    settings = AppSettings(_env_file=None)  # type: ignore[call-arg]
    client = OctopusClient(product_code=settings.product_code, tariff_code=settings.tariff_code)

    assert settings.retry_max_attempts == 5
    assert client.default_url.endswith("/electricity-tariffs/E-1R-AGILE-24-10-01-C/standard-unit-rates/")


def test_default_fetcher_uses_configured_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGILE_RETRY_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("AGILE_RETRY_BACKOFF_SECONDS", "0.5")
    monkeypatch.setenv("AGILE_REQUEST_TIMEOUT_SECONDS", "3")

    fetcher = build_default_fetcher()

    assert fetcher.policy == RetryPolicy(max_attempts=4, backoff_seconds=0.5)
    assert isinstance(fetcher.source, OctopusClient)
    assert fetcher.source.timeout == 3.0
