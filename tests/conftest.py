"""Shared fixtures."""

import pytest

_ENV_VARS = (
    "WEBHOOK_ID",
    "WATCHTOWER_API_KEY",
    "WATCHTOWER_URL",
    "BIND",
    "PORT",
    "WATCH_ONLY_FOR_LATEST_TAG",
    "DELAY_SECONDS",
    "MAX_BODY_BYTES",
    "SHUTDOWN_GRACE_SECONDS",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
