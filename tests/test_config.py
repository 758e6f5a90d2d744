"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from towerproxy.config import DEFAULT_DELAY_SECONDS, Settings, load_settings


def _required_env(monkeypatch):
    monkeypatch.setenv("WEBHOOK_ID", "hook-123")
    monkeypatch.setenv("WATCHTOWER_API_KEY", "wt-key")


class TestDefaults:
    def test_defaults(self, monkeypatch):
        _required_env(monkeypatch)
        settings = Settings()
        assert settings.webhook_id == "hook-123"
        assert settings.watchtower_api_key == "wt-key"
        assert settings.watchtower_url == "localhost:8080"
        assert settings.port == 3000
        assert settings.bind == "0.0.0.0"
        assert settings.watch_only_for_latest_tag is False
        assert settings.delay_seconds == DEFAULT_DELAY_SECONDS == 20
        assert settings.max_body_bytes == 1024 * 1024

    def test_missing_webhook_id_rejected(self, monkeypatch):
        monkeypatch.setenv("WATCHTOWER_API_KEY", "wt-key")
        with pytest.raises(ValidationError):
            Settings()

    def test_missing_api_key_rejected(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_ID", "hook-123")
        with pytest.raises(ValidationError):
            Settings()

    def test_empty_webhook_id_rejected(self, monkeypatch):
        _required_env(monkeypatch)
        monkeypatch.setenv("WEBHOOK_ID", "")
        with pytest.raises(ValidationError):
            Settings()

    def test_blank_port_and_url_use_defaults(self, monkeypatch):
        _required_env(monkeypatch)
        monkeypatch.setenv("PORT", "")
        monkeypatch.setenv("WATCHTOWER_URL", "")
        settings = Settings()
        assert settings.port == 3000
        assert settings.watchtower_url == "localhost:8080"

    def test_port_from_env(self, monkeypatch):
        _required_env(monkeypatch)
        monkeypatch.setenv("PORT", "8123")
        assert Settings().port == 8123

    def test_settings_are_frozen(self, monkeypatch):
        _required_env(monkeypatch)
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.delay_seconds = 5


class TestWatchOnlyLatest:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "True"])
    def test_true_enables(self, monkeypatch, raw):
        _required_env(monkeypatch)
        monkeypatch.setenv("WATCH_ONLY_FOR_LATEST_TAG", raw)
        assert Settings().watch_only_for_latest_tag is True

    @pytest.mark.parametrize("raw", ["false", "1", "yes", "on", ""])
    def test_anything_else_disables(self, monkeypatch, raw):
        _required_env(monkeypatch)
        monkeypatch.setenv("WATCH_ONLY_FOR_LATEST_TAG", raw)
        assert Settings().watch_only_for_latest_tag is False


class TestDelaySeconds:
    def test_positive_override(self, monkeypatch):
        _required_env(monkeypatch)
        monkeypatch.setenv("DELAY_SECONDS", "45")
        assert Settings().delay_seconds == 45

    def test_explicit_plus_sign_accepted(self, monkeypatch):
        _required_env(monkeypatch)
        monkeypatch.setenv("DELAY_SECONDS", "+7")
        assert Settings().delay_seconds == 7

    @pytest.mark.parametrize("raw", ["0", "-5", "abc", "1.5", "", "5_0", " 5", "5 ", "0x10"])
    def test_invalid_falls_back_to_default(self, monkeypatch, raw):
        _required_env(monkeypatch)
        monkeypatch.setenv("DELAY_SECONDS", raw)
        assert Settings().delay_seconds == DEFAULT_DELAY_SECONDS


class TestUpdateUrl:
    def _settings(self, url):
        return Settings(webhook_id="h", watchtower_api_key="k", watchtower_url=url)

    def test_exact_composition(self):
        assert self._settings("https://wt.example:9999").update_url == "https://wt.example:9999/v1/update"

    def test_default_gets_scheme(self):
        assert self._settings("localhost:8080").update_url == "http://localhost:8080/v1/update"

    def test_trailing_slash_dropped(self):
        assert self._settings("http://watchtower:8080/").update_url == "http://watchtower:8080/v1/update"

    def test_webhook_path(self):
        assert self._settings("localhost:8080").webhook_path == "/api/webhooks/h"


class TestLoadSettings:
    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "WEBHOOK_ID=from-file\n"
            "WATCHTOWER_API_KEY=file-key\n"
            "DELAY_SECONDS=5\n"
            "UNRELATED=ignored\n"
        )
        settings = load_settings(env_file)
        assert settings.webhook_id == "from-file"
        assert settings.delay_seconds == 5

    def test_process_env_wins_over_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("WEBHOOK_ID=from-file\nWATCHTOWER_API_KEY=file-key\n")
        monkeypatch.setenv("WEBHOOK_ID", "from-env")
        assert load_settings(env_file).webhook_id == "from-env"

    def test_without_file_reads_env(self, monkeypatch):
        _required_env(monkeypatch)
        assert load_settings().webhook_id == "hook-123"
