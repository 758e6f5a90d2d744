"""Tests for the CLI and application wiring."""

import aiohttp
from click.testing import CliRunner

from towerproxy.config import Settings
from towerproxy.main import TowerProxy, cli


class TestCli:
    def test_missing_configuration_exits_with_error(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 1
        assert "WEBHOOK_ID" in result.output
        assert "WATCHTOWER_API_KEY" in result.output

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--env-file" in result.output


class TestTowerProxy:
    def test_wiring_uses_settings(self):
        settings = Settings(
            webhook_id="hook-1",
            watchtower_api_key="wt-key",
            watchtower_url="https://wt.example:9999",
            delay_seconds=7,
        )
        app = TowerProxy(settings)
        assert app.relay.update_url == "https://wt.example:9999/v1/update"
        assert app.forwarder.delay_seconds == 7

    async def test_start_serves_health_then_stops(self, unused_tcp_port):
        settings = Settings(
            webhook_id="hook-1",
            watchtower_api_key="wt-key",
            bind="127.0.0.1",
            port=unused_tcp_port,
            shutdown_grace_seconds=0,
        )
        app = TowerProxy(settings)
        await app.start()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(f"http://127.0.0.1:{unused_tcp_port}/health") as resp:
                    assert resp.status == 200
                    assert await resp.text() == "OK"
        finally:
            await app.stop()
