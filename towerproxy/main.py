"""towerproxy entry point: wires the server, forwarder and relay together."""

from __future__ import annotations

import asyncio
import signal
import sys

import click
from pydantic import ValidationError

from towerproxy import __version__
from towerproxy.config import Settings, load_settings
from towerproxy.core.forwarder import DeferredForwarder
from towerproxy.core.relay import WatchtowerRelay
from towerproxy.utils.logging import get_logger, setup_logging
from towerproxy.webhooks.server import WebhookServer

log = get_logger(__name__)


class TowerProxy:
    """Main application orchestrator."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.relay = WatchtowerRelay(settings.update_url, settings.watchtower_api_key)
        self.forwarder = DeferredForwarder(self.relay, settings.delay_seconds)
        self.server = WebhookServer(settings, self.forwarder)

    async def start(self) -> None:
        log.info(
            "towerproxy_starting",
            version=__version__,
            watch_only_for_latest_tag=self.settings.watch_only_for_latest_tag,
            delay_seconds=self.settings.delay_seconds,
            watchtower_url=self.settings.update_url,
        )
        await self.relay.start()
        await self.server.start()
        log.info("towerproxy_ready", webhook_path=self.settings.webhook_path)

    async def stop(self) -> None:
        log.info("towerproxy_stopping")
        # No new deliveries once the server is down
        await self.server.stop()
        await self.forwarder.stop(self.settings.shutdown_grace_seconds)
        await self.relay.close()
        log.info("towerproxy_stopped")


async def run(settings: Settings) -> None:
    app = TowerProxy(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Optional dotenv file to read settings from")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
def cli(env_file: str | None, log_level: str | None) -> None:
    """Relay registry push webhooks to Watchtower."""
    try:
        settings = load_settings(env_file)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]).upper() for err in exc.errors())
        raise click.ClickException(f"Invalid or missing configuration: {fields}") from exc
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
