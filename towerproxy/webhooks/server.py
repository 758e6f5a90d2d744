"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import asyncio
import functools
import json

from aiohttp import web

from towerproxy.config import Settings
from towerproxy.core.forwarder import DeferredForwarder
from towerproxy.utils.logging import get_logger
from towerproxy.webhooks.handlers import (
    PayloadDecodeError,
    evaluate_filter,
    forwardable_headers,
    validate_webhook_id,
)
from towerproxy.webhooks.models import OutboundDelivery

log = get_logger(__name__)

_compact_dumps = functools.partial(json.dumps, separators=(",", ":"))


class WebhookServer:
    """Receives registry push webhooks and queues them for Watchtower."""

    def __init__(self, settings: Settings, forwarder: DeferredForwarder) -> None:
        self._settings = settings
        self._forwarder = forwarder
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._settings.bind, self._settings.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._settings.bind,
            port=self._settings.port,
            endpoint="/api/webhooks/{id}",
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        # Capture the body exactly as sent, without gzip/deflate decoding
        app = web.Application(
            client_max_size=self._settings.max_body_bytes,
            handler_args={"auto_decompress": False},
        )
        app.router.add_get("/health", self._handle_health)
        app.router.add_post("/api/webhooks/{id}", self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.Response(status=200, text="OK")

    async def _handle_webhook(self, request: web.Request) -> web.StreamResponse:
        webhook_id = request.match_info["id"]

        if not validate_webhook_id(webhook_id, self._settings.webhook_id):
            log.warning("webhook_id_rejected", webhook_id=webhook_id)
            return web.Response(status=401, text="Unauthorized")

        # The body stream is consumed exactly once here
        try:
            body = await request.read()
        except (web.HTTPRequestEntityTooLarge, ConnectionError, asyncio.IncompleteReadError) as exc:
            log.error("webhook_body_unreadable", webhook_id=webhook_id, error=repr(exc))
            return web.Response(status=400, text="Bad Request")

        try:
            decision = evaluate_filter(body, self._settings.watch_only_for_latest_tag)
        except PayloadDecodeError as exc:
            log.error("webhook_payload_invalid", webhook_id=webhook_id, error=str(exc))
            log.debug("webhook_payload_raw", body=body.decode("utf-8", errors="replace"))
            return web.Response(status=400, text="Bad Request")

        if self._settings.watch_only_for_latest_tag:
            log.debug(
                "webhook_parsed",
                repository=decision.repository_name,
                tag=decision.tag,
            )

        if not decision.forward:
            log.info(
                "webhook_skipped_not_latest",
                repository=decision.repository_name,
                tag=decision.tag,
            )
            return web.json_response(
                {
                    "message": "Webhook received but not forwarded - tag is not latest",
                    "tag": decision.tag,
                },
                status=200,
                dumps=_compact_dumps,
            )

        delivery = OutboundDelivery(
            webhook_id=webhook_id,
            body=body,
            headers=forwardable_headers(request.headers),
        )

        resp = web.json_response(
            {
                "message": "Webhook received and queued for processing",
                "webhook_id": webhook_id,
            },
            status=201,
            dumps=_compact_dumps,
        )
        # Flush the acknowledgement before the delay starts
        try:
            await resp.prepare(request)
            await resp.write_eof()
        except ConnectionError as exc:
            log.warning("webhook_ack_failed", webhook_id=webhook_id, error=repr(exc))
        else:
            log.info("webhook_accepted", webhook_id=webhook_id)

        self._forwarder.schedule(delivery)
        return resp
