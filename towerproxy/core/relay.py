"""Outbound HTTP relay to the Watchtower update API."""

from __future__ import annotations

import httpx

from towerproxy.utils.logging import get_logger
from towerproxy.webhooks.handlers import build_outbound_headers
from towerproxy.webhooks.models import OutboundDelivery

log = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class WatchtowerRelay:
    """Performs the single POST that triggers a Watchtower update."""

    def __init__(
        self,
        update_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._update_url = update_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def update_url(self) -> str:
        return self._update_url

    async def start(self) -> None:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def deliver(self, delivery: OutboundDelivery) -> None:
        """POST the captured body to Watchtower and log the outcome.

        Nothing is returned or raised for transport failures or non-2xx
        responses; the original caller has already been answered.
        """
        await self.start()
        assert self._http_client is not None

        headers = build_outbound_headers(delivery.headers, self._api_key)
        log.debug(
            "watchtower_request",
            webhook_id=delivery.webhook_id,
            url=self._update_url,
            header_count=len(headers),
        )

        try:
            resp = await self._http_client.post(
                self._update_url,
                content=delivery.body,
                headers=headers,
            )
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            log.error(
                "watchtower_forward_failed",
                webhook_id=delivery.webhook_id,
                url=self._update_url,
                error=repr(exc),
            )
            return

        log.debug(
            "watchtower_response",
            webhook_id=delivery.webhook_id,
            status=resp.status_code,
            headers=dict(resp.headers),
            body=resp.text,
        )

        if resp.status_code == 404:
            log.error(
                "watchtower_endpoint_not_found",
                webhook_id=delivery.webhook_id,
                url=self._update_url,
                hint="check WATCHTOWER_URL; Watchtower serves its HTTP API at /v1/update",
            )

        if resp.is_success:
            log.info(
                "watchtower_forward_succeeded",
                webhook_id=delivery.webhook_id,
                status=resp.status_code,
            )
        else:
            log.warning(
                "watchtower_forward_non_success",
                webhook_id=delivery.webhook_id,
                status=resp.status_code,
            )
