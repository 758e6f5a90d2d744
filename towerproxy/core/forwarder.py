"""Deferred, fire-and-forget delivery of accepted webhooks."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable

from towerproxy.core.relay import WatchtowerRelay
from towerproxy.utils.logging import get_logger
from towerproxy.webhooks.models import OutboundDelivery

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class DeferredForwarder:
    """Runs one delayed relay call per accepted webhook.

    Each delivery is its own task; deliveries share no state, are never
    deduplicated and are never retried. ``sleep`` is injectable so the
    delay can run on a virtual clock.
    """

    def __init__(
        self,
        relay: WatchtowerRelay,
        delay_seconds: float,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._relay = relay
        self._delay = delay_seconds
        self._sleep = sleep
        self._tasks: set[asyncio.Task[None]] = set()
        self._counter = itertools.count(1)

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, delivery: OutboundDelivery) -> asyncio.Task[None]:
        task = asyncio.create_task(
            self._run(delivery),
            name=f"forward-{delivery.webhook_id}-{next(self._counter)}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log.info(
            "delivery_scheduled",
            webhook_id=delivery.webhook_id,
            delay_seconds=self._delay,
            received_at=delivery.received_at.isoformat(),
            task=task.get_name(),
        )
        return task

    async def _run(self, delivery: OutboundDelivery) -> None:
        log.debug("delivery_delay_started", webhook_id=delivery.webhook_id, delay_seconds=self._delay)
        await self._sleep(self._delay)
        log.debug("delivery_delay_elapsed", webhook_id=delivery.webhook_id)
        try:
            await self._relay.deliver(delivery)
        except Exception:
            log.exception("delivery_error", webhook_id=delivery.webhook_id)

    async def stop(self, grace_seconds: float = 0.0) -> None:
        """Give in-flight deliveries ``grace_seconds`` to finish, then cancel the rest."""
        if not self._tasks:
            return

        log.info("forwarder_draining", pending=len(self._tasks), grace_seconds=grace_seconds)
        _done, pending = await asyncio.wait(set(self._tasks), timeout=grace_seconds)
        for task in pending:
            task.cancel()
            log.warning("delivery_abandoned", task=task.get_name())
        await asyncio.gather(*pending, return_exceptions=True)
