"""Webhook identity checks, tag filtering and header handling."""

from __future__ import annotations

import hmac
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from towerproxy.webhooks.models import LATEST_TAG, ForwardDecision, PushNotification

# Recomputed by the outbound client for its own connection
_HOP_BY_HOP = frozenset({
    "connection",
    "content-length",
    "host",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


class PayloadDecodeError(ValueError):
    """The request body is not a decodable push notification."""


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def validate_webhook_id(provided: str, configured: str) -> bool:
    """Check the path identifier against the configured one.

    Returns False if no identifier is configured.
    """
    if not configured:
        return False
    return hmac.compare_digest(provided.encode(), configured.encode())


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def parse_push_notification(body: bytes) -> PushNotification:
    try:
        return PushNotification.model_validate_json(body)
    except ValidationError as exc:
        raise PayloadDecodeError(str(exc)) from exc


def evaluate_filter(body: bytes, watch_only_latest: bool) -> ForwardDecision:
    """Decide whether a webhook should be forwarded.

    With filtering off every webhook is forwarded and the body is never
    parsed. With filtering on only a ``latest`` tag is forwarded; a body
    that cannot be decoded raises PayloadDecodeError.
    """
    if not watch_only_latest:
        return ForwardDecision(forward=True)

    notification = parse_push_notification(body)
    return ForwardDecision(
        forward=notification.tag == LATEST_TAG,
        tag=notification.tag,
        repository_name=notification.repository_name,
    )


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

def forwardable_headers(headers: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
    """Every request header except Authorization and hop-by-hop headers.

    Repeated headers keep every value, in order.
    """
    items: Iterable[tuple[str, str]] = headers.items()
    return tuple(
        (name, value)
        for name, value in items
        if name.lower() != "authorization" and name.lower() not in _HOP_BY_HOP
    )


def build_outbound_headers(
    forwarded: Iterable[tuple[str, str]], api_key: str
) -> list[tuple[str, str]]:
    injected = [
        ("Authorization", f"Bearer {api_key}"),
        ("Content-Type", "application/json"),
    ]
    injected_names = {name.lower() for name, _ in injected}
    headers = [(name, value) for name, value in forwarded if name.lower() not in injected_names]
    headers.extend(injected)
    return headers
