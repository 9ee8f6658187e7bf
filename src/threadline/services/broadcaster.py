"""Real-time delivery of chat events.

This module provides the DeliveryBroadcaster that pushes ledger changes to
connected clients. It includes:

- Pluggable transports (Redis pub/sub, HTTP push API, log, null)
- Per-user channel addressing derived from the event's recipient
- "Broadcast to others" exclusion of the originating connection
- Fire-and-forget semantics: transport failures are logged, never raised

Delivery is best-effort. The ledger stays the source of truth and clients
that miss a push catch up on their next conversation or thread refresh.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol

import httpx
import redis

from threadline.core.settings import Settings, settings
from threadline.models import Message
from threadline.schemas.events import MessageCreated, MessageRead
from threadline.schemas.message import MessageResponse
from threadline.services.errors import TransportError

# Configure logger for this module
logger = logging.getLogger(__name__)

ChatEventModel = MessageCreated | MessageRead
Scheduler = Callable[..., Any]


class BroadcastTransport(Protocol):
    """Anything able to hand an event to subscribers of a channel."""

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        """Publish ``payload`` under ``event_name`` on ``channel``.

        Raises:
            TransportError: If the event could not be handed off.
        """


class RedisBroadcastTransport:
    """Publish events on Redis pub/sub channels.

    The envelope matches what socket servers subscribed to Redis expect:
    ``{"event": ..., "data": ..., "socket": ...}`` where ``socket`` names the
    connection that must not receive its own echo.
    """

    def __init__(self, url: str, *, timeout_seconds: float) -> None:
        self._redis = redis.Redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        envelope = json.dumps({"event": event_name, "data": dict(payload), "socket": socket_id})
        try:
            receivers = self._redis.publish(channel, envelope)
        except redis.RedisError as exc:
            raise TransportError(f"Redis publish to {channel} failed: {exc}") from exc
        logger.debug("Published %s to %s (subscribers: %s)", event_name, channel, receivers)

    def close(self) -> None:
        """Release the Redis connection pool."""
        self._redis.close()


class HttpBroadcastTransport:
    """Publish events through an HTTP push API (Pusher/Reverb style)."""

    def __init__(self, url: str, *, api_key: str | None, timeout_seconds: float) -> None:
        self._url = url
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(timeout=httpx.Timeout(timeout_seconds), headers=headers)

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "name": event_name,
            "channels": [channel],
            "data": dict(payload),
        }
        if socket_id:
            body["socket_id"] = socket_id

        try:
            response = self._client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise TransportError(f"Broadcast request failed: {exc}") from exc

        if response.is_error:
            raise TransportError(
                f"Unexpected broadcast response ({response.status_code}) for {event_name}",
            )

    def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        self._client.close()


class LogBroadcastTransport:
    """Write events to the log instead of a socket server (development)."""

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        logger.info(
            "Broadcasting [%s] on channel [%s] with payload: %s",
            event_name,
            channel,
            json.dumps(dict(payload), default=str),
        )


class NullBroadcastTransport:
    """Discard every event."""

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        return None


def build_transport(config: Settings | None = None) -> BroadcastTransport:
    """Create the transport selected by ``BROADCAST_DRIVER``."""
    config = config or settings
    driver = config.broadcast_driver

    if driver == "redis":
        return RedisBroadcastTransport(
            config.effective_broadcast_redis_url,
            timeout_seconds=config.broadcast_timeout_seconds,
        )
    if driver == "http":
        if not config.broadcast_http_url:
            raise ValueError("BROADCAST_HTTP_URL is required for the http broadcast driver")
        return HttpBroadcastTransport(
            config.broadcast_http_url,
            api_key=config.broadcast_http_key,
            timeout_seconds=config.broadcast_timeout_seconds,
        )
    if driver == "null":
        return NullBroadcastTransport()
    return LogBroadcastTransport()


class _TransportSingleton:
    """Singleton wrapper for the configured transport."""

    _instance: BroadcastTransport | None = None

    @classmethod
    def get_instance(cls) -> BroadcastTransport:
        """Get or create the singleton transport instance."""
        if cls._instance is None:
            cls._instance = build_transport()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Close and forget the current instance, if any."""
        instance, cls._instance = cls._instance, None
        close = getattr(instance, "close", None)
        if close is not None:
            close()


def get_transport() -> BroadcastTransport:
    """Return the process-wide broadcast transport."""
    return _TransportSingleton.get_instance()


def close_transport() -> None:
    """Shut down the process-wide transport; the next use builds a new one."""
    _TransportSingleton.reset()


def _run_now(func: Callable[..., Any], *args: Any) -> None:
    func(*args)


class DeliveryBroadcaster:
    """Publishes chat events to per-user channels.

    Callers must only hand events over after the ledger write they describe
    has been committed. ``scheduler`` decides when delivery runs: the HTTP
    layer passes ``BackgroundTasks.add_task`` so that publishing happens
    after the response is sent; the default delivers immediately.
    """

    def __init__(
        self,
        transport: BroadcastTransport | None = None,
        *,
        socket_id: str | None = None,
        scheduler: Scheduler | None = None,
        channel_prefix: str | None = None,
    ) -> None:
        """Initialize the broadcaster.

        Args:
            transport: Transport to publish through. If None, uses the global transport.
            socket_id: Connection id of the acting client, excluded from delivery.
            scheduler: ``add_task``-style callable used to defer delivery.
            channel_prefix: Channel namespace; defaults to ``BROADCAST_CHANNEL_PREFIX``.
        """
        self.transport = transport or get_transport()
        self.socket_id = socket_id
        self._schedule = scheduler or _run_now
        self._channel_prefix = (
            settings.broadcast_channel_prefix if channel_prefix is None else channel_prefix
        )

    def channel_for(self, user_id: int) -> str:
        """Return the private channel name of ``user_id``."""
        return f"{self._channel_prefix}{user_id}"

    def message_created(self, message: Message) -> MessageCreated:
        """Announce ``message`` to its receiver."""
        event = MessageCreated(
            receiver_id=message.receiver_id,
            message=MessageResponse.model_validate(message),
        )
        self.publish_batch([event])
        return event

    def messages_read(self, message_ids: Iterable[int], original_sender_id: int) -> list[MessageRead]:
        """Send one read receipt per message id to the original sender, in order."""
        events = [
            MessageRead(message_id=message_id, original_sender_id=original_sender_id)
            for message_id in message_ids
        ]
        if events:
            self.publish_batch(events)
        return events

    def publish_batch(self, events: Sequence[ChatEventModel]) -> None:
        """Schedule delivery of ``events`` as a single ordered batch."""
        self._schedule(self.deliver, list(events))

    def deliver(self, events: Sequence[ChatEventModel]) -> int:
        """Publish ``events`` in order and return how many were handed off.

        A failing event is logged and skipped; the rest of the batch still goes out.
        """
        delivered = 0
        for event in events:
            channel = self.channel_for(event.recipient_id)
            try:
                self.transport.publish(
                    channel,
                    event.event,
                    event.model_dump(mode="json"),
                    socket_id=self.socket_id,
                )
            except TransportError as exc:
                logger.warning("Dropped %s event on %s: %s", event.event, channel, exc)
                continue
            delivered += 1
        return delivered
