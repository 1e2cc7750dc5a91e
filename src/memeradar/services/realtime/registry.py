"""WebSocket subscriber registry.

Owns the set of connected subscribers, pushes changed records to them, and
runs an application-level heartbeat. One registry per process, created by
the application lifespan and passed to whoever needs to publish.

Client messages:
    {"type": "SUBSCRIBE"}     resume record updates (default on connect)
    {"type": "UNSUBSCRIBE"}   pause record updates, stay connected
    {"type": "PING"}          answered with a pong event
    {"type": "PONG"}          answer to a heartbeat ping
"""

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from fastapi import WebSocket

from memeradar.models.messages import AdminEvent, Envelope, admin_message, record_update
from memeradar.models.token import TokenRecord, UpdateSource

log = structlog.get_logger(__name__)

# Unanswered heartbeat probes tolerated before a connection is dropped
MAX_MISSED_PINGS = 2


@dataclass(eq=False)
class Subscriber:
    """One connected WebSocket client.

    Attributes:
        websocket: The accepted connection.
        id: Short identifier for log context.
        subscribed: Whether record updates are delivered.
        missed_pings: Consecutive heartbeat probes without a pong.
        connected_at: Connection time.
    """

    websocket: WebSocket
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    subscribed: bool = True
    missed_pings: int = 0
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SubscriberRegistry:
    """Connected subscribers, broadcast and heartbeat.

    A failed send removes only the connection it was sent to.

    Example:
        registry = SubscriberRegistry(heartbeat_interval=30)
        registry.start_heartbeat()
        delivered = await registry.publish_changes(records, UpdateSource.SCHEDULER)
        await registry.stop_heartbeat()
    """

    def __init__(
        self,
        heartbeat_interval: float = 30.0,
        max_missed_pings: int = MAX_MISSED_PINGS,
    ) -> None:
        self.heartbeat_interval = heartbeat_interval
        self.max_missed_pings = max_missed_pings
        self._subscribers: dict[WebSocket, Subscriber] = {}
        self._heartbeat_task: asyncio.Task[None] | None = None

    @property
    def subscriber_count(self) -> int:
        """Number of open connections (subscribed or paused)."""
        return len(self._subscribers)

    def get(self, websocket: WebSocket) -> Subscriber | None:
        return self._subscribers.get(websocket)

    async def connect(self, websocket: WebSocket) -> Subscriber:
        """Accept a connection, register it and send the connected ack."""
        await websocket.accept()
        subscriber = Subscriber(websocket=websocket)
        self._subscribers[websocket] = subscriber
        log.info(
            "subscriber_connected",
            subscriber=subscriber.id,
            total=self.subscriber_count,
        )
        await self.send(subscriber, admin_message(AdminEvent.CONNECTED, "Connected to token updates"))
        return subscriber

    async def disconnect(self, websocket: WebSocket) -> None:
        """Forget a connection. Safe to call more than once."""
        subscriber = self._subscribers.pop(websocket, None)
        if subscriber is not None:
            log.info(
                "subscriber_disconnected",
                subscriber=subscriber.id,
                total=self.subscriber_count,
            )

    async def handle_client_message(self, websocket: WebSocket, raw: str) -> None:
        """Apply one client message. Bad input gets an error event back."""
        subscriber = self._subscribers.get(websocket)
        if subscriber is None:
            return

        try:
            message = json.loads(raw)
        except ValueError:
            log.debug("subscriber_invalid_json", subscriber=subscriber.id)
            await self.send(subscriber, admin_message(AdminEvent.ERROR, "Invalid JSON"))
            return

        message_type = message.get("type") if isinstance(message, dict) else None
        message_type = message_type.upper() if isinstance(message_type, str) else None

        if message_type == "SUBSCRIBE":
            subscriber.subscribed = True
            await self.send(subscriber, admin_message(AdminEvent.SUBSCRIBED))
        elif message_type == "UNSUBSCRIBE":
            subscriber.subscribed = False
            await self.send(subscriber, admin_message(AdminEvent.UNSUBSCRIBED))
        elif message_type == "PING":
            await self.send(subscriber, admin_message(AdminEvent.PONG))
        elif message_type == "PONG":
            subscriber.missed_pings = 0
        else:
            log.debug("subscriber_unknown_message", subscriber=subscriber.id, type=message_type)
            await self.send(
                subscriber,
                admin_message(AdminEvent.ERROR, f"Unknown message type: {message_type}"),
            )

    async def send(self, subscriber: Subscriber, envelope: Envelope) -> bool:
        """Send one envelope; a failure drops the subscriber.

        Returns:
            True if the message was handed to the connection.
        """
        try:
            await subscriber.websocket.send_json(envelope.to_wire())
        except Exception as e:
            log.warning("subscriber_send_failed", subscriber=subscriber.id, error=str(e))
            await self.disconnect(subscriber.websocket)
            return False
        return True

    async def broadcast(self, envelope: Envelope, subscribed_only: bool = True) -> int:
        """Send an envelope to every (subscribed) connection concurrently.

        Returns:
            Number of connections the message was delivered to.
        """
        targets = [
            subscriber
            for subscriber in self._subscribers.values()
            if subscriber.subscribed or not subscribed_only
        ]
        if not targets:
            return 0

        results = await asyncio.gather(*(self.send(s, envelope) for s in targets))
        return sum(results)

    async def publish_changes(self, records: list[TokenRecord], source: UpdateSource) -> int:
        """Push a changed-records update. Nothing is sent for an empty change set."""
        if not records:
            log.debug("publish_skipped_no_changes", source=source.value)
            return 0

        delivered = await self.broadcast(record_update(records, source))
        log.info(
            "changes_published",
            source=source.value,
            records=len(records),
            delivered=delivered,
        )
        return delivered

    async def heartbeat_once(self) -> None:
        """Probe every connection; drop those over the missed-ping limit."""
        for subscriber in list(self._subscribers.values()):
            if subscriber.missed_pings >= self.max_missed_pings:
                log.info(
                    "subscriber_heartbeat_timeout",
                    subscriber=subscriber.id,
                    missed_pings=subscriber.missed_pings,
                )
                await self._drop(subscriber)
                continue

            subscriber.missed_pings += 1
            await self.send(subscriber, admin_message(AdminEvent.PING))

    def start_heartbeat(self) -> None:
        """Start the background heartbeat loop (idempotent)."""
        if self._heartbeat_task is not None and not self._heartbeat_task.done():
            return
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        log.info("heartbeat_started", interval_seconds=self.heartbeat_interval)

    async def stop_heartbeat(self) -> None:
        """Cancel the heartbeat loop and wait for it to finish."""
        if self._heartbeat_task is None:
            return
        self._heartbeat_task.cancel()
        try:
            await self._heartbeat_task
        except asyncio.CancelledError:
            pass
        self._heartbeat_task = None
        log.info("heartbeat_stopped")

    async def close_all(self) -> None:
        """Close every connection (shutdown)."""
        for subscriber in list(self._subscribers.values()):
            await self._drop(subscriber)

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.heartbeat_once()
            except Exception as e:
                log.error("heartbeat_error", error=str(e))

    async def _drop(self, subscriber: Subscriber) -> None:
        await self.disconnect(subscriber.websocket)
        try:
            await subscriber.websocket.close(code=1001)
        except Exception as e:
            log.debug("subscriber_close_failed", subscriber=subscriber.id, error=str(e))
