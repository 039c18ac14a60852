"""Outbox buffering connection-created events between the synchronizer and a sink."""

import threading
from typing import List

from loguru import logger

from noteweave.domain.connections import ConnectionCreated
from noteweave.notifications.base import NotificationSink


class NotificationOutbox:
    """Collects events published during a sync and relays them to a sink on dispatch.

    Delivery is at-least-once from the outbox's point of view: an event whose
    delivery fails stays pending and is retried on the next dispatch.
    """

    def __init__(self) -> None:
        self._pending: List[ConnectionCreated] = []
        self._lock = threading.Lock()

    def publish(self, event: ConnectionCreated) -> None:
        with self._lock:
            self._pending.append(event)

    def pending(self) -> List[ConnectionCreated]:
        with self._lock:
            return list(self._pending)

    def dispatch(self, sink: NotificationSink) -> int:
        """Deliver pending events in publication order.

        Args:
            sink: Sink receiving the events

        Returns:
            Number of events delivered
        """
        with self._lock:
            batch, self._pending = self._pending, []

        delivered = 0
        failed = []
        for event in batch:
            try:
                sink.notify(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Failed to deliver connection notification "
                    f"{event.source_note_id} -> {event.target_note_id}: {e}"
                )
                failed.append(event)

        if failed:
            with self._lock:
                self._pending = failed + self._pending
        return delivered


class LoggingNotificationSink:
    """Sink that only logs events; used when no notification service is wired in."""

    def notify(self, event: ConnectionCreated) -> None:
        logger.info(
            f"Notify {event.recipient_owner_id}: {event.actor_id} linked note "
            f"{event.source_note_id} to {event.target_note_id}"
        )
