from typing import Protocol

from noteweave.domain.connections import ConnectionCreated


class NotificationSink(Protocol):
    def notify(self, event: ConnectionCreated) -> None:
        """Deliver a connection-created event to its recipient."""
        ...
