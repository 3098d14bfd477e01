"""In-memory event bus for tests and the one-shot ``handle`` command.

Handlers run inline, in publish order, so a publish returns only after
every downstream message it caused has been delivered.  Every published
message is kept in the history for inspection.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from firewall_deleter.core.errors import FatalConnectorError
from firewall_deleter.core.interfaces import MessageHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryDeadLetter:
    """A message whose handler raised."""

    topic: str
    group: str
    data: bytes
    error: str


class MemoryEventBus:
    """In-memory event bus. Safe within a single asyncio event loop.

    ``FatalConnectorError`` raised by a handler is not absorbed: it
    propagates to the publisher so the process can stop.  Any other handler
    exception is logged and kept as a dead letter.
    """

    def __init__(self) -> None:
        # topic -> [(group, handler)]
        self._handlers: dict[str, list[tuple[str, MessageHandler]]] = defaultdict(list)
        self._history: list[tuple[str, bytes]] = []
        self._dead_letters: list[MemoryDeadLetter] = []
        self._messages_processed = 0

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def publish(self, topic: str, data: bytes) -> None:
        self._history.append((topic, data))

        for group, handler in list(self._handlers.get(topic, ())):
            try:
                await handler(data)
            except FatalConnectorError:
                raise
            except Exception as exc:
                logger.exception("Handler error on %s/%s", topic, group)
                self._dead_letters.append(
                    MemoryDeadLetter(topic, group, data, str(exc))
                )
            else:
                self._messages_processed += 1

    async def subscribe(
        self,
        topic: str,
        group: str,
        handler: MessageHandler,
    ) -> None:
        self._handlers[topic].append((group, handler))

    @property
    def dead_letters(self) -> list[MemoryDeadLetter]:
        return list(self._dead_letters)

    @property
    def messages_processed(self) -> int:
        """Deliveries whose handler returned normally."""
        return self._messages_processed

    def get_history(self, topic: str | None = None) -> list[tuple[str, bytes]]:
        """Published messages, optionally filtered by topic."""
        if topic is None:
            return list(self._history)
        return [(t, d) for t, d in self._history if t == topic]
