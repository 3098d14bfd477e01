"""Redis Streams event bus implementation.

Uses Redis Streams with consumer groups so several connector instances
can share one inbound topic.  Message bodies are stored verbatim under
the ``data`` field; the bus never decodes them.

Delivery policy:
- A message is acked once its handler returns, whatever the outcome.
  Failures are reported by the handler itself on the error topic, so the
  bus never redelivers.
- A handler exception is logged, counted and dead-lettered.
- ``FatalConnectorError`` stops the bus; ``wait()`` re-raises it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field

import redis.asyncio as aioredis

from firewall_deleter.core.errors import FatalConnectorError
from firewall_deleter.core.interfaces import MessageHandler

logger = logging.getLogger(__name__)

DATA_FIELD = b"data"


@dataclass
class DeadLetter:
    """Record of a message whose handler raised."""

    topic: str
    group: str
    msg_id: str
    error: str
    timestamp: float = field(default_factory=time.monotonic)


class RedisStreamsBus:
    """Production event bus backed by Redis Streams.

    Each message in a read batch is handled as its own task, so one slow
    provider call does not hold up the rest of the batch.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        max_stream_length: int = 10_000,
        block_ms: int = 1000,
        batch_size: int = 10,
        consumer_name: str | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._redis: aioredis.Redis | None = None
        self._max_len = max_stream_length
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._consumer_name = consumer_name
        self._subscriptions: list[tuple[str, str, MessageHandler]] = []
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._fatal: FatalConnectorError | None = None

        # Observability
        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[DeadLetter] = []
        self._messages_processed: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect to Redis and start consumer loops."""
        self._redis = aioredis.from_url(self._redis_url)
        self._running = True

        for topic, group, handler in self._subscriptions:
            await self._launch(topic, group, handler)

    async def stop(self) -> None:
        """Stop consumer loops and close Redis connection."""
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def wait(self) -> None:
        """Block until every consumer loop ends.

        Raises:
            FatalConnectorError: a handler reported an unrecoverable error.
        """
        if self._tasks:
            await asyncio.wait(self._tasks, return_when=asyncio.FIRST_EXCEPTION)
        if self._fatal is not None:
            raise self._fatal

    # ------------------------------------------------------------------
    # Publish / Subscribe
    # ------------------------------------------------------------------

    async def publish(self, topic: str, data: bytes) -> None:
        """Append a message to a Redis Stream."""
        if not self._redis:
            raise RuntimeError("RedisStreamsBus not started")

        await self._redis.xadd(
            topic, {DATA_FIELD: data}, maxlen=self._max_len, approximate=True
        )

    async def subscribe(
        self,
        topic: str,
        group: str,
        handler: MessageHandler,
    ) -> None:
        """Register a handler.

        Can be called before or after start().  If the bus is already
        running the consumer group is created and the consume loop is
        launched immediately.
        """
        self._subscriptions.append((topic, group, handler))

        if self._running and self._redis is not None:
            await self._launch(topic, group, handler)

    # ------------------------------------------------------------------
    # Consumer loop
    # ------------------------------------------------------------------

    async def _launch(self, topic: str, group: str, handler: MessageHandler) -> None:
        await self._ensure_group(topic, group)
        task = asyncio.create_task(
            self._consume_loop(topic, group, handler),
            name=f"consumer-{topic}-{group}",
        )
        self._tasks.append(task)

    async def _consume_loop(
        self,
        topic: str,
        group: str,
        handler: MessageHandler,
    ) -> None:
        """Read from the stream, dispatch each message, ack."""
        consumer_name = self._consumer_name or f"{group}-worker"
        assert self._redis is not None
        error_key = f"{topic}/{group}"

        while self._running:
            try:
                entries = await self._redis.xreadgroup(
                    groupname=group,
                    consumername=consumer_name,
                    streams={topic: ">"},
                    count=self._batch_size,
                    block=self._block_ms,
                )
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception(
                    "Consumer loop error for %s/%s", topic, group,
                )
                self._error_counts[error_key] += 1
                await asyncio.sleep(1)
                continue

            if not entries:
                continue

            results = await asyncio.gather(
                *(
                    self._process_message(topic, group, handler, msg_id, fields)
                    for _stream, messages in entries
                    for msg_id, fields in messages
                ),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, FatalConnectorError):
                    self._fatal = result
                    self._running = False
                    raise result
                if isinstance(result, Exception):
                    logger.error(
                        "Could not settle message on %s/%s: %s",
                        topic, group, result,
                    )
                    self._error_counts[error_key] += 1

    async def _process_message(
        self,
        topic: str,
        group: str,
        handler: MessageHandler,
        msg_id: bytes | str,
        fields: dict[bytes, bytes],
    ) -> None:
        """Run the handler for one message and ack it."""
        assert self._redis is not None
        error_key = f"{topic}/{group}"

        data = fields.get(DATA_FIELD)
        if data is None:
            logger.warning("Message %s on %s has no data field", msg_id, topic)
            self._dead_letters.append(
                DeadLetter(
                    topic=topic,
                    group=group,
                    msg_id=_text(msg_id),
                    error="missing_data_field",
                )
            )
            await self._redis.xack(topic, group, msg_id)
            return

        try:
            await handler(data)
            self._messages_processed += 1
        except FatalConnectorError:
            raise
        except Exception as exc:
            self._error_counts[error_key] += 1
            self._dead_letters.append(
                DeadLetter(
                    topic=topic,
                    group=group,
                    msg_id=_text(msg_id),
                    error=str(exc),
                )
            )
            logger.exception(
                "Handler error on %s/%s msg=%s", topic, group, _text(msg_id),
            )
        finally:
            await self._redis.xack(topic, group, msg_id)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_error_counts(self) -> dict[str, int]:
        """Return per-topic/group error counts."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[DeadLetter]:
        """Access the dead-letter list (read-only snapshot)."""
        return list(self._dead_letters)

    @property
    def messages_processed(self) -> int:
        """Total messages successfully processed."""
        return self._messages_processed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_group(self, topic: str, group: str) -> None:
        """Create consumer group, ignoring BUSYGROUP if it already exists."""
        assert self._redis is not None
        try:
            await self._redis.xgroup_create(
                topic, group, id="0", mkstream=True,
            )
        except aioredis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise


def _text(msg_id: bytes | str) -> str:
    return msg_id.decode() if isinstance(msg_id, bytes) else str(msg_id)
