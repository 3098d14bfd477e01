"""Event bus factory.

Creates the appropriate event bus implementation for the configured backend.
"""

from __future__ import annotations

from firewall_deleter.core.enums import BusBackend

from .memory_bus import MemoryEventBus
from .redis_streams import RedisStreamsBus


def create_event_bus(
    backend: BusBackend,
    redis_url: str = "redis://localhost:6379/0",
    **redis_options: int,
) -> MemoryEventBus | RedisStreamsBus:
    """Create an event bus for the given backend.

    - MEMORY: MemoryEventBus (no external deps, used by ``handle`` and tests)
    - REDIS: RedisStreamsBus (shared between connector instances)

    Args:
        backend: Which transport to build.
        redis_url: Redis connection URL (redis only).
        redis_options: ``max_stream_length``, ``block_ms``, ``batch_size``.
    """
    if backend == BusBackend.MEMORY:
        return MemoryEventBus()
    return RedisStreamsBus(redis_url=redis_url, **redis_options)
