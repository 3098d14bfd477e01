"""Publish/subscribe transports carrying raw message bytes."""

from firewall_deleter.bus.bus import create_event_bus
from firewall_deleter.bus.memory_bus import MemoryEventBus
from firewall_deleter.bus.redis_streams import RedisStreamsBus

__all__ = ["MemoryEventBus", "RedisStreamsBus", "create_event_bus"]
