"""Application bootstrap.

Wires settings, logging, the bus, the provider and the dispatcher, then
serves ``firewall.delete.aws`` until a shutdown signal or a fatal error.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any

from .bus.bus import create_event_bus
from .bus.memory_bus import MemoryEventBus
from .connector.dispatcher import FirewallDeleteHandler
from .core.config import Settings, load_settings
from .core.enums import BusBackend
from .core.errors import ConnectorError
from .core.interfaces import ISecurityGroupDeleter
from .observability.logger import get_logger, setup_logging
from .providers.aws import AWSSecurityGroupDeleter
from .providers.dry_run import DryRunDeleter

logger = get_logger(__name__)


def build_deleter(settings: Settings) -> ISecurityGroupDeleter:
    if settings.aws.dry_run:
        return DryRunDeleter()
    return AWSSecurityGroupDeleter(endpoint_url=settings.aws.endpoint_url)


async def run(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> None:
    """Main entry point. Load config, wire modules, serve until stopped."""
    settings = load_settings(config_path=config_path, overrides=overrides)
    settings.validate_service_mode()

    setup_logging(
        settings.observability.log_level,
        settings.observability.log_format,
    )
    logger.info(
        "Starting firewall deleter",
        redis_url=settings.redis_url,
        group=settings.consumer_group,
        dry_run=settings.aws.dry_run,
    )

    bus = create_event_bus(
        settings.bus_backend,
        settings.redis_url,
        max_stream_length=settings.max_stream_length,
        block_ms=settings.block_ms,
        batch_size=settings.batch_size,
    )
    handler = FirewallDeleteHandler(bus, build_deleter(settings), settings.topics)
    await handler.register(bus, settings.consumer_group)
    await bus.start()

    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    stopper = asyncio.create_task(stop_event.wait())
    consumers = asyncio.create_task(bus.wait())
    try:
        await asyncio.wait(
            {stopper, consumers}, return_when=asyncio.FIRST_COMPLETED,
        )
        if consumers.done():
            # Surfaces FatalConnectorError.
            consumers.result()
    finally:
        stopper.cancel()
        consumers.cancel()
        await bus.stop()
        logger.info(
            "Firewall deleter stopped",
            processed=bus.messages_processed,
            failed=len(bus.dead_letters),
        )


async def handle_once(
    payload: bytes,
    settings: Settings | None = None,
) -> tuple[str, bytes]:
    """Push one payload through the dispatcher on an in-memory bus.

    Returns the terminal ``(topic, data)`` pair.

    Raises:
        ConnectorError: the handler raised before publishing a terminal
            message.
    """
    settings = settings or Settings(bus_backend=BusBackend.MEMORY)
    topics = settings.topics

    bus = MemoryEventBus()
    handler = FirewallDeleteHandler(bus, build_deleter(settings), topics)
    await handler.register(bus, settings.consumer_group)
    await bus.start()
    try:
        await bus.publish(topics.inbound, payload)
    finally:
        await bus.stop()

    terminal = [
        (topic, data)
        for topic, data in bus.get_history()
        if topic in (topics.done, topics.error)
    ]
    if not terminal:
        reason = bus.dead_letters[-1].error if bus.dead_letters else "no handler"
        raise ConnectorError(f"Request was not settled: {reason}")
    return terminal[0]
