"""Subscription handler for ``firewall.delete.aws``.

Each inbound message gets its own ``Event`` and is driven through
process -> validate -> delete -> complete.  Handlers share nothing but
the publisher, so the bus may run several of them concurrently.
"""

from __future__ import annotations

import logging
import uuid

from firewall_deleter.core.config import Topics
from firewall_deleter.core.errors import (
    DecodeError,
    FatalConnectorError,
    InvalidEventError,
)
from firewall_deleter.core.interfaces import (
    IEventBus,
    IPublisher,
    ISecurityGroupDeleter,
)
from firewall_deleter.observability.logger import set_trace_id

from .event import Event

logger = logging.getLogger(__name__)


class FirewallDeleteHandler:
    """Deletes the security group named by each inbound request."""

    def __init__(
        self,
        publisher: IPublisher,
        deleter: ISecurityGroupDeleter,
        topics: Topics | None = None,
    ) -> None:
        self._publisher = publisher
        self._deleter = deleter
        self._topics = topics or Topics()

    @property
    def topics(self) -> Topics:
        return self._topics

    async def register(self, bus: IEventBus, group: str) -> None:
        """Subscribe this handler to the inbound topic."""
        await bus.subscribe(self._topics.inbound, group, self.handle)
        logger.info("listening for %s", self._topics.inbound)

    async def handle(self, data: bytes) -> None:
        event = Event(self._publisher, self._topics)
        set_trace_id(str(uuid.uuid4()))

        try:
            await event.process(data)
        except DecodeError:
            return

        if event.id:
            set_trace_id(event.id)

        try:
            event.validate()
        except InvalidEventError as exc:
            await event.error(exc)
            return

        try:
            await self._deleter.delete_security_group(event.delete_request())
        except FatalConnectorError:
            raise
        except Exception as exc:
            logger.warning(
                "Security group %s deletion failed",
                event.payload.security_group_aws_id,
                exc_info=True,
            )
            await event.error(exc)
            return

        await event.complete()

    __call__ = handle
