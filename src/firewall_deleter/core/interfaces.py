"""Protocols for the connector's external collaborators."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from pydantic import BaseModel, Field

MessageHandler = Callable[[bytes], Coroutine[Any, Any, None]]


class DeleteRequest(BaseModel):
    """Everything the provider needs to delete one security group."""

    region: str
    access_key: str = Field(repr=False)
    access_token: str = Field(repr=False)
    security_group_id: str


class IPublisher(Protocol):
    """Outbound side of the bus. Must accept concurrent publishes."""

    async def publish(self, topic: str, data: bytes) -> None: ...


class IEventBus(IPublisher, Protocol):
    """Publish/subscribe bus carrying raw message bytes."""

    async def subscribe(
        self,
        topic: str,
        group: str,
        handler: MessageHandler,
    ) -> None: ...

    async def start(self) -> None: ...
    async def stop(self) -> None: ...


class ISecurityGroupDeleter(Protocol):
    """Removes a security group from the cloud provider."""

    async def delete_security_group(self, request: DeleteRequest) -> None: ...
