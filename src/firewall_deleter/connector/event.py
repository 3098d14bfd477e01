"""Lifecycle of one firewall delete request.

An ``Event`` is created empty for every inbound message and moves through
process -> validate -> complete | error.  Exactly one terminal message is
published per instance: the done payload, the error payload, or (when the
inbound bytes cannot be decoded) the raw bytes echoed to the error topic.
"""

from __future__ import annotations

import logging
from itertools import chain

from firewall_deleter.core.config import Topics
from firewall_deleter.core.enums import ValidationFailure
from firewall_deleter.core.errors import (
    DecodeError,
    FatalConnectorError,
    InvalidEventError,
    LifecycleError,
    SerializationError,
)
from firewall_deleter.core.interfaces import DeleteRequest, IPublisher
from firewall_deleter.core.models import FirewallPayload, Rule

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535


def _check_rule(rule: Rule) -> None:
    if not rule.ip:
        raise InvalidEventError(ValidationFailure.SG_RULE_IP_INVALID)
    if not rule.protocol:
        raise InvalidEventError(ValidationFailure.SG_RULE_PROTOCOL_INVALID)
    if not MIN_PORT <= rule.from_port <= MAX_PORT:
        raise InvalidEventError(ValidationFailure.SG_RULE_FROM_PORT_INVALID)
    if not MIN_PORT <= rule.to_port <= MAX_PORT:
        raise InvalidEventError(ValidationFailure.SG_RULE_TO_PORT_INVALID)


class Event:
    """In-flight representation of one delete-firewall request.

    Parameters
    ----------
    publisher:
        Outbound bus connection used for the terminal message.
    topics:
        Topic names; defaults to the ``firewall.delete.aws`` family.
    """

    def __init__(self, publisher: IPublisher, topics: Topics | None = None) -> None:
        self._publisher = publisher
        self._topics = topics or Topics()
        self.payload = FirewallPayload()
        self._finished = False

    @property
    def id(self) -> str:
        return self.payload.id

    @property
    def finished(self) -> bool:
        """True once the terminal message has been handed to the bus."""
        return self._finished

    def delete_request(self) -> DeleteRequest:
        p = self.payload
        return DeleteRequest(
            region=p.datacenter_region,
            access_key=p.datacenter_access_key,
            access_token=p.datacenter_access_token,
            security_group_id=p.security_group_aws_id,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def process(self, data: bytes) -> None:
        """Populate the event from raw message bytes.

        On failure the original bytes are echoed unchanged to the error
        topic and ``DecodeError`` is re-raised.  The event is finished at
        that point and accepts no further terminal call.
        """
        try:
            self.payload = FirewallPayload.from_wire(data)
        except DecodeError:
            # The decoder message quotes the input, which may hold credentials.
            logger.error(
                "Could not decode message (%d bytes), echoing to %s",
                len(data),
                self._topics.error,
            )
            self._finished = True
            await self._publisher.publish(self._topics.error, data)
            raise

    def validate(self) -> None:
        """Check the payload. The first failing rule wins.

        Raises:
            InvalidEventError: carrying the ``ValidationFailure`` kind.
        """
        p = self.payload
        if not p.datacenter_vpc_id:
            raise InvalidEventError(ValidationFailure.DATACENTER_ID_INVALID)
        if not p.datacenter_region:
            raise InvalidEventError(ValidationFailure.DATACENTER_REGION_INVALID)
        if not p.datacenter_access_key or not p.datacenter_access_token:
            raise InvalidEventError(ValidationFailure.DATACENTER_CREDENTIALS_INVALID)
        if not p.security_group_aws_id:
            raise InvalidEventError(ValidationFailure.SG_AWS_ID_INVALID)
        if not p.security_group_name:
            raise InvalidEventError(ValidationFailure.SG_NAME_INVALID)

        rules = p.security_group_rules
        if len(rules) < 1:
            raise InvalidEventError(ValidationFailure.SG_RULES_INVALID)
        for rule in chain(rules.ingress, rules.egress):
            _check_rule(rule)

    async def complete(self) -> None:
        """Publish the event to the done topic.

        Falls back to ``error`` if the event cannot be serialized.
        """
        self._ensure_open("complete")
        try:
            data = self.payload.to_wire()
        except SerializationError as exc:
            await self.error(exc)
            return

        self._finished = True
        await self._publisher.publish(self._topics.done, data)
        logger.info("Completed request %s", self.id)

    async def error(self, err: BaseException) -> None:
        """Record ``err`` on the event and publish it to the error topic.

        Raises:
            FatalConnectorError: the event could not be serialized.
        """
        self._ensure_open("error")
        message = str(err)
        logger.error("Error: %s", message)
        self.payload.error_message = message

        try:
            data = self.payload.to_wire()
        except SerializationError as exc:
            logger.critical(
                "Could not serialize error event %s, stopping: %s", self.id, exc,
            )
            raise FatalConnectorError(str(exc)) from exc

        self._finished = True
        await self._publisher.publish(self._topics.error, data)

    def _ensure_open(self, step: str) -> None:
        if self._finished:
            raise LifecycleError(
                f"Event {self.id!r} already finished, refusing {step}"
            )
