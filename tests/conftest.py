"""Shared fixtures for the firewall deleter test suite."""

from __future__ import annotations

import json
from typing import Any

import pytest

from firewall_deleter.bus.memory_bus import MemoryEventBus
from firewall_deleter.core.config import Topics
from firewall_deleter.core.interfaces import DeleteRequest
from firewall_deleter.core.models import FirewallPayload

# Bytes as produced by the upstream connectors for the reference request.
VALID_WIRE = (
    b'{"id":"test","datacenter_vpc_id":"vpc-0000000",'
    b'"datacenter_region":"eu-west-1","datacenter_access_key":"key",'
    b'"datacenter_access_token":"token","network_aws_id":"",'
    b'"security_group_aws_id":"sg-0000000","security_group_name":"test",'
    b'"security_group_rules":{'
    b'"ingress":[{"ip":"10.0.10.100/32","from_port":80,"to_port":8080,"protocol":"tcp"}],'
    b'"egress":[{"ip":"8.8.8.8/32","from_port":80,"to_port":8080,"protocol":"tcp"}]}}'
)


def make_request(**overrides: Any) -> dict[str, Any]:
    """Return the reference request as a dict, with overrides applied."""
    data = json.loads(VALID_WIRE)
    data.update(overrides)
    return data


def encode(data: dict[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":")).encode()


# ---------------------------------------------------------------------------
# Deleters
# ---------------------------------------------------------------------------

class RecordingDeleter:
    """Deleter double that records requests and optionally fails."""

    def __init__(self, exc: BaseException | None = None) -> None:
        self.exc = exc
        self.requests: list[DeleteRequest] = []

    async def delete_security_group(self, request: DeleteRequest) -> None:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_bus() -> MemoryEventBus:
    """Fresh in-memory bus."""
    return MemoryEventBus()


@pytest.fixture
def topics() -> Topics:
    return Topics()


@pytest.fixture
def valid_wire() -> bytes:
    return VALID_WIRE


@pytest.fixture
def valid_payload() -> FirewallPayload:
    return FirewallPayload.from_wire(VALID_WIRE)


@pytest.fixture
def deleter() -> RecordingDeleter:
    return RecordingDeleter()


@pytest.fixture
def failing_deleter():
    """Factory: deleter that raises ``exc`` after recording the request."""

    def _make(exc: BaseException) -> RecordingDeleter:
        return RecordingDeleter(exc)

    return _make


@pytest.fixture
def request_bytes():
    """Factory: reference request bytes with field overrides."""

    def _make(**overrides: Any) -> bytes:
        return encode(make_request(**overrides))

    return _make
