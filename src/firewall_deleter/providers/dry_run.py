"""Deleter that records requests without touching the provider."""

from __future__ import annotations

import logging

from firewall_deleter.core.interfaces import DeleteRequest

logger = logging.getLogger(__name__)


class DryRunDeleter:
    """Accepts every request and remembers it."""

    def __init__(self) -> None:
        self.requests: list[DeleteRequest] = []

    async def delete_security_group(self, request: DeleteRequest) -> None:
        self.requests.append(request)
        logger.info(
            "Dry run: would delete security group %s in %s",
            request.security_group_id,
            request.region,
        )
