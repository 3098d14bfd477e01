"""EC2 security group deletion via ``boto3``.

Implements the ``ISecurityGroupDeleter`` protocol.  Each request carries
its own datacenter credentials and region, so a client is built per call.
The boto3 call blocks; it runs in a worker thread so concurrent handlers
keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from firewall_deleter.core.errors import ProviderAuthError, ProviderError
from firewall_deleter.core.interfaces import DeleteRequest

logger = logging.getLogger(__name__)

# EC2 error codes meaning the supplied credentials were refused.
_AUTH_ERROR_CODES = frozenset({
    "AuthFailure",
    "InvalidClientTokenId",
    "SignatureDoesNotMatch",
    "UnauthorizedOperation",
})

ClientFactory = Callable[[DeleteRequest], Any]


class AWSSecurityGroupDeleter:
    """Deletes security groups through the EC2 API.

    Parameters
    ----------
    endpoint_url:
        Override the EC2 endpoint, e.g. for a local emulator.
    client_factory:
        Builds the EC2 client for a request.  Defaults to a boto3 client
        using the request's static credentials and region.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._client_factory = client_factory or self._default_client

    def _default_client(self, request: DeleteRequest) -> Any:
        return boto3.session.Session().client(
            "ec2",
            region_name=request.region,
            aws_access_key_id=request.access_key,
            aws_secret_access_key=request.access_token,
            endpoint_url=self._endpoint_url,
        )

    async def delete_security_group(self, request: DeleteRequest) -> None:
        """Delete ``request.security_group_id``.

        Raises:
            ProviderAuthError: the credentials were refused.
            ProviderError: any other failure reported by EC2 or botocore.
        """
        await asyncio.to_thread(self._delete, request)

    def _delete(self, request: DeleteRequest) -> None:
        try:
            client = self._client_factory(request)
            client.delete_security_group(GroupId=request.security_group_id)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _AUTH_ERROR_CODES:
                raise ProviderAuthError(str(exc), code=code) from exc
            raise ProviderError(str(exc), code=code) from exc
        except BotoCoreError as exc:
            raise ProviderError(str(exc)) from exc

        logger.debug(
            "EC2 deleted security group %s in %s",
            request.security_group_id,
            request.region,
        )
