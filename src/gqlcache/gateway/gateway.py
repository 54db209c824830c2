"""
gqlcache - GraphQL Gateway

Forwards GraphQL POST bodies to the authoritative backend and puts the
operation cache in front of it:

- named queries from an identified user go through read_through; error
  responses are passed to the client untouched and never cached
- mutations are forwarded; a successful one triggers invalidate_after_write
  for the acting user
- everything else (anonymous callers, unnamed operations) bypasses the cache
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    ErrorCode,
    GraphQLResponseError,
    make_error_response,
)
from ..operations import CacheStatus, OperationCache
from .request import extract_operation_name, extract_user_id, is_mutation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResponse:
    """What the HTTP layer sends back."""

    status_code: int
    payload: Any
    cache_status: CacheStatus


def _is_success(status_code: int, payload: Any) -> bool:
    if not 200 <= status_code < 300:
        return False
    return not (isinstance(payload, dict) and payload.get("errors"))


class GraphQLGateway:
    """
    Caching forwarder for one GraphQL backend.

    Args:
        cache: Operation cache
        backend_url: GraphQL endpoint to forward to
        client: Shared httpx client (created when omitted)
        timeout: Request timeout in seconds for a client created here
    """

    def __init__(
        self,
        cache: OperationCache,
        backend_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.cache = cache
        self.backend_url = backend_url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def forward(self, body: dict[str, Any], authorization: str | None) -> tuple[int, Any]:
        """
        POST the body to the backend.

        Returns:
            (status code, decoded JSON payload)

        Raises:
            BackendTimeoutError: The backend did not answer in time
            BackendUnavailableError: Transport failure or a non-JSON answer
        """
        headers = {"Content-Type": "application/json"}
        if authorization:
            headers["Authorization"] = authorization

        try:
            response = await self._client.post(self.backend_url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(self.backend_url, self.timeout) from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(self.backend_url, str(e) or type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendUnavailableError(
                self.backend_url, f"non-JSON response (status {response.status_code})"
            ) from e

        return response.status_code, payload

    async def handle(self, body: Any, authorization: str | None) -> GatewayResponse:
        """Route one GraphQL request through the cache."""
        if not isinstance(body, dict):
            return GatewayResponse(
                400,
                make_error_response(ErrorCode.INVALID_INPUT, "Request body must be a JSON object"),
                CacheStatus.BYPASS,
            )

        operation_name = extract_operation_name(body)
        user_id = extract_user_id(authorization)
        mutation = is_mutation(body)

        if operation_name and user_id and not mutation:
            return await self._handle_query(body, authorization, user_id, operation_name)

        status_code, payload = await self.forward(body, authorization)

        if mutation and operation_name and user_id and _is_success(status_code, payload):
            result = await self.cache.invalidate_after_write(user_id, operation_name)
            if not result.ok:
                logger.warning(
                    "Write succeeded but cache invalidation failed; reads may be stale until TTL expiry",
                    extra={"operation": operation_name, "targets": sorted(result.targets)},
                )

        return GatewayResponse(status_code, payload, CacheStatus.BYPASS)

    async def _handle_query(
        self,
        body: dict[str, Any],
        authorization: str | None,
        user_id: str,
        operation_name: str,
    ) -> GatewayResponse:
        async def fetch(_operation: str, _arguments: Any) -> Any:
            status_code, payload = await self.forward(body, authorization)
            if not _is_success(status_code, payload):
                raise GraphQLResponseError(payload, status_code)
            return payload

        try:
            result = await self.cache.read_through_detailed(user_id, operation_name, body.get("variables"), fetch)
        except GraphQLResponseError as e:
            return GatewayResponse(e.status_code, e.payload, CacheStatus.MISS)

        return GatewayResponse(200, result.value, result.status)

    async def close(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()
