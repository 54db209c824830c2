"""
gqlcache - GraphQL Gateway Tests

The backend is an httpx.MockTransport that records every forwarded request.
"""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest

from gqlcache.errors import BackendTimeoutError, BackendUnavailableError
from gqlcache.gateway import GraphQLGateway
from gqlcache.operations import CacheStatus, OperationCache

BACKEND_URL = "http://backend.test/graphql"

GET_EXPENSES = {
    "operationName": "GetExpenses",
    "query": "query GetExpenses($month: String) { expenses(month: $month) { id amount } }",
    "variables": {"month": "2024-05"},
}
CREATE_EXPENSE = {
    "operationName": "CreateExpense",
    "query": "mutation CreateExpense($input: ExpenseInput!) { createExpense(input: $input) { id } }",
    "variables": {"input": {"amount": 10}},
}


class FakeBackend:
    """Scripted GraphQL backend; responses are consumed per request, the last one repeats."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []

    def reply(self, payload: Any, status_code: int = 200) -> None:
        self.responses.append(httpx.Response(status_code, json=payload))

    def fail(self, error: Exception) -> None:
        self.responses.append(error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            body = json.loads(request.content)
            return httpx.Response(200, json={"data": {"operation": body.get("operationName"), "n": len(self.requests)}})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def count(self) -> int:
        return len(self.requests)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def gateway(operation_cache: OperationCache, backend: FakeBackend) -> AsyncGenerator[GraphQLGateway, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    gateway = GraphQLGateway(operation_cache, BACKEND_URL, client=client)
    yield gateway
    await gateway.close()
    await client.aclose()


@pytest.fixture
def auth(jwt_factory: Callable[[dict[str, Any]], str]) -> Callable[[str], str]:
    def make(user_id: str) -> str:
        return f"Bearer {jwt_factory({'user_id': user_id})}"

    return make


class TestQueries:
    async def test_second_identical_query_is_served_from_cache(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        first = await gateway.handle(GET_EXPENSES, auth("u1"))
        second = await gateway.handle(GET_EXPENSES, auth("u1"))

        assert first.cache_status is CacheStatus.MISS
        assert second.cache_status is CacheStatus.HIT
        assert second.payload == first.payload
        assert backend.count == 1

    async def test_authorization_is_forwarded(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        header = auth("u1")
        await gateway.handle(GET_EXPENSES, header)

        assert backend.requests[0].headers["authorization"] == header
        assert json.loads(backend.requests[0].content) == GET_EXPENSES

    async def test_users_are_cached_separately(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        await gateway.handle(GET_EXPENSES, auth("u1"))
        result = await gateway.handle(GET_EXPENSES, auth("u2"))

        assert result.cache_status is CacheStatus.MISS
        assert backend.count == 2

    async def test_graphql_errors_are_returned_but_not_cached(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        error_payload = {"errors": [{"message": "boom"}], "data": None}
        backend.reply(error_payload)
        backend.reply({"data": {"expenses": []}})

        first = await gateway.handle(GET_EXPENSES, auth("u1"))
        assert first.status_code == 200
        assert first.payload == error_payload
        assert first.cache_status is CacheStatus.MISS

        second = await gateway.handle(GET_EXPENSES, auth("u1"))
        assert second.payload == {"data": {"expenses": []}}
        assert second.cache_status is CacheStatus.MISS
        assert backend.count == 2

    async def test_http_errors_keep_backend_status(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        backend.reply({"errors": [{"message": "unauthorized"}]}, status_code=401)

        result = await gateway.handle(GET_EXPENSES, auth("u1"))

        assert result.status_code == 401
        assert result.payload == {"errors": [{"message": "unauthorized"}]}

    async def test_anonymous_requests_bypass_cache(self, gateway: GraphQLGateway, backend: FakeBackend) -> None:
        await gateway.handle(GET_EXPENSES, None)
        result = await gateway.handle(GET_EXPENSES, None)

        assert result.cache_status is CacheStatus.BYPASS
        assert backend.count == 2

    async def test_unlisted_query_bypasses_cache(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        body = {"operationName": "GetReport", "query": "query GetReport { report { id } }"}
        await gateway.handle(body, auth("u1"))
        result = await gateway.handle(body, auth("u1"))

        assert result.cache_status is CacheStatus.BYPASS
        assert backend.count == 2

    async def test_non_object_body_is_rejected(self, gateway: GraphQLGateway, backend: FakeBackend) -> None:
        result = await gateway.handle([GET_EXPENSES], None)

        assert result.status_code == 400
        assert result.payload["errors"][0]["extensions"]["code"] == "INVALID_INPUT"
        assert backend.count == 0


class TestMutations:
    async def test_successful_mutation_invalidates_dependent_reads(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        await gateway.handle(GET_EXPENSES, auth("u1"))
        await gateway.handle(CREATE_EXPENSE, auth("u1"))
        result = await gateway.handle(GET_EXPENSES, auth("u1"))

        assert result.cache_status is CacheStatus.MISS
        assert backend.count == 3

    async def test_mutation_leaves_other_users_cached(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        await gateway.handle(GET_EXPENSES, auth("u2"))
        await gateway.handle(CREATE_EXPENSE, auth("u1"))
        result = await gateway.handle(GET_EXPENSES, auth("u2"))

        assert result.cache_status is CacheStatus.HIT

    async def test_failed_mutation_does_not_invalidate(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        await gateway.handle(GET_EXPENSES, auth("u1"))
        backend.reply({"errors": [{"message": "amount must be positive"}]})
        mutation = await gateway.handle(CREATE_EXPENSE, auth("u1"))
        assert mutation.cache_status is CacheStatus.BYPASS

        backend.responses.clear()
        result = await gateway.handle(GET_EXPENSES, auth("u1"))
        assert result.cache_status is CacheStatus.HIT


class TestBackendFailures:
    async def test_timeout(self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]) -> None:
        backend.fail(httpx.ReadTimeout("too slow"))

        with pytest.raises(BackendTimeoutError) as exc_info:
            await gateway.handle(GET_EXPENSES, auth("u1"))
        assert exc_info.value.status_code == 504

    async def test_connection_failure(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        backend.fail(httpx.ConnectError("refused"))

        with pytest.raises(BackendUnavailableError) as exc_info:
            await gateway.handle(CREATE_EXPENSE, auth("u1"))
        assert exc_info.value.status_code == 502

    async def test_non_json_answer(self, gateway: GraphQLGateway, backend: FakeBackend) -> None:
        backend.responses.append(httpx.Response(502, text="<html>Bad Gateway</html>"))

        with pytest.raises(BackendUnavailableError):
            await gateway.handle(GET_EXPENSES, None)

    async def test_failed_fetch_is_not_cached(
        self, gateway: GraphQLGateway, backend: FakeBackend, auth: Callable[[str], str]
    ) -> None:
        backend.fail(httpx.ConnectError("refused"))
        with pytest.raises(BackendUnavailableError):
            await gateway.handle(GET_EXPENSES, auth("u1"))

        backend.responses.clear()
        result = await gateway.handle(GET_EXPENSES, auth("u1"))
        assert result.cache_status is CacheStatus.MISS
