"""
Pytest configuration for the Cosmos DB telemetry demo.

Provides fixtures for:
- An in-memory stand-in for the async Cosmos client (databases, partitioned
  containers, paged queries, response hooks, injectable failures)
- A telemetry client exporting to an in-memory span exporter
- Settings overrides for unit and integration tests
"""

from __future__ import annotations

import copy
import os
import re
import uuid
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import pytest
from azure.cosmos.exceptions import (
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cosmos_demo.config import Settings
from cosmos_demo.infrastructure.telemetry import TelemetryClient

FAKE_REQUEST_CHARGE = 2.5
FAKE_SERVER_DURATION_MS = 1.25

_QUERY_PATTERN = re.compile(r"WHERE\s+c\.(\w+)\s*=\s*(@\w+)", re.IGNORECASE)


def _headers() -> Dict[str, str]:
    return {
        "x-ms-request-charge": str(FAKE_REQUEST_CHARGE),
        "x-ms-activity-id": str(uuid.uuid4()),
        "x-ms-request-duration-ms": str(FAKE_SERVER_DURATION_MS),
    }


class _FakeConnection:
    def __init__(self) -> None:
        self.last_response_headers: Dict[str, str] = {}


class FakeCosmosAccount:
    """State shared by a fake client and every proxy it hands out."""

    def __init__(self, page_size: int = 1) -> None:
        self.page_size = page_size
        self.databases: Dict[str, FakeDatabase] = {}
        self.client_connection = _FakeConnection()
        self.calls: List[str] = []
        self._failures: Dict[str, BaseException] = {}

    def fail_on(self, call: str, exc: BaseException) -> None:
        """Raise ``exc`` the next time ``call`` (e.g. ``"replace_item"``) runs."""
        self._failures[call] = exc

    def begin(self, call: str) -> None:
        self.calls.append(call)
        exc = self._failures.pop(call, None)
        if exc is not None:
            raise exc

    def respond(self, hook: Optional[Callable[..., None]], result: Any = None) -> Dict[str, str]:
        headers = _headers()
        self.client_connection.last_response_headers = headers
        if hook is not None:
            hook(headers, result)
        return headers

    def not_found(self, what: str) -> CosmosResourceNotFoundError:
        exc = CosmosResourceNotFoundError(status_code=404, message=f"{what} does not exist")
        exc.headers = _headers()
        return exc


class _AsyncPage:
    def __init__(self, documents: List[dict]) -> None:
        self._documents = documents

    def __aiter__(self) -> AsyncIterator[dict]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict]:
        for document in self._documents:
            yield document


class FakeItemPaged:
    def __init__(self, account: FakeCosmosAccount, documents: List[dict], page_size: int) -> None:
        self._account = account
        self._documents = documents
        self._page_size = page_size
        self.pages_fetched = 0

    def by_page(self, continuation_token: Optional[str] = None) -> AsyncIterator[_AsyncPage]:
        del continuation_token
        return self._pages()

    async def _pages(self) -> AsyncIterator[_AsyncPage]:
        for start in range(0, len(self._documents), self._page_size):
            self._account.begin("fetch_next_page")
            self._account.respond(None)
            self.pages_fetched += 1
            yield _AsyncPage(self._documents[start : start + self._page_size])


class FakeContainer:
    def __init__(self, account: FakeCosmosAccount, id: str, partition_key_path: str) -> None:
        self._account = account
        self.id = id
        self.partition_key_path = partition_key_path
        self.client_connection = account.client_connection
        self.items: Dict[Tuple[str, str], dict] = {}
        self.last_query: Optional[FakeItemPaged] = None

    def _partition_value(self, body: dict) -> str:
        return body[self.partition_key_path.lstrip("/")]

    async def read_item(self, item: str, partition_key: str, **kwargs: Any) -> dict:
        self._account.begin("read_item")
        document = self.items.get((item, partition_key))
        if document is None:
            raise self._account.not_found(f"Item {item}")
        self._account.respond(kwargs.get("response_hook"), document)
        return copy.deepcopy(document)

    async def create_item(self, body: dict, **kwargs: Any) -> dict:
        self._account.begin("create_item")
        key = (body["id"], self._partition_value(body))
        if key in self.items:
            raise CosmosResourceExistsError(status_code=409, message=f"Item {body['id']} exists")
        stored = {**copy.deepcopy(body), "_etag": str(uuid.uuid4()), "_ts": 1}
        self.items[key] = stored
        self._account.respond(kwargs.get("response_hook"), stored)
        return copy.deepcopy(stored)

    async def replace_item(self, item: str, body: dict, **kwargs: Any) -> dict:
        self._account.begin("replace_item")
        key = (item, self._partition_value(body))
        if key not in self.items:
            raise self._account.not_found(f"Item {item}")
        stored = {**copy.deepcopy(body), "_etag": str(uuid.uuid4()), "_ts": 2}
        self.items[key] = stored
        self._account.respond(kwargs.get("response_hook"), stored)
        return copy.deepcopy(stored)

    async def delete_item(self, item: str, partition_key: str, **kwargs: Any) -> None:
        self._account.begin("delete_item")
        if self.items.pop((item, partition_key), None) is None:
            raise self._account.not_found(f"Item {item}")
        self._account.respond(kwargs.get("response_hook"))

    def query_items(
        self,
        query: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
        max_item_count: Optional[int] = None,
        **kwargs: Any,
    ) -> FakeItemPaged:
        self._account.begin("query_items")
        values = {p["name"]: p["value"] for p in parameters or []}
        match = _QUERY_PATTERN.search(query)
        documents = [copy.deepcopy(d) for d in self.items.values()]
        if match:
            field, param = match.groups()
            documents = [d for d in documents if d.get(field) == values[param]]
        self.last_query = FakeItemPaged(
            self._account, documents, max_item_count or self._account.page_size
        )
        return self.last_query


class FakeDatabase:
    def __init__(self, account: FakeCosmosAccount, id: str) -> None:
        self._account = account
        self.id = id
        self.containers: Dict[str, FakeContainer] = {}

    async def create_container_if_not_exists(
        self, id: str, partition_key: Any, **kwargs: Any
    ) -> FakeContainer:
        self._account.begin("create_container_if_not_exists")
        container = self.containers.get(id)
        if container is None:
            container = FakeContainer(self._account, id, partition_key["paths"][0])
            self.containers[id] = container
        self._account.respond(kwargs.get("response_hook"), container)
        return container


class FakeCosmosClient:
    """
    Async stand-in for ``azure.cosmos.aio.CosmosClient``.

    Only the calls the worker makes are implemented. Errors are the SDK's own
    exception types.
    """

    def __init__(self, account: Optional[FakeCosmosAccount] = None) -> None:
        self.account = account or FakeCosmosAccount()
        self.client_connection = self.account.client_connection
        self.closed = False
        # The real client reads the account on entry; set to fail that read.
        self.open_error: Optional[BaseException] = None

    async def __aenter__(self) -> FakeCosmosClient:
        if self.open_error is not None:
            raise self.open_error
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.closed = True

    async def create_database_if_not_exists(self, id: str, **kwargs: Any) -> FakeDatabase:
        self.account.begin("create_database_if_not_exists")
        database = self.account.databases.get(id)
        if database is None:
            database = FakeDatabase(self.account, id)
            self.account.databases[id] = database
        self.account.respond(kwargs.get("response_hook"), database)
        return database

    async def delete_database(self, database: Any, **kwargs: Any) -> None:
        self.account.begin("delete_database")
        database_id = database if isinstance(database, str) else database.id
        if self.account.databases.pop(database_id, None) is None:
            raise self.account.not_found(f"Database {database_id}")
        hook = kwargs.get("response_hook")
        if hook is not None:
            hook(self.account.respond(None))

    def container(self, database_id: str, container_id: str) -> FakeContainer:
        return self.account.databases[database_id].containers[container_id]


class RecordingTelemetryClient(TelemetryClient):
    """Telemetry client that also counts flush and shutdown calls."""

    def __init__(self, tracer_provider: TracerProvider) -> None:
        super().__init__(tracer_provider)
        self.flush_calls = 0
        self.shutdown_calls = 0

    def flush(self, timeout_millis: int = 30_000) -> bool:
        self.flush_calls += 1
        return super().flush(timeout_millis)

    def shutdown(self) -> None:
        self.shutdown_calls += 1
        super().shutdown()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        cosmos_connection_string="AccountEndpoint=https://localhost:8081/;AccountKey=dGVzdA==;",
        cosmos_database_id="db",
        cosmos_container_id="items",
        telemetry_drain_seconds=0,
        log_level="DEBUG",
    )


@pytest.fixture
def cosmos_account() -> FakeCosmosAccount:
    return FakeCosmosAccount(page_size=1)


@pytest.fixture
def cosmos_client(cosmos_account: FakeCosmosAccount) -> FakeCosmosClient:
    return FakeCosmosClient(cosmos_account)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(span_exporter: InMemorySpanExporter) -> RecordingTelemetryClient:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return RecordingTelemetryClient(provider)


@pytest.fixture(scope="session")
def integration_settings() -> Settings:
    """
    Settings for runs against a real account or the emulator.

    Skips when integration tests are not enabled or no connection string is set.
    """
    if os.getenv("RUN_INTEGRATION_TESTS", "0") != "1":
        pytest.skip("Integration tests require RUN_INTEGRATION_TESTS=1")
    settings = Settings(
        cosmos_database_id=os.getenv("COSMOSDB_DATABASE_ID", f"demo-it-{uuid.uuid4().hex[:8]}"),
        telemetry_drain_seconds=0,
    )
    if not settings.cosmos_connection_string:
        pytest.skip("Integration tests require COSMOSDB_CONNECTION_STRING")
    return settings
