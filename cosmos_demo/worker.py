"""
Demo workflow against Cosmos DB, traced step by step.

The worker runs a fixed sequence once: create the database and container,
make sure the seed families exist, query one of them back, update and delete
the other, then drop the database. Each step runs inside its own span and
each store call inside a nested span carrying the call's diagnostics.

Usage:
    async with build_cosmos_client(settings) as client:
        worker = Worker(client, telemetry, settings)
        await worker.run_demo()
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from cosmos_demo import events
from cosmos_demo.config import Settings, get_settings
from cosmos_demo.domain.models import Family, StepOutcome, StepResult
from cosmos_demo.domain.seed import (
    ANDERSEN_LAST_NAME,
    WAKEFIELD_ID,
    WAKEFIELD_LAST_NAME,
    seed_families,
)
from cosmos_demo.infrastructure.diagnostics import CosmosDiagnostics, DiagnosticsRecorder
from cosmos_demo.infrastructure.telemetry import TelemetryClient
from cosmos_demo.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

QUERY_TEXT = "SELECT * FROM c WHERE c.LastName = @last_name"

FAMILY_MEMBER_ID_PROPERTY = "FamilyMemberId"
PARTITION_KEY_PROPERTY = "PartitionKey"
QUERY_PROPERTY = "Query"

ROOT_OPERATION = "Worker"
FETCH_PAGE_OPERATION = "query_items.fetch_next_page"

_END_OF_PAGES = object()


class Worker:
    """
    Runs the demo workflow once against a shared Cosmos client.

    Parameters
    ----------
    cosmos_client : CosmosClient
        Open async client, shared for the process lifetime.
    telemetry : TelemetryClient
        Telemetry handle every span is started from.
    settings : Settings | None
        Database/container ids, partition key path and query page size.
    """

    def __init__(
        self,
        cosmos_client: CosmosClient,
        telemetry: TelemetryClient,
        settings: Optional[Settings] = None,
    ) -> None:
        self._client = cosmos_client
        self._telemetry = telemetry
        self._settings = settings or get_settings()
        self._database: Optional[DatabaseProxy] = None
        self._container: Optional[ContainerProxy] = None
        self.results: List[StepResult] = []

    @property
    def database_id(self) -> str:
        return self._settings.cosmos_database_id

    @property
    def container_id(self) -> str:
        return self._settings.cosmos_container_id

    def _steps(self) -> List[Tuple[str, Callable[[], Awaitable[Any]]]]:
        return [
            ("create_database", self.create_database),
            ("create_container", self.create_container),
            ("add_items_to_container", self.add_items_to_container),
            ("query_items", self.query_items),
            ("replace_family_item", self.replace_family_item),
            ("delete_family_item", self.delete_family_item),
            ("delete_database_and_cleanup", self.delete_database_and_cleanup),
        ]

    async def run_demo(self) -> None:
        """
        Run every step in order.

        The first failing step stops the run. Its exception is recorded on the
        root span and logged; telemetry is flushed either way.
        """
        events.log_execute_starting(log, datetime.now(timezone.utc))

        with self._telemetry.start_operation(ROOT_OPERATION):
            try:
                for name, step in self._steps():
                    await self._run_step(name, step)
            except Exception as exc:  # noqa: BLE001 - single top-level boundary for the run
                self._telemetry.track_exception(exc)
                events.log_execute_error(log, exc)

        events.log_execute_finished(log, datetime.now(timezone.utc))
        self._telemetry.flush()

    async def _run_step(self, name: str, step: Callable[[], Awaitable[Any]]) -> None:
        started = time.perf_counter()
        try:
            await step()
        except Exception as exc:
            self._record(name, StepOutcome.FAILED, started, detail=f"{type(exc).__name__}: {exc}")
            raise
        self._record(name, StepOutcome.SUCCEEDED, started)

    def _record(
        self, name: str, outcome: StepOutcome, started: float, detail: Optional[str] = None
    ) -> None:
        self.results.append(
            StepResult(
                name=name,
                outcome=outcome,
                duration_seconds=time.perf_counter() - started,
                detail=detail,
            )
        )

    async def _store_call(
        self,
        operation_name: str,
        call: Callable[[DiagnosticsRecorder], Awaitable[T]],
        properties: Optional[Dict[str, str]] = None,
    ) -> Tuple[T, CosmosDiagnostics]:
        """
        Await one store call inside its own span.

        ``call`` receives the response hook to pass to the SDK. Diagnostics
        are attached to the span on success and on failure.
        """
        recorder = DiagnosticsRecorder()
        with self._telemetry.start_operation(operation_name) as operation:
            for key, value in (properties or {}).items():
                operation.add_property(key, value)
            try:
                result = await call(recorder)
            except CosmosHttpResponseError as exc:
                operation.add_diagnostics(CosmosDiagnostics.from_headers(exc.headers))
                raise
            operation.add_diagnostics(recorder.diagnostics)
        return result, recorder.diagnostics

    def _require_database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("Database has not been created; run create_database first")
        return self._database

    def _require_container(self) -> ContainerProxy:
        if self._container is None:
            raise RuntimeError("Container has not been created; run create_container first")
        return self._container

    async def create_database(self) -> DatabaseProxy:
        with self._telemetry.start_operation("create_database"):
            self._database, _ = await self._store_call(
                "create_database.create_database_if_not_exists",
                lambda hook: self._client.create_database_if_not_exists(
                    id=self.database_id, response_hook=hook
                ),
            )
            events.log_create_database(log, self._database.id)
        return self._database

    async def create_container(self) -> ContainerProxy:
        database = self._require_database()
        with self._telemetry.start_operation("create_container"):
            self._container, _ = await self._store_call(
                "create_container.create_container_if_not_exists",
                lambda hook: database.create_container_if_not_exists(
                    id=self.container_id,
                    partition_key=PartitionKey(path=self._settings.cosmos_partition_key_path),
                    response_hook=hook,
                ),
            )
            events.log_create_container(log, self._container.id)
        return self._container

    async def read_family(self, family_id: str, last_name: str, step: str = "read_family") -> Family:
        """
        Point-read a family by (id, partition key).

        Raises
        ------
        CosmosResourceNotFoundError
            If no such document exists.
        """
        container = self._require_container()
        document, _ = await self._store_call(
            f"{step}.read_item",
            lambda hook: container.read_item(
                item=family_id, partition_key=last_name, response_hook=hook
            ),
            {FAMILY_MEMBER_ID_PROPERTY: family_id, PARTITION_KEY_PROPERTY: last_name},
        )
        return Family.model_validate(document)

    async def ensure_family(self, family: Family, step: str = "add_items_to_container") -> StepOutcome:
        """
        Create ``family`` unless a document with its id and partition key exists.

        Read-then-create is not atomic; a concurrent writer between the two
        calls makes the create fail with a conflict.
        """
        started = time.perf_counter()
        try:
            existing = await self.read_family(family.id, family.last_name, step=step)
        except CosmosResourceNotFoundError:
            container = self._require_container()
            created, diagnostics = await self._store_call(
                f"{step}.create_item",
                lambda hook: container.create_item(body=family.to_document(), response_hook=hook),
                {FAMILY_MEMBER_ID_PROPERTY: family.id, PARTITION_KEY_PROPERTY: family.last_name},
            )
            events.log_item_created(log, created["id"], diagnostics.request_charge)
            self._record(f"ensure_item {family.id}", StepOutcome.CREATED, started)
            return StepOutcome.CREATED

        events.log_item_already_exists(log, existing.id)
        self._record(f"ensure_item {family.id}", StepOutcome.ALREADY_EXISTS, started)
        return StepOutcome.ALREADY_EXISTS

    async def add_items_to_container(self) -> List[StepOutcome]:
        with self._telemetry.start_operation("add_items_to_container"):
            return [await self.ensure_family(family) for family in seed_families()]

    async def query_items(self, last_name: str = ANDERSEN_LAST_NAME) -> List[Family]:
        """
        Query families by last name, draining every result page.

        Each page fetch gets its own span.
        """
        container = self._require_container()
        families: List[Family] = []
        with self._telemetry.start_operation("query_items"):
            events.log_running_query(log, QUERY_TEXT)

            with self._telemetry.start_operation("query_items.query_items") as operation:
                operation.add_property(QUERY_PROPERTY, QUERY_TEXT)
                pages = container.query_items(
                    query=QUERY_TEXT,
                    parameters=[{"name": "@last_name", "value": last_name}],
                    max_item_count=self._settings.cosmos_query_max_item_count,
                ).by_page()

            while True:
                page = await self._fetch_next_page(container, pages)
                if page is _END_OF_PAGES:
                    break
                async for document in page:
                    family = Family.model_validate(document)
                    families.append(family)
                    events.log_read_family(log, family)

        return families

    async def _fetch_next_page(self, container: ContainerProxy, pages: AsyncIterator[Any]) -> Any:
        """
        Fetch one result page, or return ``_END_OF_PAGES`` once drained.

        The page span is opened after the fetch and backdated to its start, so
        the final empty check produces no span while failed fetches still do.
        """
        started = time.time_ns()
        try:
            page = await anext(pages, _END_OF_PAGES)
        except Exception as exc:
            with self._telemetry.start_operation(
                FETCH_PAGE_OPERATION, start_time=started
            ) as operation:
                if isinstance(exc, CosmosHttpResponseError):
                    operation.add_diagnostics(CosmosDiagnostics.from_headers(exc.headers))
                raise

        if page is not _END_OF_PAGES:
            with self._telemetry.start_operation(
                FETCH_PAGE_OPERATION, start_time=started
            ) as operation:
                operation.add_diagnostics(
                    CosmosDiagnostics.from_headers(container.client_connection.last_response_headers)
                )
        return page

    async def replace_family_item(self) -> Family:
        """Mark the Wakefield family registered and move its first child to grade 6."""
        container = self._require_container()
        with self._telemetry.start_operation("replace_family_item"):
            family = await self.read_family(
                WAKEFIELD_ID, WAKEFIELD_LAST_NAME, step="replace_family_item"
            )

            family.is_registered = True
            family.children[0].grade = 6

            replaced, _ = await self._store_call(
                "replace_family_item.replace_item",
                lambda hook: container.replace_item(
                    item=family.id, body=family.to_document(), response_hook=hook
                ),
                {FAMILY_MEMBER_ID_PROPERTY: family.id, PARTITION_KEY_PROPERTY: family.last_name},
            )
            updated = Family.model_validate(replaced)

            events.log_update_family(log, updated.last_name, updated.id, updated)
        return updated

    async def delete_family_item(self) -> None:
        container = self._require_container()
        with self._telemetry.start_operation("delete_family_item"):
            await self._store_call(
                "delete_family_item.delete_item",
                lambda hook: container.delete_item(
                    item=WAKEFIELD_ID, partition_key=WAKEFIELD_LAST_NAME, response_hook=hook
                ),
                {FAMILY_MEMBER_ID_PROPERTY: WAKEFIELD_ID, PARTITION_KEY_PROPERTY: WAKEFIELD_LAST_NAME},
            )
            events.log_delete_family(log, WAKEFIELD_LAST_NAME, WAKEFIELD_ID)

    async def delete_database_and_cleanup(self) -> None:
        """Drop the database, and with it the container and every document."""
        database = self._require_database()
        with self._telemetry.start_operation("delete_database_and_cleanup"):
            await self._store_call(
                "delete_database_and_cleanup.delete_database",
                lambda hook: self._client.delete_database(database, response_hook=hook),
            )
            events.log_delete_database(log, self.database_id)
        self._database = None
        self._container = None


__all__ = ["QUERY_TEXT", "ROOT_OPERATION", "Worker"]
