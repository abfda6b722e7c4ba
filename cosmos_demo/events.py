"""
Log event catalog for the demo worker.

One helper per workflow milestone. Every record carries ``event_id`` and
``event_name`` extras so JSON logs and exported log records can be filtered
by event rather than by message text.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime

from cosmos_demo.domain.models import Family


class WorkerEvent(enum.IntEnum):
    EXECUTE_STARTING = 1
    EXECUTE_FINISHED = 2
    EXECUTE_ERROR = 3
    CREATE_DATABASE = 1_001
    DELETE_DATABASE = 1_002
    CREATE_CONTAINER = 2_001
    ITEM_ALREADY_EXISTS = 3_001
    ITEM_CREATED = 3_002
    RUNNING_QUERY = 4_001
    READ_FAMILY = 4_002
    UPDATE_FAMILY = 5_001
    DELETE_FAMILY = 6_001


def _extra(event: WorkerEvent, **fields: object) -> dict:
    return {"event_id": int(event), "event_name": event.name, **fields}


def log_execute_starting(log: logging.Logger, timestamp: datetime) -> None:
    log.info(
        f"Worker starting at: {timestamp.isoformat()}",
        extra=_extra(WorkerEvent.EXECUTE_STARTING, time=timestamp.isoformat()),
    )


def log_execute_finished(log: logging.Logger, timestamp: datetime) -> None:
    log.info(
        f"Worker finished at: {timestamp.isoformat()}",
        extra=_extra(WorkerEvent.EXECUTE_FINISHED, time=timestamp.isoformat()),
    )


def log_execute_error(log: logging.Logger, exc: BaseException) -> None:
    log.error(
        "Error running demo.",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra=_extra(WorkerEvent.EXECUTE_ERROR, error_type=type(exc).__name__),
    )


def log_create_database(log: logging.Logger, database_id: str) -> None:
    log.info(
        f"Created Database: {database_id}.",
        extra=_extra(WorkerEvent.CREATE_DATABASE, database_id=database_id),
    )


def log_delete_database(log: logging.Logger, database_id: str) -> None:
    log.info(
        f"Deleted Database: {database_id}.",
        extra=_extra(WorkerEvent.DELETE_DATABASE, database_id=database_id),
    )


def log_create_container(log: logging.Logger, container_id: str) -> None:
    log.info(
        f"Created Container: {container_id}.",
        extra=_extra(WorkerEvent.CREATE_CONTAINER, container_id=container_id),
    )


def log_item_already_exists(log: logging.Logger, resource_id: str) -> None:
    log.info(
        f"Item in database with id '{resource_id}' already exists.",
        extra=_extra(WorkerEvent.ITEM_ALREADY_EXISTS, resource_id=resource_id),
    )


def log_item_created(log: logging.Logger, resource_id: str, charge: float) -> None:
    log.info(
        f"Created item in database with id '{resource_id}'. Operation consumed {charge} RUs",
        extra=_extra(WorkerEvent.ITEM_CREATED, resource_id=resource_id, charge=charge),
    )


def log_running_query(log: logging.Logger, query_text: str) -> None:
    log.info(
        f"Running query: '{query_text}'.",
        extra=_extra(WorkerEvent.RUNNING_QUERY, query=query_text),
    )


def log_read_family(log: logging.Logger, family: Family) -> None:
    log.info(
        f"Read '{family}'.",
        extra=_extra(WorkerEvent.READ_FAMILY, resource_id=family.id),
    )


def log_update_family(log: logging.Logger, last_name: str, resource_id: str, family: Family) -> None:
    log.info(
        f"Updated Family [{last_name},{resource_id}].\n \tBody is now: {family}.",
        extra=_extra(WorkerEvent.UPDATE_FAMILY, partition_key=last_name, resource_id=resource_id),
    )


def log_delete_family(log: logging.Logger, partition_key: str, resource_id: str) -> None:
    log.info(
        f"Deleted Family [{partition_key},{resource_id}].",
        extra=_extra(WorkerEvent.DELETE_FAMILY, partition_key=partition_key, resource_id=resource_id),
    )


__all__ = [
    "WorkerEvent",
    "log_create_container",
    "log_create_database",
    "log_delete_database",
    "log_delete_family",
    "log_execute_error",
    "log_execute_finished",
    "log_execute_starting",
    "log_item_already_exists",
    "log_item_created",
    "log_read_family",
    "log_running_query",
    "log_update_family",
]
