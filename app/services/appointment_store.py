from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from app.core.config import Settings

logger = logging.getLogger(__name__)


class AppointmentStore(ABC):
    """Flat table of appointment records keyed by ``id``.

    ``list_all`` is a full scan. Inserts are unconditional, so a uniqueness
    check made from a previous scan can race with concurrent writers.
    """

    @abstractmethod
    def list_all(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: Mapping[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, appointment_id: str) -> None:
        raise NotImplementedError


class InMemoryAppointmentStore(AppointmentStore):
    def __init__(self) -> None:
        self._records_by_id: dict[str, dict[str, Any]] = {}

    def list_all(self) -> list[dict[str, Any]]:
        return [dict(record) for record in self._records_by_id.values()]

    def insert(self, record: Mapping[str, Any]) -> None:
        self._records_by_id[str(record["id"])] = dict(record)

    def delete_by_id(self, appointment_id: str) -> None:
        self._records_by_id.pop(appointment_id, None)


class DynamoAppointmentStore(AppointmentStore):
    def __init__(
        self,
        table_name: str,
        region_name: str,
        endpoint_url: str = "",
        follow_scan_pages: bool = False,
    ) -> None:
        import boto3

        resource_kwargs: dict[str, Any] = {"region_name": region_name}
        if endpoint_url:
            resource_kwargs["endpoint_url"] = endpoint_url
        self._table = boto3.resource("dynamodb", **resource_kwargs).Table(table_name)
        self._follow_scan_pages = follow_scan_pages

    def list_all(self) -> list[dict[str, Any]]:
        response = self._table.scan()
        items = list(response.get("Items", []))
        # Without paging only the first 1 MB page of the table is returned.
        while self._follow_scan_pages and response.get("LastEvaluatedKey"):
            response = self._table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
            items.extend(response.get("Items", []))
        return [_from_stored_item(item) for item in items]

    def insert(self, record: Mapping[str, Any]) -> None:
        self._table.put_item(Item=_to_stored_item(record))

    def delete_by_id(self, appointment_id: str) -> None:
        self._table.delete_item(Key={"id": appointment_id})


class MongoAppointmentStore(AppointmentStore):
    def __init__(
        self,
        uri: str,
        db_name: str,
        collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        self._collection = self._client[db_name][collection_name]
        self._collection.create_index([("id", 1)], unique=True)

    def list_all(self) -> list[dict[str, Any]]:
        return [_from_stored_item(document) for document in self._collection.find({}, {"_id": 0})]

    def insert(self, record: Mapping[str, Any]) -> None:
        self._collection.insert_one(dict(record))

    def delete_by_id(self, appointment_id: str) -> None:
        self._collection.delete_one({"id": appointment_id})


def create_appointment_store(settings: Settings) -> AppointmentStore:
    return _create_appointment_store_cached(
        store_name=settings.appointments_store,
        aws_region=settings.aws_region,
        dynamodb_table_name=settings.dynamodb_table_name,
        dynamodb_endpoint_url=settings.dynamodb_endpoint_url,
        dynamodb_follow_scan_pages=settings.dynamodb_follow_scan_pages,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_collection_name=settings.mongodb_appointments_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_appointment_store_cached(
    store_name: str,
    aws_region: str,
    dynamodb_table_name: str,
    dynamodb_endpoint_url: str,
    dynamodb_follow_scan_pages: bool,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_collection_name: str,
    mongodb_connect_timeout_ms: int,
) -> AppointmentStore:
    if store_name == "memory":
        return InMemoryAppointmentStore()

    if store_name == "dynamodb":
        logger.info("Using DynamoDB appointment table %s (%s)", dynamodb_table_name, aws_region)
        return DynamoAppointmentStore(
            table_name=dynamodb_table_name,
            region_name=aws_region,
            endpoint_url=dynamodb_endpoint_url,
            follow_scan_pages=dynamodb_follow_scan_pages,
        )

    if store_name == "mongodb":
        logger.info("Using MongoDB appointment collection %s.%s", mongodb_db_name, mongodb_collection_name)
        return MongoAppointmentStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_collection_name,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    logger.warning("Unknown appointments store %r, falling back to memory", store_name)
    return InMemoryAppointmentStore()


def clear_appointment_store_cache() -> None:
    _create_appointment_store_cached.cache_clear()


def _to_stored_item(record: Mapping[str, Any]) -> dict[str, Any]:
    item = dict(record)
    created_at = item.get("createdAt")
    if isinstance(created_at, datetime):
        item["createdAt"] = created_at.astimezone(UTC).isoformat()
    return {key: value for key, value in item.items() if value is not None}


def _from_stored_item(item: Mapping[str, Any]) -> dict[str, Any]:
    record = dict(item)
    record.pop("_id", None)
    return record
