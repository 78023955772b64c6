"""
Single-table DynamoDB gateway.

Owns no business logic: repositories build keys and items, this module moves
them in and out of the table. boto3 is synchronous, so every call runs in
the threadpool to keep the event loop free.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, NamedTuple, Optional

import boto3
import structlog
from boto3.dynamodb.conditions import Attr, ConditionBase, Key
from botocore.exceptions import ClientError
from starlette.concurrency import run_in_threadpool

from photocomp.core.config import Settings

log = structlog.get_logger()

GSI1 = "GSI1PK-GSI1SK-INDEX"
GSI2 = "GSI2PK-GSI2SK-INDEX"

# Partition/sort attribute names per index (None = base table)
_INDEX_KEYS: dict[Optional[str], tuple[str, str]] = {
    None: ("PK", "SK"),
    GSI1: ("GSI1PK", "GSI1SK"),
    GSI2: ("GSI2PK", "GSI2SK"),
}

# ---------------------------------------------------------------------------
# Table schema
# ---------------------------------------------------------------------------

TABLE_SCHEMA: dict[str, Any] = {
    "KeySchema": [
        {"AttributeName": "PK", "KeyType": "HASH"},
        {"AttributeName": "SK", "KeyType": "RANGE"},
    ],
    "AttributeDefinitions": [
        {"AttributeName": name, "AttributeType": "S"}
        for name in ("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK")
    ],
    "GlobalSecondaryIndexes": [
        {
            "IndexName": index,
            "KeySchema": [
                {"AttributeName": pk, "KeyType": "HASH"},
                {"AttributeName": sk, "KeyType": "RANGE"},
            ],
            "Projection": {"ProjectionType": "ALL"},
        }
        for index, (pk, sk) in _INDEX_KEYS.items()
        if index is not None
    ],
    "BillingMode": "PAY_PER_REQUEST",
}


class ConditionalWriteError(Exception):
    """A conditional put or delete found the item in an unexpected state."""


class Page(NamedTuple):
    items: list[dict]
    last_key: Optional[dict]


def continuation_key(item: dict, index: Optional[str] = None) -> dict:
    """The ExclusiveStartKey that resumes a query right after ``item``."""
    names = {"PK", "SK", *_INDEX_KEYS[index]}
    return {name: item[name] for name in sorted(names) if name in item}


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

def to_dynamo(value: Any) -> Any:
    """Floats become Decimal; DynamoDB rejects binary floats."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Decimal back to int or float so items serialize as plain JSON."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class DynamoGateway:
    """Async put/get/query/update/delete over one boto3 ``Table``."""

    def __init__(self, table):
        self._table = table

    @property
    def table_name(self) -> str:
        return self._table.name

    async def put(self, item: dict, *, condition: Optional[ConditionBase] = None) -> dict:
        kwargs: dict[str, Any] = {"Item": to_dynamo(item)}
        if condition is not None:
            kwargs["ConditionExpression"] = condition
        try:
            await run_in_threadpool(self._table.put_item, **kwargs)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise ConditionalWriteError(item.get("PK", ""), item.get("SK", "")) from exc
            raise
        return item

    async def put_new(self, item: dict) -> dict:
        """Put only if no item with the same key exists."""
        return await self.put(item, condition=Attr("PK").not_exists())

    async def get(self, pk: str, sk: str) -> Optional[dict]:
        response = await run_in_threadpool(self._table.get_item, Key={"PK": pk, "SK": sk})
        item = response.get("Item")
        return from_dynamo(item) if item else None

    async def query(
        self,
        partition: str,
        *,
        sort_prefix: Optional[str] = None,
        index: Optional[str] = None,
        filter_expression: Optional[ConditionBase] = None,
        limit: Optional[int] = None,
        start_key: Optional[dict] = None,
        ascending: bool = True,
    ) -> Page:
        """Query one partition of the table or of a secondary index."""
        pk_name, sk_name = _INDEX_KEYS[index]
        condition = Key(pk_name).eq(partition)
        if sort_prefix:
            condition = condition & Key(sk_name).begins_with(sort_prefix)

        kwargs: dict[str, Any] = {"KeyConditionExpression": condition, "ScanIndexForward": ascending}
        if index:
            kwargs["IndexName"] = index
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        if limit:
            kwargs["Limit"] = limit
        if start_key:
            kwargs["ExclusiveStartKey"] = to_dynamo(start_key)

        response = await run_in_threadpool(self._table.query, **kwargs)
        items = [from_dynamo(i) for i in response.get("Items", [])]
        last_key = response.get("LastEvaluatedKey")
        return Page(items=items, last_key=from_dynamo(last_key) if last_key else None)

    async def query_all(self, partition: str, **kwargs) -> list[dict]:
        """Query and follow pagination until the partition is exhausted."""
        items: list[dict] = []
        start_key = None
        while True:
            page = await self.query(partition, start_key=start_key, **kwargs)
            items.extend(page.items)
            if not page.last_key:
                return items
            start_key = page.last_key

    async def update(self, pk: str, sk: str, fields: dict) -> Optional[dict]:
        """SET the given attributes on an existing item; returns the new item."""
        if not fields:
            return await self.get(pk, sk)
        names = {f"#f{i}": name for i, name in enumerate(fields)}
        values = {f":v{i}": to_dynamo(value) for i, value in enumerate(fields.values())}
        expression = "SET " + ", ".join(f"#f{i} = :v{i}" for i in range(len(fields)))
        try:
            response = await run_in_threadpool(
                self._table.update_item,
                Key={"PK": pk, "SK": sk},
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression=Attr("PK").exists(),
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            raise
        return from_dynamo(response.get("Attributes"))

    async def delete(self, pk: str, sk: str) -> None:
        await run_in_threadpool(self._table.delete_item, Key={"PK": pk, "SK": sk})

    async def batch_put(self, items: list[dict]) -> None:
        if not items:
            return
        await run_in_threadpool(self._write_batch, [to_dynamo(i) for i in items], [])

    async def batch_delete(self, keys: list[dict]) -> None:
        """Delete many items; boto3's batch writer chunks requests at 25."""
        if not keys:
            return
        await run_in_threadpool(self._write_batch, [], [{"PK": k["PK"], "SK": k["SK"]} for k in keys])

    def _write_batch(self, puts: list[dict], deletes: list[dict]) -> None:
        with self._table.batch_writer(overwrite_by_pkeys=["PK", "SK"]) as batch:
            for item in puts:
                batch.put_item(Item=item)
            for key in deletes:
                batch.delete_item(Key=key)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def build_dynamodb_resource(settings: Settings):
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint_url or None,
    )


def ensure_table(resource, table_name: str):
    """Create the table when missing (local development against DynamoDB Local)."""
    existing = {t.name for t in resource.tables.all()}
    if table_name in existing:
        return resource.Table(table_name)
    log.info("dynamodb.table_creating", table=table_name)
    table = resource.create_table(TableName=table_name, **TABLE_SCHEMA)
    table.wait_until_exists()
    return table
