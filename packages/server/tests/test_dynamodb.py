"""
Tests for the DynamoDB gateway and item key helpers.

The boto3 Table is a MagicMock; calls are checked for the arguments the
gateway builds rather than against a live table.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from photocomp.core.dynamodb import (
    GSI2,
    ConditionalWriteError,
    DynamoGateway,
    Page,
    continuation_key,
    from_dynamo,
    to_dynamo,
)
from photocomp.models.base import public_view
from photocomp.models.event import belongs_to_org, new_attendance_item, new_event_item
from photocomp.models.organization import org_pk
from photocomp.models.photo import new_tag_item, photo_object_key
from photocomp.repositories.events import EventRepository
from photocomp.repositories.organizations import OrgRepository


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutItem")


@pytest.fixture
def table():
    mock = MagicMock()
    mock.name = "photocomp"
    return mock


@pytest.fixture
def gateway(table):
    return DynamoGateway(table)


class TestConversion:
    def test_floats_become_decimal_and_none_is_dropped(self):
        converted = to_dynamo({"temperature": 21.5, "weather": None, "tags": [1.25]})
        assert converted == {"temperature": Decimal("21.5"), "tags": [Decimal("1.25")]}

    def test_decimals_come_back_as_numbers(self):
        item = from_dynamo({"size": Decimal("2048"), "latitude": Decimal("52.1"), "nested": [Decimal("3")]})
        assert item == {"size": 2048, "latitude": 52.1, "nested": [3]}
        assert isinstance(item["size"], int)


class TestGateway:
    async def test_put_new_conflict(self, gateway, table):
        table.put_item.side_effect = client_error("ConditionalCheckFailedException")
        with pytest.raises(ConditionalWriteError):
            await gateway.put_new({"PK": "USER#u1", "SK": "ENTITY"})

    async def test_put_other_errors_propagate(self, gateway, table):
        table.put_item.side_effect = client_error("ProvisionedThroughputExceededException")
        with pytest.raises(ClientError):
            await gateway.put({"PK": "USER#u1", "SK": "ENTITY"})

    async def test_get_missing(self, gateway, table):
        table.get_item.return_value = {}
        assert await gateway.get("USER#u1", "ENTITY") is None

    async def test_update_missing_item_returns_none(self, gateway, table):
        table.update_item.side_effect = client_error("ConditionalCheckFailedException")
        assert await gateway.update("EVENT#e1", "ENTITY", {"title": "New"}) is None

    async def test_update_builds_expression(self, gateway, table):
        table.update_item.return_value = {"Attributes": {"PK": "EVENT#e1", "title": "New", "isPublic": False}}

        updated = await gateway.update("EVENT#e1", "ENTITY", {"title": "New", "isPublic": False})

        kwargs = table.update_item.call_args.kwargs
        assert kwargs["UpdateExpression"] == "SET #f0 = :v0, #f1 = :v1"
        assert kwargs["ExpressionAttributeNames"] == {"#f0": "title", "#f1": "isPublic"}
        assert kwargs["ReturnValues"] == "ALL_NEW"
        assert updated["title"] == "New"

    async def test_query_all_follows_pages(self, gateway, table):
        table.query.side_effect = [
            {"Items": [{"id": "a"}], "LastEvaluatedKey": {"PK": "x", "SK": "a"}},
            {"Items": [{"id": "b"}]},
        ]

        items = await gateway.query_all("ORG#SHUTTERBUGS", index=GSI2, sort_prefix="EVENT#")

        assert [i["id"] for i in items] == ["a", "b"]
        first, second = table.query.call_args_list
        assert first.kwargs["IndexName"] == GSI2
        assert "ExclusiveStartKey" not in first.kwargs
        assert second.kwargs["ExclusiveStartKey"] == {"PK": "x", "SK": "a"}

    async def test_query_returns_last_key(self, gateway, table):
        table.query.return_value = {"Items": [], "LastEvaluatedKey": {"PK": "EVENT#e9", "SK": "ENTITY"}}
        page = await gateway.query("ORG#X", limit=10)
        assert page.last_key == {"PK": "EVENT#e9", "SK": "ENTITY"}
        assert table.query.call_args.kwargs["Limit"] == 10

    async def test_batch_delete_noop(self, gateway, table):
        await gateway.batch_delete([])
        table.batch_writer.assert_not_called()

    async def test_batch_delete_uses_keys_only(self, gateway, table):
        writer = table.batch_writer.return_value.__enter__.return_value
        await gateway.batch_delete([{"PK": "TAG#u1", "SK": "PHOTO#p1", "userId": "u1"}])
        writer.delete_item.assert_called_once_with(Key={"PK": "TAG#u1", "SK": "PHOTO#p1"})


class TestItemKeys:
    def test_event_item(self):
        item = new_event_item("e1", "Shutterbugs", "T", "D", "2026-04-18")
        assert item["PK"] == "EVENT#e1"
        assert item["GSI2PK"] == "ORG#SHUTTERBUGS"
        assert item["isPublic"] is True

    def test_belongs_to_org_ignores_case(self):
        item = new_event_item("e1", "Shutterbugs", "T", "D", "2026-04-18")
        assert belongs_to_org(item, "shutterbugs")
        assert not belongs_to_org(item, "Other")

    def test_attendance_item(self):
        item = new_attendance_item("u1", "e1")
        assert (item["PK"], item["SK"]) == ("USER#u1", "EVENT#e1")
        assert (item["GSI2PK"], item["GSI2SK"]) == ("EVENT#e1", "USER#u1")

    def test_tag_item(self):
        item = new_tag_item("t1", "u1", "p1", "e1", "admin")
        assert (item["PK"], item["SK"]) == ("TAG#u1", "PHOTO#p1")
        assert (item["GSI1PK"], item["GSI1SK"]) == ("PHOTO#p1", "TAG#u1")

    def test_photo_object_key(self):
        assert photo_object_key("e1", "p1", "jpg") == "photos/e1/p1.jpg"
        assert photo_object_key("e1", "p1", "webp", "thumbnail") == "photos/e1/p1_thumbnail.webp"

    def test_org_pk_uppercases(self):
        assert org_pk("Shutterbugs") == "ORG#SHUTTERBUGS"

    def test_public_view_strips_keys_and_password(self):
        view = public_view({"PK": "USER#u1", "SK": "ENTITY", "GSI1PK": "x", "id": "u1", "password": "h"})
        assert view == {"id": "u1"}


class TestPublicEventPaging:
    @pytest.fixture
    def db(self):
        mock = MagicMock(spec=DynamoGateway)
        mock.query = AsyncMock()
        return mock

    @staticmethod
    def serve(rows):
        """Answer GSI2 queries from ``rows`` in order, like a live partition would."""

        async def query(partition, *, limit, start_key=None, **kwargs):
            start = 0
            if start_key:
                start = next(i for i, r in enumerate(rows) if r["GSI2SK"] == start_key["GSI2SK"]) + 1
            chunk = rows[start:start + limit]
            more = start + limit < len(rows)
            return Page(items=chunk, last_key=continuation_key(chunk[-1], GSI2) if more else None)

        return query

    async def test_pages_reach_every_public_event(self, db):
        private = [new_event_item(f"x{i}", "Shutterbugs", "T", "D", "2026-04-18", is_public=False) for i in range(10)]
        public = [new_event_item(f"e{i}", "Shutterbugs", "T", "D", "2026-04-18") for i in range(12)]
        db.query.side_effect = self.serve(private + public)
        repo = EventRepository(db)

        first, last_key = await repo.get_public_org_events("Shutterbugs")
        second, end = await repo.get_public_org_events("Shutterbugs", last_key)

        assert [e["id"] for e in first] == [f"e{i}" for i in range(9)]
        assert last_key == {"GSI2PK": "ORG#SHUTTERBUGS", "GSI2SK": "EVENT#e8", "PK": "EVENT#e8", "SK": "ENTITY"}
        assert [e["id"] for e in second] == ["e9", "e10", "e11"]
        assert end is None

    async def test_exactly_nine_keeps_the_read_key(self, db):
        public = [{"id": f"e{i}", "isPublic": True} for i in range(9)]
        db.query.side_effect = [Page(items=public, last_key={"PK": "EVENT#e8"})]

        events, last_key = await EventRepository(db).get_public_org_events("Shutterbugs")

        assert len(events) == 9
        assert last_key == {"PK": "EVENT#e8"}

    async def test_stops_when_partition_exhausted(self, db):
        db.query.side_effect = [Page(items=[{"id": "e1", "isPublic": True}], last_key=None)]

        events, last_key = await EventRepository(db).get_public_org_events("Shutterbugs")

        assert [e["id"] for e in events] == ["e1"]
        assert last_key is None


class TestPublicOrgPaging:
    @pytest.fixture
    def db(self):
        mock = MagicMock(spec=DynamoGateway)
        mock.query = AsyncMock()
        return mock

    async def test_reads_past_filtered_out_pages(self, db):
        db.query.side_effect = [
            Page(items=[], last_key={"PK": "ORG#PRIVATE9", "SK": "ENTITY"}),
            Page(items=[{"name": "Early Birds", "isPublic": True}], last_key=None),
        ]

        orgs, last_key = await OrgRepository(db).find_all_public_orgs()

        assert [o["name"] for o in orgs] == ["Early Birds"]
        assert last_key is None
        assert db.query.await_args_list[1].kwargs["start_key"] == {"PK": "ORG#PRIVATE9", "SK": "ENTITY"}

    async def test_empty_index(self, db):
        db.query.side_effect = [Page(items=[], last_key=None)]
        assert await OrgRepository(db).find_all_public_orgs() == ([], None)
        assert db.query.await_count == 1
