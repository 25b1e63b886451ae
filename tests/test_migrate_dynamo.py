import json
from decimal import Decimal

import pytest

from migrate_dynamo import migrate


class FakeTable:
    def __init__(self):
        self.items = []

    def batch_writer(self):
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def put_item(self, Item):
        self.items.append(Item)


def test_copies_orders_and_reviews(file_store, write_orders, data_dir, dynamo):
    store, _ = dynamo
    write_orders(
        {
            "ORD1": {"status": "delivered", "total": 12.5, "hasReview": True, "reviewId": "REV1"},
            "ORD2": {"status": "shipped"},
        }
    )
    (data_dir / "reviews.json").write_text(
        json.dumps(
            [
                {
                    "id": "REV1",
                    "orderId": "ORD1",
                    "rating": 5,
                    "comment": "Great",
                    "createdAt": "2024-01-16T08:00:00+00:00",
                    "verified": True,
                }
            ]
        )
    )
    table = FakeTable()

    assert migrate(file_store, store, table) == (2, 1)

    keys = [(item["order_id"], item["sk"]) for item in table.items]
    assert keys == [("ORD1", "order"), ("ORD2", "order"), ("ORD1", "review")]
    assert table.items[0]["total"] == Decimal("12.5")
    assert table.items[2]["rating"] == 5


def test_requires_readable_orders(file_store, dynamo):
    store, _ = dynamo
    with pytest.raises(RuntimeError, match="Orders file unavailable"):
        migrate(file_store, store, FakeTable())


def test_skips_entries_without_a_key(file_store, write_orders, data_dir, dynamo):
    store, _ = dynamo
    write_orders({"ORD1": {"status": "shipped", "lastUpdated": 1705300000000}, "ORD2": "legacy"})
    (data_dir / "reviews.json").write_text(json.dumps([{"id": "REV9", "rating": 3}]))
    table = FakeTable()

    migrate(file_store, store, table)

    assert [(item["order_id"], item["sk"]) for item in table.items] == [("ORD1", "order")]
    assert table.items[0]["lastUpdated"] == 1705300000000
