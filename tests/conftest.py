import base64
import json

import boto3
import pytest
from botocore.stub import Stubber

from tracking_common.dynamo_client import DynamoTrackingStore
from tracking_common.stores import FileTrackingStore

SHIPPED_ORDER = {
    "status": "shipped",
    "customerName": "Ana Souza",
    "items": [{"name": "Ceramic Mug", "quantity": 2}],
    "total": 59.9,
    "trackingUpdates": [],
}


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    directory = tmp_path / "data"
    directory.mkdir()
    monkeypatch.setenv("STORE_BACKEND", "json")
    monkeypatch.setenv("DATA_DIR", str(directory))
    monkeypatch.delenv("ORDERS_FILE", raising=False)
    monkeypatch.delenv("REVIEWS_FILE", raising=False)
    monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
    return directory


@pytest.fixture
def write_orders(data_dir):
    def _write(orders):
        (data_dir / "orders.json").write_text(json.dumps(orders, indent=2))

    return _write


@pytest.fixture
def read_orders(data_dir):
    return lambda: json.loads((data_dir / "orders.json").read_text())


@pytest.fixture
def read_reviews(data_dir):
    return lambda: json.loads((data_dir / "reviews.json").read_text())


@pytest.fixture
def file_store(data_dir):
    return FileTrackingStore(data_dir / "orders.json", data_dir / "reviews.json")


@pytest.fixture
def dynamo():
    client = boto3.client(
        "dynamodb",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    store = DynamoTrackingStore("OrderTracking", client=client)
    with Stubber(client) as stubber:
        yield store, stubber
        stubber.assert_no_pending_responses()


def make_event(body=None, method="POST", headers=None, raw_body=None, base64_body=False):
    if raw_body is None and body is not None:
        raw_body = json.dumps(body)
    if base64_body and raw_body is not None:
        raw_body = base64.b64encode(raw_body.encode()).decode()
    return {
        "httpMethod": method,
        "headers": headers or {},
        "body": raw_body,
        "isBase64Encoded": base64_body,
    }


def body_of(response):
    return json.loads(response["body"]) if response["body"] else None
