import contextlib
import json
from decimal import Decimal
from typing import Any, List, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError
from loguru import logger

from tracking_common.errors import DuplicateReviewError, NotFoundError
from tracking_common.models import Order, Review, TrackingUpdate, is_delivered

ORDER_SK = "order"
REVIEW_SK = "review"
KEY_FIELDS = ("order_id", "sk")


class DynamoTrackingStore:
    """
    Orders and reviews in a single DynamoDB table.

    Partition key ``order_id``, sort key ``sk``: ``"order"`` holds the order
    record and ``"review"`` its review, so one review per order is enforced by
    the key itself. Writes touch single items with condition expressions
    instead of rewriting whole documents.
    """

    def __init__(self, table_name: str, client=None, region_name: Optional[str] = None):
        self.table_name = table_name
        self.client = client or boto3.client("dynamodb", region_name=region_name)
        self.serializer = TypeSerializer()
        self.deserializer = TypeDeserializer()

    def transaction(self):
        # Conditional writes already serialize concurrent callers.
        return contextlib.nullcontext()

    def _replace_decimals(self, obj):
        """Recursively converts Decimal to int/float for JSON serialization."""
        if isinstance(obj, list):
            return [self._replace_decimals(i) for i in obj]
        elif isinstance(obj, dict):
            return {k: self._replace_decimals(v) for k, v in obj.items()}
        elif isinstance(obj, Decimal):
            return int(obj) if obj % 1 == 0 else float(obj)
        return obj

    def _sanitize_float(self, obj):
        """Recursively converts float to Decimal for DynamoDB storage."""
        if isinstance(obj, float):
            return Decimal(str(obj))
        elif isinstance(obj, dict):
            return {k: self._sanitize_float(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._sanitize_float(i) for i in obj]
        return obj

    def to_dynamo_json(self, data: dict) -> dict:
        """Converts standard Dict to DynamoDB JSON format ({"S": "val"} etc)."""
        clean_data = self._sanitize_float(data)
        return self.serializer.serialize(clean_data)["M"]

    def from_dynamo_json(self, item: dict) -> dict:
        data = {k: self.deserializer.deserialize(v) for k, v in item.items()}
        data = self._replace_decimals(data)
        return {k: v for k, v in data.items() if k not in KEY_FIELDS}

    def key(self, order_id: str, sk: str) -> dict:
        return self.to_dynamo_json({"order_id": order_id, "sk": sk})

    def order_item(self, order_id: str, data: dict) -> dict:
        return self._sanitize_float({"order_id": order_id, "sk": ORDER_SK, **data})

    def review_item(self, data: dict) -> dict:
        return self._sanitize_float({"order_id": data["orderId"], "sk": REVIEW_SK, **data})

    def build_update_tx(self, key, data, appends=None, condition_expr=None):
        """
        Builds UpdateItem parameters that SET each field in ``data`` and append
        to each list in ``appends`` (creating the list when it is absent).
        """
        update_parts = []
        attr_names = {}
        raw_values_map = {}

        for k, v in data.items():
            update_parts.append(f"#{k} = :{k}")
            attr_names[f"#{k}"] = k
            raw_values_map[f":{k}"] = v

        for k, values in (appends or {}).items():
            update_parts.append(f"#{k} = list_append(if_not_exists(#{k}, :empty_list), :{k})")
            attr_names[f"#{k}"] = k
            raw_values_map[f":{k}"] = values
            raw_values_map[":empty_list"] = []

        tx_item = {
            "TableName": self.table_name,
            "Key": key,
            "UpdateExpression": f"SET {', '.join(update_parts)}",
            "ExpressionAttributeNames": attr_names,
            "ExpressionAttributeValues": self.to_dynamo_json(raw_values_map),
        }
        if condition_expr:
            tx_item["ConditionExpression"] = condition_expr
        return tx_item

    def _get(self, order_id: str, sk: str) -> Optional[dict]:
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=self.key(order_id, sk),
                ConsistentRead=True,
            )
        except ClientError as e:
            logger.error(f"Error getting item: {e.response['Error']['Message']}")
            raise
        item = response.get("Item")
        return self.from_dynamo_json(item) if item else None

    def get_order(self, order_id: str) -> Optional[Order]:
        data = self._get(order_id, ORDER_SK)
        return Order.model_validate(data) if data is not None else None

    def has_review(self, order_id: str) -> bool:
        return self._get(order_id, REVIEW_SK) is not None

    def record_tracking_update(
        self,
        order_number: str,
        update: TrackingUpdate,
        now: str,
        delivered_at: Any = None,
    ) -> Order:
        data = {"status": update.status, "lastUpdated": now}
        if is_delivered(update.status):
            data["deliveredAt"] = delivered_at or now
            data["canReview"] = True

        params = self.build_update_tx(
            key=self.key(order_number, ORDER_SK),
            data=data,
            appends={"trackingUpdates": [update.to_json()]},
            condition_expr="attribute_exists(order_id)",
        )
        try:
            response = self.client.update_item(**params, ReturnValues="ALL_NEW")
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.info(f"Order {order_number} not found in table")
                raise NotFoundError("Order not found")
            logger.error(f"Error updating order: {e.response['Error']['Message']}")
            raise

        return Order.model_validate(self.from_dynamo_json(response["Attributes"]))

    def add_review(self, review: Review) -> None:
        transact_items = [
            {
                "Put": {
                    "TableName": self.table_name,
                    "Item": self.to_dynamo_json(self.review_item(review.to_json())),
                    "ConditionExpression": "attribute_not_exists(order_id)",
                }
            },
            {
                "Update": self.build_update_tx(
                    key=self.key(review.order_id, ORDER_SK),
                    data={"hasReview": True, "reviewId": review.id},
                    condition_expr="attribute_exists(order_id)",
                )
            },
        ]

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
                if reasons[:1] == ["ConditionalCheckFailed"]:
                    raise DuplicateReviewError()
                if len(reasons) > 1 and reasons[1] == "ConditionalCheckFailed":
                    raise NotFoundError("Order not found")
            logger.error(json.dumps(e.response, default=str))
            raise

    def reconcile_reviews(self) -> List[str]:
        logger.info("Review and order flag are written in one transaction; nothing to repair")
        return []
