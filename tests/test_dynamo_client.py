import pytest

from functions.reviews.submit_review.interface import SubmitReviewRequest
from functions.reviews.submit_review.service import submit_review
from tracking_common.errors import BadRequestError, DuplicateReviewError, NotFoundError
from tracking_common.models import Review, TrackingUpdate

NOW = "2024-01-16T08:00:00+00:00"
ORDER_KEY = {"order_id": {"S": "ORD123"}, "sk": {"S": "order"}}
REVIEW_KEY = {"order_id": {"S": "ORD123"}, "sk": {"S": "review"}}


def _review():
    return Review(
        id="REV1705392000000ABC123",
        orderId="ORD123",
        rating=5,
        comment="Great",
        customerName="Ana Souza",
        productName="Ceramic Mug",
        createdAt=NOW,
        verified=True,
    )


def _cancelled(stubber, codes):
    stubber.add_client_error(
        "transact_write_items",
        service_error_code="TransactionCanceledException",
        service_message="Transaction cancelled",
        http_status_code=400,
        modeled_fields={"CancellationReasons": [{"Code": c} for c in codes]},
    )


class TestRecordTrackingUpdate:
    def test_delivered_update_is_single_conditional_write(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "update_item",
            {
                "Attributes": store.to_dynamo_json(
                    {
                        "order_id": "ORD123",
                        "sk": "order",
                        "status": "Delivered",
                        "lastUpdated": NOW,
                        "deliveredAt": "2024-01-15",
                        "canReview": True,
                        "trackingUpdates": [
                            {"status": "Delivered", "deliveryDate": "2024-01-15"}
                        ],
                        "total": 59.9,
                    }
                )
            },
            expected_params={
                "TableName": "OrderTracking",
                "Key": ORDER_KEY,
                "UpdateExpression": (
                    "SET #status = :status, #lastUpdated = :lastUpdated, "
                    "#deliveredAt = :deliveredAt, #canReview = :canReview, "
                    "#trackingUpdates = list_append("
                    "if_not_exists(#trackingUpdates, :empty_list), :trackingUpdates)"
                ),
                "ExpressionAttributeNames": {
                    "#status": "status",
                    "#lastUpdated": "lastUpdated",
                    "#deliveredAt": "deliveredAt",
                    "#canReview": "canReview",
                    "#trackingUpdates": "trackingUpdates",
                },
                "ExpressionAttributeValues": {
                    ":status": {"S": "Delivered"},
                    ":lastUpdated": {"S": NOW},
                    ":deliveredAt": {"S": "2024-01-15"},
                    ":canReview": {"BOOL": True},
                    ":trackingUpdates": {
                        "L": [
                            {
                                "M": {
                                    "status": {"S": "Delivered"},
                                    "deliveryDate": {"S": "2024-01-15"},
                                }
                            }
                        ]
                    },
                    ":empty_list": {"L": []},
                },
                "ConditionExpression": "attribute_exists(order_id)",
                "ReturnValues": "ALL_NEW",
            },
        )

        update = TrackingUpdate(status="Delivered", deliveryDate="2024-01-15")
        order = store.record_tracking_update(
            "ORD123", update, now=NOW, delivered_at="2024-01-15"
        )

        assert order.can_review is True
        assert order.delivered_at == "2024-01-15"
        assert len(order.tracking_updates) == 1
        assert order.to_json()["total"] == 59.9
        assert "order_id" not in order.to_json()

    def test_unknown_order(self, dynamo):
        store, stubber = dynamo
        stubber.add_client_error(
            "update_item",
            service_error_code="ConditionalCheckFailedException",
            http_status_code=400,
        )
        with pytest.raises(NotFoundError, match="Order not found"):
            store.record_tracking_update("ORD404", TrackingUpdate(status="x"), now=NOW)


class TestReads:
    def test_get_order(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "get_item",
            {"Item": store.to_dynamo_json({"order_id": "ORD123", "sk": "order", "status": "delivered"})},
            expected_params={
                "TableName": "OrderTracking",
                "Key": ORDER_KEY,
                "ConsistentRead": True,
            },
        )
        order = store.get_order("ORD123")
        assert order.is_reviewable

    def test_missing_review(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "get_item",
            {},
            expected_params={
                "TableName": "OrderTracking",
                "Key": REVIEW_KEY,
                "ConsistentRead": True,
            },
        )
        assert store.has_review("ORD123") is False

    def test_existing_review(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "get_item",
            {"Item": {**REVIEW_KEY, "id": {"S": "REV1"}, "orderId": {"S": "ORD123"}}},
            expected_params={
                "TableName": "OrderTracking",
                "Key": REVIEW_KEY,
                "ConsistentRead": True,
            },
        )
        assert store.has_review("ORD123") is True


class TestAddReview:
    def test_review_and_flag_written_in_one_transaction(self, dynamo):
        store, stubber = dynamo
        review = _review()
        stubber.add_response(
            "transact_write_items",
            {},
            expected_params={
                "TransactItems": [
                    {
                        "Put": {
                            "TableName": "OrderTracking",
                            "Item": {
                                **REVIEW_KEY,
                                "id": {"S": review.id},
                                "orderId": {"S": "ORD123"},
                                "rating": {"N": "5"},
                                "comment": {"S": "Great"},
                                "customerName": {"S": "Ana Souza"},
                                "productName": {"S": "Ceramic Mug"},
                                "createdAt": {"S": NOW},
                                "verified": {"BOOL": True},
                            },
                            "ConditionExpression": "attribute_not_exists(order_id)",
                        }
                    },
                    {
                        "Update": {
                            "TableName": "OrderTracking",
                            "Key": ORDER_KEY,
                            "UpdateExpression": "SET #hasReview = :hasReview, #reviewId = :reviewId",
                            "ExpressionAttributeNames": {
                                "#hasReview": "hasReview",
                                "#reviewId": "reviewId",
                            },
                            "ExpressionAttributeValues": {
                                ":hasReview": {"BOOL": True},
                                ":reviewId": {"S": review.id},
                            },
                            "ConditionExpression": "attribute_exists(order_id)",
                        }
                    },
                ]
            },
        )
        store.add_review(review)

    def test_existing_review_cancels_transaction(self, dynamo):
        store, stubber = dynamo
        _cancelled(stubber, ["ConditionalCheckFailed", "None"])
        with pytest.raises(DuplicateReviewError):
            store.add_review(_review())

    def test_missing_order_cancels_transaction(self, dynamo):
        store, stubber = dynamo
        _cancelled(stubber, ["None", "ConditionalCheckFailed"])
        with pytest.raises(NotFoundError):
            store.add_review(_review())

    def test_reconcile_is_a_no_op(self, dynamo):
        store, _ = dynamo
        assert store.reconcile_reviews() == []


class TestSubmitReviewOnDynamo:
    def _request(self):
        return SubmitReviewRequest(orderId="ORD123", rating=4, comment=" Nice ")

    def test_submit(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "get_item",
            {
                "Item": store.to_dynamo_json(
                    {
                        "order_id": "ORD123",
                        "sk": "order",
                        "status": "Delivered",
                        "items": [{"name": "Ceramic Mug"}],
                    }
                )
            },
        )
        stubber.add_response("get_item", {})
        stubber.add_response("transact_write_items", {})

        review = submit_review(store, self._request())

        assert review.comment == "Nice"
        assert review.product_name == "Ceramic Mug"
        assert review.customer_name == "Anonymous"

    def test_undelivered_order(self, dynamo):
        store, stubber = dynamo
        stubber.add_response(
            "get_item",
            {"Item": store.to_dynamo_json({"order_id": "ORD123", "sk": "order", "status": "shipped"})},
        )
        with pytest.raises(BadRequestError, match="Can only review delivered orders"):
            submit_review(store, self._request())
