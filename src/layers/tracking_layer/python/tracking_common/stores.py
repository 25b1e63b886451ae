from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from tracking_common.config import Settings, load_settings
from tracking_common.dynamo_client import DynamoTrackingStore
from tracking_common.errors import (
    DuplicateReviewError,
    NotFoundError,
    StoreUnavailableError,
)
from tracking_common.json_store import JsonDocument, LoadResult, LoadStatus, file_lock
from tracking_common.models import Order, Review, TrackingUpdate, review_order_id


class FileTrackingStore:
    """
    Order Store and Review Store kept as two JSON documents on local disk.

    Every mutation is a whole-document rewrite. Only the targeted order is
    turned into a model; every other entry is written back exactly as read.
    Callers wrap each read-modify-write cycle in ``transaction()``, which holds
    an exclusive lock shared by both documents.
    """

    def __init__(self, orders_path, reviews_path, lock_path=None):
        self.orders = JsonDocument(orders_path)
        self.reviews = JsonDocument(reviews_path)
        self.lock_path = Path(lock_path or f"{orders_path}.lock")

    def transaction(self):
        return file_lock(self.lock_path)

    def load_orders(self) -> LoadResult:
        result = self.orders.load()
        if result.ok and not isinstance(result.data, dict):
            logger.error("Orders file does not hold an object keyed by order id")
            return LoadResult(status=LoadStatus.CORRUPT, error="not a JSON object")
        return result

    def load_reviews(self) -> List[Any]:
        result = self.reviews.load()
        if result.status is LoadStatus.MISSING:
            return []
        if not result.ok or not isinstance(result.data, list):
            logger.error(f"Reviews file is unreadable: {result.error or 'not a JSON list'}")
            raise StoreUnavailableError("Reviews file is unreadable")
        return result.data

    def _require_orders(self) -> Dict[str, Any]:
        result = self.load_orders()
        if not result.ok:
            raise StoreUnavailableError(f"Orders file is unavailable: {result.error}")
        return result.data

    @staticmethod
    def _order(orders: Dict[str, Any], order_id: str) -> Optional[Order]:
        raw = orders.get(order_id)
        if not isinstance(raw, dict):
            if raw:
                logger.warning(f"Order {order_id} is not a JSON object, ignoring it")
            return None
        return Order.model_validate(raw)

    def record_tracking_update(
        self,
        order_number: str,
        update: TrackingUpdate,
        now: str,
        delivered_at: Any = None,
    ) -> Order:
        result = self.load_orders()
        if not result.ok:
            logger.error(f"Failed to read orders file: {result.error}")
            raise NotFoundError("Orders file not found")

        orders = result.data
        order = self._order(orders, order_number)
        if order is None:
            logger.info(f"Order {order_number} not found in local storage")
            raise NotFoundError("Order not found")

        order.apply_tracking_update(update, now, delivered_at)
        orders[order_number] = order.to_json()
        self.orders.write(orders)
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        result = self.load_orders()
        if not result.ok:
            # Review path: an unreadable store reads as an empty one.
            logger.error(f"Failed to read orders file: {result.error}")
            return None
        return self._order(result.data, order_id)

    def has_review(self, order_id: str) -> bool:
        return any(review_order_id(r) == order_id for r in self.load_reviews())

    def add_review(self, review: Review) -> None:
        reviews = self.load_reviews()
        if any(review_order_id(r) == review.order_id for r in reviews):
            raise DuplicateReviewError()

        reviews.append(review.to_json())
        self.reviews.write(reviews)

        # Second, independent write. A failure here is repaired by reconcile_reviews.
        orders = self._require_orders()
        order = self._order(orders, review.order_id)
        if order is None:
            raise NotFoundError("Order not found")
        order.mark_reviewed(review.id)
        orders[review.order_id] = order.to_json()
        self.orders.write(orders)

    def reconcile_reviews(self) -> List[str]:
        """Flags every order that has a stored review but no ``hasReview`` mark."""
        orders = self._require_orders()
        repaired = []
        for raw in self.load_reviews():
            order_id = review_order_id(raw)
            review_id = raw.get("id") if isinstance(raw, dict) else None
            order = self._order(orders, order_id) if order_id else None
            if order is None or not review_id:
                logger.warning(f"Review {review_id} references unknown order {order_id}")
                continue
            if order.has_review and order.review_id == review_id:
                continue
            order.mark_reviewed(review_id)
            orders[order_id] = order.to_json()
            repaired.append(order_id)

        if repaired:
            self.orders.write(orders)
        return repaired


def get_store(settings: Optional[Settings] = None):
    settings = settings or load_settings()
    if settings.store_backend == "dynamodb":
        return DynamoTrackingStore(settings.table_name, region_name=settings.aws_region)
    return FileTrackingStore(settings.orders_path, settings.reviews_path)
