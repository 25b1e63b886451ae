"""
Records persisted in the Order Store and the Review Store.

Order records are created by the order placement system, which owns their
format: the fields it writes are typed ``Any`` so a value of an unexpected type
is carried through untouched instead of rejected or coerced. Every record is
dumped with ``exclude_unset`` so that fields absent on read stay absent on
write.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DELIVERED = "delivered"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_review_id() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"REV{int(time.time() * 1000)}{suffix}"


def is_delivered(status: Any) -> bool:
    return isinstance(status, str) and status.lower() == DELIVERED


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class TrackingUpdate(Record):
    status: Any
    previous_status: Any = Field(None, alias="previousStatus")
    updated_at: Any = Field(None, alias="updatedAt")
    delivery_date: Any = Field(None, alias="deliveryDate")
    remarks: Any = None
    location: Any = None


class Order(Record):
    status: Any = None
    last_updated: Any = Field(None, alias="lastUpdated")
    tracking_updates: Any = Field(default_factory=list, alias="trackingUpdates")
    delivered_at: Any = Field(None, alias="deliveredAt")
    can_review: Any = Field(None, alias="canReview")
    has_review: Any = Field(None, alias="hasReview")
    review_id: Any = Field(None, alias="reviewId")
    customer_name: Any = Field(None, alias="customerName")
    items: Any = None

    @property
    def is_reviewable(self) -> bool:
        return bool(self.can_review) or is_delivered(self.status)

    @property
    def product_name(self) -> Any:
        if isinstance(self.items, list) and self.items and isinstance(self.items[0], dict):
            return self.items[0].get("name")
        return None

    def apply_tracking_update(
        self, update: TrackingUpdate, now: str, delivered_at: Any = None
    ) -> None:
        history = self.tracking_updates if isinstance(self.tracking_updates, list) else []
        self.status = update.status
        self.last_updated = now
        self.tracking_updates = [*history, update.to_json()]
        if is_delivered(update.status):
            self.delivered_at = delivered_at or now
            self.can_review = True

    def mark_reviewed(self, review_id: str) -> None:
        self.has_review = True
        self.review_id = review_id


class Review(Record):
    id: str
    order_id: str = Field(alias="orderId")
    rating: int = Field(ge=1, le=5)
    comment: str
    image_url: Any = Field(None, alias="imageUrl")
    customer_name: Any = Field(None, alias="customerName")
    product_name: Any = Field(None, alias="productName")
    created_at: str = Field(alias="createdAt")
    verified: bool = True


def review_order_id(raw: Any) -> Optional[str]:
    """``orderId`` of a stored review entry, whatever shape the entry has."""
    return raw.get("orderId") if isinstance(raw, dict) else None
