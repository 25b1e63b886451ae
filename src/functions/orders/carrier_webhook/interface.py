from tracking_common.decorators import ApiRequest
from tracking_common.models import TrackingUpdate
from pydantic import field_validator, model_validator
from typing import Any


class CarrierWebhookRequest(ApiRequest):
    # Carrier fields other than the order reference are stored as received.
    awb_number: Any = None
    order_number: str
    current_status: Any
    previous_status: Any = None
    updated_at: Any = None
    delivery_date: Any = None
    remarks: Any = None
    location: Any = None

    @model_validator(mode="before")
    @classmethod
    def require_order_and_status(cls, data):
        if not data.get("order_number") or not data.get("current_status"):
            raise ValueError("Missing required webhook data")
        return data

    @field_validator("awb_number", "order_number", mode="before")
    @classmethod
    def stringify_reference(cls, v):
        if isinstance(v, str):
            return v.strip()
        elif isinstance(v, int):
            return str(v)
        return v

    def to_tracking_update(self) -> TrackingUpdate:
        fields = {
            "status": self.current_status,
            "previousStatus": self.previous_status,
            "updatedAt": self.updated_at,
            "deliveryDate": self.delivery_date,
            "remarks": self.remarks,
            "location": self.location,
        }
        return TrackingUpdate(**{k: v for k, v in fields.items() if v is not None})
