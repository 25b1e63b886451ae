from tracking_common.decorators import ApiRequest
from pydantic import Field, field_validator, model_validator
from typing import Optional

RATING_RANGE_MESSAGE = "Rating must be between 1 and 5"


class SubmitReviewRequest(ApiRequest):
    order_id: str = Field(alias="orderId")
    rating: int
    comment: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    customer_name: Optional[str] = Field(None, alias="customerName")
    product_name: Optional[str] = Field(None, alias="productName")

    @model_validator(mode="before")
    @classmethod
    def require_fields(cls, data):
        if not all(data.get(f) for f in ("orderId", "rating", "comment")):
            raise ValueError("Missing required fields: orderId, rating, comment")
        return data

    @field_validator("order_id", mode="before")
    @classmethod
    def stringify_order_id(cls, v):
        if isinstance(v, str):
            return v.strip()
        elif isinstance(v, int):
            return str(v)
        return v

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v):
        if isinstance(v, bool):
            raise ValueError(RATING_RANGE_MESSAGE)
        if isinstance(v, str) and v.strip().isdigit():
            v = int(v.strip())
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if not isinstance(v, int) or not 1 <= v <= 5:
            raise ValueError(RATING_RANGE_MESSAGE)
        return v

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v):
        return v.strip()
