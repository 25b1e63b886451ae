from loguru import logger
from tracking_common.errors import BadRequestError, DuplicateReviewError, NotFoundError
from tracking_common.models import Order, Review, generate_review_id, utc_now
from functions.reviews.submit_review.interface import SubmitReviewRequest


def build_review(request: SubmitReviewRequest, order: Order) -> Review:
    fields = {
        "id": generate_review_id(),
        "orderId": request.order_id,
        "rating": request.rating,
        "comment": request.comment,
        "imageUrl": request.image_url or None,
        "customerName": request.customer_name or order.customer_name or "Anonymous",
        "productName": request.product_name or order.product_name or "Product",
        "createdAt": utc_now(),
        "verified": True,
    }
    return Review(**{k: v for k, v in fields.items() if v is not None})


def submit_review(store, request: SubmitReviewRequest) -> Review:
    """
    Checks that the order exists, was delivered and has no review yet, then
    stores the review and flags the order as reviewed.
    """
    with logger.contextualize(order_id=request.order_id):
        with store.transaction():
            order = store.get_order(request.order_id)
            if order is None:
                raise NotFoundError("Order not found")

            if not order.is_reviewable:
                raise BadRequestError(
                    "Can only review delivered orders", "ORDER_NOT_DELIVERED"
                )

            if store.has_review(request.order_id):
                raise DuplicateReviewError()

            review = build_review(request, order)
            store.add_review(review)

        logger.info(f"Review {review.id} stored with rating {review.rating}")
        return review
