from loguru import logger
from tracking_common.models import Order, is_delivered, utc_now
from functions.orders.carrier_webhook.interface import CarrierWebhookRequest


def process_webhook(store, request: CarrierWebhookRequest) -> Order:
    """
    Applies one carrier status notification to its order.

    Appends a tracking update, overwrites the status and, on a "delivered"
    status, stamps ``deliveredAt`` and opens the order for review.
    """
    with logger.contextualize(
        order_number=request.order_number, awb_number=request.awb_number
    ):
        logger.info(f"Received webhook: {request.model_dump(exclude_none=True)}")

        with store.transaction():
            order = store.record_tracking_update(
                request.order_number,
                request.to_tracking_update(),
                now=utc_now(),
                delivered_at=request.delivery_date,
            )

        if is_delivered(request.current_status):
            logger.info(f"Order {request.order_number} marked as delivered")
        logger.info(f"Order {request.order_number} updated successfully")
        return order
