from tracking_common.config import load_settings, setup_logging
from tracking_common.decorators import lambda_wrapper
from tracking_common.responses import success
from tracking_common.stores import get_store
from functions.orders.carrier_webhook.interface import CarrierWebhookRequest
from functions.orders.carrier_webhook.service import process_webhook

setup_logging()


@lambda_wrapper(
    model=CarrierWebhookRequest,
    error_message="Failed to process webhook",
    allow_headers="Content-Type, Authorization",
    secret_provider=lambda: load_settings().webhook_secret,
)
def lambda_handler(request: CarrierWebhookRequest, context):
    process_webhook(get_store(), request)
    return success(
        {
            "success": True,
            "message": "Order status updated successfully",
            "order_number": request.order_number,
            "new_status": request.current_status,
        }
    )
