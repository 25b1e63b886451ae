import os
import sys
import boto3
from dotenv import load_dotenv
from loguru import logger

from tracking_common.config import load_settings
from tracking_common.dynamo_client import DynamoTrackingStore
from tracking_common.models import review_order_id
from tracking_common.stores import FileTrackingStore

load_dotenv(override=True)


def migrate(file_store: FileTrackingStore, dynamo_store: DynamoTrackingStore, table):
    """Copies every order and review of the JSON stores into the DynamoDB table."""
    result = file_store.load_orders()
    if not result.ok:
        raise RuntimeError(f"Orders file unavailable: {result.error}")
    orders = result.data
    reviews = file_store.load_reviews()

    logger.info(f"Found {len(orders)} orders and {len(reviews)} reviews. Copying...")
    with table.batch_writer() as batch:
        for i, (order_id, order) in enumerate(orders.items()):
            if not isinstance(order, dict):
                logger.warning(f"Skipping order {order_id}: not a JSON object")
                continue
            batch.put_item(Item=dynamo_store.order_item(order_id, order))
            if i % 50 == 0:
                logger.info(f"Copied {i} orders...")
        for review in reviews:
            if not review_order_id(review):
                logger.warning(f"Skipping review without orderId: {review}")
                continue
            batch.put_item(Item=dynamo_store.review_item(review))

    logger.info("Migration finished")
    return len(orders), len(reviews)


if __name__ == "__main__":
    settings = load_settings()
    table_name = sys.argv[1] if len(sys.argv) > 1 else settings.table_name
    region = os.getenv("AWS_REGION", "us-east-1")

    dynamo = boto3.resource("dynamodb", region_name=region)
    migrate(
        FileTrackingStore(settings.orders_path, settings.reviews_path),
        DynamoTrackingStore(table_name, region_name=region),
        dynamo.Table(table_name),
    )
