from loguru import logger
from tracking_common.config import setup_logging
from tracking_common.stores import get_store

setup_logging()


def lambda_handler(event, context):
    """
    Scheduled repair pass: flags orders whose review was stored but whose
    ``hasReview`` write never happened.
    """
    store = get_store()
    with store.transaction():
        repaired = store.reconcile_reviews()

    if repaired:
        logger.warning(f"Repaired review flag on {len(repaired)} orders: {repaired}")
    else:
        logger.info("All reviewed orders are flagged")
    return {"repaired": repaired, "count": len(repaired)}
