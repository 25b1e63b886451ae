from tracking_common.config import setup_logging
from tracking_common.decorators import lambda_wrapper
from tracking_common.responses import success
from tracking_common.stores import get_store
from functions.reviews.submit_review.interface import SubmitReviewRequest
from functions.reviews.submit_review.service import submit_review

setup_logging()


@lambda_wrapper(model=SubmitReviewRequest, error_message="Failed to submit review")
def lambda_handler(request: SubmitReviewRequest, context):
    review = submit_review(get_store(), request)
    return success(
        {
            "success": True,
            "review_id": review.id,
            "message": "Review submitted successfully",
            "review": review.to_json(),
        }
    )
