"""
Newsletter subscription endpoint.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from site_api.api.deps import get_intake
from site_api.core.intake import IntakePipeline
from site_api.models.newsletter import NewsletterRequest
from site_api.models.responses import SubmissionResponse

router = APIRouter()


@router.post(
    "/newsletter",
    status_code=status.HTTP_201_CREATED,
    response_model=SubmissionResponse,
    responses={status.HTTP_200_OK: {"model": SubmissionResponse, "description": "Already subscribed"}},
)
async def subscribe_newsletter(body: NewsletterRequest, intake: IntakePipeline = Depends(get_intake)):
    """
    Subscribe an email address to the newsletter.

    Returns 201 for a new subscriber and 200 when the address was already
    subscribed (no emails are sent in that case).
    """
    result = await intake.subscribe_newsletter(body)
    return JSONResponse(status_code=result.status_code, content=result.body)
