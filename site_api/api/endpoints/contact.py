"""
Contact form endpoint.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from site_api.api.deps import get_intake
from site_api.core.intake import IntakePipeline
from site_api.models.contact import ContactRequest
from site_api.models.responses import SubmissionResponse

router = APIRouter()


@router.post("/contact", status_code=status.HTTP_201_CREATED, response_model=SubmissionResponse)
async def submit_contact(body: ContactRequest, intake: IntakePipeline = Depends(get_intake)):
    """
    Store a contact form submission and send the notification/confirmation emails.

    The submission is saved before any email is attempted. Email failures never
    change the 201; they only show up in emailStatus / emailSent.

    Returns:
        dict: {success, message, emailStatus, emailSent}
    """
    result = await intake.submit_contact(body)
    return JSONResponse(status_code=result.status_code, content=result.body)
