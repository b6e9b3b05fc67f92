from pydantic import BaseModel
from typing import Optional


class SubmissionResponse(BaseModel):
    """Body returned by the contact and newsletter endpoints."""
    success: bool = True
    message: str
    emailStatus: Optional[str] = None
    emailSent: bool = False
