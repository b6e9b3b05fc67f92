from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime, timezone
import uuid


class ContactRequest(BaseModel):
    """Raw contact form body. Fields are sanitized by the intake pipeline, so any JSON type is accepted here."""
    name: Any = None
    email: Any = None
    project: Any = None
    message: Any = None


class ContactSubmission(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    project: Optional[str] = None
    message: str
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> dict:
        return self.model_dump()
