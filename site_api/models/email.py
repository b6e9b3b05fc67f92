from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class EmailKind(str, Enum):
    CONTACT_NOTIFICATION = "contact_notification"
    CONTACT_CONFIRMATION = "contact_confirmation"
    NEWSLETTER_NOTIFICATION = "newsletter_notification"
    NEWSLETTER_CONFIRMATION = "newsletter_confirmation"
    CATALOGUE_DELIVERY = "catalogue_delivery"
    CONTACT_FOLLOWUP = "contact_followup"
    NEWSLETTER_DAY3 = "newsletter_day3"
    NEWSLETTER_DAY7 = "newsletter_day7"

    @property
    def to_staff(self) -> bool:
        return self in (EmailKind.CONTACT_NOTIFICATION, EmailKind.NEWSLETTER_NOTIFICATION)


class EmailFailure(str, Enum):
    """Why a send failed. Diagnostic only: nothing is retried."""
    CONFIGURATION_MISSING = "configuration_missing"
    AUTHENTICATION_FAILED = "authentication_failed"
    CONNECTION_FAILED = "connection_failed"
    ATTACHMENT_MISSING = "attachment_missing"
    SMTP_ERROR = "smtp_error"
    UNKNOWN = "unknown"


@dataclass
class EmailDispatchResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[EmailFailure] = None
    code: Optional[int] = None

    @classmethod
    def sent(cls, message_id: str) -> "EmailDispatchResult":
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, failure: EmailFailure, error: str, code: Optional[int] = None) -> "EmailDispatchResult":
        return cls(success=False, error=error, failure=failure, code=code)


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass
class Attachment:
    path: Path
    filename: str
    maintype: str = "application"
    subtype: str = "pdf"
