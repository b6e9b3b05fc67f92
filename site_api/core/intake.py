"""
Submission intake pipelines for the contact form and the newsletter.

Flow for each submission kind:
1. Validate and sanitize the raw body (400 before touching storage)
2. Newsletter only: look the email up and short-circuit if already subscribed
3. Persist the record (500 if this fails; nothing downstream runs)
4. Send the staff notification and the user confirmation concurrently
5. Respond. Once step 3 committed the request is a success; email outcomes
   only shape the advisory emailStatus field.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from site_api.core.errors import ClientInputError, StoreError, SubmissionNotSaved
from site_api.core.gather import Settled, gather_settled
from site_api.core.notifier import Notifier
from site_api.core.validation import sanitize, sanitize_email, validate_email
from site_api.db.store import CONTACT_SUBMISSIONS, NEWSLETTER_SUBSCRIBERS, RecordStore
from site_api.models.contact import ContactRequest, ContactSubmission
from site_api.models.email import EmailDispatchResult, EmailFailure, EmailKind
from site_api.models.newsletter import NewsletterRequest, NewsletterSubscriber

logger = logging.getLogger(__name__)


class EmailStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


CONTACT_MESSAGES = {
    EmailStatus.SUCCESS: "Thank you for reaching out! We will get back to you shortly. A confirmation email has been sent to your inbox.",
    EmailStatus.FAILED: "Thank you for reaching out! Your message has been received, but we were unable to send a confirmation email. We will contact you directly.",
    EmailStatus.UNAVAILABLE: "Thank you for reaching out! Your message has been received. However, email notifications are currently unavailable. We will contact you directly.",
    EmailStatus.PARTIAL: "Thank you for reaching out! We will get back to you shortly.",
}

NEWSLETTER_MESSAGES = {
    EmailStatus.SUCCESS: "Welcome aboard! You will start receiving our updates shortly. A confirmation email has been sent to your inbox.",
    EmailStatus.FAILED: "Thank you for subscribing! Your subscription has been recorded, but we were unable to send a confirmation email. We will contact you directly.",
    EmailStatus.UNAVAILABLE: "Thank you for subscribing! Your subscription has been recorded. However, email notifications are currently unavailable. We will contact you directly.",
    EmailStatus.PARTIAL: "Welcome aboard! You will start receiving our updates shortly.",
}

ALREADY_SUBSCRIBED_MESSAGE = "You are already subscribed. Thank you for staying in touch!"


@dataclass
class IntakeResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def derive_email_status(transport_configured: bool, confirmation: Optional[EmailDispatchResult]) -> EmailStatus:
    """Advisory email status, driven only by the user confirmation."""
    if not transport_configured:
        return EmailStatus.UNAVAILABLE
    if confirmation is not None and confirmation.success:
        return EmailStatus.SUCCESS
    if confirmation is not None and confirmation.error:
        return EmailStatus.FAILED
    return EmailStatus.PARTIAL


def as_dispatch_result(outcome: Settled) -> EmailDispatchResult:
    """Notifier.send does not raise, but a settled join still might carry an exception."""
    if outcome.ok:
        return outcome.value
    return EmailDispatchResult.failed(EmailFailure.UNKNOWN, str(outcome.exception) or repr(outcome.exception))


class IntakePipeline:
    """Runs contact and newsletter submissions through validate, persist, notify, respond."""

    def __init__(self, store: RecordStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    async def notify_pair(self, staff_kind: EmailKind, user_kind: EmailKind, record: Dict[str, Any]):
        """
        Send the staff notification and the user confirmation concurrently.

        Returns:
            tuple: (notification result, confirmation result)
        """
        outcomes = await gather_settled(
            self.notifier.send(staff_kind, record),
            self.notifier.send(user_kind, record),
        )
        notification, confirmation = (as_dispatch_result(outcome) for outcome in outcomes)

        if notification.success:
            logger.info(f"✅ {staff_kind.value} sent (Message ID: {notification.message_id})")
        else:
            logger.warning(f"⚠️ {staff_kind.value} may not have been sent: {notification.error}")

        if confirmation.success:
            logger.info(f"✅ {user_kind.value} sent to {record['email']} (Message ID: {confirmation.message_id})")
        else:
            logger.error(f"❌ {user_kind.value} FAILED to send to {record['email']}: {confirmation.error}")

        return notification, confirmation

    def respond(self, status_code: int, messages, confirmation: EmailDispatchResult) -> IntakeResponse:
        email_status = derive_email_status(self.notifier.is_configured, confirmation)
        return IntakeResponse(status_code, {
            "success": True,
            "message": messages[email_status],
            "emailStatus": email_status.value,
            "emailSent": bool(confirmation and confirmation.success),
        })

    async def submit_contact(self, request: ContactRequest) -> IntakeResponse:
        name = sanitize(request.name)
        email = sanitize_email(request.email)
        project = sanitize(request.project)
        message = sanitize(request.message)

        if not name or not email or not message:
            raise ClientInputError("Missing required fields. Please provide name, email, and message.")
        if not validate_email(email):
            raise ClientInputError("Please provide a valid email address.")

        submission = ContactSubmission(name=name, email=email, project=project or None, message=message)
        record = submission.to_record()

        try:
            await self.store.insert(CONTACT_SUBMISSIONS, record)
        except StoreError as e:
            logger.error(f"Failed to store contact submission: {e.message}")
            raise SubmissionNotSaved("Unable to save your request right now. Please try again later.") from e

        logger.info(f"📝 Contact submission received: {name} <{email}> (project: {project or 'Not specified'})")

        _, confirmation = await self.notify_pair(
            EmailKind.CONTACT_NOTIFICATION, EmailKind.CONTACT_CONFIRMATION, record
        )
        return self.respond(201, CONTACT_MESSAGES, confirmation)

    def already_subscribed(self) -> IntakeResponse:
        return IntakeResponse(200, {
            "success": True,
            "message": ALREADY_SUBSCRIBED_MESSAGE,
            "emailStatus": None,
            "emailSent": False,
        })

    async def subscribe_newsletter(self, request: NewsletterRequest) -> IntakeResponse:
        email = sanitize_email(request.email)
        name = sanitize(request.name)

        if not email:
            raise ClientInputError("Email is required to subscribe.")
        if not validate_email(email):
            raise ClientInputError("Please enter a valid email address.")

        try:
            existing = await self.store.find_by_key(NEWSLETTER_SUBSCRIBERS, "email", email)
        except StoreError as e:
            # Unknown is not "exists": the insert below and the unique index decide
            logger.warning(f"Warning: Error checking for existing subscriber: {e.message}")
            existing = None

        if existing:
            logger.info(f"Newsletter subscription duplicate ignored: {email}")
            return self.already_subscribed()

        subscriber = NewsletterSubscriber(name=name or None, email=email)
        record = subscriber.to_record()

        try:
            result = await self.store.insert(NEWSLETTER_SUBSCRIBERS, record)
        except StoreError as e:
            logger.error(f"Failed to store newsletter subscription: {e.message}")
            raise SubmissionNotSaved("Unable to subscribe right now. Please try again later.") from e

        if not result.inserted:
            logger.info(f"Newsletter subscription duplicate ignored (unique constraint): {email}")
            return self.already_subscribed()

        logger.info(f"📬 Newsletter subscription received: {email}")

        _, confirmation = await self.notify_pair(
            EmailKind.NEWSLETTER_NOTIFICATION, EmailKind.NEWSLETTER_CONFIRMATION, record
        )
        return self.respond(201, NEWSLETTER_MESSAGES, confirmation)
