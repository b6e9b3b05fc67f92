"""
Outbound transactional email.

The Notifier sends exactly one templated email per call over SMTP
(aiosmtplib) and never raises: every outcome, including a missing SMTP
configuration, comes back as an EmailDispatchResult. Callers can therefore
treat a send as infallible for control-flow purposes and only inspect the
result for reporting.
"""

import asyncio
import logging
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any, Dict, Optional, Sequence

import aiosmtplib

from site_api.core.renderer import EmailRenderer
from site_api.models.email import Attachment, EmailDispatchResult, EmailFailure, EmailKind

logger = logging.getLogger(__name__)


def classify_failure(error: BaseException) -> EmailFailure:
    """
    Map a transport exception to a failure category for diagnostics.

    FileNotFoundError is checked before the connection errors because it is
    an OSError too.
    """
    if isinstance(error, aiosmtplib.SMTPAuthenticationError):
        return EmailFailure.AUTHENTICATION_FAILED
    if isinstance(error, FileNotFoundError):
        return EmailFailure.ATTACHMENT_MISSING
    if isinstance(error, (
        aiosmtplib.SMTPConnectError,
        aiosmtplib.SMTPServerDisconnected,
        aiosmtplib.SMTPTimeoutError,
        asyncio.TimeoutError,
        ConnectionError,
        OSError,
    )):
        return EmailFailure.CONNECTION_FAILED
    if isinstance(error, aiosmtplib.SMTPException):
        return EmailFailure.SMTP_ERROR
    return EmailFailure.UNKNOWN


class Notifier:
    """Composes and sends one email per call."""

    def __init__(self, settings, renderer: Optional[EmailRenderer] = None):
        self.settings = settings
        self.renderer = renderer or EmailRenderer(settings.brand_name, settings.website_url)

    @property
    def is_configured(self) -> bool:
        return self.settings.smtp_configured

    def log_configuration(self):
        """Log which SMTP settings are present, never their values."""
        settings = self.settings
        logger.info(f"   SMTP_HOST: {settings.smtp_host}")
        logger.info(f"   SMTP_PORT: {settings.smtp_port}")
        logger.info(f"   SMTP_EMAIL: {'✓ Set' if settings.smtp_email else '✗ Missing'}")
        logger.info(f"   SMTP_PASSWORD: {'✓ Set' if settings.smtp_password else '✗ Missing'}")
        logger.info(f"   NOTIFICATION_EMAIL: {settings.notification_email}")
        if not self.is_configured:
            logger.warning("⚠️ SMTP configuration is missing or incomplete! Submissions are still stored but no emails will be sent.")

    def recipient_for(self, kind: EmailKind, record: Dict[str, Any]) -> str:
        if kind.to_staff:
            return self.settings.notification_email
        return record["email"]

    async def build_message(
        self,
        kind: EmailKind,
        record: Dict[str, Any],
        attachments: Sequence[Attachment] = (),
    ) -> EmailMessage:
        rendered = self.renderer.render(kind, record)
        sender = self.settings.sender_address
        from_name = f"{self.settings.brand_name} Website" if kind.to_staff else self.settings.smtp_from_name

        message = EmailMessage()
        message["From"] = formataddr((from_name, sender))
        message["To"] = self.recipient_for(kind, record)
        message["Subject"] = rendered.subject
        message["Message-ID"] = make_msgid(domain=sender.split("@")[-1])
        if kind.to_staff and record.get("email"):
            message["Reply-To"] = record["email"]

        message.set_content(rendered.text)
        message.add_alternative(rendered.html, subtype="html")

        for attachment in attachments:
            data = await asyncio.to_thread(attachment.path.read_bytes)
            message.add_attachment(
                data,
                maintype=attachment.maintype,
                subtype=attachment.subtype,
                filename=attachment.filename,
            )
        return message

    async def send(
        self,
        kind: EmailKind,
        record: Dict[str, Any],
        attachments: Sequence[Attachment] = (),
    ) -> EmailDispatchResult:
        """
        Send one email of the given kind.

        Args:
            kind: Which template/recipient to use
            record: Submission or subscriber record (needs at least "email")
            attachments: Files to attach (catalogue delivery)

        Returns:
            EmailDispatchResult: success with message_id, or a classified failure
        """
        if not self.is_configured:
            logger.error(f"⚠️ SMTP configuration missing - {kind.value} email not sent")
            return EmailDispatchResult.failed(
                EmailFailure.CONFIGURATION_MISSING,
                "SMTP configuration is missing. Please check SMTP_EMAIL and SMTP_PASSWORD.",
            )

        settings = self.settings
        recipient = record.get("email") if not kind.to_staff else settings.notification_email

        try:
            message = await self.build_message(kind, record, attachments)
            logger.info(f"📧 Sending {kind.value} email to {message['To']}")
            await aiosmtplib.send(
                message,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_email,
                password=settings.smtp_password,
                use_tls=settings.smtp_port == 465,
                timeout=settings.smtp_timeout,
            )
        except Exception as e:
            failure = classify_failure(e)
            code = getattr(e, "code", None)
            logger.error(
                f"❌ Failed to send {kind.value} email to {recipient}: "
                f"{failure.value} (code={code if code is not None else 'N/A'}) - {str(e)}"
            )
            if failure in (EmailFailure.AUTHENTICATION_FAILED, EmailFailure.CONNECTION_FAILED):
                logger.error(f"   SMTP Host: {settings.smtp_host}, Port: {settings.smtp_port}")
            return EmailDispatchResult.failed(failure, str(e) or failure.value, code=code)

        message_id = message["Message-ID"]
        logger.info(f"✅ {kind.value} email sent to {message['To']} (Message ID: {message_id})")
        return EmailDispatchResult.sent(message_id)
