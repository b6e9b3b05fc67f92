"""
Catalogue delivery: email the catalogue PDF as an attachment, or hand it out
for direct download.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from site_api.core.errors import AssetNotFound, ClientInputError, MailConfigurationMissing, MailDeliveryFailed
from site_api.core.notifier import Notifier
from site_api.core.validation import sanitize_email, validate_email
from site_api.models.catalogue import CatalogueEmailRequest
from site_api.models.email import Attachment, EmailDispatchResult, EmailFailure, EmailKind

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

CATALOGUE_SENT_MESSAGE = "Catalogue sent successfully! Please check your email inbox."
SMTP_UNAVAILABLE_MESSAGE = (
    "Email service is currently unavailable. Please try downloading the catalogue directly "
    "or contact us for assistance."
)

# failure -> (status code, errorType, user-facing message)
FAILURE_RESPONSES = {
    EmailFailure.CONFIGURATION_MISSING: (
        503, "smtp_config_missing", "Email service configuration is missing. Please contact support."),
    EmailFailure.AUTHENTICATION_FAILED: (
        500, "smtp_authentication_failed", "Email service authentication failed. Please check SMTP configuration."),
    EmailFailure.CONNECTION_FAILED: (
        500, "smtp_connection_failed", "Cannot connect to email server. Please check network and SMTP settings."),
    EmailFailure.ATTACHMENT_MISSING: (
        404, "file_not_found", "Catalogue file not found. Please contact support."),
    EmailFailure.SMTP_ERROR: (
        500, "smtp_error", "Email service error: {error}. Please try again later."),
    EmailFailure.UNKNOWN: (
        500, "unknown_error", "Unable to send catalogue email right now. Please try again later or contact us directly."),
}


def delivery_error(result: EmailDispatchResult) -> MailDeliveryFailed:
    """Turn a failed catalogue send into the error surfaced to the caller."""
    failure = result.failure or EmailFailure.UNKNOWN
    status_code, error_type, message = FAILURE_RESPONSES[failure]
    details = {"message": result.error, "code": result.code}
    return MailDeliveryFailed(
        message.format(error=result.error or "Unable to send email"),
        status_code=status_code,
        error_type=error_type,
        details=details,
    )


class CatalogueDispatcher:
    """Validates catalogue requests and sends the PDF through the Notifier."""

    def __init__(self, notifier: Notifier, catalogue_path: Path, attachment_name: str, size_warning_mb: float = 25.0):
        self.notifier = notifier
        self.catalogue_path = Path(catalogue_path)
        self.attachment_name = attachment_name
        self.size_warning_bytes = int(size_warning_mb * MIB)

    def locate(self) -> Path:
        """
        Return the catalogue path for download.

        Raises:
            AssetNotFound: If the file is absent
        """
        if not self.catalogue_path.is_file():
            logger.error(f"❌ Catalogue file not found: {self.catalogue_path}")
            raise AssetNotFound("Catalogue file not found")
        return self.catalogue_path

    def missing_file_error(self) -> AssetNotFound:
        logger.error(f"❌ Catalogue file not found: {self.catalogue_path}")
        return AssetNotFound(
            "Catalogue file not found. Please contact support.",
            error_type="file_not_found",
        )

    def warn_if_oversized(self):
        try:
            size = self.catalogue_path.stat().st_size
        except FileNotFoundError as e:
            raise self.missing_file_error() from e
        if size > self.size_warning_bytes:
            logger.warning(
                f"⚠️ Catalogue file size is {size / MIB:.2f} MB, may exceed email server limits"
            )

    async def email_catalogue(self, request: CatalogueEmailRequest) -> Dict[str, Any]:
        """
        Email the catalogue to the requested address.

        Raises:
            ClientInputError: Missing or malformed email (400)
            MailConfigurationMissing: SMTP not configured (503), checked before the file
            AssetNotFound: Catalogue file missing (404, errorType file_not_found)
            MailDeliveryFailed: Send failed, status and errorType by classification
        """
        email = sanitize_email(request.email)
        if not email:
            raise ClientInputError("Email address is required.")
        if not validate_email(email):
            raise ClientInputError("Please provide a valid email address.")

        if not self.notifier.is_configured:
            raise MailConfigurationMissing(SMTP_UNAVAILABLE_MESSAGE)

        if not self.catalogue_path.is_file():
            raise self.missing_file_error()

        self.warn_if_oversized()

        result = await self.notifier.send(
            EmailKind.CATALOGUE_DELIVERY,
            {"email": email},
            attachments=[Attachment(path=self.catalogue_path, filename=self.attachment_name)],
        )
        if not result.success:
            logger.error(f"❌ Failed to send catalogue email to {email}: {result.failure.value if result.failure else 'unknown'}")
            raise delivery_error(result)

        logger.info(f"Catalogue email request processed for: {email}")
        return {"success": True, "message": CATALOGUE_SENT_MESSAGE}
