"""
Error taxonomy for the site backend.

Every error that can reach a client derives from SiteAPIError and carries the
HTTP status, a user-facing message and an optional errorType tag. The
exception handler in main.py renders them as {"error", "errorType", "details"}.
"""

from typing import Any, Dict, Optional


class SiteAPIError(Exception):
    """Base class for errors rendered as JSON error responses."""

    status_code = 500
    default_error_type: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        error_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type or self.default_error_type
        self.details = details

    def to_body(self, include_details: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.error_type:
            body["errorType"] = self.error_type
        if include_details and self.details:
            body["details"] = self.details
        return body


class ClientInputError(SiteAPIError):
    """Missing or malformed request fields."""

    status_code = 400


class StoreError(SiteAPIError):
    """The record store rejected an operation."""

    status_code = 500


class StoreUnavailable(StoreError):
    """The record store is not configured or cannot be reached."""


class SubmissionNotSaved(SiteAPIError):
    """Persisting a submission failed; nothing downstream was attempted."""

    status_code = 500


class MailConfigurationMissing(SiteAPIError):
    status_code = 503
    default_error_type = "smtp_config_missing"


class MailDeliveryFailed(SiteAPIError):
    """An explicitly requested email could not be delivered."""

    status_code = 500
    default_error_type = "unknown_error"

    def __init__(self, message: str, *, status_code: int = 500, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class AssetNotFound(SiteAPIError):
    status_code = 404
