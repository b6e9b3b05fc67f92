"""
Tests for catalogue delivery by email and download lookup.
"""

import asyncio
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from site_api.core.catalogue import CATALOGUE_SENT_MESSAGE, CatalogueDispatcher
from site_api.core.errors import AssetNotFound, ClientInputError, MailConfigurationMissing, MailDeliveryFailed
from site_api.models.catalogue import CatalogueEmailRequest
from site_api.models.email import EmailDispatchResult, EmailFailure, EmailKind


def dispatcher_for(notifier, path, size_warning_mb=25.0):
    return CatalogueDispatcher(notifier, path, "ARCHIKMOR-Catalogue-2026.pdf", size_warning_mb)


class TestEmailCatalogue:

    def test_sends_pdf_attachment(self, notifier, catalogue_file):
        result = asyncio.run(dispatcher_for(notifier, catalogue_file).email_catalogue(
            CatalogueEmailRequest(email=" Jane@Example.com ")
        ))

        assert result == {"success": True, "message": CATALOGUE_SENT_MESSAGE}
        [(kind, record, attachments)] = notifier.sent
        assert kind is EmailKind.CATALOGUE_DELIVERY
        assert record == {"email": "jane@example.com"}
        assert attachments[0].path == catalogue_file
        assert attachments[0].filename == "ARCHIKMOR-Catalogue-2026.pdf"

    @pytest.mark.parametrize("email", [None, "", "   ", "not-an-email", 12])
    def test_bad_email_is_rejected(self, notifier, catalogue_file, email):
        with pytest.raises(ClientInputError):
            asyncio.run(dispatcher_for(notifier, catalogue_file).email_catalogue(CatalogueEmailRequest(email=email)))

        assert notifier.sent == []

    def test_configuration_is_checked_before_the_file(self, unconfigured_notifier, tmp_path):
        dispatcher = dispatcher_for(unconfigured_notifier, tmp_path / "missing.pdf")

        with pytest.raises(MailConfigurationMissing) as exc_info:
            asyncio.run(dispatcher.email_catalogue(CatalogueEmailRequest(email="jane@example.com")))

        assert exc_info.value.status_code == 503
        assert exc_info.value.to_body()["errorType"] == "smtp_config_missing"

    def test_missing_file_is_404(self, notifier, tmp_path):
        dispatcher = dispatcher_for(notifier, tmp_path / "missing.pdf")

        with pytest.raises(AssetNotFound) as exc_info:
            asyncio.run(dispatcher.email_catalogue(CatalogueEmailRequest(email="jane@example.com")))

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_type == "file_not_found"
        assert notifier.sent == []

    def test_file_removed_after_check_is_404(self, notifier, tmp_path):
        dispatcher = dispatcher_for(notifier, tmp_path / "removed.pdf")

        # existence check passes, then the file is gone by the time it is sized
        with patch.object(Path, "is_file", return_value=True):
            with pytest.raises(AssetNotFound) as exc_info:
                asyncio.run(dispatcher.email_catalogue(CatalogueEmailRequest(email="jane@example.com")))

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_type == "file_not_found"
        assert notifier.sent == []

    @pytest.mark.parametrize("failure, status_code, error_type", [
        (EmailFailure.AUTHENTICATION_FAILED, 500, "smtp_authentication_failed"),
        (EmailFailure.CONNECTION_FAILED, 500, "smtp_connection_failed"),
        (EmailFailure.ATTACHMENT_MISSING, 404, "file_not_found"),
        (EmailFailure.UNKNOWN, 500, "unknown_error"),
    ])
    def test_send_failure_maps_to_error_type(self, notifier, catalogue_file, failure, status_code, error_type):
        notifier.results[EmailKind.CATALOGUE_DELIVERY] = EmailDispatchResult.failed(failure, "boom", code=535)

        with pytest.raises(MailDeliveryFailed) as exc_info:
            asyncio.run(dispatcher_for(notifier, catalogue_file).email_catalogue(
                CatalogueEmailRequest(email="jane@example.com")
            ))

        error = exc_info.value
        assert error.status_code == status_code
        assert error.error_type == error_type
        assert error.details == {"message": "boom", "code": 535}

    def test_smtp_error_message_carries_server_text(self, notifier, catalogue_file):
        notifier.results[EmailKind.CATALOGUE_DELIVERY] = EmailDispatchResult.failed(
            EmailFailure.SMTP_ERROR, "552 Message size exceeds limit", code=552
        )

        with pytest.raises(MailDeliveryFailed) as exc_info:
            asyncio.run(dispatcher_for(notifier, catalogue_file).email_catalogue(
                CatalogueEmailRequest(email="jane@example.com")
            ))

        assert exc_info.value.error_type == "smtp_error"
        assert "552 Message size exceeds limit" in exc_info.value.message

    def test_oversized_catalogue_only_warns(self, notifier, catalogue_file, caplog):
        dispatcher = dispatcher_for(notifier, catalogue_file, size_warning_mb=0.00001)

        with caplog.at_level(logging.WARNING, logger="site_api.core.catalogue"):
            result = asyncio.run(dispatcher.email_catalogue(CatalogueEmailRequest(email="jane@example.com")))

        assert result["success"] is True
        assert "may exceed email server limits" in caplog.text


class TestLocate:

    def test_returns_existing_path(self, notifier, catalogue_file):
        assert dispatcher_for(notifier, catalogue_file).locate() == catalogue_file

    def test_missing_file_has_no_error_type(self, notifier, tmp_path):
        with pytest.raises(AssetNotFound) as exc_info:
            dispatcher_for(notifier, tmp_path / "missing.pdf").locate()

        assert exc_info.value.to_body() == {"error": "Catalogue file not found"}
