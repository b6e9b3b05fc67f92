"""
Catalogue endpoints: direct PDF download and delivery by email.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse
from datetime import datetime, timezone
import logging

from site_api.api.deps import get_catalogue
from site_api.core.catalogue import CatalogueDispatcher
from site_api.models.catalogue import CatalogueEmailRequest

router = APIRouter()
logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "Unknown"


@router.get("/download")
async def download_catalogue(request: Request, dispatcher: CatalogueDispatcher = Depends(get_catalogue)):
    """
    Stream the catalogue PDF as an attachment.

    Returns 404 {error} when the file is missing. If reading fails after the
    headers went out, the connection is simply closed.
    """
    user_agent = request.headers.get("user-agent", "Unknown")
    logger.info(
        f"📥 Catalogue download requested: ip={client_ip(request)}, "
        f"userAgent={user_agent[:50]}, timestamp={datetime.now(timezone.utc).isoformat()}"
    )

    path = dispatcher.locate()
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=path.name,
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/email", status_code=status.HTTP_200_OK)
async def email_catalogue(body: CatalogueEmailRequest, dispatcher: CatalogueDispatcher = Depends(get_catalogue)):
    """
    Email the catalogue PDF to the given address.

    Errors carry an errorType: smtp_config_missing (503), file_not_found (404),
    smtp_authentication_failed / smtp_connection_failed / smtp_error /
    unknown_error (500).
    """
    return await dispatcher.email_catalogue(body)
