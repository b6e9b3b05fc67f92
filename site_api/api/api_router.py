from fastapi import APIRouter
from site_api.api.endpoints import catalogue, contact, newsletter

api_router = APIRouter(prefix="/api")

api_router.include_router(contact.router, tags=["Contact"])
api_router.include_router(newsletter.router, tags=["Newsletter"])
api_router.include_router(catalogue.router, prefix="/catalogue", tags=["Catalogue"])
