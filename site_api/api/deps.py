"""
FastAPI dependencies handing the collaborators built in create_app to the
endpoints. Nothing is looked up from module-level state.
"""

from fastapi import Request

from site_api.core.catalogue import CatalogueDispatcher
from site_api.core.intake import IntakePipeline


def get_intake(request: Request) -> IntakePipeline:
    return request.app.state.intake


def get_catalogue(request: Request) -> CatalogueDispatcher:
    return request.app.state.catalogue
