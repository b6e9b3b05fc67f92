#run it with uvicorn site_api.main:app --reload
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import logging

from site_api.api.api_router import api_router
from site_api.core.catalogue import CatalogueDispatcher
from site_api.core.config import Settings, get_settings
from site_api.core.errors import SiteAPIError
from site_api.core.followups import FOLLOWUP_JOB_ID, send_followups
from site_api.core.intake import IntakePipeline
from site_api.core.notifier import Notifier
from site_api.core.scheduler import JobScheduler
from site_api.db.mongo import mask_mongo_uri
from site_api.db.store import RecordStore, build_record_store

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def log_configuration(settings: Settings, notifier: Notifier):
    """Configuration summary. Secrets are reported as set/missing only."""
    logger.info("📋 Configuration:")
    logger.info(f"   ENVIRONMENT: {settings.environment}")
    uri = settings.effective_mongo_uri
    logger.info(f"   MONGODB_URL: {mask_mongo_uri(uri) if uri else '✗ Missing'}")
    notifier.log_configuration()
    logger.info(f"   CATALOGUE_PATH: {settings.catalogue_path}")
    logger.info(f"   FOLLOWUPS_ENABLED: {settings.followups_enabled}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store: RecordStore = app.state.store
    scheduler: JobScheduler = app.state.scheduler

    log_configuration(settings, app.state.notifier)

    logger.info("🚀 Starting database initialization...")
    if await store.ensure_schema():
        logger.info("✅ Database initialization completed successfully")
    else:
        logger.warning("⚠️ Database initialization completed with warnings")

    if settings.followups_enabled:
        logger.info("🔧 Initializing scheduler...")
        scheduler.start()
        scheduler.add_interval_job(
            FOLLOWUP_JOB_ID,
            send_followups,
            minutes=settings.followup_interval_minutes,
            args=[store, app.state.notifier, settings],
        )

    yield

    scheduler.shutdown()
    await store.close()


def create_app(settings: Settings = None, store: RecordStore = None, notifier: Notifier = None) -> FastAPI:
    """
    Build the application with its collaborators.

    Args:
        settings: Defaults to get_settings()
        store: Defaults to the MongoDB store built from settings
        notifier: Defaults to an SMTP Notifier built from settings
    """
    settings = settings or get_settings()
    store = store if store is not None else build_record_store(settings)
    notifier = notifier or Notifier(settings)

    app = FastAPI(title=f"{settings.brand_name} Website Backend", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store
    app.state.notifier = notifier
    app.state.intake = IntakePipeline(store, notifier)
    app.state.catalogue = CatalogueDispatcher(
        notifier,
        settings.catalogue_path,
        settings.catalogue_attachment_name,
        settings.catalogue_size_warning_mb,
    )
    app.state.scheduler = JobScheduler()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SiteAPIError)
    async def site_error_handler(request: Request, exc: SiteAPIError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_body(include_details=not settings.is_production),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body. Please send a JSON object."})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error. Please try again later."})

    app.include_router(api_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
