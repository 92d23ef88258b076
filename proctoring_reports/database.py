import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient # type: ignore

from .config import Settings
from .storage import ArtifactStorage
from .store import ReportStore

logger = logging.getLogger(__name__)

REPORTS_COLLECTION = "reports"


def connect(settings: Settings) -> AsyncIOMotorClient:
    client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
    )
    logger.info("MongoDB client created for database %s", settings.database_name)
    return client


def report_store_for(client: AsyncIOMotorClient, settings: Settings) -> ReportStore:
    database = client[settings.database_name]
    return ReportStore(database[REPORTS_COLLECTION])


# FastAPI dependencies: handles live on app.state, set up by the lifespan
def get_report_store(request: Request) -> ReportStore:
    return request.app.state.report_store


def get_storage(request: Request) -> ArtifactStorage:
    return request.app.state.storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
