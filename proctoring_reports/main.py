import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from . import database
from .config import Settings, configure_logging, load_settings
from .errors import NotFound, ReportError, StorageError
from .ingest import ingest_report
from .models import Report
from .schemas import ErrorResponse, StatusResponse, UploadResponse
from .storage import ArtifactStorage, storage_for_mode
from .store import ReportStore

logger = logging.getLogger(__name__)

# kind -> (label, download failure message, download filename, media type)
ARTIFACTS = {
    "video": ("Video", "Failed to download video", "interview_{id}.webm", "video/webm"),
    "pdf": ("PDF", "Failed to download PDF", "report_{id}.pdf", "application/pdf"),
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    client = database.connect(settings)
    app.state.report_store = database.report_store_for(client, settings)
    try:
        yield
    finally:
        client.close()
        logger.info("MongoDB client closed")


async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def artifact_response(report: Report, kind: str, storage: ArtifactStorage, settings: Settings) -> FileResponse:
    label, failure, filename, media_type = ARTIFACTS[kind]
    path: Optional[str] = report.video_path if kind == "video" else report.pdf_path
    if not path:
        raise NotFound(f"{label} not found")
    if not storage.exists(path):
        raise NotFound(f"{label} file missing on server")

    file_path = Path(path).resolve()
    try:
        # stat up front so unreadable files fail here rather than mid-stream
        stat_result = file_path.stat()
    except OSError as exc:
        logger.exception("Download %s error for report %s", kind, report.id)
        raise StorageError(failure) from exc

    return FileResponse(
        file_path,
        media_type=media_type,
        filename=filename.format(id=report.id),
        stat_result=stat_result,
        content_disposition_type=settings.artifact_disposition,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Proctoring Reports Backend", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage_for_mode(settings.deployment_mode, settings.upload_dir, settings.ephemeral_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ReportError, report_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    if settings.serve_uploads and settings.deployment_mode != "local":
        logger.warning(
            "SERVE_UPLOADS ignored in %s mode: %s is a shared system directory",
            settings.deployment_mode, settings.storage_dir,
        )
    elif settings.serve_uploads:
        app.mount(
            "/uploads",
            StaticFiles(directory=str(settings.storage_dir), html=False, check_dir=False),
            name="uploads",
        )

    @app.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
    async def upload_report(
        request: Request,
        store: ReportStore = Depends(database.get_report_store),
        storage: ArtifactStorage = Depends(database.get_storage),
    ):
        async with request.form() as form:
            report_id = await ingest_report(form, store, storage)
        return UploadResponse(success=True, id=report_id)

    @app.get("/reports", response_model=List[Report], response_model_exclude_unset=True)
    async def list_reports(store: ReportStore = Depends(database.get_report_store)):
        return await store.list_all()

    @app.get(
        "/reports/{report_id}",
        response_model=Report,
        response_model_exclude_unset=True,
        responses=ERROR_RESPONSES,
    )
    async def get_report(report_id: str, store: ReportStore = Depends(database.get_report_store)):
        return await store.get_by_id(report_id)

    @app.get("/reports/{report_id}/video", responses=ERROR_RESPONSES)
    async def get_video(
        report_id: str,
        store: ReportStore = Depends(database.get_report_store),
        storage: ArtifactStorage = Depends(database.get_storage),
        settings: Settings = Depends(database.get_settings),
    ):
        report = await _find_for_artifact(store, report_id, "video")
        return artifact_response(report, "video", storage, settings)

    @app.get("/reports/{report_id}/pdf", responses=ERROR_RESPONSES)
    async def get_pdf(
        report_id: str,
        store: ReportStore = Depends(database.get_report_store),
        storage: ArtifactStorage = Depends(database.get_storage),
        settings: Settings = Depends(database.get_settings),
    ):
        report = await _find_for_artifact(store, report_id, "pdf")
        return artifact_response(report, "pdf", storage, settings)

    @app.get("/", response_model=StatusResponse)
    def root():
        return {"status": "ok", "message": "Proctoring reports backend running"}

    return app


async def _find_for_artifact(store: ReportStore, report_id: str, kind: str) -> Report:
    label, failure = ARTIFACTS[kind][:2]
    # a missing report reads the same as a report without the artifact
    try:
        return await store.get_by_id(report_id)
    except NotFound:
        raise NotFound(f"{label} not found") from None
    except StorageError as exc:
        raise StorageError(failure) from exc


app = create_app()
