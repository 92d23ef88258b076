import logging
from typing import List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData, UploadFile

from .errors import ReportError, StorageError, ValidationError
from .models import Report, ReportPayload
from .storage import ArtifactStorage
from .store import ReportStore

logger = logging.getLogger(__name__)

REPORT_FIELD = "report"
# first name is canonical, the rest are accepted aliases
VIDEO_FIELDS: Tuple[str, ...] = ("video",)
PDF_FIELDS: Tuple[str, ...] = ("pdf", "reportPdf")


def parse_report(raw: object) -> ReportPayload:
    if not raw or not isinstance(raw, str):
        raise ValidationError("Missing report JSON")
    try:
        return ReportPayload.model_validate_json(raw)
    except PydanticValidationError as exc:
        logger.info("Rejected report payload: %s", exc.errors(include_url=False))
        raise ValidationError("Invalid report JSON") from exc


def pick_file(form: FormData, fields: Tuple[str, ...], label: str) -> Optional[UploadFile]:
    """Return the single file part sent under any of ``fields``, if any."""
    parts = [
        part
        for name in fields
        for part in form.getlist(name)
        if isinstance(part, UploadFile) and part.filename
    ]
    if len(parts) > 1:
        raise ValidationError(f"Only one {label} file is allowed")
    return parts[0] if parts else None


async def ingest_report(form: FormData, store: ReportStore, storage: ArtifactStorage) -> str:
    """Validate a multipart submission, write its artifacts and persist the report.

    Files are written before the record is inserted. If anything fails after
    that point the written files are removed again, so a failed upload never
    leaves artifacts without a report.
    """
    payload = parse_report(form.get(REPORT_FIELD))
    video = pick_file(form, VIDEO_FIELDS, "video")
    pdf = pick_file(form, PDF_FIELDS, "PDF")

    report_id = store.new_id()
    written: List[str] = []
    # only keys the client sent are stored, explicit nulls included
    fields = payload.model_dump(exclude_unset=True)
    fields.setdefault("suspicious_objects", [])
    fields.setdefault("events", [])
    try:
        if video is not None:
            fields["video_path"] = await storage.save(video, str(report_id), "video")
            written.append(fields["video_path"])
        if pdf is not None:
            fields["pdf_path"] = await storage.save(pdf, str(report_id), "pdf")
            written.append(fields["pdf_path"])

        report = Report(**fields)
        created_id = await store.create(report, report_id)
    except ReportError:
        storage.discard(written)
        raise
    except Exception as exc:
        logger.exception("Upload error for report %s", report_id)
        storage.discard(written)
        raise StorageError("Upload failed") from exc

    logger.info(
        "Stored report %s (video=%s, pdf=%s)",
        created_id, "video_path" in fields, "pdf_path" in fields,
    )
    return created_id
