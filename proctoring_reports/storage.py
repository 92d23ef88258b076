import logging
import shutil
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from .errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = {
    "video": ".webm",
    "pdf": ".pdf",
}


class ArtifactStorage:
    """Flat directory of uploaded artifacts, referenced from reports by path."""

    def __init__(self, directory: Path, create: bool = True) -> None:
        self.directory = directory
        # ephemeral directories (e.g. /tmp) are expected to exist already
        self.create = create

    def _ensure_directory(self) -> None:
        if self.create:
            self.directory.mkdir(parents=True, exist_ok=True)

    def save_stream(self, filename: str, source: BinaryIO) -> str:
        """Copy ``source`` into the storage directory in chunks (blocking)."""
        path = self.directory / filename
        try:
            self._ensure_directory()
            with path.open("wb") as out:
                shutil.copyfileobj(source, out)
        except OSError as exc:
            logger.exception("Failed to write artifact %s", path)
            raise StorageError("Upload failed") from exc
        return str(path)

    def save_bytes(self, filename: str, data: bytes) -> str:
        return self.save_stream(filename, BytesIO(data))

    async def save(self, upload: UploadFile, stem: str, kind: str) -> str:
        suffix = Path(upload.filename).suffix if upload.filename else ""
        filename = f"{stem}-{kind}{suffix or DEFAULT_SUFFIXES.get(kind, '')}"
        await upload.seek(0)
        return await run_in_threadpool(self.save_stream, filename, upload.file)

    def exists(self, path: Optional[str]) -> bool:
        if not path:
            return False
        return Path(path).resolve().is_file()

    def discard(self, paths: Iterable[str]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
                logger.info("Removed orphaned artifact %s", path)
            except OSError:
                logger.exception("Failed to remove orphaned artifact %s", path)


def storage_for_mode(mode: str, upload_dir: Path, ephemeral_dir: Path) -> ArtifactStorage:
    if mode == "ephemeral":
        return ArtifactStorage(ephemeral_dir, create=False)
    return ArtifactStorage(upload_dir, create=True)
