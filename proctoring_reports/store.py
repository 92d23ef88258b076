import logging
from typing import Any, List, Optional

from bson import ObjectId # type: ignore
from pymongo.errors import PyMongoError # type: ignore

from .errors import NotFound, StorageError
from .models import Report

logger = logging.getLogger(__name__)


class ReportStore:
    """Persistence for reports, one MongoDB document per report.

    Events are embedded in their report document. Identifiers are
    ``ObjectId`` values, so sorting on ``_id`` follows creation order.
    """

    def __init__(self, collection: Any) -> None:
        self.collection = collection

    @staticmethod
    def new_id() -> ObjectId:
        return ObjectId()

    async def create(self, report: Report, report_id: Optional[ObjectId] = None) -> str:
        doc = report.to_document()
        doc["_id"] = report_id or self.new_id()
        try:
            await self.collection.insert_one(doc)
        except PyMongoError as exc:
            logger.exception("Failed to insert report %s", doc["_id"])
            raise StorageError("Upload failed") from exc
        return str(doc["_id"])

    async def list_all(self) -> List[Report]:
        reports = []
        try:
            cursor = self.collection.find().sort("_id", -1)
            async for doc in cursor:
                reports.append(Report.from_document(doc))
        except PyMongoError as exc:
            logger.exception("Failed to list reports")
            raise StorageError("Failed to fetch reports") from exc
        return reports

    async def get_by_id(self, report_id: str) -> Report:
        if not ObjectId.is_valid(report_id):
            raise NotFound("Report not found")
        try:
            doc = await self.collection.find_one({"_id": ObjectId(report_id)})
        except PyMongoError as exc:
            logger.exception("Failed to fetch report %s", report_id)
            raise StorageError("Failed to fetch report") from exc
        if not doc:
            raise NotFound("Report not found")
        return Report.from_document(doc)
