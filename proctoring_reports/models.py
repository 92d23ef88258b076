from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, JsonValue, NonNegativeInt
from pydantic.alias_generators import to_camel


# Free-form payload attached to an event, e.g. {"label": "phone", "confidence": 0.91}
EventDetails = Dict[str, Any]

# Usually a bare label ("phone") or a detection object ({"label": "book", "count": 2});
# any other JSON value is stored as sent
SuspiciousObject = Union[str, Dict[str, Any], JsonValue]


class Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ts: Optional[str] = Field(default=None, validation_alias=AliasChoices("ts", "timestamp"))
    type: Optional[str] = None
    details: Optional[EventDetails] = None


class ReportPayload(BaseModel):
    """Report fields as submitted by the client.

    Keys arrive in camelCase. Anything not declared here, including
    ``videoPath``/``pdfPath``, is dropped.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    candidate_name: Optional[str] = None
    interview_start: Optional[str] = None
    interview_end: Optional[str] = None
    interview_duration_min: Optional[Union[int, float]] = None
    look_away_count: Optional[NonNegativeInt] = None
    no_face_count: Optional[NonNegativeInt] = None
    multiple_faces_count: Optional[NonNegativeInt] = None
    suspicious_objects: List[SuspiciousObject] = Field(default_factory=list)
    integrity_score: Optional[Union[int, float]] = None
    events: List[Event] = Field(default_factory=list)


class Report(ReportPayload):
    id: Optional[str] = Field(default=None, alias="_id")
    video_path: Optional[str] = None
    pdf_path: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_unset=True)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Report":
        doc = dict(doc)
        doc["_id"] = str(doc["_id"])
        # stored documents may carry keys this model no longer declares
        return cls.model_validate(doc)
