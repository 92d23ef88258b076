from pydantic import BaseModel # type: ignore


class UploadResponse(BaseModel):
    success: bool = True
    id: str


class ErrorResponse(BaseModel):
    error: str


class StatusResponse(BaseModel):
    status: str
    message: str
