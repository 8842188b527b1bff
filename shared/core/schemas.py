from pydantic import BaseModel
from typing import Any, Dict, Generic, List, Optional, TypeVar

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: str
    role: str
    name: Optional[str] = None
    locations: List[str] = []
    status: Optional[str] = None
    exp: Optional[int] = None


class ExportResponse(BaseModel):
    filename: str
    data: List[Dict[str, Any]]


class BulkUploadError(BaseModel):
    row: int
    errors: List[str]


class BulkUploadResponse(BaseModel):
    inserted: int = 0
    updated: int = 0
    validations: List[BulkUploadError] = []


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
