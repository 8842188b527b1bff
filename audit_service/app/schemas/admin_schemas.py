from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from shared.wrappers.empty_string_model_wrapper import CamelOutModel, EmptyStringModel


def _code_as_text(value):
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


class RosterImport(EmptyStringModel):
    """One staff or client row of a roster upload."""
    unique_code: str
    name: str
    login_pin: Optional[str] = None
    locations: List[Optional[str]] = []
    mapped_location: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None

    @field_validator("unique_code", "login_pin", mode="before")
    @classmethod
    def code_as_text(cls, value):
        return _code_as_text(value)

    @field_validator("locations", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return [] if value is None else value


class UserUpdate(EmptyStringModel):
    name: Optional[str] = None
    login_pin: Optional[str] = None
    locations: Optional[List[str]] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("login_pin", mode="before")
    @classmethod
    def code_as_text(cls, value):
        return _code_as_text(value)


class UserOut(CamelOutModel):
    id: UUID
    name: str
    role: str
    email: Optional[str] = None
    unique_code: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    locations: List[str] = []
    mapped_location: Optional[str] = None
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserListResponse(CamelOutModel):
    users: List[UserOut]
    total: int


class InventoryReportParams(BaseModel):
    limit: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None


class InventoryReportRow(CamelOutModel):
    id: UUID
    kind: str
    sku_id: Optional[str] = None
    sku_name: Optional[str] = None
    bin_id: Optional[str] = None
    picking_location: str
    bulk_location: str
    submitted_location: str
    odin_min: float
    odin_blocked: float
    odin_max: float
    count_picking: float
    count_bulk: float
    count_near_expiry: float
    count_jit: float
    count_damaged: float
    physical_count: float
    discrepancy: float
    staff_name: str
    client_name: str
    status: str
    audit_result: str
    client_comment: str
    date_submitted: datetime
    date_responded: Optional[datetime] = None


class DeleteResult(BaseModel):
    message: str
    deleted: int


class UploadTemplate(BaseModel):
    filename: str
    headers: List[str]
