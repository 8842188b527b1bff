from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import Field, model_validator

from shared.wrappers.empty_string_model_wrapper import CamelOutModel, EmptyStringModel, deep_clean
from ..enum.audit_enum import AuditResult, ClientAction, EntryKind, EntryStatus


class CountBreakdown(EmptyStringModel):
    picking: float = Field(0, ge=0)
    bulk: float = Field(0, ge=0)
    near_expiry: float = Field(0, ge=0)
    jit: float = Field(0, ge=0)
    damaged: float = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def default_missing(cls, values):
        # blank spreadsheet cells arrive as None once cleaned
        if isinstance(values, dict):
            return {k: v for k, v in deep_clean(values).items() if v is not None}
        return values


class OdinThresholds(EmptyStringModel):
    min_quantity: float = Field(0, ge=0)
    blocked_quantity: float = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def default_missing(cls, values):
        if isinstance(values, dict):
            values = {k: v for k, v in deep_clean(values).items() if v is not None}
            # older clients send "blocked"
            if "blocked" in values and "blockedQuantity" not in values and "blocked_quantity" not in values:
                values["blocked_quantity"] = values.pop("blocked")
        return values


class InventoryEntryCreate(EmptyStringModel):
    kind: EntryKind = EntryKind.SKU
    location: str

    sku_id: Optional[str] = None
    sku_name: Optional[str] = None
    counts: Optional[CountBreakdown] = None
    odin: Optional[OdinThresholds] = None

    bin_id: Optional[str] = None
    book_quantity: Optional[float] = Field(None, ge=0)
    actual_quantity: Optional[float] = Field(None, ge=0)

    assigned_client_id: Optional[UUID] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_variant(self):
        if self.kind == EntryKind.SKU:
            if not self.sku_id:
                raise ValueError("skuId is required for sku entries")
            if self.counts is None:
                self.counts = CountBreakdown()
        else:
            if not self.bin_id:
                raise ValueError("binId is required for bin entries")
            if self.book_quantity is None or self.actual_quantity is None:
                raise ValueError(
                    "bookQuantity and actualQuantity are required for bin entries")
        return self


class ClientResponseRequest(EmptyStringModel):
    # validated by the engine so a bad value reports the allowed actions
    action: str
    comment: Optional[str] = None


class OdinOut(CamelOutModel):
    min_quantity: float
    blocked_quantity: float
    max_quantity: float


class ClientResponseOut(CamelOutModel):
    action: Optional[ClientAction] = None
    comment: Optional[str] = None


class EntryTimestamps(CamelOutModel):
    staff_entry: datetime
    client_response: Optional[datetime] = None
    final_status: Optional[datetime] = None


class InventoryEntryOut(CamelOutModel):
    id: UUID
    kind: EntryKind
    sku_id: Optional[str] = None
    sku_name: Optional[str] = None
    bin_id: Optional[str] = None
    location: str
    counts: CountBreakdown
    total_identified: float
    odin: OdinOut
    audit_result: AuditResult
    discrepancy: float
    status: EntryStatus
    staff_id: UUID
    staff_name: Optional[str] = None
    assigned_client_id: Optional[UUID] = None
    assigned_client_name: Optional[str] = None
    client_response: Optional[ClientResponseOut] = None
    notes: Optional[str] = None
    timestamps: EntryTimestamps


class PreviousEntryOut(CamelOutModel):
    id: UUID
    status: EntryStatus
    audit_result: AuditResult
    total_identified: float
    staff_name: Optional[str] = None
    staff_entry: datetime


class InventorySubmitResponse(CamelOutModel):
    entry: InventoryEntryOut
    previous_entry: Optional[PreviousEntryOut] = None
    warning: Optional[str] = None


class InventoryEntryListResponse(CamelOutModel):
    entries: List[InventoryEntryOut]
    total: int


class ClientLookupOut(CamelOutModel):
    id: UUID
    name: str
    company: Optional[str] = None
    unique_code: Optional[str] = None
    locations: List[str] = []
    mapped_location: Optional[str] = None
