from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import Field, field_validator

from shared.wrappers.empty_string_model_wrapper import CamelOutModel, EmptyStringModel


class ReferenceInventoryImport(EmptyStringModel):
    sku_id: str
    name: str
    picking_location: Optional[str] = None
    bulk_location: Optional[str] = None
    system_quantity: float = Field(0, ge=0)
    blocked_quantity: Optional[float] = Field(None, ge=0)

    @field_validator("sku_id", mode="before")
    @classmethod
    def sku_as_text(cls, value):
        # spreadsheets hand numeric SKU ids over as numbers
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("system_quantity", mode="before")
    @classmethod
    def blank_quantity(cls, value):
        return 0 if value is None else value


class ReferenceInventoryOut(CamelOutModel):
    id: UUID
    sku_id: str
    name: str
    picking_location: Optional[str] = None
    bulk_location: Optional[str] = None
    system_quantity: float
    blocked_quantity: float = 0
    updated_at: Optional[datetime] = None
