# app/models/reference_inventory.py
import uuid
from sqlalchemy import TIMESTAMP, Column, Float, String, Uuid, func
from shared.core.database import Base


class ReferenceInventory(Base):
    __tablename__ = "reference_inventory"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sku_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(300), nullable=False)
    picking_location = Column(String(128))
    bulk_location = Column(String(128))
    system_quantity = Column(Float, nullable=False, default=0)
    blocked_quantity = Column(Float, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), onupdate=func.now())
