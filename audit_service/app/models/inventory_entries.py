# app/models/inventory_entries.py
import uuid
from sqlalchemy import TIMESTAMP, Column, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.audit_enum import EntryKind


class InventoryEntry(Base):
    __tablename__ = "inventory_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    kind = Column(String(8), nullable=False, default=EntryKind.SKU.value)

    # identity (sku entries carry sku_*, bin entries carry bin_id)
    sku_id = Column(String(64), index=True)
    sku_name = Column(String(300))
    bin_id = Column(String(64), index=True)
    location = Column(String(200), nullable=False, index=True)

    # count breakdown
    count_picking = Column(Float, nullable=False, default=0)
    count_bulk = Column(Float, nullable=False, default=0)
    count_near_expiry = Column(Float, nullable=False, default=0)
    count_jit = Column(Float, nullable=False, default=0)
    count_damaged = Column(Float, nullable=False, default=0)
    total_identified = Column(Float, nullable=False)

    # thresholds captured at submission time
    min_quantity = Column(Float, nullable=False, default=0)
    blocked_quantity = Column(Float, nullable=False, default=0)
    max_quantity = Column(Float, nullable=False, default=0)

    audit_result = Column(String(16), nullable=False)
    discrepancy = Column(Float, nullable=False, default=0)
    status = Column(String(24), nullable=False, index=True)
    notes = Column(Text)

    staff_id = Column(Uuid(as_uuid=True), ForeignKey(
        "users.id", ondelete="RESTRICT"), nullable=False, index=True)
    assigned_client_id = Column(Uuid(as_uuid=True), ForeignKey(
        "users.id", ondelete="SET NULL"), nullable=True, index=True)

    client_action = Column(String(16))
    client_comment = Column(Text)

    staff_entry_at = Column(TIMESTAMP(timezone=True), nullable=False)
    client_response_at = Column(TIMESTAMP(timezone=True))
    final_status_at = Column(TIMESTAMP(timezone=True))

    staff = relationship("Users", foreign_keys=[staff_id])
    assigned_client = relationship("Users", foreign_keys=[assigned_client_id])

    @property
    def item_id(self) -> str:
        return self.bin_id if self.kind == EntryKind.BIN.value else self.sku_id

    @property
    def counts(self) -> dict:
        return {
            "picking": self.count_picking,
            "bulk": self.count_bulk,
            "near_expiry": self.count_near_expiry,
            "jit": self.count_jit,
            "damaged": self.count_damaged,
        }
