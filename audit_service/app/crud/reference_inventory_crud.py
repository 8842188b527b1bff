# app/crud/reference_inventory_crud.py
import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.schemas import BulkUploadError, BulkUploadResponse
from shared.helpers.match_helper import clean_identifier, lookup_candidates
from ..models.reference_inventory import ReferenceInventory
from ..schemas.reference_inventory_schemas import ReferenceInventoryImport

logger = logging.getLogger(__name__)


def lookup_sku(db: Session, raw_sku_id: str) -> Optional[ReferenceInventory]:
    """Exact, then numeric-coerced, then case-insensitive match on the SKU id."""
    candidates = lookup_candidates(raw_sku_id)
    if not candidates:
        return None

    for candidate in candidates:
        item = db.query(ReferenceInventory).filter(
            ReferenceInventory.sku_id == candidate).first()
        if item:
            return item

    return db.query(ReferenceInventory).filter(
        func.lower(ReferenceInventory.sku_id) == candidates[0].lower()
    ).first()


def get_reference_items(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[ReferenceInventory]:
    query = db.query(ReferenceInventory).order_by(ReferenceInventory.sku_id)
    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return query.all()


def bulk_upsert_reference_items(db: Session, items: List[ReferenceInventoryImport],
                                row_numbers: Optional[List[int]] = None) -> BulkUploadResponse:
    """Insert or overwrite catalog rows keyed by SKU id.

    Duplicate SKU ids inside one upload collapse onto the last row.
    """
    inserted, updated = 0, 0
    bulk_error_list = []
    pending = {}

    for index, item in enumerate(items):
        row = row_numbers[index] if row_numbers else index + 1
        sku_id = clean_identifier(item.sku_id)
        if not sku_id:
            bulk_error_list.append(BulkUploadError(row=row, errors=["SKU ID is required"]))
            continue

        obj = pending.get(sku_id) or db.query(ReferenceInventory).filter(
            ReferenceInventory.sku_id == sku_id).first()

        data = item.model_dump(exclude={"sku_id"})
        if data.get("blocked_quantity") is None:
            data["blocked_quantity"] = obj.blocked_quantity if obj else 0

        if not obj:
            obj = ReferenceInventory(sku_id=sku_id, **data)
            db.add(obj)
            inserted += 1
        else:
            for k, v in data.items():
                setattr(obj, k, v)
            if sku_id not in pending:
                updated += 1
        pending[sku_id] = obj

    db.commit()
    logger.info(
        f"Reference inventory upload: {inserted} inserted, {updated} updated, {len(bulk_error_list)} rejected")
    return BulkUploadResponse(inserted=inserted, updated=updated, validations=bulk_error_list)


def delete_all_reference_items(db: Session) -> int:
    deleted = db.query(ReferenceInventory).delete(synchronize_session=False)
    db.commit()
    return deleted
