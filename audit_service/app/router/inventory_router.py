# app/router/inventory_router.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import (
    allow_client, allow_client_or_admin, allow_staff, allow_staff_or_admin, validate_current_token)
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from ..crud import inventory_entries_crud as crud
from ..crud import reference_inventory_crud, roster_crud
from ..schemas.inventory_schemas import (
    ClientLookupOut, ClientResponseRequest, InventoryEntryCreate, InventoryEntryListResponse,
    InventoryEntryOut, InventorySubmitResponse)
from ..schemas.reference_inventory_schemas import ReferenceInventoryOut

router = APIRouter(
    prefix="/api/inventory",
    tags=["Inventory Audit"],
    dependencies=[Depends(validate_current_token)]
)


@router.post("", response_model=InventorySubmitResponse)
def submit_entry(
        data: InventoryEntryCreate,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_staff)):
    return crud.create_inventory_entry(background_tasks, db, data, current_user)


@router.get("/pending", response_model=InventoryEntryListResponse)
def get_pending(
        skip: int = Query(0, ge=0),
        limit: Optional[int] = Query(None, ge=1),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_client_or_admin)):
    return crud.get_pending_entries(db, current_user, skip=skip, limit=limit)


@router.get("/staff-history", response_model=InventoryEntryListResponse)
def get_staff_history(
        skip: int = Query(0, ge=0),
        limit: Optional[int] = Query(None, ge=1),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_staff)):
    return crud.get_staff_history(db, current_user, skip=skip, limit=limit)


@router.get("/lookup/{sku_id}", response_model=ReferenceInventoryOut)
def lookup_sku(
        sku_id: str,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_staff_or_admin)):
    item = reference_inventory_crud.lookup_sku(db, sku_id)
    if not item:
        return error_response(
            message=f"SKU '{sku_id.strip()}' not found in reference inventory",
            status_code=str(AppStatusCode.NOT_FOUND),
            http_status=404
        )
    return item


@router.get("/clients-by-location", response_model=List[ClientLookupOut])
def clients_by_location(
        location: str = Query(..., min_length=1),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_staff_or_admin)):
    return roster_crud.get_eligible_clients(db, location)


@router.get("/{entry_id}", response_model=InventoryEntryOut)
def get_entry(
        entry_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_inventory_entry(db, entry_id, current_user)


@router.post("/{entry_id}/respond", response_model=InventoryEntryOut)
def respond(
        entry_id: UUID,
        data: ClientResponseRequest,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(allow_client)):
    return crud.respond_to_entry(background_tasks, db, entry_id, data, current_user)
