# app/crud/inventory_entries_crud.py
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from fastapi import BackgroundTasks
from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from . import reference_inventory_crud, roster_crud
from ..enum.audit_enum import EntryKind, EntryStatus
from ..helpers import notification_helper
from ..helpers.audit_engine import (
    Classification, InvalidActionError, InvalidTransitionError,
    classify, classify_bin, parse_action, respond_transition)
from ..models.inventory_entries import InventoryEntry
from ..schemas.inventory_schemas import (
    ClientResponseRequest, InventoryEntryCreate, InventoryEntryOut, InventorySubmitResponse, PreviousEntryOut)

logger = logging.getLogger(__name__)


def entry_to_out(entry: InventoryEntry) -> InventoryEntryOut:
    client_response = None
    if entry.client_action:
        client_response = {"action": entry.client_action,
                           "comment": entry.client_comment}
    return InventoryEntryOut(
        id=entry.id,
        kind=entry.kind,
        sku_id=entry.sku_id,
        sku_name=entry.sku_name,
        bin_id=entry.bin_id,
        location=entry.location,
        counts=entry.counts,
        total_identified=entry.total_identified,
        odin={
            "min_quantity": entry.min_quantity,
            "blocked_quantity": entry.blocked_quantity,
            "max_quantity": entry.max_quantity,
        },
        audit_result=entry.audit_result,
        discrepancy=entry.discrepancy,
        status=EntryStatus.parse(entry.status),
        staff_id=entry.staff_id,
        staff_name=entry.staff.name if entry.staff else None,
        assigned_client_id=entry.assigned_client_id,
        assigned_client_name=entry.assigned_client.name if entry.assigned_client else None,
        client_response=client_response,
        notes=entry.notes,
        timestamps={
            "staff_entry": entry.staff_entry_at,
            "client_response": entry.client_response_at,
            "final_status": entry.final_status_at,
        },
    )


def _classify_submission(db: Session, data: InventoryEntryCreate) -> Classification:
    if data.kind == EntryKind.BIN:
        return classify_bin(data.book_quantity, data.actual_quantity)

    odin = data.odin.model_dump() if data.odin else None
    if odin is None:
        # thresholds not captured on the device: fall back to the catalog
        item = reference_inventory_crud.lookup_sku(db, data.sku_id)
        if not item:
            return error_response(
                message=f"SKU '{data.sku_id}' not found in reference inventory",
                status_code=str(AppStatusCode.NOT_FOUND),
                http_status=404
            )
        odin = {"min_quantity": item.system_quantity,
                "blocked_quantity": item.blocked_quantity or 0}
        if not data.sku_name:
            data.sku_name = item.name
    return classify(data.counts.model_dump(), odin)


def _resolve_approver(db: Session, data: InventoryEntryCreate) -> Users:
    eligible = roster_crud.get_eligible_clients(db, data.location)

    if data.assigned_client_id:
        for client in eligible:
            if client.id == data.assigned_client_id:
                return client
        return error_response(
            message=f"Selected client cannot approve entries for '{data.location}'",
            status_code=str(AppStatusCode.INELIGIBLE_APPROVER),
            http_status=400
        )

    if not eligible:
        logger.warning(
            f"No eligible client for location '{data.location}', rejecting submission")
        return error_response(
            message=f"No client is mapped to location '{data.location}'; the discrepancy cannot be routed for approval",
            status_code=str(AppStatusCode.ROUTING_UNRESOLVED),
            http_status=422
        )
    return eligible[0]


def _previous_entry(db: Session, data: InventoryEntryCreate) -> Optional[InventoryEntry]:
    query = db.query(InventoryEntry).options(joinedload(InventoryEntry.staff)).filter(
        InventoryEntry.kind == data.kind.value,
        InventoryEntry.location == data.location,
    )
    if data.kind == EntryKind.BIN:
        query = query.filter(InventoryEntry.bin_id == data.bin_id)
    else:
        query = query.filter(InventoryEntry.sku_id == data.sku_id)
    return query.order_by(desc(InventoryEntry.staff_entry_at)).first()


def create_inventory_entry(
    background_tasks: BackgroundTasks,
    db: Session,
    data: InventoryEntryCreate,
    current_user: UserToken
) -> InventorySubmitResponse:
    result = _classify_submission(db, data)
    status = result.initial_status

    client = _resolve_approver(db, data) if result.requires_approver else None
    previous = _previous_entry(db, data)

    now = datetime.now(timezone.utc)
    counts = data.counts.model_dump() if data.kind == EntryKind.SKU else {}
    entry = InventoryEntry(
        kind=data.kind.value,
        sku_id=data.sku_id if data.kind == EntryKind.SKU else None,
        sku_name=data.sku_name if data.kind == EntryKind.SKU else None,
        bin_id=data.bin_id if data.kind == EntryKind.BIN else None,
        location=data.location,
        count_picking=counts.get("picking", 0),
        count_bulk=counts.get("bulk", 0),
        count_near_expiry=counts.get("near_expiry", 0),
        count_jit=counts.get("jit", 0),
        count_damaged=counts.get("damaged", 0),
        total_identified=result.total_identified,
        min_quantity=result.min_quantity,
        blocked_quantity=result.blocked_quantity,
        max_quantity=result.max_quantity,
        audit_result=result.audit_result.value,
        discrepancy=result.discrepancy,
        status=status.value,
        notes=data.notes,
        staff_id=UUID(current_user.user_id),
        assigned_client_id=client.id if client else None,
        staff_entry_at=now,
        final_status_at=now if status.is_terminal else None,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.info(
        f"Entry {entry.id} for {entry.item_id} at '{entry.location}': "
        f"{entry.audit_result} ({entry.total_identified} vs {entry.min_quantity}-{entry.max_quantity}) -> {entry.status}")

    if client:
        notification_helper.notify_client(
            background_tasks, entry, client, current_user.name or "")

    response = InventorySubmitResponse(entry=entry_to_out(entry))
    if previous:
        response.previous_entry = PreviousEntryOut(
            id=previous.id,
            status=EntryStatus.parse(previous.status),
            audit_result=previous.audit_result,
            total_identified=previous.total_identified,
            staff_name=previous.staff.name if previous.staff else None,
            staff_entry=previous.staff_entry_at,
        )
        response.warning = (
            f"{entry.item_id} at {entry.location} was already counted on "
            f"{previous.staff_entry_at:%Y-%m-%d %H:%M}")
    return response


def _entry_query(db: Session):
    return db.query(InventoryEntry).options(
        joinedload(InventoryEntry.staff),
        joinedload(InventoryEntry.assigned_client),
    )


def get_pending_entries(db: Session, current_user: UserToken, skip: int = 0, limit: Optional[int] = None):
    query = _entry_query(db).filter(
        InventoryEntry.status == EntryStatus.PENDING_CLIENT.value)
    if current_user.role == UserRole.CLIENT.value:
        query = query.filter(
            InventoryEntry.assigned_client_id == UUID(current_user.user_id))

    total = query.count()
    query = query.order_by(desc(InventoryEntry.staff_entry_at))
    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return {"entries": [entry_to_out(e) for e in query.all()], "total": total}


def get_staff_history(db: Session, current_user: UserToken, skip: int = 0, limit: Optional[int] = None):
    query = _entry_query(db).filter(
        InventoryEntry.staff_id == UUID(current_user.user_id))

    total = query.count()
    query = query.order_by(desc(InventoryEntry.staff_entry_at))
    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return {"entries": [entry_to_out(e) for e in query.all()], "total": total}


def _get_entry_or_404(db: Session, entry_id: UUID) -> InventoryEntry:
    entry = _entry_query(db).filter(InventoryEntry.id == entry_id).first()
    if not entry:
        return error_response(
            message="Entry not found",
            status_code=str(AppStatusCode.NOT_FOUND),
            http_status=404
        )
    return entry


def get_inventory_entry(db: Session, entry_id: UUID, current_user: UserToken) -> InventoryEntryOut:
    entry = _get_entry_or_404(db, entry_id)
    user_id = UUID(current_user.user_id)

    visible = (
        current_user.role == UserRole.ADMIN.value
        or (current_user.role == UserRole.STAFF.value and entry.staff_id == user_id)
        or (current_user.role == UserRole.CLIENT.value and entry.assigned_client_id == user_id)
    )
    if not visible:
        return error_response(
            message="Not authorized to view this entry",
            status_code=str(AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS),
            http_status=403
        )
    return entry_to_out(entry)


def respond_to_entry(
    background_tasks: BackgroundTasks,
    db: Session,
    entry_id: UUID,
    data: ClientResponseRequest,
    current_user: UserToken
) -> InventoryEntryOut:
    try:
        action = parse_action(data.action)
    except InvalidActionError as e:
        return error_response(
            message=str(e),
            status_code=str(AppStatusCode.REQUIRED_VALIDATION_ERROR),
            http_status=400
        )

    entry = _get_entry_or_404(db, entry_id)

    if entry.assigned_client_id != UUID(current_user.user_id):
        return error_response(
            message="Not authorized: this entry is assigned to another approver",
            status_code=str(AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS),
            http_status=403
        )

    try:
        new_status = respond_transition(EntryStatus.parse(entry.status), action)
    except InvalidTransitionError as e:
        return error_response(
            message=str(e),
            status_code=str(AppStatusCode.INVALID_STATE_TRANSITION),
            http_status=409
        )

    now = datetime.now(timezone.utc)
    # conditional update so two concurrent answers cannot both win
    updated = db.query(InventoryEntry).filter(
        InventoryEntry.id == entry.id,
        InventoryEntry.status == EntryStatus.PENDING_CLIENT.value,
    ).update({
        InventoryEntry.status: new_status.value,
        InventoryEntry.client_action: action.value,
        InventoryEntry.client_comment: data.comment,
        InventoryEntry.client_response_at: now,
        InventoryEntry.final_status_at: now,
    }, synchronize_session=False)
    if not updated:
        db.rollback()
        return error_response(
            message="Entry has already been answered",
            status_code=str(AppStatusCode.INVALID_STATE_TRANSITION),
            http_status=409
        )
    db.commit()
    db.refresh(entry)

    logger.info(
        f"Entry {entry.id} {action.value} by client {current_user.user_id} -> {entry.status}")

    notification_helper.notify_staff(
        background_tasks, entry, entry.staff, current_user.name or "")
    return entry_to_out(entry)
