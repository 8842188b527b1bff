# app/crud/report_crud.py
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Dict, List

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from shared.core.schemas import ExportResponse
from shared.helpers.export_helper import export_rows
from shared.helpers.json_response_helper import error_response
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ..enum.audit_enum import EntryStatus, ExportType, UploadType
from ..helpers.audit_engine import display_quantity
from ..helpers.csv_import_helper import (
    CLIENT_COLUMNS, INVENTORY_COLUMNS, STAFF_COLUMNS, STAFF_LOCATION_COLUMNS, TEMPLATE_HEADERS)
from ..models.inventory_entries import InventoryEntry
from ..models.reference_inventory import ReferenceInventory
from ..schemas.admin_schemas import InventoryReportParams, InventoryReportRow, UploadTemplate

logger = logging.getLogger(__name__)

REPORT_COLUMNS = {
    "kind": "Type",
    "sku_id": "SKU ID",
    "sku_name": "Name of the SKU ID",
    "bin_id": "Bin ID",
    "picking_location": "Picking Location",
    "bulk_location": "Bulk Location",
    "submitted_location": "Submitted Location",
    "odin_min": "ODIN Min",
    "odin_blocked": "ODIN Blocked",
    "odin_max": "ODIN Max",
    "count_picking": "Picking",
    "count_bulk": "Bulk",
    "count_near_expiry": "Near Expiry",
    "count_jit": "JIT",
    "count_damaged": "Damaged",
    "physical_count": "Physical Count",
    "discrepancy": "Discrepancy",
    "audit_result": "Audit Result",
    "status": "Status",
    "staff_name": "Staff",
    "client_name": "Client",
    "client_comment": "Client Comment",
    "date_submitted": "Date Submitted",
    "date_responded": "Date Responded",
}


def _day_start(day) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def get_inventory_report(db: Session, params: InventoryReportParams) -> List[InventoryReportRow]:
    """Entries joined with staff, client and catalog rows, newest first.

    Both date bounds are whole days: ``end_date`` includes everything
    submitted on that day.
    """
    if params.start_date and params.end_date and params.start_date > params.end_date:
        return error_response(
            message="startDate must not be after endDate",
            status_code=str(AppStatusCode.INVALID_INPUT),
            http_status=400
        )

    query = db.query(InventoryEntry).options(
        joinedload(InventoryEntry.staff),
        joinedload(InventoryEntry.assigned_client),
    )
    if params.start_date:
        query = query.filter(
            InventoryEntry.staff_entry_at >= _day_start(params.start_date))
    if params.end_date:
        query = query.filter(
            InventoryEntry.staff_entry_at < _day_start(params.end_date + timedelta(days=1)))
    if params.status:
        query = query.filter(InventoryEntry.status == params.status)

    query = query.order_by(desc(InventoryEntry.staff_entry_at))
    if params.limit:
        query = query.limit(params.limit)
    entries = query.all()

    sku_ids = {e.sku_id for e in entries if e.sku_id}
    catalog: Dict[str, ReferenceInventory] = {}
    if sku_ids:
        catalog = {
            item.sku_id: item
            for item in db.query(ReferenceInventory).filter(ReferenceInventory.sku_id.in_(sku_ids))
        }

    rows = []
    for entry in entries:
        ref = catalog.get(entry.sku_id)
        rows.append(InventoryReportRow(
            id=entry.id,
            kind=entry.kind,
            sku_id=entry.sku_id,
            sku_name=entry.sku_name,
            bin_id=entry.bin_id,
            picking_location=(ref.picking_location if ref else None) or entry.location or "-",
            bulk_location=(ref.bulk_location if ref else None) or "-",
            submitted_location=entry.location,
            odin_min=display_quantity(entry.min_quantity),
            odin_blocked=display_quantity(entry.blocked_quantity),
            odin_max=display_quantity(entry.max_quantity),
            count_picking=display_quantity(entry.count_picking),
            count_bulk=display_quantity(entry.count_bulk),
            count_near_expiry=display_quantity(entry.count_near_expiry),
            count_jit=display_quantity(entry.count_jit),
            count_damaged=display_quantity(entry.count_damaged),
            physical_count=display_quantity(entry.total_identified),
            discrepancy=display_quantity(entry.discrepancy),
            staff_name=entry.staff.name if entry.staff else "Unknown",
            client_name=entry.assigned_client.name if entry.assigned_client else "-",
            status=EntryStatus.parse(entry.status).value,
            audit_result=entry.audit_result,
            client_comment=entry.client_comment or "-",
            date_submitted=entry.staff_entry_at,
            date_responded=entry.client_response_at,
        ))
    return rows


def _roster_rows(db: Session, role: UserRole) -> List[dict]:
    users = db.query(Users).filter(Users.role == role.value).order_by(Users.name).all()
    rows = []
    for user in users:
        row = {"unique_code": user.unique_code, "login_pin": None, "name": user.name}
        if role == UserRole.STAFF:
            locations = list(user.locations or [])
            for i, column in enumerate(STAFF_LOCATION_COLUMNS):
                row[column] = locations[i] if i < len(locations) else None
        else:
            row["mapped_location"] = user.mapped_location or ", ".join(user.locations or [])
        rows.append(row)
    return rows


def export_data(db: Session, export_type: ExportType, params: InventoryReportParams) -> ExportResponse:
    """Rows for download, keyed by the spreadsheet column names.

    Roster exports never include PINs; the column is left blank so the file
    can be edited and uploaded again.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")

    if export_type == ExportType.AUDIT_REPORT:
        rows = [r.model_dump() for r in get_inventory_report(db, params)]
        return export_rows(rows, f"audit_report_{stamp}.csv", REPORT_COLUMNS)

    if export_type == ExportType.INVENTORY:
        items = db.query(ReferenceInventory).order_by(ReferenceInventory.sku_id).all()
        rows = [{
            "sku_id": i.sku_id,
            "name": i.name,
            "picking_location": i.picking_location,
            "bulk_location": i.bulk_location,
            "system_quantity": display_quantity(i.system_quantity),
            "blocked_quantity": display_quantity(i.blocked_quantity),
        } for i in items]
        return export_rows(rows, f"inventory_{stamp}.csv", INVENTORY_COLUMNS)

    if export_type == ExportType.STAFF:
        column_map = {**STAFF_COLUMNS, **{c: c for c in STAFF_LOCATION_COLUMNS}}
        return export_rows(_roster_rows(db, UserRole.STAFF), f"staff_{stamp}.csv", column_map)

    return export_rows(_roster_rows(db, UserRole.CLIENT), f"clients_{stamp}.csv", CLIENT_COLUMNS)


def get_upload_template(upload_type: UploadType) -> UploadTemplate:
    return UploadTemplate(
        filename=f"{upload_type.value}_template.csv",
        headers=TEMPLATE_HEADERS[upload_type],
    )
