# app/router/admin_router.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin, validate_current_token
from shared.core.database import get_db
from shared.core.schemas import BulkUploadResponse, ExportResponse
from shared.helpers.export_helper import to_csv_text
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ..crud import reference_inventory_crud, report_crud, roster_crud
from ..enum.audit_enum import ExportType, UploadType
from ..helpers.csv_import_helper import (
    CsvFormatError, merge_validations, parse_inventory_csv, parse_roster_csv)
from ..schemas.admin_schemas import (
    DeleteResult, InventoryReportParams, InventoryReportRow, RosterImport, UploadTemplate,
    UserListResponse, UserOut, UserUpdate)
from ..schemas.reference_inventory_schemas import ReferenceInventoryImport

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(validate_current_token), Depends(allow_admin)]
)


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if file.filename and not file.filename.lower().endswith(".csv"):
        return error_response(
            message="Only .csv files are supported",
            status_code=str(AppStatusCode.INVALID_INPUT),
            http_status=400
        )
    return content


def _csv_error(e: CsvFormatError):
    return error_response(
        message=str(e),
        status_code=str(AppStatusCode.INVALID_INPUT),
        http_status=400
    )


# ---------------------------------------------------------------- catalog

@router.post("/upload-inventory", response_model=BulkUploadResponse)
def upload_inventory(items: List[ReferenceInventoryImport], db: Session = Depends(get_db)):
    return reference_inventory_crud.bulk_upsert_reference_items(db, items)


@router.post("/upload-inventory/csv", response_model=BulkUploadResponse)
async def upload_inventory_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await _read_upload(file)
    try:
        items, row_numbers, errors = parse_inventory_csv(content)
    except CsvFormatError as e:
        return _csv_error(e)
    result = reference_inventory_crud.bulk_upsert_reference_items(db, items, row_numbers)
    return merge_validations(result, errors)


# ---------------------------------------------------------------- roster

@router.post("/assign-staff", response_model=BulkUploadResponse)
def assign_staff(rows: List[RosterImport], db: Session = Depends(get_db)):
    return roster_crud.bulk_upsert_roster(db, rows, UserRole.STAFF)


@router.post("/assign-staff/csv", response_model=BulkUploadResponse)
async def assign_staff_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await _read_upload(file)
    try:
        rows, row_numbers, errors = parse_roster_csv(content, UploadType.STAFF)
    except CsvFormatError as e:
        return _csv_error(e)
    result = roster_crud.bulk_upsert_roster(db, rows, UserRole.STAFF, row_numbers)
    return merge_validations(result, errors)


@router.post("/assign-client", response_model=BulkUploadResponse)
def assign_client(rows: List[RosterImport], db: Session = Depends(get_db)):
    return roster_crud.bulk_upsert_roster(db, rows, UserRole.CLIENT)


@router.post("/assign-client/csv", response_model=BulkUploadResponse)
async def assign_client_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await _read_upload(file)
    try:
        rows, row_numbers, errors = parse_roster_csv(content, UploadType.CLIENT)
    except CsvFormatError as e:
        return _csv_error(e)
    result = roster_crud.bulk_upsert_roster(db, rows, UserRole.CLIENT, row_numbers)
    return merge_validations(result, errors)


# ---------------------------------------------------------------- users

@router.get("/users", response_model=UserListResponse)
def list_users(
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = Query(0, ge=0),
        limit: Optional[int] = Query(None, ge=1),
        db: Session = Depends(get_db)):
    return roster_crud.get_users(db, role=role, search=search, skip=skip, limit=limit)


@router.put("/users/{user_id}", response_model=UserOut)
def update_user(user_id: UUID, data: UserUpdate, db: Session = Depends(get_db)):
    return roster_crud.update_user(db, user_id, data)


# ---------------------------------------------------------------- reports

@router.get("/inventory-all", response_model=List[InventoryReportRow])
def inventory_all(params: InventoryReportParams = Depends(), db: Session = Depends(get_db)):
    return report_crud.get_inventory_report(db, params)


@router.get("/export", response_model=ExportResponse)
def export(
        export_type: ExportType = Query(ExportType.AUDIT_REPORT, alias="type"),
        file_format: str = Query("json", alias="format", pattern="^(json|csv)$"),
        params: InventoryReportParams = Depends(),
        db: Session = Depends(get_db)):
    result = report_crud.export_data(db, export_type, params)
    if file_format == "csv":
        return Response(
            content=to_csv_text(result),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )
    return result


@router.get("/templates/{upload_type}", response_model=UploadTemplate)
def upload_template(upload_type: UploadType):
    return report_crud.get_upload_template(upload_type)


# ---------------------------------------------------------------- resets

@router.delete("/delete-all-staff", response_model=DeleteResult)
def delete_all_staff(db: Session = Depends(get_db)):
    deleted = roster_crud.delete_users_by_role(db, UserRole.STAFF)
    return DeleteResult(message=f"Deleted {deleted} staff users", deleted=deleted)


@router.delete("/delete-all-clients", response_model=DeleteResult)
def delete_all_clients(db: Session = Depends(get_db)):
    deleted = roster_crud.delete_users_by_role(db, UserRole.CLIENT)
    return DeleteResult(message=f"Deleted {deleted} client users", deleted=deleted)


@router.delete("/delete-all-reference-inventory", response_model=DeleteResult)
def delete_all_reference_inventory(db: Session = Depends(get_db)):
    deleted = reference_inventory_crud.delete_all_reference_items(db)
    return DeleteResult(message=f"Deleted {deleted} reference inventory items", deleted=deleted)
