"""Spreadsheet (CSV) column contract for admin uploads and exports.

Column names are shared with the operations team's spreadsheets and must not
change.
"""
import io
from typing import Dict, List, Tuple

import pandas as pd
from pydantic import ValidationError

from shared.core.schemas import BulkUploadError, BulkUploadResponse
from ..enum.audit_enum import UploadType
from ..schemas.admin_schemas import RosterImport
from ..schemas.reference_inventory_schemas import ReferenceInventoryImport

STAFF_LOCATION_COLUMNS = [f"Location{i}" for i in range(1, 7)]

INVENTORY_COLUMNS = {
    "sku_id": "SKU ID",
    "name": "Name of the SKU ID",
    "picking_location": "Picking Location",
    "bulk_location": "Bulk Location",
    "system_quantity": "Quantity as on the date of Sampling",
    "blocked_quantity": "Blocked Quantity",
}

STAFF_COLUMNS = {
    "unique_code": "Staff ID",
    "login_pin": "Login PIN",
    "name": "Name",
}

CLIENT_COLUMNS = {
    "unique_code": "Staff ID",
    "login_pin": "Login PIN",
    "name": "Name",
    "mapped_location": "Location",
}

TEMPLATE_HEADERS = {
    UploadType.INVENTORY: [
        "SKU ID", "Name of the SKU ID", "Picking Location", "Bulk Location",
        "Quantity as on the date of Sampling"],
    UploadType.STAFF: ["Staff ID", "Login PIN", "Name", *STAFF_LOCATION_COLUMNS],
    UploadType.CLIENT: ["Staff ID", "Login PIN", "Name", "Location"],
}

REQUIRED_COLUMNS = {
    UploadType.INVENTORY: ["SKU ID"],
    UploadType.STAFF: ["Staff ID"],
    UploadType.CLIENT: ["Staff ID"],
}

# data rows start on line 2, below the header
FIRST_DATA_ROW = 2


class CsvFormatError(ValueError):
    pass


def read_csv(content: bytes) -> pd.DataFrame:
    """Parse comma or semicolon delimited CSV into a string DataFrame."""
    if not content or not content.strip():
        raise CsvFormatError("CSV file appears empty")
    try:
        df = pd.read_csv(
            io.BytesIO(content),
            sep=None,
            engine="python",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise CsvFormatError(f"Failed to parse CSV file: {e}")

    df.columns = [str(c).strip() for c in df.columns]
    if df.empty:
        raise CsvFormatError("CSV file appears empty")
    return df


def _check_columns(df: pd.DataFrame, upload_type: UploadType):
    missing = [c for c in REQUIRED_COLUMNS[upload_type] if c not in df.columns]
    if missing:
        raise CsvFormatError(
            f"Could not find {', '.join(repr(c) for c in missing)}. "
            f"Detected headers: {', '.join(df.columns)}")


def _records(df: pd.DataFrame, column_map: Dict[str, str]) -> List[dict]:
    present = {field: col for field, col in column_map.items() if col in df.columns}
    return [
        {field: row[col] for field, col in present.items()}
        for row in df.to_dict(orient="records")
    ]


def parse_inventory_csv(content: bytes) -> Tuple[List[ReferenceInventoryImport], List[int], List[BulkUploadError]]:
    df = read_csv(content)
    _check_columns(df, UploadType.INVENTORY)
    return _validate_rows(_records(df, INVENTORY_COLUMNS), ReferenceInventoryImport)


def parse_roster_csv(content: bytes, upload_type: UploadType) -> Tuple[List[RosterImport], List[int], List[BulkUploadError]]:
    df = read_csv(content)
    _check_columns(df, upload_type)

    if upload_type == UploadType.STAFF:
        records = _records(df, STAFF_COLUMNS)
        location_cols = [c for c in STAFF_LOCATION_COLUMNS if c in df.columns]
        for record, row in zip(records, df.to_dict(orient="records")):
            record["locations"] = [row[c] for c in location_cols]
    else:
        records = _records(df, CLIENT_COLUMNS)
    return _validate_rows(records, RosterImport)


def _validate_rows(records: List[dict], model):
    """Validated rows, their spreadsheet line numbers and the rejected lines."""
    rows, row_numbers, errors = [], [], []
    for index, record in enumerate(records):
        # fully blank lines are skipped, not reported
        if not any(str(v).strip() for v in record.values() if not isinstance(v, list)):
            continue
        try:
            rows.append(model(**record))
            row_numbers.append(index + FIRST_DATA_ROW)
        except ValidationError as e:
            errors.append(BulkUploadError(
                row=index + FIRST_DATA_ROW,
                errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]))
    return rows, row_numbers, errors


def merge_validations(result: BulkUploadResponse, errors: List[BulkUploadError]) -> BulkUploadResponse:
    """Fold rows rejected while parsing into the upsert result, in file order."""
    result.validations = sorted([*errors, *result.validations], key=lambda e: e.row)
    return result
