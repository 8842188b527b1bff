from typing import Dict, List, Optional
import pandas as pd

from shared.core.schemas import ExportResponse


def export_rows(
    data: List[Dict],
    filename: str = "export.csv",
    column_map: Optional[Dict[str, str]] = None,
) -> ExportResponse:
    """
    Shape a list of dictionaries into spreadsheet rows with friendly headers.

    Args:
        data: List of dictionaries (each dict = row)
        filename: Suggested name for the downloaded file
        column_map: Mapping of data keys -> column names, in column order
    """
    if not data:
        return ExportResponse(filename=filename, data=[])

    df = pd.DataFrame(data)

    if column_map:
        # Fill missing keys so every mapped column is present
        for key in column_map.keys():
            if key not in df.columns:
                df[key] = None
        df = df[list(column_map.keys())].rename(columns=column_map)

    # NaN is not valid JSON
    df = df.astype(object).where(pd.notna(df), None)
    return ExportResponse(filename=filename, data=df.to_dict(orient="records"))


def to_csv_text(export: ExportResponse) -> str:
    if not export.data:
        return ""
    return pd.DataFrame(export.data).to_csv(index=False)
