# utils/export_utils.py
import io
import json

import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from core.view_builder import email_index

MAX_COLUMN_WIDTH = 60


def table_view_dataframe(view) -> pd.DataFrame:
    """
    Flatten a TableView into a DataFrame.
    Account foreign keys get a companion '<column>_email' column; JSON values become text.
    """
    emails = email_index(view.accounts)
    columns = []
    for header in view.headers:
        columns.append(header)
        if header in view.relation.foreign_key_fields:
            columns.append(f"{header}_email")

    records = []
    for row in view.rows:
        record = {}
        for header in view.headers:
            value = row.get(header)
            if isinstance(value, (dict, list)):
                value = json.dumps(value)
            record[header] = value
            if header in view.relation.foreign_key_fields:
                record[f"{header}_email"] = emails.get(value) or None
        records.append(record)

    return pd.DataFrame(records, columns=columns)


# -----------------------------
# Export current table view to Excel
# -----------------------------
def export_table_view_excel(view) -> bytes:
    """Returns Excel bytes for the rows currently shown for a relation (placeholders included)."""
    df = table_view_dataframe(view)
    sheet_name = view.relation.name[:31]

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
        ws = writer.sheets[sheet_name]

        for cell in ws[1]:
            cell.font = Font(bold=True)

        for idx, column in enumerate(df.columns, start=1):
            values = [str(column)] + ["" if pd.isna(v) else str(v) for v in df[column].tolist()]
            width = min(max(len(v) for v in values) + 2, MAX_COLUMN_WIDTH)
            ws.column_dimensions[get_column_letter(idx)].width = width

    output.seek(0)
    return output.getvalue()
