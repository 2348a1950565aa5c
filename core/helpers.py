# core/helpers.py
import json

import pandas as pd

from core.view_builder import PRIMARY_KEY, USER_KEY, email_index, is_placeholder


# ---------------------------
# Cell Helpers
# ---------------------------
def render_cell(value, header, relation, emails):
    """
    Describe how one cell is shown.
    Foreign keys to accounts are joined to the account email client-side.
    """
    if header in relation.foreign_key_fields:
        return {"kind": "account", "email": emails.get(value) or "N/A", "text": value or ""}
    if value is None:
        return {"kind": "null", "text": "null"}
    if isinstance(value, bool):
        return {"kind": "bool", "text": "true" if value else "false"}
    if isinstance(value, (dict, list)):
        return {"kind": "json", "text": json.dumps(value, indent=2)}
    return {"kind": "text", "text": str(value)}


def build_table_rows(view):
    """Rows of a TableView prepared for the table template."""
    emails = email_index(view.accounts)
    table_rows = []
    for row in view.rows:
        placeholder = not view.relation.is_identity_store and is_placeholder(row)
        table_rows.append({
            "row": row,
            "primary_key": row.get(PRIMARY_KEY),
            "user_id": row.get(USER_KEY),
            "is_placeholder": placeholder,
            "key": f"user-placeholder-{row.get(USER_KEY)}" if placeholder else str(row.get(PRIMARY_KEY)),
            "cells": [render_cell(row.get(h), h, view.relation, emails) for h in view.headers],
        })
    return table_rows


def humanize(column: str) -> str:
    return column.replace("_", " ")


# ---------------------------
# Date Helpers
# ---------------------------
def to_datetime_local(value) -> str:
    """Format a stored timestamp for an <input type="datetime-local">."""
    if value is None or value == "":
        return ""
    ts = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(ts):
        return str(value)
    return ts.strftime("%Y-%m-%dT%H:%M")
