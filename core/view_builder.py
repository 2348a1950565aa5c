# core/view_builder.py
"""
Relation View Builder.

Merges a relation's raw rows with the account snapshot into the rows the
dashboard renders. Pure: same inputs, same output, nothing fetched here.
"""
from core.relations import get_relation

USER_KEY = "user_id"
PRIMARY_KEY = "id"


def build_view(relation_name, raw_rows, accounts):
    """
    Return (display_rows, headers) for one relation.

    Denormalized relations get every account at least once: real rows for
    accounts that have some, one placeholder row for accounts that have none.
    Other relations pass through ordered by primary key, newest first.
    """
    relation = get_relation(relation_name)
    raw_rows = list(raw_rows or [])

    if not relation.denormalized:
        headers = list(raw_rows[0].keys()) if raw_rows else []
        return order_by_primary_key_desc(raw_rows), headers

    headers = list(raw_rows[0].keys()) if raw_rows else relation.fallback_headers
    rows_by_account = group_rows_by_account(raw_rows)

    display_rows = []
    seen = set()
    for account in accounts:
        # Offset paging can return the same account twice
        if account.id in seen:
            continue
        seen.add(account.id)
        account_rows = rows_by_account.pop(account.id, None)
        if account_rows:
            display_rows.extend(dict(row) for row in account_rows)
        else:
            display_rows.append(placeholder_row(account.id, headers))

    # Rows pointing at an account we don't know are still shown
    for orphan_rows in rows_by_account.values():
        display_rows.extend(dict(row) for row in orphan_rows)

    emails = email_index(accounts)
    display_rows.sort(key=lambda row: display_sort_key(row, emails))
    return display_rows, headers


def group_rows_by_account(rows) -> dict:
    """account id -> rows for that account, in the order they arrived."""
    grouped = {}
    for row in rows:
        grouped.setdefault(row.get(USER_KEY), []).append(row)
    return grouped


def placeholder_row(account_id, headers) -> dict:
    row = {header: None for header in headers}
    row[PRIMARY_KEY] = None
    row[USER_KEY] = account_id
    return row


def is_placeholder(row) -> bool:
    return row.get(PRIMARY_KEY) is None


def email_index(accounts) -> dict:
    return {account.id: account.email or "" for account in accounts}


def display_sort_key(row, emails):
    # Unknown user_id sorts as "" instead of failing
    email = emails.get(row.get(USER_KEY), "")
    primary_key = row.get(PRIMARY_KEY)
    if primary_key is None:
        return (email, 1, 0)
    return (email, 0, primary_key)


def order_by_primary_key_desc(rows) -> list:
    keyed = [row for row in rows if row.get(PRIMARY_KEY) is not None]
    unkeyed = [row for row in rows if row.get(PRIMARY_KEY) is None]
    keyed.sort(key=lambda row: row[PRIMARY_KEY], reverse=True)
    return keyed + unkeyed
