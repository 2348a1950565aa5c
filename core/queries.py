# core/queries.py
"""
What the dashboard asks for: table views and mutations.

Mutations never raise for gateway or validation failures; they return None
on success or a message for the operator.
"""
import logging
from dataclasses import dataclass, field

from core import gateway as gateway_module
from core.account_cache import get_account_cache
from core.gateway import GatewayError
from core.relations import SYSTEM_COLUMNS, Relation, get_relation
from core.view_builder import build_view
from utils.validators import is_blank, parse_json_object, safe_number

logger = logging.getLogger(__name__)

USERS_TABLE_SAVE_REFUSED = "Save operation is not permitted for users table."
USERS_TABLE_DELETE_REFUSED = "Delete operation is not permitted for users table. Delete the user from its user page."
CREDENTIALS_REQUIRED = "Email and password are required."


@dataclass
class TableView:
    relation: Relation
    headers: list
    rows: list
    accounts: tuple = field(default_factory=tuple)


# -------------------------
# Reads
# -------------------------
def get_table_view(relation_name: str, refresh_accounts: bool = True) -> TableView:
    """
    Refresh the account snapshot, fetch the relation and build its display rows.
    A failed row fetch raises GatewayError; no partial view is produced.
    """
    relation = get_relation(relation_name)
    cache = get_account_cache()
    if refresh_accounts:
        cache.refresh()
    accounts = cache.snapshot

    if relation.is_identity_store:
        rows = [account.as_row() for account in accounts]
        headers = list(rows[0].keys()) if rows else []
        return TableView(relation, headers, rows, accounts)

    gateway = gateway_module.get_gateway()
    if relation.denormalized:
        raw_rows = gateway.list_rows(relation.name)
    else:
        raw_rows = gateway.list_rows(relation.name, order_by="id", descending=True)

    rows, headers = build_view(relation.name, raw_rows, accounts)
    return TableView(relation, headers, rows, accounts)


def get_display_rows(relation_name: str) -> list:
    return get_table_view(relation_name).rows


def get_headers(relation_name: str) -> list:
    return get_table_view(relation_name).headers


def get_form_headers(relation_name: str) -> list:
    """Column names for an add form: one sample row, or the declared columns when the table is empty."""
    relation = get_relation(relation_name)
    sample = gateway_module.get_gateway().list_rows(relation.name, limit=1)
    if sample:
        return list(sample[0].keys())
    return relation.fallback_headers


def get_row(relation_name: str, primary_key):
    relation = get_relation(relation_name)
    return gateway_module.get_gateway().get_row(relation.name, primary_key)


def get_accounts(refresh: bool = False) -> tuple:
    cache = get_account_cache()
    if refresh or not cache.snapshot:
        cache.refresh()
    return cache.snapshot


def get_account(account_id: str):
    cache = get_account_cache()
    account = cache.find(account_id)
    if account is None:
        cache.refresh()
        account = cache.find(account_id)
    return account


# -------------------------
# Row mutations
# -------------------------
def prepare_row_payload(relation: Relation, fields: dict) -> dict:
    """
    Normalise submitted form values for the gateway.
    Raises ValueError for values that must not reach the backend.
    """
    payload = {}
    for column, value in fields.items():
        if column in SYSTEM_COLUMNS:
            continue

        if column in relation.json_fields:
            label = column.replace("_", " ").capitalize()
            payload[column] = None if is_blank(value) else parse_json_object(value, label=label)
        elif column in relation.numeric_fields:
            if is_blank(value):
                continue
            number = safe_number(value)
            if number is None:
                raise ValueError(f"{column.replace('_', ' ').capitalize()} must be a number.")
            payload[column] = number
        elif isinstance(value, str):
            value = value.strip()
            payload[column] = value or None
        else:
            payload[column] = value
    return payload


def save_row(relation_name: str, fields: dict, primary_key=None):
    """Insert when primary_key is None, update otherwise."""
    relation = get_relation(relation_name)
    if relation.is_identity_store:
        return USERS_TABLE_SAVE_REFUSED

    try:
        payload = prepare_row_payload(relation, fields)
    except ValueError as e:
        return str(e)

    gateway = gateway_module.get_gateway()
    try:
        if primary_key is None:
            gateway.insert_row(relation.name, payload)
        else:
            gateway.update_row(relation.name, primary_key, payload)
    except GatewayError as e:
        return e.message

    logger.info("%s row in %s (id=%s)", "Inserted" if primary_key is None else "Updated", relation.name, primary_key)
    return None


def delete_row(relation_name: str, primary_key):
    relation = get_relation(relation_name)
    if relation.is_identity_store:
        return USERS_TABLE_DELETE_REFUSED
    try:
        gateway_module.get_gateway().delete_row(relation.name, primary_key)
    except GatewayError as e:
        return e.message

    logger.info("Deleted row %s from %s", primary_key, relation.name)
    return None


# -------------------------
# Account mutations
# -------------------------
def create_account(email: str, password: str, metadata="{}"):
    if is_blank(email) or is_blank(password):
        return CREDENTIALS_REQUIRED
    try:
        parsed = parse_json_object(metadata)
    except ValueError as e:
        return str(e)

    try:
        gateway_module.get_gateway().create_account(email.strip(), password, parsed)
    except GatewayError as e:
        return e.message

    logger.info("Created account %s", email)
    get_account_cache().refresh()
    return None


def update_account_metadata(account_id: str, metadata):
    try:
        parsed = parse_json_object(metadata)
    except ValueError as e:
        return str(e)

    try:
        gateway_module.get_gateway().update_account_metadata(account_id, parsed)
    except GatewayError as e:
        return e.message

    logger.info("Updated metadata for account %s", account_id)
    get_account_cache().refresh()
    return None


def delete_account(account_id: str):
    try:
        gateway_module.get_gateway().delete_account(account_id)
    except GatewayError as e:
        return e.message

    logger.info("Deleted account %s", account_id)
    get_account_cache().refresh()
    return None
