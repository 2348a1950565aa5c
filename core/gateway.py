# core/gateway.py
"""
Remote Data Gateway: the only place that talks to Supabase.

Every operation either returns its value or raises GatewayError. Callers
decide whether an error is shown (mutations, table fetch) or only logged
(account paging).
"""
import json
import logging

import httpx
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from supabase import create_client

from core.core_models import Account

logger = logging.getLogger(__name__)

# -----------------------------
# Error taxonomy
# -----------------------------
TRANSPORT = "transport"
AUTHORIZATION = "authorization"
NOT_FOUND = "not_found"
UNKNOWN = "unknown"

# PostgREST / Postgres codes we can classify
_AUTHORIZATION_CODES = {"42501", "PGRST301", "PGRST302"}
_NOT_FOUND_CODES = {"42P01", "PGRST205", "PGRST106"}


class GatewayError(Exception):
    """A failed call to the backend service, with a human-readable message."""

    def __init__(self, message: str, kind: str = UNKNOWN):
        super().__init__(message)
        self.message = message
        self.kind = kind

    @classmethod
    def from_exception(cls, exc: Exception) -> "GatewayError":
        return cls(format_gateway_error(exc), kind=classify_error(exc))


def classify_error(exc) -> str:
    if isinstance(exc, httpx.TransportError):
        return TRANSPORT

    status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    code = str(getattr(exc, "code", "") or "")

    if status in (401, 403) or code in _AUTHORIZATION_CODES:
        return AUTHORIZATION
    if status == 404 or code in _NOT_FOUND_CODES:
        return NOT_FOUND
    return UNKNOWN


def format_gateway_error(error) -> str:
    """Turn whatever the client raised into a sentence we can show to the operator."""
    if not error:
        return "An unknown error occurred."
    if isinstance(error, str):
        return error

    message = getattr(error, "message", None)
    if message is None and isinstance(error, dict):
        message = error.get("message")
    if isinstance(message, str) and message.strip():
        return message

    try:
        payload = error if isinstance(error, (dict, list)) else vars(error)
        text = json.dumps(payload, default=str)
        if text not in ("{}", "[]"):
            return text
    except (TypeError, ValueError):
        pass

    text = str(error)
    if text:
        return text
    return "An unknown error occurred. Check the server logs for details."


# -----------------------------
# Gateway
# -----------------------------
class SupabaseGateway:
    """Wraps a supabase Client built with the service-role key."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_settings(cls) -> "SupabaseGateway":
        url = getattr(settings, "SUPABASE_URL", None)
        key = getattr(settings, "SUPABASE_SERVICE_ROLE_KEY", None)
        if not url or not key:
            raise ImproperlyConfigured("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set.")
        return cls(create_client(url, key))

    def _call(self, action: str, func):
        try:
            return func()
        except Exception as exc:
            logger.error("Supabase %s failed: %s", action, exc)
            raise GatewayError.from_exception(exc) from exc

    # --- Relation rows ---
    def list_rows(self, relation: str, order_by=None, descending=False, limit=None) -> list:
        def run():
            query = self.client.table(relation).select("*")
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit:
                query = query.limit(limit)
            return query.execute().data or []

        return self._call(f"select on {relation}", run)

    def get_row(self, relation: str, primary_key):
        def run():
            response = self.client.table(relation).select("*").eq("id", primary_key).limit(1).execute()
            return response.data[0] if response.data else None

        return self._call(f"select on {relation} id={primary_key}", run)

    def insert_row(self, relation: str, fields: dict) -> None:
        self._call(
            f"insert into {relation}",
            lambda: self.client.table(relation).insert([fields]).execute(),
        )

    def update_row(self, relation: str, primary_key, fields: dict) -> None:
        self._call(
            f"update on {relation} id={primary_key}",
            lambda: self.client.table(relation).update(fields).eq("id", primary_key).execute(),
        )

    def delete_row(self, relation: str, primary_key) -> None:
        self._call(
            f"delete on {relation} id={primary_key}",
            lambda: self.client.table(relation).delete().eq("id", primary_key).execute(),
        )

    # --- Identity store ---
    def list_accounts(self, page: int, per_page: int) -> list:
        users = self._call(
            f"list_users page={page}",
            lambda: self.client.auth.admin.list_users(page=page, per_page=per_page),
        )
        return [Account.from_user(user) for user in users or []]

    def create_account(self, email: str, password: str, metadata: dict) -> None:
        # Created by an operator, so the address is confirmed up front
        attributes = {
            "email": email,
            "password": password,
            "user_metadata": metadata,
            "email_confirm": True,
        }
        self._call("create_user", lambda: self.client.auth.admin.create_user(attributes))

    def update_account_metadata(self, account_id: str, metadata: dict) -> None:
        self._call(
            f"update_user_by_id {account_id}",
            lambda: self.client.auth.admin.update_user_by_id(account_id, {"user_metadata": metadata}),
        )

    def delete_account(self, account_id: str) -> None:
        self._call(
            f"delete_user {account_id}",
            lambda: self.client.auth.admin.delete_user(account_id),
        )


_GATEWAY = None


def get_gateway():
    """Process-wide gateway, built from settings on first use."""
    global _GATEWAY
    if _GATEWAY is None:
        _GATEWAY = SupabaseGateway.from_settings()
    return _GATEWAY


def set_gateway(gateway) -> None:
    global _GATEWAY
    _GATEWAY = gateway
