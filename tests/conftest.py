import os

os.environ.setdefault("DJANGO_DEBUG", "True")

import bcrypt
import pytest

from core import gateway as gateway_module
from core.account_cache import reset_account_cache
from core.core_models import Account
from core.gateway import GatewayError


class FakeGateway:
    """In-memory stand-in for SupabaseGateway. Records calls; failures can be injected per operation."""

    def __init__(self, tables=None, accounts=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.accounts = list(accounts or [])
        self.calls = []
        self.failures = {}
        self.account_page_failures = {}

    def fail(self, operation, message="boom", kind="unknown"):
        self.failures[operation] = GatewayError(message, kind=kind)

    def _check(self, operation):
        if operation in self.failures:
            raise self.failures[operation]

    # --- rows ---
    def list_rows(self, relation, order_by=None, descending=False, limit=None):
        self.calls.append(("list_rows", relation, order_by, descending, limit))
        self._check("list_rows")
        rows = [dict(r) for r in self.tables.get(relation, [])]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows[:limit] if limit else rows

    def get_row(self, relation, primary_key):
        self.calls.append(("get_row", relation, primary_key))
        self._check("get_row")
        for row in self.tables.get(relation, []):
            if row.get("id") == primary_key:
                return dict(row)
        return None

    def insert_row(self, relation, fields):
        self.calls.append(("insert_row", relation, fields))
        self._check("insert_row")
        rows = self.tables.setdefault(relation, [])
        next_id = max([r["id"] for r in rows if r.get("id") is not None] or [0]) + 1
        rows.append({"id": next_id, **fields})

    def update_row(self, relation, primary_key, fields):
        self.calls.append(("update_row", relation, primary_key, fields))
        self._check("update_row")
        for row in self.tables.get(relation, []):
            if row.get("id") == primary_key:
                row.update(fields)

    def delete_row(self, relation, primary_key):
        self.calls.append(("delete_row", relation, primary_key))
        self._check("delete_row")
        self.tables[relation] = [r for r in self.tables.get(relation, []) if r.get("id") != primary_key]

    # --- accounts ---
    def list_accounts(self, page, per_page):
        self.calls.append(("list_accounts", page, per_page))
        if page in self.account_page_failures:
            raise self.account_page_failures[page]
        start = (page - 1) * per_page
        return list(self.accounts[start:start + per_page])

    def create_account(self, email, password, metadata):
        self.calls.append(("create_account", email, password, metadata))
        self._check("create_account")
        self.accounts.append(Account(id=f"new-{len(self.accounts) + 1}", email=email, metadata=metadata))

    def update_account_metadata(self, account_id, metadata):
        self.calls.append(("update_account_metadata", account_id, metadata))
        self._check("update_account_metadata")
        self.accounts = [
            Account(id=a.id, email=a.email, metadata=metadata) if a.id == account_id else a
            for a in self.accounts
        ]

    def delete_account(self, account_id):
        self.calls.append(("delete_account", account_id))
        self._check("delete_account")
        self.accounts = [a for a in self.accounts if a.id != account_id]

    def count(self, operation):
        return sum(1 for call in self.calls if call[0] == operation)


@pytest.fixture
def accounts():
    return [
        Account(id="u2", email="b@x.com", metadata={"role": "editor"}),
        Account(id="u1", email="a@x.com"),
        Account(id="u3", email=None),
    ]


@pytest.fixture
def fake_gateway(accounts):
    fake = FakeGateway(
        tables={
            "subscriptions": [
                {"id": 5, "user_id": "u1", "plan": "silver", "status": "active",
                 "start_date": "2024-01-01", "end_date": None, "created_at": "2024-01-01T00:00:00+00:00"},
            ],
            "referral_usage": [
                {"id": 1, "referral_code": "WELCOME", "user_id": "u1", "used_at": "2024-02-01T10:00:00+00:00",
                 "details": {"source": "campaign_x"}},
                {"id": 2, "referral_code": "SPRING", "user_id": "u9", "used_at": "2024-03-01T10:00:00+00:00",
                 "details": None},
            ],
            "user_progress": [],
        },
        accounts=accounts,
    )
    gateway_module.set_gateway(fake)
    reset_account_cache()
    yield fake
    gateway_module.set_gateway(None)
    reset_account_cache()


@pytest.fixture
def operator(settings):
    settings.DASHBOARD_USERNAME = "admin"
    settings.DASHBOARD_PASSWORD_HASH = bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode()
    return {"username": "admin", "password": "secret"}


@pytest.fixture
def logged_in_client(client, operator, fake_gateway):
    response = client.post("/accounts/login/", operator)
    assert response.status_code == 302
    return client
