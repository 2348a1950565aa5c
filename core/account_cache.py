# core/account_cache.py
import logging
import threading

from django.conf import settings

from core import gateway as gateway_module
from core.gateway import GatewayError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class AccountCache:
    """
    In-memory snapshot of every identity-store account.

    refresh() pages through the gateway and replaces the snapshot. A failed
    page stops paging but keeps what was already fetched: a partial user list
    is preferred over an empty dashboard.
    """

    def __init__(self, gateway=None, page_size=None):
        self._gateway = gateway
        self.page_size = page_size or getattr(settings, "ACCOUNT_PAGE_SIZE", DEFAULT_PAGE_SIZE)
        self._snapshot = ()
        self._lock = threading.Lock()
        self._started = 0
        self._committed = 0

    @property
    def gateway(self):
        return self._gateway or gateway_module.get_gateway()

    @property
    def snapshot(self) -> tuple:
        return self._snapshot

    @property
    def generation(self) -> int:
        """Generation of the refresh that produced the current snapshot."""
        return self._committed

    def refresh(self) -> list:
        with self._lock:
            self._started += 1
            generation = self._started

        accounts = self._fetch_all_pages()

        with self._lock:
            # An older refresh finishing late must not roll back a newer snapshot
            if generation > self._committed:
                self._snapshot = tuple(accounts)
                self._committed = generation
            else:
                logger.info(
                    "Discarding stale account refresh %s (snapshot is from refresh %s)",
                    generation, self._committed,
                )
        return accounts

    def _fetch_all_pages(self) -> list:
        gateway = self.gateway
        accounts = []
        page = 1
        while True:
            try:
                batch = gateway.list_accounts(page=page, per_page=self.page_size)
            except GatewayError as exc:
                logger.warning(
                    "Error fetching page %s of users, keeping %s accounts already fetched: %s",
                    page, len(accounts), exc.message,
                )
                break

            accounts.extend(batch)
            if len(batch) < self.page_size:
                break
            page += 1
        return accounts

    def find(self, account_id):
        for account in self._snapshot:
            if account.id == account_id:
                return account
        return None


_ACCOUNT_CACHE = None


def get_account_cache() -> AccountCache:
    global _ACCOUNT_CACHE
    if _ACCOUNT_CACHE is None:
        _ACCOUNT_CACHE = AccountCache()
    return _ACCOUNT_CACHE


def reset_account_cache() -> None:
    global _ACCOUNT_CACHE
    _ACCOUNT_CACHE = None
