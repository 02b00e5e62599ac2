"""Account reference → Firefly III account id resolution with memoization.

Statement rows carry a bank product number (``account_ref``). The resolver
maps it to the internal Firefly III account id by scanning the directory's
account listing, and caches every answer for the lifetime of the instance,
including "looked up, nothing matched". One resolver belongs to one import
run; it is not shared between runs or threads.

Cache states per reference:

- key absent: never looked up
- :class:`Found`: looked up, matched ``account_id``
- :data:`CONFIRMED_ABSENT`: looked up, no account matched
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from .firefly_client import AccountDirectory, FireflyApiError
from .logging_setup import get_logger

_logger = get_logger("firefly_importer.resolver")


@dataclass(frozen=True, slots=True)
class Found:
    account_id: str


class _ConfirmedAbsent:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "CONFIRMED_ABSENT"


# Sentinel: the reference was looked up and no account matched.
CONFIRMED_ABSENT = _ConfirmedAbsent()

LookupState: TypeAlias = Found | _ConfirmedAbsent | None


class AccountResolver:
    """Resolve statement account references against an :class:`AccountDirectory`."""

    def __init__(self, directory: AccountDirectory) -> None:
        self._directory = directory
        self._cache: dict[str, Found | _ConfirmedAbsent] = {}
        self.remote_lookups = 0

    def lookup_state(self, account_ref: str) -> LookupState:
        """Return the cached state for ``account_ref`` (``None`` when never looked up)."""

        return self._cache.get(account_ref)

    def resolve(self, account_ref: str | None) -> str | None:
        """Return the account id for ``account_ref`` or ``None`` when there is none.

        Blank references resolve to ``None`` without touching the directory.
        A directory failure (:class:`FireflyApiError`) is logged and cached as
        "not found"; any other exception propagates uncached.
        """

        if account_ref is None or not account_ref.strip():
            return None

        cached = self._cache.get(account_ref)
        if isinstance(cached, Found):
            return cached.account_id
        if cached is not None:
            return None

        self.remote_lookups += 1
        try:
            accounts = self._directory.list_accounts()
        except FireflyApiError as e:
            _logger.warning("Could not list accounts while resolving %s: %s", account_ref, e)
            self._cache[account_ref] = CONFIRMED_ABSENT
            return None

        for account in accounts:
            if account.matches(account_ref):
                _logger.debug("Resolved %s to account %s", account_ref, account.id)
                self._cache[account_ref] = Found(account.id)
                return account.id

        self._cache[account_ref] = CONFIRMED_ABSENT
        return None


__all__ = ["CONFIRMED_ABSENT", "AccountResolver", "Found", "LookupState"]
