"""Data models for ``firefly_importer``.

Two families live here:

- Domain records produced by the import pipeline: :class:`NormalizedRow`
  (one parsed statement line) and :class:`Transaction` (one record ready for
  Firefly III). Both are frozen dataclasses with string-typed amounts and
  dates so the exact textual formatting survives untouched.
- Typed DTOs for the Firefly III JSON API (pydantic models). Unknown fields
  are ignored so the importer keeps working when the server adds attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Import pipeline records
# ---------------------------------------------------------------------------

TransactionType: TypeAlias = Literal["deposit", "withdrawal", "transfer"]


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    """A single data line of a Piraeus statement after normalization.

    Attributes
    ----------
    category:
        Free-text category column as exported by the bank.
    description:
        Free-text transaction description (kind of transaction).
    date:
        Posting date as ``YYYY-MM-DD``; the raw column text when it could not
        be parsed as ``D/M/YYYY``.
    account_ref:
        Product number with the parenthetical friendly name and all
        whitespace removed.
    amount:
        Signed decimal string using ``.`` as the decimal separator and no
        thousands separators (e.g. ``"-1234.56"``).
    line_no:
        1-based line number in the source file, for diagnostics only.
    """

    category: str
    description: str
    date: str
    account_ref: str
    amount: str
    line_no: int = 0


class SameAccountTransactionError(ValueError):
    """Raised when a transaction would move money from an account to itself."""


@dataclass(frozen=True, slots=True)
class Transaction:
    """A normalized transaction ready to be handed to Firefly III.

    ``amount`` is always unsigned; direction is carried by ``type`` and the
    source/destination account ids:

    - ``deposit``: destination only
    - ``withdrawal``: source only
    - ``transfer``: both
    """

    type: TransactionType
    date: str
    amount: str
    description: str
    source_account_id: str | None
    destination_account_id: str | None
    category: str

    def __post_init__(self) -> None:
        if (
            self.source_account_id is not None
            and self.source_account_id == self.destination_account_id
        ):
            raise SameAccountTransactionError(
                f"source and destination account cannot be the same "
                f"(account={self.source_account_id!r}, type={self.type}, "
                f"date={self.date}, amount={self.amount}, "
                f"description={self.description!r}, category={self.category!r})"
            )


# ---------------------------------------------------------------------------
# Account directory view
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Account:
    """A Firefly III asset/liability account as seen by the resolver."""

    id: str
    name: str | None = None
    account_number: str | None = None
    iban: str | None = None
    notes: str | None = None

    def matches(self, account_ref: str) -> bool:
        """Return True when ``account_ref`` identifies this account.

        Account number and IBAN must match exactly; notes match when they
        contain the reference anywhere.
        """

        if account_ref == self.account_number:
            return True
        if account_ref == self.iban:
            return True
        return self.notes is not None and account_ref in self.notes


# ---------------------------------------------------------------------------
# Firefly III API DTOs
# ---------------------------------------------------------------------------


class AccountAttributes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    account_number: str | None = None
    iban: str | None = None
    notes: str | None = None


class AccountItem(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    attributes: AccountAttributes | None = None


class Pagination(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_page: int = 1
    total_pages: int = 1


class ResponseMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pagination: Pagination | None = None


class AccountsResponse(BaseModel):
    """Top-level schema of ``GET /api/v1/accounts`` (one page)."""

    model_config = ConfigDict(extra="ignore")

    data: list[AccountItem | None] | None = None
    meta: ResponseMeta | None = None

    def total_pages(self) -> int:
        p = self.meta.pagination if self.meta is not None else None
        return p.total_pages if p is not None else 1


class AboutData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: str | None = None
    api_version: str | None = None
    php_version: str | None = None
    os: str | None = None


class AboutResponse(BaseModel):
    """Top-level schema of ``GET /api/v1/about``."""

    model_config = ConfigDict(extra="ignore")

    data: AboutData | None = None


__all__ = [
    "AboutData",
    "AboutResponse",
    "Account",
    "AccountAttributes",
    "AccountItem",
    "AccountsResponse",
    "NormalizedRow",
    "Pagination",
    "ResponseMeta",
    "SameAccountTransactionError",
    "Transaction",
    "TransactionType",
]
