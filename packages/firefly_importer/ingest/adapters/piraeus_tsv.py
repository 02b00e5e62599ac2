"""Adapter for Piraeus Bank e-banking "unified transactions" TSV exports.

The export starts with a few free-text info lines, followed by the header
row, the data rows and finally a summary line:

``Κατηγορία  Περιγραφή Συναλλαγής (είδος)  Ημερομηνία Καταχώρησης  Αριθμός Προϊόντος  Ποσό``

(columns separated by a single tab character).

Contract
--------
- The header is the first line containing both ``"Κατηγορία"`` and
  ``"Περιγραφή Συναλλαγής"`` (substring match; the info lines above it are
  ignored). It must split into exactly five tab-separated columns.
- After the header, blank lines are skipped. The first line that does not
  split into five columns is the trailing summary line and ends the rows.
- Each data row is normalized into a :class:`~firefly_importer.models.NormalizedRow`:

  * date ``D/M/YYYY`` → ``YYYY-MM-DD`` (kept verbatim when unparseable)
  * product number: ``"1234 5678 (My card)"`` → ``"12345678"``
  * amount: ``"-1.234,56 EUR"`` → ``"-1234.56"``

Failure mode
------------
A missing header raises :class:`HeaderNotFoundError` and a header with the
wrong number of columns raises :class:`MalformedHeaderError`. Both subclass
``csv.Error`` so callers can surface them as parse failures.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterator, Sequence
from datetime import datetime

from ...logging_setup import get_logger
from ...models import NormalizedRow

HEADER_TOKENS: tuple[str, ...] = ("Κατηγορία", "Περιγραφή Συναλλαγής")
EXPECTED_COLUMNS = 5
DATE_FORMAT = "%d/%m/%Y"

_FRIENDLY_NAME_RE = re.compile(r"\s*\(.*?\)")
_WHITESPACE_RE = re.compile(r"\s+")

_logger = get_logger("firefly_importer.ingest.piraeus_tsv")


class PiraeusFormatError(csv.Error):
    """The file does not look like a Piraeus unified transactions export."""


class HeaderNotFoundError(PiraeusFormatError):
    pass


class MalformedHeaderError(PiraeusFormatError):
    def __init__(self, found: int, expected: int = EXPECTED_COLUMNS) -> None:
        super().__init__(
            f"Header line does not contain expected number of columns: "
            f"found {found} columns, expected {expected}"
        )
        self.found = found
        self.expected = expected


def split_fields(line: str) -> list[str]:
    """Split ``line`` on tabs, dropping trailing empty columns.

    Exports end the header with a stray tab; trailing empties are therefore
    not counted as columns.
    """

    fields = line.split("\t")
    while fields and fields[-1] == "":
        fields.pop()
    return fields


def normalize_date(raw: str) -> str:
    """Convert ``D/M/YYYY`` to ISO 8601, returning ``raw`` unchanged on failure."""

    try:
        return datetime.strptime(raw, DATE_FORMAT).date().isoformat()
    except ValueError:
        _logger.debug("Keeping unparseable posting date %r", raw)
        return raw


def clean_account_ref(raw: str) -> str:
    """Drop the parenthetical friendly name and every whitespace character."""

    return _WHITESPACE_RE.sub("", _FRIENDLY_NAME_RE.sub("", raw))


def normalize_amount(raw: str) -> str:
    """Normalize a Greek-locale amount to a plain signed decimal string.

    Everything after the first space (the currency code) is dropped, ``.``
    thousands separators are removed and the decimal ``,`` becomes ``.``.
    """

    return raw.split(" ")[0].replace(".", "").replace(",", ".")


def locate_header(lines: Sequence[str]) -> int:
    """Return the index of the header line within ``lines``.

    Raises :class:`HeaderNotFoundError` when no line carries the header tokens
    and :class:`MalformedHeaderError` when the header is not five columns wide.
    """

    for idx, line in enumerate(lines):
        if all(token in line for token in HEADER_TOKENS):
            columns = split_fields(line.rstrip("\r\n"))
            if len(columns) != EXPECTED_COLUMNS:
                raise MalformedHeaderError(len(columns))
            _logger.info("Found header with %d columns", len(columns))
            return idx

    raise HeaderNotFoundError("Could not find expected header line")


def iter_rows(lines: Sequence[str]) -> Iterator[NormalizedRow]:
    """Yield normalized data rows following the header, in file order.

    Header validation happens eagerly, before the first row is yielded.
    """

    header_idx = locate_header(lines)
    return _iter_data_rows(lines, header_idx)


def _iter_data_rows(lines: Sequence[str], header_idx: int) -> Iterator[NormalizedRow]:
    for idx in range(header_idx + 1, len(lines)):
        line = lines[idx].strip()
        if not line:
            continue

        fields = split_fields(line)
        if len(fields) != EXPECTED_COLUMNS:
            _logger.debug("Stopping at line %d (%d columns): %r", idx + 1, len(fields), line)
            return

        category, description, posting_date, product, amount = fields
        yield NormalizedRow(
            category=category,
            description=description,
            date=normalize_date(posting_date),
            account_ref=clean_account_ref(product),
            amount=normalize_amount(amount),
            line_no=idx + 1,
        )


__all__ = [
    "EXPECTED_COLUMNS",
    "HEADER_TOKENS",
    "HeaderNotFoundError",
    "MalformedHeaderError",
    "PiraeusFormatError",
    "clean_account_ref",
    "iter_rows",
    "locate_header",
    "normalize_amount",
    "normalize_date",
    "split_fields",
]
