"""Public API and orchestration for the ``firefly_importer`` package.

:func:`import_piraeus_file` wires the pipeline together:

    statement file → lines → normalized rows → classified transactions

Each call builds its own :class:`~firefly_importer.resolver.AccountResolver`,
so account lookups are memoized per run and never shared between runs.
Submitting the resulting transactions to Firefly III is not implemented; the
CLI reports them instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike

from .classify import classify_rows
from .firefly_client import AccountDirectory
from .ingest.adapters.piraeus_tsv import iter_rows
from .ingest.utils import read_statement_lines
from .logging_setup import get_logger
from .models import Transaction
from .resolver import AccountResolver

_logger = get_logger("firefly_importer.api")


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Summary of a parsed statement.

    ``rows_parsed`` counts data rows whose account could be resolved;
    ``transactions`` holds the records ready for submission, in file order.
    """

    rows_parsed: int
    rows_skipped: int
    transactions: tuple[Transaction, ...]
    remote_lookups: int = 0


def import_piraeus_file(path: str | PathLike[str], directory: AccountDirectory) -> ImportResult:
    """Parse a Piraeus unified transactions export into transactions.

    Fatal input problems are raised before any row is classified:
    ``FileNotFoundError``, :class:`~firefly_importer.ingest.utils.EmptyStatementError`,
    :class:`~firefly_importer.ingest.adapters.piraeus_tsv.HeaderNotFoundError`
    and :class:`~firefly_importer.ingest.adapters.piraeus_tsv.MalformedHeaderError`.
    A :class:`~firefly_importer.models.SameAccountTransactionError` aborts the
    run as well. Per-row problems are logged and skipped.
    """

    _logger.info("Importing data from: %s", path)
    lines = read_statement_lines(path)
    rows = iter_rows(lines)

    resolver = AccountResolver(directory)
    result = classify_rows(rows, resolver)
    _logger.info(
        "Parsed %d data rows, skipped %d, prepared %d transactions (%d account lookups)",
        result.rows_accepted,
        result.rows_skipped,
        len(result.transactions),
        resolver.remote_lookups,
    )
    return ImportResult(
        rows_parsed=result.rows_accepted,
        rows_skipped=result.rows_skipped,
        transactions=tuple(result.transactions),
        remote_lookups=resolver.remote_lookups,
    )


def format_transaction(tx: Transaction) -> str:
    """Render one transaction as a tab-aligned report line."""

    return (
        f"{tx.type}\t| {tx.date}\t| {tx.amount}\t| {tx.description}\t| "
        f"{tx.source_account_id} -> {tx.destination_account_id}"
    )


__all__ = ["ImportResult", "format_transaction", "import_piraeus_file"]
