"""Turn normalized statement rows into Firefly III transactions.

Most rows map one-to-one onto a deposit or a withdrawal depending on the sign
of the amount. Internal moves between the user's own products ("Ανακατανομή",
redistribution) are exported as two adjacent rows, one per leg; these are
merged into a single ``transfer``:

- redistribution row + redistribution row
- redistribution row + business ("Επαγγελματικά") row
- redistribution row + payment confirmation row (description carries
  ``(ΠΛΗΡΩΜΗ - ΕΥΧΑΡΙΣΤΟΥΜΕ)``)

The merge logic is a small state machine. :func:`transition` is pure: given
the current state, a row and its resolved account id it returns a
:class:`Step` describing the new state, the transaction to emit (if any),
whether the previously emitted transaction must be withdrawn, and any
notices to log. :func:`classify_rows` drives it over a whole statement,
resolving account references and applying the steps.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TypeAlias

from .logging_setup import get_logger
from .models import NormalizedRow, Transaction
from .resolver import AccountResolver

REDISTRIBUTION_CATEGORY = "Ανακατανομή"
BUSINESS_CATEGORY = "Επαγγελματικά"
PAYMENT_CONFIRMATION_MARKER = "(ΠΛΗΡΩΜΗ - ΕΥΧΑΡΙΣΤΟΥΜΕ)"

_logger = get_logger("firefly_importer.classify")


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NoPending:
    pass


@dataclass(frozen=True, slots=True)
class PendingReference:
    """A redistribution row waiting for the row holding its other leg."""

    account_ref: str
    account_id: str
    line_no: int = 0


NO_PENDING = NoPending()

MergeState: TypeAlias = NoPending | PendingReference


@dataclass(frozen=True, slots=True)
class Notice:
    level: int
    message: str


@dataclass(frozen=True, slots=True)
class Step:
    state: MergeState
    emit: Transaction | None = None
    retract_previous: bool = False
    notices: tuple[Notice, ...] = ()


def strip_sign(amount: str) -> str:
    return amount[1:] if amount.startswith(("-", "+")) else amount


def _transfer(row: NormalizedRow, amount: str, source: str, destination: str) -> Transaction:
    return Transaction(
        type="transfer",
        date=row.date,
        amount=amount,
        description=row.description,
        source_account_id=source,
        destination_account_id=destination,
        category=REDISTRIBUTION_CATEGORY,
    )


def _classify_by_sign(
    row: NormalizedRow, account_id: str, notices: tuple[Notice, ...]
) -> Step:
    try:
        value = Decimal(row.amount)
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        bad = Notice(
            logging.WARNING,
            f"Skipping line {row.line_no}: invalid amount {row.amount!r} "
            f"({row.description})",
        )
        return Step(NO_PENDING, notices=(*notices, bad))

    if value < 0:
        tx = Transaction(
            type="withdrawal",
            date=row.date,
            amount=strip_sign(row.amount),
            description=row.description,
            source_account_id=account_id,
            destination_account_id=None,
            category=row.category,
        )
    else:
        tx = Transaction(
            type="deposit",
            date=row.date,
            amount=row.amount,
            description=row.description,
            source_account_id=None,
            destination_account_id=account_id,
            category=row.category,
        )
    return Step(NO_PENDING, emit=tx, notices=notices)


def transition(
    state: MergeState,
    row: NormalizedRow,
    account_id: str,
    previous: Transaction | None = None,
) -> Step:
    """Advance the merge state machine by one row.

    ``account_id`` is the resolved account of ``row``; ``previous`` is the last
    transaction emitted so far, consulted only when a payment confirmation
    arrives with nothing pending.

    Raises :class:`~firefly_importer.models.SameAccountTransactionError` when a
    merged transfer would have identical source and destination.
    """

    if PAYMENT_CONFIRMATION_MARKER in row.description:
        if isinstance(state, PendingReference):
            return Step(NO_PENDING, emit=_transfer(row, row.amount, state.account_id, account_id))
        # The other leg was already emitted as a regular transaction: take it
        # back and reuse its source account.
        if previous is None or previous.source_account_id is None:
            return Step(
                NO_PENDING,
                notices=(
                    Notice(
                        logging.WARNING,
                        f"Skipping payment confirmation at line {row.line_no}: no "
                        f"preceding transaction with a source account to pair with "
                        f"({row.description} {row.account_ref} {row.amount})",
                    ),
                ),
            )
        return Step(
            NO_PENDING,
            emit=_transfer(row, row.amount, previous.source_account_id, account_id),
            retract_previous=True,
        )

    if row.category == REDISTRIBUTION_CATEGORY:
        if isinstance(state, NoPending):
            return Step(PendingReference(row.account_ref, account_id, row.line_no))
        return Step(
            NO_PENDING,
            emit=_transfer(row, strip_sign(row.amount), account_id, state.account_id),
        )

    notices: tuple[Notice, ...] = ()
    if isinstance(state, PendingReference):
        if row.category == BUSINESS_CATEGORY:
            return Step(
                NO_PENDING,
                emit=_transfer(row, strip_sign(row.amount), account_id, state.account_id),
            )
        notices = (
            Notice(
                logging.WARNING,
                f"Unmatched redistribution entry: last {state.account_ref} "
                f"(line {state.line_no}); current {row.category} {row.description} "
                f"{row.account_ref} {row.amount}",
            ),
        )

    return _classify_by_sign(row, account_id, notices)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ClassificationResult:
    """Outcome of classifying one statement."""

    transactions: list[Transaction] = field(default_factory=list)
    rows_accepted: int = 0
    rows_skipped: int = 0


def classify_rows(rows: Iterable[NormalizedRow], resolver: AccountResolver) -> ClassificationResult:
    """Classify ``rows`` in order, merging redistribution pairs into transfers.

    Rows whose account reference cannot be resolved are skipped and logged;
    they do not affect a pending redistribution. A redistribution still
    pending at the end of input is logged and dropped.
    """

    result = ClassificationResult()
    state: MergeState = NO_PENDING

    for row in rows:
        try:
            account_id = resolver.resolve(row.account_ref)
        except Exception as e:  # noqa: BLE001 - a failed lookup only skips this row
            _logger.error(
                "Error looking up account for product %s (line %d): %s",
                row.account_ref,
                row.line_no,
                e,
                exc_info=True,
            )
            result.rows_skipped += 1
            continue

        if account_id is None:
            _logger.info("No account found for product %s (line %d)", row.account_ref, row.line_no)
            result.rows_skipped += 1
            continue

        result.rows_accepted += 1
        previous = result.transactions[-1] if result.transactions else None
        step = transition(state, row, account_id, previous)

        for notice in step.notices:
            _logger.log(notice.level, notice.message)
        if step.retract_previous:
            result.transactions.pop()
        if step.emit is not None:
            result.transactions.append(step.emit)
        state = step.state

    if isinstance(state, PendingReference):
        _logger.warning(
            "Unmatched redistribution entry %s (line %d) at end of input; discarded",
            state.account_ref,
            state.line_no,
        )

    return result


__all__ = [
    "BUSINESS_CATEGORY",
    "NO_PENDING",
    "PAYMENT_CONFIRMATION_MARKER",
    "REDISTRIBUTION_CATEGORY",
    "ClassificationResult",
    "MergeState",
    "NoPending",
    "Notice",
    "PendingReference",
    "Step",
    "classify_rows",
    "strip_sign",
    "transition",
]
