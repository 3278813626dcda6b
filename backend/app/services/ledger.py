from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from app.core.errors import InvariantViolation
from app.services.ledger_entries import (
    BUCKET_ORDER,
    DailyLedger,
    EntryKind,
    LedgerEntry,
    LedgerLine,
    contribution,
)

Q2 = Decimal("0.01")
ZERO = Decimal("0")


def d2(x: Decimal) -> Decimal:
    return x.quantize(Q2, rounding=ROUND_HALF_UP)


def _order(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    # sorted() is stable: within a bucket the input order survives
    return sorted(entries, key=lambda e: BUCKET_ORDER[e.kind])


def _check_entries(day: date, entries: list[LedgerEntry]) -> None:
    for e in entries:
        if e.kind == EntryKind.CARRIED_FORWARD:
            raise InvariantViolation(f"carried-forward entry {e.source_id} passed to the builder")
        if e.amount < 0:
            raise InvariantViolation(f"entry {e.source_id} has negative amount {e.amount}")
        if e.occurred_on != day:
            raise InvariantViolation(f"entry {e.source_id} dated {e.occurred_on} in ledger for {day}")


def carried_forward_entry(project_id: str, day: date, opening_balance: Decimal) -> LedgerEntry:
    return LedgerEntry(
        kind=EntryKind.CARRIED_FORWARD,
        amount=opening_balance,
        occurred_on=day,
        source_id=f"carried-forward:{project_id}:{day.isoformat()}",
        label="Carried forward",
    )


def build_daily_ledger(
    project_id: str,
    day: date,
    opening_balance: Decimal,
    entries: Iterable[LedgerEntry],
) -> DailyLedger:
    """Order a day's entries and annotate each with the running balance.

    A non-zero opening balance is brought in by a synthesized carried-forward
    line at the top; the walk itself starts from zero so that line's
    contribution is the opening balance. Nothing is rounded here.
    """
    if not isinstance(opening_balance, Decimal) or not opening_balance.is_finite():
        raise InvariantViolation(f"opening balance {opening_balance!r} is not a finite Decimal")

    given = list(entries)
    _check_entries(day, given)

    ordered = _order(given)
    if opening_balance != 0:
        ordered.insert(0, carried_forward_entry(project_id, day, opening_balance))

    lines: list[LedgerLine] = []
    running = ZERO
    for e in ordered:
        c = contribution(e)
        running = running + c
        lines.append(LedgerLine(entry=e, contribution=c, balance_after=running))

    closing = lines[-1].balance_after if lines else opening_balance

    return DailyLedger(
        project_id=project_id,
        day=day,
        opening_balance=opening_balance,
        entries=tuple(lines),
        closing_balance=closing,
    )
