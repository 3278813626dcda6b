from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Sequence

from app.core.errors import InvariantViolation
from app.services.ledger_entries import DailyLedger, EntryKind

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerSummary:
    carried_forward: Decimal
    total_income: Decimal
    total_expense: Decimal
    remaining_balance: Decimal
    # informational only: credit purchases never touch the cash balance
    total_deferred_purchases: Decimal
    totals_by_kind: dict[EntryKind, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PeriodSummary:
    project_id: str
    start: date
    end: date
    days: int
    opening_balance: Decimal
    total_income: Decimal
    total_expense: Decimal
    total_deferred_purchases: Decimal
    closing_balance: Decimal


def summarize(ledger: DailyLedger) -> LedgerSummary:
    income = ZERO
    expense = ZERO
    deferred = ZERO
    by_kind: dict[EntryKind, Decimal] = {}

    for line in ledger.entries:
        kind = line.entry.kind
        if kind == EntryKind.CARRIED_FORWARD:
            continue

        by_kind[kind] = by_kind.get(kind, ZERO) + line.entry.amount

        if kind == EntryKind.MATERIAL_PURCHASE_DEFERRED:
            deferred += line.entry.amount
        elif line.contribution > 0:
            income += line.contribution
        elif line.contribution < 0:
            expense += -line.contribution

    out = LedgerSummary(
        carried_forward=ledger.opening_balance,
        total_income=income,
        total_expense=expense,
        remaining_balance=ledger.closing_balance,
        total_deferred_purchases=deferred,
        totals_by_kind=by_kind,
    )

    if out.carried_forward + out.total_income - out.total_expense != out.remaining_balance:
        raise InvariantViolation(
            f"ledger {ledger.project_id}/{ledger.day}: carried {out.carried_forward} + income {income}"
            f" - expense {expense} != remaining {out.remaining_balance}"
        )
    return out


def summarize_period(ledgers: Sequence[DailyLedger]) -> PeriodSummary:
    """Reduce a contiguous run of daily ledgers for one project.

    Each day must open with the previous day's closing balance; a gap or a
    broken link means the ledgers were not produced by one chain.
    """
    if not ledgers:
        raise InvariantViolation("cannot summarize an empty period")

    first = ledgers[0]
    income = ZERO
    expense = ZERO
    deferred = ZERO

    prev: DailyLedger | None = None
    for lg in ledgers:
        if lg.project_id != first.project_id:
            raise InvariantViolation(f"period mixes projects {first.project_id} and {lg.project_id}")
        if prev is not None:
            if lg.day != prev.day + timedelta(days=1):
                raise InvariantViolation(f"period is not contiguous between {prev.day} and {lg.day}")
            if lg.opening_balance != prev.closing_balance:
                raise InvariantViolation(
                    f"{lg.day} opens at {lg.opening_balance} but {prev.day} closed at {prev.closing_balance}"
                )
        s = summarize(lg)
        income += s.total_income
        expense += s.total_expense
        deferred += s.total_deferred_purchases
        prev = lg

    last = ledgers[-1]
    return PeriodSummary(
        project_id=first.project_id,
        start=first.day,
        end=last.day,
        days=len(ledgers),
        opening_balance=first.opening_balance,
        total_income=income,
        total_expense=expense,
        total_deferred_purchases=deferred,
        closing_balance=last.closing_balance,
    )
