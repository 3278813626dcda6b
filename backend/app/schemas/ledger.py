from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from app.services.ledger import d2
from app.services.ledger_entries import DailyLedger, EntryKind
from app.services.summary import LedgerSummary, PeriodSummary


class LedgerLineOut(BaseModel):
    kind: EntryKind
    source_id: str
    label: str
    notes: str | None = None
    amount: Decimal
    contribution: Decimal
    balance_after: Decimal


class LedgerSummaryOut(BaseModel):
    carried_forward: Decimal
    total_income: Decimal
    total_expense: Decimal
    remaining_balance: Decimal
    total_deferred_purchases: Decimal
    totals_by_kind: dict[EntryKind, Decimal]

    @classmethod
    def from_summary(cls, s: LedgerSummary) -> "LedgerSummaryOut":
        return cls(
            carried_forward=d2(s.carried_forward),
            total_income=d2(s.total_income),
            total_expense=d2(s.total_expense),
            remaining_balance=d2(s.remaining_balance),
            total_deferred_purchases=d2(s.total_deferred_purchases),
            totals_by_kind={k: d2(v) for k, v in s.totals_by_kind.items()},
        )


class DailyLedgerOut(BaseModel):
    project_id: str
    date: date
    opening_balance: Decimal
    closing_balance: Decimal
    entries: list[LedgerLineOut]
    summary: LedgerSummaryOut

    @classmethod
    def from_ledger(cls, lg: DailyLedger, s: LedgerSummary) -> "DailyLedgerOut":
        return cls(
            project_id=lg.project_id,
            date=lg.day,
            opening_balance=d2(lg.opening_balance),
            closing_balance=d2(lg.closing_balance),
            entries=[
                LedgerLineOut(
                    kind=ln.entry.kind,
                    source_id=ln.entry.source_id,
                    label=ln.entry.label,
                    notes=ln.entry.notes,
                    amount=d2(ln.entry.amount),
                    contribution=d2(ln.contribution),
                    balance_after=d2(ln.balance_after),
                )
                for ln in lg.entries
            ],
            summary=LedgerSummaryOut.from_summary(s),
        )


class PeriodSummaryOut(BaseModel):
    start: date
    end: date
    days: int
    opening_balance: Decimal
    total_income: Decimal
    total_expense: Decimal
    total_deferred_purchases: Decimal
    closing_balance: Decimal

    @classmethod
    def from_summary(cls, s: PeriodSummary) -> "PeriodSummaryOut":
        return cls(
            start=s.start,
            end=s.end,
            days=s.days,
            opening_balance=d2(s.opening_balance),
            total_income=d2(s.total_income),
            total_expense=d2(s.total_expense),
            total_deferred_purchases=d2(s.total_deferred_purchases),
            closing_balance=d2(s.closing_balance),
        )


class LedgerRangeOut(BaseModel):
    project_id: str
    ledgers: list[DailyLedgerOut]
    summary: PeriodSummaryOut


class BalanceOut(BaseModel):
    project_id: str
    date: date
    closing_balance: Decimal


class LedgerDateBoundsOut(BaseModel):
    project_id: str
    # None when the project has no transactions yet
    min_date: date | None = None
    max_date: date | None = None
