from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class EntryKind(str, Enum):
    CARRIED_FORWARD = "carried_forward"
    FUND_TRANSFER = "fund_transfer"
    PROJECT_TRANSFER_IN = "project_transfer_in"
    WORKER_WAGE = "worker_wage"
    TRANSPORT = "transport"
    WORKER_TRANSFER = "worker_transfer"
    WORKER_MISC_EXPENSE = "worker_misc_expense"
    PROJECT_TRANSFER_OUT = "project_transfer_out"
    MATERIAL_PURCHASE_CASH = "material_purchase_cash"
    MATERIAL_PURCHASE_DEFERRED = "material_purchase_deferred"


# Display order of a daily ledger. Cash and deferred purchases share a bucket.
BUCKET_ORDER: dict[EntryKind, int] = {
    EntryKind.CARRIED_FORWARD: 0,
    EntryKind.FUND_TRANSFER: 1,
    EntryKind.PROJECT_TRANSFER_IN: 2,
    EntryKind.WORKER_WAGE: 3,
    EntryKind.TRANSPORT: 4,
    EntryKind.WORKER_TRANSFER: 5,
    EntryKind.WORKER_MISC_EXPENSE: 6,
    EntryKind.PROJECT_TRANSFER_OUT: 7,
    EntryKind.MATERIAL_PURCHASE_CASH: 8,
    EntryKind.MATERIAL_PURCHASE_DEFERRED: 8,
}

SIGN: dict[EntryKind, int] = {
    EntryKind.CARRIED_FORWARD: 1,
    EntryKind.FUND_TRANSFER: 1,
    EntryKind.PROJECT_TRANSFER_IN: 1,
    EntryKind.WORKER_WAGE: -1,
    EntryKind.TRANSPORT: -1,
    EntryKind.WORKER_TRANSFER: -1,
    EntryKind.WORKER_MISC_EXPENSE: -1,
    EntryKind.PROJECT_TRANSFER_OUT: -1,
    EntryKind.MATERIAL_PURCHASE_CASH: -1,
    EntryKind.MATERIAL_PURCHASE_DEFERRED: 0,
}


@dataclass(frozen=True)
class LedgerEntry:
    kind: EntryKind
    amount: Decimal
    occurred_on: date
    source_id: str
    label: str = ""
    notes: str | None = None


def contribution(entry: LedgerEntry) -> Decimal:
    return SIGN[entry.kind] * entry.amount


@dataclass(frozen=True)
class LedgerLine:
    entry: LedgerEntry
    contribution: Decimal
    balance_after: Decimal


@dataclass(frozen=True)
class DailyLedger:
    project_id: str
    day: date
    opening_balance: Decimal
    entries: tuple[LedgerLine, ...]
    closing_balance: Decimal

    @property
    def has_carried_forward(self) -> bool:
        return bool(self.entries) and self.entries[0].entry.kind == EntryKind.CARRIED_FORWARD
