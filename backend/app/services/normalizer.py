from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Union

from app.core.errors import ValidationError
from app.services.ledger_entries import EntryKind, LedgerEntry

# Storage hands amounts over as numeric strings (Postgres NUMERIC), Decimals
# or plain numbers. They are validated here, never downstream.
RawAmount = Union[Decimal, str, int, float, None]

CASH_PURCHASE_TYPES = {"cash", "نقد"}
DEFERRED_PURCHASE_TYPES = {"deferred", "credit", "آجل", "أجل", "supply", "توريد"}


@dataclass(frozen=True)
class FundTransferRow:
    source_id: str
    amount: RawAmount
    sender_name: str | None = None
    transfer_type: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AttendanceRow:
    source_id: str
    worker_name: str
    paid_amount: RawAmount
    work_days: Decimal | float | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransportRow:
    source_id: str
    amount: RawAmount
    description: str = ""
    notes: str | None = None


@dataclass(frozen=True)
class WorkerTransferRow:
    source_id: str
    amount: RawAmount
    worker_name: str = ""
    recipient_name: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class WorkerMiscExpenseRow:
    source_id: str
    amount: RawAmount
    description: str = ""
    notes: str | None = None


@dataclass(frozen=True)
class ProjectTransferRow:
    source_id: str
    amount: RawAmount
    direction: str  # in|out, relative to the ledger's project
    counterpart_project: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class MaterialPurchaseRow:
    source_id: str
    total_amount: RawAmount
    purchase_type: str
    material_name: str = ""
    supplier_name: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class RawTransactionSet:
    project_id: str
    day: date
    fund_transfers: tuple[FundTransferRow, ...] = ()
    attendance: tuple[AttendanceRow, ...] = ()
    transportation_expenses: tuple[TransportRow, ...] = ()
    worker_transfers: tuple[WorkerTransferRow, ...] = ()
    material_purchases: tuple[MaterialPurchaseRow, ...] = ()
    project_transfers: tuple[ProjectTransferRow, ...] = ()
    worker_misc_expenses: tuple[WorkerMiscExpenseRow, ...] = ()

    def is_empty(self) -> bool:
        return not (
            self.fund_transfers
            or self.attendance
            or self.transportation_expenses
            or self.worker_transfers
            or self.material_purchases
            or self.project_transfers
            or self.worker_misc_expenses
        )


def _to_amount(v: RawAmount, source_id: str, category: str) -> Decimal:
    if v is None or isinstance(v, bool):
        raise ValidationError(source_id, category, "amount is required")
    try:
        amt = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(source_id, category, f"amount {v!r} is not a number")
    if not amt.is_finite():
        raise ValidationError(source_id, category, "amount must be finite")
    if amt < 0:
        raise ValidationError(source_id, category, f"amount {amt} is negative")
    return amt


def _paid_amount(v: RawAmount, source_id: str) -> Decimal:
    # an unpaid attendance day is stored without a paid amount
    if v is None or (isinstance(v, str) and not v.strip()):
        return Decimal("0")
    return _to_amount(v, source_id, "attendance")


def _join(*parts: str | None) -> str:
    return " - ".join(p.strip() for p in parts if p and p.strip())


def _purchase_kind(row: MaterialPurchaseRow) -> EntryKind:
    pt = (row.purchase_type or "").strip().lower()
    if pt in CASH_PURCHASE_TYPES:
        return EntryKind.MATERIAL_PURCHASE_CASH
    if pt in DEFERRED_PURCHASE_TYPES:
        return EntryKind.MATERIAL_PURCHASE_DEFERRED
    raise ValidationError(row.source_id, "material_purchases", f"unknown purchase type {row.purchase_type!r}")


def normalize(raw: RawTransactionSet) -> list[LedgerEntry]:
    """Turn one project-day of raw category rows into ledger entries.

    Rows are validated as a whole: the first bad row raises ``ValidationError``
    and nothing is returned, so a ledger is never built from a partial day.
    Attendance rows with nothing paid do not move money and are dropped.
    """
    day = raw.day
    out: list[LedgerEntry] = []

    for r in raw.fund_transfers:
        out.append(
            LedgerEntry(
                kind=EntryKind.FUND_TRANSFER,
                amount=_to_amount(r.amount, r.source_id, "fund_transfers"),
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Fund transfer", r.sender_name, r.transfer_type),
                notes=r.notes,
            )
        )

    transfers_out: list[LedgerEntry] = []
    for r in raw.project_transfers:
        amt = _to_amount(r.amount, r.source_id, "project_transfers")
        direction = (r.direction or "").strip().lower()
        if direction == "in":
            out.append(
                LedgerEntry(
                    kind=EntryKind.PROJECT_TRANSFER_IN,
                    amount=amt,
                    occurred_on=day,
                    source_id=r.source_id,
                    label=_join("Transfer from project", r.counterpart_project),
                    notes=r.notes,
                )
            )
        elif direction == "out":
            transfers_out.append(
                LedgerEntry(
                    kind=EntryKind.PROJECT_TRANSFER_OUT,
                    amount=amt,
                    occurred_on=day,
                    source_id=r.source_id,
                    label=_join("Transfer to project", r.counterpart_project),
                    notes=r.notes,
                )
            )
        else:
            raise ValidationError(r.source_id, "project_transfers", f"unknown direction {r.direction!r}")

    for r in raw.attendance:
        paid = _paid_amount(r.paid_amount, r.source_id)
        if paid == 0:
            continue
        days = f"{r.work_days} day(s)" if r.work_days is not None else None
        out.append(
            LedgerEntry(
                kind=EntryKind.WORKER_WAGE,
                amount=paid,
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Wage", r.worker_name, days),
                notes=r.notes,
            )
        )

    for r in raw.transportation_expenses:
        out.append(
            LedgerEntry(
                kind=EntryKind.TRANSPORT,
                amount=_to_amount(r.amount, r.source_id, "transportation_expenses"),
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Transport", r.description),
                notes=r.notes,
            )
        )

    for r in raw.worker_transfers:
        out.append(
            LedgerEntry(
                kind=EntryKind.WORKER_TRANSFER,
                amount=_to_amount(r.amount, r.source_id, "worker_transfers"),
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Worker transfer", r.worker_name, r.recipient_name),
                notes=r.notes,
            )
        )

    for r in raw.worker_misc_expenses:
        out.append(
            LedgerEntry(
                kind=EntryKind.WORKER_MISC_EXPENSE,
                amount=_to_amount(r.amount, r.source_id, "worker_misc_expenses"),
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Misc expense", r.description),
                notes=r.notes,
            )
        )

    out.extend(transfers_out)

    for r in raw.material_purchases:
        kind = _purchase_kind(r)
        tag = "cash" if kind == EntryKind.MATERIAL_PURCHASE_CASH else "deferred"
        out.append(
            LedgerEntry(
                kind=kind,
                amount=_to_amount(r.total_amount, r.source_id, "material_purchases"),
                occurred_on=day,
                source_id=r.source_id,
                label=_join("Material purchase", r.material_name, r.supplier_name, f"({tag})"),
                notes=r.notes,
            )
        )

    return out
