from datetime import date, timedelta
from decimal import Decimal, getcontext
from random import Random

import pytest

from app.services.ledger import build_daily_ledger
from app.services.ledger_entries import BUCKET_ORDER, EntryKind, LedgerEntry, contribution
from app.services.normalizer import (
    AttendanceRow,
    FundTransferRow,
    MaterialPurchaseRow,
    ProjectTransferRow,
    RawTransactionSet,
    TransportRow,
    WorkerMiscExpenseRow,
    WorkerTransferRow,
    normalize,
)
from app.services.summary import summarize, summarize_period

getcontext().prec = 60

START = date(2025, 1, 1)


def _amt(rng: Random) -> str:
    return str(Decimal(rng.randint(0, 500_000)) / Decimal(100))


def _random_day(rng: Random, day: date) -> RawTransactionSet:
    n = lambda: rng.randint(0, 3)  # noqa: E731
    return RawTransactionSet(
        project_id="p1",
        day=day,
        fund_transfers=tuple(FundTransferRow(source_id=f"ft-{day}-{i}", amount=_amt(rng)) for i in range(n())),
        attendance=tuple(
            AttendanceRow(source_id=f"at-{day}-{i}", worker_name=f"W{i}", paid_amount=rng.choice(["0", _amt(rng)]))
            for i in range(n())
        ),
        transportation_expenses=tuple(TransportRow(source_id=f"tr-{day}-{i}", amount=_amt(rng)) for i in range(n())),
        worker_transfers=tuple(WorkerTransferRow(source_id=f"wt-{day}-{i}", amount=_amt(rng)) for i in range(n())),
        material_purchases=tuple(
            MaterialPurchaseRow(
                source_id=f"mp-{day}-{i}",
                total_amount=_amt(rng),
                purchase_type=rng.choice(["cash", "نقد", "deferred", "آجل", "توريد"]),
            )
            for i in range(n())
        ),
        project_transfers=tuple(
            ProjectTransferRow(source_id=f"pt-{day}-{i}", amount=_amt(rng), direction=rng.choice(["in", "out"]))
            for i in range(n())
        ),
        worker_misc_expenses=tuple(
            WorkerMiscExpenseRow(source_id=f"wm-{day}-{i}", amount=_amt(rng)) for i in range(n())
        ),
    )


@pytest.mark.parametrize("seed", [1337, 2024, 7, 99])
def test_randomized_daily_invariants(seed):
    rng = Random(seed)
    opening = Decimal("0")
    ledgers = []

    for k in range(45):
        day = START + timedelta(days=k)
        raw = _random_day(rng, day) if rng.random() < 0.7 else RawTransactionSet(project_id="p1", day=day)
        entries = normalize(raw)
        rng.shuffle(entries)
        lg = build_daily_ledger("p1", day, opening, entries)

        # balance closure
        non_cf = [ln for ln in lg.entries if ln.entry.kind != EntryKind.CARRIED_FORWARD]
        assert lg.closing_balance == lg.opening_balance + sum((ln.contribution for ln in non_cf), Decimal("0"))

        # each line extends the previous running balance by its own contribution
        running = Decimal("0")
        for ln in lg.entries:
            assert ln.contribution == contribution(ln.entry)
            running += ln.contribution
            assert ln.balance_after == running

        # ordering by bucket, carried forward only on top and only when non-zero
        keys = [BUCKET_ORDER[ln.entry.kind] for ln in lg.entries]
        assert keys == sorted(keys)
        assert lg.has_carried_forward == (opening != 0)

        # deferred purchases never move the balance
        for ln in lg.entries:
            if ln.entry.kind == EntryKind.MATERIAL_PURCHASE_DEFERRED:
                assert ln.contribution == 0

        # the builder keeps every entry it is given
        assert len(non_cf) == len(entries)

        s = summarize(lg)
        assert s.carried_forward + s.total_income - s.total_expense == s.remaining_balance

        ledgers.append(lg)
        opening = lg.closing_balance

    period = summarize_period(ledgers)
    assert period.days == 45
    assert period.opening_balance == 0
    assert period.closing_balance == ledgers[-1].closing_balance
    assert period.opening_balance + period.total_income - period.total_expense == period.closing_balance


@pytest.mark.parametrize("seed", [5, 6])
def test_deferred_purchases_never_change_closing(seed):
    rng = Random(seed)
    day = START
    raw = _random_day(rng, day)
    base = [e for e in normalize(raw) if e.kind != EntryKind.MATERIAL_PURCHASE_DEFERRED]
    extra = [
        LedgerEntry(
            kind=EntryKind.MATERIAL_PURCHASE_DEFERRED,
            amount=Decimal(_amt(rng)),
            occurred_on=day,
            source_id=f"d-{i}",
        )
        for i in range(5)
    ]
    a = build_daily_ledger("p1", day, Decimal("100"), base)
    b = build_daily_ledger("p1", day, Decimal("100"), base + extra)
    assert a.closing_balance == b.closing_balance
