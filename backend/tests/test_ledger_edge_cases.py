from datetime import date, timedelta
from decimal import Decimal, getcontext

import pytest

from app.core.errors import InvariantViolation
from app.services.ledger import build_daily_ledger, d2
from app.services.ledger_entries import EntryKind, LedgerEntry
from app.services.summary import summarize

getcontext().prec = 50

D = date(2025, 3, 10)


def _e(kind: EntryKind, amount: str, source_id: str, day: date = D) -> LedgerEntry:
    return LedgerEntry(kind=kind, amount=Decimal(amount), occurred_on=day, source_id=source_id)


def test_opening_plus_income_minus_wage():
    lg = build_daily_ledger(
        "p1",
        D,
        Decimal("1000"),
        [_e(EntryKind.FUND_TRANSFER, "500", "ft-1"), _e(EntryKind.WORKER_WAGE, "300", "w-1")],
    )
    assert [ln.entry.kind for ln in lg.entries] == [
        EntryKind.CARRIED_FORWARD,
        EntryKind.FUND_TRANSFER,
        EntryKind.WORKER_WAGE,
    ]
    assert [ln.balance_after for ln in lg.entries[1:]] == [Decimal("1500"), Decimal("1200")]
    assert lg.closing_balance == Decimal("1200")


def test_deferred_purchase_is_listed_but_moves_nothing():
    lg = build_daily_ledger("p1", D, Decimal("0"), [_e(EntryKind.MATERIAL_PURCHASE_DEFERRED, "2000", "mp-1")])
    assert len(lg.entries) == 1
    [ln] = lg.entries
    assert ln.entry.kind == EntryKind.MATERIAL_PURCHASE_DEFERRED
    assert ln.contribution == 0
    assert ln.balance_after == 0
    assert lg.closing_balance == 0

    s = summarize(lg)
    assert s.total_deferred_purchases == Decimal("2000")
    assert s.total_income == 0
    assert s.total_expense == 0


def test_quiet_day_carries_previous_closing():
    lg = build_daily_ledger("p1", D, Decimal("750"), [])
    assert lg.opening_balance == Decimal("750")
    assert lg.closing_balance == Decimal("750")
    [ln] = lg.entries
    assert ln.entry.kind == EntryKind.CARRIED_FORWARD
    assert ln.entry.amount == Decimal("750")
    assert ln.balance_after == Decimal("750")


def test_zero_opening_has_no_carried_forward_line():
    lg = build_daily_ledger("p1", D, Decimal("0"), [_e(EntryKind.TRANSPORT, "25", "t-1")])
    assert not lg.has_carried_forward
    assert lg.closing_balance == Decimal("-25")

    empty = build_daily_ledger("p1", D, Decimal("0"), [])
    assert empty.entries == ()
    assert empty.closing_balance == 0


def test_negative_opening_is_carried_as_is():
    lg = build_daily_ledger("p1", D, Decimal("-40"), [_e(EntryKind.FUND_TRANSFER, "100", "ft-1")])
    assert lg.entries[0].entry.kind == EntryKind.CARRIED_FORWARD
    assert lg.entries[0].contribution == Decimal("-40")
    assert lg.closing_balance == Decimal("60")


def test_buckets_follow_fixed_order_and_keep_input_order_inside():
    given = [
        _e(EntryKind.MATERIAL_PURCHASE_CASH, "10", "mp-1"),
        _e(EntryKind.WORKER_TRANSFER, "5", "wt-1"),
        _e(EntryKind.MATERIAL_PURCHASE_DEFERRED, "99", "mp-2"),
        _e(EntryKind.PROJECT_TRANSFER_OUT, "3", "po-1"),
        _e(EntryKind.TRANSPORT, "2", "t-1"),
        _e(EntryKind.WORKER_WAGE, "7", "w-2"),
        _e(EntryKind.FUND_TRANSFER, "100", "ft-1"),
        _e(EntryKind.WORKER_WAGE, "8", "w-1"),
        _e(EntryKind.WORKER_MISC_EXPENSE, "1", "wm-1"),
        _e(EntryKind.PROJECT_TRANSFER_IN, "20", "pi-1"),
        _e(EntryKind.MATERIAL_PURCHASE_CASH, "11", "mp-3"),
    ]
    lg = build_daily_ledger("p1", D, Decimal("0"), given)
    assert [ln.entry.source_id for ln in lg.entries] == [
        "ft-1",
        "pi-1",
        "w-2",
        "w-1",
        "t-1",
        "wt-1",
        "wm-1",
        "po-1",
        "mp-1",
        "mp-2",
        "mp-3",
    ]


def test_same_input_builds_identical_ledgers():
    given = [
        _e(EntryKind.FUND_TRANSFER, "100.10", "ft-1"),
        _e(EntryKind.WORKER_WAGE, "33.333", "w-1"),
        _e(EntryKind.MATERIAL_PURCHASE_CASH, "0.005", "mp-1"),
    ]
    a = build_daily_ledger("p1", D, Decimal("12.5"), given)
    b = build_daily_ledger("p1", D, Decimal("12.5"), list(given))
    assert a == b


def test_no_rounding_inside_the_walk():
    lg = build_daily_ledger(
        "p1",
        D,
        Decimal("0"),
        [_e(EntryKind.FUND_TRANSFER, "0.005", "ft-1"), _e(EntryKind.FUND_TRANSFER, "0.005", "ft-2")],
    )
    assert lg.closing_balance == Decimal("0.010")
    assert d2(Decimal("0.005")) == Decimal("0.01")
    assert d2(Decimal("-0.005")) == Decimal("-0.01")


def test_builder_rejects_supplied_carried_forward():
    with pytest.raises(InvariantViolation):
        build_daily_ledger("p1", D, Decimal("0"), [_e(EntryKind.CARRIED_FORWARD, "10", "cf")])


def test_builder_rejects_negative_amounts():
    with pytest.raises(InvariantViolation):
        build_daily_ledger("p1", D, Decimal("0"), [_e(EntryKind.TRANSPORT, "-1", "t-1")])


def test_builder_rejects_entries_from_another_day():
    with pytest.raises(InvariantViolation):
        build_daily_ledger("p1", D, Decimal("0"), [_e(EntryKind.TRANSPORT, "1", "t-1", D - timedelta(days=1))])


@pytest.mark.parametrize("opening", [Decimal("NaN"), Decimal("Infinity"), 10, 1.5, None])
def test_builder_rejects_bad_opening(opening):
    with pytest.raises(InvariantViolation):
        build_daily_ledger("p1", D, opening, [])


def test_summary_identity_and_kind_totals():
    lg = build_daily_ledger(
        "p1",
        D,
        Decimal("200"),
        [
            _e(EntryKind.FUND_TRANSFER, "500", "ft-1"),
            _e(EntryKind.PROJECT_TRANSFER_IN, "50", "pi-1"),
            _e(EntryKind.WORKER_WAGE, "120", "w-1"),
            _e(EntryKind.WORKER_WAGE, "80", "w-2"),
            _e(EntryKind.MATERIAL_PURCHASE_CASH, "30", "mp-1"),
            _e(EntryKind.MATERIAL_PURCHASE_DEFERRED, "900", "mp-2"),
        ],
    )
    s = summarize(lg)
    assert s.carried_forward == Decimal("200")
    assert s.total_income == Decimal("550")
    assert s.total_expense == Decimal("230")
    assert s.remaining_balance == Decimal("520") == lg.closing_balance
    assert s.total_deferred_purchases == Decimal("900")
    assert s.totals_by_kind[EntryKind.WORKER_WAGE] == Decimal("200")
    assert EntryKind.CARRIED_FORWARD not in s.totals_by_kind
