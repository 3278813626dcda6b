from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.core.errors import InvariantViolation
from app.services.ledger import build_daily_ledger
from app.services.ledger_entries import EntryKind, LedgerEntry
from app.services.summary import summarize, summarize_period

D1 = date(2025, 6, 1)


def _e(kind, amount, sid, day):
    return LedgerEntry(kind=kind, amount=Decimal(amount), occurred_on=day, source_id=sid)


def _chain(days: int, project_id: str = "p1"):
    out = []
    opening = Decimal("0")
    for i in range(days):
        d = D1 + timedelta(days=i)
        lg = build_daily_ledger(
            project_id,
            d,
            opening,
            [
                _e(EntryKind.FUND_TRANSFER, "100", f"ft-{i}", d),
                _e(EntryKind.TRANSPORT, "40", f"t-{i}", d),
                _e(EntryKind.MATERIAL_PURCHASE_DEFERRED, "7", f"mp-{i}", d),
            ],
        )
        out.append(lg)
        opening = lg.closing_balance
    return out


def test_period_totals_add_up():
    p = summarize_period(_chain(3))
    assert p.start == D1
    assert p.end == D1 + timedelta(days=2)
    assert p.days == 3
    assert p.opening_balance == 0
    assert p.total_income == Decimal("300")
    assert p.total_expense == Decimal("120")
    assert p.total_deferred_purchases == Decimal("21")
    assert p.closing_balance == Decimal("180")


def test_carried_forward_is_not_income():
    lg = _chain(2)[1]
    s = summarize(lg)
    assert s.carried_forward == Decimal("60")
    assert s.total_income == Decimal("100")


def test_empty_period_is_rejected():
    with pytest.raises(InvariantViolation):
        summarize_period([])


def test_gap_is_rejected():
    ledgers = _chain(3)
    with pytest.raises(InvariantViolation):
        summarize_period([ledgers[0], ledgers[2]])


def test_broken_link_is_rejected():
    a, b = _chain(2)
    c = build_daily_ledger("p1", b.day, Decimal("999"), [])
    with pytest.raises(InvariantViolation):
        summarize_period([a, c])


def test_mixed_projects_are_rejected():
    a = _chain(1, "p1")[0]
    b = build_daily_ledger("p2", a.day + timedelta(days=1), a.closing_balance, [])
    with pytest.raises(InvariantViolation):
        summarize_period([a, b])


def test_outgoing_project_transfer_is_an_expense_not_negative_income():
    d = D1
    lg = build_daily_ledger(
        "p1",
        d,
        Decimal("0"),
        [
            _e(EntryKind.PROJECT_TRANSFER_IN, "300", "pi-1", d),
            _e(EntryKind.PROJECT_TRANSFER_OUT, "120", "po-1", d),
        ],
    )
    s = summarize(lg)
    assert s.total_income == Decimal("300")
    assert s.total_expense == Decimal("120")
    assert s.remaining_balance == Decimal("180")
