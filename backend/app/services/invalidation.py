from __future__ import annotations

import logging
from datetime import date
from typing import Iterator

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from app.models.fund_transfer import FundTransfer
from app.models.material_purchase import MaterialPurchase
from app.models.project_fund_transfer import ProjectFundTransfer
from app.models.transportation_expense import TransportationExpense
from app.models.worker_attendance import WorkerAttendance
from app.models.worker_misc_expense import WorkerMiscExpense
from app.models.worker_transfer import WorkerTransfer
from app.services.carry_forward import ClosingBalanceCache, closing_balances

logger = logging.getLogger(__name__)

LEDGER_MODELS = (
    FundTransfer,
    WorkerAttendance,
    TransportationExpense,
    WorkerTransfer,
    MaterialPurchase,
    WorkerMiscExpense,
    ProjectFundTransfer,
)

_PENDING_KEY = "ledger_invalidations"

_caches: list[ClosingBalanceCache] = [closing_balances]


def track(cache: ClosingBalanceCache) -> None:
    if cache not in _caches:
        _caches.append(cache)


def untrack(cache: ClosingBalanceCache) -> None:
    if cache in _caches and cache is not closing_balances:
        _caches.remove(cache)


def _values(obj, attr: str) -> list:
    """Current and pre-flush values of an attribute."""
    hist = inspect(obj).attrs[attr].load_history()
    return [v for v in (*hist.added, *hist.unchanged, *hist.deleted) if v is not None]


def affected_days(obj) -> Iterator[tuple[str, date]]:
    days = _values(obj, "date")
    if isinstance(obj, ProjectFundTransfer):
        projects = _values(obj, "from_project_id") + _values(obj, "to_project_id")
    else:
        projects = _values(obj, "project_id")
    for p in set(projects):
        for d in set(days):
            yield p, d


@event.listens_for(Session, "before_flush")
def _collect(session: Session, flush_context, instances) -> None:
    pending: dict[str, date] = session.info.setdefault(_PENDING_KEY, {})
    for obj in (*session.new, *session.dirty, *session.deleted):
        if not isinstance(obj, LEDGER_MODELS):
            continue
        for project_id, d in affected_days(obj):
            cur = pending.get(project_id)
            if cur is None or d < cur:
                pending[project_id] = d


@event.listens_for(Session, "after_commit")
def _apply(session: Session) -> None:
    pending: dict[str, date] = session.info.pop(_PENDING_KEY, {})
    for project_id, d in pending.items():
        for cache in _caches:
            cache.invalidate_from(project_id, d)
    if pending:
        logger.info("ledger balances invalidated for %d project(s)", len(pending))


@event.listens_for(Session, "after_rollback")
def _discard(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
