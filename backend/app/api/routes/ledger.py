from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import ledger_chain
from app.core.config import settings
from app.schemas.ledger import BalanceOut, DailyLedgerOut, LedgerDateBoundsOut, LedgerRangeOut, PeriodSummaryOut
from app.services.carry_forward import CarryForwardChain
from app.services.ledger import d2
from app.services.summary import summarize, summarize_period
from app.utils.timezone import today_local

router = APIRouter(prefix="/projects/{project_id}/ledger", tags=["ledger"])


def _check_day(d: date) -> date:
    # the balance of d is rolled forward one day at a time from the first activity
    if d > today_local() + timedelta(days=settings.ledger_max_future_days):
        raise HTTPException(status_code=400, detail="invalid_date")
    return d


async def _require_project(chain: CarryForwardChain, project_id: str) -> None:
    if not await chain.source.project_exists(project_id):
        raise HTTPException(status_code=404, detail="project_not_found")


@router.get("", response_model=DailyLedgerOut)
async def daily_ledger(
    project_id: str,
    day: date | None = Query(None, alias="date"),
    chain: CarryForwardChain = Depends(ledger_chain),
):
    await _require_project(chain, project_id)
    d = _check_day(day or today_local())
    lg = await chain.daily_ledger(project_id, d)
    return DailyLedgerOut.from_ledger(lg, summarize(lg))


@router.get("/range", response_model=LedgerRangeOut)
async def ledger_range(
    project_id: str,
    start: date = Query(...),
    end: date = Query(...),
    chain: CarryForwardChain = Depends(ledger_chain),
):
    if end < start:
        raise HTTPException(status_code=400, detail="invalid_range")
    _check_day(end)
    if (end - start).days + 1 > settings.ledger_max_range_days:
        raise HTTPException(status_code=400, detail="range_too_large")
    await _require_project(chain, project_id)

    ledgers = await chain.ledgers_between(project_id, start, end)
    return LedgerRangeOut(
        project_id=project_id,
        ledgers=[DailyLedgerOut.from_ledger(lg, summarize(lg)) for lg in ledgers],
        summary=PeriodSummaryOut.from_summary(summarize_period(ledgers)),
    )


@router.get("/balance", response_model=BalanceOut)
async def closing_balance(
    project_id: str,
    day: date | None = Query(None, alias="date"),
    chain: CarryForwardChain = Depends(ledger_chain),
):
    await _require_project(chain, project_id)
    d = _check_day(day or today_local())
    bal = await chain.closing_balance_of(project_id, d)
    return BalanceOut(project_id=project_id, date=d, closing_balance=d2(bal))


@router.get("/bounds", response_model=LedgerDateBoundsOut)
async def bounds(project_id: str, chain: CarryForwardChain = Depends(ledger_chain)):
    await _require_project(chain, project_id)
    first, last = await chain.date_bounds(project_id)
    return LedgerDateBoundsOut(project_id=project_id, min_date=first, max_date=last)


@router.post("/rebuild", response_model=BalanceOut)
async def rebuild(
    project_id: str,
    through: date | None = Query(None),
    chain: CarryForwardChain = Depends(ledger_chain),
):
    # Drops every cached balance of the project and recomputes from its first activity
    await _require_project(chain, project_id)
    d = _check_day(through or today_local())
    bal = await chain.rebuild(project_id, d)
    return BalanceOut(project_id=project_id, date=d, closing_balance=d2(bal))
