from __future__ import annotations

import asyncio
import bisect
import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from app.core.errors import LedgerError, UpstreamFetchError
from app.services.ledger import build_daily_ledger
from app.services.ledger_entries import DailyLedger
from app.services.normalizer import RawTransactionSet, normalize
from app.services.sources import TransactionSource

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

CATEGORIES = (
    "fund_transfers",
    "attendance",
    "transportation_expenses",
    "worker_transfers",
    "material_purchases",
    "project_transfers",
    "worker_misc_expenses",
)


@dataclass
class _ProjectBalances:
    generation: int = 0
    days: list[date] = field(default_factory=list)
    balances: dict[date, Decimal] = field(default_factory=dict)


class ClosingBalanceCache:
    """Memo table of closing balances keyed by (project_id, day).

    Any change to a transaction dated D invalidates D and every later day of
    that project. Each invalidation bumps the project's generation; a writer
    holding an older generation is ignored, so a computation that raced a
    change cannot put stale balances back.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._projects: dict[str, _ProjectBalances] = {}

    def _project(self, project_id: str) -> _ProjectBalances:
        p = self._projects.get(project_id)
        if p is None:
            p = _ProjectBalances()
            self._projects[project_id] = p
        return p

    def generation(self, project_id: str) -> int:
        with self._lock:
            return self._project(project_id).generation

    def get(self, project_id: str, day: date) -> Decimal | None:
        with self._lock:
            p = self._projects.get(project_id)
            if p is None:
                return None
            return p.balances.get(day)

    def nearest_at_or_before(self, project_id: str, day: date) -> tuple[date, Decimal] | None:
        with self._lock:
            p = self._projects.get(project_id)
            if p is None or not p.days:
                return None
            i = bisect.bisect_right(p.days, day)
            if i == 0:
                return None
            d = p.days[i - 1]
            return d, p.balances[d]

    def put(self, project_id: str, day: date, balance: Decimal, generation: int) -> bool:
        with self._lock:
            p = self._project(project_id)
            if p.generation != generation:
                return False
            if day not in p.balances:
                bisect.insort(p.days, day)
            p.balances[day] = balance
            return True

    def invalidate_from(self, project_id: str, day: date) -> None:
        with self._lock:
            p = self._project(project_id)
            p.generation += 1
            i = bisect.bisect_left(p.days, day)
            for d in p.days[i:]:
                del p.balances[d]
            del p.days[i:]
        logger.debug("ledger cache invalidated for project %s from %s", project_id, day)

    def clear(self, project_id: str | None = None) -> None:
        with self._lock:
            if project_id is None:
                for p in self._projects.values():
                    p.generation += 1
                    p.days.clear()
                    p.balances.clear()
                return
            p = self._project(project_id)
            p.generation += 1
            p.days.clear()
            p.balances.clear()

    def size(self, project_id: str) -> int:
        with self._lock:
            p = self._projects.get(project_id)
            return len(p.days) if p else 0


# Process-wide cache; invalidated by app.services.invalidation on commits.
closing_balances = ClosingBalanceCache()


class CarryForwardChain:
    """Builds daily ledgers and chains each day's closing balance into the next.

    ``closing_balance_of`` never recurses: it rolls forward from the nearest
    cached closing balance (or from zero before the project's first activity).
    Days without activity are still built, as empty ledgers.
    """

    def __init__(
        self,
        source: TransactionSource,
        cache: ClosingBalanceCache | None = None,
        fetch_timeout: float | None = 10.0,
        use_cache: bool = True,
    ):
        self.source = source
        self.cache = cache if cache is not None else ClosingBalanceCache()
        self.fetch_timeout = fetch_timeout
        self.use_cache = use_cache

    async def _fetch_category(self, category: str, project_id: str, day: date) -> list:
        fetch = getattr(self.source, category)
        try:
            return list(await fetch(project_id, day))
        except LedgerError:
            raise
        except Exception as e:
            raise UpstreamFetchError(project_id, day, category, str(e) or type(e).__name__) from e

    async def fetch_rows(self, project_id: str, day: date) -> RawTransactionSet:
        tasks = [asyncio.ensure_future(self._fetch_category(c, project_id, day)) for c in CATEGORIES]
        try:
            results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.fetch_timeout)
        except asyncio.TimeoutError as e:
            logger.warning("ledger fetch timed out for project %s on %s", project_id, day)
            raise UpstreamFetchError(project_id, day, None, "timed out") from e
        except UpstreamFetchError:
            logger.exception("ledger fetch failed for project %s on %s", project_id, day)
            raise
        finally:
            for t in tasks:
                if not t.done():
                    t.cancel()
            # collect every outcome so no failed or cancelled fetch is left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)

        by_category = dict(zip(CATEGORIES, (tuple(r) for r in results)))
        return RawTransactionSet(project_id=project_id, day=day, **by_category)

    async def _build_day(self, project_id: str, day: date, opening: Decimal, active: bool) -> DailyLedger:
        if active:
            raw = await self.fetch_rows(project_id, day)
        else:
            raw = RawTransactionSet(project_id=project_id, day=day)
        return build_daily_ledger(project_id, day, opening, normalize(raw))

    async def closing_balance_of(self, project_id: str, day: date) -> Decimal:
        generation = self.cache.generation(project_id)

        first = await self.source.first_activity_date(project_id)
        if first is None or day < first:
            return ZERO

        start = first
        balance = ZERO
        if self.use_cache:
            hit = self.cache.nearest_at_or_before(project_id, day)
            if hit is not None and hit[0] >= first:
                hit_day, hit_balance = hit
                if hit_day == day:
                    return hit_balance
                start = hit_day + timedelta(days=1)
                balance = hit_balance

        active = await self.source.activity_dates(project_id, start, day)
        for d in _days(start, day):
            ledger = await self._build_day(project_id, d, balance, d in active)
            balance = ledger.closing_balance
            if self.use_cache:
                self.cache.put(project_id, d, balance, generation)
        return balance

    async def opening_balance_of(self, project_id: str, day: date) -> Decimal:
        if day == date.min:
            return ZERO
        return await self.closing_balance_of(project_id, day - timedelta(days=1))

    async def daily_ledger(self, project_id: str, day: date) -> DailyLedger:
        generation = self.cache.generation(project_id)
        opening = await self.opening_balance_of(project_id, day)
        ledger = await self._build_day(project_id, day, opening, active=True)
        if self.use_cache:
            self.cache.put(project_id, day, ledger.closing_balance, generation)
        return ledger

    async def ledgers_between(self, project_id: str, start: date, end: date) -> list[DailyLedger]:
        """One forward pass producing every daily ledger in [start, end]."""
        if end < start:
            return []
        generation = self.cache.generation(project_id)
        opening = await self.opening_balance_of(project_id, start)
        active = await self.source.activity_dates(project_id, start, end)

        out: list[DailyLedger] = []
        balance = opening
        for d in _days(start, end):
            ledger = await self._build_day(project_id, d, balance, d in active)
            balance = ledger.closing_balance
            if self.use_cache:
                self.cache.put(project_id, d, balance, generation)
            out.append(ledger)
        return out

    async def rebuild(self, project_id: str, through: date) -> Decimal:
        self.cache.clear(project_id)
        logger.info("rebuilding ledger balances for project %s through %s", project_id, through)
        return await self.closing_balance_of(project_id, through)

    async def date_bounds(self, project_id: str) -> tuple[date | None, date | None]:
        first = await self.source.first_activity_date(project_id)
        last = await self.source.last_activity_date(project_id)
        return first, last

    def invalidate(self, project_id: str, day: date) -> None:
        self.cache.invalidate_from(project_id, day)


def _days(start: date, end: date):
    if end < start:
        return
    d = start
    while True:
        yield d
        if d == end:
            return
        d = d + timedelta(days=1)

