import asyncio
import os
import tempfile
from datetime import date
from pathlib import Path

import pytest


def pytest_configure():
    # app.core.config reads the environment at import time
    if os.getenv("DATABASE_URL"):
        return
    temp_dir = tempfile.mkdtemp(prefix="project-ledger-tests-")
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{Path(temp_dir) / 'pytest.db'}"


CATEGORIES = (
    "fund_transfers",
    "attendance",
    "transportation_expenses",
    "worker_transfers",
    "material_purchases",
    "project_transfers",
    "worker_misc_expenses",
)


class FakeSource:
    """In-memory TransactionSource. Records every category fetch it serves."""

    def __init__(self, *project_ids: str):
        self.projects = set(project_ids or ("p1",))
        self.rows: dict[tuple[str, date, str], list] = {}
        self.fetches: list[tuple[str, date, str]] = []
        self.fail: dict[str, Exception] = {}
        self.delay: dict[str, float] = {}

    def add(self, project_id: str, day: date, category: str, row) -> None:
        assert category in CATEGORIES, category
        self.projects.add(project_id)
        self.rows.setdefault((project_id, day, category), []).append(row)

    def remove(self, project_id: str, day: date, category: str, source_id: str) -> None:
        key = (project_id, day, category)
        self.rows[key] = [r for r in self.rows.get(key, []) if r.source_id != source_id]
        if not self.rows[key]:
            del self.rows[key]

    def _dates(self, project_id: str) -> set[date]:
        return {d for (p, d, _) in self.rows if p == project_id}

    async def _get(self, category: str, project_id: str, day: date) -> list:
        self.fetches.append((project_id, day, category))
        if category in self.delay:
            await asyncio.sleep(self.delay[category])
        if category in self.fail:
            raise self.fail[category]
        return list(self.rows.get((project_id, day, category), []))

    async def project_exists(self, project_id: str) -> bool:
        return project_id in self.projects

    async def first_activity_date(self, project_id: str):
        ds = self._dates(project_id)
        return min(ds) if ds else None

    async def last_activity_date(self, project_id: str):
        ds = self._dates(project_id)
        return max(ds) if ds else None

    async def activity_dates(self, project_id: str, start: date, end: date) -> set[date]:
        return {d for d in self._dates(project_id) if start <= d <= end}

    async def fund_transfers(self, project_id, day):
        return await self._get("fund_transfers", project_id, day)

    async def attendance(self, project_id, day):
        return await self._get("attendance", project_id, day)

    async def transportation_expenses(self, project_id, day):
        return await self._get("transportation_expenses", project_id, day)

    async def worker_transfers(self, project_id, day):
        return await self._get("worker_transfers", project_id, day)

    async def material_purchases(self, project_id, day):
        return await self._get("material_purchases", project_id, day)

    async def project_transfers(self, project_id, day):
        return await self._get("project_transfers", project_id, day)

    async def worker_misc_expenses(self, project_id, day):
        return await self._get("worker_misc_expenses", project_id, day)


@pytest.fixture()
def source():
    return FakeSource("p1")
