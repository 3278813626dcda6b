from __future__ import annotations

import asyncio
from datetime import date
from typing import Callable, Protocol, TypeVar

from sqlalchemy import select, func, or_, union
from sqlalchemy.orm import Session

from app.models.fund_transfer import FundTransfer
from app.models.material import Material
from app.models.material_purchase import MaterialPurchase
from app.models.project import Project
from app.models.project_fund_transfer import ProjectFundTransfer
from app.models.transportation_expense import TransportationExpense
from app.models.worker import Worker
from app.models.worker_attendance import WorkerAttendance
from app.models.worker_misc_expense import WorkerMiscExpense
from app.models.worker_transfer import WorkerTransfer
from app.services.normalizer import (
    AttendanceRow,
    FundTransferRow,
    MaterialPurchaseRow,
    ProjectTransferRow,
    TransportRow,
    WorkerMiscExpenseRow,
    WorkerTransferRow,
)

T = TypeVar("T")


class TransactionSource(Protocol):
    """Read side of the transaction store, per project and day."""

    async def project_exists(self, project_id: str) -> bool: ...

    async def first_activity_date(self, project_id: str) -> date | None: ...

    async def last_activity_date(self, project_id: str) -> date | None: ...

    async def activity_dates(self, project_id: str, start: date, end: date) -> set[date]: ...

    async def fund_transfers(self, project_id: str, day: date) -> list[FundTransferRow]: ...

    async def attendance(self, project_id: str, day: date) -> list[AttendanceRow]: ...

    async def transportation_expenses(self, project_id: str, day: date) -> list[TransportRow]: ...

    async def worker_transfers(self, project_id: str, day: date) -> list[WorkerTransferRow]: ...

    async def material_purchases(self, project_id: str, day: date) -> list[MaterialPurchaseRow]: ...

    async def project_transfers(self, project_id: str, day: date) -> list[ProjectTransferRow]: ...

    async def worker_misc_expenses(self, project_id: str, day: date) -> list[WorkerMiscExpenseRow]: ...


def _dated_tables(project_id: str):
    return [
        select(FundTransfer.date.label("d")).where(FundTransfer.project_id == project_id),
        select(WorkerAttendance.date.label("d")).where(WorkerAttendance.project_id == project_id),
        select(TransportationExpense.date.label("d")).where(TransportationExpense.project_id == project_id),
        select(WorkerTransfer.date.label("d")).where(WorkerTransfer.project_id == project_id),
        select(MaterialPurchase.date.label("d")).where(MaterialPurchase.project_id == project_id),
        select(WorkerMiscExpense.date.label("d")).where(WorkerMiscExpense.project_id == project_id),
        select(ProjectFundTransfer.date.label("d")).where(
            or_(ProjectFundTransfer.from_project_id == project_id, ProjectFundTransfer.to_project_id == project_id)
        ),
    ]


def _source_id(row) -> str:
    # ids are per table; rows of one table are listed in id order
    return f"{row.__tablename__}:{row.id}"


class SqlTransactionSource:
    """TransactionSource over the SQLAlchemy models.

    Every query opens its own short-lived session in a worker thread, so the
    per-category fetches of one day can run side by side.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def _job() -> T:
            with self._session_factory() as s:
                return fn(s)

        return await asyncio.to_thread(_job)

    async def project_exists(self, project_id: str) -> bool:
        return await self._run(
            lambda s: s.execute(select(Project.id).where(Project.id == project_id)).scalar_one_or_none() is not None
        )

    async def _activity_bound(self, project_id: str, agg) -> date | None:
        u = union(*_dated_tables(project_id)).subquery()
        return await self._run(lambda s: s.execute(select(agg(u.c.d))).scalar_one())

    async def first_activity_date(self, project_id: str) -> date | None:
        return await self._activity_bound(project_id, func.min)

    async def last_activity_date(self, project_id: str) -> date | None:
        return await self._activity_bound(project_id, func.max)

    async def activity_dates(self, project_id: str, start: date, end: date) -> set[date]:
        u = union(*_dated_tables(project_id)).subquery()
        q = select(u.c.d).where(u.c.d >= start, u.c.d <= end)
        return await self._run(lambda s: set(s.execute(q).scalars().all()))

    async def fund_transfers(self, project_id: str, day: date) -> list[FundTransferRow]:
        def q(s: Session) -> list[FundTransferRow]:
            rows = (
                s.execute(
                    select(FundTransfer)
                    .where(FundTransfer.project_id == project_id, FundTransfer.date == day)
                    .order_by(FundTransfer.id.asc())
                )
                .scalars()
                .all()
            )
            return [
                FundTransferRow(
                    source_id=_source_id(r),
                    amount=r.amount,
                    sender_name=r.sender_name,
                    transfer_type=r.transfer_type,
                    notes=r.notes,
                )
                for r in rows
            ]

        return await self._run(q)

    async def attendance(self, project_id: str, day: date) -> list[AttendanceRow]:
        def q(s: Session) -> list[AttendanceRow]:
            rows = s.execute(
                select(WorkerAttendance, Worker.name)
                .join(Worker, Worker.id == WorkerAttendance.worker_id)
                .where(WorkerAttendance.project_id == project_id, WorkerAttendance.date == day)
                .order_by(WorkerAttendance.id.asc())
            ).all()
            return [
                AttendanceRow(
                    source_id=_source_id(a),
                    worker_name=name,
                    paid_amount=a.paid_amount,
                    work_days=a.work_days,
                    notes=a.work_description,
                )
                for (a, name) in rows
            ]

        return await self._run(q)

    async def transportation_expenses(self, project_id: str, day: date) -> list[TransportRow]:
        def q(s: Session) -> list[TransportRow]:
            rows = (
                s.execute(
                    select(TransportationExpense)
                    .where(TransportationExpense.project_id == project_id, TransportationExpense.date == day)
                    .order_by(TransportationExpense.id.asc())
                )
                .scalars()
                .all()
            )
            return [TransportRow(source_id=_source_id(r), amount=r.amount, description=r.description, notes=r.notes) for r in rows]

        return await self._run(q)

    async def worker_transfers(self, project_id: str, day: date) -> list[WorkerTransferRow]:
        def q(s: Session) -> list[WorkerTransferRow]:
            rows = s.execute(
                select(WorkerTransfer, Worker.name)
                .join(Worker, Worker.id == WorkerTransfer.worker_id)
                .where(WorkerTransfer.project_id == project_id, WorkerTransfer.date == day)
                .order_by(WorkerTransfer.id.asc())
            ).all()
            return [
                WorkerTransferRow(
                    source_id=_source_id(t),
                    amount=t.amount,
                    worker_name=name,
                    recipient_name=t.recipient_name,
                    notes=t.notes,
                )
                for (t, name) in rows
            ]

        return await self._run(q)

    async def material_purchases(self, project_id: str, day: date) -> list[MaterialPurchaseRow]:
        def q(s: Session) -> list[MaterialPurchaseRow]:
            rows = s.execute(
                select(MaterialPurchase, Material.name)
                .join(Material, Material.id == MaterialPurchase.material_id)
                .where(MaterialPurchase.project_id == project_id, MaterialPurchase.date == day)
                .order_by(MaterialPurchase.id.asc())
            ).all()
            return [
                MaterialPurchaseRow(
                    source_id=_source_id(p),
                    total_amount=p.total_amount,
                    purchase_type=p.purchase_type,
                    material_name=name,
                    supplier_name=p.supplier_name,
                    notes=p.notes,
                )
                for (p, name) in rows
            ]

        return await self._run(q)

    async def project_transfers(self, project_id: str, day: date) -> list[ProjectTransferRow]:
        def q(s: Session) -> list[ProjectTransferRow]:
            rows = (
                s.execute(
                    select(ProjectFundTransfer)
                    .where(
                        or_(
                            ProjectFundTransfer.from_project_id == project_id,
                            ProjectFundTransfer.to_project_id == project_id,
                        ),
                        ProjectFundTransfer.date == day,
                    )
                    .order_by(ProjectFundTransfer.id.asc())
                )
                .scalars()
                .all()
            )
            out: list[ProjectTransferRow] = []
            for t in rows:
                if t.to_project_id == project_id:
                    out.append(
                        ProjectTransferRow(
                            source_id=_source_id(t),
                            amount=t.amount,
                            direction="in",
                            counterpart_project=t.from_project_id,
                            notes=t.notes,
                        )
                    )
                if t.from_project_id == project_id:
                    out.append(
                        ProjectTransferRow(
                            source_id=_source_id(t),
                            amount=t.amount,
                            direction="out",
                            counterpart_project=t.to_project_id,
                            notes=t.notes,
                        )
                    )
            return out

        return await self._run(q)

    async def worker_misc_expenses(self, project_id: str, day: date) -> list[WorkerMiscExpenseRow]:
        def q(s: Session) -> list[WorkerMiscExpenseRow]:
            rows = (
                s.execute(
                    select(WorkerMiscExpense)
                    .where(WorkerMiscExpense.project_id == project_id, WorkerMiscExpense.date == day)
                    .order_by(WorkerMiscExpense.id.asc())
                )
                .scalars()
                .all()
            )
            return [
                WorkerMiscExpenseRow(source_id=_source_id(r), amount=r.amount, description=r.description, notes=r.notes)
                for r in rows
            ]

        return await self._run(q)
