from decimal import Decimal

from sqlalchemy import Integer, String, Date, DateTime, func, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class WorkerAttendance(Base):
    __tablename__ = "worker_attendance"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    worker_id: Mapped[str] = mapped_column(ForeignKey("workers.id"), index=True)
    date: Mapped[Date] = mapped_column(Date, index=True)
    work_days: Mapped[Decimal] = mapped_column(Numeric(4, 2), default=Decimal("1"))
    daily_wage: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    payment_type: Mapped[str] = mapped_column(String(16), default="partial")
    work_description: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
