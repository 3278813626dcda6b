from decimal import Decimal

from sqlalchemy import Integer, String, Date, DateTime, func, ForeignKey, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base


class ProjectFundTransfer(Base):
    __tablename__ = "project_fund_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    to_project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    date: Mapped[Date] = mapped_column(Date, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())


Index("ix_project_fund_transfers_pair", ProjectFundTransfer.from_project_id, ProjectFundTransfer.to_project_id)
