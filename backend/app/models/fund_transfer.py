from decimal import Decimal

from sqlalchemy import Integer, String, Date, DateTime, func, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class FundTransfer(Base):
    __tablename__ = "fund_transfers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    date: Mapped[Date] = mapped_column(Date, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    sender_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    transfer_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transfer_type: Mapped[str] = mapped_column(String(32))
    notes: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
