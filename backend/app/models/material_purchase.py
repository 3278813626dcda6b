from decimal import Decimal

from sqlalchemy import Integer, String, Date, DateTime, func, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class MaterialPurchase(Base):
    __tablename__ = "material_purchases"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    material_id: Mapped[str] = mapped_column(ForeignKey("materials.id"), index=True)
    date: Mapped[Date] = mapped_column(Date, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    purchase_type: Mapped[str] = mapped_column(String(16))  # cash | deferred
    supplier_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
