from decimal import Decimal

from sqlalchemy import String, DateTime, func, Numeric, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.models.project import new_id

class Worker(Base):
    __tablename__ = "workers"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128))
    worker_type: Mapped[str] = mapped_column(String(32))
    daily_wage: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
