# leadflow/models/expense.py
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.db.base import Base, TimestampMixin
from leadflow.models.enums import ExpenseType, db_enum


class Expense(TimestampMixin, Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    type: Mapped[ExpenseType] = mapped_column(db_enum(ExpenseType, "expense_type"), nullable=False)
    concept: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    landing_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("landings.id", ondelete="SET NULL"), nullable=True, index=True
    )

    __table_args__ = (
        Index("idx_expenses_type_date", "type", "date"),
        CheckConstraint("amount > 0", name="expenses_amount_positive"),
    )
