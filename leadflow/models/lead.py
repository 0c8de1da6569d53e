# leadflow/models/lead.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.db.base import Base, JSONType, TimestampMixin
from leadflow.models.enums import LeadPriority, LeadSource, LeadState, db_enum

MONEY = Numeric(12, 2)


@dataclass(frozen=True)
class SaleRecord:
    """A closed sale. Independent of the pipeline position: moving a lead
    away from ``won`` leaves its sale of record in place."""

    amount: Decimal
    sold_at: datetime
    commission: Optional[Decimal] = None


class Lead(TimestampMixin, Base):
    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Contact
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    locality: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Classification
    state: Mapped[LeadState] = mapped_column(
        db_enum(LeadState, "lead_state"), nullable=False, default=LeadState.NEW
    )
    source: Mapped[LeadSource] = mapped_column(
        db_enum(LeadSource, "lead_source"), nullable=False, default=LeadSource.DIRECT
    )
    priority: Mapped[LeadPriority] = mapped_column(
        db_enum(LeadPriority, "lead_priority"), nullable=False, default=LeadPriority.MEDIUM
    )
    services: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Financial
    quoted_amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    quote_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sale_amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    sale_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    commission_amount: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    commission_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    # Attribution
    landing_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("landings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    utm_source: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_medium: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_campaign: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_term: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_content: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_leads_state", "state"),
        Index("idx_leads_source", "source"),
        Index("idx_leads_priority", "priority"),
        Index("idx_leads_state_created", "state", "created_at"),
        Index("idx_leads_sale_date", "sale_date"),
        CheckConstraint("length(name) >= 2", name="leads_name_len"),
        CheckConstraint("length(phone) >= 9", name="leads_phone_len"),
        CheckConstraint("quoted_amount IS NULL OR quoted_amount >= 0", name="leads_quoted_amount_non_negative"),
        CheckConstraint("sale_amount IS NULL OR sale_amount >= 0", name="leads_sale_amount_non_negative"),
        CheckConstraint(
            "(sale_amount IS NULL) = (sale_date IS NULL)",
            name="leads_sale_date_matches_amount",
        ),
        CheckConstraint(
            "commission_amount IS NULL OR sale_amount IS NOT NULL",
            name="leads_commission_requires_sale",
        ),
    )

    @property
    def sale_record(self) -> Optional[SaleRecord]:
        if self.sale_amount is None:
            return None
        return SaleRecord(
            amount=self.sale_amount,
            sold_at=self.sale_date,
            commission=self.commission_amount,
        )

    def record_sale(self, record: Optional[SaleRecord]) -> None:
        """Replace (or clear, with ``None``) the sale of record."""
        if record is None:
            self.sale_amount = None
            self.sale_date = None
            self.commission_amount = None
            return
        self.sale_amount = record.amount
        self.sale_date = record.sold_at
        self.commission_amount = record.commission
