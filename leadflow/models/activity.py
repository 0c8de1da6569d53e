# leadflow/models/activity.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Text, event
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from leadflow.core.exceptions import BusinessRuleError
from leadflow.db.base import Base, JSONType, utcnow
from leadflow.models.enums import ActivityType, LeadState, db_enum


class Activity(Base):
    """Append-only audit entry attached to a lead."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[ActivityType] = mapped_column(db_enum(ActivityType, "activity_type"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    previous_state: Mapped[Optional[LeadState]] = mapped_column(
        db_enum(LeadState, "lead_state"), nullable=True
    )
    new_state: Mapped[Optional[LeadState]] = mapped_column(
        db_enum(LeadState, "lead_state"), nullable=True
    )
    # "metadata" is reserved on declarative classes
    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_activities_lead_created", "lead_id", "created_at", "id"),
    )


@event.listens_for(Activity, "before_update")
def reject_activity_update(mapper, connection, target):
    raise BusinessRuleError(
        message="Activity entries are append-only",
        details={"activity_id": target.id},
    )
