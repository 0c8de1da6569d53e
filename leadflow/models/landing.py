# leadflow/models/landing.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from leadflow.db.base import Base, TimestampMixin


class Landing(TimestampMixin, Base):
    """Inbound channel allowed to submit leads with its API key."""

    __tablename__ = "landings"
    __table_args__ = (
        CheckConstraint("length(slug) >= 2", name="landings_slug_len"),
        CheckConstraint("length(name) >= 2", name="landings_name_len"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    api_key: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    # Routing data for notification delivery (delivery itself lives elsewhere)
    notify_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    notify_push: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
