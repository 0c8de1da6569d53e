# leadflow/dependencies.py
"""
FastAPI dependencies shared by the routers.
"""
from __future__ import annotations

from decimal import Decimal

from leadflow.core.config import settings


def get_commission_rate() -> Decimal:
    """Process-wide commission rate, in percent."""
    return settings.commission_rate_percent
