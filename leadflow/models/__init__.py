# leadflow/models/__init__.py
"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from leadflow.models.activity import Activity
from leadflow.models.enums import (
    MANUAL_ACTIVITY_TYPES,
    ActivityType,
    ExpenseType,
    LeadPriority,
    LeadSource,
    LeadState,
)
from leadflow.models.expense import Expense
from leadflow.models.landing import Landing
from leadflow.models.lead import Lead, SaleRecord

__all__ = [
    "Activity",
    "ActivityType",
    "Expense",
    "ExpenseType",
    "Landing",
    "Lead",
    "LeadPriority",
    "LeadSource",
    "LeadState",
    "MANUAL_ACTIVITY_TYPES",
    "SaleRecord",
]
